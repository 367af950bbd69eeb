"""
High-impact policy - Decide whether a change needs an approved decision
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Sequence

from decern_gate.models.gate import PolicyResult

# Patterns containing "/" match anywhere in the path; others match the basename exactly.
HIGH_IMPACT_PATTERNS: tuple[str, ...] = (
    # Database migrations
    "migrations/",
    # Infrastructure manifests
    "Dockerfile",
    "docker-compose.yml",
    "docker-compose.yaml",
    "infra/",
    "terraform/",
    "k8s/",
    "helm/",
    # Dependency manifests and lock files
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "go.mod",
    "go.sum",
    "requirements.txt",
    "pyproject.toml",
    "poetry.lock",
    "Pipfile",
    "Pipfile.lock",
    "Cargo.toml",
    "Cargo.lock",
    "Gemfile",
    "Gemfile.lock",
    # CI workflows
    ".github/workflows/",
    ".gitlab-ci.yml",
    ".circleci/",
    "Jenkinsfile",
    # API schemas
    "openapi.yaml",
    "openapi.yml",
    "openapi.json",
    "swagger.yaml",
    "swagger.yml",
    "swagger.json",
)

MAX_REASON_FILES = 5


def pattern_matches(path: str, pattern: str) -> bool:
    normalized = path.replace("\\", "/")
    if "/" in pattern:
        return pattern in normalized
    return posixpath.basename(normalized) == pattern


def path_matches_required(path: str, extra_patterns: Iterable[str] = ()) -> bool:
    """True when the path matches a built-in or operator-supplied high-impact pattern"""
    for pattern in (*HIGH_IMPACT_PATTERNS, *extra_patterns):
        if pattern and pattern_matches(path, pattern):
            return True
    return False


def is_decision_required(
    changed_files: Sequence[str],
    extra_patterns: Iterable[str] = (),
) -> PolicyResult:
    extra = tuple(extra_patterns)
    matched = [f for f in changed_files if path_matches_required(f, extra)]
    if matched:
        listed = ", ".join(matched[:MAX_REASON_FILES])
        more = "..." if len(matched) > MAX_REASON_FILES else ""
        return PolicyResult(
            required=True,
            reason=f"High-impact patterns matched: {listed}{more}",
            matched_files=matched,
        )
    return PolicyResult(required=False, reason="No high-impact file patterns matched.")
