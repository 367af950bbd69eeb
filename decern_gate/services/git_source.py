"""
Git Source - Changed files, raw diffs and commit text from the local repository
"""

from __future__ import annotations

import subprocess

from decern_gate.models.diff import RevisionPair

DEFAULT_BRANCH_REFS = ("origin/main", "origin/master")


class GitError(RuntimeError):
    """A git command failed (unknown revision, not a repository, ...)"""


class GitDiffSource:
    """Run git commands in a working tree"""

    def __init__(self, cwd: str | None = None):
        self.cwd = cwd

    def _run(self, args: list[str]) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise GitError(f"git {args[0]} failed: {e}") from e
        if result.returncode != 0:
            raise GitError(f"git {args[0]} failed: {result.stderr.strip()}")
        return result.stdout

    def _ref_exists(self, ref: str) -> bool:
        try:
            self._run(["rev-parse", "--verify", ref])
        except GitError:
            return False
        return True

    def resolve_revisions(
        self,
        base_override: str | None = None,
        head_override: str | None = None,
    ) -> RevisionPair:
        """Explicit SHAs when both given, else the upstream default branch, else HEAD~1"""
        base = (base_override or "").strip()
        head = (head_override or "").strip()
        if base and head:
            return RevisionPair(base=base, head=head)

        for ref in DEFAULT_BRANCH_REFS:
            if self._ref_exists(ref):
                return RevisionPair(base=ref, head="HEAD")

        return RevisionPair(base="HEAD~1", head="HEAD")

    def changed_files(self, revisions: RevisionPair) -> list[str]:
        out = self._run(["diff", "--name-only", f"{revisions.base}...{revisions.head}"])
        return [line.strip() for line in out.splitlines() if line.strip()]

    def raw_diff(self, revisions: RevisionPair) -> str:
        return self._run(["diff", f"{revisions.base}...{revisions.head}"])

    def commit_message(self) -> str:
        """Message of the last commit, empty when unavailable"""
        try:
            return self._run(["log", "-1", "--pretty=%B"])
        except GitError:
            return ""
