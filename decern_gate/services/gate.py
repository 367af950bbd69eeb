"""
Decision Gate - Sequences policy, reference validation and the optional judge step
"""

from __future__ import annotations

from decern_gate.models.config import GateConfig
from decern_gate.models.gate import JudgeResult, Reference
from decern_gate.services.decern_client import DecernClient
from decern_gate.services.git_source import GitDiffSource, GitError
from decern_gate.services.judge_diff import get_diff_for_judge
from decern_gate.services.policy import is_decision_required
from decern_gate.services.references import extract_references
from decern_gate.services.reporter import (
    format_file_list,
    format_label,
    log,
    short_sha,
    to_percent,
)

EXIT_PASSED = 0
EXIT_BLOCKED = 1

REFERENCE_HINT = (
    "Add a Decern reference to the PR description or commit message: decision ID "
    "(decern:<uuid>, /decisions/<id>) or ADR ref (e.g. ADR-001). The decision must be "
    "approved in Decern before merge."
)
INVALID_HINT = (
    "Ensure the decision is approved in Decern, or add a reference to an approved "
    "decision (decision ID or ADR-XXX in PR/commit)."
)


def is_judge_unavailable(reason: str | None) -> bool:
    """Whether a rejection only says the judge is not part of the caller's plan"""
    r = (reason or "").lower()
    return (
        "team plan" in r
        or "plan and above" in r
        or ("judge" in r and "available" in r and "plan" in r)
    )


class DecisionGate:
    """Run the gate once and return the process exit code"""

    def __init__(
        self,
        config: GateConfig,
        git: GitDiffSource | None = None,
        client: DecernClient | None = None,
    ):
        self.config = config
        self.git = git or GitDiffSource()
        self.client = client or DecernClient(config)

    def _pr_or_commit_text(self) -> str:
        parts = [p for p in (self.config.ci_pr_title, self.config.ci_pr_body) if p]
        if parts:
            return "\n\n".join(parts)
        if self.config.ci_commit_message:
            return self.config.ci_commit_message
        return self.git.commit_message()

    def _log_dashboard(self, label: str = "Dashboard") -> None:
        if self.config.base_url:
            log(f"{label}: {self.config.base_url}")

    async def run(self) -> int:
        config = self.config
        missing_env = config.missing_service_env()

        log("decern-gate — high-impact change check")
        log()

        revisions = self.git.resolve_revisions(config.ci_base_sha, config.ci_head_sha)
        try:
            changed_files = self.git.changed_files(revisions)
        except GitError:
            log("Diff: could not compute (git error)")
            log("Decision required: YES")
            log("Reason: cannot compute diff")
            log()
            log("Gate: blocked — fix git refs or set CI_BASE_SHA / CI_HEAD_SHA.")
            return EXIT_BLOCKED

        if config.ci_base_sha and config.ci_head_sha:
            log(f"Diff: {short_sha(config.ci_base_sha)} … {short_sha(config.ci_head_sha)}")
        log(f"Changed files ({len(changed_files)}): {format_file_list(changed_files)}")
        log()

        policy = is_decision_required(changed_files, config.extra_patterns)
        log(f"Policy: decision required — {'YES' if policy.required else 'NO'}")
        log(f"Reason: {policy.reason}")
        if policy.matched_files:
            log(f"Matched (high-impact): {format_file_list(policy.matched_files)}")
        log()

        if not policy.required:
            log("Gate: passed (no high-impact patterns matched).")
            return EXIT_PASSED

        refs = extract_references(self._pr_or_commit_text())
        listed = ", ".join(str(r) for r in refs) if refs else "none"
        log(f"References: found {len(refs)} ref(s) (decision ID or ADR) — {listed}")

        if not refs:
            log()
            log("Gate: blocked — high-impact change detected.")
            log()
            log(REFERENCE_HINT)
            self._log_dashboard()
            return EXIT_BLOCKED

        if missing_env:
            log()
            log(
                f"Gate: blocked — missing env: {', '.join(missing_env)}. "
                "Set them in CI to validate decisions."
            )
            return EXIT_BLOCKED

        log()
        for ref in refs:
            result = await self.client.validate_reference(ref)
            if not result.ok:
                log(f"Decision {ref}: FAIL — {result.reason}")
                continue

            if result.decision_status is not None:
                log(f"Decision {ref}: status {format_label(result.decision_status)}.")
            else:
                log(f"Decision {ref}: valid.")
            if result.observations_exhausted:
                log()
                log(
                    "Warning: observation limit reached on the Free plan. Consider upgrading "
                    "to Pro for full decision-gate functionality."
                )
                self._log_dashboard("Upgrade")

            if not config.judge_enabled:
                log()
                log("Gate: passed.")
                return EXIT_PASSED

            return await self._run_judge(refs[-1], revisions.base, revisions.head)

        log()
        log("Gate: blocked — no referenced decision is valid.")
        log()
        log(INVALID_HINT)
        self._log_dashboard()
        return EXIT_BLOCKED

    async def _run_judge(self, ref: Reference, base: str, head: str) -> int:
        config = self.config
        missing_judge_env = config.missing_judge_env()
        if missing_judge_env:
            log()
            log(
                f"Gate: blocked — judge is enabled but missing env: {', '.join(missing_judge_env)}. "
                "Set them to use BYO LLM for the judge step."
            )
            return EXIT_BLOCKED

        log()
        log(f"Judge: checking diff against decision {ref}...")
        log("Judge: building diff...")

        judge_diff = get_diff_for_judge(base, head, self.git)
        if judge_diff.excluded_files:
            log(
                "Warning: the following files were not included in the judge "
                f"(image, binary, or >1MB): {format_file_list(judge_diff.excluded_files)}"
            )
        if judge_diff.truncated:
            log("Warning: diff was truncated to 2MB; judge is based on partial diff.")

        log("Judge: analyzing diff (this may take a moment)...")
        result = await self.client.judge(
            ref,
            diff=judge_diff.diff,
            truncated=judge_diff.truncated,
            base_sha=judge_diff.base,
            head_sha=judge_diff.head,
        )
        return self._report_judge(result)

    def _report_judge(self, result: JudgeResult) -> int:
        if not result.ok:
            log()
            log(f"Gate: blocked — judge request failed: {result.reason}")
            return EXIT_BLOCKED

        if not result.allowed:
            if result.advisory:
                log()
                log(f"Warning: judge (advisory) — {result.reason}")
                log("Gate: passed.")
                return EXIT_PASSED
            if is_judge_unavailable(result.reason):
                log()
                log(f"Warning: judge skipped — {result.reason}")
                log("Gate: passed.")
                return EXIT_PASSED
            log()
            log(f"Gate: blocked — judge: {result.reason}")
            return EXIT_BLOCKED

        min_confidence = self.config.judge_min_confidence
        if (
            min_confidence is not None
            and result.confidence is not None
            and result.confidence < min_confidence
        ):
            log()
            log(
                f"Gate: blocked — judge confidence {to_percent(result.confidence)}% is below "
                f"DECERN_JUDGE_MIN_CONFIDENCE ({to_percent(min_confidence)}%)."
            )
            if result.advisory_message:
                log(f"Advisory: {result.advisory_message}")
            return EXIT_BLOCKED

        if result.confidence is not None:
            suffix = f". {result.reason}" if result.reason else ""
            log(f"Judge: allowed. Passed at {to_percent(result.confidence)}%{suffix}")
        else:
            log(f"Judge: allowed. {result.reason or ''}")
        if result.advisory_message:
            log(f"Advisory: {result.advisory_message}")
        log()
        log("Gate: passed.")
        return EXIT_PASSED
