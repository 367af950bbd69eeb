"""Gate configuration model"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, SecretStr

DEFAULT_VALIDATE_PATH = "/api/decision-gate/validate"
DEFAULT_JUDGE_PATH = "/api/decision-gate/judge"


class GateConfig(BaseModel):
    """Settings read once from the environment at startup"""

    model_config = ConfigDict(frozen=True)

    # Decision service
    base_url: str | None = None
    ci_token: SecretStr | None = None
    validate_path: str = DEFAULT_VALIDATE_PATH
    judge_path: str = DEFAULT_JUDGE_PATH
    timeout_ms: int = 5000
    judge_timeout_ms: int = 60000
    require_linked_pr: bool = False

    # Judge (bring-your-own LLM, never logged)
    judge_enabled: bool = False
    judge_llm_base_url: str | None = None
    judge_llm_api_key: SecretStr | None = None
    judge_llm_model: str | None = None
    judge_min_confidence: float | None = None

    # Policy
    extra_patterns: tuple[str, ...] = ()

    # CI context
    ci_base_sha: str | None = None
    ci_head_sha: str | None = None
    ci_pr_title: str | None = None
    ci_pr_body: str | None = None
    ci_commit_message: str | None = None

    def missing_service_env(self) -> list[str]:
        """Names of unset variables required to call the decision service"""
        missing = []
        if not self.base_url:
            missing.append("DECERN_BASE_URL")
        if self.ci_token is None:
            missing.append("DECERN_CI_TOKEN")
        return missing

    def missing_judge_env(self) -> list[str]:
        """Names of unset variables required by the judge step"""
        missing = []
        if not self.judge_llm_base_url:
            missing.append("DECERN_JUDGE_LLM_BASE_URL")
        if self.judge_llm_api_key is None:
            missing.append("DECERN_JUDGE_LLM_API_KEY")
        if not self.judge_llm_model:
            missing.append("DECERN_JUDGE_LLM_MODEL")
        return missing
