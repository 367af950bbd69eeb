"""
Configuration Manager - Build the gate configuration from environment variables
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping

from pydantic import SecretStr

from decern_gate.models.config import (
    DEFAULT_JUDGE_PATH,
    DEFAULT_VALIDATE_PATH,
    GateConfig,
)


class ConfigManager:
    """Read gate settings from a process environment"""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = os.environ if environ is None else environ

    def _get(self, name: str) -> str | None:
        """Stripped value of a variable; empty counts as unset"""
        value = self._environ.get(name)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def _get_secret(self, name: str) -> SecretStr | None:
        value = self._get(name)
        return SecretStr(value) if value else None

    def _get_flag(self, name: str) -> bool:
        value = self._get(name)
        if not value:
            return False
        return value.lower() == "true" or value == "1"

    def _get_ms(self, name: str, default: int, minimum: int) -> int:
        """Milliseconds value; unparseable or zero falls back to the default"""
        value = self._get(name)
        try:
            parsed = int(value) if value else 0
        except ValueError:
            parsed = 0
        return max(minimum, parsed or default)

    def _get_confidence(self, name: str) -> float | None:
        value = self._get(name)
        if not value:
            return None
        try:
            parsed = float(value)
        except ValueError:
            return None
        if not math.isfinite(parsed) or parsed < 0 or parsed > 1:
            return None
        return parsed

    def _get_patterns(self, name: str) -> tuple[str, ...]:
        value = self._environ.get(name) or ""
        return tuple(p.strip() for p in value.split(",") if p.strip())

    def load(self) -> GateConfig:
        """Build the configuration snapshot for this run"""
        base_url = self._get("DECERN_BASE_URL")
        if base_url:
            base_url = base_url.rstrip("/")

        return GateConfig(
            base_url=base_url,
            ci_token=self._get_secret("DECERN_CI_TOKEN"),
            validate_path=self._get("DECERN_VALIDATE_PATH") or DEFAULT_VALIDATE_PATH,
            judge_path=self._get("DECERN_JUDGE_PATH") or DEFAULT_JUDGE_PATH,
            timeout_ms=self._get_ms("DECERN_GATE_TIMEOUT_MS", 5000, 1000),
            judge_timeout_ms=self._get_ms("DECERN_GATE_JUDGE_TIMEOUT_MS", 60000, 5000),
            require_linked_pr=self._get_flag("DECERN_GATE_REQUIRE_LINKED_PR"),
            judge_enabled=self._get_flag("DECERN_GATE_JUDGE_ENABLED"),
            judge_llm_base_url=self._get("DECERN_JUDGE_LLM_BASE_URL"),
            judge_llm_api_key=self._get_secret("DECERN_JUDGE_LLM_API_KEY"),
            judge_llm_model=self._get("DECERN_JUDGE_LLM_MODEL"),
            judge_min_confidence=self._get_confidence("DECERN_JUDGE_MIN_CONFIDENCE"),
            extra_patterns=self._get_patterns("DECERN_GATE_EXTRA_PATTERNS"),
            ci_base_sha=self._get("CI_BASE_SHA"),
            ci_head_sha=self._get("CI_HEAD_SHA"),
            ci_pr_title=self._get("CI_PR_TITLE"),
            ci_pr_body=self._get("CI_PR_BODY"),
            ci_commit_message=self._get("CI_COMMIT_MESSAGE"),
        )


def load_config(environ: Mapping[str, str] | None = None) -> GateConfig:
    """Convenience function to load the configuration from the environment."""
    return ConfigManager(environ).load()
