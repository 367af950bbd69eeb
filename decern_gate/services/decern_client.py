"""
Decern Client - Calls the decision validation and judge endpoints

Each call is a single request bounded by its own timeout; failures are
returned as results with ok=False, never raised.
"""

from __future__ import annotations

import asyncio
import math
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urljoin

import aiohttp

from decern_gate.models.config import GateConfig
from decern_gate.models.gate import JudgeResult, Reference, ValidateResult
from decern_gate.services.reporter import format_label

MISSING_SERVICE_ENV_REASON = "DECERN_BASE_URL and DECERN_CI_TOKEN are required."


def build_url(base_url: str, path: str) -> str:
    """Resolve an endpoint path against the service base URL"""
    if not path.startswith("/"):
        path = f"/{path}"
    return urljoin(f"{base_url.rstrip('/')}/", path)


def normalize_confidence(value: Any) -> float | None:
    """0..1 fraction from either a fraction or a 0..100 percentage"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value / 100 if value > 1 else float(value)


class DecernClient:
    """Client for the decision service"""

    def __init__(self, config: GateConfig):
        self.config = config

    # ========== Request Helpers ==========

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.config.ci_token.get_secret_value()}"}

    def _has_service_config(self) -> bool:
        return bool(self.config.base_url) and self.config.ci_token is not None

    @asynccontextmanager
    async def _request(
        self,
        method: str,
        url: str,
        timeout_ms: int,
        **kwargs: Any,
    ):
        """Context manager for one HTTP request with automatic session cleanup"""
        timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(method, url, **kwargs) as response:
                yield response

    async def _read_json(self, response: aiohttp.ClientResponse) -> dict[str, Any]:
        """Response body as a dict; anything unparseable reads as empty"""
        try:
            data = await response.json(content_type=None)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    # ========== Validate ==========

    def _validate_params(self, ref: Reference) -> dict[str, str]:
        params = {ref.query_field: ref.value, "highImpact": "true"}
        if self.config.require_linked_pr:
            params["requireLinkedPR"] = "true"
        return params

    def _parse_validate_response(self, status: int, body: dict[str, Any]) -> ValidateResult:
        decision_status = body.get("status")
        if not isinstance(decision_status, str):
            decision_status = None

        if status == 200 and body.get("valid") is True:
            # Free plan: once the observation limit is hit the status is omitted
            exhausted = body.get("observation") is True and "status" not in body
            return ValidateResult(
                ok=True,
                status_code=status,
                decision_status=decision_status,
                observations_exhausted=exhausted,
            )

        raw_reason = body.get("reason")
        if not isinstance(raw_reason, str) or not raw_reason:
            reason = f"HTTP {status}"
        elif raw_reason.startswith("HTTP "):
            reason = raw_reason
        else:
            reason = format_label(raw_reason)
        if decision_status is not None:
            reason += f" (decision status: {format_label(decision_status)})"
        return ValidateResult(ok=False, status_code=status, reason=reason)

    async def validate_reference(self, ref: Reference) -> ValidateResult:
        """Check that the referenced decision exists and is approved"""
        if not self._has_service_config():
            return ValidateResult(ok=False, reason=MISSING_SERVICE_ENV_REASON)

        url = build_url(self.config.base_url, self.config.validate_path)
        timeout_ms = self.config.timeout_ms
        try:
            async with self._request(
                "GET",
                url,
                timeout_ms,
                params=self._validate_params(ref),
                headers=self._auth_headers(),
            ) as response:
                body = await self._read_json(response)
                return self._parse_validate_response(response.status, body)
        except asyncio.TimeoutError:
            return ValidateResult(ok=False, reason=f"Request timeout after {timeout_ms}ms.")
        except aiohttp.ClientError as e:
            return ValidateResult(ok=False, reason=f"Network error: {e}.")

    # ========== Judge ==========

    def _build_judge_payload(
        self,
        ref: Reference,
        diff: str,
        truncated: bool,
        base_sha: str,
        head_sha: str,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "diff": diff,
            "truncated": truncated,
            "baseSha": base_sha,
            "headSha": head_sha,
            "llm": {
                "baseUrl": self.config.judge_llm_base_url,
                "apiKey": self.config.judge_llm_api_key.get_secret_value(),
                "model": self.config.judge_llm_model,
            },
        }
        payload[ref.query_field] = ref.value
        return payload

    def _parse_judge_response(self, status: int, data: dict[str, Any]) -> JudgeResult:
        reason = data.get("reason") if isinstance(data.get("reason"), str) else None
        if status != 200:
            return JudgeResult(ok=False, status_code=status, reason=reason or f"HTTP {status}")

        confidence = normalize_confidence(data.get("confidence"))
        if data.get("allowed") is True:
            advisory_message = data.get("advisoryMessage")
            return JudgeResult(
                ok=True,
                status_code=status,
                allowed=True,
                reason=reason,
                confidence=confidence,
                advisory_message=advisory_message if isinstance(advisory_message, str) else None,
            )
        return JudgeResult(
            ok=True,
            status_code=status,
            allowed=False,
            reason=reason or "Judge did not allow the change.",
            advisory=data.get("advisory") is True,
            confidence=confidence,
        )

    async def judge(
        self,
        ref: Reference,
        diff: str,
        truncated: bool,
        base_sha: str,
        head_sha: str,
    ) -> JudgeResult:
        """Ask the judge whether the diff matches the referenced decision"""
        if not self._has_service_config():
            return JudgeResult(ok=False, reason=MISSING_SERVICE_ENV_REASON)
        if self.config.missing_judge_env():
            return JudgeResult(
                ok=False,
                reason=(
                    "Judge is enabled but DECERN_JUDGE_LLM_BASE_URL, DECERN_JUDGE_LLM_API_KEY, "
                    "or DECERN_JUDGE_LLM_MODEL is missing."
                ),
            )

        url = build_url(self.config.base_url, self.config.judge_path)
        timeout_ms = self.config.judge_timeout_ms
        payload = self._build_judge_payload(ref, diff, truncated, base_sha, head_sha)
        try:
            async with self._request(
                "POST",
                url,
                timeout_ms,
                json=payload,
                headers=self._auth_headers(),
            ) as response:
                data = await self._read_json(response)
                return self._parse_judge_response(response.status, data)
        except asyncio.TimeoutError:
            return JudgeResult(ok=False, reason=f"Judge request timeout after {timeout_ms}ms.")
        except aiohttp.ClientError as e:
            return JudgeResult(ok=False, reason=f"Judge network error: {e}.")
