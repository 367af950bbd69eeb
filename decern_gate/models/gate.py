"""Gate decision data models"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict


class DecisionId(BaseModel):
    """Reference to a decision by its identifier (usually a UUID)"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["decision"] = "decision"
    value: str

    @property
    def query_field(self) -> str:
        return "decisionId"

    def __str__(self) -> str:
        return self.value


class AdrRef(BaseModel):
    """Reference to an architecture decision record, e.g. ADR-001"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["adr"] = "adr"
    value: str

    @property
    def query_field(self) -> str:
        return "adrRef"

    def __str__(self) -> str:
        return self.value


Reference = Union[DecisionId, AdrRef]


class PolicyResult(BaseModel):
    """Outcome of the high-impact policy check"""

    required: bool
    reason: str
    matched_files: list[str] = []


class ValidateResult(BaseModel):
    """Outcome of validating one reference against the decision service"""

    ok: bool
    status_code: int = 0  # 0 when no HTTP response was received
    reason: str = ""
    decision_status: str | None = None
    observations_exhausted: bool = False


class JudgeResult(BaseModel):
    """Outcome of the judge call"""

    ok: bool
    status_code: int = 0
    allowed: bool = False
    reason: str | None = None
    advisory: bool = False
    confidence: float | None = None  # normalized to 0..1
    advisory_message: str | None = None
