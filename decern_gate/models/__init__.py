"""Models module - Pydantic data models"""

from .config import GateConfig
from .diff import DiffSegment, JudgeDiffResult, RevisionPair
from .gate import (
    AdrRef,
    DecisionId,
    JudgeResult,
    PolicyResult,
    Reference,
    ValidateResult,
)

__all__ = [
    # Config
    "GateConfig",
    # Diff models
    "DiffSegment",
    "JudgeDiffResult",
    "RevisionPair",
    # Gate models
    "AdrRef",
    "DecisionId",
    "JudgeResult",
    "PolicyResult",
    "Reference",
    "ValidateResult",
]
