"""Diff-related data models"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class RevisionPair(BaseModel):
    """Base and head revisions compared by one gate run"""

    model_config = ConfigDict(frozen=True)

    base: str
    head: str


class DiffSegment(BaseModel):
    """The slice of a unified diff that belongs to a single file"""

    path: str | None  # None when the "diff --git" header is unparseable
    text: str
    byte_length: int  # UTF-8
    is_binary: bool = False


class JudgeDiffResult(BaseModel):
    """Bounded diff payload sent to the judge"""

    model_config = ConfigDict(frozen=True)

    diff: str
    excluded_files: list[str] = []
    truncated: bool = False
    base: str
    head: str
