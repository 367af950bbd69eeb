"""
Reference extraction - Decision IDs and ADR refs mentioned in PR or commit text
"""

from __future__ import annotations

import re

from decern_gate.models.gate import AdrRef, DecisionId, Reference

DECERN_PREFIX_RE = re.compile(r"decern:\s*([a-zA-Z0-9_-]+)", re.IGNORECASE)
DECERN_TICKET_RE = re.compile(r"DECERN-([a-zA-Z0-9_-]+)")
DECISIONS_URL_RE = re.compile(r"/decisions/([a-zA-Z0-9_-]+)")
ADR_MENTION_RE = re.compile(r"\b(ADR-[a-zA-Z0-9_-]+)\b", re.IGNORECASE)

REFERENCE_PATTERNS = (DECERN_PREFIX_RE, DECERN_TICKET_RE, DECISIONS_URL_RE, ADR_MENTION_RE)

ADR_REF_RE = re.compile(r"^ADR-[a-zA-Z0-9_-]+$", re.IGNORECASE)


def is_adr_ref(ref: str) -> bool:
    return bool(ADR_REF_RE.match(ref.strip()))


def to_reference(ref: str) -> Reference:
    ref = ref.strip()
    if is_adr_ref(ref):
        return AdrRef(value=ref)
    return DecisionId(value=ref)


def extract_decision_ids(text: str | None) -> list[str]:
    """All referenced IDs, deduplicated, grouped by pattern family in first-seen order"""
    if not text or not isinstance(text, str):
        return []
    ids: dict[str, None] = {}
    for pattern in REFERENCE_PATTERNS:
        for match in pattern.finditer(text):
            ids.setdefault(match.group(1).strip(), None)
    return list(ids)


def extract_references(text: str | None) -> list[Reference]:
    return [to_reference(ref) for ref in extract_decision_ids(text)]
