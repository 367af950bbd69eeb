"""Console output helpers - deterministic, line-oriented"""

from __future__ import annotations

import math
from collections.abc import Sequence

MAX_FILES_LIST = 10


def log(line: str = "") -> None:
    print(line, flush=True)


def format_label(slug: str) -> str:
    """Turn an API slug such as not_approved into "Not Approved" """
    return " ".join(word[:1].upper() + word[1:].lower() for word in slug.split("_"))


def format_file_list(files: Sequence[str], max_files: int = MAX_FILES_LIST) -> str:
    if not files:
        return "(none)"
    if len(files) <= max_files:
        return ", ".join(files)
    return f"{', '.join(files[:max_files])} … and {len(files) - max_files} more"


def short_sha(sha: str) -> str:
    return sha[:7]


def to_percent(fraction: float) -> int:
    """0..1 fraction as a whole percentage, halves rounded up"""
    return math.floor(fraction * 100 + 0.5)
