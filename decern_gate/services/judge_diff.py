"""
Judge Diff Builder - Bounded, sanitized unified diff for the judge request

Image/binary segments and per-file diffs over 1 MiB are excluded; the total
payload is capped at 2 MiB and the last admitted segment is cut to fit.
"""

from __future__ import annotations

import re

from decern_gate.models.diff import DiffSegment, JudgeDiffResult, RevisionPair
from decern_gate.services.git_source import GitDiffSource, GitError

MAX_DIFF_BYTES = 2 * 1024 * 1024
MAX_FILE_DIFF_BYTES = 1 * 1024 * 1024

IMAGE_OR_HEAVY_EXTENSIONS = frozenset(
    {
        ".png", ".jpg", ".jpeg", ".gif", ".webp", ".ico", ".bmp", ".tiff", ".tif",
        ".svg", ".avif", ".heic", ".webm", ".mp4", ".mov", ".avi", ".pdf", ".woff2",
        ".woff", ".ttf", ".eot", ".otf",
    }
)

DIFF_MARKER = "diff --git "
SEGMENT_SPLIT_RE = re.compile(r"(?=\ndiff --git )")
SEGMENT_PATH_RE = re.compile(r"^diff --git a/(.+?) b/")

SEPARATOR = "\n"


def byte_length(text: str) -> int:
    return len(text.encode("utf-8"))


def truncate_utf8(text: str, max_bytes: int) -> str:
    """Longest prefix of text whose UTF-8 encoding fits in max_bytes"""
    return text.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")


def is_image_or_heavy(path: str) -> bool:
    normalized = path.replace("\\", "/").lower()
    if "." not in normalized:
        return False
    return normalized[normalized.rfind("."):] in IMAGE_OR_HEAVY_EXTENSIONS


def is_binary_segment(text: str) -> bool:
    return "Binary files " in text and " differ" in text


def path_from_segment(text: str) -> str | None:
    """File path from the "diff --git a/<path> b/<path>" header line"""
    first_line = text.split("\n", 1)[0]
    match = SEGMENT_PATH_RE.match(first_line)
    if not match:
        return None
    return match.group(1).strip() or None


class JudgeDiffBuilder:
    """Split a raw diff per file, filter it, and fit it into the byte budget"""

    def __init__(
        self,
        max_diff_bytes: int = MAX_DIFF_BYTES,
        max_file_diff_bytes: int = MAX_FILE_DIFF_BYTES,
    ):
        self.max_diff_bytes = max_diff_bytes
        self.max_file_diff_bytes = max_file_diff_bytes

    def split_segments(self, raw_diff: str) -> list[DiffSegment]:
        """Per-file segments in original diff order"""
        if not raw_diff or not raw_diff.strip():
            return []

        pieces = [p.strip() for p in SEGMENT_SPLIT_RE.split(raw_diff)]
        pieces = [p for p in pieces if p]
        if not pieces:
            first = raw_diff.lstrip()
            if first.startswith(DIFF_MARKER):
                pieces = [first]

        return [
            DiffSegment(
                path=path_from_segment(piece),
                text=piece,
                byte_length=byte_length(piece),
                is_binary=is_binary_segment(piece),
            )
            for piece in pieces
        ]

    def _is_excluded(self, segment: DiffSegment) -> bool:
        if segment.path and is_image_or_heavy(segment.path):
            return True
        if segment.is_binary:
            return True
        return segment.byte_length > self.max_file_diff_bytes

    def build(self, raw_diff: str, base: str, head: str) -> JudgeDiffResult:
        """Assemble the judge payload from a raw unified diff"""
        excluded: list[str] = []
        included: list[str] = []
        total = 0
        did_truncate = False

        for segment in self.split_segments(raw_diff):
            if self._is_excluded(segment):
                if segment.path:
                    excluded.append(segment.path)
                continue

            if total >= self.max_diff_bytes:
                if segment.path:
                    excluded.append(segment.path)
                continue

            # Joining separator counts against the budget
            overhead = len(SEPARATOR) if included else 0
            if total + overhead + segment.byte_length <= self.max_diff_bytes:
                included.append(segment.text)
                total += overhead + segment.byte_length
                continue

            remaining = self.max_diff_bytes - total - overhead
            if remaining > 0:
                prefix = truncate_utf8(segment.text, remaining)
                if prefix:
                    included.append(prefix)
                did_truncate = True
            total = self.max_diff_bytes
            if segment.path:
                excluded.append(segment.path)

        truncated = did_truncate or byte_length(raw_diff) > self.max_diff_bytes

        return JudgeDiffResult(
            diff=SEPARATOR.join(included),
            excluded_files=list(dict.fromkeys(excluded)),
            truncated=truncated,
            base=base,
            head=head,
        )


def build_judge_diff(raw_diff: str, base: str, head: str) -> JudgeDiffResult:
    """Convenience function to build the judge payload with the default limits."""
    return JudgeDiffBuilder().build(raw_diff, base, head)


def get_diff_for_judge(
    base: str,
    head: str,
    source: GitDiffSource | None = None,
) -> JudgeDiffResult:
    """Judge payload for base...head; empty result when git cannot produce the diff"""
    source = source or GitDiffSource()
    try:
        raw_diff = source.raw_diff(RevisionPair(base=base, head=head))
    except GitError:
        return JudgeDiffResult(diff="", excluded_files=[], truncated=False, base=base, head=head)
    return build_judge_diff(raw_diff, base, head)
