from decern_gate.models.diff import RevisionPair
from decern_gate.services.git_source import GitError
from decern_gate.services.judge_diff import (
    MAX_DIFF_BYTES,
    JudgeDiffBuilder,
    build_judge_diff,
    get_diff_for_judge,
    is_image_or_heavy,
    path_from_segment,
)


def make_segment(path: str, size: int = 0, body: str | None = None) -> str:
    header = (
        f"diff --git a/{path} b/{path}\n"
        "index 1111111..2222222 100644\n"
        f"--- a/{path}\n"
        f"+++ b/{path}\n"
        "@@ -0,0 +1 @@\n"
    )
    if body is None:
        body = "+" + "x" * max(0, size - len(header) - 1)
    return header + body


def binary_segment(path: str) -> str:
    return (
        f"diff --git a/{path} b/{path}\n"
        "index 1111111..2222222 100644\n"
        f"Binary files a/{path} and b/{path} differ"
    )


def join_raw(*segments: str) -> str:
    return "\n".join(segments) + "\n"


def test_small_diff_passes_through_unchanged():
    raw = join_raw(make_segment("src/a.py", body="+print('a')"), make_segment("src/b.py", body="+b = 2"))
    result = build_judge_diff(raw, "base", "head")
    assert result.diff == raw.strip()
    assert result.excluded_files == []
    assert result.truncated is False
    assert result.base == "base"
    assert result.head == "head"


def test_single_segment_at_start_of_text():
    raw = make_segment("only.txt", body="+hello")
    result = build_judge_diff(raw, "b", "h")
    assert result.diff == raw
    assert result.excluded_files == []


def test_empty_diff():
    result = build_judge_diff("", "b", "h")
    assert result.diff == ""
    assert result.excluded_files == []
    assert result.truncated is False

    assert build_judge_diff("  \n\n", "b", "h").diff == ""


def test_image_and_heavy_extensions_are_excluded():
    raw = join_raw(
        make_segment("assets/logo.PNG", body="+tiny"),
        make_segment("docs/spec.pdf", body="+tiny"),
        make_segment("fonts/a.woff2", body="+tiny"),
        make_segment("icons/x.svg", body="+<svg/>"),
        make_segment("src/keep.py", body="+keep"),
    )
    result = build_judge_diff(raw, "b", "h")
    assert result.excluded_files == ["assets/logo.PNG", "docs/spec.pdf", "fonts/a.woff2", "icons/x.svg"]
    assert "src/keep.py" in result.diff
    assert "logo" not in result.diff


def test_extension_rules():
    assert is_image_or_heavy("a/b/c.jpeg")
    assert is_image_or_heavy("C:\\img\\photo.GIF")
    assert not is_image_or_heavy("Makefile")
    assert not is_image_or_heavy("src/png")
    assert not is_image_or_heavy("notes.png.txt")


def test_binary_marker_excludes_without_known_extension():
    raw = join_raw(binary_segment("bin/tool"), make_segment("src/a.py", body="+a"))
    result = build_judge_diff(raw, "b", "h")
    assert result.excluded_files == ["bin/tool"]
    assert "Binary files" not in result.diff
    assert "src/a.py" in result.diff


def test_oversized_plain_text_segment_is_excluded():
    raw = join_raw(make_segment("big.sql", size=1_048_577), make_segment("small.sql", body="+1"))
    result = build_judge_diff(raw, "b", "h")
    assert result.excluded_files == ["big.sql"]
    assert "small.sql" in result.diff
    assert "big.sql" not in result.diff


def test_excluded_files_are_deduplicated():
    raw = join_raw(binary_segment("img/a.png"), binary_segment("img/a.png"), make_segment("x.md", body="+x"))
    result = build_judge_diff(raw, "b", "h")
    assert result.excluded_files == ["img/a.png"]


def test_segment_without_path_is_excluded_but_not_named():
    raw = "diff --git weird-header\nBinary files x and y differ\n"
    result = build_judge_diff(raw, "b", "h")
    assert result.diff == ""
    assert result.excluded_files == []


def test_path_from_segment():
    assert path_from_segment("diff --git a/src/x y.py b/src/x y.py\n+1") == "src/x y.py"
    assert path_from_segment("not a header\n") is None


def test_example_excludes_oversized_and_image_files():
    a = make_segment("A", size=500_000)
    b = make_segment("B", size=1_200_000)
    c = make_segment("C.png", body="+png")
    result = build_judge_diff(join_raw(a, b, c), "b", "h")
    assert result.diff == a
    assert result.excluded_files == ["B", "C.png"]
    assert result.truncated is False


def test_single_three_megabyte_file():
    raw = make_segment("huge.txt", size=3 * 1024 * 1024)
    result = build_judge_diff(raw, "b", "h")
    assert result.excluded_files == ["huge.txt"]
    assert result.truncated is True
    assert len(result.diff.encode("utf-8")) <= MAX_DIFF_BYTES


def test_last_fitting_segment_is_cut_to_the_budget():
    raw = join_raw(
        make_segment("one.txt", size=900_000),
        make_segment("two.txt", size=900_000),
        make_segment("three.txt", size=900_000),
        make_segment("four.txt", body="+small"),
    )
    result = build_judge_diff(raw, "b", "h")
    assert len(result.diff.encode("utf-8")) == MAX_DIFF_BYTES
    assert result.truncated is True
    # partially included and still reported
    assert "diff --git a/three.txt" in result.diff
    assert result.excluded_files == ["three.txt", "four.txt"]
    assert "four.txt" not in result.diff


def test_truncation_respects_multibyte_characters():
    builder = JudgeDiffBuilder(max_diff_bytes=61, max_file_diff_bytes=1000)
    # 20 ASCII header bytes, then two bytes per character
    raw = "diff --git a/u b/u\n+" + "é" * 40
    result = builder.build(raw, "b", "h")
    assert len(result.diff.encode("utf-8")) == 60
    assert result.diff == "diff --git a/u b/u\n+" + "é" * 20
    assert result.truncated is True
    assert result.excluded_files == ["u"]


def test_budget_holds_for_many_small_segments():
    builder = JudgeDiffBuilder(max_diff_bytes=500, max_file_diff_bytes=200)
    raw = join_raw(*(make_segment(f"f{i}.txt", body="+" + "y" * 40) for i in range(20)))
    result = builder.build(raw, "b", "h")
    assert len(result.diff.encode("utf-8")) <= 500
    assert result.truncated is True
    assert len(result.excluded_files) == len(set(result.excluded_files))
    assert "f19.txt" in result.excluded_files
    assert "f0.txt" not in result.excluded_files


class RaisingSource:
    def raw_diff(self, revisions: RevisionPair) -> str:
        raise GitError("fatal: bad revision")


class StaticSource:
    def __init__(self, raw: str):
        self.raw = raw
        self.seen = None

    def raw_diff(self, revisions: RevisionPair) -> str:
        self.seen = revisions
        return self.raw


def test_get_diff_for_judge_returns_empty_result_on_git_error():
    result = get_diff_for_judge("nope", "HEAD", RaisingSource())
    assert result.diff == ""
    assert result.excluded_files == []
    assert result.truncated is False
    assert (result.base, result.head) == ("nope", "HEAD")


def test_get_diff_for_judge_reads_from_source():
    source = StaticSource(make_segment("a.py", body="+a"))
    result = get_diff_for_judge("main", "feature", source)
    assert source.seen == RevisionPair(base="main", head="feature")
    assert "a.py" in result.diff
