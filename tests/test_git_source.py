import shutil
import subprocess

import pytest

from decern_gate.models.diff import RevisionPair
from decern_gate.services.git_source import GitDiffSource, GitError
from decern_gate.services.judge_diff import get_diff_for_judge

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(repo, *args):
    subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True, text=True)


@pytest.fixture
def repo(tmp_path):
    path = tmp_path / "repo"
    path.mkdir()
    git(path, "init", "-q")
    git(path, "config", "user.email", "ci@example.com")
    git(path, "config", "user.name", "CI")
    git(path, "config", "commit.gpgsign", "false")
    (path / "README.md").write_text("hello\n", encoding="utf-8")
    git(path, "add", ".")
    git(path, "commit", "-q", "-m", "initial")
    (path / "migrations").mkdir()
    (path / "migrations" / "001.sql").write_text("create table t (id int);\n", encoding="utf-8")
    (path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")
    git(path, "add", ".")
    git(path, "commit", "-q", "-m", "Add table\n\ndecern:abc-123")
    return path


def test_resolve_revisions_prefers_explicit_shas(repo):
    source = GitDiffSource(str(repo))
    assert source.resolve_revisions(" aaa ", "bbb") == RevisionPair(base="aaa", head="bbb")


def test_resolve_revisions_falls_back_to_previous_commit(repo):
    source = GitDiffSource(str(repo))
    assert source.resolve_revisions("aaa", None) == RevisionPair(base="HEAD~1", head="HEAD")


def test_changed_files_and_commit_message(repo):
    source = GitDiffSource(str(repo))
    revisions = source.resolve_revisions()
    assert sorted(source.changed_files(revisions)) == ["logo.png", "migrations/001.sql"]
    assert "decern:abc-123" in source.commit_message()


def test_unknown_revision_raises(repo):
    source = GitDiffSource(str(repo))
    with pytest.raises(GitError):
        source.changed_files(RevisionPair(base="does-not-exist", head="HEAD"))


def test_judge_diff_from_repository(repo):
    result = get_diff_for_judge("HEAD~1", "HEAD", GitDiffSource(str(repo)))
    assert "migrations/001.sql" in result.diff
    assert result.excluded_files == ["logo.png"]
    assert result.truncated is False


def test_judge_diff_outside_repository(tmp_path):
    result = get_diff_for_judge("HEAD~1", "HEAD", GitDiffSource(str(tmp_path)))
    assert result.diff == ""
    assert result.excluded_files == []


def test_commit_message_outside_repository(tmp_path):
    assert GitDiffSource(str(tmp_path)).commit_message() == ""
