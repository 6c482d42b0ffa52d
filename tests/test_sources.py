"""Tests for source readers and the git subprocess wrapper."""

import subprocess
from pathlib import Path

import pytest

from diffgate.analysis.sources import (
    GitRevisionReader,
    MappingReader,
    SourceAccessError,
    WorkingTreeReader,
)
from diffgate.git.adapter import GitError, get_range_diff, get_repo_root, get_staged_diff, show_file
from diffgate.git.diff_parser import parse_diff


def _git(repo: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=repo, capture_output=True, check=True)


class TestWorkingTreeReader:
    def test_reads_relative_path(self, tmp_path: Path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "lib.rs").write_text("fn a() {}\n")
        assert WorkingTreeReader(tmp_path)("src/lib.rs") == "fn a() {}\n"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(SourceAccessError, match="src/gone.rs"):
            WorkingTreeReader(tmp_path)("src/gone.rs")

    def test_rejects_escape(self, tmp_path: Path):
        base = tmp_path / "repo"
        base.mkdir()
        (tmp_path / "secret.rs").write_text("x")
        with pytest.raises(SourceAccessError, match="outside"):
            WorkingTreeReader(base)("../secret.rs")

    def test_non_utf8(self, tmp_path: Path):
        (tmp_path / "bad.rs").write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(SourceAccessError):
            WorkingTreeReader(tmp_path)("bad.rs")


class TestMappingReader:
    def test_lookup(self):
        reader = MappingReader({"a.rs": "fn a() {}"})
        assert reader("a.rs") == "fn a() {}"
        with pytest.raises(SourceAccessError):
            reader("b.rs")


class TestGitAdapter:
    def test_repo_root(self, tmp_git_repo: Path):
        (tmp_git_repo / "src").mkdir()
        assert get_repo_root(tmp_git_repo / "src").resolve() == tmp_git_repo.resolve()

    def test_repo_root_outside_repo(self, tmp_path: Path):
        with pytest.raises(GitError):
            get_repo_root(tmp_path)

    def test_staged_diff_and_index_reader(self, tmp_git_repo: Path):
        (tmp_git_repo / "main.rs").write_text("fn main() {}\n")
        _git(tmp_git_repo, "add", "main.rs")
        (tmp_git_repo / "main.rs").write_text("fn main() { changed(); }\n")

        diff = get_staged_diff(tmp_git_repo)
        assert "+++ b/main.rs" in diff
        assert GitRevisionReader(tmp_git_repo, "")("main.rs") == "fn main() {}\n"

    def test_range_diff_and_revision_reader(self, tmp_git_repo: Path):
        (tmp_git_repo / "main.rs").write_text("fn main() {}\n")
        _git(tmp_git_repo, "add", "main.rs")
        _git(tmp_git_repo, "commit", "-m", "add main")

        assert "+fn main() {}" in get_range_diff(tmp_git_repo, "HEAD~1", "HEAD")
        assert show_file(tmp_git_repo, "HEAD", "main.rs") == "fn main() {}\n"

    def test_lone_carriage_return_survives(self, tmp_git_repo: Path):
        content = 'pub fn a() -> &\'static str {\n    "x\ry"\n}\n'
        (tmp_git_repo / "a.rs").write_bytes(content.encode("utf-8"))
        _git(tmp_git_repo, "add", "a.rs")
        _git(tmp_git_repo, "commit", "-m", "add a")

        (fd,) = parse_diff(get_range_diff(tmp_git_repo, "HEAD~1", "HEAD"))
        assert fd.total_added == 3
        assert show_file(tmp_git_repo, "HEAD", "a.rs") == content
        assert WorkingTreeReader(tmp_git_repo)("a.rs") == content

    def test_unknown_path_at_revision(self, tmp_git_repo: Path):
        with pytest.raises(GitError):
            show_file(tmp_git_repo, "HEAD", "nope.rs")
        with pytest.raises(SourceAccessError, match="nope.rs@HEAD"):
            GitRevisionReader(tmp_git_repo, "HEAD")("nope.rs")

    def test_bad_range(self, tmp_git_repo: Path):
        with pytest.raises(GitError, match="git diff failed"):
            get_range_diff(tmp_git_repo, "no-such-ref", "HEAD")
