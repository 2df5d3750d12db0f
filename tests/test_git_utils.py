"""Tests for git helpers against real throwaway repositories."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

import chief_runner.git_utils as git_utils
from chief_runner.git_utils import (
    _ensure_gitignore,
    _git_create_worktree,
    _git_current_branch,
    _git_is_repo,
    _git_main_root,
    _git_push,
    _git_remove_worktree,
    has_unpushed_commits,
)


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return result.stdout


def _git_init(path: Path) -> None:
    """Initialize a git repo with an initial commit."""
    path.mkdir(parents=True, exist_ok=True)
    _git(path, "init")
    _git(path, "config", "user.email", "test@test.com")
    _git(path, "config", "user.name", "Test")
    (path / "README.md").write_text("# init\n")
    _git(path, "add", "-A")
    _git(path, "commit", "-m", "initial")


def _commit(path: Path, name: str) -> None:
    (path / name).write_text(f"{name}\n")
    _git(path, "add", "-A")
    _git(path, "commit", "-m", f"add {name}")


@pytest.fixture()
def published_repo(tmp_path: Path) -> Path:
    remote = tmp_path / "remote.git"
    remote.mkdir()
    _git(remote, "init", "--bare")
    repo = tmp_path / "repo"
    _git_init(repo)
    _git(repo, "remote", "add", "origin", str(remote))
    _git(repo, "push", "-u", "origin", "HEAD")
    return repo


def test_branch_without_upstream_needs_publish(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _git_init(repo)

    assert has_unpushed_commits(repo) is True


def test_up_to_date_branch_has_nothing_to_publish(published_repo: Path) -> None:
    assert has_unpushed_commits(published_repo) is False


def test_branch_ahead_of_upstream_needs_publish(published_repo: Path) -> None:
    _commit(published_repo, "feature.txt")
    _commit(published_repo, "more.txt")

    assert git_utils._git_ahead_count(published_repo) == 2
    assert has_unpushed_commits(published_repo) is True


def test_push_sets_upstream_and_clears_pending(tmp_path: Path) -> None:
    remote = tmp_path / "remote.git"
    remote.mkdir()
    _git(remote, "init", "--bare")
    repo = tmp_path / "repo"
    _git_init(repo)
    _git(repo, "remote", "add", "origin", str(remote))

    _git_push(repo)

    assert has_unpushed_commits(repo) is False


def test_push_without_remote_raises(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _git_init(repo)

    with pytest.raises(subprocess.CalledProcessError):
        _git_push(repo)


def test_missing_directory_counts_as_unpublished(tmp_path: Path) -> None:
    assert has_unpushed_commits(tmp_path / "does-not-exist") is True


def test_query_failure_counts_as_unpublished(published_repo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom(project_dir: Path) -> int:
        raise subprocess.CalledProcessError(128, ["git", "rev-list"])

    monkeypatch.setattr(git_utils, "_git_ahead_count", _boom)

    assert has_unpushed_commits(published_repo) is True


def test_unparseable_count_counts_as_unpublished(published_repo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _garbage(project_dir: Path) -> int:
        return int("not-a-number")

    monkeypatch.setattr(git_utils, "_git_ahead_count", _garbage)

    assert has_unpushed_commits(published_repo) is True


def test_is_repo_detection(tmp_path: Path) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()
    repo = tmp_path / "repo"
    _git_init(repo)

    assert _git_is_repo(repo) is True
    assert _git_is_repo(plain) is False
    assert _git_is_repo(tmp_path / "missing") is False


def test_main_root_from_linked_worktree(tmp_path: Path) -> None:
    repo = tmp_path / "myproject"
    _git_init(repo)
    linked = tmp_path / "elsewhere" / "feature-abc123"

    _git_create_worktree(repo, linked, "feature-abc123")

    assert _git_main_root(linked).resolve() == repo.resolve()
    assert _git_main_root(repo).resolve() == repo.resolve()
    assert _git_current_branch(linked) == "feature-abc123"

    _git_remove_worktree(repo, linked)
    assert not linked.exists()


def test_ensure_gitignore_appends_once(tmp_path: Path) -> None:
    gitignore = tmp_path / ".gitignore"
    gitignore.write_text("node_modules")

    _ensure_gitignore(tmp_path)
    _ensure_gitignore(tmp_path)

    text = gitignore.read_text()
    assert text.startswith("node_modules\n")
    assert text.count(".chief/") == 1
    assert "# Chief" in text


def test_ensure_gitignore_respects_existing_entry(tmp_path: Path) -> None:
    gitignore = tmp_path / ".gitignore"
    gitignore.write_text(".chief\n")

    _ensure_gitignore(tmp_path)

    assert gitignore.read_text() == ".chief\n"
