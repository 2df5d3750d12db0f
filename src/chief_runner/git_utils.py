"""Provide small git helpers used by chief commands."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from loguru import logger

from .constants import STATE_DIR_NAME


def _ignore_file_has_entry(path: Path, ignore_entry: str) -> bool:
    if not path.exists():
        return False
    try:
        contents = path.read_text()
    except OSError:
        return False
    lines = {
        line.strip().rstrip("/")
        for line in contents.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    }
    return ignore_entry.strip().rstrip("/") in lines


def _ensure_gitignore(project_dir: Path) -> None:
    gitignore_path = project_dir / ".gitignore"
    if _ignore_file_has_entry(gitignore_path, STATE_DIR_NAME):
        return
    try:
        contents = gitignore_path.read_text() if gitignore_path.exists() else ""
        if contents and not contents.endswith("\n"):
            contents += "\n"
        contents += f"\n# Chief\n{STATE_DIR_NAME}/\n"
        gitignore_path.write_text(contents)
    except OSError as exc:
        logger.warning("Unable to update .gitignore: {}", exc)


def _git_is_repo(project_dir: Path) -> bool:
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            cwd=project_dir,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return False
    return result.returncode == 0 and result.stdout.strip().lower() == "true"


def _git_root(project_dir: Path) -> Path:
    result = subprocess.run(
        ["git", "rev-parse", "--show-toplevel"],
        cwd=project_dir,
        capture_output=True,
        text=True,
        check=True,
    )
    return Path(result.stdout.strip())


def _git_main_root(project_dir: Path) -> Path:
    """Return the main checkout root, even when called from a linked worktree."""
    result = subprocess.run(
        ["git", "rev-parse", "--path-format=absolute", "--git-common-dir"],
        cwd=project_dir,
        capture_output=True,
        text=True,
        check=False,
    )
    common_dir = result.stdout.strip()
    if result.returncode != 0 or not common_dir:
        return _git_root(project_dir)
    common_path = Path(common_dir)
    if common_path.name == ".git":
        return common_path.parent
    # Bare repository: the common dir is the repository itself.
    return common_path


def _git_current_branch(project_dir: Path) -> Optional[str]:
    result = subprocess.run(
        ["git", "branch", "--show-current"],
        cwd=project_dir,
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def _git_create_worktree(project_dir: Path, worktree_path: Path, branch: str) -> None:
    logger.info("Creating worktree {} on branch {}", worktree_path, branch)
    subprocess.run(
        ["git", "worktree", "add", str(worktree_path), "-b", branch],
        cwd=project_dir,
        capture_output=True,
        text=True,
        check=True,
    )


def _git_remove_worktree(project_dir: Path, worktree_path: Path) -> None:
    logger.info("Removing worktree {}", worktree_path)
    subprocess.run(
        ["git", "worktree", "remove", str(worktree_path), "--force"],
        cwd=project_dir,
        capture_output=True,
        text=True,
        check=True,
    )


def _git_push(project_dir: Path) -> None:
    """Push the current branch to `origin` and set its upstream."""
    subprocess.run(
        ["git", "push", "-u", "origin", "HEAD"],
        cwd=project_dir,
        capture_output=True,
        text=True,
        check=True,
    )


def _git_has_upstream(project_dir: Path) -> bool:
    result = subprocess.run(
        ["git", "rev-parse", "--verify", "@{u}"],
        cwd=project_dir,
        capture_output=True,
        text=True,
        check=False,
    )
    return result.returncode == 0


def _git_ahead_count(project_dir: Path) -> int:
    result = subprocess.run(
        ["git", "rev-list", "@{u}..HEAD", "--count"],
        cwd=project_dir,
        capture_output=True,
        text=True,
        check=True,
    )
    return int(result.stdout.strip())


def has_unpushed_commits(project_dir: Path) -> bool:
    """Report whether the current branch has commits its upstream lacks.

    A branch without an upstream counts as unpublished. Any failure while
    querying git also counts as unpublished so the caller attempts a push.

    Args:
        project_dir: Worktree directory to inspect.

    Returns:
        True when a push is needed.
    """
    try:
        if not _git_has_upstream(project_dir):
            logger.debug("No upstream configured for {}", project_dir)
            return True
        ahead = _git_ahead_count(project_dir)
    except (OSError, ValueError, subprocess.SubprocessError) as exc:
        logger.warning("Unable to compare {} with its upstream: {}", project_dir, exc)
        return True
    logger.debug("{} is {} commit(s) ahead of upstream", project_dir, ahead)
    return ahead > 0
