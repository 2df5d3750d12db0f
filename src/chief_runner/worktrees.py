"""Resolve which chief-managed worktree a command operates on.

Worktrees live at `<chief_home>/<project>/worktrees/<name>`. A command picks
one by explicit name, by detecting that the current directory is inside one,
or through an interactive picker.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from .config import chief_home, worktrees_root
from .constants import WORKTREES_DIR_NAME
from .errors import PreconditionError, WorktreeNotFoundError
from .git_utils import _git_is_repo, _git_main_root
from .models import Worktree
from .terminal import select_option

SelectFn = Callable[[list[tuple[str, Path]], str], Optional[Path]]

NOT_A_REPO_MESSAGE = "Not in a git repository. Please run from within a git repo."


def _created_at(path: Path) -> datetime:
    stat = path.stat()
    stamp = getattr(stat, "st_birthtime", None) or stat.st_mtime
    return datetime.fromtimestamp(stamp, tz=timezone.utc)


def _is_plain_name(name: str) -> bool:
    return name not in {".", ".."} and "/" not in name and "\\" not in name


def project_for_cwd(cwd: Path) -> str:
    """Return the project name for the git repository containing `cwd`.

    Raises:
        PreconditionError: If `cwd` is not inside a git repository.
    """
    if not _git_is_repo(cwd):
        raise PreconditionError(NOT_A_REPO_MESSAGE)
    return _git_main_root(cwd).name


def list_worktrees(project: str, home: Optional[Path] = None) -> list[Worktree]:
    """List a project's worktrees, newest first.

    Args:
        project: Project name.
        home: Optional chief home override.

    Returns:
        Worktrees sorted by creation time, descending.
    """
    root = worktrees_root(project, home)
    if not root.is_dir():
        return []
    found = [
        Worktree(project=project, name=entry.name, path=entry, created_at=_created_at(entry))
        for entry in root.iterdir()
        if entry.is_dir()
    ]
    return sorted(found, key=lambda wt: wt.created_at, reverse=True)


def detect_worktree_from_cwd(cwd: Path, home: Optional[Path] = None) -> Optional[Worktree]:
    """Detect whether `cwd` is inside a chief-managed worktree.

    Args:
        cwd: Directory to inspect.
        home: Optional chief home override.

    Returns:
        The enclosing worktree, or None when `cwd` is outside chief home or
        does not follow the `<project>/worktrees/<name>/...` layout.
    """
    base = (home or chief_home()).resolve()
    cwd = Path(cwd).resolve()
    try:
        parts = cwd.relative_to(base).parts
    except ValueError:
        return None

    if len(parts) < 3 or parts[1] != WORKTREES_DIR_NAME:
        return None
    project, name = parts[0], parts[2]
    path = base / project / WORKTREES_DIR_NAME / name
    if not path.is_dir():
        return None
    return Worktree(project=project, name=name, path=path, created_at=_created_at(path))


def resolve_worktree(
    name: Optional[str],
    *,
    cwd: Path,
    project: Optional[str] = None,
    home: Optional[Path] = None,
    select: Optional[SelectFn] = None,
    message: str = "Select a worktree:",
) -> Optional[Worktree]:
    """Resolve the worktree a command should act on.

    Args:
        name: Explicit worktree name; overrides auto-detection when given.
        cwd: Current working directory.
        project: Project name; derived from the detected worktree or the git
            repository at `cwd` when omitted.
        home: Optional chief home override.
        select: Picker used when neither a name nor a detected worktree is
            available. Returns None when the user cancels.
        message: Picker prompt.

    Returns:
        The worktree, or None when the picker offered nothing or was cancelled.

    Raises:
        WorktreeNotFoundError: If `name` does not match an existing worktree.
        PreconditionError: If the project cannot be determined.
    """
    detected = detect_worktree_from_cwd(cwd, home)
    if not name and detected:
        logger.debug("Detected worktree {} from {}", detected.name, cwd)
        return detected

    if project is None:
        project = detected.project if detected else project_for_cwd(cwd)

    if name:
        root = worktrees_root(project, home)
        path = root / name
        # Names are single directory entries; "..", "a/b" and absolute paths never match.
        if not _is_plain_name(name) or path.resolve().parent != root.resolve() or not path.is_dir():
            raise WorktreeNotFoundError(name)
        return Worktree(project=project, name=name, path=path, created_at=_created_at(path))

    worktrees = list_worktrees(project, home)
    if not worktrees:
        logger.info("No worktrees found for project {}", project)
        return None
    chosen = (select or select_option)([(wt.name, wt.path) for wt in worktrees], message)
    if chosen is None:
        return None
    for wt in worktrees:
        if wt.path == chosen:
            return wt
    return None
