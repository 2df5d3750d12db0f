"""Store and acquire the verification steps the agent must run for each task.

Steps are kept in `.chief/verification.txt`. The first run in a worktree
without steps asks for them once and persists the answer.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from rich.console import Console

from .config import project_dir
from .constants import STATE_DIR_NAME, VERIFICATION_FILE
from .errors import VerificationError
from .io_utils import _atomic_write_text
from .language import suggest_verification_commands
from .terminal import prompt_multiline, select_many

EMPTY_STEPS_MESSAGE = "Verification steps cannot be empty."


def verification_path(scope_dir: Path) -> Path:
    return Path(scope_dir) / STATE_DIR_NAME / VERIFICATION_FILE


def project_verification_path(project: str, home: Optional[Path] = None) -> Path:
    return project_dir(project, home) / VERIFICATION_FILE


def get_verification_steps(scope_dir: Path) -> Optional[str]:
    """Return stored verification steps, or None when missing or blank."""
    path = verification_path(scope_dir)
    if not path.exists():
        return None
    text = path.read_text(encoding="utf-8").strip()
    return text or None


def set_verification_steps(scope_dir: Path, steps: str) -> Path:
    path = verification_path(scope_dir)
    _atomic_write_text(path, steps if steps.endswith("\n") else steps + "\n")
    logger.debug("Saved verification steps to {}", path)
    return path


def normalize_verification_steps(text: str) -> str:
    """Turn free text into one dash-prefixed step per line.

    Args:
        text: Raw steps, one per line. Lines may already start with `-`.

    Returns:
        The normalized steps.

    Raises:
        VerificationError: If no non-blank line remains.
    """
    steps: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        # Drop one list marker; "--flag" style commands keep their dashes.
        if stripped == "-" or stripped.startswith("- "):
            stripped = stripped[1:].strip()
            if not stripped:
                continue
        steps.append(f"- {stripped}")
    if not steps:
        raise VerificationError(EMPTY_STEPS_MESSAGE)
    return "\n".join(steps)


def acquire_verification_steps(
    worktree_path: Path,
    *,
    console: Optional[Console] = None,
    ask_text: Callable[[str], str] = prompt_multiline,
    ask_choices: Callable[[list[str], str], list[str]] = select_many,
) -> str:
    """Ask the user for verification steps and persist them.

    Candidate commands derived from the worktree's manifest are offered first;
    skipping the picker falls back to free-text entry.

    Args:
        worktree_path: Worktree whose `.chief` directory receives the steps.
        console: Console for informational output.
        ask_text: Multi-line free-text prompt.
        ask_choices: Multi-select picker over candidate commands.

    Returns:
        The normalized steps that were saved.

    Raises:
        VerificationError: If the user provides no steps.
    """
    console = console or Console()
    console.print("\n[bold]First-time setup: please provide verification steps.[/bold]")
    console.print("These are commands to verify the AI's work (e.g., tests, lint, build).\n")

    raw = ""
    candidates = suggest_verification_commands(worktree_path)
    if candidates:
        picked = ask_choices(candidates, "Select the commands to run after each task:")
        raw = "\n".join(picked)

    if not raw.strip():
        console.print("Example:\n  - npm run lint\n  - npm run typecheck\n  - npm test\n")
        raw = ask_text("Enter verification steps:")

    steps = normalize_verification_steps(raw)
    set_verification_steps(worktree_path, steps)
    console.print("\n[green]✓ Verification steps saved.[/green]\n")
    return steps


def ensure_verification_steps(
    worktree_path: Path,
    *,
    project_file: Optional[Path] = None,
    **kwargs,
) -> str:
    """Return stored verification steps, acquiring them on first use.

    Args:
        worktree_path: Worktree to read or seed.
        project_file: Optional project-level copy written after a first-time
            acquisition so new worktrees start with the same steps.
        **kwargs: Passed to `acquire_verification_steps`.

    Returns:
        The verification steps text.
    """
    stored = get_verification_steps(worktree_path)
    if stored:
        return stored
    steps = acquire_verification_steps(worktree_path, **kwargs)
    if project_file is not None and not project_file.exists():
        _atomic_write_text(project_file, steps + "\n")
        logger.debug("Seeded project verification steps at {}", project_file)
    return steps


def copy_project_verification(project_file: Path, worktree_path: Path) -> bool:
    """Copy project-level verification steps into a new worktree if present."""
    if not project_file.exists() or get_verification_steps(worktree_path):
        return False
    text = project_file.read_text(encoding="utf-8").strip()
    if not text:
        return False
    set_verification_steps(worktree_path, text)
    return True
