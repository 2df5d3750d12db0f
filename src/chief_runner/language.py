"""Suggest verification commands from a project's manifest files.

The first matching manifest decides the project language. Node projects offer
their declared `package.json` scripts; other languages fall back to common
default commands.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from loguru import logger

from .constants import PREFERRED_SCRIPT_NAMES

Language = Literal["typescript", "javascript", "python", "go", "rust", "unknown"]

DEFAULT_VERIFY_COMMANDS: dict[str, list[str]] = {
    "python": ["ruff check .", "pytest"],
    "go": ["go vet ./...", "go test ./..."],
    "rust": ["cargo clippy -- -D warnings", "cargo test"],
}


def _read_package_json(project_dir: Path) -> dict | None:
    path = project_dir / "package.json"
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Unable to read {}: {}", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _package_runner(project_dir: Path) -> str:
    if (project_dir / "bun.lockb").exists() or (project_dir / "bun.lock").exists():
        return "bun run"
    if (project_dir / "pnpm-lock.yaml").exists():
        return "pnpm run"
    if (project_dir / "yarn.lock").exists():
        return "yarn"
    return "npm run"


def detect_language(project_dir: Path) -> Language:
    """Detect the primary language of a project from its manifest files.

    Args:
        project_dir: Project root directory.

    Returns:
        The detected language identifier.
    """
    project_dir = Path(project_dir)
    package = _read_package_json(project_dir)
    if package is not None:
        deps = {**(package.get("dependencies") or {}), **(package.get("devDependencies") or {})}
        if "typescript" in deps or (project_dir / "tsconfig.json").exists():
            return "typescript"
        return "javascript"
    if any((project_dir / name).exists() for name in ("pyproject.toml", "setup.py", "setup.cfg")):
        return "python"
    if (project_dir / "go.mod").exists():
        return "go"
    if (project_dir / "Cargo.toml").exists():
        return "rust"
    return "unknown"


def package_script_commands(project_dir: Path) -> list[str]:
    """Return runnable commands for the scripts declared in `package.json`.

    Preferred verification scripts (lint, typecheck, test, build) come first,
    followed by the rest in declaration order.
    """
    project_dir = Path(project_dir)
    package = _read_package_json(project_dir) or {}
    scripts = package.get("scripts")
    if not isinstance(scripts, dict):
        return []
    runner = _package_runner(project_dir)
    names = [str(name) for name in scripts]
    ordered = [name for name in PREFERRED_SCRIPT_NAMES if name in scripts]
    ordered += [name for name in names if name not in ordered]
    return [f"{runner} {name}" for name in ordered]


def suggest_verification_commands(project_dir: Path) -> list[str]:
    """Suggest verification commands for the guided picker.

    Args:
        project_dir: Project root directory.

    Returns:
        Candidate commands, possibly empty when no manifest is recognized.
    """
    language = detect_language(project_dir)
    if language in {"typescript", "javascript"}:
        return package_script_commands(project_dir)
    return list(DEFAULT_VERIFY_COMMANDS.get(language, []))
