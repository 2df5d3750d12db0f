"""Locate chief directories and load the optional per-project `config.yaml`."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    CHIEF_HOME_ENV,
    CONFIG_FILE,
    DEFAULT_AGENT_COMMAND,
    DEFAULT_BREAKDOWN_MODEL,
    DEFAULT_PR_MODEL,
    STATE_DIR_NAME,
    WORKTREES_DIR_NAME,
)
from .io_utils import _read_yaml_mapping


class AgentConfig(BaseModel):
    """Agent process settings."""

    command: str = DEFAULT_AGENT_COMMAND
    chrome: bool = True
    pr_model: Optional[str] = DEFAULT_PR_MODEL
    breakdown_model: Optional[str] = DEFAULT_BREAKDOWN_MODEL
    plan_model: Optional[str] = None


class RunConfig(BaseModel):
    """Run loop settings."""

    # None keeps the loop unbounded
    max_iterations: Optional[int] = Field(default=None, ge=1)


class ChiefConfig(BaseModel):
    agent: AgentConfig = Field(default_factory=AgentConfig)
    run: RunConfig = Field(default_factory=RunConfig)


def chief_home() -> Path:
    """Return the root directory holding every project's worktrees."""
    override = os.environ.get(CHIEF_HOME_ENV)
    if override:
        return Path(override).expanduser().resolve()
    return (Path.home() / STATE_DIR_NAME).resolve()


def project_dir(project: str, home: Optional[Path] = None) -> Path:
    return (home or chief_home()) / project


def worktrees_root(project: str, home: Optional[Path] = None) -> Path:
    return project_dir(project, home) / WORKTREES_DIR_NAME


def ensure_state_dir(root: Path) -> Path:
    """Create `<root>/.chief` if needed and return it."""
    state_dir = Path(root) / STATE_DIR_NAME
    state_dir.mkdir(parents=True, exist_ok=True)
    return state_dir


def ensure_worktrees_root(project: str, home: Optional[Path] = None) -> Path:
    root = worktrees_root(project, home)
    root.mkdir(parents=True, exist_ok=True)
    return root


def load_chief_config(project: str, home: Optional[Path] = None) -> tuple[ChiefConfig, str | None]:
    """Load the optional project config file.

    Args:
        project: Project name (the main checkout's folder name).
        home: Optional chief home override.

    Returns:
        A tuple of `(config, error_message)`. A missing file yields defaults and
        no error; an unreadable or invalid file yields defaults and the error.
    """
    path = project_dir(project, home) / CONFIG_FILE
    data, err = _read_yaml_mapping(path)
    if err:
        return ChiefConfig(), err
    try:
        return ChiefConfig.model_validate(data), None
    except ValidationError as exc:
        return ChiefConfig(), f"{path.name}: {exc.error_count()} invalid setting(s): {exc.errors()[0]['msg']}"


def resolve_chief_config(project: str, home: Optional[Path] = None) -> ChiefConfig:
    config, err = load_chief_config(project, home)
    if err:
        logger.warning("Ignoring chief config ({}); using defaults", err)
    return config
