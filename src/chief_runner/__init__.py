"""Provide the public `chief_runner` package exports."""

from __future__ import annotations

from .orchestrator import TaskRunLoop, run_worktree_tasks

__all__ = ["TaskRunLoop", "run_worktree_tasks"]
