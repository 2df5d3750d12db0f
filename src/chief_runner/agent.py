"""Invoke the coding agent CLI as a blocking subprocess.

Three shapes are supported: interactive (the terminal is handed to the
agent), captured (stdout is collected, stdin/stderr are inherited), and plan
(interactive, restricted to planning permissions).
"""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import AgentConfig
from .errors import AgentError
from .models import AgentMode, AgentResult


class AgentRunner:
    """Run the configured agent command inside a worktree."""

    def __init__(self, config: Optional[AgentConfig] = None):
        self.config = config or AgentConfig()

    def _base_command(self) -> list[str]:
        parts = shlex.split(self.config.command)
        if not parts:
            raise AgentError("Agent command is empty; set agent.command in config.yaml")
        return parts

    def build_args(
        self,
        prompt: str,
        mode: AgentMode,
        *,
        model: Optional[str] = None,
        chrome: Optional[bool] = None,
    ) -> list[str]:
        """Build the agent argv for one invocation.

        Args:
            prompt: Instruction text passed as the final argument.
            mode: Invocation shape.
            model: Optional model override.
            chrome: Override the configured `--chrome` flag.

        Returns:
            The full argv list.
        """
        args = self._base_command()
        if model:
            args += ["--model", model]
        if mode == AgentMode.PLAN:
            args += ["--allowed-tools", "Edit, Write", "--permission-mode", "plan"]
        else:
            args += ["--permission-mode", "acceptEdits"]
        if mode == AgentMode.CAPTURED:
            args.append("-p")
        if self.config.chrome if chrome is None else chrome:
            args.append("--chrome")
        args.append(prompt)
        return args

    def _spawn(self, args: list[str], cwd: Path, *, capture: bool) -> subprocess.CompletedProcess:
        logger.debug("Running agent in {}: {}", cwd, " ".join(shlex.quote(arg) for arg in args[:-1]))
        try:
            return subprocess.run(
                args,
                cwd=cwd,
                stdout=subprocess.PIPE if capture else None,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise AgentError(
                f"Agent command not found: {args[0]}. Install it or set agent.command in config.yaml."
            ) from exc

    def run_interactive(self, prompt: str, cwd: Path, *, model: Optional[str] = None) -> AgentResult:
        args = self.build_args(prompt, AgentMode.INTERACTIVE, model=model)
        result = self._spawn(args, cwd, capture=False)
        return AgentResult(mode=AgentMode.INTERACTIVE, exit_code=result.returncode)

    def run_plan(self, prompt: str, cwd: Path, *, model: Optional[str] = None) -> AgentResult:
        args = self.build_args(prompt, AgentMode.PLAN, model=model or self.config.plan_model)
        result = self._spawn(args, cwd, capture=False)
        return AgentResult(mode=AgentMode.PLAN, exit_code=result.returncode)

    def run_captured(
        self,
        prompt: str,
        cwd: Path,
        *,
        model: Optional[str] = None,
        chrome: Optional[bool] = None,
    ) -> AgentResult:
        """Run the agent non-interactively and return its stdout.

        Args:
            prompt: Instruction text.
            cwd: Working directory (the worktree).
            model: Optional model override.
            chrome: Override the configured `--chrome` flag.

        Returns:
            The exit code and captured stdout.

        Raises:
            AgentError: If the agent executable cannot be found.
        """
        args = self.build_args(prompt, AgentMode.CAPTURED, model=model, chrome=chrome)
        result = self._spawn(args, cwd, capture=True)
        if result.returncode != 0:
            logger.warning("Agent exited with code {}", result.returncode)
        return AgentResult(mode=AgentMode.CAPTURED, exit_code=result.returncode, output=result.stdout or "")
