"""Interactive prompts and pickers for the chief CLI."""

from __future__ import annotations

import sys
from typing import Optional, TypeVar

from rich.console import Console
from rich.prompt import Confirm, Prompt

T = TypeVar("T")

# Prompts go to stderr so commands like `chief cd` keep stdout clean.
console = Console(stderr=True)

FOCUS_REPORTING_DISABLE = "\x1b[?1004l"
FOCUS_REPORTING_ENABLE = "\x1b[?1004h"


def _set_focus_reporting(enabled: bool) -> None:
    # Some terminals leak focus escape codes into line input after the agent exits.
    if sys.stdout.isatty():
        sys.stdout.write(FOCUS_REPORTING_ENABLE if enabled else FOCUS_REPORTING_DISABLE)
        sys.stdout.flush()


def prompt_multiline(question: str, initial: str = "") -> str:
    """Read lines until an empty line and return them joined by newlines.

    Args:
        question: Text shown before input starts.
        initial: Pre-filled text; returned as-is when non-empty.

    Returns:
        The entered text (possibly empty).
    """
    if initial.strip():
        return initial
    _set_focus_reporting(False)
    console.print(question)
    console.print("[dim](Enter an empty line to finish)[/dim]\n")
    lines: list[str] = []
    try:
        while True:
            try:
                line = console.input()
            except EOFError:
                break
            if line == "":
                break
            lines.append(line)
    finally:
        _set_focus_reporting(True)
    return "\n".join(lines)


def confirm(question: str, default: bool = False) -> bool:
    _set_focus_reporting(False)
    try:
        return Confirm.ask(question, default=default, console=console)
    finally:
        _set_focus_reporting(True)


def select_option(choices: list[tuple[str, T]], message: str) -> Optional[T]:
    """Show a numbered picker and return the chosen value.

    Args:
        choices: `(label, value)` pairs in display order.
        message: Prompt shown above the list.

    Returns:
        The selected value, or None when there is nothing to pick or the user
        enters an empty answer.
    """
    if not choices:
        return None
    console.print(f"\n[bold]{message}[/bold]")
    for idx, (label, _) in enumerate(choices, start=1):
        console.print(f"  [cyan]{idx}[/cyan]) {label}")
    valid = [str(idx) for idx in range(1, len(choices) + 1)]
    answer = Prompt.ask(
        "Number (empty to cancel)",
        choices=valid,
        show_choices=False,
        default="",
        show_default=False,
        console=console,
    )
    if not answer:
        return None
    return choices[int(answer) - 1][1]


def select_many(choices: list[str], message: str) -> list[str]:
    """Let the user pick several entries by comma-separated numbers.

    Args:
        choices: Labels in display order.
        message: Prompt shown above the list.

    Returns:
        The picked labels in display order; empty when the user skips.
    """
    if not choices:
        return []
    console.print(f"\n[bold]{message}[/bold]")
    for idx, label in enumerate(choices, start=1):
        console.print(f"  [cyan]{idx}[/cyan]) {label}")
    while True:
        answer = Prompt.ask(
            "Numbers, comma-separated (empty to type your own)",
            default="",
            show_default=False,
            console=console,
        )
        if not answer.strip():
            return []
        picked: set[int] = set()
        try:
            for token in answer.replace(" ", "").split(","):
                if not token:
                    continue
                number = int(token)
                if not 1 <= number <= len(choices):
                    raise ValueError(token)
                picked.add(number)
        except ValueError:
            console.print("[red]Enter numbers from the list, e.g. 1,3[/red]")
            continue
        return [label for idx, label in enumerate(choices, start=1) if idx in picked]
