"""Tests for verification step storage and first-run acquisition."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
from rich.console import Console

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from chief_runner.errors import VerificationError
from chief_runner.verification import (
    copy_project_verification,
    ensure_verification_steps,
    get_verification_steps,
    normalize_verification_steps,
    set_verification_steps,
    verification_path,
)


def _quiet() -> Console:
    return Console(quiet=True)


def _no_choices(choices, message):
    raise AssertionError("picker should not be shown")


def test_normalize_adds_dash_prefix() -> None:
    raw = "npm run lint\n\n  - npm test  \n- make build\n   \n--check\n- --fix\n"

    assert normalize_verification_steps(raw) == (
        "- npm run lint\n- npm test\n- make build\n- --check\n- --fix"
    )


@pytest.mark.parametrize("raw", ["", "   \n\n", "-\n - \n"])
def test_normalize_rejects_empty(raw: str) -> None:
    with pytest.raises(VerificationError, match="Verification steps cannot be empty."):
        normalize_verification_steps(raw)


def test_blank_stored_steps_count_as_missing(tmp_path: Path) -> None:
    path = verification_path(tmp_path)
    path.parent.mkdir(parents=True)
    path.write_text("  \n")

    assert get_verification_steps(tmp_path) is None


def test_acquires_once_then_reuses(tmp_path: Path) -> None:
    calls: list[str] = []

    def _ask(question: str) -> str:
        calls.append(question)
        return "make test"

    first = ensure_verification_steps(tmp_path, console=_quiet(), ask_text=_ask, ask_choices=_no_choices)
    second = ensure_verification_steps(tmp_path, console=_quiet(), ask_text=_ask, ask_choices=_no_choices)

    assert first == second == "- make test"
    assert len(calls) == 1
    assert verification_path(tmp_path).read_text() == "- make test\n"


def test_empty_answer_raises_and_persists_nothing(tmp_path: Path) -> None:
    with pytest.raises(VerificationError):
        ensure_verification_steps(tmp_path, console=_quiet(), ask_text=lambda q: "", ask_choices=_no_choices)

    assert not verification_path(tmp_path).exists()


def test_manifest_candidates_are_offered_first(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text(
        json.dumps({"scripts": {"dev": "vite", "test": "vitest", "lint": "eslint ."}})
    )
    offered: list[list[str]] = []

    def _choose(choices: list[str], message: str) -> list[str]:
        offered.append(choices)
        return [choices[0], choices[1]]

    def _never_ask(question: str) -> str:
        raise AssertionError("free-text prompt should not be shown")

    steps = ensure_verification_steps(tmp_path, console=_quiet(), ask_text=_never_ask, ask_choices=_choose)

    assert offered == [["npm run lint", "npm run test", "npm run dev"]]
    assert steps == "- npm run lint\n- npm run test"


def test_skipping_picker_falls_back_to_free_text(tmp_path: Path) -> None:
    (tmp_path / "go.mod").write_text("module example.com/x\n")

    steps = ensure_verification_steps(
        tmp_path,
        console=_quiet(),
        ask_text=lambda q: "go test ./...\n",
        ask_choices=lambda choices, message: [],
    )

    assert steps == "- go test ./..."


def test_first_acquisition_seeds_project_copy(tmp_path: Path) -> None:
    worktree = tmp_path / "wt"
    worktree.mkdir()
    project_file = tmp_path / "project" / "verification.txt"

    ensure_verification_steps(
        worktree,
        project_file=project_file,
        console=_quiet(),
        ask_text=lambda q: "pytest",
        ask_choices=_no_choices,
    )

    assert project_file.read_text() == "- pytest\n"


def test_existing_project_copy_is_not_overwritten(tmp_path: Path) -> None:
    worktree = tmp_path / "wt"
    worktree.mkdir()
    project_file = tmp_path / "verification.txt"
    project_file.write_text("- make check\n")

    ensure_verification_steps(
        worktree,
        project_file=project_file,
        console=_quiet(),
        ask_text=lambda q: "pytest",
        ask_choices=_no_choices,
    )

    assert project_file.read_text() == "- make check\n"


def test_copy_project_verification_into_new_worktree(tmp_path: Path) -> None:
    project_file = tmp_path / "verification.txt"
    project_file.write_text("- cargo test\n")
    worktree = tmp_path / "wt"
    worktree.mkdir()

    assert copy_project_verification(project_file, worktree) is True
    assert get_verification_steps(worktree) == "- cargo test"
    # Existing steps are left alone.
    set_verification_steps(worktree, "- cargo clippy")
    assert copy_project_verification(project_file, worktree) is False
    assert get_verification_steps(worktree) == "- cargo clippy"


def test_copy_project_verification_without_source(tmp_path: Path) -> None:
    assert copy_project_verification(tmp_path / "missing.txt", tmp_path) is False
    assert get_verification_steps(tmp_path) is None
