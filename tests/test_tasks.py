"""Tests for reading and validating worktree task documents."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from chief_runner.errors import TaskDocumentError
from chief_runner.models import Task
from chief_runner.tasks import has_pending_tasks, read_tasks, task_stats, tasks_path, write_task_schema
from chief_runner.validation import get_task_schema, validate_task_document


def _task(passes: bool, description: str = "Do a thing") -> dict:
    return {"category": "feature", "description": description, "passes": passes, "steps": ["step one"]}


def _write_doc(worktree: Path, payload: object) -> Path:
    path = tasks_path(worktree)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_missing_document_reads_as_empty(tmp_path: Path) -> None:
    assert read_tasks(tmp_path) == []
    assert has_pending_tasks([]) is False


def test_reads_tasks_in_document_order(tmp_path: Path) -> None:
    _write_doc(tmp_path, [_task(True, "first"), _task(False, "second"), _task(True, "third")])

    tasks = read_tasks(tmp_path)

    assert [t.description for t in tasks] == ["first", "second", "third"]
    assert tasks[1] == Task(category="feature", description="second", passes=False, steps=["step one"])


def test_pending_and_stats_for_mixed_document(tmp_path: Path) -> None:
    _write_doc(tmp_path, [_task(True), _task(False), _task(True)])

    tasks = read_tasks(tmp_path)
    stats = task_stats(tasks)

    assert has_pending_tasks(tasks) is True
    assert (stats.completed, stats.total, stats.remaining) == (2, 3, 1)


def test_all_passing_document_has_nothing_pending(tmp_path: Path) -> None:
    _write_doc(tmp_path, [_task(True), _task(True)])

    tasks = read_tasks(tmp_path)

    assert has_pending_tasks(tasks) is False
    assert task_stats(tasks).remaining == 0


@pytest.mark.parametrize(
    "flags",
    [[], [True], [False], [True, False], [False, False, True, True, False]],
)
def test_completed_never_exceeds_total(flags: list[bool]) -> None:
    tasks = [Task(category="c", description="d", passes=flag) for flag in flags]
    stats = task_stats(tasks)

    assert 0 <= stats.completed <= stats.total
    assert stats.completed == sum(flags)
    assert has_pending_tasks(tasks) == (False in flags)


def test_rereads_document_after_external_change(tmp_path: Path) -> None:
    _write_doc(tmp_path, [_task(False)])
    assert has_pending_tasks(read_tasks(tmp_path)) is True

    _write_doc(tmp_path, [_task(True)])
    assert has_pending_tasks(read_tasks(tmp_path)) is False


def test_invalid_json_raises(tmp_path: Path) -> None:
    path = tasks_path(tmp_path)
    path.parent.mkdir(parents=True)
    path.write_text("[{not json", encoding="utf-8")

    with pytest.raises(TaskDocumentError) as excinfo:
        read_tasks(tmp_path)

    assert "JSONDecodeError" in str(excinfo.value)
    assert excinfo.value.path == str(path)


def test_extra_fields_are_rejected(tmp_path: Path) -> None:
    payload = _task(False)
    payload["priority"] = 1
    _write_doc(tmp_path, [payload])

    with pytest.raises(TaskDocumentError, match="unexpected field"):
        read_tasks(tmp_path)


def test_missing_fields_are_rejected(tmp_path: Path) -> None:
    _write_doc(tmp_path, [{"category": "feature", "description": "x"}])

    with pytest.raises(TaskDocumentError, match="missing required field"):
        read_tasks(tmp_path)


def test_non_array_document_is_rejected(tmp_path: Path) -> None:
    _write_doc(tmp_path, {"tasks": []})

    with pytest.raises(TaskDocumentError, match="expected an array"):
        read_tasks(tmp_path)


def test_validator_reports_type_issues() -> None:
    issues = validate_task_document(
        [
            {"category": 1, "description": "x", "passes": "yes", "steps": "one"},
            {"category": "c", "description": "d", "passes": 1, "steps": ["ok", 2]},
            "not an object",
        ]
    )

    assert "tasks.json: tasks[0].category must be a string" in issues
    assert "tasks.json: tasks[0].passes must be a boolean" in issues
    assert "tasks.json: tasks[0].steps must be an array of strings" in issues
    assert "tasks.json: tasks[1].passes must be a boolean" in issues
    assert "tasks.json: tasks[1].steps must contain only strings" in issues
    assert "tasks.json: tasks[2] must be an object" in issues


def test_validator_accepts_empty_array() -> None:
    assert validate_task_document([]) == []


def test_write_task_schema(tmp_path: Path) -> None:
    path = write_task_schema(tmp_path)

    assert path.name == "tasks.schema.json"
    schema = json.loads(path.read_text(encoding="utf-8"))
    assert schema == get_task_schema()
    assert schema["items"]["additionalProperties"] is False
    assert schema["items"]["required"] == ["category", "description", "passes", "steps"]
