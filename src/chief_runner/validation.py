"""Validate task documents and emit their companion JSON schema."""

from __future__ import annotations

from typing import Any

TASK_FIELDS = ("category", "description", "passes", "steps")


def get_task_schema() -> dict[str, Any]:
    """Return the draft-07 JSON schema describing `tasks.json`."""
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "title": "Tasks",
        "type": "array",
        "items": {
            "type": "object",
            "additionalProperties": False,
            "required": list(TASK_FIELDS),
            "properties": {
                "category": {
                    "type": "string",
                    "description": "The category of the task",
                },
                "description": {
                    "type": "string",
                    "description": "A detailed description of the task",
                },
                "passes": {
                    "type": "boolean",
                    "default": False,
                    "description": "Indicates if the task has passed or is completed",
                },
                "steps": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "A list of steps to complete the task",
                },
            },
        },
    }


def validate_task_document(data: Any, *, source: str = "tasks.json") -> list[str]:
    """Validate the structure of a parsed task document.

    Args:
        data: Parsed JSON payload.
        source: File name used to prefix issue messages.

    Returns:
        A list of human-readable issue strings. An empty list means valid.
    """
    if not isinstance(data, list):
        return [f"{source}: expected an array of tasks, got {type(data).__name__}"]

    issues: list[str] = []
    for idx, task in enumerate(data):
        prefix = f"{source}: tasks[{idx}]"
        if not isinstance(task, dict):
            issues.append(f"{prefix} must be an object")
            continue

        missing = [name for name in TASK_FIELDS if name not in task]
        if missing:
            issues.append(f"{prefix} missing required field(s): {', '.join(missing)}")

        extra = sorted(str(key) for key in task if key not in TASK_FIELDS)
        if extra:
            issues.append(f"{prefix} has unexpected field(s): {', '.join(extra)}")

        for name in ("category", "description"):
            if name in task and not isinstance(task[name], str):
                issues.append(f"{prefix}.{name} must be a string")

        # bool is checked exactly; 0/1 are not accepted as completion flags
        if "passes" in task and not isinstance(task["passes"], bool):
            issues.append(f"{prefix}.passes must be a boolean")

        steps = task.get("steps")
        if "steps" in task:
            if not isinstance(steps, list):
                issues.append(f"{prefix}.steps must be an array of strings")
            elif any(not isinstance(step, str) for step in steps):
                issues.append(f"{prefix}.steps must contain only strings")

    return issues
