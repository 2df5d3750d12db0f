"""Write chief state files atomically and read optional YAML settings."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml


def _atomic_write_text(path: Path, text: str) -> None:
    """Replace `path` with `text` so readers never see a partial file.

    The agent may read `.chief` files while chief writes them.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    staging = path.parent / f".{path.name}.partial"
    with open(staging, "w", encoding="utf-8") as out:
        out.write(text)
        out.flush()
        os.fsync(out.fileno())
    os.replace(staging, path)


def _atomic_write_json(path: Path, data: Any) -> None:
    _atomic_write_text(path, json.dumps(data, indent=2) + "\n")


def _read_yaml_mapping(path: Path) -> tuple[dict[str, Any], str | None]:
    """Read a YAML mapping, reporting problems instead of raising.

    Returns:
        `(mapping, error)`. A missing or empty file gives `({}, None)`; an
        unreadable file, a parse error or a non-mapping document gives `{}`
        and a message naming the file.
    """
    if not path.is_file():
        return {}, None
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        return {}, f"{path.name}: YAMLError: {exc}"
    except (OSError, UnicodeDecodeError) as exc:
        return {}, f"{path.name}: {type(exc).__name__}: {exc}"
    if loaded is None:
        return {}, None
    if not isinstance(loaded, dict):
        return {}, f"{path.name}: expected object, got {type(loaded).__name__}"
    return loaded, None
