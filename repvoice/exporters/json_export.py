"""JSON document files for the local workout log store."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict


def write_json(path: Path, payload: Any) -> Path:
    """Write payload as pretty JSON through a sibling temp file, then swap it in."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
    os.replace(tmp_path, path)
    return path


def read_json_object(path: Path) -> Dict[str, Any]:
    """Read a JSON file whose root must be an object."""
    payload = json.loads(path.read_text())
    if not isinstance(payload, dict):
        raise ValueError(f"{path.name} does not contain a JSON object")
    return payload
