"""JSON helpers for snapshot files and model output."""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def read_json_object(path: Path) -> Dict[str, Any]:
    """Load a JSON object; missing, unreadable or non-object files give ``{}``."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def write_json_object(path: Path, data: Dict[str, Any]) -> None:
    """Write pretty-printed JSON through a temp file so readers never see half a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    os.replace(tmp, path)


def extract_json(raw: str) -> Dict[str, Any]:
    """Extract the first JSON object from model output.

    Tolerates markdown fences and leading prose. Raises ``ValueError`` when no
    JSON object can be recovered.
    """
    cleaned = _FENCE_RE.sub("", raw or "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict):
        return data

    match = _OBJECT_RE.search(cleaned)
    if match:
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            return data
    raise ValueError(f"Could not extract a JSON object from model output: {cleaned[:200]}")
