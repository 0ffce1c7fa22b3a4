"""Timeline export.

Writes a timeline as pretty-printed JSON:

    {"schema_version": "timeline_v0",
     "undiff_version": "0.1.0",
     "stats": {...},
     "entries": [{"kind": "action", "line": 1, "action": {...}},
                 {"kind": "state", "line": 2, "state": {...}}]}

The whole blob is rendered in memory, written to a temporary file next to
the destination and moved into place, so a reader never sees a partial file.
"""
from __future__ import annotations

import json
import os
import tempfile
from typing import Any, Dict, List

import structlog

from ..version import (
    DEFAULT_TIMELINE_SCHEMA_VERSION,
    TIMELINE_SCHEMA_VERSION,
    UNDIFF_VERSION,
)
from .errors import OutputWriteError
from .replay import Timeline
from .types import TimelineEntry, entry_from_dict

logger = structlog.get_logger()


def timeline_to_dict(timeline: Timeline) -> Dict[str, Any]:
    return {
        "schema_version": TIMELINE_SCHEMA_VERSION,
        "undiff_version": UNDIFF_VERSION,
        "stats": timeline.stats.to_dict(),
        "entries": [entry.to_dict() for entry in timeline.entries],
    }


def dumps_timeline(timeline: Timeline) -> str:
    return json.dumps(
        timeline_to_dict(timeline), indent=2, ensure_ascii=False, default=str
    )


def write_timeline(timeline: Timeline, path: str) -> str:
    """
    Persist a timeline to ``path``.

    Returns:
        The path written.

    Raises:
        OutputWriteError: If the destination cannot be written.
    """
    blob = dumps_timeline(timeline) + "\n"
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            prefix=".undiff-", suffix=".tmp", dir=directory
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(blob)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise OutputWriteError(str(e), path) from e

    logger.info("timeline_written", path=path, entries=len(timeline.entries))
    return path


def read_timeline(path: str) -> List[TimelineEntry]:
    """
    Load the entries of an exported timeline.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not a timeline export.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or not isinstance(data.get("entries"), list):
        raise ValueError(f"{path} is not a timeline export")

    schema_version = data.get("schema_version", DEFAULT_TIMELINE_SCHEMA_VERSION)
    if schema_version != TIMELINE_SCHEMA_VERSION:
        raise ValueError(f"unsupported timeline schema: {schema_version}")
    return [entry_from_dict(entry) for entry in data["entries"]]
