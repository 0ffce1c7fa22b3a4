"""
Tests for timeline export.

These tests verify:
- Entries are written as discriminated records in timeline order
- Output is pretty-printed and carries version fields
- Failed writes raise OutputWriteError and leave nothing behind
- Exported files load back into equal entries
"""

import json
import os
import tempfile
import unittest

from undiff.core.errors import OutputWriteError
from undiff.core.export import (
    dumps_timeline,
    read_timeline,
    timeline_to_dict,
    write_timeline,
)
from undiff.core.replay import build_timeline
from undiff.version import TIMELINE_SCHEMA_VERSION, UNDIFF_VERSION

PREFIX = "From Keybase: 2024-01-15T10:00:00.000Z"

LOG = "\n".join(
    [
        f'{PREFIX} Dispatching action: increment:  {{"type":"increment","payload":{{"n":1}}}}',
        f'{PREFIX} Diff:  [{{"kind":"N","path":["counter"],"rhs":1}}]',
        f'{PREFIX} Diff:  [{{"kind":"E","path":["counter"],"lhs":1,"rhs":2}}]',
    ]
)


class TestTimelineToDict(unittest.TestCase):
    """Test the exported structure."""

    def test_structure(self):
        data = timeline_to_dict(build_timeline(LOG))

        self.assertEqual(data["schema_version"], TIMELINE_SCHEMA_VERSION)
        self.assertEqual(data["undiff_version"], UNDIFF_VERSION)
        self.assertEqual(data["stats"]["operations_applied"], 2)
        self.assertEqual(
            data["entries"],
            [
                {
                    "kind": "action",
                    "line": 1,
                    "action": {"type": "increment", "payload": {"n": 1}},
                },
                {"kind": "state", "line": 2, "state": {"counter": 1}},
                {"kind": "state", "line": 3, "state": {"counter": 2}},
            ],
        )

    def test_dumps_is_pretty_printed(self):
        blob = dumps_timeline(build_timeline(LOG))
        self.assertIn('\n  "entries": [', blob)
        self.assertEqual(json.loads(blob), timeline_to_dict(build_timeline(LOG)))

    def test_dumps_keeps_unicode(self):
        log = f'{PREFIX} Diff:  [{{"kind":"N","path":["name"],"rhs":"Zoë"}}]'
        self.assertIn("Zoë", dumps_timeline(build_timeline(log)))


class TestWriteTimeline(unittest.TestCase):
    """Test persistence."""

    def test_write_and_read_back(self):
        timeline = build_timeline(LOG)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "log.json")

            self.assertEqual(write_timeline(timeline, path), path)
            loaded = read_timeline(path)

            self.assertEqual([e.to_dict() for e in loaded], timeline_to_dict(timeline)["entries"])
            self.assertEqual(os.listdir(tmpdir), ["log.json"])

    def test_overwrites_existing_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "log.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write("stale")

            write_timeline(build_timeline(LOG), path)

            with open(path, encoding="utf-8") as f:
                self.assertEqual(len(json.load(f)["entries"]), 3)

    def test_missing_directory_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "nope", "log.json")
            with self.assertRaises(OutputWriteError) as ctx:
                write_timeline(build_timeline(LOG), path)
            self.assertEqual(ctx.exception.path, path)
            self.assertFalse(os.path.exists(os.path.dirname(path)))


class TestReadTimeline(unittest.TestCase):
    """Test loading exports."""

    def test_missing_schema_version_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "old.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"entries": [{"kind": "state", "line": 1, "state": {}}]}, f)

            entries = read_timeline(path)

            self.assertEqual(len(entries), 1)
            self.assertEqual(entries[0].state, {})

    def test_rejects_non_timeline(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "other.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump([1, 2, 3], f)
            with self.assertRaises(ValueError):
                read_timeline(path)

    def test_rejects_unknown_schema(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "future.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"schema_version": "timeline_v9", "entries": []}, f)
            with self.assertRaises(ValueError):
                read_timeline(path)


if __name__ == "__main__":
    unittest.main()
