#!/usr/bin/env python3
"""
Helper script to inspect an exported timeline in a human-friendly format.

Usage:
    python scripts/inspect_timeline.py
    python scripts/inspect_timeline.py --path log.json --line 42
    python scripts/inspect_timeline.py --actions-only
"""

import argparse
import json
import sys
from pathlib import Path

from undiff import ActionSnapshot, read_timeline


def format_entry(entry, index: int) -> str:
    """Format a timeline entry for display."""
    if isinstance(entry, ActionSnapshot):
        body = json.dumps(entry.action.payload, indent=2)
        return f"""
Entry #{index} (line {entry.line_number})
  Action: {entry.action.type}
{body}
"""
    body = json.dumps(entry.state, indent=2)
    return f"""
Entry #{index} (line {entry.line_number})
  State:
{body}
"""


def main():
    parser = argparse.ArgumentParser(
        description="Inspect an exported undiff timeline"
    )
    parser.add_argument(
        "--path",
        default="log.json",
        help="Path to the exported timeline (default: log.json)",
    )
    parser.add_argument(
        "--line",
        type=int,
        help="Show only the entry produced by this log line",
    )
    parser.add_argument(
        "--actions-only",
        action="store_true",
        help="List action types only",
    )
    args = parser.parse_args()

    path = Path(args.path)
    if not path.exists():
        print(f"Error: {path} does not exist", file=sys.stderr)
        print("Run `undiff replay` first to create it", file=sys.stderr)
        sys.exit(1)

    entries = read_timeline(str(path))

    if args.line is not None:
        matches = [e for e in entries if e.line_number == args.line]
        if not matches:
            print(f"Error: no entry for line {args.line}", file=sys.stderr)
            sys.exit(1)
        print(format_entry(matches[0], entries.index(matches[0]) + 1))
        return

    if args.actions_only:
        for entry in entries:
            if isinstance(entry, ActionSnapshot):
                print(f"{entry.line_number:>6}  {entry.action.type}")
        return

    print(f"Found {len(entries)} entries:")
    for i, entry in enumerate(entries, 1):
        print(format_entry(entry, i))


if __name__ == "__main__":
    main()
