"""Line classification for diagnostic logs.

Each raw line is labelled as a diff record, an action record, or irrelevant.
Diff lines must start with the origin marker; the diff and action markers
may appear anywhere after timestamps and other prefixes, so matching is
never whole-line.

Priority:
1. origin prefix + diff marker -> DIFF
2. action marker              -> ACTION
3. anything else              -> IRRELEVANT
"""
from __future__ import annotations

from typing import Optional

from .policy import ReplayPolicy
from .types import ClassifiedLine, LineKind


def classify_line(
    text: str, number: int = 0, policy: Optional[ReplayPolicy] = None
) -> ClassifiedLine:
    """Classify one log line. Never raises; unmatched input is IRRELEVANT."""
    policy = policy or ReplayPolicy.default()

    if not isinstance(text, str) or not text:
        return ClassifiedLine(number=number, text="", kind=LineKind.IRRELEVANT)

    has_origin = policy.origin_marker is None or text.startswith(policy.origin_marker)
    if has_origin and policy.diff_marker in text:
        kind = LineKind.DIFF
    elif policy.action_marker in text:
        kind = LineKind.ACTION
    else:
        kind = LineKind.IRRELEVANT
    return ClassifiedLine(number=number, text=text, kind=kind)
