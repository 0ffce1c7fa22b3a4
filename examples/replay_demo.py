"""
Demonstration of diagnostic log replay.

This example rebuilds the application state from a small captured log,
then shows how filters narrow states and drop noisy actions before the
timeline is written to disk.
"""

import json
import os
import tempfile

from undiff import (
    RedactionAction,
    RedactionPolicy,
    RedactionRule,
    build_timeline,
    drop_action_types,
    narrow_state,
    replay_log,
)

PREFIX = "From Keybase: 2026-01-18T12:00:00.000Z"

SAMPLE_LOG = "\n".join(
    [
        "From Keybase: engine: connected to service",
        f'{PREFIX} Dispatching action: gregor:pushState:  {{"type":"gregor:pushState","payload":{{}}}}',
        f'{PREFIX} Diff:  [{{"kind":"N","path":["config"],"rhs":{{"username":"mike","sessionID":"sess_abc"}}}}]',
        f'{PREFIX} Dispatching action: tracker:load:  {{"type":"tracker:load","payload":{{"username":"chris"}}}}',
        f'{PREFIX} Diff:  [{{"kind":"N","path":["tracker","trackers","chris"],"rhs":{{"proofs":[]}}}}]',
        f'{PREFIX} Diff:  [{{"kind":"A","path":["tracker","trackers","chris","proofs"],"index":0,"item":{{"kind":"N","rhs":"github"}}}}]',
        # Truncated capture: this edit targets a key that never existed
        f'{PREFIX} Diff:  [{{"kind":"E","path":["tracker","trackers","max"],"lhs":1,"rhs":2}}]',
    ]
)


def demo_full_replay():
    """Replay everything with identity filters."""
    print("=== Full Replay Demo ===\n")

    timeline = build_timeline(SAMPLE_LOG)
    for entry in timeline.entries:
        print(json.dumps(entry.to_dict()))
    print()
    print(timeline.summary())
    for failure in timeline.failures:
        print(f"  skipped line {failure.line_number}: {failure.operation} ({failure.reason})")


def demo_filters():
    """Narrow the state to one tracker and drop gregor actions."""
    print("=== Filter Demo ===\n")

    timeline = build_timeline(
        SAMPLE_LOG,
        state_filter=narrow_state("tracker.trackers.chris"),
        action_filter=drop_action_types("gregor"),
    )
    for entry in timeline.entries:
        print(json.dumps(entry.to_dict()))
    print()


def demo_redacted_export():
    """Hash usernames and mask sessions, then write the timeline to disk."""
    print("=== Redacted Export Demo ===\n")

    policy = RedactionPolicy(
        rules=[
            RedactionRule(action=RedactionAction.HASH, key_pattern="username"),
            RedactionRule(action=RedactionAction.MASK, key_pattern="session"),
        ]
    )

    with tempfile.TemporaryDirectory() as tmpdir:
        log_path = os.path.join(tmpdir, "log.txt")
        out_path = os.path.join(tmpdir, "log.json")
        with open(log_path, "w", encoding="utf-8") as f:
            f.write(SAMPLE_LOG)

        result = replay_log(
            log_path,
            out_path,
            state_filter=policy.state_filter(),
            action_filter=policy.action_filter(),
        )
        print(result.summary())
        print()

        with open(out_path, encoding="utf-8") as f:
            print(f.read())


if __name__ == "__main__":
    demo_full_replay()
    print("\n" + "=" * 50 + "\n")
    demo_filters()
    print("\n" + "=" * 50 + "\n")
    demo_redacted_export()
