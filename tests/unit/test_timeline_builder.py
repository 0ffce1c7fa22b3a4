"""
Golden tests for the timeline builder.

Fixtures are small hand-written diagnostic logs with stable timestamps.

Tests cover:
- End-to-end reconstruction of actions and states
- Malformed lines dropped without aborting
- Determinism and order preservation
- Filter correctness (redacted states, dropped actions)
- Fidelity counters
"""

import unittest

from undiff.core.policy import ReplayPolicy
from undiff.core.redaction import REDACT, drop_action_types, narrow_state
from undiff.core.replay import TimelineBuilder, build_timeline, split_log_lines
from undiff.core.types import ActionSnapshot, StateSnapshot

# =============================================================================
# Golden Fixtures
# =============================================================================

PREFIX = "From Keybase: 2024-01-15T10:00:00.000Z"


def diff(payload: str) -> str:
    return f"{PREFIX} Diff:  {payload}"


def dispatch(name: str, payload: str) -> str:
    return f"{PREFIX} Dispatching action: {name}:  {payload}"


INCREMENT = dispatch("increment", '{"type":"increment","payload":{"n":1}}')
CREATE_COUNTER = diff('[{"kind":"New","path":["counter"],"rhs":1}]')
EDIT_COUNTER = diff('[{"kind":"Edit","path":["counter"],"lhs":1,"rhs":2}]')

GOLDEN_LOG = "\n".join([INCREMENT, CREATE_COUNTER, EDIT_COUNTER])

NOISY_LOG = "\n".join(
    [
        "From Keybase: engine: connected",
        dispatch("gregor:pushState", '{"type":"gregor:pushState","payload":{}}'),
        diff('[{"kind":"N","path":["tracker"],"rhs":{"trackers":{}}}]'),
        "random console noise",
        dispatch("tracker:load", '{"type":"tracker:load","payload":{"user":"mike"}}'),
        diff(
            '[{"kind":"N","path":["tracker","trackers","mike"],'
            '"rhs":{"following":false}}]'
        ),
        dispatch("gregor:pushOOBM", '{"type":"gregor:pushOOBM","payload":{}}'),
        diff(
            '[{"kind":"E","path":["tracker","trackers","mike","following"],'
            '"lhs":false,"rhs":true},'
            '{"kind":"N","path":["tracker","trackers","mike","proofs"],"rhs":[]}]'
        ),
        diff(
            '[{"kind":"A","path":["tracker","trackers","mike","proofs"],'
            '"index":0,"item":{"kind":"N","rhs":"twitter"}}]'
        ),
        "",
    ]
)


def as_data(timeline):
    return [entry.to_dict() for entry in timeline.entries]


# =============================================================================
# Tests
# =============================================================================


class TestGoldenReplay(unittest.TestCase):
    """End-to-end scenarios."""

    def test_end_to_end(self):
        timeline = build_timeline(GOLDEN_LOG)

        self.assertEqual(len(timeline), 3)
        first, second, third = timeline.entries
        self.assertIsInstance(first, ActionSnapshot)
        self.assertEqual(
            first.action.to_dict(), {"type": "increment", "payload": {"n": 1}}
        )
        self.assertEqual(second, StateSnapshot(line_number=2, state={"counter": 1}))
        self.assertEqual(third, StateSnapshot(line_number=3, state={"counter": 2}))

    def test_malformed_json_line_is_dropped(self):
        log = "\n".join(
            [INCREMENT, diff('[{"kind":"New","path":["counter"],"rhs":'), EDIT_COUNTER]
        )
        timeline = build_timeline(log)

        self.assertEqual(len(timeline), 2)
        self.assertIsInstance(timeline.entries[0], ActionSnapshot)
        self.assertEqual(timeline.entries[1], StateSnapshot(line_number=3, state={}))
        self.assertEqual(timeline.stats.lines_unparseable, 1)
        self.assertEqual(timeline.stats.operations_applied, 0)
        self.assertEqual(timeline.stats.operations_skipped, 1)
        self.assertEqual(timeline.failures[0].operation, "EDIT $.counter")

    def test_noisy_log(self):
        timeline = build_timeline(NOISY_LOG)

        self.assertEqual(len(timeline.actions()), 3)
        self.assertEqual(len(timeline.states()), 4)
        self.assertEqual(
            timeline.states()[-1].state,
            {"tracker": {"trackers": {"mike": {"following": True, "proofs": ["twitter"]}}}},
        )
        self.assertEqual(timeline.stats.operations_applied, 5)
        self.assertEqual(timeline.stats.operations_skipped, 0)

    def test_crlf_line_endings(self):
        timeline = build_timeline(GOLDEN_LOG.replace("\n", "\r\n"))
        self.assertEqual(timeline.states()[-1].state, {"counter": 2})

    def test_unicode_line_separators_stay_inside_payload(self):
        log = "\n".join(
            [
                diff('[{"kind":"N","path":["msg"],"rhs":"a\u2028b\u2029c\x85d"}]'),
                diff('[{"kind":"N","path":["x"],"rhs":1}]'),
            ]
        )
        timeline = build_timeline(log)

        self.assertEqual(timeline.stats.lines_total, 2)
        self.assertEqual(timeline.stats.lines_unparseable, 0)
        self.assertEqual(
            timeline.states()[0],
            StateSnapshot(line_number=1, state={"msg": "a\u2028b\u2029c\x85d"}),
        )
        self.assertEqual(timeline.states()[1].line_number, 2)

    def test_split_log_lines(self):
        self.assertEqual(split_log_lines(""), [])
        self.assertEqual(split_log_lines("a\r\nb\n"), ["a", "b"])
        self.assertEqual(split_log_lines("a\n\nb"), ["a", "", "b"])
        self.assertEqual(split_log_lines("a b"), ["a b"])

    def test_lenient_policy(self):
        log = "\n".join(
            [
                '... Dispatching action: increment: {"type":"increment","payload":{"n":1}}',
                '... Diff: [{"kind":"New","path":["counter"],"rhs":1}]',
                '... Diff: [{"kind":"Edit","path":["counter"],"lhs":1,"rhs":2}]',
            ]
        )
        strict = build_timeline(log)
        lenient = build_timeline(log, policy=ReplayPolicy.lenient())

        self.assertEqual(len(strict.states()), 0)
        self.assertEqual(
            [s.state for s in lenient.states()], [{"counter": 1}, {"counter": 2}]
        )

    def test_empty_log(self):
        timeline = build_timeline("")
        self.assertEqual(timeline.entries, [])
        self.assertEqual(timeline.stats.lines_total, 0)


class TestReplayProperties(unittest.TestCase):
    """Determinism, ordering and fault containment."""

    def test_determinism(self):
        builder = TimelineBuilder(action_filter=drop_action_types("gregor"))
        first = builder.build(NOISY_LOG)
        second = builder.build(NOISY_LOG)
        self.assertEqual(as_data(first), as_data(second))
        self.assertEqual(first.stats.to_dict(), second.stats.to_dict())

    def test_order_preservation(self):
        numbers = [e.line_number for e in build_timeline(NOISY_LOG).entries]
        self.assertEqual(numbers, sorted(numbers))
        self.assertEqual(len(numbers), len(set(numbers)))

    def test_snapshots_are_independent(self):
        states = build_timeline(GOLDEN_LOG).states()
        self.assertEqual(states[0].state, {"counter": 1})
        self.assertIsNot(states[0].state, states[1].state)

    def test_noop_edit_keeps_shape(self):
        log = "\n".join(
            [CREATE_COUNTER, diff('[{"kind":"E","path":["counter"],"lhs":1,"rhs":1}]')]
        )
        states = build_timeline(log).states()
        self.assertEqual(states[0].state, states[1].state)

    def test_fault_containment(self):
        valid = "\n".join(
            [
                INCREMENT,
                CREATE_COUNTER,
                diff('[{"kind":"N","path":["other"],"rhs":2}]'),
                EDIT_COUNTER,
            ]
        )
        broken = "\n".join(
            [
                INCREMENT,
                CREATE_COUNTER,
                diff('[{"kind":"N","path":["other"],"rhs":2'),
                EDIT_COUNTER,
            ]
        )
        baseline = build_timeline(valid)
        damaged = build_timeline(broken)

        self.assertEqual(
            damaged.stats.operations_applied, baseline.stats.operations_applied - 1
        )
        self.assertEqual(len(damaged), len(baseline) - 1)
        self.assertEqual(
            [e.line_number for e in damaged.entries], [1, 2, 4]
        )
        self.assertEqual(damaged.states()[-1].state, {"counter": 2})

    def test_failed_operation_still_emits_state(self):
        log = "\n".join(
            [
                CREATE_COUNTER,
                diff(
                    '[{"kind":"D","path":["missing"]},'
                    '{"kind":"E","path":["counter"],"lhs":1,"rhs":5}]'
                ),
            ]
        )
        timeline = build_timeline(log)
        self.assertEqual(timeline.states()[-1].state, {"counter": 5})
        self.assertEqual(timeline.stats.operations_skipped, 1)


class TestReplayFilters(unittest.TestCase):
    """Filter correctness."""

    def test_redact_all_states(self):
        timeline = build_timeline(NOISY_LOG, state_filter=lambda s: REDACT)
        unfiltered = build_timeline(NOISY_LOG)

        self.assertEqual(timeline.states(), [])
        self.assertEqual(as_data(timeline), [e.to_dict() for e in unfiltered.actions()])

    def test_drop_actions_by_prefix(self):
        timeline = build_timeline(
            NOISY_LOG, action_filter=drop_action_types("gregor")
        )
        types = [a.action.type for a in timeline.actions()]
        self.assertEqual(types, ["tracker:load"])
        self.assertEqual(timeline.stats.entries_filtered, 2)

    def test_state_filter_cannot_mutate_running_document(self):
        def vandal(state):
            state.clear()
            state["vandal"] = True
            return state

        timeline = build_timeline(GOLDEN_LOG, state_filter=vandal)
        self.assertEqual(timeline.states()[-1].state, {"vandal": True})
        self.assertEqual(timeline.stats.operations_skipped, 0)

    def test_narrowed_state(self):
        timeline = build_timeline(
            NOISY_LOG, state_filter=narrow_state("tracker.trackers.mike")
        )
        self.assertEqual(timeline.states()[0].state, {"nullStore": None})
        self.assertEqual(
            timeline.states()[-1].state,
            {"mike": {"following": True, "proofs": ["twitter"]}},
        )


class TestReplayStats(unittest.TestCase):
    """Retained versus dropped accounting."""

    def test_counts(self):
        timeline = build_timeline(
            NOISY_LOG, action_filter=drop_action_types("gregor")
        )
        stats = timeline.stats

        self.assertEqual(stats.lines_total, 9)
        self.assertEqual(stats.lines_irrelevant, 2)
        self.assertEqual(stats.diff_lines, 4)
        self.assertEqual(stats.action_lines, 3)
        self.assertEqual(stats.lines_retained, 5)
        self.assertEqual(stats.lines_dropped, 4)
        self.assertIn("5 lines retained, 4 dropped", timeline.summary())


if __name__ == "__main__":
    unittest.main()
