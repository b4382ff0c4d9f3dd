"""
Tests for transition-based alerts.
"""

from unittest.mock import MagicMock

import pytest

from claude_runner.models import SessionState, StateCounts
from claude_runner.notifier import (
    APPROVAL_TITLE,
    WAITING_TITLE,
    Alert,
    TransitionNotifier,
    evaluate,
)

from conftest import make_entry


def counts(active=0, waiting=0, permission=0) -> StateCounts:
    return StateCounts(active_count=active, waiting_count=waiting, permission_count=permission)


class TestEvaluate:
    """Tests for the transition rules."""

    def test_first_permission_alerts(self):
        alert = evaluate(counts(active=1), counts(permission=1))
        assert alert is not None
        assert alert.title == APPROVAL_TITLE
        assert alert.body == "1 session needs approval"

    def test_multiple_permission_plural(self):
        alert = evaluate(counts(active=3), counts(active=1, permission=2))
        assert alert.body == "2 sessions need approval"

    def test_permission_already_nonzero_is_silent(self):
        assert evaluate(counts(permission=1), counts(permission=2)) is None

    def test_first_waiting_alerts(self):
        alert = evaluate(counts(active=2), counts(active=1, waiting=1))
        assert alert.title == WAITING_TITLE
        assert alert.body == "1 session is waiting for input"

    def test_multiple_waiting_plural(self):
        alert = evaluate(counts(), counts(waiting=3))
        assert alert.body == "3 sessions waiting for input"

    def test_waiting_already_nonzero_is_silent(self):
        assert evaluate(counts(waiting=1), counts(waiting=2, active=1)) is None

    def test_permission_takes_precedence(self):
        alert = evaluate(counts(active=2), counts(waiting=1, permission=1))
        assert alert.title == APPROVAL_TITLE

    def test_waiting_alerts_while_permission_persists(self):
        alert = evaluate(counts(permission=1), counts(permission=1, waiting=1))
        assert alert.title == WAITING_TITLE

    def test_unchanged_counts_are_silent(self):
        assert evaluate(counts(waiting=2, permission=1), counts(waiting=2, permission=1)) is None

    @pytest.mark.parametrize(
        "old, new",
        [
            (counts(), counts(active=1)),
            (counts(active=1), counts(active=5)),
            (counts(permission=1), counts()),
            (counts(waiting=2), counts(active=2)),
        ],
    )
    def test_other_changes_are_silent(self, old, new):
        assert evaluate(old, new) is None

    def test_alert_carries_session_id(self):
        sessions = [
            make_entry("w1", SessionState.WAITING),
            make_entry("p1", SessionState.PERMISSION),
        ]
        alert = evaluate(counts(), counts(waiting=1, permission=1), sessions)
        assert alert.session_id == "p1"

    def test_alert_without_sessions(self):
        alert = evaluate(counts(), counts(waiting=1))
        assert alert.session_id is None


class TestTransitionNotifier:
    """Tests for alert dispatch."""

    def test_dispatches_to_handlers(self):
        notifier = TransitionNotifier()
        first = MagicMock()
        second = MagicMock()
        notifier.subscribe(first)
        notifier.subscribe(second)

        alert = notifier.notify(counts(active=1), counts(permission=1))

        assert isinstance(alert, Alert)
        first.assert_called_once_with(alert)
        second.assert_called_once_with(alert)

    def test_no_dispatch_without_alert(self):
        notifier = TransitionNotifier()
        handler = MagicMock()
        notifier.subscribe(handler)

        assert notifier.notify(counts(permission=1), counts(permission=2)) is None
        handler.assert_not_called()

    def test_disabled(self):
        notifier = TransitionNotifier(enabled=False)
        handler = MagicMock()
        notifier.subscribe(handler)

        assert notifier.notify(counts(), counts(permission=1)) is None
        handler.assert_not_called()

    def test_handler_error_does_not_stop_others(self):
        notifier = TransitionNotifier()
        bad = MagicMock(side_effect=RuntimeError("boom"))
        good = MagicMock()
        notifier.subscribe(bad)
        notifier.subscribe(good)

        alert = notifier.notify(counts(), counts(waiting=1))
        assert alert is not None
        good.assert_called_once_with(alert)

    def test_sequence_only_alerts_on_edges(self):
        notifier = TransitionNotifier()
        handler = MagicMock()
        notifier.subscribe(handler)

        sequence = [
            counts(active=2),
            counts(active=1, permission=1),
            counts(permission=2),
            counts(active=2),
            counts(active=1, permission=1),
        ]
        for old, new in zip(sequence, sequence[1:]):
            notifier.notify(old, new)

        assert handler.call_count == 2
