"""
Transition-based alerts.

Compares the counts of two consecutive snapshots and decides whether the
user should be alerted:
- permission count goes from 0 to 1+ (needs approval, most urgent)
- waiting count goes from 0 to 1+ (ready for input)
Changes that only touch active sessions, or counts that were already
nonzero, are silent.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .models import SessionEntry, SessionState, StateCounts

logger = logging.getLogger(__name__)

APPROVAL_TITLE = "Needs Approval"
WAITING_TITLE = "Waiting for Input"


@dataclass(frozen=True)
class Alert:
    """A user-facing alert, optionally tied to the session that caused it."""
    title: str
    body: str
    session_id: Optional[str] = None


AlertHandler = Callable[[Alert], None]


def _first_session_id(sessions: Iterable[SessionEntry], state: SessionState) -> Optional[str]:
    for entry in sessions:
        if entry.state == state:
            return entry.session_id
    return None


def evaluate(
    old: StateCounts,
    new: StateCounts,
    sessions: Iterable[SessionEntry] = (),
) -> Optional[Alert]:
    """
    Decide whether the transition from old to new counts warrants an alert.

    Args:
        old: Counts from the previous snapshot
        new: Counts from the current snapshot
        sessions: Sessions of the current snapshot, used to pick a session id

    Returns:
        Alert to show, or None
    """
    if old == new:
        return None

    sessions = list(sessions)

    if old.permission_count == 0 and new.permission_count > 0:
        if new.permission_count == 1:
            body = "1 session needs approval"
        else:
            body = f"{new.permission_count} sessions need approval"
        return Alert(
            title=APPROVAL_TITLE,
            body=body,
            session_id=_first_session_id(sessions, SessionState.PERMISSION),
        )

    if old.waiting_count == 0 and new.waiting_count > 0:
        if new.waiting_count == 1:
            body = "1 session is waiting for input"
        else:
            body = f"{new.waiting_count} sessions waiting for input"
        return Alert(
            title=WAITING_TITLE,
            body=body,
            session_id=_first_session_id(sessions, SessionState.WAITING),
        )

    return None


class TransitionNotifier:
    """
    Dispatches alerts for qualifying count transitions to registered handlers.

    Holds no counts between calls; the caller passes the previous and current
    counts every time.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._handlers: list[AlertHandler] = []

    def subscribe(self, handler: AlertHandler) -> None:
        self._handlers.append(handler)

    def notify(
        self,
        old: StateCounts,
        new: StateCounts,
        sessions: Iterable[SessionEntry] = (),
    ) -> Optional[Alert]:
        """Evaluate the transition and send the resulting alert, if any."""
        if not self.enabled:
            return None

        alert = evaluate(old, new, sessions)
        if alert is None:
            return None

        logger.info(f"Alert: {alert.title} - {alert.body}")
        for handler in list(self._handlers):
            try:
                handler(alert)
            except Exception:
                logger.exception("Alert handler raised")
        return alert
