"""Hand-off of rejected messages to caller-owned storage.

The library never persists anything itself. Projects that keep a record of
rejected messages implement :class:`MaliciousMessageSaver` against their own
database and call :func:`save_malicious_message` after a rejection.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from modfilter.datatypes.verdict_datatypes import ErrorCode

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@runtime_checkable
class MaliciousMessageSaver(Protocol):
    """Storage capability for rejected messages."""

    def save_malicious_message(
        self,
        from_user_id: int,
        to_user_id: int,
        message_text: str,
        error_code: str,
        reason: str,
        current_time: str,
    ) -> None:
        """Persist a rejected message.

        Args:
            from_user_id: ID of the user who sent the message
            to_user_id: ID of the user who was supposed to receive the message
            message_text: Content of the rejected message
            error_code: Rejection code, e.g. ``CONTENT_SPAM``
            reason: Brief reason for rejection
            current_time: Timestamp formatted as ``YYYY-MM-DD HH:MM:SS``

        Errors are raised, not returned.
        """
        ...


def current_timestamp(now: Optional[datetime] = None) -> str:
    """Format ``now`` (default: local time) the way savers expect it."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def save_malicious_message(
    saver: Optional[MaliciousMessageSaver],
    from_user_id: int,
    to_user_id: int,
    message_text: str,
    error_code: ErrorCode | str,
    reason: str,
    current_time: Optional[str] = None,
) -> None:
    """Forward a rejected message to ``saver``; a missing saver skips saving."""
    if saver is None:
        return
    saver.save_malicious_message(
        from_user_id,
        to_user_id,
        message_text,
        str(error_code),
        reason,
        current_time or current_timestamp(),
    )
