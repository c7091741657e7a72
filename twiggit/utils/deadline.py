"""Cancellation signal for git backend calls."""

import time
from typing import Optional


class Deadline:
    """A point in time after which git work must be abandoned.

    ``Deadline(None)`` never expires. The mutation backend converts the
    remaining time into GitPython's ``kill_after_timeout``; the metadata
    backend calls :meth:`expired` between blocking steps.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._expires_at = None if timeout is None else time.monotonic() + timeout
        self._cancelled = False

    def cancel(self) -> None:
        """Expire the deadline immediately."""
        self._cancelled = True

    def remaining(self) -> Optional[float]:
        """Seconds left, 0.0 once expired, or None for no limit."""
        if self._cancelled:
            return 0.0
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def __repr__(self) -> str:
        return f"Deadline(timeout={self.timeout}, remaining={self.remaining()})"
