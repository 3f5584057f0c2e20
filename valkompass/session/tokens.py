"""
Session tokens: logical cancellation for asynchronous work.

Every acquisition run carries the token that was current when it started.
A completion whose token is no longer current is stale and must be dropped.
"""

from __future__ import annotations


class SessionTokens:
    """Mints strictly increasing tokens; at most one is current."""

    def __init__(self) -> None:
        self._last = 0
        self._current: int | None = None

    @property
    def current(self) -> int | None:
        return self._current

    def mint(self) -> int:
        """Make a new token current. The previous one becomes stale immediately."""
        self._last += 1
        self._current = self._last
        return self._current

    def invalidate(self) -> None:
        """Leave no token current, so every pending completion is stale."""
        self._current = None

    def is_current(self, token: int) -> bool:
        return self._current is not None and token == self._current
