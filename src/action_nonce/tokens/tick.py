"""Coarse time windows ("ticks") bounding nonce validity.

A tick is ``floor(now / window_seconds)``.  Tokens embed the tick they
were issued in, so validity can be checked without storing issuance
timestamps: a verifier simply re-derives the token for the current tick
and for the few ticks before it.
"""
from __future__ import annotations

import math
from typing import TYPE_CHECKING

from action_nonce.core.errors import ConfigurationError
from action_nonce.core.interfaces import SystemClock

if TYPE_CHECKING:
    from action_nonce.core.interfaces import Clock

DEFAULT_WINDOW_SECONDS = 43_200


class TickClock:
    """Maps wall-clock time onto window indices.

    Parameters
    ----------
    clock:
        Time source; defaults to :class:`SystemClock`.  Inject a
        :class:`~action_nonce.core.interfaces.FixedClock` in tests.
    window_seconds:
        Length of one window (default 12 hours).
    """

    def __init__(
        self,
        clock: Clock | None = None,
        *,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
    ) -> None:
        if window_seconds < 1:
            raise ConfigurationError(
                "Tick window must be at least one second",
                details={"window_seconds": window_seconds},
            )
        self._clock = clock if clock is not None else SystemClock()
        self._window = window_seconds

    @property
    def window_seconds(self) -> int:
        return self._window

    def tick_at(self, timestamp: float) -> int:
        """Return the window index containing *timestamp*."""
        return math.floor(timestamp / self._window)

    def current_tick(self) -> int:
        return self.tick_at(self._clock.now())

    def previous_tick(self) -> int:
        return self.current_tick() - 1

    def recent_ticks(self, count: int) -> list[int]:
        """Return the *count* most recent ticks, newest first.

        All values come from a single clock reading, so the list stays
        consistent even if a window boundary passes during the call.
        """
        current = self.current_tick()
        return [current - offset for offset in range(count)]

    def window_start(self, tick: int) -> float:
        """Return the UNIX time at which *tick* begins."""
        return float(tick * self._window)
