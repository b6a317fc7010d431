"""Token primitives: time windows and keyed derivation.

Public API
----------
- :class:`TickClock` -- maps wall-clock time onto window indices.
- :class:`TokenCodec` -- HMAC-based token derivation and comparison.
"""
from __future__ import annotations

from action_nonce.tokens.codec import ALGORITHM_REGISTRY, TokenCodec
from action_nonce.tokens.tick import DEFAULT_WINDOW_SECONDS, TickClock

__all__ = [
    "ALGORITHM_REGISTRY",
    "DEFAULT_WINDOW_SECONDS",
    "TickClock",
    "TokenCodec",
]
