"""Shared fixtures for nonce conformance tests.

Provides a deterministic clock positioned at the start of tick 1000, an
engine using the default configuration, and the reference context from
the ``delete-post-42`` scenario.
"""
from __future__ import annotations

import pytest

from action_nonce.core.interfaces import FixedClock, StaticKeyProvider
from action_nonce.core.types import ActionContext
from action_nonce.engine import NonceEngine
from action_nonce.tokens.tick import DEFAULT_WINDOW_SECONDS

CONFORMANCE_KEY = b"conformance-test-nonce-key-32byt"


@pytest.fixture()
def window() -> int:
    return DEFAULT_WINDOW_SECONDS


@pytest.fixture()
def clock(window: int) -> FixedClock:
    return FixedClock(1000 * window)


@pytest.fixture()
def secret_key() -> bytes:
    return CONFORMANCE_KEY


@pytest.fixture()
def key_provider(secret_key: bytes) -> StaticKeyProvider:
    return StaticKeyProvider(secret_key)


@pytest.fixture()
def engine(key_provider: StaticKeyProvider, clock: FixedClock) -> NonceEngine:
    return NonceEngine(key_provider, clock=clock)


@pytest.fixture()
def scenario_ctx() -> ActionContext:
    return ActionContext("delete-post-42", name="_wpnonce", identity="user:7")
