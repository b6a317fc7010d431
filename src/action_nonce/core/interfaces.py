"""Collaborator interfaces and their stock implementations.

This module defines the *structural* interfaces (``typing.Protocol``) the
nonce engine depends on, plus lightweight implementations suitable for
production (system clock, environment keys) and for tests (fixed clock,
static key).

Every Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.
"""
from __future__ import annotations

import os
import time
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from action_nonce.core.errors import MissingSecretKeyError
from action_nonce.core.keys import derive_nonce_key

# ===================================================================
# Protocol (interface) definitions
# ===================================================================

@runtime_checkable
class Clock(Protocol):
    """Wall-clock time source.

    Implementations MUST be safe to read from several threads at once.
    """

    def now(self) -> float:
        """Return the current time as UNIX seconds."""
        ...


@runtime_checkable
class SecretKeyProvider(Protocol):
    """Supplies the secret key nonces are derived with.

    The engine reads the key once, at construction.  Rotating the key
    therefore means building a new engine, and invalidates every token
    issued under the old key.
    """

    def get_key(self) -> bytes:
        """Return the key bytes.

        Raises :class:`MissingSecretKeyError` if no key is configured.
        """
        ...


# ===================================================================
# Clocks
# ===================================================================

class SystemClock:
    """Production clock backed by :func:`time.time`."""

    def now(self) -> float:
        return time.time()


class FixedClock:
    """A manually driven clock for deterministic tests.

    Parameters
    ----------
    timestamp:
        Initial UNIX time in seconds.
    """

    def __init__(self, timestamp: float = 0.0) -> None:
        self._timestamp = float(timestamp)

    def now(self) -> float:
        return self._timestamp

    def set(self, timestamp: float) -> None:
        """Jump to an absolute *timestamp*."""
        self._timestamp = float(timestamp)

    def advance(self, seconds: float) -> None:
        """Move the clock forward (or backward, if negative) by *seconds*."""
        self._timestamp += seconds


# ===================================================================
# Key providers
# ===================================================================

class StaticKeyProvider:
    """Serves a key supplied in code.

    Strings are UTF-8 encoded.  An empty key is rejected immediately.
    """

    __slots__ = ("_key",)

    def __init__(self, key: bytes | str) -> None:
        if isinstance(key, str):
            key = key.encode("utf-8")
        if not key:
            raise MissingSecretKeyError("Static nonce key must not be empty")
        self._key = key

    def get_key(self) -> bytes:
        return self._key

    def __repr__(self) -> str:
        return "StaticKeyProvider([REDACTED])"


class EnvironmentKeyProvider:
    """Reads the nonce key and salt from environment variables.

    The final key is ``derive_nonce_key(key, salt)``, so the raw
    environment values never act as HMAC keys directly.

    Parameters
    ----------
    key_var:
        Name of the variable holding the master key (required).
    salt_var:
        Name of the variable holding the salt (optional, may be unset).
    environ:
        Mapping to read from; defaults to :data:`os.environ`.
    """

    def __init__(
        self,
        key_var: str = "NONCE_KEY",
        salt_var: str = "NONCE_SALT",
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._key_var = key_var
        self._salt_var = salt_var
        self._environ = environ if environ is not None else os.environ

    def get_key(self) -> bytes:
        key = self._environ.get(self._key_var, "")
        if not key:
            raise MissingSecretKeyError(
                f"Environment variable {self._key_var} is not set",
                details={"variable": self._key_var},
            )
        salt = self._environ.get(self._salt_var, "")
        return derive_nonce_key(key.encode("utf-8"), salt.encode("utf-8"))
