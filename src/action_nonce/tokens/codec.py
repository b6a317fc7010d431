"""Keyed derivation and comparison of nonce tokens.

Token derivation::

    HMAC-<alg>(secret_key, ns(tick) || ns(action) || ns(identity))

where ``ns(x)`` is the netstring framing ``<len>:<utf-8 bytes>,``.  The
length prefix keeps field boundaries unambiguous, so ``("ab", "c")`` and
``("a", "bc")`` never hash the same input.  The digest is encoded with
the URL-safe base64 alphabet (no padding) and truncated to the display
length.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import re
from collections.abc import Callable
from typing import Any, get_args

from action_nonce.core.config import HashAlgorithm
from action_nonce.core.errors import ConfigurationError, UnsupportedAlgorithmError

ALGORITHM_REGISTRY: dict[str, Callable[..., Any]] = {
    name: getattr(hashlib, name) for name in get_args(HashAlgorithm)
}
"""Supported algorithm names (the values of :data:`HashAlgorithm`) mapped to
:mod:`hashlib` constructors."""

MIN_TOKEN_LENGTH = 6
MAX_TOKEN_LENGTH = 64

_TOKEN_ALPHABET = re.compile(r"[A-Za-z0-9_-]+")


def _netstring(value: str) -> bytes:
    data = value.encode("utf-8")
    return b"%d:%s," % (len(data), data)


class TokenCodec:
    """Derives fixed-length tokens and compares them in constant time.

    Parameters
    ----------
    token_length:
        Number of characters kept from the encoded digest (default 10).
    algorithm:
        Hash function for the HMAC (default ``"sha256"``).

    Raises
    ------
    UnsupportedAlgorithmError
        If *algorithm* is not in :data:`ALGORITHM_REGISTRY`.
    ConfigurationError
        If *token_length* is out of range for the chosen digest.
    """

    def __init__(self, *, token_length: int = 10, algorithm: str = "sha256") -> None:
        if algorithm not in ALGORITHM_REGISTRY:
            raise UnsupportedAlgorithmError(
                f"Unsupported hash algorithm: {algorithm}",
                details={"algorithm": algorithm},
            )
        self._algorithm = algorithm
        self._digestmod = ALGORITHM_REGISTRY[algorithm]

        encoded_max = min(MAX_TOKEN_LENGTH, self._encoded_digest_length())
        if not MIN_TOKEN_LENGTH <= token_length <= encoded_max:
            raise ConfigurationError(
                f"Token length must be between {MIN_TOKEN_LENGTH} and {encoded_max}",
                details={"token_length": token_length, "algorithm": algorithm},
            )
        self._length = token_length

    def _encoded_digest_length(self) -> int:
        digest_size = self._digestmod().digest_size
        return len(base64.urlsafe_b64encode(b"\x00" * digest_size).rstrip(b"="))

    @property
    def token_length(self) -> int:
        return self._length

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def derive(
        self,
        tick: int,
        action: str | int,
        identity: str,
        secret_key: bytes,
    ) -> str:
        """Derive the token for *action* and *identity* in window *tick*.

        Integer actions are rendered with ``str()``; the unset action
        ``-1`` therefore hashes as the literal ``"-1"``.
        """
        message = _netstring(str(tick)) + _netstring(str(action)) + _netstring(identity)
        digest = hmac.new(secret_key, message, self._digestmod).digest()
        encoded = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
        return encoded[: self._length]

    def matches(self, token: str, expected: str) -> bool:
        """Compare *token* with *expected* in constant time.

        Both sides are compared as UTF-8 bytes, so a non-ASCII *token*
        yields ``False`` instead of raising.
        """
        return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))

    def is_well_formed(self, token: object) -> bool:
        """Return ``True`` if *token* has the length and alphabet of a token."""
        return (
            isinstance(token, str)
            and len(token) == self._length
            and _TOKEN_ALPHABET.fullmatch(token) is not None
        )
