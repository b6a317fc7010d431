"""Nonce engine configuration.

Defines the validated configuration model consumed by
:class:`~action_nonce.engine.NonceEngine`.  Defaults reproduce the
classic platform behaviour: 12-hour windows, two windows of validity
(24 hours in total) and 10-character tokens.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

HashAlgorithm = Literal["sha256", "sha384", "sha512", "sha3_256"]


class NonceConfig(BaseModel):
    """Configuration for a nonce engine.

    All fields carry defaults so that ``NonceConfig()`` is a usable
    production configuration; only the secret key has to come from
    elsewhere (see :mod:`action_nonce.core.interfaces`).
    """

    model_config = ConfigDict(strict=True, frozen=True)

    window_seconds: int = Field(
        default=43_200,  # 12 hours
        ge=1,
        description="Length of one tick window in seconds.",
    )
    lifetime_windows: int = Field(
        default=2,
        ge=1,
        le=16,
        description=(
            "Number of windows, the current one included, during which a "
            "token verifies.  Matches in the current window are "
            "'recent'; matches in any earlier window are 'aging'."
        ),
    )
    token_length: int = Field(
        default=10,
        ge=6,
        le=64,
        description="Number of URL-safe characters kept from the digest.",
    )
    hash_algorithm: HashAlgorithm = Field(
        default="sha256",
        description="Hash function used inside the HMAC construction.",
    )
    require_identity: bool = Field(
        default=True,
        description=(
            "When True, create() and verify() reject contexts with an "
            "empty identity instead of issuing anonymous tokens."
        ),
    )

    @property
    def lifetime_seconds(self) -> int:
        """Upper bound, in seconds, of a token's validity."""
        return self.window_seconds * self.lifetime_windows
