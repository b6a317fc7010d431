"""Secret key material for nonce derivation.

Sites usually hold one long-lived master secret.  Rather than using it as
the HMAC key directly, :func:`derive_nonce_key` expands it with HKDF into
a key bound to the nonce purpose, so the same master secret can back
other subsystems without key reuse.
"""
from __future__ import annotations

import secrets

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from action_nonce.core.errors import MissingSecretKeyError

NONCE_KEY_INFO = b"action-nonce/v1"
"""HKDF ``info`` label binding derived keys to the nonce purpose."""

DERIVED_KEY_LENGTH = 32


def derive_nonce_key(
    master_key: bytes,
    salt: bytes = b"",
    *,
    info: bytes = NONCE_KEY_INFO,
) -> bytes:
    """Derive a 32-byte nonce key from *master_key* and *salt* (HKDF-SHA256).

    Raises
    ------
    MissingSecretKeyError
        If *master_key* is empty.
    """
    if not master_key:
        raise MissingSecretKeyError("Master key must not be empty")
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=DERIVED_KEY_LENGTH,
        salt=salt or None,
        info=info,
    )
    return hkdf.derive(master_key)


def generate_secret_key(num_bytes: int = 32) -> bytes:
    """Return *num_bytes* of CSPRNG output suitable as a master key."""
    return secrets.token_bytes(num_bytes)
