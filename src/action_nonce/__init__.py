"""action-nonce -- action-scoped, time-windowed CSRF nonces.

Tokens are keyed digests of ``(tick, action, identity)``: they bind a
request to one operation, one user session and a coarse time window, and
expire on their own without any server-side storage.

Layout
------
* Core types, errors, config, collaborators (:mod:`action_nonce.core`)
* Token primitives (:mod:`action_nonce.tokens`)
* Form / URL helpers (:mod:`action_nonce.web`)
* The engine (:mod:`action_nonce.engine`)
"""
from __future__ import annotations

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Core types, errors, config, interfaces
# ---------------------------------------------------------------------------
from action_nonce.core.config import NonceConfig
from action_nonce.core.errors import (
    ConfigurationError,
    InvalidActionError,
    InvalidIdentityError,
    InvalidNameError,
    MalformedUrlError,
    MissingSecretKeyError,
    NonceError,
    UnsupportedAlgorithmError,
    ValidationError,
)
from action_nonce.core.interfaces import (
    Clock,
    EnvironmentKeyProvider,
    FixedClock,
    SecretKeyProvider,
    StaticKeyProvider,
    SystemClock,
)
from action_nonce.core.keys import derive_nonce_key, generate_secret_key
from action_nonce.core.types import (
    DEFAULT_NONCE_NAME,
    REFERER_FIELD_NAME,
    UNSET_ACTION,
    ActionContext,
    VerifyResult,
    build_identity,
)

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
from action_nonce.engine import NonceEngine

# ---------------------------------------------------------------------------
# Token primitives
# ---------------------------------------------------------------------------
from action_nonce.tokens import TickClock, TokenCodec

__all__ = [
    # Meta
    "__version__",
    # Types & constants
    "ActionContext",
    "VerifyResult",
    "build_identity",
    "DEFAULT_NONCE_NAME",
    "REFERER_FIELD_NAME",
    "UNSET_ACTION",
    # Config
    "NonceConfig",
    # Error hierarchy
    "NonceError",
    "ValidationError",
    "ConfigurationError",
    "InvalidActionError",
    "InvalidIdentityError",
    "InvalidNameError",
    "MalformedUrlError",
    "MissingSecretKeyError",
    "UnsupportedAlgorithmError",
    # Collaborators
    "Clock",
    "SystemClock",
    "FixedClock",
    "SecretKeyProvider",
    "StaticKeyProvider",
    "EnvironmentKeyProvider",
    "derive_nonce_key",
    "generate_secret_key",
    # Primitives
    "TickClock",
    "TokenCodec",
    # Engine
    "NonceEngine",
]
