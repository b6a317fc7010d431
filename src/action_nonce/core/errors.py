"""Action-nonce error-code hierarchy.

Every failure the library can raise is a concrete exception class carrying
a stable error code, so callers can map it onto an HTTP response or a log
record without parsing messages.

Hierarchy
---------
::

    NonceError
    +-- ValidationError       (NC-E1xx)
    +-- ConfigurationError    (NC-E2xx)

Usage
-----
Raise concrete subclasses directly::

    raise InvalidActionError(details={"action": ""})

Catch by category::

    try:
        ...
    except ValidationError:
        # handles InvalidActionError, InvalidIdentityError, MalformedUrlError, ...
        ...

A token that simply does not verify is *not* an error: it is reported as
:attr:`~action_nonce.core.types.VerifyResult.INVALID`.
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class NonceError(Exception):
    """Base exception for all action-nonce errors.

    Attributes
    ----------
    code : str
        Error code, e.g. ``"NC-E100"``.
    http_status : int
        Recommended HTTP status code for this error.
    message : str
        Human-readable description (MUST NOT contain tokens or key material).
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    resolution : str
        Suggested action for the caller.
    """

    code: str = "NC-E000"
    http_status: int = 500
    message: str = "Unknown nonce error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error into a JSON-friendly error payload."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Category base classes
# ===================================================================

class ValidationError(NonceError):
    """NC-E1xx -- Caller-supplied input failed validation."""

    code = "NC-E1XX"
    http_status = 400


class ConfigurationError(NonceError):
    """NC-E2xx -- The engine is misconfigured; fatal at startup."""

    code = "NC-E2XX"
    http_status = 500


# ===================================================================
# NC-E1xx  Validation Errors
# ===================================================================

class InvalidActionError(ValidationError):
    """NC-E100 -- The nonce action is empty or not a string/integer."""

    code = "NC-E100"
    message = "Nonce action must be a non-empty string or an integer"
    resolution = (
        "Pass a descriptive action such as 'delete-post_42', or -1 for "
        "the unset action."
    )


class InvalidIdentityError(ValidationError):
    """NC-E101 -- The identity is missing, empty or not a string."""

    code = "NC-E101"
    message = "Nonce identity is missing or invalid"
    resolution = (
        "Derive the identity from the session's user id and session "
        "token, or disable require_identity for anonymous nonces."
    )


class InvalidNameError(ValidationError):
    """NC-E102 -- The nonce field/parameter name is unusable."""

    code = "NC-E102"
    message = "Nonce name must be a string usable as a form field or query key"
    resolution = "Use a plain name such as '_wpnonce'."


class MalformedUrlError(ValidationError):
    """NC-E103 -- A URL could not be parsed or is not absolute/root-relative."""

    code = "NC-E103"
    message = "URL is malformed"
    resolution = (
        "Pass an absolute http(s) URL with a host, or a path starting "
        "with '/'."
    )


# ===================================================================
# NC-E2xx  Configuration Errors
# ===================================================================

class MissingSecretKeyError(ConfigurationError):
    """NC-E200 -- No secret key is configured."""

    code = "NC-E200"
    message = "No secret key is configured for nonce derivation"
    resolution = (
        "Provide a non-empty key through the key provider (for example "
        "the NONCE_KEY environment variable)."
    )


class UnsupportedAlgorithmError(ConfigurationError):
    """NC-E201 -- The requested hash algorithm is not supported."""

    code = "NC-E201"
    message = "Unsupported hash algorithm"
    resolution = "Use one of: sha256, sha384, sha512, sha3_256."


# ===================================================================
# Code -> class registry
# ===================================================================

_CODE_MAP: dict[str, type[NonceError]] = {
    cls.code: cls
    for cls in [
        # E1xx
        InvalidActionError,
        InvalidIdentityError,
        InvalidNameError,
        MalformedUrlError,
        # E2xx
        MissingSecretKeyError,
        UnsupportedAlgorithmError,
    ]
}


def error_from_code(code: str, message: str | None = None) -> NonceError:
    """Instantiate the correct exception class for an error code.

    Parameters
    ----------
    code:
        An error code such as ``"NC-E103"``.
    message:
        Optional override for the default error message.

    Raises
    ------
    KeyError
        If *code* is not a recognised error code.
    """
    cls = _CODE_MAP[code]
    return cls(message) if message else cls()
