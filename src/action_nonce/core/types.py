"""Shared value types for the action-nonce engine.

Key design decisions:
* :class:`ActionContext` is a frozen, slotted dataclass; it is validated
  once at construction and never changes afterwards, so every derivation
  and verification re-reads the same three fields.
* Invalid fields raise :class:`InvalidActionError`,
  :class:`InvalidIdentityError` or :class:`InvalidNameError` from
  ``__post_init__``.
* :class:`VerifyResult` is an ``IntEnum`` whose values line up with the
  classic ``1`` / ``2`` / ``false`` verification contract.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass, replace

from action_nonce.core.errors import (
    InvalidActionError,
    InvalidIdentityError,
    InvalidNameError,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_NONCE_NAME: str = "_wpnonce"
"""Field / query parameter name used when a context sets none."""

REFERER_FIELD_NAME: str = "_wp_http_referer"
"""Field carrying the referring URL next to the nonce."""

UNSET_ACTION: int = -1
"""Sentinel action for callers that protect nothing more specific."""

_INVALID_NAME_CHARS = re.compile(r"[\s&=#]")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class VerifyResult(enum.IntEnum):
    """Outcome of verifying a token against an :class:`ActionContext`.

    * **INVALID** -- the token matches no window still inside its lifetime.
    * **VALID_RECENT** -- the token was issued in the current window.
    * **VALID_AGING** -- the token was issued in an earlier, still-valid
      window and should be replaced soon.

    ``INVALID`` is falsy, both valid members are truthy.
    """

    INVALID = 0
    VALID_RECENT = 1
    VALID_AGING = 2

    @property
    def is_valid(self) -> bool:
        """Return ``True`` for either valid outcome."""
        return self is not VerifyResult.INVALID


# ---------------------------------------------------------------------------
# ActionContext
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ActionContext:
    """The ``(action, name, identity)`` triple a nonce is scoped to.

    Attributes
    ----------
    action:
        The operation being protected, e.g. ``"delete-post_42"``, or an
        integer tag.  :data:`UNSET_ACTION` (``-1``) is accepted verbatim.
    name:
        Form field / query parameter carrying the token.  ``None`` or an
        empty string selects :data:`DEFAULT_NONCE_NAME`.
    identity:
        Opaque string derived from the caller's user id and session
        secret (see :func:`build_identity`).  Never generated here.

    Raises
    ------
    InvalidActionError
        If *action* is an empty string or not a ``str`` / ``int``.
    InvalidNameError
        If *name* is not a string or cannot be used as a field name.
    InvalidIdentityError
        If *identity* is not a string.
    """

    action: str | int
    name: str = DEFAULT_NONCE_NAME
    identity: str = ""

    def __post_init__(self) -> None:
        action = self.action
        # bool is an int subclass but never a meaningful action.
        if isinstance(action, bool) or not isinstance(action, str | int):
            raise InvalidActionError(
                details={"action_type": type(action).__name__},
            )
        if isinstance(action, str) and not action:
            raise InvalidActionError("Nonce action must not be empty")

        name = self.name
        if name is None or name == "":
            object.__setattr__(self, "name", DEFAULT_NONCE_NAME)
        elif not isinstance(name, str):
            raise InvalidNameError(details={"name_type": type(name).__name__})
        elif _INVALID_NAME_CHARS.search(name):
            raise InvalidNameError(
                "Nonce name must not contain whitespace, '&', '=' or '#'",
                details={"name": name},
            )

        if not isinstance(self.identity, str):
            raise InvalidIdentityError(
                "Nonce identity must be a string",
                details={"identity_type": type(self.identity).__name__},
            )

    @property
    def action_key(self) -> str:
        """Canonical string form of the action as fed to the codec."""
        return str(self.action)

    @property
    def is_anonymous(self) -> bool:
        """``True`` when no identity is bound to this context."""
        return not self.identity

    def with_action(self, action: str | int) -> ActionContext:
        """Return a copy of this context protecting a different action."""
        return replace(self, action=action)

    def with_name(self, name: str | None) -> ActionContext:
        """Return a copy of this context using a different field name."""
        return replace(self, name=name)


def build_identity(user_id: int | str, session_token: str = "") -> str:
    """Compose an identity string from a user id and a session secret.

    A *user_id* of ``0`` or ``""`` denotes an anonymous visitor; with no
    session token either, the result is the empty identity.

    >>> build_identity(7, "c2Vzc2lvbg")
    '7|c2Vzc2lvbg'
    """
    if isinstance(user_id, bool) or not isinstance(user_id, int | str):
        raise InvalidIdentityError(
            "User id must be a string or an integer",
            details={"user_id_type": type(user_id).__name__},
        )
    uid = "" if user_id in (0, "") else str(user_id)
    if not uid and not session_token:
        return ""
    return f"{uid}|{session_token}"
