"""Nonce engine -- the public entry point of the library.

:class:`NonceEngine` composes a :class:`~action_nonce.tokens.tick.TickClock`
and a :class:`~action_nonce.tokens.codec.TokenCodec` around a secret key
that is read once, at construction.  It keeps no other state, so one
engine can serve any number of concurrent requests without locking.

Verification
------------
A token is re-derived for the current window and then for each earlier
window still inside ``NonceConfig.lifetime_windows``; the first match
wins:

1. **Current window** -> :attr:`VerifyResult.VALID_RECENT`.
2. **Any earlier window** -> :attr:`VerifyResult.VALID_AGING`.
3. **No match** -> :attr:`VerifyResult.INVALID`.

With the default configuration that is "valid 0-12 hours" / "valid 12-24
hours" / "invalid".

Usage
-----
::

    from action_nonce import ActionContext, NonceEngine, build_identity
    from action_nonce.core.interfaces import EnvironmentKeyProvider

    engine = NonceEngine(EnvironmentKeyProvider())
    ctx = ActionContext("delete-post_42", identity=build_identity(7, session))

    url = engine.append_to_url("https://example.com/post.php?action=trash", ctx)
    ...
    if not engine.verify(submitted_token, ctx):
        raise PermissionError("stale or forged request")
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from action_nonce.core.config import NonceConfig
from action_nonce.core.errors import InvalidIdentityError, MissingSecretKeyError
from action_nonce.core.types import VerifyResult
from action_nonce.tokens.codec import TokenCodec
from action_nonce.tokens.tick import TickClock
from action_nonce.web.fields import field_items, serialize_fields
from action_nonce.web.urls import add_query_arg

if TYPE_CHECKING:
    from action_nonce.core.interfaces import Clock, SecretKeyProvider
    from action_nonce.core.types import ActionContext

logger = logging.getLogger(__name__)


class NonceEngine:
    """Creates and verifies action-scoped, time-windowed nonces.

    Parameters
    ----------
    key_provider:
        Source of the secret key.  The key is fetched once; a missing
        provider or an empty key aborts construction.
    config:
        Window size, lifetime, token length and identity policy.
        Defaults to :class:`NonceConfig()`.
    clock:
        Time source; defaults to the system clock.
    codec:
        Token codec; built from *config* when omitted.

    Raises
    ------
    MissingSecretKeyError
        If no key is available.
    """

    def __init__(
        self,
        key_provider: SecretKeyProvider,
        *,
        config: NonceConfig | None = None,
        clock: Clock | None = None,
        codec: TokenCodec | None = None,
    ) -> None:
        if key_provider is None:
            raise MissingSecretKeyError("A secret key provider is required")
        key = key_provider.get_key()
        if not key:
            raise MissingSecretKeyError()

        self._key = key
        self._config = config if config is not None else NonceConfig()
        self._ticks = TickClock(clock, window_seconds=self._config.window_seconds)
        self._codec = codec if codec is not None else TokenCodec(
            token_length=self._config.token_length,
            algorithm=self._config.hash_algorithm,
        )
        logger.debug(
            "Nonce engine ready: window=%ds lifetime_windows=%d algorithm=%s length=%d",
            self._config.window_seconds,
            self._config.lifetime_windows,
            self._codec.algorithm,
            self._codec.token_length,
        )

    @property
    def config(self) -> NonceConfig:
        return self._config

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def tick(self) -> int:
        """Return the current window index."""
        return self._ticks.current_tick()

    def create(self, ctx: ActionContext) -> str:
        """Return the token for *ctx* in the current window.

        Raises
        ------
        InvalidIdentityError
            If the configuration requires an identity and *ctx* has none.
        """
        self._check_identity(ctx)
        return self._derive(self._ticks.current_tick(), ctx)

    def verify(self, token: Any, ctx: ActionContext) -> VerifyResult:
        """Check *token* against *ctx*.

        Never raises for a token that merely fails to match: empty,
        malformed or non-string tokens yield :attr:`VerifyResult.INVALID`.
        Identity policy violations still raise, as in :meth:`create`.
        """
        self._check_identity(ctx)
        if not self._codec.is_well_formed(token):
            logger.debug("Nonce for action %r rejected: malformed token", ctx.action_key)
            return VerifyResult.INVALID

        ticks = self._ticks.recent_ticks(self._config.lifetime_windows)
        for age, tick in enumerate(ticks):
            if self._codec.matches(token, self._derive(tick, ctx)):
                result = VerifyResult.VALID_RECENT if age == 0 else VerifyResult.VALID_AGING
                logger.debug("Nonce for action %r verified: %s", ctx.action_key, result.name)
                return result

        logger.debug("Nonce for action %r rejected: no matching window", ctx.action_key)
        return VerifyResult.INVALID

    def verify_request(self, params: Mapping[str, Any], ctx: ActionContext) -> VerifyResult:
        """Verify the token submitted under ``ctx.name`` in *params*.

        *params* is a parsed form body or query string.  Multi-valued
        entries (lists or tuples) contribute their first value.  A missing
        field is :attr:`VerifyResult.INVALID`.
        """
        value = params.get(ctx.name)
        if isinstance(value, list | tuple):
            value = value[0] if value else None
        if value is None:
            self._check_identity(ctx)
            logger.debug("Nonce for action %r rejected: field %r missing", ctx.action_key, ctx.name)
            return VerifyResult.INVALID
        return self.verify(value, ctx)

    def refresh(self, token: Any, ctx: ActionContext) -> str | None:
        """Return a fresh token if *token* is still valid but aging.

        Returns ``None`` when *token* is recent (nothing to do) or invalid
        (the caller must not be handed a replacement for a forged token).
        """
        if self.verify(token, ctx) is VerifyResult.VALID_AGING:
            return self.create(ctx)
        return None

    # ------------------------------------------------------------------
    # Field / URL helpers
    # ------------------------------------------------------------------

    def field_items(
        self,
        ctx: ActionContext,
        include_referer_field: bool = True,
        *,
        referer: str = "",
    ) -> dict[str, str]:
        """Return the nonce field (and optionally the referer field) as a mapping."""
        token = self.create(ctx)
        return field_items(ctx.name, token, referer if include_referer_field else None)

    def render_field(
        self,
        ctx: ActionContext,
        include_referer_field: bool = True,
        *,
        referer: str = "",
    ) -> str:
        """Serialise :meth:`field_items` as a URL-encoded form fragment.

        >>> engine.render_field(ctx, referer="/wp-admin/edit.php")  # doctest: +SKIP
        '_wpnonce=Zm9vYmFyYmF6&_wp_http_referer=%2Fwp-admin%2Fedit.php'
        """
        return serialize_fields(
            self.field_items(ctx, include_referer_field, referer=referer)
        )

    def append_to_url(self, base_url: str, ctx: ActionContext) -> str:
        """Return *base_url* with ``ctx.name=<token>`` in its query string.

        Raises
        ------
        MalformedUrlError
            If *base_url* is not a usable URL.
        """
        return add_query_arg(base_url, ctx.name, self.create(ctx))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_identity(self, ctx: ActionContext) -> None:
        if self._config.require_identity and ctx.is_anonymous:
            raise InvalidIdentityError(
                "An identity is required to issue or check nonces",
                details={"action": ctx.action_key},
            )

    def _derive(self, tick: int, ctx: ActionContext) -> str:
        return self._codec.derive(tick, ctx.action_key, ctx.identity, self._key)
