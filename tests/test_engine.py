"""Tests for NonceEngine.

Covers:

1. **Construction** -- fail-fast key handling, config wiring.
2. **create / verify** -- recent, aging, expired, forged and malformed
   tokens; identity policy; configurable lifetime.
3. **verify_request / refresh** -- submitted-form helpers.
4. **Field and URL helpers** -- render_field, field_items, append_to_url.
5. **Logging and concurrency** -- no token leakage, lock-free sharing.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from action_nonce.core.config import NonceConfig
from action_nonce.core.errors import (
    InvalidIdentityError,
    MalformedUrlError,
    MissingSecretKeyError,
)
from action_nonce.core.interfaces import EnvironmentKeyProvider, FixedClock, StaticKeyProvider
from action_nonce.core.types import ActionContext, VerifyResult
from action_nonce.engine import NonceEngine
from action_nonce.tokens.codec import TokenCodec

KEY = b"engine-test-key-0123456789abcdef"
WINDOW = 43_200
START = WINDOW * 1000 + 60


class _EmptyKeyProvider:
    def get_key(self) -> bytes:
        return b""


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
def engine(clock: FixedClock) -> NonceEngine:
    return NonceEngine(StaticKeyProvider(KEY), clock=clock)


@pytest.fixture
def ctx() -> ActionContext:
    return ActionContext("delete-post_42", identity="user:7")


# ===================================================================
# Construction
# ===================================================================


class TestConstruction:
    """Tests for engine construction."""

    def test_missing_provider(self) -> None:
        with pytest.raises(MissingSecretKeyError):
            NonceEngine(None)  # type: ignore[arg-type]

    def test_empty_key(self) -> None:
        with pytest.raises(MissingSecretKeyError):
            NonceEngine(_EmptyKeyProvider())

    def test_provider_error_propagates(self) -> None:
        with pytest.raises(MissingSecretKeyError):
            NonceEngine(EnvironmentKeyProvider(environ={}))

    def test_default_config(self, engine: NonceEngine) -> None:
        assert engine.config == NonceConfig()

    def test_config_drives_codec(self, clock: FixedClock, ctx: ActionContext) -> None:
        engine = NonceEngine(
            StaticKeyProvider(KEY),
            config=NonceConfig(token_length=16, hash_algorithm="sha512"),
            clock=clock,
        )
        assert len(engine.create(ctx)) == 16

    def test_custom_codec(self, clock: FixedClock, ctx: ActionContext) -> None:
        engine = NonceEngine(StaticKeyProvider(KEY), clock=clock, codec=TokenCodec(token_length=24))
        token = engine.create(ctx)
        assert len(token) == 24
        assert engine.verify(token, ctx) is VerifyResult.VALID_RECENT

    def test_tick(self, engine: NonceEngine, clock: FixedClock) -> None:
        assert engine.tick() == 1000
        clock.advance(WINDOW)
        assert engine.tick() == 1001


# ===================================================================
# create / verify
# ===================================================================


class TestCreateVerify:
    """Tests for token creation and verification."""

    def test_create_stable_within_window(
        self, engine: NonceEngine, clock: FixedClock, ctx: ActionContext
    ) -> None:
        token = engine.create(ctx)
        clock.advance(WINDOW - 120)
        assert engine.create(ctx) == token

    def test_create_changes_across_windows(
        self, engine: NonceEngine, clock: FixedClock, ctx: ActionContext
    ) -> None:
        token = engine.create(ctx)
        clock.advance(WINDOW)
        assert engine.create(ctx) != token

    def test_create_matches_codec(self, engine: NonceEngine, ctx: ActionContext) -> None:
        expected = TokenCodec().derive(1000, "delete-post_42", "user:7", KEY)
        assert engine.create(ctx) == expected

    def test_verify_recent(self, engine: NonceEngine, ctx: ActionContext) -> None:
        assert engine.verify(engine.create(ctx), ctx) is VerifyResult.VALID_RECENT

    def test_verify_aging(
        self, engine: NonceEngine, clock: FixedClock, ctx: ActionContext
    ) -> None:
        token = engine.create(ctx)
        clock.advance(WINDOW)
        assert engine.verify(token, ctx) is VerifyResult.VALID_AGING

    def test_verify_expired(
        self, engine: NonceEngine, clock: FixedClock, ctx: ActionContext
    ) -> None:
        token = engine.create(ctx)
        clock.advance(2 * WINDOW)
        assert engine.verify(token, ctx) is VerifyResult.INVALID

    def test_token_from_future_window_invalid(
        self, engine: NonceEngine, clock: FixedClock, ctx: ActionContext
    ) -> None:
        token = engine.create(ctx)
        clock.advance(-WINDOW)
        assert engine.verify(token, ctx) is VerifyResult.INVALID

    def test_wrong_action(self, engine: NonceEngine, ctx: ActionContext) -> None:
        token = engine.create(ctx)
        assert engine.verify(token, ctx.with_action("delete-post_43")) is VerifyResult.INVALID

    def test_wrong_identity(self, engine: NonceEngine, ctx: ActionContext) -> None:
        token = engine.create(ctx)
        other = ActionContext(ctx.action, identity="user:8")
        assert engine.verify(token, other) is VerifyResult.INVALID

    def test_name_does_not_bind(self, engine: NonceEngine, ctx: ActionContext) -> None:
        """The field name only says where the token travels."""
        token = engine.create(ctx)
        assert engine.verify(token, ctx.with_name("_ajax_nonce")) is VerifyResult.VALID_RECENT

    def test_wrong_key(self, clock: FixedClock, ctx: ActionContext) -> None:
        old = NonceEngine(StaticKeyProvider(KEY), clock=clock)
        new = NonceEngine(StaticKeyProvider(b"rotated-key"), clock=clock)
        assert new.verify(old.create(ctx), ctx) is VerifyResult.INVALID

    def test_unset_action(self, engine: NonceEngine) -> None:
        ctx = ActionContext(-1, identity="user:7")
        token = engine.create(ctx)
        assert engine.verify(token, ActionContext("-1", identity="user:7")) is VerifyResult.VALID_RECENT
        assert engine.verify(token, ActionContext("unset", identity="user:7")) is VerifyResult.INVALID

    @pytest.mark.parametrize(
        "token",
        ["", None, 1234567890, "abcdefghijk", "éééééééééé", "abc\x00efghij", ["abc"]],
    )
    def test_malformed_tokens_are_invalid(
        self, engine: NonceEngine, ctx: ActionContext, token: object
    ) -> None:
        assert engine.verify(token, ctx) is VerifyResult.INVALID

    def test_tampered_token(self, engine: NonceEngine, ctx: ActionContext) -> None:
        token = engine.create(ctx)
        tampered = ("B" if token[0] == "A" else "A") + token[1:]
        assert engine.verify(tampered, ctx) is VerifyResult.INVALID


class TestIdentityPolicy:
    """Tests for the require_identity policy."""

    def test_create_requires_identity(self, engine: NonceEngine) -> None:
        with pytest.raises(InvalidIdentityError):
            engine.create(ActionContext("a"))

    def test_verify_requires_identity(self, engine: NonceEngine) -> None:
        with pytest.raises(InvalidIdentityError):
            engine.verify("abcdefghij", ActionContext("a"))

    def test_anonymous_allowed_when_disabled(self, clock: FixedClock) -> None:
        engine = NonceEngine(
            StaticKeyProvider(KEY),
            config=NonceConfig(require_identity=False),
            clock=clock,
        )
        ctx = ActionContext("comment")
        assert engine.verify(engine.create(ctx), ctx) is VerifyResult.VALID_RECENT


class TestLifetime:
    """Tests for configurable window count and size."""

    def _engine(self, clock: FixedClock, **kwargs: int) -> NonceEngine:
        return NonceEngine(StaticKeyProvider(KEY), config=NonceConfig(**kwargs), clock=clock)

    def test_single_window(self, clock: FixedClock, ctx: ActionContext) -> None:
        engine = self._engine(clock, lifetime_windows=1)
        token = engine.create(ctx)
        assert engine.verify(token, ctx) is VerifyResult.VALID_RECENT
        clock.advance(WINDOW)
        assert engine.verify(token, ctx) is VerifyResult.INVALID

    def test_three_windows(self, clock: FixedClock, ctx: ActionContext) -> None:
        engine = self._engine(clock, lifetime_windows=3)
        token = engine.create(ctx)
        clock.advance(2 * WINDOW)
        assert engine.verify(token, ctx) is VerifyResult.VALID_AGING
        clock.advance(WINDOW)
        assert engine.verify(token, ctx) is VerifyResult.INVALID

    def test_short_windows(self, ctx: ActionContext) -> None:
        clock = FixedClock(0)
        engine = self._engine(clock, window_seconds=60)
        token = engine.create(ctx)
        clock.set(59)
        assert engine.verify(token, ctx) is VerifyResult.VALID_RECENT
        clock.set(60)
        assert engine.verify(token, ctx) is VerifyResult.VALID_AGING
        clock.set(120)
        assert engine.verify(token, ctx) is VerifyResult.INVALID


# ===================================================================
# verify_request / refresh
# ===================================================================


class TestVerifyRequest:
    """Tests for verifying submitted form/query parameters."""

    def test_string_value(self, engine: NonceEngine, ctx: ActionContext) -> None:
        params = {"_wpnonce": engine.create(ctx), "action": "trash"}
        assert engine.verify_request(params, ctx) is VerifyResult.VALID_RECENT

    def test_list_value(self, engine: NonceEngine, ctx: ActionContext) -> None:
        params = {"_wpnonce": [engine.create(ctx), "ignored"]}
        assert engine.verify_request(params, ctx) is VerifyResult.VALID_RECENT

    def test_missing_field(self, engine: NonceEngine, ctx: ActionContext) -> None:
        assert engine.verify_request({"action": "trash"}, ctx) is VerifyResult.INVALID

    def test_empty_list(self, engine: NonceEngine, ctx: ActionContext) -> None:
        assert engine.verify_request({"_wpnonce": []}, ctx) is VerifyResult.INVALID

    def test_custom_name(self, engine: NonceEngine) -> None:
        ctx = ActionContext("signup", name="_signup_form", identity="|anon-session")
        token = engine.create(ctx)
        assert engine.verify_request({"_signup_form": token}, ctx) is VerifyResult.VALID_RECENT
        assert engine.verify_request({"_wpnonce": token}, ctx) is VerifyResult.INVALID

    def test_missing_field_still_checks_identity(self, engine: NonceEngine) -> None:
        with pytest.raises(InvalidIdentityError):
            engine.verify_request({}, ActionContext("a"))


class TestRefresh:
    """Tests for refreshing aging tokens."""

    def test_recent_token_needs_no_refresh(self, engine: NonceEngine, ctx: ActionContext) -> None:
        assert engine.refresh(engine.create(ctx), ctx) is None

    def test_aging_token_is_replaced(
        self, engine: NonceEngine, clock: FixedClock, ctx: ActionContext
    ) -> None:
        token = engine.create(ctx)
        clock.advance(WINDOW)
        fresh = engine.refresh(token, ctx)
        assert fresh is not None
        assert fresh != token
        assert engine.verify(fresh, ctx) is VerifyResult.VALID_RECENT

    def test_invalid_token_not_replaced(self, engine: NonceEngine, ctx: ActionContext) -> None:
        assert engine.refresh("AAAAAAAAAA", ctx) is None


# ===================================================================
# Field and URL helpers
# ===================================================================


class TestFieldHelpers:
    """Tests for render_field and field_items."""

    def test_field_items_with_referer(self, engine: NonceEngine, ctx: ActionContext) -> None:
        items = engine.field_items(ctx, referer="/wp-admin/edit.php")
        assert items == {
            "_wpnonce": engine.create(ctx),
            "_wp_http_referer": "/wp-admin/edit.php",
        }

    def test_field_items_without_referer(self, engine: NonceEngine, ctx: ActionContext) -> None:
        items = engine.field_items(ctx, include_referer_field=False, referer="/ignored")
        assert items == {"_wpnonce": engine.create(ctx)}

    def test_render_field(self, engine: NonceEngine, ctx: ActionContext) -> None:
        token = engine.create(ctx)
        rendered = engine.render_field(ctx, referer="/wp-admin/edit.php")
        assert rendered == f"_wpnonce={token}&_wp_http_referer=%2Fwp-admin%2Fedit.php"

    def test_render_field_without_referer(self, engine: NonceEngine, ctx: ActionContext) -> None:
        assert engine.render_field(ctx, False) == f"_wpnonce={engine.create(ctx)}"

    def test_render_field_default_empty_referer(
        self, engine: NonceEngine, ctx: ActionContext
    ) -> None:
        assert engine.render_field(ctx).endswith("&_wp_http_referer=")

    def test_render_field_custom_name(self, engine: NonceEngine) -> None:
        ctx = ActionContext("a", name="_ajax_nonce", identity="x")
        assert engine.render_field(ctx, False).startswith("_ajax_nonce=")

    def test_rendered_token_verifies(self, engine: NonceEngine, ctx: ActionContext) -> None:
        items = engine.field_items(ctx)
        assert engine.verify_request(items, ctx) is VerifyResult.VALID_RECENT


class TestAppendToUrl:
    """Tests for append_to_url."""

    def test_appends(self, engine: NonceEngine, ctx: ActionContext) -> None:
        url = engine.append_to_url("https://example.com/post.php?action=trash&post=42", ctx)
        assert url == (
            "https://example.com/post.php?action=trash&post=42"
            f"&_wpnonce={engine.create(ctx)}"
        )

    def test_replaces_stale_nonce(self, engine: NonceEngine, ctx: ActionContext) -> None:
        url = engine.append_to_url("/wp-admin/post.php?_wpnonce=stale", ctx)
        assert url == f"/wp-admin/post.php?_wpnonce={engine.create(ctx)}"

    def test_malformed(self, engine: NonceEngine, ctx: ActionContext) -> None:
        with pytest.raises(MalformedUrlError):
            engine.append_to_url("not a url", ctx)

    def test_keeps_existing_query_encoding(
        self, engine: NonceEngine, ctx: ActionContext
    ) -> None:
        url = engine.append_to_url("/p.php?q=%FF&preview&a=b%2Fc", ctx)
        assert url == f"/p.php?q=%FF&preview&a=b%2Fc&_wpnonce={engine.create(ctx)}"


# ===================================================================
# Logging and concurrency
# ===================================================================


class TestLogging:
    """Engine logging never exposes tokens or keys."""

    def test_verify_logs_outcome_without_token(
        self,
        engine: NonceEngine,
        ctx: ActionContext,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        token = engine.create(ctx)
        with caplog.at_level(logging.DEBUG, logger="action_nonce.engine"):
            engine.verify(token, ctx)
            engine.verify("AAAAAAAAAA", ctx)
        assert "VALID_RECENT" in caplog.text
        assert "no matching window" in caplog.text
        assert token not in caplog.text
        assert KEY.decode() not in caplog.text


class TestConcurrency:
    """A single engine is shared across threads without locking."""

    def test_parallel_create_and_verify(self, engine: NonceEngine) -> None:
        contexts = [ActionContext(f"edit-post_{i}", identity=f"user:{i % 7}") for i in range(200)]

        def round_trip(ctx: ActionContext) -> VerifyResult:
            return engine.verify(engine.create(ctx), ctx)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(round_trip, contexts))
        assert all(r is VerifyResult.VALID_RECENT for r in results)
