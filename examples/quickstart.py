#!/usr/bin/env python3
"""action-nonce quickstart.

Demonstrates the core workflow:

1. Create a nonce engine with a key and a controllable clock.
2. Build an action context for a logged-in user.
3. Protect a link and a form.
4. Verify the submitted token as time passes.

Run:
    python examples/quickstart.py
"""
from __future__ import annotations

import logging
from urllib.parse import parse_qs, urlsplit

from action_nonce import (
    ActionContext,
    FixedClock,
    NonceEngine,
    StaticKeyProvider,
    build_identity,
    generate_secret_key,
)

HALF_DAY = 43_200


def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    # -- Step 1: Create the engine -------------------------------------------
    # Production code would use EnvironmentKeyProvider() and the system clock.
    clock = FixedClock(1000 * HALF_DAY)
    engine = NonceEngine(StaticKeyProvider(generate_secret_key()), clock=clock)
    print(f"[1] Engine created at tick {engine.tick()}")

    # -- Step 2: Scope a nonce to an action and a session --------------------
    ctx = ActionContext(
        "delete-post_42",
        identity=build_identity(7, "c2Vzc2lvbi10b2tlbg"),
    )
    print(f"[2] Context: action={ctx.action!r} name={ctx.name!r}")

    # -- Step 3: Protect a link and a form -----------------------------------
    link = engine.append_to_url("https://example.com/wp-admin/post.php?action=trash&post=42", ctx)
    body = engine.render_field(ctx, referer="/wp-admin/edit.php")
    print(f"[3] Link: {link}")
    print(f"    Form: {body}")

    # -- Step 4: Verify as time passes ---------------------------------------
    submitted = parse_qs(urlsplit(link).query)
    for label in ("issued window", "next window", "two windows later"):
        result = engine.verify_request(submitted, ctx)
        print(f"[4] {label:<18} -> {result.name}")
        clock.advance(HALF_DAY)


if __name__ == "__main__":
    main()
