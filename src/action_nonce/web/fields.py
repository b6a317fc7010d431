"""Form-field representation of a nonce.

The engine does not emit HTML.  It hands the presentation layer an
ordered mapping of field names to values, or that mapping serialised as
an ``application/x-www-form-urlencoded`` body fragment.
"""
from __future__ import annotations

from urllib.parse import urlencode

from action_nonce.core.types import REFERER_FIELD_NAME
from action_nonce.web.urls import remove_query_arg


def field_items(name: str, token: str, referer: str | None = None) -> dict[str, str]:
    """Build the nonce field, plus the referer field when *referer* is given.

    The referer loses any ``_wp_http_referer`` parameter of its own so
    the value does not nest on repeated submissions.  An empty string is
    a valid referer (the request had none).
    """
    items = {name: token}
    if referer is not None:
        items[REFERER_FIELD_NAME] = (
            remove_query_arg(referer, REFERER_FIELD_NAME) if referer else ""
        )
    return items


def serialize_fields(items: dict[str, str]) -> str:
    """Serialise *items* as a URL-encoded form body fragment."""
    return urlencode(list(items.items()))
