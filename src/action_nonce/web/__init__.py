"""Pure helpers for carrying nonces in forms and URLs.

Public API
----------
- :func:`validate_url`, :func:`add_query_arg`, :func:`remove_query_arg`
- :func:`field_items`, :func:`serialize_fields`
"""
from __future__ import annotations

from action_nonce.web.fields import field_items, serialize_fields
from action_nonce.web.urls import (
    ALLOWED_SCHEMES,
    add_query_arg,
    remove_query_arg,
    validate_url,
)

__all__ = [
    "ALLOWED_SCHEMES",
    "add_query_arg",
    "field_items",
    "remove_query_arg",
    "serialize_fields",
    "validate_url",
]
