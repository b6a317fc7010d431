"""URL validation and query-string editing.

All helpers are *synchronous* and side-effect-free.  Accepted URLs are
either absolute ``http``/``https`` URLs with a host, or root-relative
paths (``/wp-admin/post.php?...``).  Anything else raises
:class:`~action_nonce.core.errors.MalformedUrlError`.
"""
from __future__ import annotations

from urllib.parse import SplitResult, quote_plus, unquote_plus, urlsplit, urlunsplit

from action_nonce.core.errors import MalformedUrlError

ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})


def _has_unsafe_chars(url: str) -> bool:
    return any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in url)


def validate_url(url: str) -> SplitResult:
    """Parse *url* and return its components.

    Raises
    ------
    MalformedUrlError
        If *url* is empty, contains whitespace or control characters, has
        an unsupported scheme, lacks a host, has an invalid port, or is
        neither absolute nor root-relative.
    """
    if not isinstance(url, str) or not url:
        raise MalformedUrlError("URL must be a non-empty string", details={"url": url})
    if _has_unsafe_chars(url):
        raise MalformedUrlError(
            "URL contains whitespace or control characters", details={"url": url}
        )
    try:
        parts = urlsplit(url)
        # Accessing .port validates it; urlsplit itself is lenient.
        parts.port  # noqa: B018
    except ValueError as exc:
        raise MalformedUrlError(f"URL cannot be parsed: {exc}", details={"url": url}) from exc

    if parts.scheme:
        if parts.scheme.lower() not in ALLOWED_SCHEMES:
            raise MalformedUrlError(
                f"Unsupported URL scheme: {parts.scheme}", details={"url": url}
            )
        if not parts.hostname:
            raise MalformedUrlError("URL has no host", details={"url": url})
        return parts

    if parts.netloc or url.startswith("/"):
        return parts
    raise MalformedUrlError(
        "URL must be absolute or start with '/'", details={"url": url}
    )


def _without_param(query: str, name: str) -> list[str]:
    # Segments other than *name* are kept verbatim.
    return [
        segment
        for segment in query.split("&")
        if segment and unquote_plus(segment.partition("=")[0]) != name
    ]


def add_query_arg(url: str, name: str, value: str) -> str:
    """Return *url* with ``name=value`` in its query string.

    An existing parameter called *name* is replaced, not duplicated.
    Other parameters keep their order and their original encoding; the
    fragment is preserved.
    """
    parts = validate_url(url)
    segments = _without_param(parts.query, name)
    segments.append(f"{quote_plus(name)}={quote_plus(value)}")
    return urlunsplit(parts._replace(query="&".join(segments)))


def remove_query_arg(url: str, name: str) -> str:
    """Return *url* without any ``name`` query parameter."""
    parts = validate_url(url)
    if not parts.query:
        return url
    return urlunsplit(parts._replace(query="&".join(_without_param(parts.query, name))))
