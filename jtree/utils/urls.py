"""
jtree.utils.urls - Resolution of the trace argument.

The positional argument is either a bare trace identifier or a link to a
trace in the Jaeger UI, e.g. ``http://jaeger:16686/trace/abc123``.
"""

from __future__ import annotations

from typing import Tuple
from urllib.parse import unquote, urlsplit

DEFAULT_JAEGER_URL = "http://localhost:16686"


def parse_input(value: str, default_url: str = DEFAULT_JAEGER_URL) -> Tuple[str, str]:
    """Split the trace argument into a base URL and a trace identifier.

    A URL whose path starts with ``trace/<id>`` yields its scheme and host
    as the base URL and the unescaped ``<id>`` as the identifier. Credentials
    in the link are dropped from the base URL. Anything after the
    identifier, and the query string, is ignored. Every other input,
    including URLs with a different path and strings without a scheme,
    is returned unchanged as the identifier with ``default_url``.

    Example:
        >>> parse_input("http://jaeger:16686/trace/xyz789")
        ('http://jaeger:16686', 'xyz789')
        >>> parse_input("abc-123")
        ('http://localhost:16686', 'abc-123')
    """
    try:
        parts = urlsplit(value)
    except ValueError:
        return default_url, value

    if not parts.scheme:
        return default_url, value

    segments = unquote(parts.path).strip("/").split("/")
    if len(segments) >= 2 and segments[0] == "trace":
        # userinfo stays out of the base URL
        host = parts.netloc.rpartition("@")[2]
        return f"{parts.scheme}://{host}", segments[1]

    return default_url, value
