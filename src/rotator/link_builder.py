"""Affiliate link construction.

Appends the ``marker`` query parameter (with optional dot-notation subid)
to a base URL, making sure a slash precedes the query string.
"""

from __future__ import annotations

MARKER_PARAM = "marker"


def format_marker(marker_id: str, subid: str | None = None) -> str:
    """Return the marker parameter value, ``id`` or ``id.subid``."""
    if subid:
        return f"{marker_id}.{subid}"
    return marker_id


def build_affiliate_link(base_url: str, marker_id: str, subid: str | None = None) -> str:
    """Build an affiliate link carrying ``marker_id``.

    Not idempotent: calling it on its own output appends a second
    ``marker=`` parameter.

    Examples:
        >>> build_affiliate_link("https://x.test/a", "m1")
        'https://x.test/a/?marker=m1'
        >>> build_affiliate_link("https://x.test/a?x=1", "m1", "s1")
        'https://x.test/a/?x=1&marker=m1.s1'
    """
    param = f"{MARKER_PARAM}={format_marker(marker_id, subid)}"

    if "?" not in base_url:
        if not base_url.endswith("/"):
            base_url += "/"
        return f"{base_url}?{param}"

    path, query = base_url.split("?", 1)
    if not path.endswith("/"):
        path += "/"
    return f"{path}?{query}&{param}"
