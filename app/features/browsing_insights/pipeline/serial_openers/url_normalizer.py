"""
URL normalization for grouping visits to the same resource.
"""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# Query parameters that change between visits without changing the resource
VOLATILE_PARAMS = frozenset(
    {"v", "view", "p", "pvs", "session", "sessionid", "sid", "ref", "source", "fbclid", "gclid"}
)
VOLATILE_PREFIXES = ("utm_",)


def is_volatile_param(name: str) -> bool:
    lowered = name.lower()
    return lowered in VOLATILE_PARAMS or lowered.startswith(VOLATILE_PREFIXES)


def normalize_url(url: str | None) -> str:
    """
    Canonical form of ``url`` for grouping.

    Drops the fragment and volatile query parameters, lowercases scheme and
    host, and trims a trailing slash from any path other than the root.
    Unparsable input is returned stripped but otherwise unchanged.
    """
    raw = (url or "").strip()
    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw

    if not parts.scheme or not parts.netloc:
        return raw

    query = urlencode(
        [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if not is_volatile_param(k)]
    )
    path = parts.path or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"

    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, query, ""))
