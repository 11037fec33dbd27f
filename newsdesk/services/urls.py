"""URL canonicalisation used for discovery and dedup keys."""

from __future__ import annotations
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

# Tracking/analytics query params that never change the page content
TRACKING_PARAMS = frozenset({
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content",
    "fbclid", "gclid", "mc_cid", "mc_eid", "ref", "source",
    "_ga", "_gl", "hsCtaTracking", "mkt_tok",
})

def normalize_url(url: str) -> str:
    """Force https, drop www., tracking params, fragment and trailing slash.

    Remaining query params are sorted so equivalent URLs compare equal.
    Unparseable input is returned unchanged.
    """
    url = (url or "").strip()
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        port = parts.port
    except ValueError:
        return url
    if not parts.scheme or not host:
        return url

    if host.startswith("www."):
        host = host[4:]
    netloc = host
    if port and port not in (80, 443):
        netloc = f"{host}:{port}"

    path = parts.path or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]

    params = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in TRACKING_PARAMS]
    params.sort()
    query = urlencode(params)

    return urlunsplit(("https", netloc, path, query, ""))

def extract_domain(url: str) -> str:
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host
