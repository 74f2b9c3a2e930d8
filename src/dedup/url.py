"""URL canonicalization utilities for duplicate detection."""

from urllib.parse import parse_qs, urlencode, urlparse, urlunparse


# Default tracking parameters to strip (common across many sites)
DEFAULT_STRIP_PARAMS: list[str] = [
    # UTM parameters
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "utm_id",
    # Social/sharing
    "fbclid",
    "gclid",
    "msclkid",
    "twclid",
    "igshid",
    # Analytics
    "_ga",
    "_gl",
    "mc_cid",
    "mc_eid",
    # Session/tracking
    "ref",
    "source",
    "via",
    "share",
]

_WEB_SCHEMES = frozenset({"http", "https"})


def canonicalize_url(
    url: str | None,
    strip_params: list[str] | None = None,
) -> str | None:
    """Canonicalize a source URL for duplicate detection.

    Canonicalization includes:
    - Lowercasing the whole URL (matching is case-insensitive)
    - Treating http and https as the same scheme
    - Adding a scheme to bare ``host/path`` URLs
    - Removing trailing slashes (except for root path)
    - Stripping tracking query parameters
    - Removing fragments

    Args:
        url: The URL to canonicalize.
        strip_params: Extra query parameters to strip on top of the defaults.

    Returns:
        Canonicalized URL string, or None for blank input.
    """
    if url is None or not url.strip():
        return None

    candidate = url.strip().lower()
    if "://" not in candidate:
        candidate = f"https://{candidate}"

    parsed = urlparse(candidate)

    scheme = "https" if parsed.scheme in _WEB_SCHEMES else parsed.scheme
    netloc = parsed.netloc
    if scheme == "https" and netloc.endswith(":443"):
        netloc = netloc[: -len(":443")]
    if netloc.endswith(":80"):
        netloc = netloc[: -len(":80")]

    path = parsed.path or "/"
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/")

    params_to_strip = DEFAULT_STRIP_PARAMS + list(strip_params or [])
    query = _filter_query_params(parsed.query, params_to_strip)

    return urlunparse((scheme, netloc, path, parsed.params, query, ""))


def _filter_query_params(query: str, strip_params: list[str]) -> str:
    """Filter out tracking parameters from query string.

    Args:
        query: Original query string.
        strip_params: List of parameter names to remove.

    Returns:
        Filtered query string with keys sorted for deterministic output.
    """
    if not query:
        return ""

    params = parse_qs(query, keep_blank_values=True)
    strip_set = {p.lower() for p in strip_params}

    filtered = {
        key: value
        for key, value in sorted(params.items())
        if key.lower() not in strip_set
    }

    if not filtered:
        return ""

    return urlencode(filtered, doseq=True, safe="")
