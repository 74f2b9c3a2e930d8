"""Title normalization for fuzzy duplicate matching."""

import re


_WHITESPACE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Lowercase a title and collapse runs of whitespace."""
    return _WHITESPACE.sub(" ", title).strip().lower()


def title_prefix(title: str, length: int = 20) -> str:
    """Return the normalized prefix used to look up similar titles.

    Args:
        title: Raw title.
        length: Number of characters to keep.

    Returns:
        Normalized prefix, stripped of trailing whitespace.
    """
    return normalize_title(title)[:length].rstrip()


def titles_overlap(stored_title: str, prefix: str) -> bool:
    """Check whether a stored title contains, or is contained by, a prefix.

    Args:
        stored_title: Title of an existing record.
        prefix: Normalized prefix of the incoming title.

    Returns:
        True if either string contains the other. Blank values never match.
    """
    stored = normalize_title(stored_title)
    if not stored or not prefix:
        return False
    return prefix in stored or stored in prefix
