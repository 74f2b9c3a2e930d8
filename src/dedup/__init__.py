"""Duplicate detection by canonical URL and fuzzy title."""

from src.dedup.deduplicator import Deduplicator, DuplicateResult, MatchKind
from src.dedup.title import normalize_title, title_prefix, titles_overlap
from src.dedup.url import canonicalize_url


__all__ = [
    "Deduplicator",
    "DuplicateResult",
    "MatchKind",
    "canonicalize_url",
    "normalize_title",
    "title_prefix",
    "titles_overlap",
]
