"""Keyword matching for content categories and guideline terms.

Patterns are compiled once on initialization and reused for every
submission processed by a pipeline.
"""

import re
from dataclasses import dataclass, field


_WORD_CHARS_ONLY = re.compile(r"^[\w\s-]+$")


def compile_term_pattern(term: str) -> re.Pattern[str]:
    """Compile a keyword or phrase into a case-insensitive regex.

    Terms made only of word characters, spaces and hyphens get word-boundary
    anchors so that "art" does not match "party". Terms with punctuation
    (such as the ``tw:`` marker) use plain substring matching.

    Args:
        term: Raw keyword or phrase.

    Returns:
        Compiled regex pattern.
    """
    escaped = re.escape(term.lower())
    if _WORD_CHARS_ONLY.match(term):
        return re.compile(rf"\b{escaped}\b", re.IGNORECASE)
    return re.compile(escaped, re.IGNORECASE)


@dataclass(frozen=True)
class CategoryMatch:
    """Result of a category match.

    Attributes:
        category: Matched category slug.
        hits: Number of distinct keywords found.
        matched_keywords: Keywords that matched, in configuration order.
    """

    category: str
    hits: int
    matched_keywords: tuple[str, ...]


@dataclass
class CompiledCategory:
    """A category with pre-compiled keyword patterns."""

    name: str
    keywords: list[str]
    patterns: list[re.Pattern[str]] = field(default_factory=list)


class CategoryMatcher:
    """Matches text against category keyword maps."""

    def __init__(self, categories: dict[str, list[str]]) -> None:
        """Initialize the matcher.

        Args:
            categories: Category slug to keyword list, in priority order.
        """
        self._compiled: list[CompiledCategory] = [
            CompiledCategory(
                name=name,
                keywords=list(keywords),
                patterns=[compile_term_pattern(kw) for kw in keywords],
            )
            for name, keywords in categories.items()
        ]

    @property
    def category_count(self) -> int:
        """Get number of configured categories."""
        return len(self._compiled)

    def match_text(self, text: str) -> list[CategoryMatch]:
        """Find every category with at least one keyword in the text.

        Args:
            text: Text to search.

        Returns:
            Matches in configuration order.
        """
        matches: list[CategoryMatch] = []
        for compiled in self._compiled:
            found = tuple(
                keyword
                for keyword, pattern in zip(
                    compiled.keywords, compiled.patterns, strict=True
                )
                if pattern.search(text)
            )
            if found:
                matches.append(
                    CategoryMatch(
                        category=compiled.name, hits=len(found), matched_keywords=found
                    )
                )
        return matches

    def best_category(self, text: str) -> str | None:
        """Return the category with the most keyword hits.

        Ties go to the category listed first in configuration.

        Args:
            text: Text to search.

        Returns:
            Category slug, or None if nothing matched.
        """
        best: CategoryMatch | None = None
        for match in self.match_text(text):
            if best is None or match.hits > best.hits:
                best = match
        return best.category if best else None


class TermScanner:
    """Finds configured terms in text, preserving configuration order."""

    def __init__(self, terms: list[str]) -> None:
        self._terms = [(term, compile_term_pattern(term)) for term in terms]

    def find(self, text: str) -> list[str]:
        """Return the configured terms present in the text."""
        return [term for term, pattern in self._terms if pattern.search(text)]

    def any_present(self, text: str) -> bool:
        """Whether any configured term is present in the text."""
        return any(pattern.search(text) for _, pattern in self._terms)
