"""Duplicate detection against previously stored submissions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from src.data_model import Submission
from src.dedup.title import title_prefix
from src.dedup.url import canonicalize_url


if TYPE_CHECKING:
    from src.store.protocols import ModerationStore

logger = structlog.get_logger()


class MatchKind(str, Enum):
    """Which rule matched a duplicate."""

    URL = "matched-by-url"
    TITLE = "matched-by-title"


@dataclass(frozen=True)
class DuplicateResult:
    """Outcome of a duplicate check.

    Attributes:
        is_duplicate: Whether any stored record matched.
        matches: Ids of matched records, oldest first.
        matched_by: Rule that produced the match.
        canonical_url: Canonical form of the submission URL, if any.
    """

    is_duplicate: bool
    matches: list[str] = field(default_factory=list)
    matched_by: MatchKind | None = None
    canonical_url: str | None = None

    @property
    def reason_codes(self) -> list[str]:
        """Reason codes for a duplicate rejection."""
        if not self.is_duplicate or self.matched_by is None:
            return []
        return ["duplicate", self.matched_by.value]


class Deduplicator:
    """Finds prior submissions of the same content.

    Rules apply in order and the first match wins: exact canonical URL,
    then normalized title prefix. Records of every decision count,
    including rejected ones.
    """

    def __init__(
        self,
        store: "ModerationStore",
        title_prefix_length: int = 20,
        strip_params: list[str] | None = None,
    ) -> None:
        """Initialize the deduplicator.

        Args:
            store: Store queried for existing records.
            title_prefix_length: Characters of normalized title to match on.
            strip_params: Extra query parameters removed during URL
                canonicalization.
        """
        self._store = store
        self._prefix_length = title_prefix_length
        self._strip_params = strip_params or []
        self._log = logger.bind(component="dedup")

    def canonical_url(self, submission: Submission) -> str | None:
        """Canonicalize the submission's source URL."""
        if not submission.source_url:
            return None
        return canonicalize_url(submission.source_url, self._strip_params)

    def find_duplicates(self, submission: Submission) -> DuplicateResult:
        """Check a submission against stored records.

        Args:
            submission: Normalized submission.

        Returns:
            Duplicate result with matched record ids.
        """
        canonical = self.canonical_url(submission)

        if canonical is not None:
            existing = self._store.find_by_url(canonical)
            if existing is not None:
                self._log.info(
                    "duplicate_detected",
                    matched_by=MatchKind.URL.value,
                    match_count=1,
                )
                return DuplicateResult(
                    is_duplicate=True,
                    matches=[existing.id],
                    matched_by=MatchKind.URL,
                    canonical_url=canonical,
                )

        prefix = title_prefix(submission.title, self._prefix_length)
        if prefix:
            similar = self._store.find_by_title_prefix(prefix)
            if similar:
                self._log.info(
                    "duplicate_detected",
                    matched_by=MatchKind.TITLE.value,
                    match_count=len(similar),
                )
                return DuplicateResult(
                    is_duplicate=True,
                    matches=[record.id for record in similar],
                    matched_by=MatchKind.TITLE,
                    canonical_url=canonical,
                )

        return DuplicateResult(is_duplicate=False, canonical_url=canonical)
