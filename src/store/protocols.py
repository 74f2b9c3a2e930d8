"""Persistence boundary consumed by the moderation core."""

from datetime import datetime
from typing import Protocol, runtime_checkable

from src.data_model import AuditEntry, ModerationRecord, ReviewOutcome


@runtime_checkable
class ModerationStore(Protocol):
    """Narrow storage contract; no specific engine is assumed.

    Implementations must make ``insert`` an atomic check-and-insert on the
    canonical URL claim so that two racing submissions cannot both be
    stored as new.
    """

    def insert(self, record: ModerationRecord) -> str:
        """Persist a new record.

        Returns:
            The record id.

        Raises:
            DuplicateKeyError: If the record claims an already claimed URL.
        """
        ...

    def get(self, record_id: str) -> ModerationRecord | None:
        """Fetch a record by id."""
        ...

    def find_by_url(self, canonical_url: str) -> ModerationRecord | None:
        """Return the oldest record stored under a canonical URL."""
        ...

    def find_by_title_prefix(self, prefix: str) -> list[ModerationRecord]:
        """Return records whose normalized title contains or is contained by prefix."""
        ...

    def update_decision(
        self,
        record_id: str,
        outcome: ReviewOutcome,
        reviewer_id: str,
        note: str | None = None,
    ) -> AuditEntry:
        """Append a human review outcome for a queued record.

        Raises:
            RecordNotFoundError: If the record does not exist.
            InvalidReviewTransitionError: If the record is not queued for review.
        """
        ...

    def audit_log(self, record_id: str) -> list[AuditEntry]:
        """Return review entries for a record, oldest first."""
        ...

    def publish(self, record_id: str, published_at: datetime | None = None) -> bool:
        """Materialize a record into the published view.

        Returns:
            True if newly published, False if it was already published.
        """
        ...

    def is_published(self, record_id: str) -> bool:
        """Whether the record appears in the published view."""
        ...
