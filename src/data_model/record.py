"""Moderation record and review audit models."""

import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import Field

from src.data_model.analysis import ContentAnalysis
from src.data_model.base import StrictBaseModel
from src.data_model.submission import Submission


class Decision(str, Enum):
    """Terminal intake decision stored on a moderation record."""

    AUTO_APPROVED = "auto-approved"
    QUEUED_FOR_REVIEW = "queued-for-review"
    REJECTED = "rejected"


class Priority(str, Enum):
    """Review priority of a moderation record."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ReviewOutcome(str, Enum):
    """Outcome of a human review of a queued record."""

    APPROVED = "approved"
    REJECTED = "rejected"


def new_record_id() -> str:
    """Generate a unique moderation record id."""
    return uuid.uuid4().hex


class ModerationRecord(StrictBaseModel):
    """Persisted outcome of processing one submission.

    ``decision`` and ``reason_codes`` are fixed at creation. Later human
    review is stored as AuditEntry rows; only the nullable ``reviewed_at``
    and ``reviewer_id`` fields reflect the latest review.
    """

    id: str = Field(default_factory=new_record_id)
    submission: Submission
    analysis: ContentAnalysis | None = None
    decision: Decision
    reason_codes: list[str] = Field(min_length=1)
    priority: Priority = Priority.MEDIUM
    category: str | None = None
    canonical_url: str | None = None
    duplicate_of: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    reviewed_at: datetime | None = None
    reviewer_id: str | None = None

    @property
    def claims_url(self) -> bool:
        """Whether this record owns its canonical URL in the store.

        Only records that passed duplicate detection claim a URL, so that
        rejected attempts and duplicate references can share it.
        """
        return self.canonical_url is not None and self.decision in (
            Decision.AUTO_APPROVED,
            Decision.QUEUED_FOR_REVIEW,
        )


class AuditEntry(StrictBaseModel):
    """Append-only record of a human review transition."""

    entry_id: str = Field(default_factory=new_record_id)
    record_id: str = Field(min_length=1)
    outcome: ReviewOutcome
    reviewer_id: str = Field(min_length=1)
    note: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
