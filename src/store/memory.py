"""In-memory moderation store for tests and single-process use."""

import threading
from datetime import UTC, datetime

import structlog

from src.data_model import AuditEntry, Decision, ModerationRecord, ReviewOutcome
from src.dedup.title import normalize_title, titles_overlap
from src.store.errors import (
    DuplicateKeyError,
    InvalidReviewTransitionError,
    RecordNotFoundError,
)
from src.store.metrics import StoreMetrics


logger = structlog.get_logger()


class InMemoryModerationStore:
    """Dict-backed store with the same claim and audit rules as SQLite.

    Every operation runs under one lock, so the URL claim check and the
    insert form a single atomic step.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, ModerationRecord] = {}
        self._url_claims: dict[str, str] = {}
        self._audit: dict[str, list[AuditEntry]] = {}
        self._published: dict[str, datetime] = {}
        self._metrics = StoreMetrics.get_instance()
        self._log = logger.bind(component="store", backend="memory")

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def insert(self, record: ModerationRecord) -> str:
        """Persist a new record.

        Raises:
            DuplicateKeyError: If another record already claims the URL.
        """
        with self._lock:
            if record.claims_url and record.canonical_url is not None:
                holder = self._url_claims.get(record.canonical_url)
                if holder is not None:
                    self._metrics.record_claim_conflict()
                    raise DuplicateKeyError(record.canonical_url, holder)
                self._url_claims[record.canonical_url] = record.id
            self._records[record.id] = record
        self._metrics.record_insert()
        return record.id

    def get(self, record_id: str) -> ModerationRecord | None:
        with self._lock:
            return self._records.get(record_id)

    def all_records(self) -> list[ModerationRecord]:
        """Snapshot of every stored record, oldest first."""
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: (r.created_at, r.id))

    def find_by_url(self, canonical_url: str) -> ModerationRecord | None:
        with self._lock:
            matches = [
                r for r in self._records.values() if r.canonical_url == canonical_url
            ]
        if not matches:
            return None
        return min(matches, key=lambda r: (r.created_at, r.id))

    def find_by_title_prefix(self, prefix: str) -> list[ModerationRecord]:
        if not prefix:
            return []
        with self._lock:
            matches = [
                r
                for r in self._records.values()
                if titles_overlap(normalize_title(r.submission.title), prefix)
            ]
        return sorted(matches, key=lambda r: (r.created_at, r.id))

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
            InvalidReviewTransitionError: If the record is not awaiting review.
        """
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise RecordNotFoundError(record_id)
            if record.decision != Decision.QUEUED_FOR_REVIEW:
                raise InvalidReviewTransitionError(record_id, record.decision.value)
            if record.reviewed_at is not None:
                raise InvalidReviewTransitionError(record_id, "already-reviewed")

            entry = AuditEntry(
                record_id=record_id,
                outcome=outcome,
                reviewer_id=reviewer_id,
                note=note,
            )
            self._audit.setdefault(record_id, []).append(entry)
            self._records[record_id] = record.model_copy(
                update={"reviewed_at": entry.created_at, "reviewer_id": reviewer_id}
            )

        self._metrics.record_review()
        self._log.info(
            "review_recorded",
            record_id=record_id,
            outcome=outcome.value,
            reviewer_id=reviewer_id,
        )
        return entry

    def audit_log(self, record_id: str) -> list[AuditEntry]:
        with self._lock:
            return list(self._audit.get(record_id, []))

    def publish(self, record_id: str, published_at: datetime | None = None) -> bool:
        """Materialize a record into the published view.

        Raises:
            RecordNotFoundError: If the record does not exist.
        """
        with self._lock:
            if record_id not in self._records:
                raise RecordNotFoundError(record_id)
            if record_id in self._published:
                return False
            self._published[record_id] = published_at or datetime.now(UTC)
        self._metrics.record_publish()
        return True

    def is_published(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self._published
