"""SQLite moderation store implementation."""

import json
import sqlite3
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

import structlog

from src.data_model import (
    AuditEntry,
    ContentAnalysis,
    Decision,
    ModerationRecord,
    Priority,
    ReviewOutcome,
    Submission,
)
from src.dedup.title import normalize_title
from src.store.errors import (
    ConnectionError as StoreConnectionError,
    DuplicateKeyError,
    InvalidReviewTransitionError,
    RecordNotFoundError,
)
from src.store.metrics import StoreMetrics, TransactionContext
from src.store.migrations import CURRENT_VERSION, MigrationManager


logger = structlog.get_logger()


class SqliteModerationStore:
    """SQLite implementation of the moderation persistence boundary.

    The ``url_claim`` column carries a UNIQUE constraint and is populated
    only for records that claim their canonical URL, which makes insert an
    atomic check-and-insert. A single connection is shared between worker
    threads and serialized with a lock.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file (``:memory:`` is accepted).
        """
        self._db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._metrics = StoreMetrics.get_instance()
        self._log = logger.bind(component="store", db_path=self._db_path)

    @property
    def is_connected(self) -> bool:
        """Check if connected to database."""
        return self._conn is not None

    def connect(self) -> None:
        """Open connection to database and apply migrations."""
        if self._conn is not None:
            return

        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        self._log.info("connecting_to_database")
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.execute("PRAGMA foreign_keys=ON")

        migration_mgr = MigrationManager(self._conn)
        old_version = migration_mgr.get_current_version()
        applied = migration_mgr.apply_migrations()

        self._log.info(
            "database_connected",
            old_version=old_version,
            new_version=CURRENT_VERSION,
            migrations_applied=applied,
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._log.info("database_closed")

    def __enter__(self) -> "SqliteModerationStore":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()

    def _ensure_connected(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreConnectionError("Database not connected. Call connect() first.")
        return self._conn

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[TransactionContext]:
        """Context manager for transactions with timing and logging.

        Args:
            operation: Name of the operation for logging.

        Yields:
            Transaction context with timing information.
        """
        with self._lock:
            conn = self._ensure_connected()
            ctx = TransactionContext(
                tx_id=str(uuid.uuid4())[:8],
                start_time_ns=time.perf_counter_ns(),
                operation=operation,
            )
            try:
                yield ctx
                conn.commit()
            except Exception:
                conn.rollback()
                self._log.warning("transaction_rolled_back", tx_id=ctx.tx_id, op=operation)
                raise

            duration_ms = (time.perf_counter_ns() - ctx.start_time_ns) / 1_000_000
            self._metrics.record_tx_duration(duration_ms)
            self._log.debug(
                "transaction_complete",
                tx_id=ctx.tx_id,
                op=operation,
                affected_rows=ctx.affected_rows,
                duration_ms=round(duration_ms, 2),
            )

    # ===== Records =====

    def insert(self, record: ModerationRecord) -> str:
        """Persist a new record, enforcing the canonical URL claim.

        Args:
            record: Record to persist.

        Returns:
            The record id.

        Raises:
            DuplicateKeyError: If another record already claims the URL.
        """
        url_claim = record.canonical_url if record.claims_url else None
        try:
            with self._transaction("insert_record") as ctx:
                conn = self._ensure_connected()
                conn.execute(
                    """
                    INSERT INTO records (
                        id, canonical_url, url_claim, title_key, decision,
                        priority, category, reason_codes_json, duplicate_of_json,
                        submission_json, analysis_json, created_at,
                        reviewed_at, reviewer_id
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, NULL, NULL)
                    """,
                    (
                        record.id,
                        record.canonical_url,
                        url_claim,
                        normalize_title(record.submission.title),
                        record.decision.value,
                        record.priority.value,
                        record.category,
                        json.dumps(record.reason_codes),
                        json.dumps(record.duplicate_of),
                        record.submission.model_dump_json(),
                        record.analysis.model_dump_json() if record.analysis else None,
                        record.created_at.isoformat(),
                    ),
                )
                ctx.add_affected_rows(1)
        except sqlite3.IntegrityError as e:
            if url_claim is None or "url_claim" not in str(e):
                raise
            self._metrics.record_claim_conflict()
            existing = self._claim_holder(url_claim)
            raise DuplicateKeyError(url_claim, existing) from e

        self._metrics.record_insert()
        return record.id

    def _claim_holder(self, url_claim: str) -> str | None:
        with self._lock:
            row = (
                self._ensure_connected()
                .execute("SELECT id FROM records WHERE url_claim = ?", (url_claim,))
                .fetchone()
            )
        return row["id"] if row else None

    def get(self, record_id: str) -> ModerationRecord | None:
        """Fetch a record by id.

        Args:
            record_id: Record id.

        Returns:
            The record, or None if not found.
        """
        with self._lock:
            row = (
                self._ensure_connected()
                .execute("SELECT * FROM records WHERE id = ?", (record_id,))
                .fetchone()
            )
        return self._row_to_record(row) if row else None

    def find_by_url(self, canonical_url: str) -> ModerationRecord | None:
        """Return the oldest record stored under a canonical URL.

        Args:
            canonical_url: Canonicalized source URL.

        Returns:
            The oldest matching record, or None.
        """
        with self._lock:
            row = (
                self._ensure_connected()
                .execute(
                    """
                    SELECT * FROM records WHERE canonical_url = ?
                    ORDER BY created_at ASC, id ASC LIMIT 1
                    """,
                    (canonical_url,),
                )
                .fetchone()
            )
        return self._row_to_record(row) if row else None

    def find_by_title_prefix(self, prefix: str) -> list[ModerationRecord]:
        """Return records whose normalized title contains or is contained by prefix.

        Args:
            prefix: Normalized title prefix.

        Returns:
            Matching records, oldest first.
        """
        if not prefix:
            return []
        with self._lock:
            rows = (
                self._ensure_connected()
                .execute(
                    """
                    SELECT * FROM records
                    WHERE title_key != ''
                      AND (instr(title_key, ?) > 0 OR instr(?, title_key) > 0)
                    ORDER BY created_at ASC, id ASC
                    """,
                    (prefix, prefix),
                )
                .fetchall()
            )
        return [self._row_to_record(row) for row in rows]

    # ===== Review audit =====

    def update_decision(
        self,
        record_id: str,
        outcome: ReviewOutcome,
        reviewer_id: str,
        note: str | None = None,
    ) -> AuditEntry:
        """Append a human review outcome for a queued record.

        The intake decision columns are never rewritten; the review lands in
        ``audit_log`` and the ``reviewed_at``/``reviewer_id`` projection.

        Args:
            record_id: Reviewed record id.
            outcome: Review outcome.
            reviewer_id: Reviewer identity.
            note: Optional reviewer note.

        Returns:
            The appended audit entry.

        Raises:
            RecordNotFoundError: If the record does not exist.
            InvalidReviewTransitionError: If the record is not awaiting review.
        """
        entry = AuditEntry(
            record_id=record_id, outcome=outcome, reviewer_id=reviewer_id, note=note
        )
        with self._transaction("update_decision") as ctx:
            conn = self._ensure_connected()
            row = conn.execute(
                "SELECT decision, reviewed_at FROM records WHERE id = ?", (record_id,)
            ).fetchone()
            if row is None:
                raise RecordNotFoundError(record_id)
            if row["decision"] != Decision.QUEUED_FOR_REVIEW.value:
                raise InvalidReviewTransitionError(record_id, row["decision"])
            if row["reviewed_at"] is not None:
                raise InvalidReviewTransitionError(record_id, "already-reviewed")

            conn.execute(
                """
                INSERT INTO audit_log (
                    entry_id, record_id, outcome, reviewer_id, note, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.entry_id,
                    record_id,
                    outcome.value,
                    reviewer_id,
                    note,
                    entry.created_at.isoformat(),
                ),
            )
            conn.execute(
                "UPDATE records SET reviewed_at = ?, reviewer_id = ? WHERE id = ?",
                (entry.created_at.isoformat(), reviewer_id, record_id),
            )
            ctx.add_affected_rows(2)

        self._metrics.record_review()
        self._log.info(
            "review_recorded",
            record_id=record_id,
            outcome=outcome.value,
            reviewer_id=reviewer_id,
        )
        return entry

    def audit_log(self, record_id: str) -> list[AuditEntry]:
        """Return review entries for a record, oldest first.

        Args:
            record_id: Record id.

        Returns:
            Audit entries.
        """
        with self._lock:
            rows = (
                self._ensure_connected()
                .execute(
                    """
                    SELECT * FROM audit_log WHERE record_id = ?
                    ORDER BY created_at ASC, entry_id ASC
                    """,
                    (record_id,),
                )
                .fetchall()
            )
        return [
            AuditEntry(
                entry_id=row["entry_id"],
                record_id=row["record_id"],
                outcome=ReviewOutcome(row["outcome"]),
                reviewer_id=row["reviewer_id"],
                note=row["note"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    # ===== Published view =====

    def publish(self, record_id: str, published_at: datetime | None = None) -> bool:
        """Materialize a record into the published view.

        Args:
            record_id: Record to publish.
            published_at: Publication time (defaults to now).

        Returns:
            True if newly published, False if already published.

        Raises:
            RecordNotFoundError: If the record does not exist.
        """
        when = published_at or datetime.now(UTC)
        with self._transaction("publish") as ctx:
            conn = self._ensure_connected()
            exists = conn.execute(
                "SELECT 1 FROM records WHERE id = ?", (record_id,)
            ).fetchone()
            if exists is None:
                raise RecordNotFoundError(record_id)
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO published_content (record_id, published_at)
                VALUES (?, ?)
                """,
                (record_id, when.isoformat()),
            )
            ctx.add_affected_rows(cursor.rowcount)
            newly_published = cursor.rowcount > 0

        if newly_published:
            self._metrics.record_publish()
        return newly_published

    def is_published(self, record_id: str) -> bool:
        """Whether the record appears in the published view."""
        with self._lock:
            row = (
                self._ensure_connected()
                .execute(
                    "SELECT 1 FROM published_content WHERE record_id = ?", (record_id,)
                )
                .fetchone()
            )
        return row is not None

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ModerationRecord:
        return ModerationRecord(
            id=row["id"],
            submission=Submission.model_validate_json(row["submission_json"]),
            analysis=(
                ContentAnalysis.model_validate_json(row["analysis_json"])
                if row["analysis_json"]
                else None
            ),
            decision=Decision(row["decision"]),
            reason_codes=json.loads(row["reason_codes_json"]),
            priority=Priority(row["priority"]),
            category=row["category"],
            canonical_url=row["canonical_url"],
            duplicate_of=json.loads(row["duplicate_of_json"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            reviewed_at=(
                datetime.fromisoformat(row["reviewed_at"]) if row["reviewed_at"] else None
            ),
            reviewer_id=row["reviewer_id"],
        )
