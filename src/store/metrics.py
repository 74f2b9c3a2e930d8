"""Metrics collection for the moderation store."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class StoreMetrics:
    """Metrics for moderation store operations.

    Attributes:
        records_inserted_total: Records persisted.
        url_claim_conflicts_total: Inserts refused by the URL uniqueness claim.
        reviews_recorded_total: Human review entries appended.
        records_published_total: Records materialized into the published view.
        db_tx_duration_ms: Cumulative transaction duration in milliseconds.
        db_tx_count: Number of transactions.
    """

    records_inserted_total: int = 0
    url_claim_conflicts_total: int = 0
    reviews_recorded_total: int = 0
    records_published_total: int = 0
    db_tx_duration_ms: float = 0.0
    db_tx_count: int = 0

    _instance: ClassVar["StoreMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "StoreMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_insert(self) -> None:
        """Record a persisted record."""
        self.records_inserted_total += 1

    def record_claim_conflict(self) -> None:
        """Record an insert refused by the URL claim."""
        self.url_claim_conflicts_total += 1

    def record_review(self) -> None:
        """Record an appended review entry."""
        self.reviews_recorded_total += 1

    def record_publish(self) -> None:
        """Record a newly published record."""
        self.records_published_total += 1

    def record_tx_duration(self, duration_ms: float) -> None:
        """Record transaction duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        self.db_tx_duration_ms += duration_ms
        self.db_tx_count += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "records_inserted_total": self.records_inserted_total,
            "url_claim_conflicts_total": self.url_claim_conflicts_total,
            "reviews_recorded_total": self.reviews_recorded_total,
            "records_published_total": self.records_published_total,
            "db_tx_duration_ms": self.db_tx_duration_ms,
            "db_tx_count": self.db_tx_count,
        }


@dataclass
class TransactionContext:
    """Context for a single transaction with timing.

    Attributes:
        tx_id: Unique transaction identifier.
        start_time_ns: Start time in nanoseconds.
        operation: The operation being performed.
    """

    tx_id: str
    start_time_ns: int
    operation: str
    affected_rows: int = field(default=0)

    def add_affected_rows(self, rows: int) -> None:
        """Add to the affected row count.

        Args:
            rows: Number of rows affected.
        """
        self.affected_rows += rows
