"""Metrics collection for the intake pipeline."""

import threading
from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class IntakeMetrics:
    """Metrics for intake operations.

    Counters are updated from concurrent pipeline runs under a lock.

    Attributes:
        submissions_total: Submissions offered to the pipeline.
        rate_limited_total: Submissions denied by the rate limiter.
        auth_failed_total: Submissions denied by source authentication.
        validation_rejected_total: Records rejected by validation.
        duplicates_total: Records rejected as duplicates.
        auto_approved_total: Records auto-approved.
        queued_total: Records queued for human review.
        analyzer_fallback_total: Analyses replaced by the fallback.
        url_claim_races_total: Lost URL claims resolved as duplicates.
        persistence_failed_total: Records that could not be stored.
        effect_failures_total: Post-commit effects that failed.
        decisions_by_source: Persisted decision counts per source identity.
    """

    submissions_total: int = 0
    rate_limited_total: int = 0
    auth_failed_total: int = 0
    validation_rejected_total: int = 0
    duplicates_total: int = 0
    auto_approved_total: int = 0
    queued_total: int = 0
    analyzer_fallback_total: int = 0
    url_claim_races_total: int = 0
    persistence_failed_total: int = 0
    effect_failures_total: int = 0
    decisions_by_source: dict[str, int] = field(default_factory=dict)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    _instance: ClassVar["IntakeMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "IntakeMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def increment(self, counter: str, amount: int = 1) -> None:
        """Increment a named counter.

        Args:
            counter: Counter attribute name, e.g. ``"queued_total"``.
            amount: Amount to add.
        """
        with self._lock:
            setattr(self, counter, getattr(self, counter) + amount)

    def record_decision(self, source: str) -> None:
        """Record a persisted decision for a source.

        Args:
            source: Source identity.
        """
        with self._lock:
            self.decisions_by_source[source] = self.decisions_by_source.get(source, 0) + 1

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "submissions_total": self.submissions_total,
                "rate_limited_total": self.rate_limited_total,
                "auth_failed_total": self.auth_failed_total,
                "validation_rejected_total": self.validation_rejected_total,
                "duplicates_total": self.duplicates_total,
                "auto_approved_total": self.auto_approved_total,
                "queued_total": self.queued_total,
                "analyzer_fallback_total": self.analyzer_fallback_total,
                "url_claim_races_total": self.url_claim_races_total,
                "persistence_failed_total": self.persistence_failed_total,
                "effect_failures_total": self.effect_failures_total,
                "decisions_by_source": dict(self.decisions_by_source),
            }
