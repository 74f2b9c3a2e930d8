"""Metrics collection for the ranker module."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class RankerMetrics:
    """Metrics for weekly selection runs.

    Attributes:
        candidates_in: Candidates in the last run.
        selections_total: Completed selection runs.
        score_values: Composite scores of the last run.
        shortlist_count: Shortlist size of the last run.
        diversity_picks_count: Diversity picks in the last run.
        emerging_voices_count: Emerging-voice picks in the last run.
        confidence: Confidence of the last top pick.
        scoring_duration_ms: Time spent scoring in the last run.
    """

    candidates_in: int = 0
    selections_total: int = 0
    score_values: list[float] = field(default_factory=list)
    shortlist_count: int = 0
    diversity_picks_count: int = 0
    emerging_voices_count: int = 0
    confidence: int = 0
    scoring_duration_ms: float = 0.0

    _instance: ClassVar["RankerMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "RankerMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_candidates_in(self, count: int) -> None:
        """Record input candidate count and clear per-run scores."""
        self.candidates_in = count
        self.score_values = []

    def record_score(self, score: float) -> None:
        """Record a composite score for percentile calculation."""
        self.score_values.append(score)

    def record_selection(
        self,
        shortlist: int,
        diversity_picks: int,
        emerging_voices: int,
        confidence: int,
    ) -> None:
        """Record slate sizes and confidence of a completed run."""
        self.selections_total += 1
        self.shortlist_count = shortlist
        self.diversity_picks_count = diversity_picks
        self.emerging_voices_count = emerging_voices
        self.confidence = confidence

    def record_scoring_duration(self, duration_ms: float) -> None:
        """Record scoring duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        self.scoring_duration_ms = duration_ms

    def get_score_percentiles(self) -> dict[str, float]:
        """Calculate score percentiles (p50/p90/p99).

        Returns:
            Dictionary with p50, p90, p99 values.
        """
        if not self.score_values:
            return {"p50": 0.0, "p90": 0.0, "p99": 0.0}

        sorted_scores = sorted(self.score_values)
        n = len(sorted_scores)

        def percentile(p: float) -> float:
            idx = int(p * n / 100)
            return sorted_scores[min(idx, n - 1)]

        return {
            "p50": percentile(50),
            "p90": percentile(90),
            "p99": percentile(99),
        }

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "candidates_in": self.candidates_in,
            "selections_total": self.selections_total,
            "shortlist_count": self.shortlist_count,
            "diversity_picks_count": self.diversity_picks_count,
            "emerging_voices_count": self.emerging_voices_count,
            "confidence": self.confidence,
            "scoring_duration_ms": self.scoring_duration_ms,
            "score_percentiles": self.get_score_percentiles(),
        }
