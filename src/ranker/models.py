"""Data models for weekly story selection."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated

from pydantic import Field

from src.data_model import ModerationRecord, StrictBaseModel


class RankingCandidate(StrictBaseModel):
    """A persisted submission eligible for weekly selection.

    Attributes:
        id: Record identifier.
        category: Content category.
        submitted_at: Submission time.
        community_interest_score: Aggregate community interest (0-100).
        total_votes: Number of community votes.
        relevance_score: Analyzer relevance scaled to 0-100.
        curator_id: Identity of the submitting curator.
        title: Display title.
    """

    id: Annotated[str, Field(min_length=1)]
    category: str
    submitted_at: datetime
    community_interest_score: Annotated[float, Field(ge=0.0, le=100.0)]
    total_votes: Annotated[int, Field(ge=0)]
    relevance_score: Annotated[float, Field(ge=0.0, le=100.0)]
    curator_id: str | None = None
    title: str = ""

    @classmethod
    def from_record(
        cls,
        record: ModerationRecord,
        community_interest_score: float,
        total_votes: int,
    ) -> "RankingCandidate":
        """Build a candidate from a moderation record and its vote tally.

        Args:
            record: Persisted moderation record.
            community_interest_score: Aggregate interest (0-100).
            total_votes: Number of community votes.

        Returns:
            Ranking candidate.
        """
        relevance = record.analysis.relevance * 100.0 if record.analysis else 0.0
        return cls(
            id=record.id,
            category=record.category or "uncategorized",
            submitted_at=record.submission.received_at,
            community_interest_score=community_interest_score,
            total_votes=total_votes,
            relevance_score=relevance,
            curator_id=record.submission.submitter_identity,
            title=record.submission.title,
        )


class CuratorHistory(StrictBaseModel):
    """Track record of a curator, supplied by the caller.

    Attributes:
        submission_count: Submissions made by the curator.
        approval_rate: Share of submissions approved (0-1).
        community_feedback: Community feedback score (0-100).
        days_active: Days since the curator joined.
    """

    submission_count: Annotated[int, Field(ge=0)] = 0
    approval_rate: Annotated[float, Field(ge=0.0, le=1.0)] = 0.5
    community_feedback: Annotated[float, Field(ge=0.0, le=100.0)] = 0.0
    days_active: Annotated[int, Field(ge=0)] = 0


@dataclass(frozen=True)
class CandidateMetrics:
    """Per-candidate metrics, each on a 0-100 scale.

    Derived at selection time and never persisted.
    """

    interest: float
    relevance: float
    freshness: float
    curator_reputation: float
    diversity: float
    engagement: float
    total_votes: int

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "interest": self.interest,
            "relevance": self.relevance,
            "freshness": self.freshness,
            "curator_reputation": self.curator_reputation,
            "diversity": self.diversity,
            "engagement": self.engagement,
            "total_votes": float(self.total_votes),
        }


@dataclass(frozen=True)
class RankedCandidate:
    """A candidate with its metrics, composite score and rank.

    Attributes:
        candidate: The ranked candidate.
        metrics: Metric breakdown.
        composite_score: Weighted sum of metrics.
        rank: 1-based rank after sorting.
    """

    candidate: RankingCandidate
    metrics: CandidateMetrics
    composite_score: float
    rank: int = 0


@dataclass(frozen=True)
class Selection:
    """Outcome of a weekly selection.

    Attributes:
        top: Rank-1 candidate.
        shortlist: Ranks 2-8.
        diversity_picks: Candidates from categories absent from top and shortlist.
        emerging_voices: Strong candidates from less established curators.
        confidence: Confidence in the top pick (50-100).
        reasoning: Plain-language reasons for the top pick, never empty.
        algorithm_version: Version of the selection algorithm.
        ranked: Every candidate in rank order.
    """

    top: RankedCandidate
    shortlist: list[RankedCandidate]
    diversity_picks: list[RankedCandidate]
    emerging_voices: list[RankedCandidate]
    confidence: int
    reasoning: list[str]
    algorithm_version: str
    ranked: list[RankedCandidate] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Convert the selection to a JSON-friendly dictionary."""

        def ids(items: list[RankedCandidate]) -> list[str]:
            return [item.candidate.id for item in items]

        return {
            "top": self.top.candidate.id,
            "shortlist": ids(self.shortlist),
            "diversity_picks": ids(self.diversity_picks),
            "emerging_voices": ids(self.emerging_voices),
            "confidence": self.confidence,
            "reasoning": list(self.reasoning),
            "algorithm_version": self.algorithm_version,
            "scores": {
                item.candidate.id: {
                    "rank": item.rank,
                    "composite_score": item.composite_score,
                    **item.metrics.to_dict(),
                }
                for item in self.ranked
            },
        }
