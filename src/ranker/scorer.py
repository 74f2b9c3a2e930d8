"""Candidate metric scoring for weekly story selection.

Every metric is on a 0-100 scale. The functions are pure so they can be
tested at their boundaries; CandidateScorer binds them to a fixed clock
and the caller-supplied curator and category history.
"""

from collections.abc import Mapping
from datetime import UTC, datetime

from src.config.schemas.policy import RankingWeights
from src.ranker.constants import (
    DIVERSITY_BANDS,
    DIVERSITY_CROWDED_SCORE,
    ENGAGEMENT_INTEREST_FACTOR,
    ENGAGEMENT_VOTE_CAP,
    ENGAGEMENT_VOTE_FACTOR,
    FRESHNESS_BANDS,
    FRESHNESS_DECAY_PER_DAY,
    FRESHNESS_DECAY_START_HOURS,
    FRESHNESS_FLOOR,
    INTEREST_VOTE_BOOST,
    INTEREST_VOTE_BOOST_THRESHOLDS,
    LOW_PARTICIPATION_FACTOR,
    LOW_PARTICIPATION_VOTES,
    REPUTATION_APPROVAL_FACTOR,
    REPUTATION_APPROVAL_PIVOT,
    REPUTATION_BASELINE,
    REPUTATION_EXPERIENCE_BOOST,
    REPUTATION_EXPERIENCE_THRESHOLDS,
    REPUTATION_FEEDBACK_FACTOR,
    REPUTATION_TENURE_CAP,
    SCORE_MAX,
    SCORE_MIN,
)
from src.ranker.models import CandidateMetrics, CuratorHistory, RankingCandidate


def clamp_score(value: float) -> float:
    """Clamp a metric into [0, 100]."""
    return min(SCORE_MAX, max(SCORE_MIN, value))


def interest_score(community_interest: float, total_votes: int) -> float:
    """Community interest adjusted for vote participation.

    Args:
        community_interest: Aggregate interest (0-100).
        total_votes: Number of votes.

    Returns:
        Interest metric.
    """
    score = community_interest
    for threshold in INTEREST_VOTE_BOOST_THRESHOLDS:
        if total_votes >= threshold:
            score += INTEREST_VOTE_BOOST
    # Very low participation may be manipulation
    if total_votes < LOW_PARTICIPATION_VOTES:
        score *= LOW_PARTICIPATION_FACTOR
    return clamp_score(score)


def hours_since(submitted_at: datetime, now: datetime) -> float:
    """Hours elapsed between submission and now; naive times are UTC."""
    if submitted_at.tzinfo is None:
        submitted_at = submitted_at.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return (now - submitted_at).total_seconds() / 3600.0


def freshness_score(hours_old: float) -> float:
    """Recency metric peaking between 6 and 24 hours.

    Args:
        hours_old: Hours since submission.

    Returns:
        Freshness metric.
    """
    for max_hours, score in FRESHNESS_BANDS:
        if hours_old <= max_hours:
            return score
    decayed = 50.0 - (hours_old - FRESHNESS_DECAY_START_HOURS) / 24.0 * (
        FRESHNESS_DECAY_PER_DAY
    )
    return max(FRESHNESS_FLOOR, decayed)


def curator_reputation_score(history: CuratorHistory | None) -> float:
    """Reputation metric from a curator's track record.

    Unknown curators get the baseline.

    Args:
        history: Curator history, or None when unknown.

    Returns:
        Reputation metric.
    """
    if history is None:
        return REPUTATION_BASELINE

    score = REPUTATION_BASELINE
    for threshold in REPUTATION_EXPERIENCE_THRESHOLDS:
        if history.submission_count >= threshold:
            score += REPUTATION_EXPERIENCE_BOOST
    score += (history.approval_rate - REPUTATION_APPROVAL_PIVOT) * REPUTATION_APPROVAL_FACTOR
    score += history.community_feedback * REPUTATION_FEEDBACK_FACTOR
    score += min(REPUTATION_TENURE_CAP, history.days_active / 30.0 * 2.0)
    return clamp_score(score)


def diversity_score(recent_category_count: int) -> float:
    """Diversity metric favouring categories with few recent picks."""
    for max_count, score in DIVERSITY_BANDS:
        if recent_category_count <= max_count:
            return score
    return DIVERSITY_CROWDED_SCORE


def engagement_score(community_interest: float, total_votes: int) -> float:
    """Engagement metric from raw interest and vote volume."""
    vote_bonus = min(ENGAGEMENT_VOTE_CAP, total_votes * ENGAGEMENT_VOTE_FACTOR)
    return min(SCORE_MAX, community_interest * ENGAGEMENT_INTEREST_FACTOR + vote_bonus)


def composite_score(metrics: CandidateMetrics, weights: RankingWeights) -> float:
    """Weighted sum of all metrics.

    Args:
        metrics: Candidate metrics.
        weights: Metric weights.

    Returns:
        Composite score (0-100 when weights sum to 1).
    """
    return (
        metrics.interest * weights.interest
        + metrics.relevance * weights.relevance
        + metrics.freshness * weights.freshness
        + metrics.curator_reputation * weights.curator_reputation
        + metrics.diversity * weights.diversity
        + metrics.engagement * weights.engagement
    )


class CandidateScorer:
    """Scores candidates against a fixed clock and history snapshot."""

    def __init__(
        self,
        now: datetime,
        curator_histories: Mapping[str, CuratorHistory] | None = None,
        recent_category_counts: Mapping[str, int] | None = None,
    ) -> None:
        """Initialize the scorer.

        Args:
            now: Reference time for freshness.
            curator_histories: Curator id to track record.
            recent_category_counts: Category to recent pick count.
        """
        self._now = now
        self._histories = dict(curator_histories or {})
        self._recent_counts = dict(recent_category_counts or {})

    def metrics_for(self, candidate: RankingCandidate) -> CandidateMetrics:
        """Compute every metric for a candidate."""
        history = (
            self._histories.get(candidate.curator_id) if candidate.curator_id else None
        )
        return CandidateMetrics(
            interest=interest_score(
                candidate.community_interest_score, candidate.total_votes
            ),
            relevance=clamp_score(candidate.relevance_score),
            freshness=freshness_score(hours_since(candidate.submitted_at, self._now)),
            curator_reputation=curator_reputation_score(history),
            diversity=diversity_score(self._recent_counts.get(candidate.category, 0)),
            engagement=engagement_score(
                candidate.community_interest_score, candidate.total_votes
            ),
            total_votes=candidate.total_votes,
        )
