"""Weekly story selection over a snapshot of candidates."""

import math
import time
import uuid
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

import structlog

from src.config.schemas.policy import RankingConfig
from src.ranker.constants import (
    ALGORITHM_VERSION,
    BALANCED_REASONING,
    CONFIDENCE_BASE,
    CONFIDENCE_GAP_FACTOR,
    CONFIDENCE_MAX,
    CONFIDENCE_MIN,
    CONFIDENCE_VOTE_BOOST,
    CONFIDENCE_VOTE_THRESHOLDS,
    REASON_DIVERSITY_MIN,
    REASON_ENGAGEMENT_MIN,
    REASON_FRESHNESS_MIN,
    REASON_INTEREST_MIN,
    REASON_RELEVANCE_MIN,
    REASON_REPUTATION_MIN,
    SINGLE_CANDIDATE_CONFIDENCE,
)
from src.ranker.errors import EmptyPoolError
from src.ranker.metrics import RankerMetrics
from src.ranker.models import (
    CuratorHistory,
    RankedCandidate,
    RankingCandidate,
    Selection,
)
from src.ranker.scorer import CandidateScorer, composite_score, hours_since
from src.ranker.state_machine import RankerState, RankerStateMachine


logger = structlog.get_logger()


def _fmt(value: float) -> str:
    return f"{round(value, 1):g}"


class RankingEngine:
    """Selects the weekly top pick, shortlist and slates.

    Implements a state machine flow:
        CANDIDATES_READY -> SCORED -> RANKED -> SELECTED

    Selection is pure over its inputs: the same candidates, histories,
    category counts and clock always produce the same result. Intake
    decisions are never touched.
    """

    def __init__(
        self,
        config: RankingConfig | None = None,
        curator_histories: Mapping[str, CuratorHistory] | None = None,
        recent_category_counts: Mapping[str, int] | None = None,
        now: datetime | None = None,
        metrics: RankerMetrics | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Weights and slate sizes (defaults apply when None).
            curator_histories: Curator id to track record.
            recent_category_counts: Category to number of recent picks.
            now: Reference time for freshness.
            metrics: Optional metrics instance.
        """
        self._config = config or RankingConfig()
        self._weights = self._config.weights.normalized()
        self._curator_histories = dict(curator_histories or {})
        self._recent_category_counts = dict(recent_category_counts or {})
        self._now = now or datetime.now(UTC)
        self._metrics = metrics or RankerMetrics.get_instance()
        self._log = logger.bind(component="ranker")

    def algorithm_config(self) -> dict[str, object]:
        """Return the algorithm version, effective weights and categories."""
        return {
            "version": ALGORITHM_VERSION,
            "weights": self._weights.model_dump(),
            "diversity_categories": list(self._config.diversity_categories),
        }

    def select(self, candidates: Sequence[RankingCandidate]) -> Selection:
        """Select the weekly top pick and slates.

        Args:
            candidates: Snapshot of eligible candidates.

        Returns:
            Selection with top pick, shortlist, slates, confidence and reasons.

        Raises:
            EmptyPoolError: If ``candidates`` is empty.
        """
        if not candidates:
            raise EmptyPoolError

        run_id = uuid.uuid4().hex[:8]
        sm = RankerStateMachine(run_id)
        log = self._log.bind(run_id=run_id)
        log.info("selection_started", candidates_in=len(candidates))
        self._metrics.record_candidates_in(len(candidates))

        start = time.perf_counter()
        scored = self._score(candidates)
        sm.to_scored()
        self._metrics.record_scoring_duration((time.perf_counter() - start) * 1000)

        ranked = self._rank(scored)
        sm.to_ranked()

        top = ranked[0]
        shortlist_end = 1 + self._config.shortlist_size
        shortlist = ranked[1:shortlist_end]
        diversity_picks = self._diversity_picks(ranked, shortlist_end)
        emerging_voices = self._emerging_voices(ranked)

        selection = Selection(
            top=top,
            shortlist=shortlist,
            diversity_picks=diversity_picks,
            emerging_voices=emerging_voices,
            confidence=self._confidence(ranked),
            reasoning=self._reasoning(top),
            algorithm_version=ALGORITHM_VERSION,
            ranked=ranked,
        )
        sm.to_selected()

        self._metrics.record_selection(
            shortlist=len(shortlist),
            diversity_picks=len(diversity_picks),
            emerging_voices=len(emerging_voices),
            confidence=selection.confidence,
        )
        log.info(
            "selection_complete",
            state=RankerState.SELECTED.value,
            top_id=top.candidate.id,
            top_score=round(top.composite_score, 2),
            confidence=selection.confidence,
            diversity_picks=len(diversity_picks),
            emerging_voices=len(emerging_voices),
        )
        return selection

    def _score(self, candidates: Sequence[RankingCandidate]) -> list[RankedCandidate]:
        scorer = CandidateScorer(
            now=self._now,
            curator_histories=self._curator_histories,
            recent_category_counts=self._recent_category_counts,
        )
        scored: list[RankedCandidate] = []
        for candidate in candidates:
            metrics = scorer.metrics_for(candidate)
            score = composite_score(metrics, self._weights)
            self._metrics.record_score(score)
            scored.append(
                RankedCandidate(
                    candidate=candidate, metrics=metrics, composite_score=score
                )
            )
        return scored

    def _rank(self, scored: list[RankedCandidate]) -> list[RankedCandidate]:
        """Sort by composite desc, then newer submission, then id."""
        ordered = sorted(
            scored,
            key=lambda item: (
                -item.composite_score,
                hours_since(item.candidate.submitted_at, self._now),
                item.candidate.id,
            ),
        )
        return [
            RankedCandidate(
                candidate=item.candidate,
                metrics=item.metrics,
                composite_score=item.composite_score,
                rank=index,
            )
            for index, item in enumerate(ordered, start=1)
        ]

    def _diversity_picks(
        self, ranked: list[RankedCandidate], shortlist_end: int
    ) -> list[RankedCandidate]:
        """Pick candidates from categories absent from the top and shortlist."""
        seen = {item.candidate.category for item in ranked[:shortlist_end]}
        picks: list[RankedCandidate] = []
        for item in ranked[shortlist_end:]:
            if len(picks) >= self._config.diversity_picks_max:
                break
            if (
                item.candidate.category not in seen
                and item.metrics.diversity >= self._config.diversity_min_score
            ):
                picks.append(item)
                seen.add(item.candidate.category)
        return picks

    def _emerging_voices(self, ranked: list[RankedCandidate]) -> list[RankedCandidate]:
        """Pick strong candidates from less established curators."""
        return [
            item
            for item in ranked
            if item.metrics.curator_reputation <= self._config.emerging_max_reputation
            and item.composite_score >= self._config.emerging_min_score
        ][: self._config.emerging_voices_max]

    @staticmethod
    def _confidence(ranked: list[RankedCandidate]) -> int:
        if len(ranked) == 1:
            return SINGLE_CANDIDATE_CONFIDENCE

        gap = ranked[0].composite_score - ranked[1].composite_score
        confidence = CONFIDENCE_BASE + gap * CONFIDENCE_GAP_FACTOR
        for threshold in CONFIDENCE_VOTE_THRESHOLDS:
            if ranked[0].metrics.total_votes >= threshold:
                confidence += CONFIDENCE_VOTE_BOOST
        # Round half up
        rounded = math.floor(confidence + 0.5)
        return min(CONFIDENCE_MAX, max(CONFIDENCE_MIN, rounded))

    @staticmethod
    def _reasoning(top: RankedCandidate) -> list[str]:
        m = top.metrics
        reasoning: list[str] = []
        if m.interest >= REASON_INTEREST_MIN:
            reasoning.append(
                f"High community interest ({_fmt(m.interest)}/100) "
                f"with {m.total_votes} votes"
            )
        if m.relevance >= REASON_RELEVANCE_MIN:
            reasoning.append(
                f"Highly relevant to community themes ({_fmt(m.relevance)}/100)"
            )
        if m.freshness >= REASON_FRESHNESS_MIN:
            reasoning.append("Recent submission with optimal timing")
        if m.curator_reputation >= REASON_REPUTATION_MIN:
            reasoning.append("Submitted by trusted community curator")
        if m.diversity >= REASON_DIVERSITY_MIN:
            reasoning.append("Covers underrepresented topic area")
        if m.engagement >= REASON_ENGAGEMENT_MIN:
            reasoning.append("Strong community engagement and discussion")
        return reasoning or [BALANCED_REASONING]


def select_weekly(
    pool: Sequence[RankingCandidate],
    config: RankingConfig | None = None,
    curator_histories: Mapping[str, CuratorHistory] | None = None,
    recent_category_counts: Mapping[str, int] | None = None,
    now: datetime | None = None,
) -> Selection:
    """Select the weekly top pick without managing an engine instance.

    Args:
        pool: Snapshot of eligible candidates.
        config: Weights and slate sizes.
        curator_histories: Curator id to track record.
        recent_category_counts: Category to number of recent picks.
        now: Reference time for freshness.

    Returns:
        Selection result.

    Raises:
        EmptyPoolError: If ``pool`` is empty.
    """
    engine = RankingEngine(
        config=config,
        curator_histories=curator_histories,
        recent_category_counts=recent_category_counts,
        now=now,
        metrics=RankerMetrics(),
    )
    return engine.select(pool)
