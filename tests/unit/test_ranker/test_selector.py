"""Unit tests for weekly story selection."""

import pytest

from src.config.schemas.policy import RankingConfig
from src.data_model import Decision
from src.ranker.constants import ALGORITHM_VERSION, BALANCED_REASONING
from src.ranker.errors import EmptyPoolError
from src.ranker.metrics import RankerMetrics
from src.ranker.models import CuratorHistory, RankingCandidate
from src.ranker.selector import RankingEngine, select_weekly
from tests.helpers.factories import make_analysis, make_candidate, make_record
from tests.helpers.time import FIXED_NOW


@pytest.fixture(autouse=True)
def reset_metrics() -> None:
    """Reset ranker metrics between tests."""
    RankerMetrics.reset()


def _engine(**kwargs: object) -> RankingEngine:
    return RankingEngine(now=FIXED_NOW, **kwargs)  # type: ignore[arg-type]


class TestSelectBasics:
    """Tests for ordering, top pick and preconditions."""

    def test_empty_pool_raises(self) -> None:
        """Selecting from nothing is a caller error."""
        with pytest.raises(EmptyPoolError):
            _engine().select([])

    def test_single_candidate(self) -> None:
        """A lone candidate is the top pick with fixed confidence."""
        selection = _engine().select([make_candidate("only")])

        assert selection.top.candidate.id == "only"
        assert selection.top.rank == 1
        assert selection.shortlist == []
        assert selection.confidence == 95
        assert selection.algorithm_version == ALGORITHM_VERSION

    def test_sorted_by_composite(self) -> None:
        """Higher composite scores rank first."""
        pool = [
            make_candidate("weak", interest=30.0, relevance=30.0),
            make_candidate("strong", interest=90.0, votes=120, relevance=90.0),
            make_candidate("middle", interest=60.0, relevance=60.0),
        ]

        selection = _engine().select(pool)

        assert [item.candidate.id for item in selection.ranked] == [
            "strong",
            "middle",
            "weak",
        ]
        assert [item.rank for item in selection.ranked] == [1, 2, 3]

    def test_tie_broken_by_recency(self) -> None:
        """Equal scores favour the more recent submission."""
        pool = [
            make_candidate("older", hours_old=20.0),
            make_candidate("newer", hours_old=10.0),
        ]

        selection = _engine().select(pool)

        assert selection.ranked[0].composite_score == selection.ranked[1].composite_score
        assert selection.top.candidate.id == "newer"

    def test_deterministic(self) -> None:
        """Repeated selections over the same snapshot agree."""
        pool = [make_candidate(f"c{i}", interest=50.0 + i) for i in range(5)]
        engine = _engine()

        first = engine.select(pool)
        second = engine.select(list(reversed(pool)))

        assert first.top.candidate.id == second.top.candidate.id == "c4"
        assert first.to_dict()["shortlist"] == second.to_dict()["shortlist"]

    def test_vote_discount_changes_interest(self) -> None:
        """Moving from four to five votes lifts the interest discount."""
        engine = _engine()

        four = engine.select([make_candidate("a", interest=60.0, votes=4)])
        five = engine.select([make_candidate("a", interest=60.0, votes=5)])

        assert four.top.metrics.interest == pytest.approx(42.0)
        assert five.top.metrics.interest == pytest.approx(60.0)


class TestConfidenceAndReasoning:
    """Tests for confidence and reasoning."""

    def test_confidence_from_gap_and_votes(self) -> None:
        """Gap doubles onto the base, with a boost for 50+ votes."""
        pool = [
            make_candidate("c1", interest=60.0, votes=60, relevance=60.0),
            make_candidate("c2", interest=60.0, votes=20, relevance=60.0),
        ]

        selection = _engine().select(pool)

        assert selection.top.composite_score == pytest.approx(70.15)
        assert selection.ranked[1].composite_score == pytest.approx(67.2)
        assert selection.confidence == 76

    def test_confidence_clamped(self) -> None:
        """Large gaps and vote boosts cap at 100."""
        pool = [
            make_candidate("big", interest=90.0, votes=120, relevance=90.0),
            make_candidate("small", interest=10.0, votes=1, relevance=10.0),
        ]

        assert _engine().select(pool).confidence == 100

    def test_reasoning_from_thresholds(self) -> None:
        """Metrics above their thresholds explain the pick."""
        selection = _engine().select(
            [make_candidate("c1", interest=60.0, votes=60, relevance=60.0)]
        )

        assert selection.reasoning == [
            "Recent submission with optimal timing",
            "Covers underrepresented topic area",
        ]

    def test_balanced_reasoning_fallback(self) -> None:
        """With no notable metric a generic explanation is given."""
        engine = _engine(recent_category_counts={"education": 3})

        selection = engine.select([make_candidate("c1", hours_old=100.0)])

        assert selection.reasoning == [BALANCED_REASONING]

    def test_interest_reasoning_mentions_votes(self) -> None:
        """High interest names the vote count."""
        selection = _engine().select(
            [make_candidate("c1", interest=90.0, votes=120, relevance=90.0)]
        )

        assert selection.reasoning[0] == "High community interest (100/100) with 120 votes"
        assert "Highly relevant to community themes (90/100)" in selection.reasoning


class TestSlates:
    """Tests for diversity picks and emerging voices."""

    @staticmethod
    def _crowded_pool() -> list[RankingCandidate]:
        strong = [
            make_candidate(f"edu-{i}", interest=90.0, votes=60, relevance=80.0)
            for i in range(8)
        ]
        weak = [
            make_candidate("env-1", category="environment", interest=20.0, votes=10, relevance=50.0),
            make_candidate("arts", category="arts-culture", interest=20.0, votes=10, relevance=45.0),
            make_candidate("env-2", category="environment", interest=20.0, votes=10, relevance=40.0),
            make_candidate("tech", category="technology", interest=20.0, votes=10, relevance=35.0),
            make_candidate("health", category="health-wellness", interest=20.0, votes=10, relevance=30.0),
            make_candidate("politics", category="politics-policy", interest=20.0, votes=10, relevance=48.0),
        ]
        return strong + weak

    def test_shortlist_is_ranks_two_to_eight(self) -> None:
        """The shortlist holds the seven candidates after the top."""
        selection = _engine().select(self._crowded_pool())

        assert selection.top.candidate.id == "edu-0"
        assert [item.candidate.id for item in selection.shortlist] == [
            f"edu-{i}" for i in range(1, 8)
        ]

    def test_diversity_picks_new_categories_in_rank_order(self) -> None:
        """Each pick adds an unseen category with diversity of at least 70."""
        engine = _engine(recent_category_counts={"politics-policy": 4})

        selection = engine.select(self._crowded_pool())

        assert [item.candidate.id for item in selection.diversity_picks] == [
            "env-1",
            "arts",
            "tech",
        ]

    def test_single_category_pool_has_no_diversity_picks(self) -> None:
        """Three education items leave no category underrepresented."""
        pool = [make_candidate(f"e{i}", category="education") for i in range(3)]

        selection = _engine().select(pool)

        assert selection.diversity_picks == []

    def test_emerging_voices(self) -> None:
        """Strong candidates from low-reputation curators, top two by rank."""
        histories = {
            "veteran": CuratorHistory(
                submission_count=60, approval_rate=0.9, community_feedback=80
            )
        }
        pool = [
            make_candidate("v", interest=95.0, votes=120, relevance=95.0, curator_id="veteran"),
            make_candidate("n1", interest=90.0, votes=60, relevance=80.0, curator_id="new-1"),
            make_candidate("n2", interest=88.0, votes=60, relevance=80.0, curator_id="new-2"),
            make_candidate("n3", interest=86.0, votes=60, relevance=80.0, curator_id="new-3"),
            make_candidate("low", interest=10.0, votes=1, relevance=10.0, curator_id="new-4"),
        ]

        selection = _engine(curator_histories=histories).select(pool)

        assert selection.top.candidate.id == "v"
        assert [item.candidate.id for item in selection.emerging_voices] == ["n1", "n2"]

    def test_slate_sizes_follow_config(self) -> None:
        """Shortlist length comes from configuration."""
        engine = _engine(config=RankingConfig(shortlist_size=2))

        selection = engine.select(self._crowded_pool())

        assert len(selection.shortlist) == 2


class TestEngineHelpers:
    """Tests for select_weekly, algorithm_config and candidate building."""

    def test_select_weekly(self) -> None:
        """The function entry point matches the engine."""
        pool = [make_candidate("a", interest=80.0), make_candidate("b")]

        selection = select_weekly(pool, now=FIXED_NOW)

        assert selection.top.candidate.id == "a"

    def test_select_weekly_empty_pool(self) -> None:
        """The function entry point rejects empty pools too."""
        with pytest.raises(EmptyPoolError):
            select_weekly([], now=FIXED_NOW)

    def test_algorithm_config(self) -> None:
        """The engine reports its version, weights and categories."""
        config = _engine().algorithm_config()

        assert config["version"] == ALGORITHM_VERSION
        assert config["weights"]["interest"] == pytest.approx(0.35)  # type: ignore[index]
        assert "education" in config["diversity_categories"]  # type: ignore[operator]

    def test_metrics_recorded(self) -> None:
        """A completed run updates the singleton metrics."""
        _engine().select([make_candidate("a"), make_candidate("b")])

        metrics = RankerMetrics.get_instance()
        assert metrics.selections_total == 1
        assert metrics.candidates_in == 2

    def test_candidate_from_record(self) -> None:
        """Records become candidates with relevance scaled to 0-100."""
        record = make_record(
            decision=Decision.AUTO_APPROVED,
            analysis=make_analysis(relevance=0.8),
            category="environment",
        )

        candidate = RankingCandidate.from_record(
            record, community_interest_score=70.0, total_votes=12
        )

        assert candidate.id == record.id
        assert candidate.category == "environment"
        assert candidate.relevance_score == pytest.approx(80.0)
        assert candidate.curator_id == "tester"
        assert candidate.submitted_at == FIXED_NOW
