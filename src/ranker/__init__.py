"""Weekly story selection over moderated community content.

This module provides deterministic ranking of a candidate snapshot by a
weighted composite of community interest, relevance, freshness, curator
reputation, topic diversity and engagement, and selects a top pick,
shortlist, diversity picks and emerging voices.
"""

from src.ranker.errors import EmptyPoolError
from src.ranker.metrics import RankerMetrics
from src.ranker.models import (
    CandidateMetrics,
    CuratorHistory,
    RankedCandidate,
    RankingCandidate,
    Selection,
)
from src.ranker.scorer import CandidateScorer
from src.ranker.selector import RankingEngine, select_weekly
from src.ranker.state_machine import RankerState, RankerStateError, RankerStateMachine


__all__ = [
    "CandidateMetrics",
    "CandidateScorer",
    "CuratorHistory",
    "EmptyPoolError",
    "RankedCandidate",
    "RankerMetrics",
    "RankerState",
    "RankerStateError",
    "RankerStateMachine",
    "RankingCandidate",
    "RankingEngine",
    "Selection",
    "select_weekly",
]
