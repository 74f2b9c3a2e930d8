"""Constants for the story selection ranker."""

ALGORITHM_VERSION = "1.0.0-community-first"

# Interest: vote participation boosts and low-participation discount
INTEREST_VOTE_BOOST_THRESHOLDS: tuple[int, ...] = (50, 100, 200)
INTEREST_VOTE_BOOST: float = 5.0
LOW_PARTICIPATION_VOTES: int = 5
LOW_PARTICIPATION_FACTOR: float = 0.7

# Freshness bands: (max hours since submission, score)
# Very fresh items score below peak because votes have not accrued yet.
FRESHNESS_BANDS: tuple[tuple[float, float], ...] = (
    (6.0, 70.0),
    (24.0, 100.0),
    (48.0, 90.0),
    (72.0, 70.0),
    (168.0, 50.0),
)
FRESHNESS_DECAY_START_HOURS: float = 168.0
FRESHNESS_DECAY_PER_DAY: float = 5.0
FRESHNESS_FLOOR: float = 10.0

# Curator reputation
REPUTATION_BASELINE: float = 50.0
REPUTATION_EXPERIENCE_THRESHOLDS: tuple[int, ...] = (10, 25, 50)
REPUTATION_EXPERIENCE_BOOST: float = 10.0
REPUTATION_APPROVAL_PIVOT: float = 0.5
REPUTATION_APPROVAL_FACTOR: float = 40.0
REPUTATION_FEEDBACK_FACTOR: float = 0.2
REPUTATION_TENURE_CAP: float = 20.0

# Diversity: (max recent picks in category, score); beyond the last band
DIVERSITY_BANDS: tuple[tuple[int, float], ...] = ((0, 100.0), (2, 80.0), (5, 60.0))
DIVERSITY_CROWDED_SCORE: float = 40.0

# Engagement
ENGAGEMENT_INTEREST_FACTOR: float = 0.6
ENGAGEMENT_VOTE_FACTOR: float = 0.3
ENGAGEMENT_VOTE_CAP: float = 30.0

# Confidence
SINGLE_CANDIDATE_CONFIDENCE: int = 95
CONFIDENCE_BASE: float = 60.0
CONFIDENCE_GAP_FACTOR: float = 2.0
CONFIDENCE_VOTE_THRESHOLDS: tuple[int, ...] = (50, 100)
CONFIDENCE_VOTE_BOOST: float = 10.0
CONFIDENCE_MIN: int = 50
CONFIDENCE_MAX: int = 100

# Reasoning thresholds for the top pick
REASON_INTEREST_MIN: float = 80.0
REASON_RELEVANCE_MIN: float = 85.0
REASON_FRESHNESS_MIN: float = 90.0
REASON_REPUTATION_MIN: float = 80.0
REASON_DIVERSITY_MIN: float = 80.0
REASON_ENGAGEMENT_MIN: float = 80.0
BALANCED_REASONING = "Balanced scoring across all community factors"

SCORE_MIN: float = 0.0
SCORE_MAX: float = 100.0
