"""Moderation policy configuration schema."""

from typing import Annotated

from pydantic import Field, model_validator

from src.config.constants import (
    DEFAULT_CATEGORY_KEYWORDS,
    DEFAULT_CONTENT_WARNING_MARKERS,
    DEFAULT_OPPRESSIVE_TERMS,
    DEFAULT_RATE_LIMIT_CLASS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
    DEFAULT_RATE_LIMITS,
    DEFAULT_TRAUMA_TERMS,
)
from src.data_model import StrictBaseModel


class RateLimitConfig(StrictBaseModel):
    """Fixed-window rate limits per integration class.

    Attributes:
        window_seconds: Length of the counting window.
        limits: Maximum requests per window, keyed by integration class.
    """

    window_seconds: Annotated[float, Field(gt=0.0, le=3600.0)] = (
        DEFAULT_RATE_LIMIT_WINDOW_SECONDS
    )
    limits: dict[str, Annotated[int, Field(ge=1)]] = Field(
        default_factory=lambda: dict(DEFAULT_RATE_LIMITS)
    )

    @model_validator(mode="after")
    def validate_default_class(self) -> "RateLimitConfig":
        """Ensure a fallback class exists for unclassified sources."""
        if DEFAULT_RATE_LIMIT_CLASS not in self.limits:
            msg = f"rate limits must define a '{DEFAULT_RATE_LIMIT_CLASS}' class"
            raise ValueError(msg)
        return self


class GuidelinesConfig(StrictBaseModel):
    """Community guideline screening term lists.

    Attributes:
        oppressive_terms: Terms whose presence rejects a submission.
        trauma_terms: Terms that call for a content warning.
        content_warning_markers: Markers that count as a content warning.
    """

    oppressive_terms: list[str] = Field(
        default_factory=lambda: list(DEFAULT_OPPRESSIVE_TERMS)
    )
    trauma_terms: list[str] = Field(default_factory=lambda: list(DEFAULT_TRAUMA_TERMS))
    content_warning_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CONTENT_WARNING_MARKERS)
    )

    @model_validator(mode="after")
    def validate_terms_non_empty(self) -> "GuidelinesConfig":
        """Ensure no configured term is blank."""
        for term in (
            *self.oppressive_terms,
            *self.trauma_terms,
            *self.content_warning_markers,
        ):
            if not term.strip():
                msg = "Guideline terms must be non-empty strings"
                raise ValueError(msg)
        return self


class AutoApprovalConfig(StrictBaseModel):
    """Thresholds gating auto-approval and priority.

    Both alignment and relevance thresholds are strict: a score must be
    greater than the threshold, not equal to it.

    Attributes:
        community_alignment_threshold: Minimum (exclusive) alignment.
        relevance_threshold: Minimum (exclusive) relevance.
        duplicate_suspicion_threshold: Analyzer duplicate score at or above
            which a submission is held for review.
        low_priority_relevance: Relevance below which priority is low.
    """

    community_alignment_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = 0.8
    relevance_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = 0.7
    duplicate_suspicion_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = 0.9
    low_priority_relevance: Annotated[float, Field(ge=0.0, le=1.0)] = 0.4


class DedupConfig(StrictBaseModel):
    """Duplicate detection configuration.

    Attributes:
        title_prefix_length: Characters of normalized title used for fuzzy match.
        canonical_url_strip_params: Extra query parameters to strip.
    """

    title_prefix_length: Annotated[int, Field(ge=5, le=200)] = 20
    canonical_url_strip_params: list[str] = Field(default_factory=list)


class RankingWeights(StrictBaseModel):
    """Composite score weights for story selection."""

    interest: Annotated[float, Field(ge=0.0, le=1.0)] = 0.35
    relevance: Annotated[float, Field(ge=0.0, le=1.0)] = 0.20
    freshness: Annotated[float, Field(ge=0.0, le=1.0)] = 0.15
    curator_reputation: Annotated[float, Field(ge=0.0, le=1.0)] = 0.10
    diversity: Annotated[float, Field(ge=0.0, le=1.0)] = 0.10
    engagement: Annotated[float, Field(ge=0.0, le=1.0)] = 0.10

    @property
    def total(self) -> float:
        """Sum of all weights."""
        return (
            self.interest
            + self.relevance
            + self.freshness
            + self.curator_reputation
            + self.diversity
            + self.engagement
        )

    def normalized(self, tolerance: float = 0.01) -> "RankingWeights":
        """Return weights rescaled to sum to 1.0.

        Weights already within ``tolerance`` of 1.0 are returned unchanged.

        Args:
            tolerance: Allowed deviation from 1.0.

        Returns:
            Normalized weights.
        """
        total = self.total
        if total <= 0.0:
            msg = "Ranking weights must not all be zero"
            raise ValueError(msg)
        if abs(total - 1.0) <= tolerance:
            return self
        return RankingWeights(
            **{name: value / total for name, value in self.model_dump().items()}
        )


class RankingConfig(StrictBaseModel):
    """Weekly story selection configuration.

    Attributes:
        weights: Composite score weights.
        shortlist_size: Number of candidates following the top pick.
        diversity_picks_max: Maximum diversity picks.
        diversity_min_score: Minimum diversity metric for a diversity pick.
        emerging_voices_max: Maximum emerging-voice picks.
        emerging_max_reputation: Maximum curator reputation of an emerging voice.
        emerging_min_score: Minimum composite score of an emerging voice.
        diversity_categories: Categories the selection aims to balance.
    """

    weights: RankingWeights = Field(default_factory=RankingWeights)
    shortlist_size: Annotated[int, Field(ge=0, le=50)] = 7
    diversity_picks_max: Annotated[int, Field(ge=0, le=20)] = 3
    diversity_min_score: Annotated[float, Field(ge=0.0, le=100.0)] = 70.0
    emerging_voices_max: Annotated[int, Field(ge=0, le=20)] = 2
    emerging_max_reputation: Annotated[float, Field(ge=0.0, le=100.0)] = 60.0
    emerging_min_score: Annotated[float, Field(ge=0.0, le=100.0)] = 70.0
    diversity_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORY_KEYWORDS)
    )


class ModerationPolicy(StrictBaseModel):
    """Root configuration for policy.yaml.

    Attributes:
        version: Schema version.
        rate_limits: Per-class rate limits.
        guidelines: Guideline screening terms.
        auto_approval: Auto-approval thresholds.
        dedup: Duplicate detection settings.
        categories: Category name to keyword list.
        ranking: Story selection settings.
    """

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    rate_limits: RateLimitConfig = Field(default_factory=RateLimitConfig)
    guidelines: GuidelinesConfig = Field(default_factory=GuidelinesConfig)
    auto_approval: AutoApprovalConfig = Field(default_factory=AutoApprovalConfig)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    categories: dict[str, Annotated[list[str], Field(min_length=1)]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_CATEGORY_KEYWORDS.items()}
    )
    ranking: RankingConfig = Field(default_factory=RankingConfig)
