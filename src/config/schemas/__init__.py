"""Configuration schema definitions."""

from src.config.schemas.policy import (
    AutoApprovalConfig,
    DedupConfig,
    GuidelinesConfig,
    ModerationPolicy,
    RateLimitConfig,
    RankingConfig,
    RankingWeights,
)


__all__ = [
    "AutoApprovalConfig",
    "DedupConfig",
    "GuidelinesConfig",
    "ModerationPolicy",
    "RankingConfig",
    "RankingWeights",
    "RateLimitConfig",
]
