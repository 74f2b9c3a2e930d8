"""Unit tests for moderation policy schemas and error hints."""

import pytest
from pydantic import ValidationError

from src.config.error_hints import get_error_hint
from src.config.schemas.policy import (
    AutoApprovalConfig,
    GuidelinesConfig,
    ModerationPolicy,
    RankingConfig,
    RateLimitConfig,
)


class TestModerationPolicyDefaults:
    """Tests for built-in defaults."""

    def test_defaults(self) -> None:
        """Defaults reproduce the documented constants."""
        policy = ModerationPolicy()

        assert policy.version == "1.0"
        assert policy.rate_limits.window_seconds == 60.0
        assert policy.rate_limits.limits["community-hub"] == 20
        assert policy.auto_approval.community_alignment_threshold == 0.8
        assert policy.auto_approval.relevance_threshold == 0.7
        assert policy.dedup.title_prefix_length == 20
        assert len(policy.categories) == 8
        assert policy.ranking.shortlist_size == 7

    def test_unknown_keys_rejected(self) -> None:
        """Typos in the policy file are errors."""
        with pytest.raises(ValidationError):
            ModerationPolicy.model_validate({"auto_aproval": {}})


class TestSectionValidation:
    """Tests for per-section constraints."""

    def test_rate_limits_need_default_class(self) -> None:
        """A default class is mandatory."""
        with pytest.raises(ValidationError, match="default"):
            RateLimitConfig(limits={"automation": 30})

    def test_rate_limit_must_be_positive(self) -> None:
        """Zero limits are rejected."""
        with pytest.raises(ValidationError):
            RateLimitConfig(limits={"default": 0})

    def test_blank_guideline_term_rejected(self) -> None:
        """Blank terms would match everything."""
        with pytest.raises(ValidationError, match="non-empty"):
            GuidelinesConfig(oppressive_terms=["ok", "  "])

    def test_threshold_range(self) -> None:
        """Thresholds live in [0, 1]."""
        with pytest.raises(ValidationError):
            AutoApprovalConfig(relevance_threshold=1.5)

    def test_ranking_weight_range(self) -> None:
        """Weights live in [0, 1]."""
        with pytest.raises(ValidationError):
            RankingConfig.model_validate({"weights": {"interest": 2.0}})

    def test_version_pattern(self) -> None:
        """Versions look like major.minor."""
        with pytest.raises(ValidationError):
            ModerationPolicy(version="v1")


class TestErrorHints:
    """Tests for get_error_hint."""

    def test_field_hint_wins(self) -> None:
        """Field-specific hints take precedence."""
        hint = get_error_hint("greater_than", "rate_limits.window_seconds")

        assert "seconds" in hint

    def test_type_hint(self) -> None:
        """Known error types have hints."""
        assert "required" in get_error_hint("missing")

    def test_unknown_error(self) -> None:
        """Unknown errors get a generic hint."""
        assert "policy documentation" in get_error_hint("mystery")
