"""Unit tests for the classification engine."""

import pytest

from src.analyzer.fallback import fallback_analysis
from src.classification.engine import (
    REASON_ANALYSIS_FAILED,
    REASON_AUTO_APPROVED,
    REASON_LOW_ALIGNMENT,
    REASON_LOW_RELEVANCE,
    REASON_NOT_ANTI_OPPRESSION,
    REASON_NOT_TRAUMA_INFORMED,
    REASON_POSSIBLE_DUPLICATE,
    ClassificationEngine,
)
from src.config.schemas.policy import AutoApprovalConfig
from src.data_model import ContentType, Priority, SafetyAssessment
from tests.helpers.factories import make_analysis, make_submission


@pytest.fixture
def engine() -> ClassificationEngine:
    """Engine with default thresholds and categories."""
    return ClassificationEngine()


class TestAutoApproval:
    """Tests for the auto-approval gate."""

    def test_all_conditions_met(self, engine: ClassificationEngine) -> None:
        """Strong, safe content is auto-approved."""
        result = engine.classify(make_submission(), make_analysis())

        assert result.auto_approve is True
        assert result.reason_codes == [REASON_AUTO_APPROVED]

    @pytest.mark.parametrize(
        ("alignment", "expected"),
        [(0.79, False), (0.8, False), (0.81, True)],
    )
    def test_alignment_boundary_is_strict(
        self, engine: ClassificationEngine, alignment: float, expected: bool
    ) -> None:
        """Alignment must be strictly greater than 0.8."""
        result = engine.classify(
            make_submission(), make_analysis(community_alignment=alignment)
        )

        assert result.auto_approve is expected

    def test_relevance_boundary_is_strict(self, engine: ClassificationEngine) -> None:
        """Relevance of exactly 0.7 is not enough."""
        result = engine.classify(make_submission(), make_analysis(relevance=0.7))

        assert result.auto_approve is False
        assert result.reason_codes == [REASON_LOW_RELEVANCE]

    def test_every_failure_reported_in_order(self, engine: ClassificationEngine) -> None:
        """Each failed condition adds one code, in fixed order."""
        result = engine.classify(
            make_submission(),
            make_analysis(
                relevance=0.1,
                community_alignment=0.1,
                duplicate_score=0.95,
                safety=SafetyAssessment(),
            ),
        )

        assert result.auto_approve is False
        assert result.reason_codes == [
            REASON_LOW_ALIGNMENT,
            REASON_LOW_RELEVANCE,
            REASON_NOT_TRAUMA_INFORMED,
            REASON_NOT_ANTI_OPPRESSION,
            REASON_POSSIBLE_DUPLICATE,
        ]

    def test_upstream_duplicate_blocks(self, engine: ClassificationEngine) -> None:
        """A duplicate found upstream blocks auto-approval."""
        result = engine.classify(
            make_submission(), make_analysis(), duplicate_found=True
        )

        assert result.reason_codes == [REASON_POSSIBLE_DUPLICATE]

    def test_fallback_never_auto_approves(self) -> None:
        """Even permissive thresholds cannot approve the fallback."""
        engine = ClassificationEngine(
            AutoApprovalConfig(community_alignment_threshold=0.0, relevance_threshold=0.0)
        )

        result = engine.classify(make_submission(), fallback_analysis())

        assert result.auto_approve is False
        assert result.reason_codes[0] == REASON_ANALYSIS_FAILED

    def test_warnings_follow_decision_codes(self, engine: ClassificationEngine) -> None:
        """Validation warnings are carried after the decision codes."""
        result = engine.classify(
            make_submission(),
            make_analysis(),
            validation_warnings=["content-warning-suggested:violence"],
        )

        assert result.auto_approve is True
        assert result.reason_codes == [
            REASON_AUTO_APPROVED,
            "content-warning-suggested:violence",
        ]


class TestPriority:
    """Tests for priority derivation."""

    def test_critical_mutual_aid_is_urgent(self, engine: ClassificationEngine) -> None:
        """Critical mutual aid requests are urgent."""
        submission = make_submission(
            content_type=ContentType.MUTUAL_AID, urgency="CRITICAL"
        )

        result = engine.classify(submission, make_analysis())

        assert result.priority == Priority.URGENT
        assert result.category == "urgent-mutual-aid"

    def test_organizing_content_is_high(self, engine: ClassificationEngine) -> None:
        """Organizing and mobilization content is high priority."""
        submission = make_submission(
            title="Tenant union campaign",
            description="Join the solidarity protest on Saturday.",
        )

        result = engine.classify(submission, make_analysis())

        assert result.category == "community-organizing"
        assert result.priority == Priority.HIGH

    def test_verified_source_is_high(self, engine: ClassificationEngine) -> None:
        """Verified sources get high priority."""
        result = engine.classify(
            make_submission(verified_source=True), make_analysis()
        )

        assert result.priority == Priority.HIGH

    def test_low_relevance_is_low(self, engine: ClassificationEngine) -> None:
        """Low relevance content is low priority."""
        result = engine.classify(make_submission(), make_analysis(relevance=0.2))

        assert result.priority == Priority.LOW

    def test_default_is_medium(self, engine: ClassificationEngine) -> None:
        """Everything else is medium."""
        result = engine.classify(make_submission(), make_analysis())

        assert result.priority == Priority.MEDIUM


class TestCategory:
    """Tests for category derivation."""

    def test_events_are_community_events(self, engine: ClassificationEngine) -> None:
        """Events always land in the community event category."""
        submission = make_submission(content_type=ContentType.EVENT)

        assert engine.derive_category(submission) == "community-event"

    def test_keyword_match(self, engine: ClassificationEngine) -> None:
        """Keywords in the text pick a category."""
        submission = make_submission(
            title="Free literacy tutoring",
            description="Students can join the school curriculum programme.",
        )

        assert engine.derive_category(submission) == "education"

    def test_tags_count_as_text(self, engine: ClassificationEngine) -> None:
        """Tags take part in keyword matching."""
        submission = make_submission(
            title="Saturday meetup",
            description="Bring a friend.",
            tags=frozenset({"climate"}),
        )

        assert engine.derive_category(submission) == "environment"

    def test_analyzer_hint_when_no_keyword(self, engine: ClassificationEngine) -> None:
        """The analyzer hint is used when no keyword matches."""
        submission = make_submission(title="Saturday meetup", description="Bring a friend.")

        category = engine.derive_category(
            submission, make_analysis(category_hint="housing")
        )

        assert category == "housing"

    def test_content_type_as_last_resort(self, engine: ClassificationEngine) -> None:
        """Without keywords or hints the content type is the category."""
        submission = make_submission(
            content_type=ContentType.RESOURCE,
            title="Saturday meetup",
            description="Bring a friend.",
        )

        assert engine.derive_category(submission, fallback_analysis()) == "resource"
