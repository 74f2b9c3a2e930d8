"""Decision, priority and category derivation for analyzed submissions."""

from dataclasses import dataclass, field

import structlog

from src.classification.category_matcher import CategoryMatcher
from src.config.constants import DEFAULT_CATEGORY_KEYWORDS
from src.config.schemas.policy import AutoApprovalConfig
from src.data_model import ContentAnalysis, ContentType, Priority, Submission


logger = structlog.get_logger()

# Reason codes, in the fixed order they are reported
REASON_AUTO_APPROVED = "meets-auto-approval-criteria"
REASON_ANALYSIS_FAILED = "analysis-failed"
REASON_LOW_ALIGNMENT = "community-alignment-below-threshold"
REASON_LOW_RELEVANCE = "relevance-below-threshold"
REASON_NOT_TRAUMA_INFORMED = "not-trauma-informed"
REASON_NOT_ANTI_OPPRESSION = "not-anti-oppression"
REASON_POSSIBLE_DUPLICATE = "possible-duplicate"

CATEGORY_URGENT_MUTUAL_AID = "urgent-mutual-aid"
CATEGORY_COMMUNITY_EVENT = "community-event"
CATEGORY_ORGANIZING = "community-organizing"

URGENCY_CRITICAL = "critical"


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying an analyzed submission.

    Attributes:
        category: Derived category slug.
        priority: Review priority.
        auto_approve: Whether the submission is published without review.
        reason_codes: Decision codes followed by validation warnings.
    """

    category: str | None
    priority: Priority
    auto_approve: bool
    reason_codes: list[str] = field(default_factory=list)


class ClassificationEngine:
    """Derives category, priority and the auto-approval decision.

    Every failed condition routes to human review; classification never
    rejects on its own.
    """

    def __init__(
        self,
        thresholds: AutoApprovalConfig | None = None,
        categories: dict[str, list[str]] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            thresholds: Auto-approval thresholds.
            categories: Category keyword maps, in priority order.
        """
        self._thresholds = thresholds or AutoApprovalConfig()
        self._matcher = CategoryMatcher(
            categories if categories is not None else DEFAULT_CATEGORY_KEYWORDS
        )
        self._log = logger.bind(component="classification")

    def classify(
        self,
        submission: Submission,
        analysis: ContentAnalysis,
        validation_warnings: list[str] | None = None,
        duplicate_found: bool = False,
    ) -> Classification:
        """Classify a submission that passed validation and dedup.

        Args:
            submission: Normalized submission.
            analysis: Analyzer output, possibly the fallback.
            validation_warnings: Non-fatal validator findings.
            duplicate_found: Whether an upstream duplicate check matched.

        Returns:
            Classification with ordered reason codes.
        """
        failures = self._approval_failures(analysis, duplicate_found)
        auto_approve = not failures
        reason_codes = [REASON_AUTO_APPROVED] if auto_approve else failures
        reason_codes = [*reason_codes, *(validation_warnings or [])]

        category = self.derive_category(submission, analysis)
        priority = self.derive_priority(submission, analysis, category)

        self._log.info(
            "submission_classified",
            auto_approve=auto_approve,
            category=category,
            priority=priority.value,
            reason_codes=reason_codes,
        )
        return Classification(
            category=category,
            priority=priority,
            auto_approve=auto_approve,
            reason_codes=reason_codes,
        )

    def _approval_failures(
        self, analysis: ContentAnalysis, duplicate_found: bool
    ) -> list[str]:
        t = self._thresholds
        failures: list[str] = []
        if analysis.is_fallback:
            failures.append(REASON_ANALYSIS_FAILED)
        if not analysis.community_alignment > t.community_alignment_threshold:
            failures.append(REASON_LOW_ALIGNMENT)
        if not analysis.relevance > t.relevance_threshold:
            failures.append(REASON_LOW_RELEVANCE)
        if not analysis.safety.trauma_informed:
            failures.append(REASON_NOT_TRAUMA_INFORMED)
        if not analysis.safety.anti_oppression:
            failures.append(REASON_NOT_ANTI_OPPRESSION)
        if duplicate_found or analysis.duplicate_score >= t.duplicate_suspicion_threshold:
            failures.append(REASON_POSSIBLE_DUPLICATE)
        return failures

    def derive_category(
        self, submission: Submission, analysis: ContentAnalysis | None = None
    ) -> str | None:
        """Derive the content category.

        Order: critical mutual aid, events, keyword match over the text and
        tags, the analyzer's hint, then the content type itself.

        Args:
            submission: Normalized submission.
            analysis: Analyzer output, if any.

        Returns:
            Category slug, or None when nothing applies.
        """
        if _is_critical_mutual_aid(submission):
            return CATEGORY_URGENT_MUTUAL_AID
        if submission.content_type == ContentType.EVENT:
            return CATEGORY_COMMUNITY_EVENT

        text = f"{submission.combined_text} {' '.join(sorted(submission.tags))}"
        matched = self._matcher.best_category(text)
        if matched is not None:
            return matched

        if analysis is not None and analysis.category_hint and not analysis.is_fallback:
            return analysis.category_hint
        if submission.content_type is not None:
            return submission.content_type.value
        return None

    def derive_priority(
        self,
        submission: Submission,
        analysis: ContentAnalysis,
        category: str | None,
    ) -> Priority:
        """Derive review priority; the first matching rule wins."""
        if _is_critical_mutual_aid(submission):
            return Priority.URGENT
        if category == CATEGORY_ORGANIZING or submission.verified_source:
            return Priority.HIGH
        if analysis.relevance < self._thresholds.low_priority_relevance:
            return Priority.LOW
        return Priority.MEDIUM


def _is_critical_mutual_aid(submission: Submission) -> bool:
    return (
        submission.content_type == ContentType.MUTUAL_AID
        and (submission.urgency or "").lower() == URGENCY_CRITICAL
    )
