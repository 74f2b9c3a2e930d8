"""The single fallback analysis used when the analyzer cannot answer."""

import structlog

from src.analyzer.errors import AnalyzerUnavailableError
from src.data_model import ContentAnalysis, SafetyAssessment, Submission


logger = structlog.get_logger()

ANALYSIS_FAILED_FLAG = "analysis-failed"
NEEDS_REVIEW_TAG = "needs-manual-review"


def fallback_analysis() -> ContentAnalysis:
    """Build the conservative analysis used on analyzer failure.

    Mid-range scores with every safety check failed, so the submission is
    always routed to human review and never auto-approved.

    Returns:
        Fallback content analysis.
    """
    return ContentAnalysis(
        relevance=0.5,
        community_alignment=0.6,
        quality_score=0.3,
        safety=SafetyAssessment(
            trauma_informed=False,
            community_safe=False,
            anti_oppression=False,
            flags=frozenset({ANALYSIS_FAILED_FLAG}),
        ),
        duplicate_score=0.0,
        suggested_tags=frozenset({NEEDS_REVIEW_TAG}),
        category_hint=None,
        is_fallback=True,
    )


class UnconfiguredAnalyzer:
    """Analyzer used when no analysis endpoint is configured.

    Always raises, so callers take the same fallback path as a failed call.
    """

    def __init__(self) -> None:
        self._log = logger.bind(component="analyzer", subcomponent="unconfigured")

    def analyze(self, submission: Submission) -> ContentAnalysis:
        """Refuse to analyze.

        Raises:
            AnalyzerUnavailableError: Always.
        """
        self._log.warning("analyzer_not_configured", title=submission.title[:80])
        msg = "Content analyzer is not configured"
        raise AnalyzerUnavailableError(msg)
