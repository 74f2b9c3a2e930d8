"""Protocol interface for content analyzers."""

from typing import Protocol, runtime_checkable

from src.data_model import ContentAnalysis, Submission


@runtime_checkable
class ContentAnalyzer(Protocol):
    """Protocol for content quality, safety and alignment analyzers.

    Any object that implements ``analyze`` with the matching signature can
    be injected into the intake pipeline, whether it calls a remote
    service or scores content locally.
    """

    def analyze(self, submission: Submission) -> ContentAnalysis:
        """Analyze a validated submission.

        Args:
            submission: Normalized submission.

        Returns:
            Structured content analysis.

        Raises:
            AnalyzerUnavailableError: If the analysis cannot be produced.
        """
        ...
