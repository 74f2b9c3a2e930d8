"""Domain-specific error types for the analyzer module."""


class AnalyzerUnavailableError(Exception):
    """Content analyzer call failure.

    Covers transport errors, timeouts, non-2xx responses and malformed
    bodies. The intake pipeline recovers from it with the fallback analysis.

    Attributes:
        status_code: HTTP status code from the analyzer, or 0 if none.
    """

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code
