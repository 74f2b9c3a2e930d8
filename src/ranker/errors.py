"""Domain-specific error types for the ranker module."""


class EmptyPoolError(Exception):
    """Raised when selection is requested over an empty candidate pool."""

    def __init__(self, message: str = "No candidates available for selection") -> None:
        super().__init__(message)
