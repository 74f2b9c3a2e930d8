"""Domain exceptions for the moderation store.

This module defines a hierarchy of exceptions for the persistence layer,
separating infrastructure errors (database issues) from domain errors
(uniqueness and review transition rules).
"""


class StoreError(Exception):
    """Base exception for all moderation store errors."""


class ConnectionError(StoreError):
    """Raised when database connection fails or is not established."""

    def __init__(self, message: str = "Database not connected") -> None:
        """Initialize the connection error.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)


class DuplicateKeyError(StoreError):
    """Raised when a record claims a canonical URL already claimed by another.

    Attributes:
        canonical_url: The contested URL.
        existing_id: Id of the record holding the claim, when known.
    """

    def __init__(self, canonical_url: str, existing_id: str | None = None) -> None:
        """Initialize the error.

        Args:
            canonical_url: The contested URL.
            existing_id: Id of the record holding the claim.
        """
        self.canonical_url = canonical_url
        self.existing_id = existing_id
        super().__init__(f"URL already claimed: {canonical_url}")


class RecordNotFoundError(StoreError):
    """Raised when a requested moderation record does not exist."""

    def __init__(self, record_id: str) -> None:
        """Initialize the error with the missing record id.

        Args:
            record_id: The record id that was not found.
        """
        self.record_id = record_id
        super().__init__(f"Record not found: {record_id}")


class InvalidReviewTransitionError(StoreError):
    """Raised when a review is recorded for a record not awaiting review."""

    def __init__(self, record_id: str, decision: str) -> None:
        """Initialize the error.

        Args:
            record_id: The record that was reviewed.
            decision: The record's intake decision.
        """
        self.record_id = record_id
        self.decision = decision
        super().__init__(
            f"Record {record_id} has decision '{decision}' and cannot be reviewed"
        )


class MigrationError(StoreError):
    """Raised when a schema migration fails."""

    def __init__(self, version: int, message: str) -> None:
        """Initialize the migration error.

        Args:
            version: The migration version that failed.
            message: Human-readable error message.
        """
        self.version = version
        super().__init__(f"Migration {version} failed: {message}")
