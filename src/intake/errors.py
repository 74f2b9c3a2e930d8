"""Intake outcome errors.

These are returned as values inside IntakeResult rather than raised, so a
transport adapter can map each one onto its own response.
"""


class IntakeError(Exception):
    """Base class for submission outcomes other than acceptance.

    Attributes:
        reason_code: Stable machine-readable code.
    """

    reason_code = "intake-error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, object]:
        """Serialize the error for adapter responses."""
        return {"error": self.reason_code, "message": self.message}


class RateLimitedError(IntakeError):
    """The source exceeded its request budget for the current window."""

    reason_code = "rate-limited"

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"Rate limit exceeded for source '{identity}'")


class AuthenticationError(IntakeError):
    """The source credential was missing or did not match."""

    reason_code = "authentication-failed"

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"Authentication failed for source '{identity}'")


class ValidationFailedError(IntakeError):
    """The submission broke a structural or guideline rule."""

    reason_code = "validation-failed"

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__(f"Validation failed: {', '.join(self.violations)}")

    def to_dict(self) -> dict[str, object]:
        """Serialize the error with its violations."""
        return {**super().to_dict(), "violations": self.violations}


class DuplicateDetectedError(IntakeError):
    """The submission matched one or more existing records."""

    reason_code = "duplicate"

    def __init__(self, matched_ids: list[str]) -> None:
        self.matched_ids = list(matched_ids)
        super().__init__(f"Duplicate of {len(self.matched_ids)} existing record(s)")

    def to_dict(self) -> dict[str, object]:
        """Serialize the error with the matched record ids."""
        return {**super().to_dict(), "matched_ids": self.matched_ids}


class PersistenceFailedError(IntakeError):
    """The record could not be stored; no decision was recorded."""

    reason_code = "persistence-failed"
