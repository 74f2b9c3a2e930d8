"""Structural and community-guideline validation of submissions."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from src.classification.category_matcher import TermScanner
from src.config.schemas.policy import GuidelinesConfig
from src.data_model import Submission
from src.intake.normalize import normalize_payload


logger = structlog.get_logger()

VIOLATION_MISSING_TITLE = "missing-title"
VIOLATION_MISSING_CONTENT = "missing-content"
VIOLATION_UNRECOGNIZED_TYPE = "unrecognized-content-type"
VIOLATION_MISSING_LOCATION_AND_CONTACT = "missing-location-and-contact"
VIOLATION_OPPRESSIVE_PREFIX = "oppressive-language"

WARNING_MISSING_LOCATION = "missing-location"
WARNING_MISSING_CONTACT = "missing-contact"
WARNING_CONTENT_WARNING_PREFIX = "content-warning-suggested"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one submission.

    Attributes:
        ok: True when there are no violations.
        normalized: The normalized submission.
        violations: Blocking findings, in detection order.
        warnings: Non-blocking findings, in detection order.
    """

    ok: bool
    normalized: Submission
    violations: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class SubmissionValidator:
    """Normalizes submissions and screens them against community guidelines."""

    def __init__(self, guidelines: GuidelinesConfig | None = None) -> None:
        """Initialize the validator.

        Args:
            guidelines: Screening term lists (defaults apply when None).
        """
        config = guidelines or GuidelinesConfig()
        self._oppressive = TermScanner(config.oppressive_terms)
        self._trauma = TermScanner(config.trauma_terms)
        self._markers = TermScanner(config.content_warning_markers)
        self._log = logger.bind(component="validator")

    def validate(
        self,
        raw_or_submission: Submission | Mapping[str, object],
        source_identity: str = "anonymous",
        received_at: datetime | None = None,
    ) -> ValidationResult:
        """Validate a raw payload or an already normalized submission.

        Args:
            raw_or_submission: Producer payload or Submission.
            source_identity: Identity used when normalizing a raw payload.
            received_at: Receipt time used when normalizing a raw payload.

        Returns:
            Validation result with ordered violations and warnings.
        """
        if isinstance(raw_or_submission, Submission):
            submission = raw_or_submission
        else:
            submission = normalize_payload(raw_or_submission, source_identity, received_at)

        violations: list[str] = []
        warnings: list[str] = []

        if not submission.title:
            violations.append(VIOLATION_MISSING_TITLE)
        if not submission.description and not submission.body:
            violations.append(VIOLATION_MISSING_CONTENT)
        if submission.content_type is None:
            violations.append(VIOLATION_UNRECOGNIZED_TYPE)
        elif submission.content_type.is_event_shaped:
            if not submission.location and not submission.contact:
                violations.append(VIOLATION_MISSING_LOCATION_AND_CONTACT)
            elif not submission.location:
                warnings.append(WARNING_MISSING_LOCATION)
            elif not submission.contact:
                warnings.append(WARNING_MISSING_CONTACT)

        text = submission.combined_text.lower()
        violations.extend(
            f"{VIOLATION_OPPRESSIVE_PREFIX}:{term}" for term in self._oppressive.find(text)
        )
        if not self._markers.any_present(text):
            warnings.extend(
                f"{WARNING_CONTENT_WARNING_PREFIX}:{term}"
                for term in self._trauma.find(text)
            )

        ok = not violations
        self._log.info(
            "submission_validated",
            ok=ok,
            violation_count=len(violations),
            warning_count=len(warnings),
        )
        return ValidationResult(
            ok=ok, normalized=submission, violations=violations, warnings=warnings
        )
