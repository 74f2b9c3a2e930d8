"""Submission intake: admission, validation and the ingestion pipeline."""

from src.intake.auth import SourceAuthenticator
from src.intake.effects import PostCommitEffect, PublishProjectionEffect, UrgentAlertEffect
from src.intake.errors import (
    AuthenticationError,
    DuplicateDetectedError,
    IntakeError,
    PersistenceFailedError,
    RateLimitedError,
    ValidationFailedError,
)
from src.intake.factory import build_pipeline, build_store
from src.intake.metrics import IntakeMetrics
from src.intake.normalize import normalize_payload, resolve_content_type
from src.intake.pipeline import (
    IngestionPipeline,
    IntakeRequest,
    IntakeResult,
    IntakeStatus,
    ResearchBatchSummary,
)
from src.intake.rate_limiter import FixedWindowRateLimiter, RateLimiterProtocol
from src.intake.state_machine import (
    IngestionState,
    IngestionStateMachine,
    IngestionStateTransitionError,
)
from src.intake.validator import SubmissionValidator, ValidationResult


__all__ = [
    # Admission
    "FixedWindowRateLimiter",
    "RateLimiterProtocol",
    "SourceAuthenticator",
    # Errors
    "AuthenticationError",
    "DuplicateDetectedError",
    "IntakeError",
    "PersistenceFailedError",
    "RateLimitedError",
    "ValidationFailedError",
    # Effects
    "PostCommitEffect",
    "PublishProjectionEffect",
    "UrgentAlertEffect",
    # Metrics
    "IntakeMetrics",
    # Normalization and validation
    "SubmissionValidator",
    "ValidationResult",
    "normalize_payload",
    "resolve_content_type",
    # Pipeline
    "IngestionPipeline",
    "IngestionState",
    "IngestionStateMachine",
    "IngestionStateTransitionError",
    "IntakeRequest",
    "IntakeResult",
    "IntakeStatus",
    "ResearchBatchSummary",
    "build_pipeline",
    "build_store",
]
