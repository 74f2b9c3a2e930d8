"""Shared data model primitives."""

from src.data_model.analysis import ContentAnalysis, SafetyAssessment
from src.data_model.base import StrictBaseModel, clamp_unit
from src.data_model.record import (
    AuditEntry,
    Decision,
    ModerationRecord,
    Priority,
    ReviewOutcome,
    new_record_id,
)
from src.data_model.submission import ContentType, Submission


__all__ = [
    "AuditEntry",
    "ContentAnalysis",
    "ContentType",
    "Decision",
    "ModerationRecord",
    "Priority",
    "ReviewOutcome",
    "SafetyAssessment",
    "StrictBaseModel",
    "Submission",
    "clamp_unit",
    "new_record_id",
]
