"""Content analysis result returned by the external analyzer."""

from typing import Annotated

from pydantic import Field, field_validator

from src.data_model.base import StrictBaseModel, clamp_unit


class SafetyAssessment(StrictBaseModel):
    """Safety judgement of a piece of content.

    Attributes:
        trauma_informed: Content handles difficult topics with care.
        community_safe: Content is safe for the community.
        anti_oppression: Content is free of oppressive framing.
        flags: Free-form safety flags raised by the analyzer.
    """

    trauma_informed: bool = False
    community_safe: bool = False
    anti_oppression: bool = False
    flags: frozenset[str] = Field(default_factory=frozenset)


class ContentAnalysis(StrictBaseModel):
    """Structured quality, safety and alignment analysis.

    All scalar scores are clamped into [0, 1] on construction.
    """

    relevance: Annotated[float, Field(description="Relevance to the community")]
    community_alignment: Annotated[float, Field(description="Values alignment")]
    quality_score: Annotated[float, Field(description="Editorial quality")]
    safety: SafetyAssessment = Field(default_factory=SafetyAssessment)
    duplicate_score: float = 0.0
    suggested_tags: frozenset[str] = Field(default_factory=frozenset)
    category_hint: str | None = None
    is_fallback: bool = False

    @field_validator(
        "relevance",
        "community_alignment",
        "quality_score",
        "duplicate_score",
        mode="before",
    )
    @classmethod
    def clamp_score(cls, v: object) -> float:
        """Clamp scores to the unit interval."""
        if isinstance(v, bool) or not isinstance(v, int | float | str):
            msg = f"Score must be numeric, got {type(v).__name__}"
            raise ValueError(msg)
        return clamp_unit(float(v))
