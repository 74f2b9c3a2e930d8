"""Submission model shared by every intake stage."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import Field

from src.data_model.base import StrictBaseModel


class ContentType(str, Enum):
    """Kinds of community content accepted at intake."""

    ARTICLE = "article"
    EVENT = "event"
    RESOURCE = "resource"
    MUTUAL_AID = "mutual-aid"

    @property
    def is_event_shaped(self) -> bool:
        """Whether the content needs a place and a way to get in touch."""
        return self in (ContentType.EVENT, ContentType.MUTUAL_AID)


class Submission(StrictBaseModel):
    """A unit of externally supplied content in its fixed, normalized shape.

    ``content_type`` is None when the producer sent a type this system does
    not recognize; the validator reports that as a violation. The invariant
    that ``title`` and one of ``description``/``body`` are non-empty holds
    only for submissions the validator accepted.
    """

    external_id: str | None = None
    source_url: str | None = None
    content_type: ContentType | None = None
    raw_content_type: str | None = None
    title: str = ""
    description: str = ""
    body: str = ""
    tags: frozenset[str] = Field(default_factory=frozenset)
    submitter_identity: str = Field(min_length=1)
    received_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    location: str | None = None
    contact: str | None = None
    urgency: str | None = None
    verified_source: bool = False

    @property
    def combined_text(self) -> str:
        """Title, description and body joined for text screening."""
        return f"{self.title} {self.description} {self.body}"

    @property
    def analysis_body(self) -> str:
        """Body text sent for analysis, falling back to the description."""
        return self.body or self.description
