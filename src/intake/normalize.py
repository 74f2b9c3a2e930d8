"""Mapping of producer payloads into the fixed Submission shape.

Producers send flat payloads, payloads nested under ``extracted_data``
(automation workflows) or under ``payload`` (community hub), and use their
own content-type vocabularies. Everything is mapped onto Submission here;
fields with no counterpart are discarded.
"""

from collections.abc import Mapping
from datetime import UTC, datetime

from src.data_model import ContentType, Submission


# Producer content-type vocabularies mapped onto ContentType
CONTENT_TYPE_ALIASES: dict[str, ContentType] = {
    "article": ContentType.ARTICLE,
    "news": ContentType.ARTICLE,
    "story": ContentType.ARTICLE,
    "member_story": ContentType.ARTICLE,
    "organizing_update": ContentType.ARTICLE,
    "event": ContentType.EVENT,
    "community_event": ContentType.EVENT,
    "resource": ContentType.RESOURCE,
    "resource_share": ContentType.RESOURCE,
    "mutual-aid": ContentType.MUTUAL_AID,
    "mutual_aid": ContentType.MUTUAL_AID,
}

_NESTED_KEYS = ("extracted_data", "payload")
_VERIFIED_STATUS = "verified"


def resolve_content_type(raw_type: object) -> ContentType | None:
    """Map a producer content type onto ContentType.

    Args:
        raw_type: Type value as sent by the producer.

    Returns:
        The matching ContentType, or None if unrecognized.
    """
    if not isinstance(raw_type, str):
        return None
    return CONTENT_TYPE_ALIASES.get(raw_type.strip().lower())


def _text(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return ""


def _optional_text(value: object) -> str | None:
    return _text(value) or None


def _first_text(*values: object) -> str:
    for value in values:
        text = _text(value)
        if text:
            return text
    return ""


def _location(value: object) -> str | None:
    if isinstance(value, Mapping):
        parts = [_text(value.get("area")), _text(value.get("postal_code"))]
        return ", ".join(p for p in parts if p) or None
    return _optional_text(value)


def _contact(*values: object) -> str | None:
    for value in values:
        if isinstance(value, Mapping):
            found = _first_text(
                value.get("details"),
                value.get("email"),
                value.get("phone"),
                value.get("social"),
            )
        else:
            found = _text(value)
        if found:
            return found
    return None


def _tags(*values: object) -> frozenset[str]:
    tags: set[str] = set()
    for value in values:
        if isinstance(value, list | tuple | set | frozenset):
            tags.update(t.strip().lower() for t in value if isinstance(t, str) and t.strip())
    return frozenset(tags)


def _inner(raw: Mapping[str, object]) -> Mapping[str, object]:
    for key in _NESTED_KEYS:
        nested = raw.get(key)
        if isinstance(nested, Mapping):
            return nested
    return raw


def normalize_payload(
    raw: object,
    source_identity: str,
    received_at: datetime | None = None,
) -> Submission:
    """Normalize a producer payload into a Submission.

    Non-mapping payloads produce an empty submission, which the validator
    then rejects for missing title and content.

    Args:
        raw: Decoded payload as received.
        source_identity: Identity of the submitting source.
        received_at: Receipt time (defaults to now).

    Returns:
        Normalized submission.
    """
    outer: Mapping[str, object] = raw if isinstance(raw, Mapping) else {}
    inner = _inner(outer)

    raw_type = outer.get("content_type", outer.get("type", inner.get("content_type")))
    classification = outer.get("classification")
    classification_tags = (
        classification.get("tags") if isinstance(classification, Mapping) else None
    )

    return Submission(
        external_id=_optional_text(
            outer.get("external_id", outer.get("id", inner.get("id")))
        ),
        source_url=_optional_text(
            outer.get("source_url")
            or outer.get("url")
            or inner.get("source_url")
            or inner.get("url")
        ),
        content_type=resolve_content_type(raw_type),
        raw_content_type=_optional_text(raw_type),
        title=_text(inner.get("title")),
        description=_text(inner.get("description")),
        body=_first_text(inner.get("content"), inner.get("body")),
        tags=_tags(inner.get("tags"), inner.get("categories"), classification_tags),
        submitter_identity=source_identity,
        received_at=received_at or datetime.now(UTC),
        location=_location(inner.get("location")),
        contact=_contact(inner.get("contact"), inner.get("contact_info")),
        urgency=_optional_text(inner.get("urgency", outer.get("urgency"))),
        verified_source=(
            outer.get("verification_status") == _VERIFIED_STATUS
            or outer.get("verified") is True
        ),
    )
