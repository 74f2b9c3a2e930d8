"""Effects that run after a record is durably persisted."""

from collections.abc import Callable
from typing import Protocol

import structlog

from src.data_model import Decision, ModerationRecord, Priority
from src.store.protocols import ModerationStore


logger = structlog.get_logger()


class PostCommitEffect(Protocol):
    """Side effect applied to a committed record.

    Failures are logged by the pipeline and never change the stored
    decision.
    """

    name: str

    def apply(self, record: ModerationRecord, store: ModerationStore) -> None:
        """Apply the effect to a persisted record."""
        ...


class PublishProjectionEffect:
    """Materializes auto-approved records into the published view.

    The moderation record stays the source of truth; the published view is
    a projection that can be rebuilt from it.
    """

    name = "publish_projection"

    def apply(self, record: ModerationRecord, store: ModerationStore) -> None:
        """Publish the record if it was auto-approved."""
        if record.decision != Decision.AUTO_APPROVED:
            return
        if store.publish(record.id):
            logger.info("record_published", record_id=record.id)


class UrgentAlertEffect:
    """Notifies a callback about urgent records, such as critical mutual aid."""

    name = "urgent_alert"

    def __init__(self, notify: Callable[[ModerationRecord], None]) -> None:
        """Initialize the effect.

        Args:
            notify: Callback receiving each urgent record.
        """
        self._notify = notify

    def apply(self, record: ModerationRecord, store: ModerationStore) -> None:  # noqa: ARG002
        """Notify when the record is urgent and not rejected."""
        if record.priority != Priority.URGENT or record.decision == Decision.REJECTED:
            return
        self._notify(record)
        logger.info("urgent_alert_sent", record_id=record.id, category=record.category)
