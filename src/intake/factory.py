"""Wiring of a ready-to-use intake pipeline from settings and policy."""

from collections.abc import Callable

import structlog

from src.analyzer.factory import create_analyzer
from src.analyzer.protocols import ContentAnalyzer
from src.classification.engine import ClassificationEngine
from src.config.schemas.policy import ModerationPolicy
from src.data_model import ModerationRecord
from src.dedup.deduplicator import Deduplicator
from src.intake.auth import SourceAuthenticator
from src.intake.effects import PostCommitEffect, PublishProjectionEffect, UrgentAlertEffect
from src.intake.pipeline import IngestionPipeline
from src.intake.rate_limiter import FixedWindowRateLimiter
from src.intake.validator import SubmissionValidator
from src.settings import AppSettings, get_settings
from src.store.protocols import ModerationStore
from src.store.store import SqliteModerationStore


logger = structlog.get_logger()


def build_store(settings: AppSettings) -> SqliteModerationStore:
    """Open the SQLite store configured in settings.

    Args:
        settings: Application settings.

    Returns:
        Connected store; the caller owns closing it.
    """
    store = SqliteModerationStore(settings.db_path)
    store.connect()
    return store


def build_pipeline(
    settings: AppSettings | None = None,
    policy: ModerationPolicy | None = None,
    store: ModerationStore | None = None,
    analyzer: ContentAnalyzer | None = None,
    urgent_notifier: Callable[[ModerationRecord], None] | None = None,
) -> IngestionPipeline:
    """Build an intake pipeline.

    Args:
        settings: Application settings (read from the environment when None).
        policy: Moderation policy (defaults apply when None).
        store: Store to use; opens the configured SQLite store when None.
            A store opened here is closed by ``IngestionPipeline.close``;
            a store passed in stays owned by the caller.
        analyzer: Analyzer to use; built from settings when None.
        urgent_notifier: Callback for urgent records, if any.

    Returns:
        Configured pipeline.
    """
    settings = settings or get_settings()
    policy = policy or ModerationPolicy()
    opened_store: SqliteModerationStore | None = None
    if store is None:
        opened_store = build_store(settings)
        store = opened_store

    effects: list[PostCommitEffect] = [PublishProjectionEffect()]
    if urgent_notifier is not None:
        effects.append(UrgentAlertEffect(urgent_notifier))

    pipeline = IngestionPipeline(
        store=store,
        analyzer=analyzer if analyzer is not None else create_analyzer(settings),
        rate_limiter=FixedWindowRateLimiter.from_config(policy.rate_limits),
        validator=SubmissionValidator(policy.guidelines),
        deduplicator=Deduplicator(
            store,
            title_prefix_length=policy.dedup.title_prefix_length,
            strip_params=policy.dedup.canonical_url_strip_params,
        ),
        classifier=ClassificationEngine(policy.auto_approval, policy.categories),
        authenticator=SourceAuthenticator(
            settings.source_tokens,
            allow_anonymous=settings.allow_anonymous_sources,
        ),
        effects=effects,
        analyzer_timeout_seconds=settings.analyzer_timeout_seconds,
        max_workers=settings.intake_workers,
        on_close=opened_store.close if opened_store is not None else None,
    )
    logger.info(
        "pipeline_built",
        component="intake",
        policy_version=policy.version,
        analyzer_configured=settings.analyzer_configured,
        effects=[e.name for e in effects],
    )
    return pipeline
