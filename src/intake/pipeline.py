"""Intake pipeline: admission, validation, dedup, analysis, decision, persistence."""

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

import structlog

from src.analyzer.errors import AnalyzerUnavailableError
from src.analyzer.fallback import fallback_analysis
from src.analyzer.protocols import ContentAnalyzer
from src.classification.engine import ClassificationEngine
from src.data_model import (
    ContentAnalysis,
    ContentType,
    Decision,
    ModerationRecord,
    Submission,
    new_record_id,
)
from src.dedup.deduplicator import Deduplicator, DuplicateResult, MatchKind
from src.intake.auth import SourceAuthenticator
from src.intake.effects import PostCommitEffect, PublishProjectionEffect
from src.intake.errors import (
    AuthenticationError,
    DuplicateDetectedError,
    IntakeError,
    PersistenceFailedError,
    RateLimitedError,
    ValidationFailedError,
)
from src.intake.metrics import IntakeMetrics
from src.intake.rate_limiter import RateLimiterProtocol
from src.intake.state_machine import IngestionState, IngestionStateMachine
from src.intake.validator import SubmissionValidator
from src.observability.logging import bind_submission_context, clear_submission_context
from src.store.errors import DuplicateKeyError
from src.store.protocols import ModerationStore


logger = structlog.get_logger()

RESEARCH_BATCH_MAX_RESULTS = 10
RESEARCH_MIN_RELEVANCE = 0.6
RESEARCH_TAG = "automated-research"

_WHITESPACE = re.compile(r"\s+")


class IntakeStatus(str, Enum):
    """Outcome of one call to the pipeline."""

    AUTO_APPROVED = "auto-approved"
    QUEUED_FOR_REVIEW = "queued-for-review"
    REJECTED = "rejected"
    RATE_LIMITED = "rate-limited"
    UNAUTHENTICATED = "unauthenticated"
    FAILED = "failed"


_STATUS_BY_DECISION: dict[Decision, IntakeStatus] = {
    Decision.AUTO_APPROVED: IntakeStatus.AUTO_APPROVED,
    Decision.QUEUED_FOR_REVIEW: IntakeStatus.QUEUED_FOR_REVIEW,
    Decision.REJECTED: IntakeStatus.REJECTED,
}


@dataclass(frozen=True)
class IntakeResult:
    """Result of submitting one payload.

    Attributes:
        status: Outcome of the call.
        record: Persisted record, or None when nothing was stored.
        error: Reason the submission was not accepted, if any.
    """

    status: IntakeStatus
    record: ModerationRecord | None = None
    error: IntakeError | None = None

    @property
    def accepted(self) -> bool:
        """Whether the submission was published or queued for review."""
        return self.status in (
            IntakeStatus.AUTO_APPROVED,
            IntakeStatus.QUEUED_FOR_REVIEW,
        )


@dataclass(frozen=True)
class IntakeRequest:
    """One submission for batch intake."""

    payload: Mapping[str, object]
    source_identity: str
    credential: str | None = None
    source_class: str | None = None


@dataclass
class ResearchBatchSummary:
    """Tally of a research discovery batch.

    Attributes:
        query: Search query that produced the results.
        total_results: Results received.
        processed: Results stored as auto-approved or queued.
        duplicates: Results matching existing records.
        rejected: Results rejected by validation.
        skipped: Results dropped for low relevance or past the batch cap.
        failed: Results that could not be stored.
        record_ids: Ids of records stored as processed.
    """

    query: str
    total_results: int = 0
    processed: int = 0
    duplicates: int = 0
    rejected: int = 0
    skipped: int = 0
    failed: int = 0
    record_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Convert the summary to a dictionary."""
        return {
            "query": self.query,
            "total_results": self.total_results,
            "processed": self.processed,
            "duplicates": self.duplicates,
            "rejected": self.rejected,
            "skipped": self.skipped,
            "failed": self.failed,
            "record_ids": list(self.record_ids),
        }


def slugify_query(query: str) -> str:
    """Turn a search query into a tag slug."""
    return _WHITESPACE.sub("-", query.strip()).lower()


class IngestionPipeline:
    """Runs each submission through the intake stages in order.

    Stages within one submission are sequential; independent submissions
    may run on independent threads. Outcomes other than acceptance are
    returned as IntakeError values inside IntakeResult; only illegal state
    transitions raise.
    """

    def __init__(
        self,
        store: ModerationStore,
        analyzer: ContentAnalyzer,
        rate_limiter: RateLimiterProtocol,
        validator: SubmissionValidator | None = None,
        deduplicator: Deduplicator | None = None,
        classifier: ClassificationEngine | None = None,
        authenticator: SourceAuthenticator | None = None,
        effects: Sequence[PostCommitEffect] | None = None,
        analyzer_timeout_seconds: float = 5.0,
        max_workers: int = 8,
        clock: Callable[[], datetime] | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            store: Persistence boundary.
            analyzer: Content analyzer.
            rate_limiter: Injected per-source rate limiter.
            validator: Submission validator (defaults apply when None).
            deduplicator: Duplicate detector (defaults to one over ``store``).
            classifier: Classification engine (defaults apply when None).
            authenticator: Source authenticator; None admits every source.
            effects: Post-commit effects (defaults to publishing).
            analyzer_timeout_seconds: Upper bound on one analyzer call.
            max_workers: Worker threads for analyzer calls and batch intake.
            clock: Time source for ``received_at`` and ``created_at``.
            on_close: Called once by ``close`` to release resources the
                pipeline owns, such as a store opened on its behalf.
        """
        self._store = store
        self._analyzer = analyzer
        self._rate_limiter = rate_limiter
        self._validator = validator or SubmissionValidator()
        self._deduplicator = deduplicator or Deduplicator(store)
        self._classifier = classifier or ClassificationEngine()
        self._authenticator = authenticator
        self._effects: list[PostCommitEffect] = (
            list(effects) if effects is not None else [PublishProjectionEffect()]
        )
        self._analyzer_timeout = analyzer_timeout_seconds
        self._max_workers = max_workers
        self._clock = clock or (lambda: datetime.now(UTC))
        self._on_close = on_close
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="analyzer"
        )
        self._metrics = IntakeMetrics.get_instance()
        self._log = logger.bind(component="intake")

    def close(self) -> None:
        """Shut down the analyzer worker pool and release owned resources."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            on_close()

    def __enter__(self) -> "IngestionPipeline":
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()

    # ===== Entry points =====

    def submit(
        self,
        raw_payload: Mapping[str, object],
        source_identity: str,
        credential: str | None = None,
        source_class: str | None = None,
    ) -> IntakeResult:
        """Process one submission end to end.

        Args:
            raw_payload: Producer payload in any supported shape.
            source_identity: Identity of the submitting source.
            credential: Shared secret presented by the source.
            source_class: Integration class selecting the rate limit.

        Returns:
            Intake result carrying the persisted record or the error.
        """
        self._metrics.increment("submissions_total")

        admission = self._admit(source_identity, credential, source_class)
        if admission is not None:
            return admission

        return self._process(raw_payload, source_identity)

    def submit_many(self, requests: Iterable[IntakeRequest]) -> list[IntakeResult]:
        """Process independent submissions concurrently.

        Args:
            requests: Submissions to process.

        Returns:
            Results in the order of ``requests``.
        """
        items = list(requests)
        if not items:
            return []

        with ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(items)),
            thread_name_prefix="intake",
        ) as pool:
            futures = [
                pool.submit(
                    self.submit,
                    item.payload,
                    item.source_identity,
                    item.credential,
                    item.source_class,
                )
                for item in items
            ]
            return [future.result() for future in futures]

    def submit_research_batch(
        self,
        query: str,
        results: Sequence[Mapping[str, object]],
        source_identity: str,
        credential: str | None = None,
        source_class: str | None = "automation",
    ) -> ResearchBatchSummary:
        """Submit research discovery results as articles.

        The batch counts as one request against the rate limit. At most
        ten results are considered; results scoring below the minimum
        relevance are skipped.

        Args:
            query: Search query that produced the results.
            results: Result payloads with title, url, description and
                relevance_score.
            source_identity: Identity of the research source.
            credential: Shared secret presented by the source.
            source_class: Integration class selecting the rate limit.

        Returns:
            Summary of the batch.
        """
        summary = ResearchBatchSummary(query=query, total_results=len(results))
        self._metrics.increment("submissions_total")

        admission = self._admit(source_identity, credential, source_class)
        if admission is not None:
            summary.skipped = len(results)
            return summary

        summary.skipped += max(0, len(results) - RESEARCH_BATCH_MAX_RESULTS)
        tags = [RESEARCH_TAG, slugify_query(query)]

        for result in results[:RESEARCH_BATCH_MAX_RESULTS]:
            score = result.get("relevance_score")
            if (
                isinstance(score, bool)
                or not isinstance(score, int | float)
                or score < RESEARCH_MIN_RELEVANCE
            ):
                summary.skipped += 1
                continue

            payload = {
                "content_type": ContentType.ARTICLE.value,
                "title": result.get("title"),
                "description": result.get("description"),
                "url": result.get("url"),
                "tags": tags,
            }
            outcome = self._process(payload, source_identity)
            self._tally(summary, outcome)

        self._log.info("research_batch_processed", **summary.to_dict())
        return summary

    @staticmethod
    def _tally(summary: ResearchBatchSummary, outcome: IntakeResult) -> None:
        if outcome.accepted and outcome.record is not None:
            summary.processed += 1
            summary.record_ids.append(outcome.record.id)
        elif isinstance(outcome.error, DuplicateDetectedError):
            summary.duplicates += 1
        elif isinstance(outcome.error, ValidationFailedError):
            summary.rejected += 1
        else:
            summary.failed += 1

    # ===== Stages =====

    def _admit(
        self,
        source_identity: str,
        credential: str | None,
        source_class: str | None,
    ) -> IntakeResult | None:
        """Apply the rate limit and source authentication."""
        if not self._rate_limiter.allow(source_identity, source_class=source_class):
            self._metrics.increment("rate_limited_total")
            self._log.warning("submission_rate_limited", source=source_identity)
            return IntakeResult(
                status=IntakeStatus.RATE_LIMITED,
                error=RateLimitedError(source_identity),
            )

        anonymous = not source_identity.strip()
        if anonymous or (
            self._authenticator is not None
            and not self._authenticator.authenticate(source_identity, credential)
        ):
            self._metrics.increment("auth_failed_total")
            return IntakeResult(
                status=IntakeStatus.UNAUTHENTICATED,
                error=AuthenticationError(source_identity),
            )

        return None

    def _process(
        self, raw_payload: Mapping[str, object], source_identity: str
    ) -> IntakeResult:
        record_id = new_record_id()
        bind_submission_context(record_id, source_identity)
        try:
            return self._run_stages(record_id, raw_payload, source_identity)
        finally:
            clear_submission_context()

    def _run_stages(
        self,
        record_id: str,
        raw_payload: Mapping[str, object],
        source_identity: str,
    ) -> IntakeResult:
        sm = IngestionStateMachine(record_id)
        now = self._clock()

        validation = self._validator.validate(raw_payload, source_identity, now)
        submission = validation.normalized
        canonical_url = self._deduplicator.canonical_url(submission)
        self._log.info(
            "submission_received",
            content_type=submission.raw_content_type,
            has_url=canonical_url is not None,
        )

        if not validation.ok:
            sm.transition_to(IngestionState.REJECTED)
            record = ModerationRecord(
                id=record_id,
                submission=submission,
                decision=Decision.REJECTED,
                reason_codes=validation.violations,
                canonical_url=canonical_url,
                created_at=now,
            )
            self._metrics.increment("validation_rejected_total")
            return self._persist_rejection(
                sm, record, ValidationFailedError(validation.violations)
            )
        sm.transition_to(IngestionState.VALIDATED)

        try:
            duplicates = self._deduplicator.find_duplicates(submission)
        except Exception as exc:  # noqa: BLE001
            return self._persistence_failed(exc, stage="dedup_lookup")
        if duplicates.is_duplicate:
            sm.transition_to(IngestionState.REJECTED)
            record = self._duplicate_record(record_id, submission, duplicates, None, now)
            self._metrics.increment("duplicates_total")
            return self._persist_rejection(
                sm, record, DuplicateDetectedError(duplicates.matches)
            )
        sm.transition_to(IngestionState.DEDUP_CHECKED)

        analysis = self._analyze(submission)
        sm.transition_to(IngestionState.ANALYZED)

        classification = self._classifier.classify(
            submission, analysis, validation.warnings
        )
        sm.transition_to(IngestionState.CLASSIFIED)

        record = ModerationRecord(
            id=record_id,
            submission=submission,
            analysis=analysis,
            decision=(
                Decision.AUTO_APPROVED
                if classification.auto_approve
                else Decision.QUEUED_FOR_REVIEW
            ),
            reason_codes=classification.reason_codes,
            priority=classification.priority,
            category=classification.category,
            canonical_url=canonical_url,
            created_at=now,
        )

        try:
            self._store.insert(record)
        except DuplicateKeyError as exc:
            return self._resolve_claim_race(sm, record, exc)
        except Exception as exc:  # noqa: BLE001
            return self._persistence_failed(exc, stage="insert", decision=record.decision)

        return self._committed(sm, record, None)

    def _analyze(self, submission: Submission) -> ContentAnalysis:
        """Call the analyzer within the timeout, falling back on any failure."""
        future = self._executor.submit(self._analyzer.analyze, submission)
        try:
            return future.result(timeout=self._analyzer_timeout)
        except TimeoutError:
            future.cancel()
            self._log.warning(
                "analyzer_fallback_used",
                reason="timeout",
                timeout_seconds=self._analyzer_timeout,
            )
        except AnalyzerUnavailableError as exc:
            self._log.warning(
                "analyzer_fallback_used",
                reason="unavailable",
                status_code=exc.status_code,
                error=str(exc),
            )
        except Exception as exc:  # noqa: BLE001
            self._log.warning(
                "analyzer_fallback_used",
                reason="error",
                error_type=type(exc).__name__,
                error=str(exc),
            )
        self._metrics.increment("analyzer_fallback_total")
        return fallback_analysis()

    def _duplicate_record(
        self,
        record_id: str,
        submission: Submission,
        duplicates: DuplicateResult,
        analysis: ContentAnalysis | None,
        now: datetime,
    ) -> ModerationRecord:
        return ModerationRecord(
            id=record_id,
            submission=submission,
            analysis=analysis,
            decision=Decision.REJECTED,
            reason_codes=duplicates.reason_codes,
            canonical_url=duplicates.canonical_url,
            duplicate_of=duplicates.matches,
            created_at=now,
        )

    def _resolve_claim_race(
        self,
        sm: IngestionStateMachine,
        record: ModerationRecord,
        exc: DuplicateKeyError,
    ) -> IntakeResult:
        """Turn a lost URL claim into a duplicate referencing the winner."""
        self._metrics.increment("url_claim_races_total")
        self._log.info("url_claim_lost", canonical_url=exc.canonical_url)
        sm.transition_to(IngestionState.REJECTED)

        try:
            duplicates = self._deduplicator.find_duplicates(record.submission)
        except Exception as lookup_exc:  # noqa: BLE001
            return self._persistence_failed(lookup_exc, stage="claim_race_lookup")
        if not duplicates.is_duplicate:
            duplicates = DuplicateResult(
                is_duplicate=True,
                matches=[exc.existing_id] if exc.existing_id else [],
                matched_by=MatchKind.URL,
                canonical_url=exc.canonical_url,
            )

        duplicate = self._duplicate_record(
            record.id,
            record.submission,
            duplicates,
            record.analysis,
            record.created_at,
        )
        self._metrics.increment("duplicates_total")
        return self._persist_rejection(
            sm, duplicate, DuplicateDetectedError(duplicates.matches)
        )

    def _persist_rejection(
        self,
        sm: IngestionStateMachine,
        record: ModerationRecord,
        error: IntakeError,
    ) -> IntakeResult:
        try:
            self._store.insert(record)
        except Exception as exc:  # noqa: BLE001
            return self._persistence_failed(exc, stage="insert", decision=record.decision)
        return self._committed(sm, record, error)

    def _persistence_failed(
        self,
        exc: Exception,
        stage: str,
        decision: Decision | None = None,
    ) -> IntakeResult:
        """Report a store error as a failed result; nothing is stored."""
        self._metrics.increment("persistence_failed_total")
        self._log.error(
            "record_persist_failed",
            stage=stage,
            decision=decision.value if decision is not None else None,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return IntakeResult(
            status=IntakeStatus.FAILED,
            error=PersistenceFailedError(f"Could not store record: {exc}"),
        )

    def _committed(
        self,
        sm: IngestionStateMachine,
        record: ModerationRecord,
        error: IntakeError | None,
    ) -> IntakeResult:
        sm.transition_to(IngestionState.PERSISTED)

        if record.decision == Decision.AUTO_APPROVED:
            self._metrics.increment("auto_approved_total")
        elif record.decision == Decision.QUEUED_FOR_REVIEW:
            self._metrics.increment("queued_total")
        self._metrics.record_decision(record.submission.submitter_identity)

        self._log.info(
            "record_persisted",
            decision=record.decision.value,
            priority=record.priority.value,
            category=record.category,
            reason_codes=record.reason_codes,
        )

        self._run_effects(record)
        return IntakeResult(
            status=_STATUS_BY_DECISION[record.decision], record=record, error=error
        )

    def _run_effects(self, record: ModerationRecord) -> None:
        for effect in self._effects:
            try:
                effect.apply(record, self._store)
            except Exception as exc:  # noqa: BLE001
                self._metrics.increment("effect_failures_total")
                self._log.warning(
                    "post_commit_effect_failed",
                    effect=effect.name,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
