"""Integration tests for the intake pipeline."""

import itertools
import sqlite3
from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from src.analyzer.fallback import ANALYSIS_FAILED_FLAG
from src.classification.engine import REASON_ANALYSIS_FAILED, REASON_AUTO_APPROVED
from src.data_model import Decision, ModerationRecord, Priority, SafetyAssessment
from src.intake.errors import (
    AuthenticationError,
    DuplicateDetectedError,
    PersistenceFailedError,
    RateLimitedError,
    ValidationFailedError,
)
from src.intake.auth import SourceAuthenticator
from src.intake.effects import PublishProjectionEffect, UrgentAlertEffect
from src.intake.factory import build_pipeline
from src.intake.metrics import IntakeMetrics
from src.intake.pipeline import IngestionPipeline, IntakeRequest, IntakeStatus
from src.intake.rate_limiter import FixedWindowRateLimiter
from src.settings import AppSettings
from src.store.errors import DuplicateKeyError
from src.store.memory import InMemoryModerationStore
from src.store.metrics import StoreMetrics
from src.store.store import SqliteModerationStore
from tests.helpers.factories import (
    FailingAnalyzer,
    SlowAnalyzer,
    StubAnalyzer,
    make_analysis,
    make_payload,
)
from tests.helpers.time import FIXED_NOW, FakeClock


def ticking_clock() -> Callable[[], datetime]:
    """Clock returning strictly increasing timestamps from FIXED_NOW."""
    ticks = itertools.count()
    return lambda: FIXED_NOW + timedelta(seconds=next(ticks))


@pytest.fixture(autouse=True)
def reset_metrics() -> None:
    """Reset metric singletons between tests."""
    IntakeMetrics.reset()
    StoreMetrics.reset()


@pytest.fixture
def store() -> InMemoryModerationStore:
    """Empty in-memory store."""
    return InMemoryModerationStore()


@pytest.fixture
def analyzer() -> StubAnalyzer:
    """Analyzer approving everything it sees."""
    return StubAnalyzer()


def _pipeline(
    store: InMemoryModerationStore,
    analyzer: object,
    **kwargs: object,
) -> IngestionPipeline:
    options: dict[str, object] = {
        "rate_limiter": FixedWindowRateLimiter(limits={"default": 100}),
        "clock": ticking_clock(),
    }
    options.update(kwargs)
    return IngestionPipeline(store=store, analyzer=analyzer, **options)  # type: ignore[arg-type]


@pytest.fixture
def pipeline(
    store: InMemoryModerationStore, analyzer: StubAnalyzer
) -> Generator[IngestionPipeline]:
    """Pipeline with a permissive rate limit and a stub analyzer."""
    with _pipeline(store, analyzer) as built:
        yield built


class TestScenarios:
    """End-to-end decision scenarios."""

    def test_strong_submission_is_auto_approved(
        self, pipeline: IngestionPipeline, store: InMemoryModerationStore
    ) -> None:
        """Aligned, relevant, safe content with no duplicates is published."""
        result = pipeline.submit(
            {"title": "Community Garden Grant", "url": "https://x.com/a",
             "content_type": "article", "description": "Funding secured."},
            "community-hub",
        )

        assert result.status == IntakeStatus.AUTO_APPROVED
        assert result.error is None
        assert result.record is not None
        assert result.record.decision == Decision.AUTO_APPROVED
        assert result.record.reason_codes == [REASON_AUTO_APPROVED]
        assert result.record.canonical_url == "https://x.com/a"
        assert store.get(result.record.id) == result.record
        assert store.is_published(result.record.id)

    def test_same_url_new_title_is_duplicate(
        self, pipeline: IngestionPipeline, store: InMemoryModerationStore
    ) -> None:
        """A resubmission under another title is rejected by URL."""
        first = pipeline.submit(make_payload(), "community-hub")

        second = pipeline.submit(
            make_payload(title="Totally different headline", url="http://X.com/a/"),
            "community-hub",
        )

        assert second.status == IntakeStatus.REJECTED
        assert isinstance(second.error, DuplicateDetectedError)
        assert second.record is not None
        assert second.record.reason_codes == ["duplicate", "matched-by-url"]
        assert second.record.duplicate_of == [first.record.id]  # type: ignore[union-attr]
        assert store.get(second.record.id) is not None

    def test_replay_is_idempotent(
        self,
        pipeline: IngestionPipeline,
        store: InMemoryModerationStore,
        analyzer: StubAnalyzer,
    ) -> None:
        """Replaying a submission yields one accepted record and one duplicate."""
        first = pipeline.submit(make_payload(), "community-hub")
        second = pipeline.submit(make_payload(), "community-hub")

        assert first.accepted
        assert second.error is not None
        assert isinstance(second.error, DuplicateDetectedError)
        assert second.error.matched_ids == [first.record.id]  # type: ignore[union-attr]
        assert len(analyzer.calls) == 1
        assert len(store) == 2
        accepted = [r for r in store.all_records() if r.decision != Decision.REJECTED]
        assert len(accepted) == 1

    def test_title_prefix_duplicate(self, pipeline: IngestionPipeline) -> None:
        """Similar titles without URLs are duplicates too."""
        pipeline.submit(make_payload(url=None), "community-hub")

        result = pipeline.submit(
            make_payload(url=None, title="Community garden grant renewed"),
            "community-hub",
        )

        assert result.record is not None
        assert result.record.reason_codes == ["duplicate", "matched-by-title"]

    def test_weak_submission_is_queued(
        self, store: InMemoryModerationStore
    ) -> None:
        """Unverified content is queued, never rejected."""
        analyzer = StubAnalyzer(
            make_analysis(community_alignment=0.79, safety=SafetyAssessment())
        )
        with _pipeline(store, analyzer) as pipeline:
            result = pipeline.submit(make_payload(), "web-form")

        assert result.status == IntakeStatus.QUEUED_FOR_REVIEW
        assert result.record is not None
        assert result.record.reason_codes == [
            "community-alignment-below-threshold",
            "not-trauma-informed",
            "not-anti-oppression",
        ]
        assert not store.is_published(result.record.id)


class TestRejections:
    """Tests for validation and admission failures."""

    def test_validation_failure_is_persisted_without_analysis(
        self,
        pipeline: IngestionPipeline,
        store: InMemoryModerationStore,
        analyzer: StubAnalyzer,
    ) -> None:
        """Invalid submissions are stored for audit and never analyzed."""
        result = pipeline.submit(
            make_payload(description="Stay out of that ghetto."), "web-form"
        )

        assert result.status == IntakeStatus.REJECTED
        assert isinstance(result.error, ValidationFailedError)
        assert result.error.violations == ["oppressive-language:ghetto"]
        assert result.record is not None
        assert result.record.reason_codes == ["oppressive-language:ghetto"]
        assert result.record.analysis is None
        assert store.get(result.record.id) is not None
        assert analyzer.calls == []

    def test_rejected_attempt_still_counts_for_dedup(
        self, pipeline: IngestionPipeline
    ) -> None:
        """Rejected records are matched like any other."""
        pipeline.submit(make_payload(description=""), "web-form")

        result = pipeline.submit(make_payload(), "web-form")

        assert isinstance(result.error, DuplicateDetectedError)

    def test_rate_limit_denies_without_record(
        self, store: InMemoryModerationStore, analyzer: StubAnalyzer
    ) -> None:
        """The N+1th call is denied and leaves no trace in the store."""
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(limits={"default": 2}, clock=clock)
        with _pipeline(store, analyzer, rate_limiter=limiter) as pipeline:
            results = [
                pipeline.submit(make_payload(title=f"Item {n}", url=f"https://x.com/{n}"), "bot")
                for n in ("one", "two", "three")
            ]
            clock.advance(60.0)
            after_window = pipeline.submit(
                make_payload(title="Item four", url="https://x.com/four"), "bot"
            )

        assert [r.status for r in results[:2]] == [IntakeStatus.AUTO_APPROVED] * 2
        assert results[2].status == IntakeStatus.RATE_LIMITED
        assert isinstance(results[2].error, RateLimitedError)
        assert results[2].record is None
        assert len(store) == 3
        assert after_window.accepted
        assert IntakeMetrics.get_instance().rate_limited_total == 1

    def test_authentication_failure(
        self, store: InMemoryModerationStore, analyzer: StubAnalyzer
    ) -> None:
        """Registered sources must present their secret."""
        auth = SourceAuthenticator({"community-hub": "s3cret"})
        with _pipeline(store, analyzer, authenticator=auth) as pipeline:
            denied = pipeline.submit(make_payload(), "community-hub", credential="wrong")
            allowed = pipeline.submit(make_payload(), "community-hub", credential="s3cret")

        assert denied.status == IntakeStatus.UNAUTHENTICATED
        assert isinstance(denied.error, AuthenticationError)
        assert allowed.accepted
        assert len(store) == 1

    def test_blank_identity_is_unauthenticated(self, pipeline: IngestionPipeline) -> None:
        """Submissions must name their source."""
        result = pipeline.submit(make_payload(), "  ")

        assert result.status == IntakeStatus.UNAUTHENTICATED
        assert result.record is None


class TestAnalyzerFailures:
    """Tests for the analyzer fallback path."""

    def test_unavailable_analyzer_never_auto_approves(
        self, store: InMemoryModerationStore
    ) -> None:
        """An erroring analyzer routes the submission to review."""
        analyzer = FailingAnalyzer()
        with _pipeline(store, analyzer) as pipeline:
            result = pipeline.submit(make_payload(), "web-form")

        assert analyzer.calls == 1
        assert result.status == IntakeStatus.QUEUED_FOR_REVIEW
        assert result.record is not None
        assert result.record.reason_codes[0] == REASON_ANALYSIS_FAILED
        assert result.record.analysis is not None
        assert result.record.analysis.is_fallback
        assert ANALYSIS_FAILED_FLAG in result.record.analysis.safety.flags
        assert IntakeMetrics.get_instance().analyzer_fallback_total == 1

    def test_slow_analyzer_times_out_to_fallback(
        self, store: InMemoryModerationStore
    ) -> None:
        """A call exceeding the timeout is treated as unavailable."""
        analyzer = SlowAnalyzer()
        pipeline = _pipeline(store, analyzer, analyzer_timeout_seconds=0.05)
        try:
            result = pipeline.submit(make_payload(), "web-form")
        finally:
            analyzer.release.set()
            pipeline.close()

        assert result.status == IntakeStatus.QUEUED_FOR_REVIEW
        assert result.record is not None
        assert result.record.analysis is not None
        assert result.record.analysis.is_fallback

    def test_unexpected_analyzer_error_falls_back(
        self, store: InMemoryModerationStore
    ) -> None:
        """Any analyzer exception takes the same fallback path."""

        class BrokenAnalyzer:
            def analyze(self, submission: object) -> object:
                msg = "bug"
                raise KeyError(msg)

        with _pipeline(store, BrokenAnalyzer()) as pipeline:
            result = pipeline.submit(make_payload(), "web-form")

        assert result.status == IntakeStatus.QUEUED_FOR_REVIEW


class TestPersistenceAndEffects:
    """Tests for claims, storage failures and post-commit effects."""

    def test_concurrent_same_url_has_one_winner(
        self, pipeline: IngestionPipeline, store: InMemoryModerationStore
    ) -> None:
        """Racing submissions for one URL accept exactly one."""
        requests = [
            IntakeRequest(
                payload=make_payload(title=f"Variant {n} of the story", url="https://x.com/a"),
                source_identity=f"source-{n}",
            )
            for n in range(8)
        ]

        results = pipeline.submit_many(requests)

        assert len(results) == 8
        assert sum(r.accepted for r in results) == 1
        assert all(
            isinstance(r.error, DuplicateDetectedError) for r in results if not r.accepted
        )
        assert len(store) == 8

    def test_storage_failure_reports_failed(self, analyzer: StubAnalyzer) -> None:
        """A store error yields a failed result and no record."""

        class BrokenStore(InMemoryModerationStore):
            def insert(self, record: ModerationRecord) -> str:
                msg = "disk full"
                raise OSError(msg)

        with _pipeline(BrokenStore(), analyzer) as pipeline:
            result = pipeline.submit(make_payload(), "web-form")

        assert result.status == IntakeStatus.FAILED
        assert isinstance(result.error, PersistenceFailedError)
        assert result.record is None

    def test_url_lookup_failure_reports_failed(self, analyzer: StubAnalyzer) -> None:
        """A store error during the duplicate check never escapes submit."""

        class LockedStore(InMemoryModerationStore):
            def find_by_url(self, canonical_url: str) -> ModerationRecord | None:
                msg = "database is locked"
                raise sqlite3.OperationalError(msg)

        store = LockedStore()
        with _pipeline(store, analyzer) as pipeline:
            result = pipeline.submit(make_payload(), "web-form")

        assert result.status == IntakeStatus.FAILED
        assert isinstance(result.error, PersistenceFailedError)
        assert "database is locked" in str(result.error)
        assert result.record is None
        assert analyzer.calls == []
        assert len(store) == 0
        assert IntakeMetrics.get_instance().persistence_failed_total == 1

    def test_title_lookup_failure_reports_failed(self, analyzer: StubAnalyzer) -> None:
        """Title matching failures are reported the same way."""

        class BrokenTitleStore(InMemoryModerationStore):
            def find_by_title_prefix(self, prefix: str) -> list[ModerationRecord]:
                msg = "disk I/O error"
                raise sqlite3.OperationalError(msg)

        with _pipeline(BrokenTitleStore(), analyzer) as pipeline:
            result = pipeline.submit(make_payload(url=None), "web-form")

        assert result.status == IntakeStatus.FAILED
        assert isinstance(result.error, PersistenceFailedError)

    def test_unconnected_sqlite_store_reports_failed(
        self, tmp_path: Path, analyzer: StubAnalyzer
    ) -> None:
        """A store that was never connected fails the submission cleanly."""
        store = SqliteModerationStore(tmp_path / "moderation.sqlite")

        with _pipeline(store, analyzer) as pipeline:  # type: ignore[arg-type]
            result = pipeline.submit(make_payload(), "web-form")

        assert result.status == IntakeStatus.FAILED
        assert isinstance(result.error, PersistenceFailedError)
        assert "not connected" in str(result.error)

    def test_lookup_failure_after_lost_claim_reports_failed(
        self, analyzer: StubAnalyzer
    ) -> None:
        """A store error while resolving a lost URL claim is a failure."""

        class FlakyStore(InMemoryModerationStore):
            def __init__(self) -> None:
                super().__init__()
                self.lookups = 0

            def find_by_url(self, canonical_url: str) -> ModerationRecord | None:
                self.lookups += 1
                if self.lookups > 1:
                    msg = "database is locked"
                    raise sqlite3.OperationalError(msg)
                return None

            def insert(self, record: ModerationRecord) -> str:
                raise DuplicateKeyError(record.canonical_url or "", "rec-winner")

        store = FlakyStore()
        with _pipeline(store, analyzer) as pipeline:
            result = pipeline.submit(make_payload(), "web-form")

        assert store.lookups == 2
        assert result.status == IntakeStatus.FAILED
        assert isinstance(result.error, PersistenceFailedError)
        assert result.record is None

    def test_effect_failure_keeps_decision(
        self, store: InMemoryModerationStore, analyzer: StubAnalyzer
    ) -> None:
        """A failing side effect never changes the stored decision."""

        class ExplodingEffect:
            name = "exploding"

            def apply(self, record: ModerationRecord, store: object) -> None:
                msg = "webhook down"
                raise RuntimeError(msg)

        with _pipeline(
            store, analyzer, effects=[ExplodingEffect(), PublishProjectionEffect()]
        ) as pipeline:
            result = pipeline.submit(make_payload(), "web-form")

        assert result.status == IntakeStatus.AUTO_APPROVED
        assert result.record is not None
        assert store.get(result.record.id).decision == Decision.AUTO_APPROVED  # type: ignore[union-attr]
        assert store.is_published(result.record.id)
        assert IntakeMetrics.get_instance().effect_failures_total == 1

    def test_urgent_mutual_aid_alerts(
        self, store: InMemoryModerationStore, analyzer: StubAnalyzer
    ) -> None:
        """Critical mutual aid requests are urgent and trigger an alert."""
        alerts: list[ModerationRecord] = []
        with _pipeline(
            store, analyzer, effects=[UrgentAlertEffect(alerts.append)]
        ) as pipeline:
            result = pipeline.submit(
                {
                    "type": "mutual_aid",
                    "payload": {
                        "title": "Emergency groceries needed",
                        "description": "Family of four needs food this week.",
                        "urgency": "critical",
                        "location": {"area": "Eastside"},
                        "contact_info": {"details": "555-0100"},
                    },
                },
                "community-hub",
            )

        assert result.record is not None
        assert result.record.priority == Priority.URGENT
        assert result.record.category == "urgent-mutual-aid"
        assert alerts == [result.record]


class TestResearchBatch:
    """Tests for research discovery batches."""

    TITLES = (
        "Solar co-op expands",
        "Tenant rights clinic",
        "Food bank hours",
        "Transit fare study",
        "Library makerspace",
        "Youth coding camp",
        "River cleanup results",
        "Housing survey",
        "Childcare cooperative",
        "Street tree census",
        "Extra finding one",
        "Extra finding two",
    )

    def _results(self) -> list[dict[str, object]]:
        results: list[dict[str, object]] = [
            {
                "title": title,
                "description": f"Summary of {title.lower()}.",
                "url": f"https://research.example.org/{n}",
                "relevance_score": 0.9,
            }
            for n, title in enumerate(self.TITLES)
        ]
        results[2]["relevance_score"] = 0.5
        results[4]["url"] = results[0]["url"]
        del results[5]["relevance_score"]
        return results

    def test_batch_summary(
        self, pipeline: IngestionPipeline, store: InMemoryModerationStore
    ) -> None:
        """Low relevance and overflow are skipped; duplicates are counted."""
        summary = pipeline.submit_research_batch(
            "Community Resilience", self._results(), "research-bot"
        )

        assert summary.total_results == 12
        assert summary.processed == 7
        assert summary.duplicates == 1
        assert summary.skipped == 4
        assert summary.rejected == 0
        assert len(summary.record_ids) == 7
        record = store.get(summary.record_ids[0])
        assert record is not None
        assert record.submission.tags == frozenset(
            {"automated-research", "community-resilience"}
        )

    def test_rate_limited_batch_is_skipped(
        self, store: InMemoryModerationStore, analyzer: StubAnalyzer
    ) -> None:
        """A denied batch stores nothing."""
        limiter = FixedWindowRateLimiter(limits={"default": 1})
        with _pipeline(store, analyzer, rate_limiter=limiter) as pipeline:
            pipeline.submit(make_payload(), "research-bot")
            summary = pipeline.submit_research_batch(
                "query", self._results(), "research-bot"
            )

        assert summary.skipped == 12
        assert summary.processed == 0
        assert len(store) == 1


class TestFactory:
    """Tests for build_pipeline."""

    def test_build_pipeline_with_sqlite(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, analyzer: StubAnalyzer
    ) -> None:
        """A pipeline built from settings persists to SQLite."""
        monkeypatch.setenv("MODERATION_DB_PATH", str(tmp_path / "moderation.sqlite"))
        settings = AppSettings(_env_file=None)

        with build_pipeline(settings, analyzer=analyzer) as pipeline:
            result = pipeline.submit(make_payload(), "web-form")

        assert result.status == IntakeStatus.AUTO_APPROVED
        assert (tmp_path / "moderation.sqlite").exists()

    def test_closing_pipeline_closes_opened_store(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, analyzer: StubAnalyzer
    ) -> None:
        """A store opened from settings is closed with the pipeline."""
        monkeypatch.setenv("MODERATION_DB_PATH", str(tmp_path / "moderation.sqlite"))

        pipeline = build_pipeline(analyzer=analyzer)
        store = pipeline._store
        assert isinstance(store, SqliteModerationStore)
        assert store.is_connected

        pipeline.close()
        pipeline.close()

        assert not store.is_connected

    def test_caller_store_stays_open(
        self, tmp_path: Path, analyzer: StubAnalyzer
    ) -> None:
        """A store passed in is left for the caller to close."""
        with SqliteModerationStore(tmp_path / "moderation.sqlite") as store:
            with build_pipeline(
                AppSettings(_env_file=None), store=store, analyzer=analyzer
            ) as pipeline:
                pipeline.submit(make_payload(), "web-form")

            assert store.is_connected

    def test_build_pipeline_without_analyzer_queues(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Without an analyzer endpoint nothing is auto-approved."""
        monkeypatch.delenv("ANALYZER_BASE_URL", raising=False)
        store = InMemoryModerationStore()

        with build_pipeline(AppSettings(_env_file=None), store=store) as pipeline:
            result = pipeline.submit(make_payload(), "web-form")

        assert result.status == IntakeStatus.QUEUED_FOR_REVIEW
