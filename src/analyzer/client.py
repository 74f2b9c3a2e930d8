"""HTTP client for the external content analysis service."""

from collections.abc import Mapping
from http import HTTPStatus

import httpx
import structlog
from pydantic import ValidationError

from src.analyzer.errors import AnalyzerUnavailableError
from src.data_model import ContentAnalysis, SafetyAssessment, Submission


logger = structlog.get_logger()

_ANALYZE_PATH = "/analyze/content"
_DEFAULT_TIMEOUT = 5.0


class HttpContentAnalyzer:
    """Client for a content analysis service speaking JSON over HTTP.

    Sends ``{title, body, url, content_type}`` and accepts responses using
    either the current field names (``relevance``, ``safety``,
    ``duplicate_score``) or the legacy service names
    (``content_relevance``, ``safety_assessment``,
    ``duplicate_check.similarity_score``, ``category_recommendation``).

    Attributes:
        base_url: Service base URL.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Service base URL.
            api_key: Bearer token for the service.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.timeout = timeout
        self._log = logger.bind(component="analyzer", subcomponent="client")

    def _build_request_body(self, submission: Submission) -> dict[str, object]:
        """Build the analysis request body."""
        return {
            "title": submission.title,
            "body": submission.analysis_body,
            "url": submission.source_url,
            "content_type": (
                submission.content_type.value if submission.content_type else None
            ),
        }

    def _send_request(self, body: dict[str, object]) -> httpx.Response:
        """Send a single analysis request.

        Raises:
            AnalyzerUnavailableError: On network errors and timeouts.
        """
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        try:
            return httpx.post(
                f"{self.base_url}{_ANALYZE_PATH}",
                headers=headers,
                json=body,
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            msg = f"Analyzer request failed: {exc}"
            raise AnalyzerUnavailableError(msg) from exc

    def analyze(self, submission: Submission) -> ContentAnalysis:
        """Analyze a submission through the remote service.

        Args:
            submission: Normalized submission.

        Returns:
            Parsed content analysis.

        Raises:
            AnalyzerUnavailableError: If the call or response parsing fails.
        """
        response = self._send_request(self._build_request_body(submission))

        if not HTTPStatus.OK <= response.status_code < HTTPStatus.MULTIPLE_CHOICES:
            self._log.warning("analyzer_error_status", status=response.status_code)
            msg = f"Analyzer returned {response.status_code}"
            raise AnalyzerUnavailableError(msg, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            msg = f"Analyzer returned invalid JSON: {exc}"
            raise AnalyzerUnavailableError(
                msg, status_code=response.status_code
            ) from exc

        analysis = parse_analysis(data)
        self._log.debug(
            "analysis_received",
            relevance=analysis.relevance,
            community_alignment=analysis.community_alignment,
        )
        return analysis


def _first(data: Mapping[str, object], *keys: str) -> object | None:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _string_set(value: object) -> frozenset[str]:
    if isinstance(value, list | tuple | set | frozenset):
        return frozenset(str(v) for v in value if str(v).strip())
    return frozenset()


def parse_analysis(data: object) -> ContentAnalysis:
    """Map an analyzer response body onto ContentAnalysis.

    Args:
        data: Decoded JSON body.

    Returns:
        Content analysis with scores clamped to [0, 1].

    Raises:
        AnalyzerUnavailableError: If required scores are missing or invalid.
    """
    if not isinstance(data, Mapping):
        msg = "Analyzer response is not a JSON object"
        raise AnalyzerUnavailableError(msg)

    # Response may be nested under "analysis" or flat
    inner = data.get("analysis", data)
    if not isinstance(inner, Mapping):
        msg = "Analyzer response 'analysis' is not an object"
        raise AnalyzerUnavailableError(msg)

    relevance = _first(inner, "relevance", "content_relevance")
    alignment = _first(inner, "community_alignment")
    if relevance is None or alignment is None:
        msg = "Analyzer response is missing relevance or community_alignment"
        raise AnalyzerUnavailableError(msg)

    raw_safety = _first(inner, "safety", "safety_assessment") or {}
    if not isinstance(raw_safety, Mapping):
        msg = "Analyzer safety assessment is not an object"
        raise AnalyzerUnavailableError(msg)

    duplicate_score = _first(inner, "duplicate_score")
    if duplicate_score is None:
        duplicate_check = inner.get("duplicate_check")
        if isinstance(duplicate_check, Mapping):
            duplicate_score = duplicate_check.get("similarity_score")

    category_hint = _first(inner, "category_hint", "category_recommendation")

    try:
        return ContentAnalysis(
            relevance=relevance,
            community_alignment=alignment,
            quality_score=_first(inner, "quality_score") or 0.0,
            safety=SafetyAssessment(
                trauma_informed=raw_safety.get("trauma_informed") is True,
                community_safe=raw_safety.get("community_safe") is True,
                anti_oppression=raw_safety.get("anti_oppression") is True,
                flags=_string_set(raw_safety.get("flags")),
            ),
            duplicate_score=duplicate_score or 0.0,
            suggested_tags=_string_set(inner.get("suggested_tags")),
            category_hint=str(category_hint) if category_hint else None,
            is_fallback=False,
        )
    except ValidationError as exc:
        msg = f"Analyzer response failed validation: {exc.error_count()} errors"
        raise AnalyzerUnavailableError(msg) from exc
