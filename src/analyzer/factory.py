"""Factory for creating the configured content analyzer."""

import structlog

from src.analyzer.client import HttpContentAnalyzer
from src.analyzer.fallback import UnconfiguredAnalyzer
from src.analyzer.protocols import ContentAnalyzer
from src.settings import AppSettings


logger = structlog.get_logger()


def create_analyzer(settings: AppSettings) -> ContentAnalyzer:
    """Create a content analyzer from application settings.

    Without a configured endpoint every call falls back to the
    conservative analysis, so nothing is auto-approved.

    Args:
        settings: Application settings.

    Returns:
        A ContentAnalyzer implementation.
    """
    log = logger.bind(component="analyzer", subcomponent="factory")

    if settings.analyzer_configured and settings.analyzer_base_url:
        log.info("analyzer_created", backend="http")
        return HttpContentAnalyzer(
            base_url=settings.analyzer_base_url,
            api_key=settings.analyzer_api_key,
            timeout=settings.analyzer_timeout_seconds,
        )

    log.warning("analyzer_created", backend="unconfigured")
    return UnconfiguredAnalyzer()
