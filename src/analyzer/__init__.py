"""Content analysis boundary and fallback policy."""

from src.analyzer.client import HttpContentAnalyzer, parse_analysis
from src.analyzer.errors import AnalyzerUnavailableError
from src.analyzer.factory import create_analyzer
from src.analyzer.fallback import (
    ANALYSIS_FAILED_FLAG,
    NEEDS_REVIEW_TAG,
    UnconfiguredAnalyzer,
    fallback_analysis,
)
from src.analyzer.protocols import ContentAnalyzer


__all__ = [
    "ANALYSIS_FAILED_FLAG",
    "NEEDS_REVIEW_TAG",
    "AnalyzerUnavailableError",
    "ContentAnalyzer",
    "HttpContentAnalyzer",
    "UnconfiguredAnalyzer",
    "create_analyzer",
    "fallback_analysis",
    "parse_analysis",
]
