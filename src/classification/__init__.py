"""Category, priority and auto-approval classification."""

from src.classification.category_matcher import (
    CategoryMatch,
    CategoryMatcher,
    TermScanner,
    compile_term_pattern,
)
from src.classification.engine import (
    CATEGORY_COMMUNITY_EVENT,
    CATEGORY_ORGANIZING,
    CATEGORY_URGENT_MUTUAL_AID,
    REASON_ANALYSIS_FAILED,
    REASON_AUTO_APPROVED,
    REASON_LOW_ALIGNMENT,
    REASON_LOW_RELEVANCE,
    REASON_NOT_ANTI_OPPRESSION,
    REASON_NOT_TRAUMA_INFORMED,
    REASON_POSSIBLE_DUPLICATE,
    Classification,
    ClassificationEngine,
)


__all__ = [
    "CATEGORY_COMMUNITY_EVENT",
    "CATEGORY_ORGANIZING",
    "CATEGORY_URGENT_MUTUAL_AID",
    "REASON_ANALYSIS_FAILED",
    "REASON_AUTO_APPROVED",
    "REASON_LOW_ALIGNMENT",
    "REASON_LOW_RELEVANCE",
    "REASON_NOT_ANTI_OPPRESSION",
    "REASON_NOT_TRAUMA_INFORMED",
    "REASON_POSSIBLE_DUPLICATE",
    "CategoryMatch",
    "CategoryMatcher",
    "Classification",
    "ClassificationEngine",
    "TermScanner",
    "compile_term_pattern",
]
