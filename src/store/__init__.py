"""Persistence boundary for moderation records.

This module provides storage for:
- Moderation records with an atomic canonical URL claim
- An append-only human review audit log
- The published content view
"""

from src.store.errors import (
    ConnectionError,
    DuplicateKeyError,
    InvalidReviewTransitionError,
    MigrationError,
    RecordNotFoundError,
    StoreError,
)
from src.store.memory import InMemoryModerationStore
from src.store.metrics import StoreMetrics
from src.store.protocols import ModerationStore
from src.store.store import SqliteModerationStore


__all__ = [
    # Errors
    "ConnectionError",
    "DuplicateKeyError",
    "InvalidReviewTransitionError",
    "MigrationError",
    "RecordNotFoundError",
    "StoreError",
    # Metrics
    "StoreMetrics",
    # Stores
    "InMemoryModerationStore",
    "ModerationStore",
    "SqliteModerationStore",
]
