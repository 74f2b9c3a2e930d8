"""Moderation policy loading and validation module."""

from src.config.loader import (
    ConfigValidationError,
    LoadedPolicy,
    PolicyLoader,
    load_policy,
)
from src.config.schemas.policy import ModerationPolicy


__all__ = [
    "ConfigValidationError",
    "LoadedPolicy",
    "ModerationPolicy",
    "PolicyLoader",
    "load_policy",
]
