"""Moderation policy loader with validation."""

import hashlib
from dataclasses import dataclass
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from src.config.constants import COMPONENT_CONFIG
from src.config.error_hints import get_error_hint
from src.config.schemas.policy import ModerationPolicy


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when a policy file cannot be loaded or validated."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


@dataclass(frozen=True)
class LoadedPolicy:
    """A validated policy together with the checksum of its source file.

    Attributes:
        policy: The validated moderation policy.
        file_sha256: SHA-256 of the raw file bytes (empty for defaults).
        file_path: Source file path (None for defaults).
    """

    policy: ModerationPolicy
    file_sha256: str = ""
    file_path: str | None = None


class PolicyLoader:
    """Loads and validates the moderation policy YAML file."""

    def __init__(self) -> None:
        """Initialize the loader."""
        self._log = logger.bind(component=COMPONENT_CONFIG)

    def load(self, path: Path | None) -> LoadedPolicy:
        """Load a policy file, or the built-in defaults when no path is given.

        Args:
            path: Path to policy.yaml, or None for defaults.

        Returns:
            LoadedPolicy with the validated policy.

        Raises:
            ConfigValidationError: If the file is missing, unparsable or invalid.
        """
        if path is None:
            self._log.info("policy_defaults_loaded")
            return LoadedPolicy(policy=ModerationPolicy())

        file_path = str(path)
        try:
            content_bytes = path.read_bytes()
        except FileNotFoundError as e:
            self._log.error("policy_file_not_found", file_path=file_path)
            errors = [self._error_entry("file", str(e), "file_not_found")]
            raise ConfigValidationError(errors, file_path) from e

        checksum = hashlib.sha256(content_bytes).hexdigest()

        try:
            data = yaml.safe_load(content_bytes.decode("utf-8")) or {}
        except yaml.YAMLError as e:
            self._log.error("policy_yaml_parse_error", file_path=file_path, error=str(e))
            errors = [self._error_entry("yaml", str(e), "yaml_parse_error")]
            raise ConfigValidationError(errors, file_path) from e

        try:
            policy = ModerationPolicy.model_validate(data)
        except ValidationError as e:
            errors = [
                self._error_entry(
                    ".".join(str(loc) for loc in err["loc"]), err["msg"], err["type"]
                )
                for err in e.errors()
            ]
            self._log.error(
                "policy_validation_failed",
                file_path=file_path,
                validation_error_count=len(errors),
                errors=errors,
            )
            raise ConfigValidationError(errors, file_path) from e

        self._log.info(
            "policy_loaded",
            file_path=file_path,
            file_sha256=checksum,
            version=policy.version,
        )
        return LoadedPolicy(policy=policy, file_sha256=checksum, file_path=file_path)

    @staticmethod
    def _error_entry(loc: str, msg: str, error_type: str) -> dict[str, str]:
        return {
            "loc": loc,
            "msg": msg,
            "type": error_type,
            "hint": get_error_hint(error_type, loc),
        }


def load_policy(path: Path | None = None) -> ModerationPolicy:
    """Load and validate a moderation policy.

    Args:
        path: Optional path to a policy YAML file.

    Returns:
        The validated ModerationPolicy.
    """
    return PolicyLoader().load(path).policy
