"""Scoring policy loader with validation."""

import hashlib
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from src.config.constants import COMPONENT_CONFIG
from src.config.error_hints import format_validation_error
from src.config.policy import DEFAULT_POLICY, ScoringPolicy


logger = structlog.get_logger()


class PolicyLoadError(Exception):
    """Raised when a scoring policy file cannot be read or validated."""

    def __init__(self, file_path: str, errors: list[dict[str, str]]) -> None:
        """Initialize the error.

        Args:
            file_path: Path to the policy file.
            errors: Error details with 'loc', 'msg' and 'type' keys.
        """
        self.file_path = file_path
        self.errors = errors
        super().__init__(
            f"Invalid scoring policy {file_path}: {len(errors)} errors"
        )

    def formatted(self) -> list[str]:
        """Format each error with a remediation hint."""
        return [
            format_validation_error(err["loc"], err["msg"], err["type"])
            for err in self.errors
        ]


def _compute_checksum(content: bytes) -> str:
    """Compute SHA-256 checksum of content."""
    return hashlib.sha256(content).hexdigest()


def load_scoring_policy(path: Path) -> ScoringPolicy:
    """Load and validate a scoring policy YAML file.

    An empty file yields the default policy.

    Args:
        path: Path to the policy YAML file.

    Returns:
        Validated ScoringPolicy.

    Raises:
        PolicyLoadError: If the file is missing, not valid YAML, or fails
            validation.
    """
    log = logger.bind(component=COMPONENT_CONFIG, file_path=str(path))
    log.info("loading_policy_file")

    try:
        content_bytes = path.read_bytes()
    except FileNotFoundError as e:
        errors = [{"loc": "file", "msg": str(e), "type": "file_not_found"}]
        log.error("policy_load_failed", errors=errors)
        raise PolicyLoadError(str(path), errors) from e

    checksum = _compute_checksum(content_bytes)

    try:
        parsed = yaml.safe_load(content_bytes.decode("utf-8")) or {}
    except yaml.YAMLError as e:
        errors = [{"loc": "file", "msg": str(e), "type": "yaml_parse_error"}]
        log.error("policy_load_failed", errors=errors)
        raise PolicyLoadError(str(path), errors) from e

    try:
        policy = ScoringPolicy.model_validate(parsed)
    except ValidationError as e:
        errors = [
            {
                "loc": ".".join(str(loc) for loc in err["loc"]) or "policy",
                "msg": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        ]
        log.error(
            "policy_validation_failed",
            validation_error_count=len(errors),
            errors=errors,
        )
        raise PolicyLoadError(str(path), errors) from e

    log.info(
        "policy_loaded",
        file_sha256=checksum,
        score_visibility_threshold=policy.score_visibility_threshold,
    )
    return policy


def resolve_scoring_policy(
    policy_path: Path | None = None,
    threshold_override: int | None = None,
) -> ScoringPolicy:
    """Build the effective policy from an optional file and an override.

    Args:
        policy_path: Optional policy YAML file.
        threshold_override: Optional score visibility threshold that replaces
            the file (or default) value.

    Returns:
        Effective ScoringPolicy.

    Raises:
        PolicyLoadError: If the policy file is invalid.
        ValidationError: If the override is out of range.
    """
    policy = load_scoring_policy(policy_path) if policy_path else DEFAULT_POLICY
    if threshold_override is None:
        return policy
    return ScoringPolicy.model_validate(
        {
            **policy.model_dump(),
            "score_visibility_threshold": threshold_override,
        }
    )
