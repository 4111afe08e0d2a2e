"""Application settings powered by Pydantic BaseSettings."""

import logging
from pathlib import Path
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.config.loader import resolve_scoring_policy
from src.config.policy import ScoringPolicy


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    policy_path: Path | None = Field(
        default=None, validation_alias="RANKING_POLICY_PATH"
    )
    score_visibility_threshold: Annotated[int, Field(ge=1)] | None = Field(
        default=None, validation_alias="RANKING_SCORE_VISIBILITY_THRESHOLD"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=True, validation_alias="LOG_JSON")

    def logging_level(self) -> int:
        """Return the numeric logging level, falling back to INFO."""
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO

    def scoring_policy(self) -> ScoringPolicy:
        """Build the effective scoring policy from file and environment."""
        return resolve_scoring_policy(
            self.policy_path, threshold_override=self.score_visibility_threshold
        )


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
