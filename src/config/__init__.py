"""Scoring policy configuration module."""

from src.config.loader import (
    PolicyLoadError,
    load_scoring_policy,
    resolve_scoring_policy,
)
from src.config.policy import DEFAULT_POLICY, ScoreRange, ScoringPolicy


__all__ = [
    "DEFAULT_POLICY",
    "PolicyLoadError",
    "ScoreRange",
    "ScoringPolicy",
    "load_scoring_policy",
    "resolve_scoring_policy",
]
