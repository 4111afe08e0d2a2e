"""Pairwise-comparison ranking engine.

This module keeps a user's personal ranking across the liked, neutral and
disliked buckets, inserts new items with a bounded number of comparisons
against an external oracle, and derives scores and global ranks from
positions.
"""

from src.ranking.errors import (
    DuplicateItemError,
    EmptyCategoryMidComparisonError,
    InsertionInProgressError,
    InsertionStateTransitionError,
    InvalidPositionError,
    RankingError,
)
from src.ranking.insertion import Oracle, compute_insertion_rank, drive_insertion
from src.ranking.metrics import InsertionMetrics
from src.ranking.models import (
    Category,
    ComparisonOption,
    Preference,
    RankedItem,
    RankingCandidate,
)
from src.ranking.session import RankingSession
from src.ranking.state import RankingState, spaced_scores
from src.ranking.state_machine import (
    ComparisonRequest,
    InsertionPhase,
    InsertionStateMachine,
    InsertionStep,
    begin_insertion,
    comparison_phase_label,
    estimate_max_comparisons,
)


__all__ = [
    "Category",
    "ComparisonOption",
    "ComparisonRequest",
    "DuplicateItemError",
    "EmptyCategoryMidComparisonError",
    "InsertionInProgressError",
    "InsertionMetrics",
    "InsertionPhase",
    "InsertionStateMachine",
    "InsertionStateTransitionError",
    "InsertionStep",
    "InvalidPositionError",
    "Oracle",
    "Preference",
    "RankedItem",
    "RankingCandidate",
    "RankingError",
    "RankingSession",
    "RankingState",
    "begin_insertion",
    "comparison_phase_label",
    "compute_insertion_rank",
    "drive_insertion",
    "estimate_max_comparisons",
    "spaced_scores",
]
