"""Scoring policy schema."""

from typing import TYPE_CHECKING, Annotated

from pydantic import Field, model_validator

from src.config.constants import (
    DEFAULT_SCORE_RANGES,
    DEFAULT_SCORE_VISIBILITY_THRESHOLD,
)
from src.data_model import StrictBaseModel


if TYPE_CHECKING:
    from src.ranking.models import Category


class ScoreRange(StrictBaseModel):
    """Score range for one category.

    Attributes:
        max: Score given to the best item in the category.
        min: Score given to the worst item in the category.
    """

    max: Annotated[float, Field(ge=0.0, le=10.0)]
    min: Annotated[float, Field(ge=0.0, le=10.0)]

    @model_validator(mode="after")
    def validate_bounds(self) -> "ScoreRange":
        """Ensure max is not below min."""
        if self.max < self.min:
            msg = f"Score range max ({self.max}) must be >= min ({self.min})"
            raise ValueError(msg)
        return self


def _default_range(name: str) -> ScoreRange:
    high, low = DEFAULT_SCORE_RANGES[name]
    return ScoreRange(max=high, min=low)


class ScoringPolicy(StrictBaseModel):
    """Policy constants used to derive scores from positions.

    Attributes:
        liked: Score range for the liked bucket.
        neutral: Score range for the neutral bucket.
        disliked: Score range for the disliked bucket.
        score_visibility_threshold: Total item count at which scores appear.
    """

    liked: ScoreRange = Field(default_factory=lambda: _default_range("liked"))
    neutral: ScoreRange = Field(
        default_factory=lambda: _default_range("neutral")
    )
    disliked: ScoreRange = Field(
        default_factory=lambda: _default_range("disliked")
    )
    score_visibility_threshold: Annotated[int, Field(ge=1)] = (
        DEFAULT_SCORE_VISIBILITY_THRESHOLD
    )

    @model_validator(mode="after")
    def validate_ranges_ordered(self) -> "ScoringPolicy":
        """Ensure liked > neutral > disliked with no overlap.

        Scores are computed per category, so global rank order only matches
        score order when the ranges are strictly separated.
        """
        if not self.liked.min > self.neutral.max:
            msg = "liked range must lie strictly above neutral range"
            raise ValueError(msg)
        if not self.neutral.min > self.disliked.max:
            msg = "neutral range must lie strictly above disliked range"
            raise ValueError(msg)
        return self

    def range_for(self, category: "Category") -> ScoreRange:
        """Get the score range for a category.

        Args:
            category: Category to look up.

        Returns:
            The category's ScoreRange.
        """
        range_: ScoreRange = getattr(self, category.value)
        return range_


DEFAULT_POLICY = ScoringPolicy()
