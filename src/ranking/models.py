"""Data models for the ranking engine."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import AwareDatetime, Field

from src.data_model import MutableBaseModel, StrictBaseModel


class Category(str, Enum):
    """Qualitative bucket an item is ranked in.

    Declaration order is bucket order: every liked item ranks above every
    neutral item, which ranks above every disliked item.
    """

    LIKED = "liked"
    NEUTRAL = "neutral"
    DISLIKED = "disliked"


class Preference(str, Enum):
    """Answer returned by the comparison oracle.

    - A: the new item (first option) is preferred
    - B: the existing item (second option) is preferred
    """

    A = "A"
    B = "B"

    @classmethod
    def coerce(cls, value: Any) -> "Preference":
        """Coerce an oracle answer to a Preference.

        Args:
            value: Preference instance or the strings "A"/"B" (any case).

        Returns:
            The matching Preference.

        Raises:
            ValueError: If the value is not a recognised answer.
        """
        if isinstance(value, Preference):
            return value
        if isinstance(value, str):
            return cls(value.strip().upper())
        msg = f"Invalid oracle answer: {value!r}"
        raise ValueError(msg)


class ComparisonOption(StrictBaseModel):
    """One side of a comparison prompt, as shown to the oracle."""

    title: Annotated[str, Field(min_length=1, description="Display title")]
    poster_ref: str | None = Field(default=None, description="Artwork reference")


class RankingCandidate(StrictBaseModel):
    """An item waiting to be inserted into a category."""

    id: Annotated[str, Field(min_length=1, description="Unique item identifier")]
    title: Annotated[str, Field(min_length=1, description="Display title")]
    poster_ref: str | None = Field(default=None, description="Artwork reference")
    genres: tuple[str, ...] = Field(default_factory=tuple)

    def as_option(self) -> ComparisonOption:
        """Build the comparison prompt side for this candidate."""
        return ComparisonOption(title=self.title, poster_ref=self.poster_ref)


class RankedItem(MutableBaseModel):
    """An item stored in a user's ranking.

    Attributes:
        id: Unique item identifier.
        title: Display title, used only for comparison prompts.
        category: Bucket the item was inserted into.
        score: Position-derived score, None until scores are visible.
        global_rank: 1-based position across all buckets.
        added_at: Creation timestamp.
        poster_ref: Artwork reference for prompts.
        genres: Genres carried over from the candidate.
    """

    id: Annotated[str, Field(min_length=1)]
    title: Annotated[str, Field(min_length=1)]
    category: Category
    score: float | None = None
    global_rank: Annotated[int, Field(ge=1)] | None = None
    added_at: Annotated[AwareDatetime, Field(frozen=True)]
    poster_ref: str | None = None
    genres: tuple[str, ...] = Field(default_factory=tuple)

    @classmethod
    def from_candidate(
        cls,
        candidate: RankingCandidate,
        category: Category,
        added_at: datetime,
    ) -> "RankedItem":
        """Create a record for a candidate that has just been placed.

        Args:
            candidate: The candidate being inserted.
            category: Target category.
            added_at: Creation timestamp (timezone-aware).

        Returns:
            New RankedItem with score and global rank unset.
        """
        return cls(
            id=candidate.id,
            title=candidate.title,
            category=category,
            added_at=added_at,
            poster_ref=candidate.poster_ref,
            genres=candidate.genres,
        )

    def as_option(self) -> ComparisonOption:
        """Build the comparison prompt side for this item."""
        return ComparisonOption(title=self.title, poster_ref=self.poster_ref)
