"""Ranking state store.

Holds one user's ranking: an ordered id list per category (best first) and
the records behind those ids. Order is only ever changed by positional
insertion; lists are never re-sorted. Scores and global ranks are derived
from positions and recomputed after every insertion.

No I/O happens here. Callers persist the state with ``to_json`` and restore
it with ``from_json``.
"""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

import structlog
from pydantic import Field, PrivateAttr

from src.config.policy import DEFAULT_POLICY, ScoringPolicy
from src.data_model import MutableBaseModel
from src.ranking.constants import COMPONENT_RANKING, SCORE_DECIMAL_PLACES
from src.ranking.errors import DuplicateItemError, InvalidPositionError
from src.ranking.models import Category, RankedItem, RankingCandidate


logger = structlog.get_logger()

_SCORE_QUANTUM = Decimal(1).scaleb(-SCORE_DECIMAL_PLACES)


def _empty_lists() -> dict[Category, list[str]]:
    return {category: [] for category in Category}


def _round_score(value: Decimal) -> float:
    """Round half-up to the score precision."""
    return float(value.quantize(_SCORE_QUANTUM, rounding=ROUND_HALF_UP))


def spaced_scores(high: float, low: float, count: int) -> list[float]:
    """Evenly spaced scores from ``high`` down to ``low``.

    Args:
        high: Score of the first (best) position.
        low: Score of the last (worst) position.
        count: Number of positions.

    Returns:
        One rounded score per position, best first.
    """
    if count <= 0:
        return []
    if count == 1:
        return [high]

    top = Decimal(str(high))
    span = top - Decimal(str(low))
    # Multiply before dividing so exact .x5 ties stay exact
    return [_round_score(top - span * i / (count - 1)) for i in range(count)]


class RankingState(MutableBaseModel):
    """A single user's ranking across the three category buckets.

    Attributes:
        items_by_id: Item records keyed by id.
        lists: Ordered ids per category, best first.
        total_count: Number of items across all categories.
        scores_visible: Whether the score visibility threshold was reached.
    """

    items_by_id: dict[str, RankedItem] = Field(default_factory=dict)
    lists: dict[Category, list[str]] = Field(default_factory=_empty_lists)
    total_count: int = Field(default=0, ge=0)
    scores_visible: bool = False

    _policy: ScoringPolicy = PrivateAttr(default=DEFAULT_POLICY)

    @classmethod
    def empty(cls, policy: ScoringPolicy | None = None) -> "RankingState":
        """Create an empty ranking.

        Args:
            policy: Scoring policy; defaults to the built-in policy.

        Returns:
            New empty RankingState.
        """
        state = cls()
        state._policy = policy or DEFAULT_POLICY
        return state

    @classmethod
    def from_json(
        cls,
        payload: str | bytes,
        policy: ScoringPolicy | None = None,
    ) -> "RankingState":
        """Restore a ranking previously produced by ``to_json``.

        Args:
            payload: Serialized state.
            policy: Scoring policy to attach; defaults to the built-in policy.

        Returns:
            Restored RankingState.
        """
        state = cls.model_validate_json(payload)
        state._policy = policy or DEFAULT_POLICY
        for category in Category:
            state.lists.setdefault(category, [])
        return state

    def to_json(self) -> str:
        """Serialize the ranking for the persistence layer."""
        return self.model_dump_json()

    @property
    def policy(self) -> ScoringPolicy:
        """Get the scoring policy used by this state."""
        return self._policy

    def category_size(self, category: Category) -> int:
        """Get the number of items in a category."""
        return len(self.lists[category])

    def items_in(self, category: Category) -> list[RankedItem]:
        """Get the records of one category, best first."""
        return [self.items_by_id[item_id] for item_id in self.lists[category]]

    def global_order(self) -> list[str]:
        """Get all ids in global order (liked, then neutral, then disliked)."""
        return [item_id for category in Category for item_id in self.lists[category]]

    def all_items_sorted(self) -> list[RankedItem]:
        """Get all records in global rank order."""
        return [self.items_by_id[item_id] for item_id in self.global_order()]

    def insert_at(self, category: Category, position: int, item: RankedItem) -> None:
        """Splice an item into a category and recompute derived fields.

        All checks run before anything is changed, so a rejected insert
        leaves the state untouched.

        Args:
            category: Target category.
            position: 0-based position in the category list.
            item: The record to insert.

        Raises:
            InvalidPositionError: If position is outside [0, len(list)].
            DuplicateItemError: If the item id is already ranked.
            ValueError: If the item's category differs from ``category``.
        """
        ordered = self.lists[category]
        log = logger.bind(component=COMPONENT_RANKING, category=category.value)

        if not 0 <= position <= len(ordered):
            log.error(
                "invariant_violation",
                error_type="invalid_position",
                position=position,
                size=len(ordered),
            )
            raise InvalidPositionError(category.value, position, len(ordered))

        if item.id in self.items_by_id:
            log.error(
                "invariant_violation",
                error_type="duplicate_item",
                item_id=item.id,
            )
            raise DuplicateItemError(item.id)

        if item.category != category:
            msg = (
                f"Item {item.id} belongs to '{item.category.value}', "
                f"not '{category.value}'"
            )
            raise ValueError(msg)

        ordered.insert(position, item.id)
        self.items_by_id[item.id] = item
        self.total_count += 1

        newly_visible = (
            not self.scores_visible
            and self.total_count >= self._policy.score_visibility_threshold
        )
        if newly_visible:
            self.scores_visible = True
            log.info("scores_unlocked", total_count=self.total_count)
            # Every category gets its first scores at once
            for each in Category:
                self.recalculate_scores(each)
        else:
            self.recalculate_scores(category)

        self.recalculate_global_ranks()

        log.info(
            "item_inserted",
            item_id=item.id,
            position=position,
            category_size=len(ordered),
            total_count=self.total_count,
            global_rank=item.global_rank,
        )

    def add_item(
        self,
        candidate: RankingCandidate,
        category: Category,
        position: int,
        now: datetime | None = None,
    ) -> RankedItem:
        """Create a record for a placed candidate and insert it.

        Args:
            candidate: The candidate being inserted.
            category: Target category.
            position: 0-based position in the category list.
            now: Creation timestamp; defaults to the current UTC time.

        Returns:
            The stored record.

        Raises:
            InvalidPositionError: If position is outside [0, len(list)].
            DuplicateItemError: If the candidate id is already ranked.
        """
        item = RankedItem.from_candidate(
            candidate, category, added_at=now or datetime.now(UTC)
        )
        self.insert_at(category, position, item)
        return item

    def recalculate_scores(self, category: Category) -> None:
        """Assign evenly spaced scores to one category.

        The best item gets the range maximum and the worst the minimum. A
        single item gets the maximum. Does nothing while scores are hidden.

        Args:
            category: Category to rescore.
        """
        if not self.scores_visible:
            return

        score_range = self._policy.range_for(category)
        ordered = self.lists[category]
        scores = spaced_scores(score_range.max, score_range.min, len(ordered))
        for item_id, score in zip(ordered, scores, strict=True):
            self.items_by_id[item_id].score = score

    def recalculate_global_ranks(self) -> None:
        """Assign 1-based global ranks over liked, neutral, disliked."""
        for index, item_id in enumerate(self.global_order()):
            self.items_by_id[item_id].global_rank = index + 1

    def check_invariants(self) -> list[str]:
        """Check the structural invariants of the ranking.

        Returns:
            Human-readable violations; empty when the state is consistent.
        """
        violations: list[str] = []
        ordered = self.global_order()

        if len(ordered) != len(set(ordered)):
            violations.append("an id appears more than once in the lists")
        if set(ordered) != set(self.items_by_id):
            violations.append("list ids and registered items differ")
        if self.total_count != len(self.items_by_id):
            violations.append(
                f"total_count {self.total_count} != {len(self.items_by_id)} items"
            )

        for category in Category:
            for item_id in self.lists[category]:
                item = self.items_by_id.get(item_id)
                if item is not None and item.category != category:
                    violations.append(f"{item_id} is listed under {category.value}")

        ranks = [
            self.items_by_id[item_id].global_rank
            for item_id in ordered
            if item_id in self.items_by_id
        ]
        if ranks != list(range(1, len(ranks) + 1)):
            violations.append("global ranks do not follow list order")

        expected_visible = (
            self.total_count >= self._policy.score_visibility_threshold
        )
        if self.scores_visible != expected_visible:
            violations.append("scores_visible disagrees with the threshold")

        scored = [item.score is not None for item in self.items_by_id.values()]
        if self.scores_visible and not all(scored):
            violations.append("scores are visible but some items have no score")
        if not self.scores_visible and any(scored):
            violations.append("scores are hidden but some items have a score")

        return violations
