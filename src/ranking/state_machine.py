"""Resumable step machine for binary insertion.

Each comparison is a discrete step: the caller asks for the next
comparison, waits as long as it needs for an answer, and feeds the answer
back. Progress is the (phase, lo, hi) tuple, which can be snapshotted,
stored and restored. Nothing in the ranking state changes until the caller
commits the final position, so abandoning a machine is always safe.
"""

import math
from collections.abc import Sequence
from enum import Enum
from typing import Annotated

import structlog
from pydantic import Field

from src.data_model import StrictBaseModel
from src.ranking.constants import (
    COMPONENT_RANKING,
    PHASE_LABEL_BINARY,
    PHASE_LABEL_BOTTOM,
    PHASE_LABEL_TOP,
)
from src.ranking.errors import (
    EmptyCategoryMidComparisonError,
    InsertionStateTransitionError,
)
from src.ranking.models import (
    Category,
    ComparisonOption,
    Preference,
    RankedItem,
    RankingCandidate,
)


logger = structlog.get_logger()


class InsertionPhase(str, Enum):
    """Phase of an insertion.

    - TOP: comparing against the current best item
    - BOTTOM: comparing against the current worst item
    - BINARY: bisecting the open interval between best and worst
    - DONE: insertion position is known
    """

    TOP = "TOP"
    BOTTOM = "BOTTOM"
    BINARY = "BINARY"
    DONE = "DONE"


# Valid phase transitions
_VALID_TRANSITIONS: dict[InsertionPhase, set[InsertionPhase]] = {
    InsertionPhase.TOP: {InsertionPhase.BOTTOM, InsertionPhase.DONE},
    InsertionPhase.BOTTOM: {InsertionPhase.BINARY, InsertionPhase.DONE},
    InsertionPhase.BINARY: {InsertionPhase.BINARY, InsertionPhase.DONE},
    InsertionPhase.DONE: set(),  # Terminal state
}


def estimate_max_comparisons(size: int) -> int:
    """Upper bound on comparisons needed to insert into a list.

    Args:
        size: Number of existing items in the category.

    Returns:
        0 for an empty list, otherwise ``2 + ceil(log2(size - 1))``. A
        single item can take 2, since losing the top check still runs the
        bottom check against the same item.
    """
    if size <= 0:
        return 0
    return 2 + math.ceil(math.log2(max(1, size - 1)))


def comparison_phase_label(step: int, total_steps: int) -> str:
    """Prompt text for the n-th comparison of an insertion."""
    if step == 1:
        return PHASE_LABEL_TOP
    if step == 2:
        return PHASE_LABEL_BOTTOM
    return PHASE_LABEL_BINARY.format(step=step, total=total_steps)


class InsertionStep(StrictBaseModel):
    """Serializable progress of an insertion.

    Attributes:
        phase: Current phase.
        lo: Lower bound (0-based index the new item ranks below).
        hi: Upper bound (0-based index the new item ranks above).
        comparisons: Number of answers applied so far.
        position: Final 0-based insert position once DONE.
    """

    phase: InsertionPhase
    lo: Annotated[int, Field(ge=0)] = 0
    hi: Annotated[int, Field(ge=0)] = 0
    comparisons: Annotated[int, Field(ge=0)] = 0
    position: Annotated[int, Field(ge=0)] | None = None


class ComparisonRequest(StrictBaseModel):
    """A pending comparison to put in front of the oracle.

    Attributes:
        phase: Phase the comparison belongs to.
        step: 1-based comparison number within this insertion.
        index: 0-based list index of the existing item.
        existing_id: Id of the existing item.
        new_option: Prompt side for the new item (answer "A").
        existing_option: Prompt side for the existing item (answer "B").
        label: Prompt text describing the comparison.
    """

    phase: InsertionPhase
    step: Annotated[int, Field(ge=1)]
    index: Annotated[int, Field(ge=0)]
    existing_id: str
    new_option: ComparisonOption
    existing_option: ComparisonOption
    label: str


class InsertionStateMachine:
    """Drives one binary insertion a comparison at a time.

    Phases flow TOP -> BOTTOM -> BINARY -> DONE; TOP and BOTTOM may finish
    early. Invalid use is logged as an invariant violation and raised.
    """

    def __init__(
        self,
        existing: Sequence[RankedItem],
        candidate: RankingCandidate,
        step: InsertionStep | None = None,
        category: Category | None = None,
    ) -> None:
        """Initialize the machine.

        Args:
            existing: Items already in the category, best first.
            candidate: Item being inserted.
            step: Progress to resume from; a fresh insertion when omitted.
            category: Category being inserted into (for logging).
        """
        self._existing = tuple(existing)
        self._candidate = candidate
        self._category = category
        self._log = logger.bind(
            component=COMPONENT_RANKING,
            candidate_id=candidate.id,
            category=category.value if category else None,
        )

        size = len(self._existing)
        if step is None:
            if size == 0:
                step = InsertionStep(phase=InsertionPhase.DONE, position=0)
            else:
                step = InsertionStep(phase=InsertionPhase.TOP, lo=0, hi=size - 1)
        self._validate_step(step)

        self._phase = step.phase
        self._lo = step.lo
        self._hi = step.hi
        self._comparisons = step.comparisons
        self._position = step.position

    @classmethod
    def restore(
        cls,
        existing: Sequence[RankedItem],
        candidate: RankingCandidate,
        step: InsertionStep,
        category: Category | None = None,
    ) -> "InsertionStateMachine":
        """Resume an insertion from a stored snapshot.

        The existing list must be the one the snapshot was taken against.

        Raises:
            InsertionStateTransitionError: If the snapshot does not fit the list.
            EmptyCategoryMidComparisonError: If a BINARY snapshot is resumed
                against fewer than 2 items.
        """
        return cls(existing, candidate, step=step, category=category)

    @property
    def candidate(self) -> RankingCandidate:
        """Get the item being inserted."""
        return self._candidate

    @property
    def category(self) -> Category | None:
        """Get the category being inserted into, if known."""
        return self._category

    @property
    def existing_ids(self) -> list[str]:
        """Get the ids of the existing items, best first."""
        return [item.id for item in self._existing]

    @property
    def phase(self) -> InsertionPhase:
        """Get the current phase."""
        return self._phase

    @property
    def comparisons(self) -> int:
        """Get the number of answers applied so far."""
        return self._comparisons

    @property
    def is_done(self) -> bool:
        """Check if the insertion position is known."""
        return self._phase == InsertionPhase.DONE

    @property
    def insertion_position(self) -> int | None:
        """Get the 0-based insert position, or None while comparing."""
        return self._position

    @property
    def insertion_rank(self) -> int | None:
        """Get the 1-based category rank, or None while comparing."""
        return None if self._position is None else self._position + 1

    @property
    def max_comparisons(self) -> int:
        """Get the upper bound on comparisons for this insertion."""
        return estimate_max_comparisons(len(self._existing))

    def snapshot(self) -> InsertionStep:
        """Capture the current progress."""
        return InsertionStep(
            phase=self._phase,
            lo=self._lo,
            hi=self._hi,
            comparisons=self._comparisons,
            position=self._position,
        )

    def next_comparison(self) -> ComparisonRequest | None:
        """Get the comparison the oracle must answer next.

        Returns:
            The pending ComparisonRequest, or None once DONE.

        Raises:
            EmptyCategoryMidComparisonError: If bisection is requested on
                fewer than 2 items.
        """
        if self._phase == InsertionPhase.DONE:
            return None

        index = self._comparison_index()
        existing = self._existing[index]
        step = self._comparisons + 1
        return ComparisonRequest(
            phase=self._phase,
            step=step,
            index=index,
            existing_id=existing.id,
            new_option=self._candidate.as_option(),
            existing_option=existing.as_option(),
            label=comparison_phase_label(step, self.max_comparisons),
        )

    def apply_comparison_result(self, answer: Preference | str) -> InsertionStep:
        """Advance the machine with the oracle's answer.

        Args:
            answer: ``A`` if the new item won, ``B`` if the existing item won.

        Returns:
            The progress after applying the answer.

        Raises:
            InsertionStateTransitionError: If the machine is already DONE.
            ValueError: If the answer is not A or B.
        """
        if self._phase == InsertionPhase.DONE:
            self._log.error(
                "invariant_violation",
                error_type="illegal_insertion_step",
                from_phase=self._phase.value,
            )
            raise InsertionStateTransitionError(
                self._phase.value, "comparison result applied after completion"
            )

        new_wins = Preference.coerce(answer) == Preference.A
        size = len(self._existing)
        self._comparisons += 1

        if self._phase == InsertionPhase.TOP:
            if new_wins:
                self._finish(0)
            else:
                self._transition_to(InsertionPhase.BOTTOM, 0, size - 1)
        elif self._phase == InsertionPhase.BOTTOM:
            if not new_wins:
                self._finish(size)
            elif size - 1 <= 1:
                # Nothing left to bisect between best and worst
                self._finish(size - 1)
            else:
                self._transition_to(InsertionPhase.BINARY, 0, size - 1)
        else:
            mid = self._comparison_index()
            lo, hi = (self._lo, mid) if new_wins else (mid, self._hi)
            if hi - lo <= 1:
                self._finish(hi)
            else:
                self._transition_to(InsertionPhase.BINARY, lo, hi)

        return self.snapshot()

    def _comparison_index(self) -> int:
        """Index of the existing item the next comparison is against."""
        size = len(self._existing)
        if self._phase == InsertionPhase.TOP:
            return 0
        if self._phase == InsertionPhase.BOTTOM:
            return size - 1
        if size < 2:
            self._log.error(
                "invariant_violation",
                error_type="empty_category_mid_comparison",
                phase=self._phase.value,
                size=size,
            )
            raise EmptyCategoryMidComparisonError(self._phase.value, size)
        return (self._lo + self._hi) // 2

    def _transition_to(self, target: InsertionPhase, lo: int, hi: int) -> None:
        """Move to a comparing phase with new bounds."""
        self._check_transition(target)
        old_phase = self._phase
        self._phase = target
        self._lo = lo
        self._hi = hi
        self._log.info(
            "insertion_state_transition",
            from_phase=old_phase.value,
            to_phase=target.value,
            lo=lo,
            hi=hi,
            comparisons=self._comparisons,
        )

    def _finish(self, position: int) -> None:
        """Move to DONE with the final insert position."""
        self._check_transition(InsertionPhase.DONE)
        old_phase = self._phase
        self._phase = InsertionPhase.DONE
        self._position = position
        self._log.info(
            "insertion_state_transition",
            from_phase=old_phase.value,
            to_phase=InsertionPhase.DONE.value,
            position=position,
            comparisons=self._comparisons,
        )

    def _check_transition(self, target: InsertionPhase) -> None:
        if target not in _VALID_TRANSITIONS.get(self._phase, set()):
            self._log.error(
                "invariant_violation",
                error_type="illegal_insertion_step",
                from_phase=self._phase.value,
                to_phase=target.value,
            )
            raise InsertionStateTransitionError(
                self._phase.value, f"cannot move to {target.value}"
            )

    def _validate_step(self, step: InsertionStep) -> None:
        """Check that a starting step fits the existing list."""
        size = len(self._existing)
        problem: str | None = None

        if step.phase == InsertionPhase.DONE:
            if step.position is None or step.position > size:
                problem = f"DONE position {step.position} outside 0..{size}"
        elif step.position is not None:
            problem = "position set before DONE"
        elif step.phase == InsertionPhase.BINARY and size < 2:
            self._log.error(
                "invariant_violation",
                error_type="empty_category_mid_comparison",
                phase=step.phase.value,
                size=size,
            )
            raise EmptyCategoryMidComparisonError(step.phase.value, size)
        elif size == 0:
            problem = f"{step.phase.value} with no existing items"
        elif not step.lo <= step.hi <= size - 1:
            problem = f"bounds [{step.lo}, {step.hi}] outside list of {size}"
        elif step.phase == InsertionPhase.BINARY and step.hi - step.lo <= 1:
            problem = f"bounds [{step.lo}, {step.hi}] leave nothing to bisect"

        if problem is not None:
            self._log.error(
                "invariant_violation",
                error_type="invalid_insertion_step",
                detail=problem,
            )
            raise InsertionStateTransitionError(step.phase.value, problem)


def begin_insertion(
    existing: Sequence[RankedItem],
    candidate: RankingCandidate,
    category: Category | None = None,
) -> InsertionStateMachine:
    """Start an insertion into a category.

    Args:
        existing: Items already in the category, best first.
        candidate: Item being inserted.
        category: Category being inserted into (for logging).

    Returns:
        A fresh machine; already DONE at position 0 for an empty category.
    """
    return InsertionStateMachine(existing, candidate, category=category)

