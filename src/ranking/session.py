"""Per-user ranking session.

A session owns one user's RankingState and is the only thing that mutates
it. Insertions into the same category are serialized: at most one is in
flight per category, whether it is driven by an async oracle
(``rank_item``) or step by step (``begin_interactive`` /
``commit_interactive``). Different categories, and different sessions,
proceed independently.

Everything logged while a session method runs, including store and step
machine events, carries the session's ``user_id``.
"""

import asyncio
from datetime import datetime

import structlog

from src.config.policy import ScoringPolicy
from src.observability.logging import session_context
from src.ranking.constants import COMPONENT_RANKING
from src.ranking.errors import (
    DuplicateItemError,
    InsertionInProgressError,
    InsertionStateTransitionError,
)
from src.ranking.insertion import Oracle, drive_insertion
from src.ranking.metrics import InsertionMetrics
from src.ranking.models import Category, RankedItem, RankingCandidate
from src.ranking.state import RankingState
from src.ranking.state_machine import InsertionStateMachine, begin_insertion


logger = structlog.get_logger()


class RankingSession:
    """Owns one user's ranking and coordinates insertions into it."""

    def __init__(
        self,
        user_id: str,
        state: RankingState | None = None,
        policy: ScoringPolicy | None = None,
        metrics: InsertionMetrics | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            user_id: Owner of the ranking.
            state: Existing ranking; a fresh one when omitted.
            policy: Policy for a fresh ranking (ignored when state is given).
            metrics: Optional metrics instance.
        """
        self._user_id = user_id
        self._state = state if state is not None else RankingState.empty(policy)
        self._metrics = metrics or InsertionMetrics.get_instance()
        self._locks: dict[Category, asyncio.Lock] = {
            category: asyncio.Lock() for category in Category
        }
        self._in_flight: dict[Category, InsertionStateMachine] = {}
        self._log = logger.bind(component=COMPONENT_RANKING)

    @classmethod
    def from_json(
        cls,
        user_id: str,
        payload: str | bytes,
        policy: ScoringPolicy | None = None,
        metrics: InsertionMetrics | None = None,
    ) -> "RankingSession":
        """Open a session over a previously persisted ranking."""
        state = RankingState.from_json(payload, policy=policy)
        return cls(user_id, state=state, metrics=metrics)

    @property
    def user_id(self) -> str:
        """Get the owner of the ranking."""
        return self._user_id

    @property
    def state(self) -> RankingState:
        """Get the ranking state."""
        return self._state

    def to_json(self) -> str:
        """Serialize the ranking for the persistence layer."""
        return self._state.to_json()

    def is_busy(self, category: Category) -> bool:
        """Check if an insertion is in flight for a category."""
        return category in self._in_flight or self._locks[category].locked()

    async def rank_item(
        self,
        candidate: RankingCandidate,
        category: Category,
        oracle: Oracle,
        now: datetime | None = None,
    ) -> RankedItem:
        """Rank a new item by asking the oracle, then store it.

        Concurrent calls for the same category wait their turn. If the
        oracle raises (or the task is cancelled) the ranking is unchanged.

        Args:
            candidate: Item to rank.
            category: Bucket chosen by the caller.
            oracle: Async decision source.
            now: Creation timestamp; defaults to the current UTC time.

        Returns:
            The stored record.

        Raises:
            DuplicateItemError: If the item is already ranked.
            InsertionInProgressError: If an interactive insertion holds the
                category.
        """
        with session_context(self._user_id):
            async with self._locks[category]:
                if category in self._in_flight:
                    raise InsertionInProgressError(self._user_id, category.value)
                self._ensure_new(candidate)

                machine = begin_insertion(
                    self._state.items_in(category), candidate, category=category
                )
                try:
                    position = await drive_insertion(machine, oracle)
                except asyncio.CancelledError:
                    self._log.info(
                        "insertion_cancelled",
                        category=category.value,
                        candidate_id=candidate.id,
                        comparisons=machine.comparisons,
                    )
                    raise

                return self._store(machine, candidate, category, position, now)

    def begin_interactive(
        self,
        candidate: RankingCandidate,
        category: Category,
    ) -> InsertionStateMachine:
        """Start a step-by-step insertion.

        The returned machine is advanced by the caller; commit it with
        ``commit_interactive`` once DONE or drop it with
        ``abandon_interactive``.

        Raises:
            DuplicateItemError: If the item is already ranked.
            InsertionInProgressError: If the category already has an
                insertion in flight.
        """
        with session_context(self._user_id):
            if self.is_busy(category):
                self._log.warning(
                    "insertion_rejected_busy",
                    category=category.value,
                    candidate_id=candidate.id,
                )
                raise InsertionInProgressError(self._user_id, category.value)
            self._ensure_new(candidate)

            machine = begin_insertion(
                self._state.items_in(category), candidate, category=category
            )
            self._in_flight[category] = machine
            self._log.info(
                "interactive_insertion_started",
                category=category.value,
                candidate_id=candidate.id,
                max_comparisons=machine.max_comparisons,
            )
            return machine

    def active_insertion(self, category: Category) -> InsertionStateMachine | None:
        """Get the interactive insertion in flight for a category, if any."""
        return self._in_flight.get(category)

    def commit_interactive(
        self,
        machine: InsertionStateMachine,
        now: datetime | None = None,
    ) -> RankedItem:
        """Store the item of a finished interactive insertion.

        The category is released once the store has been attempted, whether
        or not it succeeded. A rejected commit must be restarted with
        ``begin_interactive``.

        Raises:
            InsertionStateTransitionError: If the machine is not the active
                insertion of its category or is not DONE yet.
            DuplicateItemError: If the item was ranked by other means while
                the insertion was in flight.
        """
        with session_context(self._user_id):
            category = machine.category
            if category is None or self._in_flight.get(category) is not machine:
                raise InsertionStateTransitionError(
                    machine.phase.value, "machine is not an active insertion"
                )
            position = machine.insertion_position
            if position is None:
                raise InsertionStateTransitionError(
                    machine.phase.value, "commit before the position is known"
                )

            try:
                return self._store(
                    machine, machine.candidate, category, position, now
                )
            except Exception:
                self._log.warning(
                    "interactive_commit_failed",
                    category=category.value,
                    candidate_id=machine.candidate.id,
                )
                raise
            finally:
                del self._in_flight[category]

    def abandon_interactive(self, category: Category) -> bool:
        """Drop the interactive insertion of a category.

        The ranking is not touched. Starting again creates a fresh machine.

        Returns:
            True if an insertion was dropped.
        """
        with session_context(self._user_id):
            machine = self._in_flight.pop(category, None)
            if machine is None:
                return False

            self._metrics.record_abandoned()
            self._log.info(
                "interactive_insertion_abandoned",
                category=category.value,
                candidate_id=machine.candidate.id,
                phase=machine.phase.value,
                comparisons=machine.comparisons,
            )
            return True

    def _ensure_new(self, candidate: RankingCandidate) -> None:
        if candidate.id in self._state.items_by_id:
            raise DuplicateItemError(candidate.id)

    def _store(
        self,
        machine: InsertionStateMachine,
        candidate: RankingCandidate,
        category: Category,
        position: int,
        now: datetime | None,
    ) -> RankedItem:
        item = self._state.add_item(candidate, category, position, now=now)
        self._metrics.record_insertion(category.value, machine.comparisons)
        return item
