"""Bounded binary insertion against a comparison oracle."""

from collections.abc import Awaitable, Sequence
from typing import Protocol

import structlog

from src.ranking.constants import COMPONENT_RANKING
from src.ranking.models import (
    Category,
    ComparisonOption,
    Preference,
    RankedItem,
    RankingCandidate,
)
from src.ranking.state_machine import InsertionStateMachine, begin_insertion


logger = structlog.get_logger()


class Oracle(Protocol):
    """Decision source answering which of two items is preferred.

    Usually a human picking one of two displayed options. The new item is
    always passed first, so ``A`` means the new item won and ``B`` means the
    existing item won. Plain ``"A"``/``"B"`` strings are accepted.
    """

    def __call__(
        self,
        new_item: ComparisonOption,
        existing_item: ComparisonOption,
    ) -> Awaitable[Preference | str]:
        """Ask for a preference between two items."""
        ...


async def drive_insertion(
    machine: InsertionStateMachine,
    oracle: Oracle,
) -> int:
    """Run a step machine to completion against an oracle.

    Each comparison is asked exactly once. Whatever the oracle raises,
    cancellation included, propagates unchanged.

    Args:
        machine: Machine to drive; may already be partially advanced.
        oracle: Async decision source.

    Returns:
        The 0-based insert position.
    """
    request = machine.next_comparison()
    while request is not None:
        answer = await oracle(request.new_option, request.existing_option)
        machine.apply_comparison_result(answer)
        request = machine.next_comparison()

    position = machine.insertion_position
    if position is None:
        msg = "Insertion finished without a position"
        raise RuntimeError(msg)
    return position


async def compute_insertion_rank(
    existing: Sequence[RankedItem],
    new_item: RankingCandidate,
    oracle: Oracle,
    category: Category | None = None,
) -> int:
    """Find the 1-based rank at which a new item belongs in a category.

    Compares against the best item, then the worst, then bisects between
    them. An empty list needs no comparisons; beating the best needs one;
    losing to the worst needs two; otherwise at most
    ``2 + ceil(log2(n - 1))`` comparisons are asked.

    Args:
        existing: Items already in the category, best first.
        new_item: The candidate being ranked.
        oracle: Async decision source.
        category: Category being ranked into (for logging).

    Returns:
        Rank in ``[1, len(existing) + 1]``; 1 means the new best.
    """
    machine = begin_insertion(existing, new_item, category=category)
    position = await drive_insertion(machine, oracle)
    rank = position + 1

    logger.info(
        "insertion_rank_computed",
        component=COMPONENT_RANKING,
        candidate_id=new_item.id,
        category=category.value if category else None,
        list_size=len(existing),
        comparisons=machine.comparisons,
        rank=rank,
    )
    return rank
