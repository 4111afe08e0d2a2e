"""Unit tests for bounded binary insertion."""

import math
import random

import pytest

from src.ranking.insertion import compute_insertion_rank
from src.ranking.models import ComparisonOption, Preference
from src.ranking.state_machine import estimate_max_comparisons
from tests.helpers.builders import make_candidate, make_items
from tests.helpers.oracles import ConstantOracle, ScriptedOracle, TasteOracle


def _ladder(size: int) -> tuple[list[str], dict[str, float]]:
    """Titles best first with taste values 10, 20, ... descending by rank."""
    titles = [f"item{i}" for i in range(size)]
    taste = {title: float((size - i) * 10) for i, title in enumerate(titles)}
    return titles, taste


class TestEmptyAndBoundaries:
    """Tests for the short-circuit cases."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_list_needs_no_comparisons(self) -> None:
        """An empty category ranks the new item first without asking."""
        oracle = ConstantOracle(Preference.B)

        rank = await compute_insertion_rank([], make_candidate("x"), oracle)

        assert rank == 1
        assert oracle.calls == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [1, 2, 3, 8, 50])
    async def test_always_preferred_ranks_first(self, size: int) -> None:
        """Beating the best item takes exactly one comparison."""
        oracle = ConstantOracle(Preference.A)
        existing = make_items([f"i{n}" for n in range(size)])

        rank = await compute_insertion_rank(existing, make_candidate("x"), oracle)

        assert rank == 1
        assert oracle.calls == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [1, 2, 3, 8, 50])
    async def test_never_preferred_ranks_last(self, size: int) -> None:
        """Losing to the worst item takes exactly two comparisons."""
        oracle = ConstantOracle("B")
        existing = make_items([f"i{n}" for n in range(size)])

        rank = await compute_insertion_rank(existing, make_candidate("x"), oracle)

        assert rank == size + 1
        assert oracle.calls == 2


class TestBisection:
    """Tests for the binary search between best and worst."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [2, 3, 4, 5, 9, 16, 17, 33])
    async def test_every_slot_is_found_within_bound(self, size: int) -> None:
        """A consistent oracle places the item exactly between its neighbours."""
        titles, taste = _ladder(size)
        existing = make_items(titles)
        bound = 2 + math.ceil(math.log2(size - 1))

        for slot in range(size + 1):
            # Halfway between the neighbours at slot - 1 and slot
            upper = taste[titles[slot - 1]] if slot > 0 else taste[titles[0]] + 10
            lower = taste[titles[slot]] if slot < size else 0.0
            oracle = TasteOracle({**taste, "new": (upper + lower) / 2})

            rank = await compute_insertion_rank(existing, make_candidate("new"), oracle)

            assert rank == slot + 1
            assert len(oracle.calls) <= bound
            if slot == 0:
                assert len(oracle.calls) == 1
            elif slot == size:
                assert len(oracle.calls) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_interior_slot_uses_full_bound_on_power_of_two_gap(self) -> None:
        """With n - 1 a power of two, interior slots need exactly the bound."""
        titles, taste = _ladder(9)
        oracle = TasteOracle({**taste, "new": taste[titles[3]] - 5})

        rank = await compute_insertion_rank(
            make_items(titles), make_candidate("new"), oracle
        )

        assert rank == 5
        assert len(oracle.calls) == 2 + math.ceil(math.log2(8))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_comparisons_follow_top_bottom_then_midpoints(self) -> None:
        """The oracle sees best, worst, then successive midpoints."""
        titles, taste = _ladder(5)
        oracle = TasteOracle({**taste, "new": 25.0})

        rank = await compute_insertion_rank(
            make_items(titles), make_candidate("new"), oracle
        )

        assert rank == 4
        assert oracle.calls == [
            ("new", "item0"),
            ("new", "item4"),
            ("new", "item2"),
            ("new", "item3"),
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", range(8))
    async def test_arbitrary_answers_stay_in_range(self, seed: int) -> None:
        """Even inconsistent answers give a rank in [1, n + 1] within budget."""
        rng = random.Random(seed)
        for size in range(0, 25):
            answers = [rng.choice(["A", "B"]) for _ in range(16)]
            oracle = ScriptedOracle(answers)

            rank = await compute_insertion_rank(
                make_items([f"i{n}" for n in range(size)]), make_candidate("x"), oracle
            )

            assert 1 <= rank <= size + 1
            assert 16 - oracle.remaining <= estimate_max_comparisons(size)


class TestScenario:
    """Walk-through of a user building a liked list."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_three_insertions(self) -> None:
        """X needs nothing, Y needs two checks, Z needs four."""
        empty_oracle = ScriptedOracle([])
        assert await compute_insertion_rank([], make_candidate("X"), empty_oracle) == 1
        assert empty_oracle.asked == []

        y_oracle = ScriptedOracle([Preference.B, Preference.B])
        rank = await compute_insertion_rank(
            make_items(["X"]), make_candidate("Y"), y_oracle
        )
        assert rank == 2
        assert y_oracle.asked == ["X", "X"]

        z_oracle = ScriptedOracle(["B", "A", "A", "B"])
        rank = await compute_insertion_rank(
            make_items(["a", "b", "c", "d", "e"]), make_candidate("Z"), z_oracle
        )
        assert rank == 3
        assert z_oracle.asked == ["a", "e", "c", "b"]
        assert z_oracle.remaining == 0


class TestOracleContract:
    """Tests for how the oracle is called."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_new_item_is_first_argument(self) -> None:
        """The oracle gets the new item as A and the existing item as B."""
        seen: list[tuple[ComparisonOption, ComparisonOption]] = []

        async def oracle(
            new_item: ComparisonOption, existing_item: ComparisonOption
        ) -> str:
            seen.append((new_item, existing_item))
            return "a"

        await compute_insertion_rank(
            make_items(["old"]), make_candidate("fresh"), oracle
        )

        assert seen == [
            (ComparisonOption(title="fresh"), ComparisonOption(title="old"))
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_oracle_errors_propagate(self) -> None:
        """Whatever the oracle raises reaches the caller unchanged."""

        async def oracle(
            new_item: ComparisonOption, existing_item: ComparisonOption
        ) -> Preference:
            raise LookupError("user closed the prompt")

        with pytest.raises(LookupError, match="closed the prompt"):
            await compute_insertion_rank(
                make_items(["a", "b"]), make_candidate("x"), oracle
            )
