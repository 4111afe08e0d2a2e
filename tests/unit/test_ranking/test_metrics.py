"""Unit tests for insertion metrics."""

import pytest

from src.ranking.metrics import InsertionMetrics


class TestInsertionMetrics:
    """Tests for InsertionMetrics."""

    @pytest.fixture(autouse=True)
    def _reset_singleton(self) -> None:
        InsertionMetrics.reset()

    @pytest.mark.unit
    def test_singleton(self) -> None:
        """get_instance returns the same object until reset."""
        first = InsertionMetrics.get_instance()
        assert InsertionMetrics.get_instance() is first

        InsertionMetrics.reset()
        assert InsertionMetrics.get_instance() is not first

    @pytest.mark.unit
    def test_record_insertions(self) -> None:
        """Insertions are counted per category with their comparisons."""
        metrics = InsertionMetrics()
        metrics.record_insertion("liked", 0)
        metrics.record_insertion("liked", 3)
        metrics.record_insertion("disliked", 2)

        assert metrics.insertions_total == 3
        assert metrics.insertions_by_category == {"liked": 2, "disliked": 1}
        assert metrics.comparisons_total == 5
        assert metrics.average_comparisons() == pytest.approx(5 / 3)

    @pytest.mark.unit
    def test_average_without_insertions(self) -> None:
        """No insertions averages to zero."""
        assert InsertionMetrics().average_comparisons() == 0.0

    @pytest.mark.unit
    def test_to_dict(self) -> None:
        """All counters are exported."""
        metrics = InsertionMetrics()
        metrics.record_insertion("neutral", 4)
        metrics.record_abandoned()

        assert metrics.to_dict() == {
            "insertions_total": 1,
            "insertions_by_category": {"neutral": 1},
            "comparisons_total": 4,
            "average_comparisons": 4.0,
            "abandoned_total": 1,
        }
