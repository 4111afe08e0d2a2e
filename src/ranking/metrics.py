"""Metrics collection for the ranking module."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class InsertionMetrics:
    """Metrics for insertion operations.

    Attributes:
        insertions_total: Completed insertions.
        insertions_by_category: Completed insertions per category.
        comparisons_total: Oracle answers across completed insertions.
        comparison_counts: Comparisons used by each completed insertion.
        abandoned_total: Interactive insertions dropped before completion.
    """

    insertions_total: int = 0
    insertions_by_category: dict[str, int] = field(default_factory=dict)
    comparisons_total: int = 0
    comparison_counts: list[int] = field(default_factory=list)
    abandoned_total: int = 0

    _instance: ClassVar["InsertionMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "InsertionMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_insertion(self, category: str, comparisons: int) -> None:
        """Record a completed insertion.

        Args:
            category: Category the item went into.
            comparisons: Oracle answers the insertion needed.
        """
        self.insertions_total += 1
        self.insertions_by_category[category] = (
            self.insertions_by_category.get(category, 0) + 1
        )
        self.comparisons_total += comparisons
        self.comparison_counts.append(comparisons)

    def record_abandoned(self) -> None:
        """Record an interactive insertion that was dropped."""
        self.abandoned_total += 1

    def average_comparisons(self) -> float:
        """Mean comparisons per completed insertion."""
        if not self.comparison_counts:
            return 0.0
        return self.comparisons_total / len(self.comparison_counts)

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "insertions_total": self.insertions_total,
            "insertions_by_category": dict(self.insertions_by_category),
            "comparisons_total": self.comparisons_total,
            "average_comparisons": self.average_comparisons(),
            "abandoned_total": self.abandoned_total,
        }
