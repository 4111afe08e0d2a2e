"""Domain exceptions for the ranking engine.

Every error here signals a caller bug (an invariant the caller should have
upheld), not a user-recoverable condition. An oracle that never answers is
not an error: the insertion is simply never resumed.
"""


class RankingError(Exception):
    """Base exception for all ranking engine errors."""


class InvalidPositionError(RankingError):
    """Raised when an insert position is outside ``[0, len(list)]``.

    Positions are never clamped; the whole insert is rejected and the
    ranking state is left untouched.
    """

    def __init__(self, category: str, position: int, size: int) -> None:
        """Initialize the error.

        Args:
            category: Category the insert targeted.
            position: The rejected 0-based position.
            size: Current length of the category list.
        """
        self.category = category
        self.position = position
        self.size = size
        super().__init__(
            f"Invalid insert position {position} for category '{category}' "
            f"(valid range 0..{size})"
        )


class EmptyCategoryMidComparisonError(RankingError):
    """Raised when the bottom or binary phase runs with fewer than 2 items.

    The top and bottom boundary checks should have finished the insertion
    before bisection is ever needed on such a short list.
    """

    def __init__(self, phase: str, size: int) -> None:
        """Initialize the error.

        Args:
            phase: Phase that was entered.
            size: Number of existing items in the category.
        """
        self.phase = phase
        self.size = size
        super().__init__(
            f"Comparison phase '{phase}' requires at least 2 existing items, "
            f"got {size}"
        )


class DuplicateItemError(RankingError):
    """Raised when an item id is already present in the ranking."""

    def __init__(self, item_id: str) -> None:
        """Initialize the error.

        Args:
            item_id: The duplicated identifier.
        """
        self.item_id = item_id
        super().__init__(f"Item already ranked: {item_id}")


class InsertionInProgressError(RankingError):
    """Raised when a second insertion starts for a busy (user, category)."""

    def __init__(self, user_id: str, category: str) -> None:
        """Initialize the error.

        Args:
            user_id: Owner of the ranking.
            category: Category that already has an insertion in flight.
        """
        self.user_id = user_id
        self.category = category
        super().__init__(
            f"Insertion already in progress for user '{user_id}' "
            f"in category '{category}'"
        )


class InsertionStateTransitionError(RankingError):
    """Raised when the step machine is driven out of order."""

    def __init__(self, from_phase: str, detail: str) -> None:
        """Initialize the error.

        Args:
            from_phase: Phase the machine was in.
            detail: What the caller attempted.
        """
        self.from_phase = from_phase
        self.detail = detail
        super().__init__(f"Illegal insertion step from '{from_phase}': {detail}")
