"""Constants for the configuration module."""

# Log component names
COMPONENT_CONFIG = "config"

# Score range per category as (max, min). Ranges must not overlap so that
# score order always agrees with global rank order.
DEFAULT_SCORE_RANGES: dict[str, tuple[float, float]] = {
    "liked": (10.0, 7.0),
    "neutral": (6.9, 4.0),
    "disliked": (3.9, 1.0),
}

# Total number of ranked items before scores are shown
DEFAULT_SCORE_VISIBILITY_THRESHOLD: int = 10
