"""Constants for the ranking module."""

# Log component name
COMPONENT_RANKING = "ranking"

# Scores are rounded to this many decimal places
SCORE_DECIMAL_PLACES: int = 1

# Prompt text shown while a comparison is pending
PHASE_LABEL_TOP = "Comparing with your top pick..."
PHASE_LABEL_BOTTOM = "Comparing with your lowest ranked..."
PHASE_LABEL_BINARY = "Narrowing down position ({step}/{total})..."
