"""
Rating label normalization.
"""
from typing import Optional

STAR = "⭐️"
NOT_RATED = "Not Rated"

# "My Rating" labels as configured in the base, best first
RATING_STARS = {
    "1 - Amazing": 4,
    "2 - Great": 3,
    "3 - Good": 2,
    "4 - Meh": 1,
}


def normalize_rating(label: Optional[str]) -> str:
    """Map a rating label to a row of star glyphs, or "Not Rated"."""
    stars = RATING_STARS.get(label) if isinstance(label, str) else None
    if stars is None:
        return NOT_RATED
    return STAR * stars
