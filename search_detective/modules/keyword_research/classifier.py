"""Opportunity tiers for classified phrases."""

HIGH = "High"
MEDIUM = "Medium"
LOW = "Low"

OPPORTUNITY_LEVELS = (HIGH, MEDIUM, LOW)

HIGH_MIN_VOLUME = 500
HIGH_MAX_COMPETITION = 60
MEDIUM_MIN_VOLUME = 100
MEDIUM_MAX_COMPETITION = 75


def classify_opportunity(volume: int, competition: int) -> str:
    """Return ``High``, ``Medium`` or ``Low`` for a volume/competition pair.

    Both volume bounds are strict (``> 500``, ``> 100``) and so are both
    competition bounds (``< 60``, ``< 75``).  First matching tier wins.
    """
    if volume > HIGH_MIN_VOLUME and competition < HIGH_MAX_COMPETITION:
        return HIGH
    if volume > MEDIUM_MIN_VOLUME and competition < MEDIUM_MAX_COMPETITION:
        return MEDIUM
    return LOW
