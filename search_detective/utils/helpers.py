"""General-purpose helper utilities for keyword research."""

import math
from typing import Iterable


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to ``digits`` decimals with halves going away from zero.

    Python's built-in ``round`` uses banker's rounding, which would turn
    a 0.5 competition score into 0 instead of 1.

    Examples:
        >>> round_half_up(2.5)
        3.0
        >>> round_half_up(4.505, 2)
        4.51
    """
    factor = 10 ** digits
    scaled = abs(value) * factor
    # Absorb binary noise such as 4.505 * 100 == 450.49999999999994.
    rounded = math.floor(scaled + 0.5 + 1e-9) / factor
    return math.copysign(rounded, value) if value else 0.0


def parse_city_list(raw: str | Iterable[str]) -> list[str]:
    """Split comma-separated city input, trimming blanks and repeats.

    Accepts either one comma-separated string or an iterable of strings
    (each of which may itself contain commas).  Order of first appearance
    is kept.

    Examples:
        >>> parse_city_list("Boise, Reno,,Boise ")
        ['Boise', 'Reno']
    """
    chunks = [raw] if isinstance(raw, str) else list(raw)
    cities: list[str] = []
    seen: set[str] = set()
    for chunk in chunks:
        for part in str(chunk).split(","):
            city = part.strip()
            if city and city not in seen:
                seen.add(city)
                cities.append(city)
    return cities


def format_number(n: int | float) -> str:
    """Format a number with human-readable suffixes.

    Examples:
        >>> format_number(1500)
        '1.5K'
        >>> format_number(999)
        '999'
    """
    abs_n = abs(n)
    sign = "-" if n < 0 else ""
    if abs_n >= 1_000_000_000:
        return f"{sign}{abs_n / 1_000_000_000:.1f}B"
    if abs_n >= 1_000_000:
        return f"{sign}{abs_n / 1_000_000:.1f}M"
    if abs_n >= 1_000:
        return f"{sign}{abs_n / 1_000:.1f}K"
    if isinstance(n, float):
        return f"{sign}{abs_n:.1f}"
    return f"{sign}{abs_n}"


def format_currency(amount: int | float) -> str:
    """Format dollars with thousands separators: 2400 -> '$2,400'."""
    if isinstance(amount, float) and not amount.is_integer():
        return f"${amount:,.2f}"
    return f"${int(amount):,}"


def mask_secret(value: str) -> str:
    """Mask a secret for display (first 4 and last 4 chars visible)."""
    if not value:
        return ""
    if len(value) <= 10:
        return "*" * len(value)
    return value[:4] + "*" * (len(value) - 8) + value[-4:]
