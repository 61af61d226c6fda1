"""Repair raw provider records into canonical volume / CPC / competition triples.

The provider is loose about field shapes:

* volume arrives as ``vol`` or ``volume``;
* CPC arrives as a bare number or as ``{"value": <number or numeric string>}``;
* competition arrives either as a 0-1 fraction or as a 0-100 percentage.

Each field has its own decoder that names every shape it accepts and
degrades anything else to zero.  Nothing in this module raises.
"""

import math
from typing import Any, Optional

from search_detective.modules.keyword_research.records import NormalizedMetric
from search_detective.utils.helpers import round_half_up

VOLUME_FIELDS = ("vol", "volume")


def _as_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None when it is not a number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def _parse_number(value: Any) -> Optional[float]:
    """Like ``_as_number`` but also accepts numeric strings ("4.50")."""
    number = _as_number(value)
    if number is not None:
        return number
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def decode_volume(raw: Optional[dict]) -> int:
    """Monthly search volume from ``vol`` or, failing that, ``volume``.

    The first field carrying a positive number wins; a zero ``vol`` does
    not hide a positive ``volume``.
    """
    if not isinstance(raw, dict):
        return 0
    for field_name in VOLUME_FIELDS:
        number = _as_number(raw.get(field_name))
        if number is not None and number > 0:
            return int(round_half_up(number))
    return 0


def decode_cpc(raw: Optional[dict]) -> float:
    """Cost per click in dollars, rounded to cents."""
    if not isinstance(raw, dict):
        return 0.0
    value = raw.get("cpc")

    if _as_number(value) is not None:
        # Shape 1: bare number
        cpc = _as_number(value)
    elif isinstance(value, dict):
        # Shape 2: {"value": 4.5} or {"value": "4.50"}
        cpc = _parse_number(value.get("value"))
    else:
        # Shape 3: missing, null, string, list ...
        cpc = None

    if cpc is None or cpc <= 0:
        return 0.0
    return round_half_up(cpc, 2)


def decode_competition(raw: Optional[dict], volume: int) -> int:
    """Competition as an integer percentage 0-100.

    Zero-volume phrases always get zero competition, whatever the
    provider reported.
    """
    if volume == 0 or not isinstance(raw, dict):
        return 0
    value = _as_number(raw.get("competition"))
    if value is None or value <= 0:
        return 0
    if value <= 1:
        return int(round_half_up(value * 100))
    return int(min(round_half_up(value), 100))


def normalize_metric(raw: Optional[dict]) -> NormalizedMetric:
    """Convert a provider record (or None when the provider was silent)."""
    volume = decode_volume(raw)
    return NormalizedMetric(
        volume=volume,
        cpc=decode_cpc(raw),
        competition=decode_competition(raw, volume),
    )
