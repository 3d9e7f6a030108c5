"""Human-readable distance and duration strings."""

from __future__ import annotations

import math

METERS_PER_MILE = 1609.34


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_distance(meters: float) -> str:
    """Meters to miles rounded to a tenth, e.g. 1500 -> ``"0.9 mi"``, 3218.68 -> ``"2 mi"``.

    A whole number of miles is written without a trailing ``.0``.
    """

    whole, tenth = divmod(_round_half_up(meters / METERS_PER_MILE * 10), 10)
    return f"{whole} mi" if tenth == 0 else f"{whole}.{tenth} mi"


def format_duration(seconds: float) -> str:
    """Seconds to ``"N sec"``, ``"N min"`` or ``"Hh Mmin"``."""

    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds} sec"
    minutes = _round_half_up(seconds / 60)
    if minutes < 60:
        return f"{minutes} min"
    hours, remaining_minutes = divmod(minutes, 60)
    return f"{hours}h {remaining_minutes}min"


def parse_duration(duration: str | int | float | None) -> int:
    """Whole seconds from a protobuf duration string such as ``"123s"``.

    Fractional seconds in a string are truncated (``"12.5s"`` -> 12). Plain
    numbers, as OSRM reports them, are rounded.
    """

    if duration is None:
        return 0
    if isinstance(duration, (int, float)):
        return _round_half_up(duration)
    text = duration.strip().rstrip("s")
    if not text:
        return 0
    return int(float(text))
