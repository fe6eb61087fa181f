import math
import re
from typing import Any

_HOURS_MINUTES_PATTERN = re.compile(
    r"^(?:(?P<hours>\d+)\s*h(?:ours?|rs?)?)?\s*(?:(?P<minutes>\d+)\s*m(?:in(?:ute)?s?)?)?$",
)
_FRACTIONAL_HOURS_PATTERN = re.compile(r"^(?P<hours>\d+(?:\.\d+)?)\s*h(?:ours?|rs?)?$")


def parse_duration_seconds(value: Any) -> int | None:
    """Normalize a duration in any of the accepted encodings to whole seconds.

    Accepted shapes, tried in order: ``H:M:S`` or ``M:S``; hour/minute tokens
    such as ``"1h 30m"`` or ``"45m"``; fractional hours such as ``"1.5h"``; a
    bare integer count of seconds. Numbers are taken as seconds. Anything else
    yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not math.isfinite(value) or value < 0:
            return None
        return _round_half_up(value)
    if not isinstance(value, str):
        return None

    cleaned = value.strip().lower()
    if not cleaned:
        return None

    if ":" in cleaned:
        return _parse_colon_delimited(cleaned)

    if "h" in cleaned or "m" in cleaned:
        match = _HOURS_MINUTES_PATTERN.match(cleaned)
        if match and (match.group("hours") or match.group("minutes")):
            hours = int(match.group("hours") or 0)
            minutes = int(match.group("minutes") or 0)
            return hours * 3600 + minutes * 60

        fractional_match = _FRACTIONAL_HOURS_PATTERN.match(cleaned)
        if fractional_match:
            return _round_half_up(float(fractional_match.group("hours")) * 3600)
        return None

    try:
        seconds = int(cleaned)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _parse_colon_delimited(value: str) -> int | None:
    parts = [part.strip() for part in value.split(":")]
    if len(parts) not in (2, 3):
        return None
    if len(parts) == 2:
        parts.insert(0, "0")

    components: list[int] = []
    for part in parts:
        if not part.isdigit():
            return None
        components.append(int(part))

    hours, minutes, seconds = components
    return hours * 3600 + minutes * 60 + seconds


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
