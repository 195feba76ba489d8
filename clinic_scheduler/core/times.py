"""Wall-clock time helpers.

Times of day are plain ints of minutes since midnight (0-1439). Doctor records
and appointment documents carry them as strings in either 24-hour ("14:20") or
12-hour ("2:20 PM") form; everything is parsed into minutes at the boundary and
only turned back into strings for display or storage.
"""

import re

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])?$")
_RANGE_RE = re.compile(
    r"(\d{1,2}:\d{2}\s*(?:[AaPp][Mm])?)\s*[-–]\s*(\d{1,2}:\d{2}\s*(?:[AaPp][Mm])?)"
)


def parse_time(value: str | None, default: int | None = None) -> int | None:
    """Parse "HH:MM" or "H:MM AM/PM" into minutes since midnight.

    Returns ``default`` instead of raising when the value cannot be parsed, so
    a single bad record never breaks a slot computation.
    """
    if not isinstance(value, str):
        return default
    match = _TIME_RE.match(value.strip())
    if not match:
        return default
    hours = int(match.group(1))
    minutes = int(match.group(2))
    meridiem = match.group(3)
    if minutes > 59:
        return default
    if meridiem:
        if not 1 <= hours <= 12:
            return default
        if meridiem.upper() == "PM" and hours != 12:
            hours += 12
        elif meridiem.upper() == "AM" and hours == 12:
            hours = 0
    elif hours > 23:
        return default
    return hours * 60 + minutes


def format_time(minutes: int, as24h: bool = True) -> str:
    """Inverse of parse_time: "09:05" or "9:05 AM"."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"time of day out of range: {minutes}")
    hours, mins = divmod(minutes, 60)
    if as24h:
        return f"{hours:02d}:{mins:02d}"
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{mins:02d} {period}"


def normalize_time(value: str | None, default: str | None = None) -> str | None:
    """Canonical 24-hour form of a time string in either format."""
    minutes = parse_time(value)
    if minutes is None:
        return default
    return format_time(minutes)


def parse_time_range(text: str | None) -> tuple[int, int] | None:
    """Extract the first "start - end" pair, e.g. from "Mon-Fri, 9:00 AM - 5:00 PM"."""
    if not text:
        return None
    match = _RANGE_RE.search(text)
    if not match:
        return None
    start = parse_time(match.group(1))
    end = parse_time(match.group(2))
    if start is None or end is None:
        return None
    return start, end
