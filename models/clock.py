"""
Wall-clock helpers for the Day Planner.

All times inside the engine travel as zero-padded 24-hour labels ("08:30")
at the edges and as minutes-since-midnight inside the algorithms.
"""

import re

_LABEL_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def to_minutes(label: str) -> int:
    """Convert an "HH:MM" label into minutes since midnight."""
    match = _LABEL_PATTERN.match(label or "")
    if not match:
        raise ValueError(f"Invalid time label '{label}' (expected zero-padded HH:MM)")
    return int(match.group(1)) * 60 + int(match.group(2))


def to_label(minutes: int) -> str:
    """Convert minutes since midnight back into an "HH:MM" label."""
    if minutes < 0 or minutes >= 24 * 60:
        raise ValueError(f"Minute value {minutes} is outside a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def floor_to_slot(minutes: int, slot_minutes: int) -> int:
    """Round a minute value down onto the slot grid."""
    return minutes - (minutes % slot_minutes)
