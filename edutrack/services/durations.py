"""Duration labels shown next to every lesson: "1h30", "2h", "+0h05"."""

from __future__ import annotations


def format_duration(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours}h{mins:02d}" if mins else f"{hours}h"


def reliquat(planned_minutes: int, actual_minutes: int | None) -> str:
    """Time left over (+) or overrun (-) against the planned duration.

    With no actual duration yet the whole planned duration is left, shown
    without a sign.
    """
    if not actual_minutes:
        return format_duration(planned_minutes)
    remaining = planned_minutes - actual_minutes
    sign = "-" if remaining < 0 else "+"
    return f"{sign}{format_duration(abs(remaining))}"


def hours(minutes: int | float) -> float:
    return round(minutes / 60, 2)
