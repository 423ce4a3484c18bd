"""Challenge calendar: month slots, targets and the current month marker.

Month 0 is the warm-up month (December of the year before the challenge),
months 1-12 are January to December of the target year.
"""

import calendar
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

FIRST_MONTH = 0
LAST_MONTH = 12
MONTHS = range(FIRST_MONTH, LAST_MONTH + 1)
GRADED_MONTHS = range(1, LAST_MONTH + 1)

# Books required per month slot
MONTHLY_TARGETS: dict[int, int] = {
    0: 1,
    1: 1,
    2: 2,
    3: 3,
    4: 4,
    5: 4,
    6: 4,
    7: 4,
    8: 4,
    9: 4,
    10: 4,
    11: 4,
    12: 4,
}


def month_target(month: int) -> int:
    """Number of books required for a month slot (0 if out of range)."""
    return MONTHLY_TARGETS.get(month, 0)


def is_valid_month(month: int) -> bool:
    """Check whether a month index is one of the 13 challenge slots."""
    return FIRST_MONTH <= month <= LAST_MONTH


def calendar_month(month: int, target_year: int) -> tuple[int, int]:
    """Map a challenge month slot to a (year, month) calendar pair."""
    if month == 0:
        return target_year - 1, 12
    return target_year, month


def days_in_month(month: int, target_year: int) -> int:
    """Number of days in a challenge month slot."""
    year, cal_month = calendar_month(month, target_year)
    return calendar.monthrange(year, cal_month)[1]


def month_label(month: int, target_year: int) -> str:
    """Short human-readable label, e.g. ``Dec 2025`` or ``Mar 2026``."""
    year, cal_month = calendar_month(month, target_year)
    return f"{calendar.month_abbr[cal_month]} {year}"


def challenge_month(today: date, target_year: int) -> int:
    """Derive the current challenge month marker from a calendar date.

    December of the previous year is the warm-up month 0; dates inside the
    target year map to their calendar month; anything after the challenge
    is pinned to 12 and anything earlier to 0.
    """
    if today.year == target_year - 1 and today.month == 12:
        return 0
    if today.year == target_year:
        return today.month
    if today.year > target_year:
        return LAST_MONTH
    return FIRST_MONTH


def local_now(timezone: str, now: Optional[datetime] = None) -> datetime:
    """Current time in the challenge timezone."""
    tz = ZoneInfo(timezone)
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def current_challenge_month(
    target_year: int,
    timezone: str,
    now: Optional[datetime] = None,
) -> int:
    """Challenge month marker for the wall clock in ``timezone``."""
    return challenge_month(local_now(timezone, now).date(), target_year)


def graded_months(current_month: int) -> list[int]:
    """Months whose targets have come due, given the current marker."""
    return [m for m in GRADED_MONTHS if m <= current_month]
