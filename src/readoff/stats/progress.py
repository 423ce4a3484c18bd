"""Reading pace and player totals.

Calculates the recommended daily page dose for a month, whether a player is
ahead of or behind that pace, and lifetime profile totals.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from ..db.schemas import PlayerData
from ..season import MONTHS, calendar_month, days_in_month


@dataclass
class MonthPace:
    """Page pace for one player and month."""

    month: int
    days_in_month: int
    day_of_month: int
    total_pages: int
    pages_read: int

    @property
    def daily_target(self) -> float:
        """Pages per day needed to finish the month's books."""
        return self.total_pages / self.days_in_month

    @property
    def recommended_dose(self) -> int:
        return math.ceil(self.daily_target)

    @property
    def expected_pages(self) -> float:
        """Pages that should have been read by ``day_of_month``."""
        return self.daily_target * self.day_of_month

    @property
    def ahead_by(self) -> float:
        """Positive when ahead of pace, negative when behind."""
        return self.pages_read - self.expected_pages

    @property
    def is_ahead(self) -> bool:
        return self.ahead_by >= 0


def month_pace(
    player: PlayerData,
    month: int,
    target_year: int,
    day_of_month: Optional[int] = None,
) -> Optional[MonthPace]:
    """Pace for a month slot.

    Args:
        player: Player to measure
        month: Month slot (0-12)
        target_year: Challenge year
        day_of_month: Day reached so far (default: end of month)

    Returns:
        MonthPace, or None for an unknown month
    """
    month_data = player.month(month)
    if month_data is None:
        return None

    days = days_in_month(month, target_year)
    if day_of_month is None:
        day_of_month = days

    return MonthPace(
        month=month,
        days_in_month=days,
        day_of_month=min(max(0, day_of_month), days),
        total_pages=month_data.total_pages,
        pages_read=month_data.current_pages,
    )


@dataclass
class PlayerProfile:
    """Lifetime totals for a player."""

    player_id: str
    name: str
    total_books: int = 0
    completed_books: int = 0
    pages_read: int = 0
    reading_days: int = 0

    @property
    def completion_percent(self) -> float:
        if self.total_books <= 0:
            return 0.0
        return round(self.completed_books / self.total_books * 100, 1)


def player_profile(player: PlayerData, months: Iterable[int] = MONTHS) -> PlayerProfile:
    """Totals across month slots.

    Completed books count their full page total; unfinished books count the
    current page.
    """
    profile = PlayerProfile(
        player_id=player.id,
        name=player.name,
        reading_days=len(player.reading_dates),
    )
    for _, _, book in player.iter_books(months):
        profile.total_books += 1
        if book.completed:
            profile.completed_books += 1
            profile.pages_read += book.total_pages
        else:
            profile.pages_read += book.current_page
    return profile


def reading_days_in_month(player: PlayerData, month: int, target_year: int) -> int:
    """Number of logged reading days falling in a month slot."""
    year, cal_month = calendar_month(month, target_year)
    prefix = f"{year:04d}-{cal_month:02d}-"
    return sum(1 for d in player.reading_dates if d.startswith(prefix))
