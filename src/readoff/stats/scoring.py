"""Reader score: dilution-weighted aggregate of book difficulty scores.

    Reader Score = sum_i B_i * P_i * 1 / (1 + ln(n + 1))

B is a book's difficulty score, P its reading progress and n the number of
*other* unfinished scored books the player has open. Completed books count
their full score and are never diluted, so starting many books at once does
not pay. Month 0 is a trial month and is not scored.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from ..db.schemas import Book, PlayerData
from ..season import GRADED_MONTHS


class ProgressMode(str, Enum):
    """How partial progress on an unfinished book is measured."""

    LIFETIME = "lifetime"  # currentPage / totalPages
    MONTH = "month"  # pages read since the month's starting page


def dilution_factor(unfinished_others: int) -> float:
    """Weight applied to partial credit, given n other unfinished scored books.

    Equals 1 when n is 0 and decreases monotonically as n grows.
    """
    n = max(0, unfinished_others)
    return 1 / (1 + math.log(n + 1))


def book_progress(book: Book, mode: ProgressMode = ProgressMode.LIFETIME) -> float:
    """Fraction of the book read, in [0, 1]."""
    if book.total_pages <= 0:
        return 0.0
    pages = book.current_page
    if mode == ProgressMode.MONTH:
        pages -= book.starting_page
    return min(1.0, max(0.0, pages / book.total_pages))


def book_contribution(
    book: Book,
    unfinished_others: int,
    mode: ProgressMode = ProgressMode.LIFETIME,
) -> float:
    """Points a single book adds to its reader's score."""
    if book.ai_score is None:
        return 0.0
    if book.completed:
        return book.ai_score
    return book.ai_score * book_progress(book, mode) * dilution_factor(unfinished_others)


def count_unfinished_scored(
    player: PlayerData,
    months: Iterable[int] = GRADED_MONTHS,
) -> int:
    """Number of scored books the player has not finished."""
    return sum(
        1 for _, _, book in player.iter_books(months)
        if book.is_scored and not book.completed
    )


@dataclass
class BookScore:
    """Score breakdown for one book."""

    month: int
    index: int
    title: str
    ai_score: float
    completed: bool
    progress: float
    dilution: float
    contribution: float


@dataclass
class ReaderScore:
    """A player's reader score with per-book and per-month breakdown."""

    total: float = 0.0
    unfinished_scored: int = 0
    books: list[BookScore] = field(default_factory=list)
    by_month: dict[int, float] = field(default_factory=dict)

    def month_score(self, month: int) -> float:
        """Sum of contributions from one month's books."""
        return self.by_month.get(month, 0.0)


def reader_score(
    player: PlayerData,
    mode: ProgressMode = ProgressMode.LIFETIME,
    months: Optional[Iterable[int]] = None,
) -> ReaderScore:
    """Compute a player's reader score.

    Args:
        player: Player to score
        mode: Progress measure for unfinished books
        months: Month slots to include (default: graded months 1-12)

    Returns:
        ReaderScore with total and breakdowns
    """
    months = list(months) if months is not None else list(GRADED_MONTHS)
    unfinished = count_unfinished_scored(player, months)
    result = ReaderScore(unfinished_scored=unfinished)

    for m, index, book in player.iter_books(months):
        if not book.is_scored:
            continue

        others = 0 if book.completed else unfinished - 1
        dilution = 1.0 if book.completed else dilution_factor(others)
        contribution = book_contribution(book, others, mode)

        result.books.append(BookScore(
            month=m,
            index=index,
            title=book.title,
            ai_score=book.ai_score,
            completed=book.completed,
            progress=1.0 if book.completed else book_progress(book, mode),
            dilution=dilution,
            contribution=contribution,
        ))
        result.by_month[m] = result.by_month.get(m, 0.0) + contribution
        result.total += contribution

    return result
