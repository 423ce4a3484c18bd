"""Challenge manager: every named mutation on the challenge document.

Each action loads the whole document, changes one record and writes the
whole document back. Unknown player ids, months or book indices make an
action a silent no-op: it returns None (or False) and nothing is written.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Union

from ..api.openrouter import DifficultyRating, OpenRouterClient
from ..config import get_config
from ..db.schemas import (
    Book,
    BookUpdate,
    ChallengeDB,
    PlayerData,
    coerce_count,
    coerce_text,
)
from ..db.storage import Storage, get_storage
from ..season import is_valid_month, local_now

logger = logging.getLogger(__name__)


@dataclass
class Continuation:
    """An earlier-month book that a book continues."""

    month: int
    index: int
    book: Book


def normalize_title(title: str) -> str:
    """Comparison key for continuation matching."""
    return title.strip().casefold()


def find_continuation(player: PlayerData, month: int, title: str) -> Optional[Continuation]:
    """Search earlier months, nearest first, for a book with the same title.

    Titles match case-insensitively after trimming. Empty titles never match.
    """
    key = normalize_title(title)
    if not key:
        return None
    for m in range(month - 1, -1, -1):
        month_data = player.month(m)
        if month_data is None:
            continue
        for index, book in enumerate(month_data.books):
            if normalize_title(book.title) == key:
                return Continuation(month=m, index=index, book=book)
    return None


def carry_scoring(book: Book, source: Book) -> None:
    """Copy the scoring collaborator payload verbatim."""
    book.ai_score = source.ai_score
    book.intro = source.intro
    book.reading_advice = source.reading_advice
    book.score_explanation = source.score_explanation


def apply_baseline(book: Book, source: Book) -> None:
    """Start a continued book from where the earlier one left off."""
    book.starting_page = source.current_page
    book.current_page = max(book.current_page, book.starting_page)


def clear_scoring(book: Book) -> None:
    """Drop the scoring payload so the book can be rated afresh."""
    book.ai_score = None
    book.intro = None
    book.reading_advice = None
    book.score_explanation = None
    book.reasoning = None


def apply_title(
    player: PlayerData, month: int, book: Book, title: str
) -> Optional[Continuation]:
    """Set a book's title and pick up any continuation from earlier months.

    A title that differs from the old one (ignoring case and surrounding
    spaces) loses the old score payload. When an earlier month holds a book
    with the new title, this book starts from that book's current page and
    inherits its score payload, plus author and page count if it has none.
    """
    new_title = coerce_text(title)
    if normalize_title(new_title) != normalize_title(book.title):
        clear_scoring(book)
    book.title = new_title

    match = find_continuation(player, month, book.title)
    if match is None:
        book.starting_page = 0
        return None

    source = match.book
    apply_baseline(book, source)
    if source.is_scored:
        carry_scoring(book, source)
    if not book.author:
        book.author = source.author
    if not book.total_pages:
        book.total_pages = source.total_pages
    logger.debug(
        "Book %r continues month %d, starting at page %d",
        book.title, match.month, book.starting_page,
    )
    return match


class ChallengeManager:
    """Manages challenge mutations over the stored document."""

    def __init__(
        self,
        storage: Optional[Storage] = None,
        scorer: Optional[OpenRouterClient] = None,
    ):
        """Initialize challenge manager.

        Args:
            storage: Storage instance
            scorer: Difficulty scoring client (created on first use)
        """
        self.storage = storage or get_storage()
        self._scorer = scorer

    @property
    def scorer(self) -> OpenRouterClient:
        if self._scorer is None:
            self._scorer = OpenRouterClient()
        return self._scorer

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def load(self) -> ChallengeDB:
        """Load the (normalized) challenge document."""
        return self.storage.load()

    def get_player(self, player_id: str) -> Optional[PlayerData]:
        return self.load().get_player(player_id)

    def get_book(self, player_id: str, month: int, index: int) -> Optional[Book]:
        player = self.get_player(player_id)
        if player is None:
            return None
        return player.book(month, index)

    # -------------------------------------------------------------------------
    # Players
    # -------------------------------------------------------------------------

    def add_player(self, name: str) -> Optional[PlayerData]:
        """Add a player with every month scaffolded.

        Returns:
            The new player, or None for a blank name
        """
        name = coerce_text(name)
        if not name:
            return None

        with self.storage.session() as db:
            player = PlayerData(name=name)
            db.players.append(player)

        logger.debug("Added player %s (%s)", player.name, player.id)
        return player

    def remove_player(self, player_id: str) -> bool:
        """Remove a player. The last remaining player cannot be removed.

        Returns:
            True if removed
        """
        with self.storage.session() as db:
            if len(db.players) <= 1 or db.get_player(player_id) is None:
                return False
            db.players = [p for p in db.players if p.id != player_id]

        logger.debug("Removed player %s", player_id)
        return True

    def rename_player(self, player_id: str, name: str) -> Optional[PlayerData]:
        """Change a player's display name. Blank names are ignored."""
        name = coerce_text(name)
        if not name:
            return None

        with self.storage.session() as db:
            player = db.get_player(player_id)
            if player is None:
                return None
            player.name = name
        return player

    # -------------------------------------------------------------------------
    # Books
    # -------------------------------------------------------------------------

    def _edit_book(
        self,
        player_id: str,
        month: int,
        index: int,
        edit: Callable[[PlayerData, Book], None],
    ) -> Optional[Book]:
        """Apply ``edit`` to one book in a single session. No-op if the book is missing."""
        with self.storage.session() as db:
            player = db.get_player(player_id)
            book = player.book(month, index) if player else None
            if book is None:
                logger.debug("No book at %s/%s/%s", player_id, month, index)
                return None
            edit(player, book)
        return book

    def update_book_title(
        self, player_id: str, month: int, index: int, title: str
    ) -> Optional[Book]:
        """Set a book's title, running continuation detection."""

        def edit(player: PlayerData, book: Book) -> None:
            apply_title(player, month, book, title)

        return self._edit_book(player_id, month, index, edit)

    def update_book_author(
        self, player_id: str, month: int, index: int, author: str
    ) -> Optional[Book]:
        def edit(player: PlayerData, book: Book) -> None:
            book.author = coerce_text(author)

        return self._edit_book(player_id, month, index, edit)

    def update_book_total_pages(
        self, player_id: str, month: int, index: int, pages: Union[int, float]
    ) -> Optional[Book]:
        """Set the page count (rounded, never negative)."""

        def edit(player: PlayerData, book: Book) -> None:
            book.total_pages = coerce_count(pages)

        return self._edit_book(player_id, month, index, edit)

    def update_book_current_page(
        self, player_id: str, month: int, index: int, page: Union[int, float]
    ) -> Optional[Book]:
        """Set the current page (rounded, never negative)."""

        def edit(player: PlayerData, book: Book) -> None:
            book.current_page = coerce_count(page)

        return self._edit_book(player_id, month, index, edit)

    def update_book_notes(
        self, player_id: str, month: int, index: int, notes: str
    ) -> Optional[Book]:
        def edit(player: PlayerData, book: Book) -> None:
            book.notes = notes if isinstance(notes, str) else ""

        return self._edit_book(player_id, month, index, edit)

    def update_book(
        self, player_id: str, month: int, index: int, data: BookUpdate
    ) -> Optional[Book]:
        """Apply several field edits in one session.

        The title goes first so explicit author and page values win over
        anything carried from a continuation.
        """

        def edit(player: PlayerData, book: Book) -> None:
            if data.title is not None:
                apply_title(player, month, book, data.title)
            if data.author is not None:
                book.author = coerce_text(data.author)
            if data.total_pages is not None:
                book.total_pages = coerce_count(data.total_pages)
            if data.current_page is not None:
                book.current_page = coerce_count(data.current_page)
            if data.notes is not None:
                book.notes = data.notes

        return self._edit_book(player_id, month, index, edit)

    def toggle_book_completed(
        self, player_id: str, month: int, index: int
    ) -> Optional[Book]:
        """Flip completion. Completing snaps the current page to the total.

        Un-completing leaves the current page where it is.
        """

        def edit(player: PlayerData, book: Book) -> None:
            book.completed = not book.completed
            if book.completed and book.total_pages > 0:
                book.current_page = book.total_pages

        return self._edit_book(player_id, month, index, edit)

    def add_book(self, player_id: str, month: int) -> Optional[Book]:
        """Append an empty book to a month."""
        if not is_valid_month(month):
            return None

        with self.storage.session() as db:
            player = db.get_player(player_id)
            if player is None:
                return None
            book = Book()
            player.month(month).books.append(book)
        return book

    def remove_book(self, player_id: str, month: int, index: int) -> bool:
        """Delete a book from a month.

        The month is padded back to its target on the next load.
        """
        with self.storage.session() as db:
            player = db.get_player(player_id)
            if player is None or player.book(month, index) is None:
                return False
            del player.month(month).books[index]
        return True

    # -------------------------------------------------------------------------
    # Continuation
    # -------------------------------------------------------------------------

    def detect_continuation(
        self, player_id: str, month: int, index: int
    ) -> Optional[Continuation]:
        """Find the earlier-month book this book continues, without changing anything."""
        player = self.get_player(player_id)
        book = player.book(month, index) if player else None
        if book is None:
            return None
        return find_continuation(player, month, book.title)

    def copy_from_previous(
        self, player_id: str, month: int, index: int
    ) -> Optional[Book]:
        """Copy author, page count and score payload from the matched earlier book.

        No-op when the book has no continuation.
        """
        with self.storage.session() as db:
            player = db.get_player(player_id)
            book = player.book(month, index) if player else None
            if book is None:
                return None

            match = find_continuation(player, month, book.title)
            if match is None:
                return None

            source = match.book
            book.author = source.author
            book.total_pages = source.total_pages
            apply_baseline(book, source)
            if source.is_scored:
                carry_scoring(book, source)
        return book

    # -------------------------------------------------------------------------
    # Reading calendar
    # -------------------------------------------------------------------------

    def toggle_reading_date(
        self,
        player_id: str,
        reading_date: Union[str, date],
        today: Optional[date] = None,
    ) -> Optional[bool]:
        """Mark or unmark a day as a reading day.

        Args:
            player_id: Player ID
            reading_date: ISO date string or date
            today: Reference date (default: today in the challenge timezone)

        Returns:
            True if the date is now logged, False if it was removed, None if
            the player is unknown, the date is invalid or in the future
        """
        if isinstance(reading_date, str):
            try:
                reading_date = date.fromisoformat(reading_date.strip())
            except ValueError:
                return None

        if today is None:
            today = local_now(get_config().timezone).date()
        if reading_date > today:
            return None

        key = reading_date.isoformat()
        with self.storage.session() as db:
            player = db.get_player(player_id)
            if player is None:
                return None

            if key in player.reading_dates:
                player.reading_dates.remove(key)
                return False
            player.reading_dates.append(key)
        return True

    # -------------------------------------------------------------------------
    # AI scoring
    # -------------------------------------------------------------------------

    def scoring_context(self, player: PlayerData, exclude: Book) -> list[str]:
        """Describe the player's other scored books for the scoring prompt."""
        context = []
        for _, _, book in player.iter_books():
            if book is exclude or not book.is_scored or not book.title:
                continue
            label = f"{book.title} by {book.author}" if book.author else book.title
            context.append(f"{label} ({book.ai_score:g})")
        return context

    def request_ai_score(
        self,
        player_id: str,
        month: int,
        index: int,
        force: bool = False,
    ) -> Optional[Book]:
        """Ask the scoring collaborator to rate a book.

        Books without a title are skipped. A book that already has a score
        keeps it unless ``force`` is set. A placeholder rating (scorer
        unavailable) stores its explanatory text but no score, so the book
        can be scored again later.

        Returns:
            The updated book, or None if nothing was done
        """
        player = self.get_player(player_id)
        book = player.book(month, index) if player else None
        if book is None or not book.title:
            return None
        if book.is_scored and not force:
            return book

        book_id = book.id
        rating = self.scorer.rate_book(
            book.title, book.author, self.scoring_context(player, book)
        )

        # The rating call is slow; re-read so edits made meanwhile survive
        with self.storage.session() as db:
            fresh = db.get_player(player_id)
            target = fresh.book(month, index) if fresh else None
            if target is None or target.id != book_id:
                logger.debug("Book %s moved while scoring, dropping rating", book_id)
                return None
            apply_rating(target, rating)
        return target


def apply_rating(book: Book, rating: DifficultyRating) -> None:
    """Attach a rating's payload to a book."""
    book.intro = rating.intro
    book.reading_advice = rating.reading_advice
    book.score_explanation = rating.score_explanation
    if not rating.placeholder:
        book.ai_score = rating.score
