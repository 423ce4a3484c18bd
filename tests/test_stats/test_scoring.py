"""Tests for reader score calculation."""

import pytest

from readoff.db.schemas import Book, PlayerData
from readoff.stats.scoring import (
    ProgressMode,
    book_contribution,
    book_progress,
    count_unfinished_scored,
    dilution_factor,
    reader_score,
)


class TestDilution:
    """Tests for the dilution factor."""

    def test_no_other_books(self):
        assert dilution_factor(0) == 1

    def test_one_other_book(self):
        assert dilution_factor(1) == pytest.approx(0.5906, abs=1e-4)

    def test_monotonically_decreasing(self):
        values = [dilution_factor(n) for n in range(10)]
        assert all(a > b for a, b in zip(values, values[1:]))

    def test_negative_treated_as_zero(self):
        assert dilution_factor(-2) == 1


class TestBookContribution:
    """Tests for a single book's contribution."""

    def test_partial_with_one_other(self):
        """Test 80 x 0.5 x 1/(1+ln 2) is about 23.6."""
        book = Book(ai_score=80, total_pages=100, current_page=50)
        assert book_contribution(book, 1) == pytest.approx(23.6, abs=0.05)

    def test_completed_counts_full_score(self):
        book = Book(ai_score=80, total_pages=100, current_page=10, completed=True)
        assert book_contribution(book, 5) == 80

    def test_unscored_counts_nothing(self):
        book = Book(total_pages=100, current_page=100, completed=True)
        assert book_contribution(book, 0) == 0

    def test_zero_pages(self):
        book = Book(ai_score=80, total_pages=0, current_page=50)
        assert book_contribution(book, 0) == 0

    def test_progress_clamped(self):
        book = Book(ai_score=80, total_pages=100, current_page=150)
        assert book_progress(book) == 1.0

    def test_month_mode_uses_starting_page(self):
        book = Book(ai_score=50, total_pages=100, current_page=50, starting_page=30)

        assert book_progress(book, ProgressMode.LIFETIME) == pytest.approx(0.5)
        assert book_progress(book, ProgressMode.MONTH) == pytest.approx(0.2)


class TestReaderScore:
    """Tests for a player's reader score."""

    def test_sample_player(self, sample_player: PlayerData):
        score = reader_score(sample_player)

        assert score.unfinished_scored == 2
        assert score.total == pytest.approx(23.62 + 0.886 + 40, abs=0.05)
        assert score.month_score(3) == pytest.approx(score.total)
        assert score.month_score(4) == 0

    def test_breakdown(self, sample_player: PlayerData):
        score = reader_score(sample_player)
        by_title = {b.title: b for b in score.books}

        assert by_title["Siddhartha"].dilution == 1.0
        assert by_title["Ulysses"].dilution == pytest.approx(dilution_factor(1))
        assert by_title["Ulysses"].progress == pytest.approx(0.5)

    def test_month_zero_not_scored(self):
        player = PlayerData()
        player.month(0).books[0] = Book(ai_score=90, completed=True)

        assert reader_score(player).total == 0
        assert count_unfinished_scored(player) == 0

    def test_more_open_books_dilute(self):
        """Test opening extra scored books lowers the partial credit of each."""
        player = PlayerData()
        player.month(4).books[0] = Book(ai_score=80, total_pages=100, current_page=50)
        alone = reader_score(player).total

        player.month(4).books[1] = Book(ai_score=80, total_pages=100, current_page=0)
        crowded = reader_score(player).total

        assert crowded < alone

    def test_empty_player(self):
        assert reader_score(PlayerData()).total == 0
