"""Tests for monthly settlement and payouts."""

import pytest

from readoff.db.schemas import Book, PlayerData
from readoff.stats.penalties import (
    PenaltyModel,
    evaluate_month,
    player_standing,
    settle,
)


def make_player(player_id: str, month1_book: Book) -> PlayerData:
    player = PlayerData(id=player_id, name=player_id)
    player.month(1).books[0] = month1_book
    return player


class TestEvaluateMonth:
    """Tests for settling one month."""

    def test_fails_both_conditions(self):
        """Test target 4, 2 completed, score 150 gives penalty 50."""
        result = evaluate_month(4, completed=2, month_score=150)

        assert result.target == 4
        assert result.target_score == 200
        assert not result.passed
        assert result.penalty == 50
        assert result.missed == 2

    def test_passes_on_books(self):
        result = evaluate_month(4, completed=4, month_score=0)
        assert result.passed
        assert result.penalty == 0

    def test_passes_on_score(self):
        result = evaluate_month(4, completed=0, month_score=200)
        assert result.passed
        assert result.penalty == 0

    def test_per_book_model(self):
        result = evaluate_month(4, completed=2, month_score=500, model=PenaltyModel.PER_BOOK)

        assert not result.passed
        assert result.penalty == 100

    def test_target_override(self):
        result = evaluate_month(4, completed=1, month_score=0, target=1)
        assert result.passed


class TestPlayerStanding:
    """Tests for a player's standing."""

    def test_sample_player(self, sample_player: PlayerData):
        standing = player_standing(sample_player, current_month=3)

        assert standing.failed_months == [1, 2, 3]
        assert not standing.passed_all
        month3 = standing.months[2]
        assert month3.completed == 1
        assert month3.penalty == pytest.approx(150 - standing.score.total)
        assert standing.penalty == pytest.approx(50 + 100 + month3.penalty)

    def test_warm_up_never_penalized(self):
        standing = player_standing(PlayerData(), current_month=0)

        assert standing.months == []
        assert standing.penalty == 0
        assert standing.passed_all

    def test_future_months_not_graded(self):
        standing = player_standing(PlayerData(), current_month=2)
        assert [m.month for m in standing.months] == [1, 2]


class TestSettle:
    """Tests for the penalty pool and payouts."""

    def test_payout_to_eligible_player(self):
        passer = make_player("a", Book(ai_score=60, completed=True))
        failer = make_player("b", Book(ai_score=40, total_pages=100, current_page=50))

        settlement = settle([passer, failer], current_month=1)

        assert settlement.pool == pytest.approx(30)
        assert settlement.total_score == pytest.approx(80)
        assert settlement.get("a").payout == pytest.approx(22.5)
        assert settlement.get("b").payout == 0

    def test_no_scores_no_share(self):
        settlement = settle([PlayerData(id="x")], current_month=1)

        assert settlement.pool == 50
        assert settlement.score_share(settlement.get("x")) == 0
        assert settlement.get("x").payout == 0

    def test_per_book_pool(self):
        players = [PlayerData(id="x"), PlayerData(id="y")]
        settlement = settle(players, current_month=3, model=PenaltyModel.PER_BOOK)

        # (1 + 2 + 3) missed books each
        assert settlement.pool == 2 * 6 * 50

    def test_get_unknown(self):
        assert settle([], current_month=1).get("nope") is None
