"""Monthly pass/fail, penalty pool and payouts.

Each graded month has a book target. Two settlement rules exist:

- ``score`` (default): a month passes when the target book count is met
  *or* the month's reader score reaches ``target * 50``; a failed month
  costs the score deficit.
- ``per_book``: a month passes only on book count; each missing book costs
  a flat 50.

Penalties go into a shared pool that players who passed every graded month
split in proportion to their reader scores.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..db.schemas import PlayerData
from ..season import graded_months, month_target
from .scoring import ProgressMode, ReaderScore, reader_score

SCORE_PER_BOOK = 50
PENALTY_PER_BOOK = 50


class PenaltyModel(str, Enum):
    """Rule used to settle a month."""

    SCORE = "score"
    PER_BOOK = "per_book"


@dataclass
class MonthResult:
    """Outcome of one graded month for one player."""

    month: int
    target: int
    completed: int
    month_score: float
    target_score: int
    passed: bool
    penalty: float

    @property
    def missed(self) -> int:
        return max(0, self.target - self.completed)


def evaluate_month(
    month: int,
    completed: int,
    month_score: float,
    model: PenaltyModel = PenaltyModel.SCORE,
    target: Optional[int] = None,
) -> MonthResult:
    """Settle one month.

    Args:
        month: Month slot (1-12)
        completed: Books completed in the month
        month_score: Reader-score contribution of the month's books
        model: Settlement rule
        target: Book target override (default: configured table)

    Returns:
        MonthResult with pass flag and penalty
    """
    if target is None:
        target = month_target(month)
    target_score = target * SCORE_PER_BOOK
    books_ok = completed >= target

    if model == PenaltyModel.PER_BOOK:
        passed = books_ok
        penalty = float(max(0, target - completed) * PENALTY_PER_BOOK)
    else:
        passed = books_ok or month_score >= target_score
        penalty = 0.0 if passed else max(0.0, target_score - month_score)

    return MonthResult(
        month=month,
        target=target,
        completed=completed,
        month_score=month_score,
        target_score=target_score,
        passed=passed,
        penalty=penalty,
    )


@dataclass
class PlayerStanding:
    """A player's position in the challenge."""

    player_id: str
    name: str
    score: ReaderScore
    months: list[MonthResult] = field(default_factory=list)
    payout: float = 0.0

    @property
    def penalty(self) -> float:
        return sum(m.penalty for m in self.months)

    @property
    def passed_all(self) -> bool:
        """Whether every graded month so far was passed."""
        return all(m.passed for m in self.months)

    @property
    def failed_months(self) -> list[int]:
        return [m.month for m in self.months if not m.passed]


def player_standing(
    player: PlayerData,
    current_month: int,
    model: PenaltyModel = PenaltyModel.SCORE,
    mode: ProgressMode = ProgressMode.LIFETIME,
) -> PlayerStanding:
    """Evaluate every graded month up to ``current_month`` for a player."""
    score = reader_score(player, mode)
    standing = PlayerStanding(player_id=player.id, name=player.name, score=score)

    for m in graded_months(current_month):
        month_data = player.month(m)
        completed = month_data.completed_count if month_data else 0
        standing.months.append(
            evaluate_month(m, completed, score.month_score(m), model)
        )

    return standing


@dataclass
class Settlement:
    """Penalty pool and payouts across all players."""

    current_month: int
    standings: list[PlayerStanding] = field(default_factory=list)

    @property
    def pool(self) -> float:
        return sum(s.penalty for s in self.standings)

    @property
    def total_score(self) -> float:
        return sum(s.score.total for s in self.standings)

    def score_share(self, standing: PlayerStanding) -> float:
        """Fraction of all reader score held by a player."""
        total = self.total_score
        if total <= 0:
            return 0.0
        return standing.score.total / total

    def get(self, player_id: str) -> Optional[PlayerStanding]:
        for standing in self.standings:
            if standing.player_id == player_id:
                return standing
        return None


def settle(
    players: list[PlayerData],
    current_month: int,
    model: PenaltyModel = PenaltyModel.SCORE,
    mode: ProgressMode = ProgressMode.LIFETIME,
) -> Settlement:
    """Compute standings, the penalty pool, and each eligible player's payout.

    payout = pool * playerScore / sumOfAllScores, only for players who passed
    every graded month.
    """
    settlement = Settlement(current_month=current_month)
    settlement.standings = [
        player_standing(p, current_month, model, mode) for p in players
    ]

    pool = settlement.pool
    for standing in settlement.standings:
        if standing.passed_all:
            standing.payout = pool * settlement.score_share(standing)

    return settlement
