"""Dashboard summary: every statistic shown on the overview, in one pass."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..config import Config, get_config
from ..db.schemas import ChallengeDB
from ..season import GRADED_MONTHS, calendar_month, challenge_month, local_now
from .penalties import PenaltyModel, PlayerStanding, settle
from .progress import MonthPace, month_pace, reading_days_in_month
from .scoring import ProgressMode

logger = logging.getLogger(__name__)


@dataclass
class PlayerSummary:
    """Overview card for one player."""

    player_id: str
    name: str
    completed_count: int
    target_count: int
    reader_score: float
    score_share: float
    payout: float
    eligible: bool
    penalty: float
    failed_months: list[int] = field(default_factory=list)
    pace: Optional[MonthPace] = None
    reading_days: int = 0  # logged days in the current month

    @property
    def completion_percent(self) -> float:
        return self.completed_count / max(1, self.target_count) * 100

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        data = {
            "playerId": self.player_id,
            "name": self.name,
            "completedCount": self.completed_count,
            "targetCount": self.target_count,
            "readerScore": round(self.reader_score, 2),
            "scoreShare": round(self.score_share * 100),
            "payout": round(self.payout),
            "eligible": self.eligible,
            "penalty": round(self.penalty),
            "failedMonths": self.failed_months,
            "readingDays": self.reading_days,
            "pace": None,
        }
        if self.pace is not None:
            data["pace"] = {
                "month": self.pace.month,
                "recommendedDose": self.pace.recommended_dose,
                "expectedPages": round(self.pace.expected_pages, 1),
                "pagesRead": self.pace.pages_read,
                "aheadBy": round(self.pace.ahead_by, 1),
            }
        return data


@dataclass
class DashboardSummary:
    """All players' overview plus the shared penalty pool."""

    current_month: int
    penalty_pool: float
    total_score: float
    players: list[PlayerSummary] = field(default_factory=list)

    def get(self, player_id: str) -> Optional[PlayerSummary]:
        for summary in self.players:
            if summary.player_id == player_id:
                return summary
        return None

    def to_dict(self) -> dict:
        return {
            "currentMonth": self.current_month,
            "penaltyPool": round(self.penalty_pool),
            "totalScore": round(self.total_score, 2),
            "players": [p.to_dict() for p in self.players],
        }


def build_dashboard(
    db: ChallengeDB,
    current_month: int,
    target_year: int,
    model: PenaltyModel = PenaltyModel.SCORE,
    mode: ProgressMode = ProgressMode.LIFETIME,
    day_of_month: Optional[int] = None,
) -> DashboardSummary:
    """Build the overview for every player.

    Args:
        db: Challenge document
        current_month: Current challenge month marker (0-12)
        target_year: Challenge year, for month lengths
        model: Penalty settlement rule
        mode: Progress measure for unfinished books
        day_of_month: Day reached in the current month, for pace

    Returns:
        DashboardSummary
    """
    settlement = settle(db.players, current_month, model, mode)
    summary = DashboardSummary(
        current_month=current_month,
        penalty_pool=settlement.pool,
        total_score=settlement.total_score,
    )

    for player in db.players:
        standing: PlayerStanding = settlement.get(player.id)
        completed = 0
        target = 0
        for m in GRADED_MONTHS:
            month_data = player.month(m)
            if month_data is None:
                continue
            completed += month_data.completed_count
            target += len(month_data.books)

        summary.players.append(PlayerSummary(
            player_id=player.id,
            name=player.name,
            completed_count=completed,
            target_count=target,
            reader_score=standing.score.total,
            score_share=settlement.score_share(standing),
            payout=standing.payout,
            eligible=standing.passed_all,
            penalty=standing.penalty,
            failed_months=standing.failed_months,
            pace=month_pace(player, current_month, target_year, day_of_month),
            reading_days=reading_days_in_month(player, current_month, target_year),
        ))

    return summary


def dashboard_from_config(
    db: ChallengeDB,
    config: Optional[Config] = None,
    now: Optional[datetime] = None,
) -> DashboardSummary:
    """Build the overview using the configured rules and the wall clock."""
    config = config or get_config()
    today = local_now(config.timezone, now).date()
    current = challenge_month(today, config.target_year)

    # Pace only makes sense while the marker month is the real calendar month
    day = None
    if calendar_month(current, config.target_year) == (today.year, today.month):
        day = today.day

    return build_dashboard(
        db,
        current_month=current,
        target_year=config.target_year,
        model=configured(PenaltyModel, config.penalty_model, PenaltyModel.SCORE),
        mode=configured(ProgressMode, config.progress_mode, ProgressMode.LIFETIME),
        day_of_month=day,
    )


def configured(kind, value: str, default):
    """Enum member for a configured value, or ``default`` when unknown."""
    try:
        return kind(value)
    except ValueError:
        logger.warning("Unknown %s %r, using %r", kind.__name__, value, default.value)
        return default
