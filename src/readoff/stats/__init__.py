"""Challenge statistics: reader score, penalties, pace and dashboard."""

from .dashboard import (
    DashboardSummary,
    PlayerSummary,
    build_dashboard,
    dashboard_from_config,
)
from .penalties import (
    PENALTY_PER_BOOK,
    SCORE_PER_BOOK,
    MonthResult,
    PenaltyModel,
    PlayerStanding,
    Settlement,
    evaluate_month,
    settle,
)
from .progress import MonthPace, PlayerProfile, month_pace, player_profile
from .scoring import (
    ProgressMode,
    ReaderScore,
    book_contribution,
    dilution_factor,
    reader_score,
)

__all__ = [
    "DashboardSummary",
    "PlayerSummary",
    "build_dashboard",
    "dashboard_from_config",
    "PENALTY_PER_BOOK",
    "SCORE_PER_BOOK",
    "MonthResult",
    "PenaltyModel",
    "PlayerStanding",
    "Settlement",
    "evaluate_month",
    "settle",
    "MonthPace",
    "PlayerProfile",
    "month_pace",
    "player_profile",
    "ProgressMode",
    "ReaderScore",
    "book_contribution",
    "dilution_factor",
    "reader_score",
]
