"""Pydantic schemas for the persisted challenge document.

The whole challenge lives in one JSON document::

    {"players": [{"id", "name", "months": {"0": {...}, ..., "12": {...}},
                  "readingDates": [...]}]}

Field validators run in ``before`` mode and coerce malformed values instead
of rejecting them, so validating a raw document is also its repair step.
"""

import math
from datetime import date
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..season import MONTHS, month_target


def make_id() -> str:
    """Generate a short opaque identifier."""
    return uuid4().hex[:8]


def month_key(month: int) -> str:
    """Key used for a month slot in the persisted document."""
    return str(month)


def coerce_text(v: Any) -> str:
    """Trimmed string, or empty for non-strings and pure whitespace."""
    if isinstance(v, str) and v.strip():
        return v.strip()
    return ""


def coerce_count(v: Any) -> int:
    """Non-negative integer from a JSON number, 0 for anything else."""
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return 0
    if isinstance(v, float) and not math.isfinite(v):
        return 0
    return max(0, int(round(v)))


class StoreModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=False,
        extra="ignore",
    )


# ============================================================================
# Document Schemas
# ============================================================================


class Book(StoreModel):
    """A single book slot in a player's month."""

    id: str = Field(default_factory=make_id)
    title: str = ""
    author: str = ""
    completed: bool = False
    total_pages: int = 0
    current_page: int = 0
    starting_page: int = 0  # currentPage carried over for a continued book
    notes: str = ""

    # Scoring collaborator payload
    ai_score: Optional[float] = Field(None, ge=0, le=100)
    intro: Optional[str] = None
    reading_advice: Optional[str] = None
    score_explanation: Optional[str] = None
    reasoning: Optional[str] = None  # legacy

    @field_validator("id", mode="before")
    @classmethod
    def ensure_id(cls, v: Any) -> str:
        """Generate an id when missing or blank."""
        if isinstance(v, str) and v.strip():
            return v
        return make_id()

    @field_validator("title", "author", mode="before")
    @classmethod
    def clean_text(cls, v: Any) -> str:
        return coerce_text(v)

    @field_validator("notes", mode="before")
    @classmethod
    def clean_notes(cls, v: Any) -> str:
        """Keep notes verbatim unless they are pure whitespace."""
        if isinstance(v, str) and v.strip():
            return v
        return ""

    @field_validator("completed", mode="before")
    @classmethod
    def clean_completed(cls, v: Any) -> bool:
        return bool(v)

    @field_validator("total_pages", "current_page", "starting_page", mode="before")
    @classmethod
    def clean_pages(cls, v: Any) -> int:
        return coerce_count(v)

    @field_validator("ai_score", mode="before")
    @classmethod
    def clean_score(cls, v: Any) -> Optional[float]:
        """Drop non-numeric scores and clamp the rest to 0-100."""
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        if isinstance(v, float) and not math.isfinite(v):
            return None
        return float(min(100, max(0, v)))

    @field_validator(
        "intro", "reading_advice", "score_explanation", "reasoning", mode="before"
    )
    @classmethod
    def clean_optional_text(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @property
    def has_title(self) -> bool:
        return bool(self.title)

    @property
    def is_scored(self) -> bool:
        """Whether the scoring collaborator has attached a score."""
        return self.ai_score is not None

    @property
    def progress_percent(self) -> int:
        """Lifetime progress as a whole percentage."""
        if self.total_pages <= 0:
            return 0
        return round(self.current_page / self.total_pages * 100)


class MonthData(StoreModel):
    """Books for one month slot."""

    books: list[Book] = Field(default_factory=list)
    switches: int = 0  # legacy book-switch counter

    @field_validator("books", mode="before")
    @classmethod
    def clean_books(cls, v: Any) -> list:
        """Turn non-list values into an empty list and junk entries into blank books."""
        if not isinstance(v, list):
            return []
        return [b if isinstance(b, (dict, Book)) else {} for b in v]

    @field_validator("switches", mode="before")
    @classmethod
    def clean_switches(cls, v: Any) -> int:
        if isinstance(v, bool) or not isinstance(v, int):
            return 0
        return v

    @model_validator(mode="after")
    def unique_book_ids(self) -> "MonthData":
        """Regenerate ids that collide within this month's list."""
        seen: set[str] = set()
        for book in self.books:
            while book.id in seen:
                book.id = make_id()
            seen.add(book.id)
        return self

    @property
    def completed_count(self) -> int:
        return sum(1 for b in self.books if b.completed)

    @property
    def total_pages(self) -> int:
        return sum(b.total_pages for b in self.books)

    @property
    def current_pages(self) -> int:
        return sum(b.current_page for b in self.books)


class PlayerData(StoreModel):
    """One challenge participant."""

    id: str = Field(default_factory=make_id)
    name: str = "Player"
    months: dict[str, MonthData] = Field(default_factory=dict)
    reading_dates: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def ensure_id(cls, v: Any) -> str:
        if isinstance(v, str) and v.strip():
            return v
        return make_id()

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v: Any) -> str:
        return coerce_text(v) or "Player"

    @field_validator("months", mode="before")
    @classmethod
    def clean_months(cls, v: Any) -> dict:
        """Keep only the 13 month slots; drop entries that are not objects."""
        if not isinstance(v, dict):
            return {}
        valid_keys = {month_key(m) for m in MONTHS}
        cleaned = {}
        for key, value in v.items():
            key = str(key)
            if key in valid_keys and isinstance(value, (dict, MonthData)):
                cleaned[key] = value
        return cleaned

    @field_validator("reading_dates", mode="before")
    @classmethod
    def clean_reading_dates(cls, v: Any) -> list[str]:
        """Keep valid ISO dates, de-duplicated and sorted."""
        if not isinstance(v, list):
            return []
        dates = set()
        for item in v:
            if not isinstance(item, str):
                continue
            try:
                dates.add(date.fromisoformat(item.strip()).isoformat())
            except ValueError:
                continue
        return sorted(dates)

    @model_validator(mode="after")
    def pad_months(self) -> "PlayerData":
        """Ensure every month slot exists with at least its target book count."""
        for m in MONTHS:
            key = month_key(m)
            month = self.months.get(key)
            if month is None:
                month = MonthData()
                self.months[key] = month
            shortfall = month_target(m) - len(month.books)
            for _ in range(shortfall):
                month.books.append(Book())
        # Stable month ordering for the serialized document
        self.months = {month_key(m): self.months[month_key(m)] for m in MONTHS}
        return self

    def month(self, month: int) -> Optional[MonthData]:
        """Month data for a slot, or None when out of range."""
        return self.months.get(month_key(month))

    def book(self, month: int, index: int) -> Optional[Book]:
        """Book at ``index`` in ``month``, or None when out of range."""
        month_data = self.month(month)
        if month_data is None or index < 0 or index >= len(month_data.books):
            return None
        return month_data.books[index]

    def iter_books(self, months=MONTHS):
        """Yield (month, index, book) for the given month slots."""
        for m in months:
            month_data = self.month(m)
            if month_data is None:
                continue
            for index, book in enumerate(month_data.books):
                yield m, index, book


class ChallengeDB(StoreModel):
    """The whole persisted challenge document."""

    players: list[PlayerData] = Field(default_factory=list)

    @field_validator("players", mode="before")
    @classmethod
    def clean_players(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        return [p for p in v if isinstance(p, (dict, PlayerData))]

    @model_validator(mode="after")
    def unique_player_ids(self) -> "ChallengeDB":
        seen: set[str] = set()
        for player in self.players:
            while player.id in seen:
                player.id = make_id()
            seen.add(player.id)
        return self

    def get_player(self, player_id: str) -> Optional[PlayerData]:
        """Find a player by id."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def to_document(self) -> dict:
        """Serialize to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================================
# Request Schemas
# ============================================================================


class PlayerCreate(BaseModel):
    """Schema for adding a player."""

    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class BookUpdate(StoreModel):
    """Schema for a partial book edit. Unset fields are left unchanged."""

    title: Optional[str] = None
    author: Optional[str] = None
    total_pages: Optional[float] = None
    current_page: Optional[float] = None
    notes: Optional[str] = None
