"""Pytest configuration and shared fixtures.

This module provides fixtures for testing readoff, including a file-backed
storage in a temporary directory, sample documents, and a mock scorer.
"""

from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest

from readoff.actions import ChallengeManager
from readoff.api.openrouter import DifficultyRating
from readoff.config import reset_config
from readoff.db.schemas import Book, ChallengeDB, PlayerData
from readoff.db.storage import FileBackend, Storage, reset_storage


# ============================================================================
# Environment Fixtures
# ============================================================================


ENV_KEYS = (
    "READOFF_DATA_PATH",
    "KV_REST_API_URL",
    "KV_REST_API_TOKEN",
    "OPENROUTER_API_KEY",
    "OPENROUTER_MODEL",
    "READOFF_LLM_TIMEOUT",
    "READOFF_TIMEZONE",
    "READOFF_KV_KEY",
    "READOFF_PENALTY_MODEL",
    "READOFF_PROGRESS_MODE",
    "READOFF_TARGET_YEAR",
    "READOFF_DEFAULT_PLAYERS",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch) -> Generator[Path, None, None]:
    """Point the app at a temp data file with no KV or API credentials."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    data_path = tmp_path / "data.json"
    monkeypatch.setenv("READOFF_DATA_PATH", str(data_path))
    reset_config()
    reset_storage()

    yield data_path

    reset_config()
    reset_storage()


@pytest.fixture
def data_path(isolated_env: Path) -> Path:
    """Path of the temporary JSON document."""
    return isolated_env


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def storage(data_path: Path) -> Storage:
    """File-backed storage with two named players on first run."""
    return Storage(FileBackend(data_path), player_names=["Alice", "Bob"])


@pytest.fixture
def scorer() -> MagicMock:
    """Scorer that always rates 70."""
    mock = MagicMock()
    mock.rate_book.return_value = DifficultyRating(
        score=70,
        intro="A novel.",
        reading_advice="Read slowly.",
        score_explanation="Moderately dense.",
    )
    return mock


@pytest.fixture
def manager(storage: Storage, scorer: MagicMock) -> ChallengeManager:
    """Challenge manager over the temp storage."""
    return ChallengeManager(storage=storage, scorer=scorer)


@pytest.fixture
def players(manager: ChallengeManager) -> tuple[PlayerData, PlayerData]:
    """The two first-run players."""
    db = manager.load()
    return db.players[0], db.players[1]


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_player() -> PlayerData:
    """Player with one scored unfinished and one scored completed book in March."""
    player = PlayerData(id="p1", name="Alice")
    march = player.month(3)
    march.books[0] = Book(
        title="Ulysses", author="James Joyce",
        total_pages=100, current_page=50, ai_score=80,
    )
    march.books[1] = Book(
        title="Dune", author="Frank Herbert",
        total_pages=400, current_page=10, ai_score=60,
    )
    march.books[2] = Book(
        title="Siddhartha", total_pages=150, current_page=150,
        completed=True, ai_score=40,
    )
    return player


@pytest.fixture
def sample_db(sample_player: PlayerData) -> ChallengeDB:
    """Document with the sample player and an empty second player."""
    return ChallengeDB(players=[sample_player, PlayerData(id="p2", name="Bob")])
