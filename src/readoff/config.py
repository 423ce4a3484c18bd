"""Configuration management for readoff.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

PENALTY_MODELS = ("score", "per_book")
PROGRESS_MODES = ("lifetime", "month")


@dataclass
class Config:
    """Application configuration."""

    # Storage
    data_path: Path
    kv_url: Optional[str]
    kv_token: Optional[str]
    kv_key: str

    # Scoring collaborator
    openrouter_api_key: Optional[str]
    openrouter_model: str
    llm_timeout: int  # seconds

    # Challenge rules
    target_year: int
    timezone: str
    penalty_model: str
    progress_mode: str
    default_players: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        data_path = Path(
            os.environ.get("READOFF_DATA_PATH", str(Path.cwd() / "data.json"))
        ).expanduser()

        players = os.environ.get("READOFF_DEFAULT_PLAYERS", "Player 1,Player 2")

        return cls(
            data_path=data_path,
            kv_url=os.environ.get("KV_REST_API_URL"),
            kv_token=os.environ.get("KV_REST_API_TOKEN"),
            kv_key=os.environ.get("READOFF_KV_KEY", "read-off:db:v1"),
            openrouter_api_key=os.environ.get("OPENROUTER_API_KEY"),
            openrouter_model=os.environ.get(
                "OPENROUTER_MODEL", "google/gemini-2.0-flash-exp:free"
            ),
            llm_timeout=int(os.environ.get("READOFF_LLM_TIMEOUT", "30")),
            target_year=int(os.environ.get("READOFF_TARGET_YEAR", "2026")),
            timezone=os.environ.get("READOFF_TIMEZONE", "Asia/Shanghai"),
            penalty_model=os.environ.get("READOFF_PENALTY_MODEL", "score").lower(),
            progress_mode=os.environ.get("READOFF_PROGRESS_MODE", "lifetime").lower(),
            default_players=[p.strip() for p in players.split(",") if p.strip()],
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.penalty_model not in PENALTY_MODELS:
            errors.append(
                f"Unknown penalty model: {self.penalty_model} "
                f"(expected one of {', '.join(PENALTY_MODELS)})"
            )

        if self.progress_mode not in PROGRESS_MODES:
            errors.append(
                f"Unknown progress mode: {self.progress_mode} "
                f"(expected one of {', '.join(PROGRESS_MODES)})"
            )

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"Unknown timezone: {self.timezone}")

        if not self.has_kv_config() and not self.data_path.parent.exists():
            try:
                self.data_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create data directory: {self.data_path.parent}")

        return errors

    def has_kv_config(self) -> bool:
        """Check if key-value store credentials are present."""
        return bool(self.kv_url and self.kv_token)

    def has_openrouter_config(self) -> bool:
        """Check if the scoring API key is present."""
        return bool(self.openrouter_api_key)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
