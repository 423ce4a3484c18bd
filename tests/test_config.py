"""Tests for configuration loading."""

from pathlib import Path

from readoff.config import Config, get_config, reset_config


class TestConfig:
    """Tests for Config.from_env and validation."""

    def test_defaults(self, data_path: Path):
        config = get_config()

        assert config.data_path == data_path
        assert config.kv_key == "read-off:db:v1"
        assert config.target_year == 2026
        assert config.timezone == "Asia/Shanghai"
        assert config.penalty_model == "score"
        assert config.progress_mode == "lifetime"
        assert config.default_players == ["Player 1", "Player 2"]
        assert config.llm_timeout == 30
        assert not config.has_kv_config()
        assert not config.has_openrouter_config()
        assert config.validate() == []

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("READOFF_TARGET_YEAR", "2027")
        monkeypatch.setenv("READOFF_PENALTY_MODEL", "PER_BOOK")
        monkeypatch.setenv("READOFF_DEFAULT_PLAYERS", " Ann, ,Ben ")
        monkeypatch.setenv("KV_REST_API_URL", "https://kv.example.com")
        monkeypatch.setenv("KV_REST_API_TOKEN", "t")

        config = Config.from_env()

        assert config.target_year == 2027
        assert config.penalty_model == "per_book"
        assert config.default_players == ["Ann", "Ben"]
        assert config.has_kv_config()

    def test_kv_needs_both_values(self, monkeypatch):
        monkeypatch.setenv("KV_REST_API_URL", "https://kv.example.com")
        assert not Config.from_env().has_kv_config()

    def test_validate_errors(self, monkeypatch):
        monkeypatch.setenv("READOFF_PENALTY_MODEL", "harsh")
        monkeypatch.setenv("READOFF_PROGRESS_MODE", "weekly")
        monkeypatch.setenv("READOFF_TIMEZONE", "Mars/Olympus")

        errors = Config.from_env().validate()

        assert len(errors) == 3
        assert any("penalty model" in e for e in errors)
        assert any("timezone" in e for e in errors)

    def test_validate_creates_data_dir(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("READOFF_DATA_PATH", str(tmp_path / "nested" / "data.json"))

        assert Config.from_env().validate() == []
        assert (tmp_path / "nested").is_dir()

    def test_global_config_reset(self):
        first = get_config()
        assert get_config() is first

        reset_config()
        assert get_config() is not first
