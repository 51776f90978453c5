"""Tests for configuration management."""

from __future__ import annotations

import pytest

from blackhack_vtt.core.config import (
    GameSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from blackhack_vtt.core.exceptions import ConfigurationError


class TestGameSettings:
    """Tests for GameSettings configuration."""

    def test_default_values(self) -> None:
        """Test default rules engine settings."""
        settings = GameSettings()

        assert settings.grid_size == 30
        assert settings.cell_scale == 1.5
        assert settings.character_speed == 9
        assert settings.monster_speed == 6
        assert settings.melee_range == 1.5
        assert settings.ranged_range == 18
        assert settings.log_capacity == 50
        assert settings.spell_level_check_modifier is False
        assert settings.effect_stacking == "stack"
        assert settings.break_concentration_on_incapacitation is True

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test game settings read their own environment prefix."""
        monkeypatch.setenv("BLACKHACK_VTT_GAME_GRID_SIZE", "12")
        monkeypatch.setenv("BLACKHACK_VTT_GAME_EFFECT_STACKING", "refresh")

        settings = GameSettings()

        assert settings.grid_size == 12
        assert settings.effect_stacking == "refresh"

    def test_attack_range_validation(self) -> None:
        """Test that ranged_range must exceed melee_range."""
        with pytest.raises(ConfigurationError) as exc_info:
            GameSettings(melee_range=5, ranged_range=3)

        assert "ranged_range" in str(exc_info.value)
        assert exc_info.value.details["config_key"] == "ranged_range"


class TestSettings:
    """Tests for main Settings configuration."""

    def test_default_settings(self) -> None:
        """Test default settings initialization."""
        settings = Settings()

        assert settings.app_name == "Black Hack Virtual Tabletop"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert isinstance(settings.game, GameSettings)

    def test_env_overrides(self, mock_env_vars: dict[str, str]) -> None:
        """Test environment variables override defaults."""
        settings = Settings()

        assert settings.debug is True
        assert settings.log_level == "DEBUG"


class TestSettingsSingleton:
    """Tests for the settings cache."""

    def test_get_settings_is_cached(self) -> None:
        """Test get_settings returns the same instance."""
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test clearing the cache picks up new environment values."""
        first = get_settings()
        monkeypatch.setenv("BLACKHACK_VTT_LOG_LEVEL", "WARNING")
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.log_level == "WARNING"

    def test_invalid_settings_raise_configuration_error(
        self,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test load failures are wrapped in ConfigurationError."""
        monkeypatch.setenv("BLACKHACK_VTT_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError):
            get_settings()
