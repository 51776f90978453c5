"""Configuration management for the Black Hack virtual tabletop engine.

This module provides centralized configuration management using pydantic-settings,
supporting environment variables, .env files, and runtime configuration overrides.

Example:
    >>> from blackhack_vtt.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.game.cell_scale
    1.5

Environment Variables:
    BLACKHACK_VTT_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    BLACKHACK_VTT_JSON_LOGS: Emit JSON logs instead of console output
    BLACKHACK_VTT_GAME_GRID_SIZE: Number of cells along each map edge
    BLACKHACK_VTT_GAME_CELL_SCALE: Distance units per grid cell
    BLACKHACK_VTT_GAME_SPELL_LEVEL_CHECK_MODIFIER: Add spell level to cast rolls
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blackhack_vtt.core.constants import (
    DEFAULT_CELL_SCALE,
    DEFAULT_CHARACTER_SPEED,
    DEFAULT_GRID_SIZE,
    DEFAULT_LOG_CAPACITY,
    DEFAULT_MONSTER_SPEED,
    MELEE_RANGE,
    RANGED_RANGE,
)
from blackhack_vtt.core.exceptions import ConfigurationError


class GameSettings(BaseSettings):
    """Configuration for rules engine behavior.

    Attributes:
        grid_size: Number of cells along each edge of the square map.
        cell_scale: Distance units (meters) covered by one grid cell.
        character_speed: Movement budget for characters without their own speed.
        monster_speed: Movement budget for monsters without their own speed.
        melee_range: Maximum distance for melee attacks.
        ranged_range: Maximum distance for ranged attacks.
        log_capacity: Number of game log entries retained.
        spell_level_check_modifier: Add the spell level to the cast roll.
        effect_stacking: Whether a re-applied effect from the same source
            stacks as a new instance or refreshes the existing one.
        break_concentration_on_incapacitation: Break a caster's concentration
            effects when the caster drops to 0 HP.
        inflicted_condition_turns: Turns a condition inflicted by a monster
            attack lasts.
    """

    model_config = SettingsConfigDict(
        env_prefix="BLACKHACK_VTT_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    grid_size: int = Field(
        default=DEFAULT_GRID_SIZE,
        ge=1,
        le=500,
        description="Cells along each map edge",
    )
    cell_scale: float = Field(
        default=DEFAULT_CELL_SCALE,
        gt=0,
        description="Distance units per grid cell",
    )
    character_speed: float = Field(
        default=DEFAULT_CHARACTER_SPEED,
        gt=0,
        description="Default character movement budget",
    )
    monster_speed: float = Field(
        default=DEFAULT_MONSTER_SPEED,
        gt=0,
        description="Default monster movement budget",
    )
    melee_range: float = Field(
        default=MELEE_RANGE,
        gt=0,
        description="Maximum melee attack distance",
    )
    ranged_range: float = Field(
        default=RANGED_RANGE,
        gt=0,
        description="Maximum ranged attack distance",
    )
    log_capacity: int = Field(
        default=DEFAULT_LOG_CAPACITY,
        ge=1,
        le=10_000,
        description="Game log entries retained",
    )
    spell_level_check_modifier: bool = Field(
        default=False,
        description="Add spell level to the d20 cast roll",
    )
    effect_stacking: Literal["stack", "refresh"] = Field(
        default="stack",
        description="Policy for re-applying an effect from the same source",
    )
    break_concentration_on_incapacitation: bool = Field(
        default=True,
        description="Break concentration when the caster drops to 0 HP",
    )
    inflicted_condition_turns: int = Field(
        default=2,
        ge=1,
        le=100,
        description="Duration of conditions inflicted by monster attacks",
    )

    @model_validator(mode="after")
    def validate_attack_ranges(self) -> "GameSettings":
        """Ensure ranged attacks reach further than melee attacks.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If ranged_range <= melee_range.
        """
        if self.ranged_range <= self.melee_range:
            raise ConfigurationError(
                f"ranged_range ({self.ranged_range}) must be greater than "
                f"melee_range ({self.melee_range})",
                config_key="ranged_range",
            )
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        json_logs: Emit structured JSON logs.
        log_file: Optional file receiving a copy of the logs.
        game: Rules engine settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="BLACKHACK_VTT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="Black Hack Virtual Tabletop",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON logs",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path",
    )

    game: GameSettings = Field(default_factory=GameSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.

    Example:
        >>> settings = get_settings()
        >>> settings.game.grid_size
        30
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    This is primarily useful for testing or when environment variables
    have changed at runtime.
    """
    get_settings.cache_clear()


__all__ = [
    "GameSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
