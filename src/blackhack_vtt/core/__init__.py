"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        TabletopError: Base exception for all application errors.
        GameEngineError: Base for rejected player intents.

    Configuration:
        Settings: Main application settings class.
        GameSettings: Rules engine settings.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from blackhack_vtt.core.config import (
    GameSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from blackhack_vtt.core.exceptions import (
    ActionAlreadyUsedError,
    ActorIncapacitatedError,
    CombatError,
    ConfigurationError,
    DiceRollError,
    EffectError,
    EntityNotFoundError,
    GameEngineError,
    InsufficientResourcesError,
    InvalidMoveError,
    InvalidTargetError,
    NotYourTurnError,
    OutOfRangeError,
    SpellbookError,
    TabletopError,
)
from blackhack_vtt.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "TabletopError",
    # Configuration exceptions
    "ConfigurationError",
    # Game engine exceptions
    "GameEngineError",
    "EntityNotFoundError",
    "CombatError",
    "NotYourTurnError",
    "ActionAlreadyUsedError",
    "ActorIncapacitatedError",
    "InvalidMoveError",
    "InsufficientResourcesError",
    "OutOfRangeError",
    "InvalidTargetError",
    "SpellbookError",
    "EffectError",
    "DiceRollError",
    # Configuration
    "Settings",
    "GameSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
