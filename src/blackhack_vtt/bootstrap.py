"""Process start-up for a table session."""

from __future__ import annotations

from blackhack_vtt.core.config import Settings, get_settings
from blackhack_vtt.core.logging import configure_logging, get_logger
from blackhack_vtt.engine.dice import DiceRoller
from blackhack_vtt.engine.session import TabletopEngine
from blackhack_vtt.models.game_state import GameState
from blackhack_vtt.models.world import create_sample_world


logger = get_logger(__name__)


def bootstrap(
    settings: Settings | None = None,
    *,
    dice: DiceRoller | None = None,
) -> tuple[TabletopEngine, GameState]:
    """Configure logging and build the engine with its starting world.

    Args:
        settings: Application settings; loaded from the environment by default.
        dice: Dice roller for the engine; a fresh DiceRoller by default.

    Returns:
        Tuple of (engine, initial state).

    Example:
        >>> engine, state = bootstrap()
        >>> [e.name for e in state.entities]
        ['Thorgrim', 'Elara', 'Ghoul']
    """
    settings = settings or get_settings()
    configure_logging(
        level="DEBUG" if settings.debug else settings.log_level,
        json_format=settings.json_logs,
        log_file=settings.log_file,
    )
    engine = TabletopEngine(dice=dice, settings=settings.game)
    state = create_sample_world(grid_size=settings.game.grid_size)
    logger.info(
        "Table ready",
        app=settings.app_name,
        version=settings.app_version,
        entities=len(state.entities),
    )
    return engine, state


__all__ = [
    "bootstrap",
]
