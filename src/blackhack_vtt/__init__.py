"""Black Hack VTT - rules engine for a grid-based virtual tabletop.

The engine tracks characters and monsters on a square grid and resolves
turn-based combat for a roll-low d20 ruleset: initiative, movement with
range and terrain constraints, weapon attacks, and spellcasting with area
effects and timed conditions.

ARCHITECTURE:
- GameState is an immutable snapshot; every engine call returns a new one
- All randomness goes through DiceRoller (d20 library), replaceable in tests
- Rendering and input handling belong to the UI layer, which calls
  TabletopEngine with player intents

Example:
    >>> from blackhack_vtt import bootstrap
    >>> from blackhack_vtt.models import GridPosition
    >>>
    >>> engine, state = bootstrap()
    >>> state = engine.start_combat(state)
    >>> current = state.combat.current_entry
    >>> state = engine.move_entity(state, current.entity_id, current.kind, GridPosition(x=11, y=20))
    >>> print(state.log[-1].message)

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas (entities, effects, spells, game state).
    engine: Dice, geometry, effects, turns, attacks, spells and the facade.
"""

from __future__ import annotations

# Core
from blackhack_vtt.core.config import GameSettings, Settings, get_settings
from blackhack_vtt.core.exceptions import GameEngineError, TabletopError
from blackhack_vtt.core.logging import configure_logging, get_logger

# Models
from blackhack_vtt.models.entities import Character, Entity, GridPosition, Monster
from blackhack_vtt.models.game_state import GameState
from blackhack_vtt.models.world import create_sample_world

# Engine
from blackhack_vtt.engine.dice import DiceRoller, ScriptedDiceRoller
from blackhack_vtt.engine.session import TabletopEngine
from blackhack_vtt.bootstrap import bootstrap


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "TabletopError",
    "GameEngineError",
    "Settings",
    "GameSettings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "Character",
    "Monster",
    "Entity",
    "GridPosition",
    "GameState",
    "create_sample_world",
    # Engine
    "DiceRoller",
    "ScriptedDiceRoller",
    "TabletopEngine",
    "bootstrap",
]
