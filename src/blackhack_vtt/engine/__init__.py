"""Rules engine for the Black Hack virtual tabletop.

Every operation takes a GameState snapshot and returns a new one. The
domain functions raise GameEngineError subclasses on rejected intents;
TabletopEngine wraps them for the UI and reports rejections in the game
log instead.

Submodules:
    dice: Dice rolling (d20 library) and deterministic replay
    geometry: Distance metric and movement legality
    effects: Effect attachment, ticking, expiry and reversal
    turn_manager: Initiative and the combat turn state machine
    movement: Moves and terrain checks
    attack: Melee and ranged attack resolution
    spells: Spellcasting, spellbooks and slot recovery
    session: The TabletopEngine facade

Example:
    >>> from blackhack_vtt.engine import TabletopEngine, ScriptedDiceRoller
    >>> from blackhack_vtt.models import create_sample_world
    >>> engine = TabletopEngine(dice=ScriptedDiceRoller([12, 7, 3]))
    >>> state = engine.start_combat(create_sample_world())
    >>> state.combat.current_entry.name
    'Thorgrim'
"""

from __future__ import annotations

from blackhack_vtt.engine.attack import AttackOutcome, resolve_attack
from blackhack_vtt.engine.dice import (
    CheckResult,
    DiceExpression,
    DiceFormula,
    DiceRoller,
    ScriptedDiceRoller,
    roll,
)
from blackhack_vtt.engine.effects import (
    attach_effect,
    attach_effect_to,
    break_concentration,
    detach_effect,
    expire_effects,
    tick_effects,
)
from blackhack_vtt.engine.geometry import (
    MoveCheck,
    distance,
    entities_within,
    is_valid_move,
    validate_move,
)
from blackhack_vtt.engine.movement import MoveOutcome, TerrainCheck, check_terrain, move_entity
from blackhack_vtt.engine.session import TabletopEngine
from blackhack_vtt.engine.spells import (
    CastOutcome,
    can_cast_spell,
    cast_spell,
    forget_spell,
    get_valid_targets,
    memorize_spell,
    restore_spell_slots,
)
from blackhack_vtt.engine.turn_manager import (
    can_act,
    can_move,
    end_combat,
    next_turn,
    roll_initiative,
    sort_initiative,
    start_combat,
)


__all__ = [
    # Dice
    "DiceExpression",
    "CheckResult",
    "DiceFormula",
    "DiceRoller",
    "ScriptedDiceRoller",
    "roll",
    # Geometry
    "MoveCheck",
    "distance",
    "validate_move",
    "is_valid_move",
    "entities_within",
    # Effects
    "attach_effect",
    "detach_effect",
    "tick_effects",
    "attach_effect_to",
    "break_concentration",
    "expire_effects",
    # Turns
    "roll_initiative",
    "sort_initiative",
    "start_combat",
    "next_turn",
    "end_combat",
    "can_move",
    "can_act",
    # Actions
    "MoveOutcome",
    "TerrainCheck",
    "move_entity",
    "check_terrain",
    "AttackOutcome",
    "resolve_attack",
    "CastOutcome",
    "can_cast_spell",
    "cast_spell",
    "get_valid_targets",
    "memorize_spell",
    "forget_spell",
    "restore_spell_slots",
    # Facade
    "TabletopEngine",
]
