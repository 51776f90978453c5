"""Entity movement and terrain checks.

A move is validated completely before anything changes. Characters that
step into difficult terrain or a hazard must pass a terrain check first:

- difficult: Dexterity check against ``DEX - 5``
- hazard: Constitution check against ``CON - 7``; failure deals 1d6 damage

A failed terrain check leaves the entity where it was. Monsters and
DM-driven moves never trigger terrain checks; DM-driven moves also
ignore walls, doors and turn order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from blackhack_vtt.core.config import GameSettings
from blackhack_vtt.core.constants import (
    DIFFICULT_TERRAIN_PENALTY,
    HAZARD_DAMAGE_DIE,
    HAZARD_TERRAIN_PENALTY,
)
from blackhack_vtt.core.logging import get_logger
from blackhack_vtt.engine.dice import DiceRoller
from blackhack_vtt.engine.effects import damage_entity
from blackhack_vtt.engine.geometry import terrain_at, validate_move
from blackhack_vtt.engine.turn_manager import mark_action, require_able, require_turn
from blackhack_vtt.models.entities import GridPosition
from blackhack_vtt.models.enums import Attribute, EntityKind, LogCategory, TerrainType
from blackhack_vtt.models.game_state import GameState


logger = get_logger(__name__)


@dataclass(frozen=True)
class TerrainCheck:
    """Outcome of a terrain check.

    Attributes:
        terrain: Terrain that was checked.
        success: Whether the entity got through.
        attribute: Attribute tested, None for normal terrain.
        roll: d20 face, None for normal terrain.
        difficulty: Value the roll had to meet, None for normal terrain.
        damage: Hazard damage suffered on failure.
    """

    terrain: TerrainType
    success: bool
    attribute: Attribute | None = None
    roll: int | None = None
    difficulty: int | None = None
    damage: int = 0


@dataclass(frozen=True)
class MoveOutcome:
    """Result of a movement intent.

    Attributes:
        state: Game state after the intent.
        moved: Whether the entity changed position.
        terrain_check: Terrain check performed on entry, if any.
    """

    state: GameState
    moved: bool
    terrain_check: TerrainCheck | None = None


def check_terrain(
    state: GameState,
    entity_id: str,
    terrain: TerrainType,
    dice: DiceRoller,
    settings: GameSettings,
    *,
    description: str = "",
    now: datetime | None = None,
) -> tuple[GameState, TerrainCheck]:
    """Roll the check needed to cross a terrain type.

    Args:
        state: Current game state.
        entity_id: Entity crossing the terrain.
        terrain: Terrain being crossed.
        dice: Source of randomness.
        settings: Engine settings.
        description: Flavor text of the map element for the log.
        now: Current time.

    Returns:
        Tuple of (new state, check outcome). Hazard damage is already applied.

    Raises:
        EntityNotFoundError: If the entity does not exist.
    """
    entity = state.get_entity(entity_id)
    if terrain == TerrainType.NORMAL:
        return state, TerrainCheck(terrain=terrain, success=True)

    if terrain == TerrainType.DIFFICULT:
        attribute = Attribute.DEX
        difficulty = entity.attributes.dexterity - DIFFICULT_TERRAIN_PENALTY
    else:
        attribute = Attribute.CON
        difficulty = entity.attributes.constitution - HAZARD_TERRAIN_PENALTY

    check = dice.roll_check(difficulty)
    damage = 0
    if not check.success and terrain == TerrainType.HAZARD:
        damage = dice.roll_die(HAZARD_DAMAGE_DIE)

    label = description or terrain.value
    outcome = "success" if check.success else "failure"
    state = state.with_log(
        f"{entity.name} tries to cross {label} "
        f"({attribute.abbreviation} {check.roll} vs {difficulty}): {outcome}",
        LogCategory.MOVEMENT,
        capacity=settings.log_capacity,
    )
    if damage:
        state = state.with_log(
            f"{entity.name} takes {damage} damage from {label}",
            LogCategory.COMBAT,
            capacity=settings.log_capacity,
        )
        state = damage_entity(state, entity.id, damage, settings, now=now)

    logger.info(
        "Terrain check",
        entity=entity.id,
        terrain=terrain,
        roll=check.roll,
        difficulty=difficulty,
        success=check.success,
        damage=damage,
    )
    return state, TerrainCheck(
        terrain=terrain,
        success=check.success,
        attribute=attribute,
        roll=check.roll,
        difficulty=difficulty,
        damage=damage,
    )


def move_entity(
    state: GameState,
    entity_id: str,
    kind: EntityKind | str,
    target: GridPosition,
    dice: DiceRoller,
    settings: GameSettings,
    *,
    as_dungeon_master: bool = False,
    now: datetime | None = None,
) -> MoveOutcome:
    """Move an entity to a target cell.

    Args:
        state: Current game state.
        entity_id: Entity to move.
        kind: Expected entity kind.
        target: Destination cell.
        dice: Source of randomness for terrain checks.
        settings: Engine settings.
        as_dungeon_master: Bypass turn order, walls and terrain checks.
        now: Current time.

    Returns:
        MoveOutcome with the new state.

    Raises:
        EntityNotFoundError: If the entity does not exist.
        ActorIncapacitatedError: If the entity cannot act.
        NotYourTurnError: If it is another entity's turn.
        ActionAlreadyUsedError: If the entity already moved this turn.
        InvalidMoveError: If the destination is illegal.
    """
    entity = state.get_entity(entity_id, kind)
    require_able(entity)
    if not as_dungeon_master:
        require_turn(state, entity, "move")

    validate_move(
        entity.position,
        target,
        entity,
        state,
        settings,
        ignore_walls=as_dungeon_master,
    ).raise_for_invalid()

    terrain = terrain_at(target, state, entity=entity, as_dungeon_master=as_dungeon_master)
    check: TerrainCheck | None = None
    if terrain != TerrainType.NORMAL:
        descriptions = [m.description for m in state.map_elements_at(target) if m.description]
        state, check = check_terrain(
            state,
            entity.id,
            terrain,
            dice,
            settings,
            description=descriptions[0] if descriptions else "",
            now=now,
        )
        if not check.success:
            return MoveOutcome(state=state, moved=False, terrain_check=check)

    entity = state.get_entity(entity_id)
    origin = entity.position
    state = state.replace_entity(entity.move_to(target))
    state = mark_action(state, entity, "move")
    logger.info("Entity moved", entity=entity.id, origin=str(origin), target=str(target))
    state = state.with_log(
        f"{entity.name} moves to {target}",
        LogCategory.MOVEMENT,
        capacity=settings.log_capacity,
    )
    return MoveOutcome(state=state, moved=True, terrain_check=check)


__all__ = [
    "TerrainCheck",
    "MoveOutcome",
    "check_terrain",
    "move_entity",
]
