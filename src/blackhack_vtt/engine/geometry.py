"""Grid geometry and movement legality.

Distances are Euclidean over cell coordinates, scaled to distance units
(meters) by the configured cell scale. The same metric serves movement
budgets, attack reach, spell range and area-of-effect lookup.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from blackhack_vtt.core.config import GameSettings
from blackhack_vtt.core.constants import DEFAULT_CELL_SCALE
from blackhack_vtt.core.exceptions import InvalidMoveError
from blackhack_vtt.core.logging import get_logger
from blackhack_vtt.models.entities import Entity, GridPosition
from blackhack_vtt.models.enums import EntityKind, TerrainType
from blackhack_vtt.models.game_state import GameState


logger = get_logger(__name__)


@dataclass(frozen=True)
class MoveCheck:
    """Outcome of a movement legality check.

    Attributes:
        valid: Whether the move is legal.
        reason: Machine-readable reason when invalid
            (``bounds``, ``range``, ``blocked``, ``occupied``).
        distance: Distance of the move in distance units.
        message: Human-readable explanation.
    """

    valid: bool
    distance: float
    reason: str | None = None
    message: str = ""

    def raise_for_invalid(self) -> None:
        """Raise InvalidMoveError when the move is not valid."""
        if not self.valid:
            raise InvalidMoveError(self.message, reason=self.reason)


def distance(a: GridPosition, b: GridPosition, *, scale: float = DEFAULT_CELL_SCALE) -> float:
    """Compute the distance between two cells.

    Args:
        a: First cell.
        b: Second cell.
        scale: Distance units per cell.

    Returns:
        ``sqrt(dx^2 + dy^2) * scale``.

    Example:
        >>> distance(GridPosition(x=0, y=0), GridPosition(x=3, y=4))
        7.5
    """
    return math.hypot(b.x - a.x, b.y - a.y) * scale


def entity_speed(entity: Entity, settings: GameSettings) -> float:
    """Get an entity's movement budget.

    Args:
        entity: The moving entity.
        settings: Provides per-kind defaults.

    Returns:
        The entity's own speed, or 6 for monsters / 9 for characters by default.
    """
    if entity.speed is not None:
        return entity.speed
    if entity.kind == EntityKind.MONSTER:
        return settings.monster_speed
    return settings.character_speed


def in_bounds(position: GridPosition, grid_size: int) -> bool:
    """Check that a cell lies within ``[0, grid_size)`` on both axes."""
    return 0 <= position.x < grid_size and 0 <= position.y < grid_size


def validate_move(
    origin: GridPosition,
    target: GridPosition,
    entity: Entity,
    state: GameState,
    settings: GameSettings,
    *,
    ignore_walls: bool = False,
) -> MoveCheck:
    """Check whether ``entity`` may move from ``origin`` to ``target``.

    Checks run in order: grid bounds, speed budget, blocking map elements
    (walls and closed doors, skipped when ``ignore_walls``), and finally
    occupation by another living entity.

    Args:
        origin: Starting cell.
        target: Destination cell.
        entity: The mover.
        state: Current game state.
        settings: Engine settings.
        ignore_walls: Let the mover pass through walls and doors.

    Returns:
        MoveCheck describing the outcome.
    """
    travelled = distance(origin, target, scale=settings.cell_scale)

    if not in_bounds(target, state.grid_size):
        return MoveCheck(
            valid=False,
            distance=travelled,
            reason="bounds",
            message=f"{target} is outside the map",
        )

    speed = entity_speed(entity, settings)
    if travelled > speed:
        return MoveCheck(
            valid=False,
            distance=travelled,
            reason="range",
            message=f"{entity.name} can move {speed:g}m, not {travelled:.1f}m",
        )

    if not ignore_walls and any(m.blocks_movement for m in state.map_elements_at(target)):
        return MoveCheck(
            valid=False,
            distance=travelled,
            reason="blocked",
            message=f"{target} is blocked",
        )

    occupant = state.entity_at(target, exclude_id=entity.id)
    if occupant is not None:
        return MoveCheck(
            valid=False,
            distance=travelled,
            reason="occupied",
            message=f"{target} is occupied by {occupant.name}",
        )

    return MoveCheck(valid=True, distance=travelled)


def is_valid_move(
    origin: GridPosition,
    target: GridPosition,
    entity: Entity,
    state: GameState,
    settings: GameSettings,
    *,
    ignore_walls: bool = False,
) -> bool:
    """Boolean form of :func:`validate_move`."""
    return validate_move(
        origin, target, entity, state, settings, ignore_walls=ignore_walls
    ).valid


def terrain_at(
    position: GridPosition,
    state: GameState,
    *,
    entity: Entity | None = None,
    as_dungeon_master: bool = False,
) -> TerrainType:
    """Classify a cell for the terrain check.

    Monsters and DM-driven movement always see normal terrain. Otherwise
    a hazard anywhere on the cell wins over difficult terrain.

    Args:
        position: Cell to classify.
        state: Current game state.
        entity: The entity entering the cell, if any.
        as_dungeon_master: Whether the DM is moving the entity.

    Returns:
        The cell's terrain type.
    """
    if as_dungeon_master or (entity is not None and entity.kind == EntityKind.MONSTER):
        return TerrainType.NORMAL
    kinds = {m.terrain for m in state.map_elements_at(position)}
    if TerrainType.HAZARD in kinds:
        return TerrainType.HAZARD
    if TerrainType.DIFFICULT in kinds:
        return TerrainType.DIFFICULT
    return TerrainType.NORMAL


def entities_within(
    center: GridPosition,
    radius: float,
    state: GameState,
    *,
    scale: float = DEFAULT_CELL_SCALE,
    living_only: bool = True,
) -> list[Entity]:
    """Find every entity within ``radius`` of a cell.

    Args:
        center: Centre cell.
        radius: Radius in distance units (inclusive).
        state: Current game state.
        scale: Distance units per cell.
        living_only: Skip entities at 0 HP.

    Returns:
        Matching entities in state order.
    """
    found = [
        entity
        for entity in state.entities
        if (entity.is_alive or not living_only)
        and distance(center, entity.position, scale=scale) <= radius
    ]
    logger.debug("Area lookup", center=str(center), radius=radius, found=len(found))
    return found


__all__ = [
    "MoveCheck",
    "distance",
    "entity_speed",
    "in_bounds",
    "validate_move",
    "is_valid_move",
    "terrain_at",
    "entities_within",
]
