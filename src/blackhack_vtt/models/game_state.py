"""Game state tracking for the virtual tabletop.

This module defines the complete, immutable snapshot the engine works on:

- MapElement: static walls, doors and terrain on the grid
- InitiativeEntry / CombatSession: the turn-order state machine's data
- LogEntry: a player-facing game log line
- GameState: entities, map, optional combat session and the game log

Every engine operation takes a GameState and returns a new one. The UI
holds the current snapshot and hands it back with the next intent, so no
global mutable store exists.

Example:
    >>> state = GameState(entities=[hero, ghoul], map_elements=[wall])
    >>> state = state.with_log("Thorgrim enters the crypt", LogCategory.INFO)
    >>> state.get_entity("C1").name
    'Thorgrim'
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from blackhack_vtt.core.constants import DEFAULT_GRID_SIZE, DEFAULT_LOG_CAPACITY
from blackhack_vtt.core.exceptions import EntityNotFoundError
from blackhack_vtt.models.entities import Character, Entity, GridPosition, Monster, entity_key
from blackhack_vtt.models.enums import EntityKind, LogCategory, MapElementType, TerrainType


# =============================================================================
# Map
# =============================================================================


class MapElement(BaseModel):
    """A static feature occupying one grid cell.

    Attributes:
        type: Wall, door, difficult terrain or hazard.
        position: Cell the element occupies.
        is_open: Door state; ignored for other element types.
        description: Text shown when the element is inspected or crossed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: MapElementType = Field(description="Element type")
    position: GridPosition = Field(description="Cell position")
    is_open: bool | None = Field(default=None, description="Door open state")
    description: str = Field(default="", max_length=200, description="Description")

    @property
    def blocks_movement(self) -> bool:
        """Check if the element stops movement into its cell.

        Returns:
            True for walls and closed doors.
        """
        if self.type == MapElementType.WALL:
            return True
        return self.type == MapElementType.DOOR and not self.is_open

    @property
    def terrain(self) -> TerrainType:
        """Terrain classification contributed by this element."""
        if self.type == MapElementType.DIFFICULT:
            return TerrainType.DIFFICULT
        if self.type == MapElementType.HAZARD:
            return TerrainType.HAZARD
        return TerrainType.NORMAL


# =============================================================================
# Combat
# =============================================================================


class InitiativeEntry(BaseModel):
    """An entity's slot in the initiative order.

    The session references the entity by id and kind only; current HP and
    effects are always re-read from the GameState.

    Attributes:
        entity_id: Referenced entity.
        kind: Referenced entity kind.
        name: Name at the time initiative was rolled, for display.
        roll: Natural d20 result.
        modifier: Dexterity modifier added to the roll.
        dexterity: Raw Dexterity, used to break ties.
    """

    model_config = ConfigDict(frozen=True, strict=True, extra="forbid")

    entity_id: str = Field(min_length=1, description="Entity ID")
    kind: EntityKind = Field(description="Entity kind")
    name: str = Field(min_length=1, description="Display name")
    roll: int = Field(ge=1, le=20, description="Natural d20")
    modifier: int = Field(description="Dexterity modifier")
    dexterity: int = Field(description="Raw Dexterity for tiebreaking")

    @property
    def initiative(self) -> int:
        """Total initiative (roll + modifier)."""
        return self.roll + self.modifier

    @property
    def key(self) -> str:
        """Id+kind key of the referenced entity."""
        return entity_key(self.entity_id, self.kind)

    @property
    def sort_key(self) -> tuple[int, int]:
        """Sort key: initiative, then Dexterity (both descending in use)."""
        return (self.initiative, self.dexterity)


class CombatSession(BaseModel):
    """State of an active combat.

    Attributes:
        initiative_order: Entries sorted by initiative, highest first.
        current_turn_index: Index of the acting entry.
        round_number: Current round, starting at 1.
        moved: Keys of entities that moved this turn cycle.
        acted: Keys of entities that attacked or cast this turn cycle.
        started_at: When combat started.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    initiative_order: list[InitiativeEntry] = Field(min_length=1, description="Turn order")
    current_turn_index: int = Field(default=0, ge=0, description="Acting entry index")
    round_number: int = Field(default=1, ge=1, description="Current round")
    moved: frozenset[str] = Field(default_factory=frozenset, description="Moved keys")
    acted: frozenset[str] = Field(default_factory=frozenset, description="Acted keys")
    started_at: datetime = Field(default_factory=datetime.now, description="Start time")

    @model_validator(mode="after")
    def validate_turn_index(self) -> "CombatSession":
        """Ensure the turn index points into the initiative order.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If the index is out of range.
        """
        if self.current_turn_index >= len(self.initiative_order):
            raise ValueError(
                f"current_turn_index {self.current_turn_index} out of range "
                f"for {len(self.initiative_order)} entries"
            )
        return self

    @property
    def current_entry(self) -> InitiativeEntry:
        """The entry whose turn it is."""
        return self.initiative_order[self.current_turn_index]

    def is_current(self, entity_id: str, kind: EntityKind | str) -> bool:
        """Check if the given entity holds the current turn."""
        entry = self.current_entry
        return entry.entity_id == entity_id and entry.kind == EntityKind(kind)

    def has_moved(self, key: str) -> bool:
        return key in self.moved

    def has_acted(self, key: str) -> bool:
        return key in self.acted

    def mark_moved(self, key: str) -> CombatSession:
        """Record a move; marking twice is a no-op.

        Returns:
            New CombatSession, or self when already marked.
        """
        if key in self.moved:
            return self
        return self.model_copy(update={"moved": self.moved | {key}})

    def mark_acted(self, key: str) -> CombatSession:
        """Record an attack or cast; marking twice is a no-op.

        Returns:
            New CombatSession, or self when already marked.
        """
        if key in self.acted:
            return self
        return self.model_copy(update={"acted": self.acted | {key}})

    def advance(self) -> tuple[CombatSession, bool]:
        """Move to the next entry, wrapping around the order.

        On wrap the round number increases and both action sets clear.

        Returns:
            Tuple of (new session, whether the round rolled over).
        """
        next_index = (self.current_turn_index + 1) % len(self.initiative_order)
        if next_index != 0:
            return self.model_copy(update={"current_turn_index": next_index}), False
        return (
            self.model_copy(
                update={
                    "current_turn_index": 0,
                    "round_number": self.round_number + 1,
                    "moved": frozenset(),
                    "acted": frozenset(),
                }
            ),
            True,
        )


# =============================================================================
# Game Log
# =============================================================================


class LogEntry(BaseModel):
    """A line in the player-facing game log."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timestamp: datetime = Field(default_factory=datetime.now, description="When it happened")
    message: str = Field(min_length=1, description="Log text")
    category: LogCategory = Field(default=LogCategory.INFO, description="Log category")


# =============================================================================
# Game State
# =============================================================================


class GameState(BaseModel):
    """Immutable snapshot of the whole table.

    Attributes:
        entities: Characters and monsters on the map.
        map_elements: Walls, doors and terrain.
        grid_size: Cells along each edge; valid coordinates are [0, grid_size).
        combat: Active combat session, or None during free play.
        log: Game log, oldest first.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    entities: list[Entity] = Field(default_factory=list, description="Entities")
    map_elements: list[MapElement] = Field(default_factory=list, description="Map elements")
    grid_size: int = Field(default=DEFAULT_GRID_SIZE, ge=1, description="Grid size")
    combat: CombatSession | None = Field(default=None, description="Combat session")
    log: list[LogEntry] = Field(default_factory=list, description="Game log")

    @field_validator("entities")
    @classmethod
    def validate_unique_ids(cls, value: list[Entity]) -> list[Entity]:
        """Ensure entity ids are unique.

        Raises:
            ValueError: If two entities share an id.
        """
        seen: set[str] = set()
        for entity in value:
            if entity.id in seen:
                raise ValueError(f"Duplicate entity id: {entity.id}")
            seen.add(entity.id)
        return value

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def characters(self) -> list[Character]:
        return [e for e in self.entities if isinstance(e, Character)]

    @property
    def monsters(self) -> list[Monster]:
        return [e for e in self.entities if isinstance(e, Monster)]

    @property
    def living_entities(self) -> list[Entity]:
        return [e for e in self.entities if e.is_alive]

    def find_entity(self, entity_id: str) -> Entity | None:
        """Look up an entity by id, returning None when absent."""
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def get_entity(self, entity_id: str, kind: EntityKind | str | None = None) -> Entity:
        """Look up an entity by id, optionally checking its kind.

        Args:
            entity_id: Entity identifier.
            kind: Expected kind, if the caller knows it.

        Returns:
            The entity.

        Raises:
            EntityNotFoundError: If no entity matches.
        """
        entity = self.find_entity(entity_id)
        if entity is None or (kind is not None and entity.kind != EntityKind(kind)):
            raise EntityNotFoundError(
                f"No {kind or 'entity'} with id {entity_id!r}",
                entity_id=entity_id,
            )
        return entity

    def entity_at(
        self,
        position: GridPosition,
        *,
        exclude_id: str | None = None,
        living_only: bool = True,
    ) -> Entity | None:
        """Find the entity standing on a cell.

        Args:
            position: Cell to inspect.
            exclude_id: Entity to ignore (usually the mover).
            living_only: Ignore entities at 0 HP.

        Returns:
            The occupying entity, or None.
        """
        for entity in self.entities:
            if entity.id == exclude_id or (living_only and not entity.is_alive):
                continue
            if entity.position == position:
                return entity
        return None

    def map_elements_at(self, position: GridPosition) -> list[MapElement]:
        return [m for m in self.map_elements if m.position == position]

    # -------------------------------------------------------------------------
    # Copy-on-write updates
    # -------------------------------------------------------------------------

    def replace_entity(self, entity: Entity) -> GameState:
        """Return a new state with the entity of the same id swapped in.

        Raises:
            EntityNotFoundError: If no entity has that id.
        """
        self.get_entity(entity.id)
        updated = [entity if e.id == entity.id else e for e in self.entities]
        return self.model_copy(update={"entities": updated})

    def replace_entities(self, entities: Iterable[Entity]) -> GameState:
        """Return a new state with several entities swapped in."""
        state = self
        for entity in entities:
            state = state.replace_entity(entity)
        return state

    def with_combat(self, combat: CombatSession | None) -> GameState:
        """Return a new state with the given combat session (or none)."""
        return self.model_copy(update={"combat": combat})

    def with_log(
        self,
        message: str,
        category: LogCategory = LogCategory.INFO,
        *,
        capacity: int = DEFAULT_LOG_CAPACITY,
        timestamp: datetime | None = None,
    ) -> GameState:
        """Return a new state with a log entry appended.

        Only the newest ``capacity`` entries are kept.

        Args:
            message: Log text.
            category: Log category.
            capacity: Maximum number of entries retained.
            timestamp: Entry time; defaults to now.

        Returns:
            New GameState.
        """
        entry = LogEntry(
            timestamp=timestamp or datetime.now(),
            message=message,
            category=category,
        )
        log = [*self.log, entry][-capacity:]
        return self.model_copy(update={"log": log})


__all__ = [
    "MapElement",
    "InitiativeEntry",
    "CombatSession",
    "LogEntry",
    "GameState",
]
