"""Starting world for a new table.

The engine receives its initial state as a plain in-memory structure.
``create_sample_world`` builds the default encounter: two adventurers, a
ghoul and a short stretch of dungeon between them.
"""

from __future__ import annotations

from blackhack_vtt.core.constants import DEFAULT_GRID_SIZE
from blackhack_vtt.models.entities import (
    AttributeScores,
    Character,
    GridPosition,
    Item,
    Monster,
    MonsterAttack,
    ResourcePool,
)
from blackhack_vtt.models.enums import CharacterClass, Condition, MapElementType
from blackhack_vtt.models.game_state import GameState, MapElement


def _cell(x: int, y: int) -> GridPosition:
    return GridPosition(x=x, y=y)


def create_sample_world(grid_size: int = DEFAULT_GRID_SIZE) -> GameState:
    """Build the default encounter.

    Args:
        grid_size: Cells along each map edge.

    Returns:
        A GameState with Thorgrim, Elara, a Ghoul, a wall, a closed door,
        a patch of difficult terrain and a trap.
    """
    thorgrim = Character(
        id="C1",
        name="Thorgrim",
        character_class=CharacterClass.WARRIOR,
        level=1,
        speed=9,
        position=_cell(10, 20),
        attributes=AttributeScores(
            strength=16,
            dexterity=12,
            constitution=14,
            intelligence=8,
            wisdom=10,
            charisma=11,
        ),
        hp=ResourcePool.full(28),
        armor=ResourcePool.full(8),
        inventory=[
            Item(name="Long sword", damage_die=8),
            Item(name="Shield", armor_bonus=2),
        ],
    )
    elara = Character(
        id="C2",
        name="Elara",
        character_class=CharacterClass.SORCERER,
        level=1,
        speed=4,
        position=_cell(12, 21),
        attributes=AttributeScores(
            strength=8,
            dexterity=14,
            constitution=10,
            intelligence=17,
            wisdom=13,
            charisma=12,
        ),
        hp=ResourcePool.full(16),
        armor=ResourcePool.full(2),
        inventory=[
            Item(name="Staff", damage_die=4),
            Item(name="Spellbook"),
        ],
        spellcaster=True,
        spells_remaining={1: 2, 2: 1},
        spellbook=frozenset({"magic_missile", "hold_person", "ray_of_enfeeblement", "fireball"}),
        memorized_spells=frozenset({"magic_missile"}),
    )
    ghoul = Monster(
        id="M1",
        name="Ghoul",
        level=2,
        speed=6,
        position=_cell(15, 22),
        attributes=AttributeScores(
            strength=16,
            dexterity=12,
            constitution=14,
            intelligence=8,
            wisdom=10,
            charisma=11,
        ),
        hp=ResourcePool.full(12),
        armor=ResourcePool.full(1),
        attacks=[
            MonsterAttack(
                name="Claws",
                damage="1d6",
                inflicts=Condition.PARALYZED,
                description="Rotting claws whose touch numbs the flesh.",
            ),
        ],
    )

    return GameState(
        entities=[thorgrim, elara, ghoul],
        map_elements=[
            MapElement(type=MapElementType.WALL, position=_cell(16, 18)),
            MapElement(
                type=MapElementType.DOOR,
                position=_cell(16, 19),
                is_open=False,
                description="Wooden door",
            ),
            MapElement(
                type=MapElementType.DIFFICULT,
                position=_cell(16, 20),
                description="Difficult terrain",
            ),
            MapElement(
                type=MapElementType.HAZARD,
                position=_cell(16, 21),
                description="Trap",
            ),
        ],
        grid_size=grid_size,
    )


__all__ = [
    "create_sample_world",
]
