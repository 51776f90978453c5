"""Rules constants for the Black Hack virtual tabletop engine.

This module defines the fixed numbers of the ruleset: grid geometry,
movement budgets, attack reach, spell range bands, and the spell slot
progression tables used when a caster rests.
"""

from __future__ import annotations

# =============================================================================
# Grid & Movement
# =============================================================================

DEFAULT_GRID_SIZE = 30
"""Number of cells along each edge of the square battle map."""

DEFAULT_CELL_SCALE = 1.5
"""Meters covered by one grid cell."""

DEFAULT_CHARACTER_SPEED = 9.0
"""Movement budget (meters per turn) for characters without their own speed."""

DEFAULT_MONSTER_SPEED = 6.0
"""Movement budget (meters per turn) for monsters without their own speed."""

# =============================================================================
# Attacks
# =============================================================================

MELEE_RANGE = 1.5
"""Maximum melee reach; a ranged attack inside this distance has disadvantage."""

RANGED_RANGE = 18.0
"""Maximum reach of a ranged attack."""

DEFAULT_DAMAGE_DIE = 6
"""Damage die for entities without a class-specific die."""

CRITICAL_DAMAGE_MULTIPLIER = 2
"""Damage multiplier when the to-hit die shows a natural 1."""

# =============================================================================
# Terrain Checks
# =============================================================================

DIFFICULT_TERRAIN_PENALTY = 5
"""Subtracted from Dexterity for the difficult terrain check."""

HAZARD_TERRAIN_PENALTY = 7
"""Subtracted from Constitution for the hazard terrain check."""

HAZARD_DAMAGE_DIE = 6
"""Die rolled for damage when a hazard check fails."""

# =============================================================================
# Spell Ranges (meters)
# =============================================================================

RANGE_SELF = 0.0
RANGE_IMMEDIATE = 1.5
RANGE_CLOSE = 18.0
RANGE_FAR = 36.0
RANGE_DISTANT = 72.0

MAX_SPELL_LEVEL = 7
"""Highest spell level a slot table tracks."""

# =============================================================================
# Spell Slot Progression
# =============================================================================

# Row index is class level - 1, column index is spell level - 1.
CLERIC_SPELL_SLOTS: tuple[tuple[int, ...], ...] = (
    (0, 0, 0, 0, 0, 0, 0),
    (1, 0, 0, 0, 0, 0, 0),
    (2, 1, 0, 0, 0, 0, 0),
    (2, 2, 0, 0, 0, 0, 0),
    (2, 2, 1, 0, 0, 0, 0),
    (2, 2, 2, 0, 0, 0, 0),
    (2, 2, 2, 1, 0, 0, 0),
    (2, 2, 2, 2, 1, 0, 0),
    (3, 3, 2, 2, 2, 1, 0),
    (3, 3, 3, 2, 2, 2, 1),
)

MAGE_SPELL_SLOTS: tuple[tuple[int, ...], ...] = (
    (1, 0, 0, 0, 0, 0, 0),
    (2, 0, 0, 0, 0, 0, 0),
    (3, 1, 0, 0, 0, 0, 0),
    (3, 2, 0, 0, 0, 0, 0),
    (4, 2, 1, 0, 0, 0, 0),
    (4, 3, 2, 0, 0, 0, 0),
    (4, 3, 2, 1, 0, 0, 0),
    (4, 3, 3, 2, 1, 0, 0),
    (4, 3, 3, 2, 2, 1, 0),
    (4, 3, 3, 2, 2, 2, 1),
)

# =============================================================================
# Game Log
# =============================================================================

DEFAULT_LOG_CAPACITY = 50
"""Number of game log entries kept before the oldest are dropped."""


__all__ = [
    # Grid & Movement
    "DEFAULT_GRID_SIZE",
    "DEFAULT_CELL_SCALE",
    "DEFAULT_CHARACTER_SPEED",
    "DEFAULT_MONSTER_SPEED",
    # Attacks
    "MELEE_RANGE",
    "RANGED_RANGE",
    "DEFAULT_DAMAGE_DIE",
    "CRITICAL_DAMAGE_MULTIPLIER",
    # Terrain
    "DIFFICULT_TERRAIN_PENALTY",
    "HAZARD_TERRAIN_PENALTY",
    "HAZARD_DAMAGE_DIE",
    # Spells
    "RANGE_SELF",
    "RANGE_IMMEDIATE",
    "RANGE_CLOSE",
    "RANGE_FAR",
    "RANGE_DISTANT",
    "MAX_SPELL_LEVEL",
    "CLERIC_SPELL_SLOTS",
    "MAGE_SPELL_SLOTS",
    # Game Log
    "DEFAULT_LOG_CAPACITY",
]
