"""Pydantic V2 schemas for the Black Hack virtual tabletop.

This module provides the data model the rules engine reads and rewrites:
entities, effects, spells, the map and the combat session. Every model is
frozen; updates return new instances.

Submodules:
    enums: Enumeration types (Attribute, CharacterClass, Condition, etc.)
    effects: Effect instances and their duration variants
    entities: Characters, monsters and their value objects
    spells: Spell rules data and the built-in catalog
    game_state: Map elements, combat session, game log and GameState
    world: The default starting encounter

Example:
    >>> from blackhack_vtt.models import create_sample_world
    >>> state = create_sample_world()
    >>> state.get_entity("M1").name
    'Ghoul'
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from blackhack_vtt.models.enums import (
    AttackMode,
    Attribute,
    CharacterClass,
    Condition,
    DurationType,
    EffectKind,
    EntityKind,
    LogCategory,
    MapElementType,
    RollType,
    SpellSchool,
    TargetType,
    TerrainType,
    TickBoundary,
)

# =============================================================================
# Effects
# =============================================================================
from blackhack_vtt.models.effects import (
    ConcentrationDuration,
    Duration,
    Effect,
    HoursDuration,
    MinutesDuration,
    PermanentDuration,
    RoundsDuration,
    TurnsDuration,
)

# =============================================================================
# Entities
# =============================================================================
from blackhack_vtt.models.entities import (
    AttributeScores,
    Character,
    Entity,
    EntityBase,
    GridPosition,
    Item,
    Monster,
    MonsterAbility,
    MonsterAttack,
    ResourcePool,
    entity_key,
)

# =============================================================================
# Spells
# =============================================================================
from blackhack_vtt.models.spells import (
    SPELL_CATALOG,
    AreaOfEffect,
    Spell,
    full_spell_slots,
    get_spell,
    slot_table_for,
)

# =============================================================================
# Game State
# =============================================================================
from blackhack_vtt.models.game_state import (
    CombatSession,
    GameState,
    InitiativeEntry,
    LogEntry,
    MapElement,
)
from blackhack_vtt.models.world import create_sample_world


__all__ = [
    # Enumerations
    "Attribute",
    "EntityKind",
    "CharacterClass",
    "SpellSchool",
    "EffectKind",
    "DurationType",
    "TickBoundary",
    "Condition",
    "MapElementType",
    "TerrainType",
    "AttackMode",
    "TargetType",
    "RollType",
    "LogCategory",
    # Effects
    "TurnsDuration",
    "RoundsDuration",
    "MinutesDuration",
    "HoursDuration",
    "ConcentrationDuration",
    "PermanentDuration",
    "Duration",
    "Effect",
    # Entities
    "GridPosition",
    "AttributeScores",
    "ResourcePool",
    "Item",
    "MonsterAttack",
    "MonsterAbility",
    "EntityBase",
    "Character",
    "Monster",
    "Entity",
    "entity_key",
    # Spells
    "AreaOfEffect",
    "Spell",
    "SPELL_CATALOG",
    "get_spell",
    "slot_table_for",
    "full_spell_slots",
    # Game State
    "MapElement",
    "InitiativeEntry",
    "CombatSession",
    "LogEntry",
    "GameState",
    "create_sample_world",
]
