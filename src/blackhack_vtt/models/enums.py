"""Enumeration types for the Black Hack virtual tabletop engine.

This module defines the enumeration types used throughout the engine:
attributes, character classes, entity kinds, effect and duration kinds,
status conditions, map elements, log categories, and spell targeting.
"""

from __future__ import annotations

from enum import StrEnum


class Attribute(StrEnum):
    """The six attributes every entity carries.

    Attributes are roll-low targets: a d20 roll equal to or under the
    score succeeds.
    """

    STR = "strength"
    DEX = "dexterity"
    CON = "constitution"
    INT = "intelligence"
    WIS = "wisdom"
    CHA = "charisma"

    @property
    def full_name(self) -> str:
        """Get the full name of the attribute.

        Returns:
            Full attribute name (e.g., 'Strength' for STR).
        """
        return self.value.capitalize()

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation.

        Returns:
            Three-letter abbreviation (e.g., 'STR').
        """
        return self.name


class EntityKind(StrEnum):
    """Discriminator for the two entity variants."""

    CHARACTER = "character"
    MONSTER = "monster"


class CharacterClass(StrEnum):
    """Character classes of the ruleset."""

    WARRIOR = "warrior"
    CLERIC = "cleric"
    THIEF = "thief"
    SORCERER = "sorcerer"

    @property
    def damage_die(self) -> int:
        """Get the class damage die.

        Returns:
            Number of sides of the die rolled on a successful attack.
        """
        return _CLASS_DAMAGE_DICE[self]

    @property
    def spell_school(self) -> SpellSchool | None:
        """Get the school of magic the class draws on.

        Returns:
            The class's spell school, or None for non-casters.
        """
        return _CLASS_SCHOOLS.get(self)

    @property
    def uses_spellbook(self) -> bool:
        """Check if the class must memorize spells from a spellbook.

        Returns:
            True for book casters.
        """
        return self is CharacterClass.SORCERER


class SpellSchool(StrEnum):
    """Sources of magic, each tied to a casting attribute."""

    ARCANE = "arcane"
    DIVINE = "divine"

    @property
    def casting_attribute(self) -> Attribute:
        """Get the attribute tested when casting.

        Returns:
            INT for arcane magic, WIS for divine magic.
        """
        return Attribute.INT if self is SpellSchool.ARCANE else Attribute.WIS


_CLASS_DAMAGE_DICE: dict[CharacterClass, int] = {
    CharacterClass.WARRIOR: 8,
    CharacterClass.CLERIC: 6,
    CharacterClass.THIEF: 6,
    CharacterClass.SORCERER: 4,
}

_CLASS_SCHOOLS: dict[CharacterClass, SpellSchool] = {
    CharacterClass.CLERIC: SpellSchool.DIVINE,
    CharacterClass.SORCERER: SpellSchool.ARCANE,
}


class EffectKind(StrEnum):
    """What an effect does to the entity carrying it."""

    DAMAGE = "damage"
    HEALING = "healing"
    BUFF = "buff"
    DEBUFF = "debuff"
    CONTROL = "control"

    @property
    def is_instantaneous(self) -> bool:
        """Check if the effect changes HP rather than a reversible modifier.

        Returns:
            True for damage and healing.
        """
        return self in (EffectKind.DAMAGE, EffectKind.HEALING)


class DurationType(StrEnum):
    """How an effect's lifetime is measured."""

    TURNS = "turns"
    ROUNDS = "rounds"
    MINUTES = "minutes"
    HOURS = "hours"
    CONCENTRATION = "concentration"
    PERMANENT = "permanent"


class TickBoundary(StrEnum):
    """Points in time at which effect durations are evaluated."""

    TURN_END = "turn_end"
    ROUND_END = "round_end"
    CLOCK = "clock"


class Condition(StrEnum):
    """Status conditions an entity can suffer."""

    PARALYZED = "paralyzed"
    STUNNED = "stunned"
    SLEEPING = "sleeping"
    BLINDED = "blinded"
    FRIGHTENED = "frightened"
    POISONED = "poisoned"
    BLESSED = "blessed"
    INVISIBLE = "invisible"

    @property
    def prevents_action(self) -> bool:
        """Check if the condition stops the entity from moving or acting.

        Returns:
            True for paralyzed, stunned and sleeping.
        """
        return self in (Condition.PARALYZED, Condition.STUNNED, Condition.SLEEPING)


class MapElementType(StrEnum):
    """Static map features that influence movement."""

    WALL = "wall"
    DOOR = "door"
    DIFFICULT = "difficult"
    HAZARD = "hazard"


class TerrainType(StrEnum):
    """Classification of a cell for the terrain check."""

    NORMAL = "normal"
    DIFFICULT = "difficult"
    HAZARD = "hazard"


class AttackMode(StrEnum):
    """Weapon attack modes."""

    MELEE = "melee"
    RANGED = "ranged"

    @property
    def attribute(self) -> Attribute:
        """Get the attribute tested by the to-hit roll.

        Returns:
            STR for melee, DEX for ranged.
        """
        return Attribute.STR if self is AttackMode.MELEE else Attribute.DEX


class TargetType(StrEnum):
    """What a spell may be aimed at."""

    SINGLE = "single"
    AREA = "area"
    SELF = "self"
    ALLY = "ally"
    ALL_ALLIES = "all_allies"
    ALL_ENEMIES = "all_enemies"

    @property
    def needs_explicit_target(self) -> bool:
        """Check if the caster must pick an entity or point.

        Returns:
            True for single, ally and area spells.
        """
        return self in (TargetType.SINGLE, TargetType.ALLY, TargetType.AREA)


class RollType(StrEnum):
    """Types of d20 checks.

    In a roll-low system advantage keeps the lower die and
    disadvantage keeps the higher die.
    """

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


class LogCategory(StrEnum):
    """Categories of player-facing game log entries."""

    COMBAT = "combat"
    MOVEMENT = "movement"
    MAGIC = "magic"
    TURN = "turn"
    INITIATIVE = "initiative"
    ERROR = "error"
    SELECTION = "selection"
    INFO = "info"


__all__ = [
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
]
