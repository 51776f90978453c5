"""Pydantic V2 entity definitions for the virtual tabletop.

This module defines the two entity variants that live on the battle map,
both built on a shared base:

- Character: player-controlled, has a class, may cast from a spellbook.
- Monster: DM-controlled, has named attacks and limited-use abilities.

The variants are combined into a discriminated union (``Entity``) keyed
on the ``kind`` field, so code dispatches on an explicit tag rather than
on id prefixes or field presence.

Entities are frozen. Every update method returns a new instance, leaving
the original untouched for views that are still reading it.

Example:
    >>> from blackhack_vtt.models.entities import Character, GridPosition, ResourcePool
    >>> from blackhack_vtt.models.enums import CharacterClass
    >>> hero = Character(
    ...     id="C1", name="Thorgrim", character_class=CharacterClass.WARRIOR,
    ...     position=GridPosition(x=10, y=20), hp=ResourcePool(current=28, maximum=28),
    ... )
    >>> hurt = hero.apply_damage(30)
    >>> hurt.hp.current, hero.hp.current
    (0, 28)
"""

from __future__ import annotations

from typing import Annotated, Literal, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from blackhack_vtt.core.constants import DEFAULT_DAMAGE_DIE, MAX_SPELL_LEVEL
from blackhack_vtt.models.effects import Effect
from blackhack_vtt.models.enums import Attribute, CharacterClass, Condition, EntityKind


# =============================================================================
# Value Objects
# =============================================================================


class GridPosition(BaseModel):
    """Integer cell coordinate on the battle map."""

    model_config = ConfigDict(frozen=True, strict=True, extra="forbid")

    x: int = Field(description="Column")
    y: int = Field(description="Row")

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


class AttributeScores(BaseModel):
    """The six attribute scores of an entity.

    Scores are not clamped: buffs and debuffs must be exactly reversible,
    so a score may temporarily leave the usual 3-18 band.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    strength: int = Field(default=10, description="Strength score")
    dexterity: int = Field(default=10, description="Dexterity score")
    constitution: int = Field(default=10, description="Constitution score")
    intelligence: int = Field(default=10, description="Intelligence score")
    wisdom: int = Field(default=10, description="Wisdom score")
    charisma: int = Field(default=10, description="Charisma score")

    def get(self, attribute: Attribute) -> int:
        """Get the score for an attribute.

        Args:
            attribute: The attribute to read.

        Returns:
            The current score.
        """
        return getattr(self, attribute.value)

    def modifier(self, attribute: Attribute) -> int:
        """Calculate the attribute modifier, ``floor((score - 10) / 2)``.

        Args:
            attribute: The attribute to read.

        Returns:
            The modifier, rounded toward negative infinity.
        """
        return (self.get(attribute) - 10) // 2

    def with_delta(self, attribute: Attribute, delta: int) -> AttributeScores:
        """Return a copy with one score shifted.

        Args:
            attribute: The attribute to change.
            delta: Amount added to the score (may be negative).

        Returns:
            New AttributeScores.
        """
        return self.model_copy(update={attribute.value: self.get(attribute) + delta})


class ResourcePool(BaseModel):
    """A bounded pool such as hit points or armor points.

    Invariant: ``0 <= current <= maximum``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    current: int = Field(ge=0, description="Current value")
    maximum: int = Field(ge=0, description="Maximum value")

    @model_validator(mode="after")
    def validate_current(self) -> "ResourcePool":
        """Ensure current does not exceed maximum.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If current > maximum.
        """
        if self.current > self.maximum:
            raise ValueError(f"current ({self.current}) exceeds maximum ({self.maximum})")
        return self

    @classmethod
    def full(cls, maximum: int) -> ResourcePool:
        """Create a pool filled to its maximum."""
        return cls(current=maximum, maximum=maximum)

    def reduced(self, amount: int) -> ResourcePool:
        """Return a copy lowered by ``amount``, floored at 0."""
        return self.model_copy(update={"current": max(0, self.current - amount)})

    def restored(self, amount: int) -> ResourcePool:
        """Return a copy raised by ``amount``, capped at maximum."""
        return self.model_copy(update={"current": min(self.maximum, self.current + amount)})


class Item(BaseModel):
    """An inventory item.

    Attributes:
        name: Item name.
        damage_die: Sides of the weapon damage die, if the item is a weapon.
        armor_bonus: Armor points granted, if the item is armor or a shield.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=100, description="Item name")
    damage_die: int | None = Field(default=None, ge=2, description="Weapon damage die")
    armor_bonus: int = Field(default=0, ge=0, description="Armor bonus")


class MonsterAttack(BaseModel):
    """A named attack option of a monster.

    Attributes:
        name: Attack name (e.g., 'Claws').
        damage: Damage formula in ``XdY+Z`` notation.
        inflicts: Condition attached to the target on a hit, if any.
        description: Flavor text.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=100, description="Attack name")
    damage: str = Field(default="1d6", description="Damage formula")
    inflicts: Condition | None = Field(default=None, description="Condition on hit")
    description: str = Field(default="", max_length=500, description="Flavor text")


class MonsterAbility(BaseModel):
    """A limited-use special ability of a monster."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=100, description="Ability name")
    uses_remaining: int = Field(default=1, ge=0, description="Uses left")
    description: str = Field(default="", max_length=500, description="Rules text")


# =============================================================================
# Base Entity
# =============================================================================


class EntityBase(BaseModel):
    """Shared data of every entity on the map.

    Attributes:
        id: Stable unique identifier.
        name: Display name.
        level: Entity level (hit dice for monsters).
        position: Current cell.
        speed: Own movement budget; None falls back to the kind default.
        attributes: Attribute scores.
        hp: Hit points.
        armor: Armor points.
        inventory: Carried items, in order.
        spellcaster: Whether the entity can cast spells.
        spells_remaining: Remaining slots per spell level (1-7).
        memorized_spells: Spells prepared for casting.
        spellbook: Spells known.
        active_effects: Effects currently attached, in application order.
        conditions: Conditions currently afflicting the entity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, max_length=64, description="Unique entity ID")
    name: str = Field(min_length=1, max_length=100, description="Display name")
    level: int = Field(default=1, ge=1, le=20, description="Level")
    position: GridPosition = Field(description="Grid position")
    speed: float | None = Field(default=None, gt=0, description="Movement budget")
    attributes: AttributeScores = Field(default_factory=AttributeScores)
    hp: ResourcePool = Field(description="Hit points")
    armor: ResourcePool = Field(
        default_factory=lambda: ResourcePool(current=0, maximum=0),
        description="Armor points",
    )
    inventory: list[Item] = Field(default_factory=list, description="Inventory")
    spellcaster: bool = Field(default=False, description="Can cast spells")
    spells_remaining: dict[int, int] = Field(
        default_factory=dict,
        description="Remaining slots by spell level",
    )
    memorized_spells: frozenset[str] = Field(default_factory=frozenset)
    spellbook: frozenset[str] = Field(default_factory=frozenset)
    active_effects: list[Effect] = Field(default_factory=list)
    conditions: frozenset[Condition] = Field(default_factory=frozenset)

    @field_validator("spells_remaining")
    @classmethod
    def validate_spell_slots(cls, value: dict[int, int]) -> dict[int, int]:
        """Ensure slot levels are 1-7 and counts are non-negative.

        Args:
            value: Slot mapping to validate.

        Returns:
            The validated mapping.

        Raises:
            ValueError: If a level or count is out of range.
        """
        for spell_level, count in value.items():
            if not 1 <= spell_level <= MAX_SPELL_LEVEL:
                raise ValueError(f"Spell level must be 1-{MAX_SPELL_LEVEL}, got {spell_level}")
            if count < 0:
                raise ValueError(f"Slot count for level {spell_level} cannot be negative")
        return value

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    @property
    def kind_tag(self) -> EntityKind:
        """The entity kind as an enum member."""
        return EntityKind(getattr(self, "kind"))

    @property
    def key(self) -> str:
        """Identifier combining kind and id, used by turn bookkeeping."""
        return entity_key(self.id, self.kind_tag)

    @property
    def is_alive(self) -> bool:
        """Check if the entity still has hit points."""
        return self.hp.current > 0

    @property
    def is_incapacitated(self) -> bool:
        """Check if the entity is at 0 HP."""
        return self.hp.current == 0

    @property
    def can_take_actions(self) -> bool:
        """Check if the entity is alive and free of disabling conditions."""
        return self.is_alive and not any(c.prevents_action for c in self.conditions)

    @property
    def damage_die(self) -> int:
        """Sides of the die rolled when this entity hits with a weapon."""
        return DEFAULT_DAMAGE_DIE

    def slots_for(self, spell_level: int) -> int:
        """Get remaining slots for a spell level.

        Args:
            spell_level: Spell level (1-7).

        Returns:
            Remaining slot count, 0 when the level is absent.
        """
        return self.spells_remaining.get(spell_level, 0)

    def find_effect(self, effect_id: UUID) -> Effect | None:
        """Look up an attached effect by id."""
        for effect in self.active_effects:
            if effect.id == effect_id:
                return effect
        return None

    # -------------------------------------------------------------------------
    # Copy-on-write updates
    # -------------------------------------------------------------------------

    def apply_damage(self, amount: int) -> Self:
        """Return a copy with damage applied, floored at 0 HP.

        Args:
            amount: Damage dealt. Non-positive amounts change nothing.

        Returns:
            New entity with reduced HP.
        """
        if amount <= 0:
            return self
        return self.model_copy(update={"hp": self.hp.reduced(amount)})

    def apply_healing(self, amount: int) -> Self:
        """Return a copy with healing applied, capped at max HP.

        Args:
            amount: HP restored. Non-positive amounts change nothing.

        Returns:
            New entity with increased HP.
        """
        if amount <= 0:
            return self
        return self.model_copy(update={"hp": self.hp.restored(amount)})

    def modify_attribute(self, attribute: Attribute, delta: int) -> Self:
        """Return a copy with one attribute shifted by ``delta``."""
        return self.model_copy(
            update={"attributes": self.attributes.with_delta(attribute, delta)}
        )

    def add_effect(self, effect: Effect) -> Self:
        """Return a copy with ``effect`` appended to the active effects.

        This only records the effect; applying its contribution is the
        effect engine's job.
        """
        return self.model_copy(update={"active_effects": [*self.active_effects, effect]})

    def remove_effect(self, effect_id: UUID) -> Self:
        """Return a copy without the effect with ``effect_id``."""
        remaining = [e for e in self.active_effects if e.id != effect_id]
        return self.model_copy(update={"active_effects": remaining})

    def replace_effect(self, effect: Effect) -> Self:
        """Return a copy where the effect with the same id is swapped for ``effect``."""
        updated = [effect if e.id == effect.id else e for e in self.active_effects]
        return self.model_copy(update={"active_effects": updated})

    def with_conditions(self, conditions: frozenset[Condition]) -> Self:
        """Return a copy with a new condition set."""
        return self.model_copy(update={"conditions": frozenset(conditions)})

    def move_to(self, position: GridPosition) -> Self:
        """Return a copy standing on ``position``."""
        return self.model_copy(update={"position": position})

    def with_spell_slots(self, slots: dict[int, int]) -> Self:
        """Return a copy with a new slot mapping."""
        return self.model_copy(update={"spells_remaining": dict(slots)})

    def spend_slot(self, spell_level: int) -> Self:
        """Return a copy with one slot of ``spell_level`` consumed.

        Raises:
            ValueError: If no slot of that level remains.
        """
        remaining = self.slots_for(spell_level)
        if remaining <= 0:
            raise ValueError(f"No level {spell_level} slots remaining")
        return self.with_spell_slots({**self.spells_remaining, spell_level: remaining - 1})

    def with_memorized(self, spells: frozenset[str]) -> Self:
        """Return a copy with a new memorized spell set."""
        return self.model_copy(update={"memorized_spells": frozenset(spells)})


# =============================================================================
# Variants
# =============================================================================


class Character(EntityBase):
    """A player character.

    Attributes:
        kind: Discriminator, always 'character'.
        character_class: The character's class.
    """

    kind: Literal["character"] = Field(
        default="character",
        description="Entity type discriminator",
    )
    character_class: CharacterClass = Field(description="Character class")

    @property
    def damage_die(self) -> int:
        """Class damage die (Warrior d8, Cleric d6, Thief d6, Sorcerer d4)."""
        return self.character_class.damage_die

    @property
    def uses_spellbook(self) -> bool:
        """Check if the character must memorize spells before casting."""
        return self.character_class.uses_spellbook


class Monster(EntityBase):
    """A DM-controlled creature.

    Attributes:
        kind: Discriminator, always 'monster'.
        attacks: Named attack options, the first being the default.
        abilities: Limited-use special abilities.
    """

    kind: Literal["monster"] = Field(
        default="monster",
        description="Entity type discriminator",
    )
    attacks: list[MonsterAttack] = Field(default_factory=list, description="Attacks")
    abilities: list[MonsterAbility] = Field(default_factory=list, description="Abilities")

    def get_attack(self, name: str | None = None) -> MonsterAttack | None:
        """Find an attack by name, or the default attack.

        Args:
            name: Attack name (case-insensitive). None selects the first attack.

        Returns:
            The matching attack, or None.
        """
        if name is None:
            return self.attacks[0] if self.attacks else None
        for attack in self.attacks:
            if attack.name.lower() == name.lower():
                return attack
        return None


# Discriminated union for any entity
Entity = Annotated[
    Character | Monster,
    Field(discriminator="kind"),
]


def entity_key(entity_id: str, kind: EntityKind | str) -> str:
    """Build the id+kind key used by the turn bookkeeping sets.

    Args:
        entity_id: Entity identifier.
        kind: Entity kind.

    Returns:
        Key of the form ``'<kind>-<id>'``.
    """
    return f"{EntityKind(kind).value}-{entity_id}"


__all__ = [
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
]
