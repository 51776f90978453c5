"""Spell definitions and the built-in spell catalog.

A Spell is static rules data: level, school, how it is targeted, how far
it reaches, and what it does on a successful cast. Damage and healing are
instantaneous; buffs, debuffs and control spells produce an Effect that
the effect engine attaches to each target.

Example:
    >>> from blackhack_vtt.models.spells import get_spell
    >>> fireball = get_spell("fireball")
    >>> fireball.level, fireball.area.radius
    (3, 6.0)
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from blackhack_vtt.core.constants import (
    CLERIC_SPELL_SLOTS,
    MAGE_SPELL_SLOTS,
    MAX_SPELL_LEVEL,
    RANGE_CLOSE,
    RANGE_FAR,
    RANGE_IMMEDIATE,
)
from blackhack_vtt.models.effects import (
    ConcentrationDuration,
    Duration,
    Effect,
    RoundsDuration,
    TurnsDuration,
)
from blackhack_vtt.models.enums import (
    Attribute,
    CharacterClass,
    Condition,
    EffectKind,
    SpellSchool,
    TargetType,
)


class AreaOfEffect(BaseModel):
    """Zone affected by an area spell, centred on the target point."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    shape: Literal["circle"] = "circle"
    radius: float = Field(gt=0, description="Radius in distance units")


class Spell(BaseModel):
    """Rules data for a single spell.

    Attributes:
        id: Catalog identifier.
        name: Display name.
        level: Spell level (1-7), also the slot level consumed.
        school: Arcane or divine; selects the casting attribute.
        target_type: What the spell can be aimed at.
        range: Maximum distance to the target or target point.
        effect_kind: What the spell does on success.
        area: Zone for area spells.
        damage: Damage formula for damage spells.
        healing: Healing formula for healing spells.
        adds_caster_level: Add the caster's level to the rolled amount.
        save_attribute: Attribute targets roll against to halve damage.
        attribute: Attribute changed by buff/debuff spells.
        value: Attribute delta for buff/debuff spells.
        condition: Condition granted by control spells.
        duration: Lifetime of the effect created by buff/debuff/control spells.
        visual_effect: Presentation tag passed through to created effects.
        description: Rules text.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, max_length=64, description="Spell ID")
    name: str = Field(min_length=1, max_length=100, description="Spell name")
    level: int = Field(ge=1, le=MAX_SPELL_LEVEL, description="Spell level")
    school: SpellSchool = Field(description="School of magic")
    target_type: TargetType = Field(description="Targeting mode")
    range: float = Field(ge=0, description="Maximum range")
    effect_kind: EffectKind = Field(description="Effect on success")
    area: AreaOfEffect | None = Field(default=None, description="Area of effect")
    damage: str | None = Field(default=None, description="Damage formula")
    healing: str | None = Field(default=None, description="Healing formula")
    adds_caster_level: bool = Field(default=False, description="Add caster level to roll")
    save_attribute: Attribute | None = Field(default=None, description="Save for half")
    attribute: Attribute | None = Field(default=None, description="Modified attribute")
    value: int = Field(default=0, ge=0, description="Attribute delta")
    condition: Condition | None = Field(default=None, description="Granted condition")
    duration: Duration | None = Field(default=None, description="Effect duration")
    visual_effect: str | None = Field(default=None, description="Presentation tag")
    description: str = Field(default="", max_length=1000, description="Rules text")

    @model_validator(mode="after")
    def validate_payload(self) -> "Spell":
        """Ensure the spell carries the data its targeting and effect need.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If required data for the spell kind is missing.
        """
        if self.target_type == TargetType.AREA and self.area is None:
            raise ValueError("area spells require an area of effect")
        if self.effect_kind == EffectKind.DAMAGE and not self.damage:
            raise ValueError("damage spells require a damage formula")
        if self.effect_kind == EffectKind.HEALING and not self.healing:
            raise ValueError("healing spells require a healing formula")
        if self.effect_kind in (EffectKind.BUFF, EffectKind.DEBUFF):
            if self.attribute is None or self.duration is None:
                raise ValueError(f"{self.effect_kind} spells require attribute and duration")
        if self.effect_kind == EffectKind.CONTROL:
            if self.condition is None or self.duration is None:
                raise ValueError("control spells require condition and duration")
        return self

    @property
    def casting_attribute(self) -> Attribute:
        """Attribute tested by the cast roll."""
        return self.school.casting_attribute

    @property
    def creates_effect(self) -> bool:
        """Check if a successful cast attaches an Effect."""
        return not self.effect_kind.is_instantaneous

    def make_effect(self, caster_id: str, *, now: datetime | None = None) -> Effect:
        """Build the Effect this spell attaches to a target.

        Args:
            caster_id: Entity casting the spell.
            now: Application time; defaults to the current time.

        Returns:
            A fresh Effect instance.

        Raises:
            ValueError: If the spell is instantaneous.
        """
        if not self.creates_effect or self.duration is None:
            raise ValueError(f"Spell {self.id!r} does not create a lasting effect")
        return Effect(
            name=self.name,
            kind=self.effect_kind,
            attribute=self.attribute,
            value=self.value,
            condition=self.condition,
            duration=self.duration,
            source=self.id,
            caster_id=caster_id,
            visual_effect=self.visual_effect,
            applied_at=now or datetime.now(),
        )


# =============================================================================
# Catalog
# =============================================================================


SPELL_CATALOG: dict[str, Spell] = {
    spell.id: spell
    for spell in (
        Spell(
            id="magic_missile",
            name="Magic Missile",
            level=1,
            school=SpellSchool.ARCANE,
            target_type=TargetType.SINGLE,
            range=RANGE_FAR,
            effect_kind=EffectKind.DAMAGE,
            damage="1d4",
            adds_caster_level=True,
            visual_effect="arcane_bolt",
            description="A dart of force strikes one enemy for 1d4 + caster level damage.",
        ),
        Spell(
            id="cure_wounds",
            name="Cure Wounds",
            level=1,
            school=SpellSchool.DIVINE,
            target_type=TargetType.ALLY,
            range=RANGE_IMMEDIATE,
            effect_kind=EffectKind.HEALING,
            healing="1d8",
            adds_caster_level=True,
            visual_effect="healing_glow",
            description="A touch restores 1d8 + caster level hit points to an ally.",
        ),
        Spell(
            id="fireball",
            name="Fireball",
            level=3,
            school=SpellSchool.ARCANE,
            target_type=TargetType.AREA,
            range=RANGE_FAR,
            effect_kind=EffectKind.DAMAGE,
            area=AreaOfEffect(radius=6.0),
            damage="6d6",
            save_attribute=Attribute.DEX,
            visual_effect="explosion",
            description=(
                "An explosion deals 6d6 damage to every creature in the area. "
                "A successful Dexterity save halves the damage."
            ),
        ),
        Spell(
            id="bless",
            name="Bless",
            level=1,
            school=SpellSchool.DIVINE,
            target_type=TargetType.ALLY,
            range=RANGE_CLOSE,
            effect_kind=EffectKind.BUFF,
            attribute=Attribute.WIS,
            value=2,
            duration=TurnsDuration(remaining=3),
            visual_effect="holy_aura",
            description="An ally gains +2 Wisdom for 3 turns.",
        ),
        Spell(
            id="hold_person",
            name="Hold Person",
            level=2,
            school=SpellSchool.ARCANE,
            target_type=TargetType.SINGLE,
            range=RANGE_CLOSE,
            effect_kind=EffectKind.CONTROL,
            condition=Condition.PARALYZED,
            duration=ConcentrationDuration(),
            visual_effect="binding_chains",
            description="An enemy is paralyzed for as long as the caster concentrates.",
        ),
        Spell(
            id="ray_of_enfeeblement",
            name="Ray of Enfeeblement",
            level=2,
            school=SpellSchool.ARCANE,
            target_type=TargetType.SINGLE,
            range=RANGE_CLOSE,
            effect_kind=EffectKind.DEBUFF,
            attribute=Attribute.STR,
            value=2,
            duration=RoundsDuration(remaining=3),
            visual_effect="sickly_ray",
            description="An enemy loses 2 Strength for 3 rounds.",
        ),
        Spell(
            id="prayer",
            name="Prayer",
            level=3,
            school=SpellSchool.DIVINE,
            target_type=TargetType.ALL_ALLIES,
            range=RANGE_CLOSE,
            effect_kind=EffectKind.BUFF,
            attribute=Attribute.CON,
            value=1,
            duration=RoundsDuration(remaining=3),
            visual_effect="holy_aura",
            description="Every ally in range gains +1 Constitution for 3 rounds.",
        ),
    )
}


def get_spell(spell_id: str) -> Spell | None:
    """Look up a spell in the catalog.

    Args:
        spell_id: Catalog identifier.

    Returns:
        The Spell, or None when the id is unknown.
    """
    return SPELL_CATALOG.get(spell_id)


def slot_table_for(character_class: CharacterClass) -> tuple[tuple[int, ...], ...] | None:
    """Get the slot progression table for a class.

    Args:
        character_class: The caster's class.

    Returns:
        Rows indexed by class level - 1, or None for non-casting classes.
    """
    if character_class == CharacterClass.CLERIC:
        return CLERIC_SPELL_SLOTS
    if character_class == CharacterClass.SORCERER:
        return MAGE_SPELL_SLOTS
    return None


def full_spell_slots(character_class: CharacterClass, level: int) -> dict[int, int] | None:
    """Compute the full slot mapping for a class at a level.

    Levels beyond the table use its last row.

    Args:
        character_class: The caster's class.
        level: Character level.

    Returns:
        Mapping of spell level to slot count, or None for non-casters.
    """
    table = slot_table_for(character_class)
    if table is None:
        return None
    row = table[min(max(level, 1), len(table)) - 1]
    return {spell_level: count for spell_level, count in enumerate(row, start=1)}


__all__ = [
    "AreaOfEffect",
    "Spell",
    "SPELL_CATALOG",
    "get_spell",
    "slot_table_for",
    "full_spell_slots",
]
