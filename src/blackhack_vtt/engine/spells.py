"""Spellcasting, spellbook management and slot recovery.

A cast goes through three phases:

1. Validation (``validate_cast`` and target resolution). Nothing changes
   if any rule fails, including range.
2. The cast check: a d20 rolled under the casting attribute (Intelligence
   for arcane spells, Wisdom for divine ones), optionally penalised by the
   spell level. One slot of the spell's level is spent either way.
3. On success the spell takes effect on every resolved target.

Targeting follows the spell's target type. Allies are entities of the
caster's own kind and enemies the other kind; the caster counts as its
own ally. Area spells centre on a cell (or on an entity's cell) and hit
every living entity within the radius, the caster included.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from blackhack_vtt.core.config import GameSettings
from blackhack_vtt.core.exceptions import (
    GameEngineError,
    InsufficientResourcesError,
    InvalidTargetError,
    OutOfRangeError,
    SpellbookError,
)
from blackhack_vtt.core.logging import get_logger
from blackhack_vtt.engine.dice import CheckResult, DiceRoller
from blackhack_vtt.engine.effects import attach_effect_to, damage_entity, heal_entity
from blackhack_vtt.engine.geometry import distance, entities_within
from blackhack_vtt.engine.turn_manager import mark_action, require_able, require_turn
from blackhack_vtt.models.entities import Character, Entity, GridPosition
from blackhack_vtt.models.enums import EffectKind, LogCategory, TargetType
from blackhack_vtt.models.game_state import GameState
from blackhack_vtt.models.spells import Spell, full_spell_slots, get_spell


logger = get_logger(__name__)

SpellTarget = str | GridPosition | None


@dataclass(frozen=True)
class CastOutcome:
    """Result of a spell cast.

    Attributes:
        state: Game state after the cast.
        spell: The spell cast.
        success: Whether the cast check succeeded.
        check: The cast roll.
        target_ids: Entities the spell was aimed at.
        amounts: Damage or healing dealt per entity id.
        saves: Saving throw result per entity id, for spells that allow one.
    """

    state: GameState
    spell: Spell
    success: bool
    check: CheckResult
    target_ids: list[str] = field(default_factory=list)
    amounts: dict[str, int] = field(default_factory=dict)
    saves: dict[str, bool] = field(default_factory=dict)


# =============================================================================
# Validation
# =============================================================================


def _lookup_spell(spell_id: str) -> Spell:
    spell = get_spell(spell_id)
    if spell is None:
        raise InsufficientResourcesError(
            f"Unknown spell {spell_id!r}",
            details={"spell_id": spell_id},
        )
    return spell


def _knows_spell(caster: Entity, spell: Spell) -> bool:
    if isinstance(caster, Character) and caster.uses_spellbook:
        return spell.id in caster.memorized_spells
    return spell.id in caster.spellbook or spell.id in caster.memorized_spells


def validate_cast(state: GameState, caster_id: str, spell_id: str) -> tuple[Entity, Spell]:
    """Check every caster-side rule for casting a spell.

    Args:
        state: Current game state.
        caster_id: Casting entity.
        spell_id: Spell to cast.

    Returns:
        Tuple of (caster, spell).

    Raises:
        EntityNotFoundError: If the caster does not exist.
        ActorIncapacitatedError: If the caster cannot act.
        NotYourTurnError: If it is another entity's turn.
        ActionAlreadyUsedError: If the caster already acted this turn.
        InsufficientResourcesError: If the caster cannot cast, the spell is
            unknown, too high level, not prepared, or out of slots.
    """
    caster = state.get_entity(caster_id)
    if not caster.spellcaster:
        raise InsufficientResourcesError(f"{caster.name} cannot cast spells")
    require_able(caster)
    require_turn(state, caster, "act")

    spell = _lookup_spell(spell_id)
    if spell.level > caster.level:
        raise InsufficientResourcesError(
            f"{caster.name} (level {caster.level}) cannot cast level {spell.level} spells",
            details={"spell_id": spell.id},
        )
    if caster.slots_for(spell.level) <= 0:
        raise InsufficientResourcesError(
            f"{caster.name} has no level {spell.level} slots left",
            details={"spell_id": spell.id},
        )
    if not _knows_spell(caster, spell):
        verb = (
            "has not memorized"
            if isinstance(caster, Character) and caster.uses_spellbook
            else "does not know"
        )
        raise InsufficientResourcesError(
            f"{caster.name} {verb} {spell.name}",
            details={"spell_id": spell.id},
        )
    return caster, spell


def can_cast_spell(state: GameState, caster_id: str, spell_id: str) -> bool:
    """Boolean form of :func:`validate_cast`; never raises for rule failures."""
    try:
        validate_cast(state, caster_id, spell_id)
    except GameEngineError as exc:
        logger.debug("Cast not possible", caster=caster_id, spell=spell_id, reason=exc.message)
        return False
    return True


def _is_ally(caster: Entity, other: Entity) -> bool:
    return caster.kind == other.kind


def _in_range(caster: Entity, position: GridPosition, spell: Spell, settings: GameSettings) -> bool:
    return distance(caster.position, position, scale=settings.cell_scale) <= spell.range


def get_valid_targets(
    state: GameState,
    caster_id: str,
    spell_id: str,
    settings: GameSettings,
) -> list[Entity]:
    """List the living entities a spell may be aimed at right now.

    Area spells are aimed at a cell, so they have no entity targets.

    Args:
        state: Current game state.
        caster_id: Casting entity.
        spell_id: Spell to aim.
        settings: Engine settings.

    Returns:
        Legal targets within range, in state order. Empty for unknown ids.
    """
    caster = state.find_entity(caster_id)
    spell = get_spell(spell_id)
    if caster is None or spell is None:
        return []

    if spell.target_type == TargetType.SELF:
        return [caster] if caster.is_alive else []
    if spell.target_type == TargetType.AREA:
        return []

    want_allies = spell.target_type in (TargetType.ALLY, TargetType.ALL_ALLIES)
    return [
        entity
        for entity in state.living_entities
        if _is_ally(caster, entity) == want_allies
        and _in_range(caster, entity.position, spell, settings)
    ]


def _check_range(caster: Entity, position: GridPosition, spell: Spell, settings: GameSettings) -> None:
    gap = distance(caster.position, position, scale=settings.cell_scale)
    if gap > spell.range:
        raise OutOfRangeError(
            f"{position} is out of range for {spell.name}",
            distance=round(gap, 2),
            max_range=spell.range,
        )


def _resolve_targets(
    state: GameState,
    caster: Entity,
    spell: Spell,
    target: SpellTarget,
    settings: GameSettings,
) -> list[Entity]:
    """Turn a player's aim into the list of affected entities.

    Raises:
        InvalidTargetError: If the aim does not suit the target type.
        OutOfRangeError: If the target or target point is beyond range.
        EntityNotFoundError: If a target id is unknown.
    """
    target_type = spell.target_type

    if target_type == TargetType.SELF:
        return [caster]

    if target_type == TargetType.AREA:
        if isinstance(target, GridPosition):
            point = target
        elif isinstance(target, str):
            point = state.get_entity(target).position
        else:
            raise InvalidTargetError(f"{spell.name} needs a target point")
        _check_range(caster, point, spell, settings)
        radius = spell.area.radius if spell.area else 0.0
        return entities_within(point, radius, state, scale=settings.cell_scale)

    if target_type in (TargetType.ALL_ALLIES, TargetType.ALL_ENEMIES):
        targets = get_valid_targets(state, caster.id, spell.id, settings)
        if not targets:
            side = "allies" if target_type == TargetType.ALL_ALLIES else "enemies"
            raise InvalidTargetError(f"No {side} within range of {spell.name}")
        return targets

    if not isinstance(target, str):
        raise InvalidTargetError(f"{spell.name} needs a target creature")
    chosen = state.get_entity(target)
    if not chosen.is_alive:
        raise InvalidTargetError(f"{chosen.name} is incapacitated", target_id=chosen.id)
    want_ally = target_type == TargetType.ALLY
    if _is_ally(caster, chosen) != want_ally:
        role = "an ally" if want_ally else "an enemy"
        raise InvalidTargetError(
            f"{spell.name} must target {role}, not {chosen.name}",
            target_id=chosen.id,
        )
    _check_range(caster, chosen.position, spell, settings)
    return [chosen]


# =============================================================================
# Casting
# =============================================================================


def cast_spell(
    state: GameState,
    caster_id: str,
    spell_id: str,
    target: SpellTarget,
    dice: DiceRoller,
    settings: GameSettings,
    *,
    now: datetime | None = None,
) -> CastOutcome:
    """Cast a spell.

    Args:
        state: Current game state.
        caster_id: Casting entity.
        spell_id: Spell to cast.
        target: Entity id for single/ally spells, a cell or entity id for
            area spells, ignored for self and all-allies/all-enemies spells.
        dice: Source of randomness.
        settings: Engine settings.
        now: Current time, stamped on created effects.

    Returns:
        CastOutcome with the new state.

    Raises:
        GameEngineError: Any validation failure, raised before the state changes.
    """
    caster, spell = validate_cast(state, caster_id, spell_id)
    targets = _resolve_targets(state, caster, spell, target, settings)
    target_ids = [t.id for t in targets]

    bonus = spell.level if settings.spell_level_check_modifier else 0
    check = dice.roll_check(caster.attributes.get(spell.casting_attribute), bonus=bonus)

    state = state.replace_entity(caster.spend_slot(spell.level))
    state = mark_action(state, caster, "act")
    logger.info(
        "Spell cast",
        caster=caster.id,
        spell=spell.id,
        roll=check.roll,
        target_value=check.target,
        success=check.success,
        targets=target_ids,
    )

    if not check.success:
        state = state.with_log(
            f"{caster.name} fails to cast {spell.name} "
            f"({spell.casting_attribute.abbreviation} {check.roll} vs {check.target})",
            LogCategory.MAGIC,
            capacity=settings.log_capacity,
        )
        return CastOutcome(state=state, spell=spell, success=False, check=check, target_ids=target_ids)

    state = state.with_log(
        f"{caster.name} casts {spell.name}",
        LogCategory.MAGIC,
        capacity=settings.log_capacity,
    )

    amounts: dict[str, int] = {}
    saves: dict[str, bool] = {}
    level_bonus = caster.level if spell.adds_caster_level else 0

    if spell.effect_kind == EffectKind.DAMAGE and spell.damage:
        rolled = dice.roll_formula(spell.damage, bonus=level_bonus)
        for target_id in target_ids:
            victim = state.get_entity(target_id)
            amount = rolled
            if spell.save_attribute is not None:
                save = dice.roll_check(victim.attributes.get(spell.save_attribute))
                saves[target_id] = save.success
                if save.success:
                    amount = rolled // 2
            amounts[target_id] = amount
            saved = " (saved)" if saves.get(target_id) else ""
            state = state.with_log(
                f"{victim.name} takes {amount} damage from {spell.name}{saved}",
                LogCategory.MAGIC,
                capacity=settings.log_capacity,
            )
            state = damage_entity(state, target_id, amount, settings, now=now)

    elif spell.effect_kind == EffectKind.HEALING and spell.healing:
        rolled = dice.roll_formula(spell.healing, bonus=level_bonus)
        for target_id in target_ids:
            patient = state.get_entity(target_id)
            healed = min(rolled, patient.hp.maximum - patient.hp.current)
            amounts[target_id] = healed
            state = heal_entity(state, target_id, rolled, settings)
            state = state.with_log(
                f"{patient.name} recovers {healed} HP from {spell.name}",
                LogCategory.MAGIC,
                capacity=settings.log_capacity,
            )

    else:
        for target_id in target_ids:
            effect = spell.make_effect(caster.id, now=now)
            state = attach_effect_to(state, target_id, effect, settings, now=now)

    return CastOutcome(
        state=state,
        spell=spell,
        success=True,
        check=check,
        target_ids=target_ids,
        amounts=amounts,
        saves=saves,
    )


# =============================================================================
# Spellbook and Slots
# =============================================================================


def memorize_spell(
    state: GameState,
    character_id: str,
    spell_id: str,
    settings: GameSettings,
) -> GameState:
    """Prepare a spell from the spellbook.

    A character can hold at most as many memorized spells as its level.

    Raises:
        EntityNotFoundError: If the character does not exist.
        SpellbookError: If the spell is not in the spellbook or is
            already memorized.
        InsufficientResourcesError: If the memorization limit is reached.
    """
    character = state.get_entity(character_id)
    spell = _lookup_spell(spell_id)
    if spell.id not in character.spellbook:
        raise SpellbookError(
            f"{spell.name} is not in {character.name}'s spellbook",
            spell_id=spell.id,
        )
    if spell.id in character.memorized_spells:
        raise SpellbookError(
            f"{character.name} has already memorized {spell.name}",
            spell_id=spell.id,
        )
    if len(character.memorized_spells) >= character.level:
        raise InsufficientResourcesError(
            f"{character.name} cannot memorize more than {character.level} spell(s)",
            details={"spell_id": spell.id},
        )

    state = state.replace_entity(
        character.with_memorized(character.memorized_spells | {spell.id})
    )
    logger.info("Spell memorized", character=character.id, spell=spell.id)
    return state.with_log(
        f"{character.name} memorizes {spell.name}",
        LogCategory.MAGIC,
        capacity=settings.log_capacity,
    )


def forget_spell(
    state: GameState,
    character_id: str,
    spell_id: str,
    settings: GameSettings,
) -> GameState:
    """Drop a memorized spell.

    Raises:
        EntityNotFoundError: If the character does not exist.
        SpellbookError: If the spell is not memorized.
    """
    character = state.get_entity(character_id)
    if spell_id not in character.memorized_spells:
        raise SpellbookError(
            f"{character.name} has not memorized {spell_id}",
            spell_id=spell_id,
        )
    state = state.replace_entity(
        character.with_memorized(character.memorized_spells - {spell_id})
    )
    spell = get_spell(spell_id)
    logger.info("Spell forgotten", character=character.id, spell=spell_id)
    return state.with_log(
        f"{character.name} forgets {spell.name if spell else spell_id}",
        LogCategory.MAGIC,
        capacity=settings.log_capacity,
    )


def restore_spell_slots(
    state: GameState,
    character_id: str,
    settings: GameSettings,
) -> GameState:
    """Refill a caster's slots from its class table.

    Raises:
        EntityNotFoundError: If the character does not exist.
        InvalidTargetError: If the entity is not a character of a casting class.
    """
    character = state.get_entity(character_id)
    slots = (
        full_spell_slots(character.character_class, character.level)
        if isinstance(character, Character)
        else None
    )
    if slots is None:
        raise InvalidTargetError(
            f"{character.name} has no spell slots to restore",
            target_id=character.id,
        )
    state = state.replace_entity(character.with_spell_slots(slots))
    logger.info("Spell slots restored", character=character.id, slots=slots)
    return state.with_log(
        f"{character.name}'s spell slots are restored",
        LogCategory.MAGIC,
        capacity=settings.log_capacity,
    )


__all__ = [
    "SpellTarget",
    "CastOutcome",
    "validate_cast",
    "can_cast_spell",
    "get_valid_targets",
    "cast_spell",
    "memorize_spell",
    "forget_spell",
    "restore_spell_slots",
]
