"""Effect and condition lifecycle.

Each attached Effect moves through ``Active -> Expired -> Removed``. The
engine keeps two concerns apart:

- duration bookkeeping (``next_duration`` / ``is_expired``), which never
  touches the entity, and
- numeric contribution (``apply_contribution`` / ``reverse_contribution``),
  which changes attributes, conditions or HP.

Ticks happen at three boundaries: the end of the owner's turn (turn
durations count down, damage/healing over time is applied), a round
rollover (round durations count down), and a clock check (minute/hour
durations compare elapsed wall time). Concentration effects expire as
soon as their ``broken`` flag is set; permanent effects never expire.

Damage and healing are instantaneous and are never reversed. Buffs,
debuffs and control effects are reversed exactly once, when they leave
the entity.

The state-level helpers at the bottom of the module write player-facing
log entries and flag an entity as fallen exactly once, when its HP first
reaches 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from blackhack_vtt.core.config import GameSettings
from blackhack_vtt.core.exceptions import EffectError
from blackhack_vtt.core.logging import get_logger
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
from blackhack_vtt.models.entities import Entity
from blackhack_vtt.models.enums import EffectKind, LogCategory, TickBoundary
from blackhack_vtt.models.game_state import GameState


logger = get_logger(__name__)


# =============================================================================
# Contribution (pure, entity-level)
# =============================================================================


def apply_contribution(entity: Entity, effect: Effect) -> Entity:
    """Apply an effect's contribution to an entity.

    Args:
        entity: The entity carrying the effect.
        effect: The effect being applied.

    Returns:
        New entity with the contribution applied.
    """
    if effect.kind == EffectKind.BUFF and effect.attribute is not None:
        return entity.modify_attribute(effect.attribute, effect.value)
    if effect.kind == EffectKind.DEBUFF and effect.attribute is not None:
        return entity.modify_attribute(effect.attribute, -effect.value)
    if effect.kind == EffectKind.CONTROL and effect.condition is not None:
        return entity.with_conditions(entity.conditions | {effect.condition})
    if effect.kind == EffectKind.DAMAGE:
        return entity.apply_damage(effect.value)
    if effect.kind == EffectKind.HEALING:
        return entity.apply_healing(effect.value)
    return entity


def reverse_contribution(entity: Entity, effect: Effect) -> Entity:
    """Undo an effect's contribution.

    Damage and healing are left as they are. A condition is only cleared
    when no other attached control effect still grants it.

    Args:
        entity: The entity carrying the effect.
        effect: The effect being removed.

    Returns:
        New entity with the contribution reversed.
    """
    if effect.kind == EffectKind.BUFF and effect.attribute is not None:
        return entity.modify_attribute(effect.attribute, -effect.value)
    if effect.kind == EffectKind.DEBUFF and effect.attribute is not None:
        return entity.modify_attribute(effect.attribute, effect.value)
    if effect.kind == EffectKind.CONTROL and effect.condition is not None:
        still_granted = any(
            other.id != effect.id
            and other.kind == EffectKind.CONTROL
            and other.condition == effect.condition
            for other in entity.active_effects
        )
        if still_granted:
            return entity
        return entity.with_conditions(entity.conditions - {effect.condition})
    return entity


# =============================================================================
# Duration (pure)
# =============================================================================


def next_duration(duration: Duration, boundary: TickBoundary) -> Duration:
    """Compute a duration after one tick.

    Args:
        duration: Current duration.
        boundary: The tick boundary being crossed.

    Returns:
        The updated duration (the same object when unaffected).
    """
    if isinstance(duration, TurnsDuration) and boundary == TickBoundary.TURN_END:
        return TurnsDuration(remaining=max(0, duration.remaining - 1))
    if isinstance(duration, RoundsDuration) and boundary == TickBoundary.ROUND_END:
        return RoundsDuration(remaining=max(0, duration.remaining - 1))
    return duration


def is_expired(effect: Effect, *, now: datetime | None = None) -> bool:
    """Evaluate an effect's expiry predicate.

    Args:
        effect: The effect to test.
        now: Current time for minute/hour durations.

    Returns:
        True when the effect should be removed.
    """
    duration = effect.duration
    if isinstance(duration, (TurnsDuration, RoundsDuration)):
        return duration.remaining <= 0
    if isinstance(duration, (MinutesDuration, HoursDuration)):
        return (now or datetime.now()) - effect.applied_at >= duration.span
    if isinstance(duration, ConcentrationDuration):
        return duration.broken
    if isinstance(duration, PermanentDuration):
        return False
    return True


# =============================================================================
# Attach / Detach / Tick (entity-level)
# =============================================================================


@dataclass(frozen=True)
class TickResult:
    """Outcome of ticking one entity's effects.

    Attributes:
        entity: The entity after the tick.
        expired: Effects removed during the tick.
        periodic: (effect, amount) pairs applied as damage/healing over time.
    """

    entity: Entity
    expired: list[Effect] = field(default_factory=list)
    periodic: list[tuple[Effect, int]] = field(default_factory=list)


def attach_effect(entity: Entity, effect: Effect, *, stacking: str = "stack") -> Entity:
    """Apply an effect's contribution and record it on the entity.

    Args:
        entity: The target entity.
        effect: The new effect instance.
        stacking: ``'stack'`` adds an independent instance; ``'refresh'``
            first detaches any effect with the same source and caster.

    Returns:
        New entity carrying the effect.
    """
    if stacking == "refresh":
        for existing in entity.active_effects:
            if existing.source == effect.source and existing.caster_id == effect.caster_id:
                entity = detach_effect(entity, existing.id)
    return apply_contribution(entity, effect).add_effect(effect)


def detach_effect(entity: Entity, effect_id: UUID) -> Entity:
    """Reverse and remove an attached effect.

    Args:
        entity: The entity carrying the effect.
        effect_id: Effect to remove.

    Returns:
        New entity without the effect.

    Raises:
        EffectError: If the entity does not carry that effect.
    """
    effect = entity.find_effect(effect_id)
    if effect is None:
        raise EffectError(
            f"{entity.name} has no effect {effect_id}",
            effect_id=str(effect_id),
        )
    return reverse_contribution(entity, effect).remove_effect(effect_id)


def tick_effects(
    entity: Entity,
    boundary: TickBoundary,
    *,
    now: datetime | None = None,
) -> TickResult:
    """Advance every effect on an entity across one tick boundary.

    Args:
        entity: The entity whose effects tick.
        boundary: Turn end, round end, or a clock check.
        now: Current time for minute/hour durations.

    Returns:
        TickResult with the updated entity and what changed.
    """
    now = now or datetime.now()
    current = entity
    expired: list[Effect] = []
    periodic: list[tuple[Effect, int]] = []

    for effect in entity.active_effects:
        updated = effect.with_duration(next_duration(effect.duration, boundary))
        if is_expired(updated, now=now):
            current = reverse_contribution(current, updated).remove_effect(updated.id)
            expired.append(updated)
            continue
        current = current.replace_effect(updated)
        if boundary == TickBoundary.TURN_END and updated.kind.is_instantaneous:
            current = apply_contribution(current, updated)
            periodic.append((updated, updated.value))

    return TickResult(entity=current, expired=expired, periodic=periodic)


# =============================================================================
# State-level helpers
# =============================================================================


def commit_entity(
    state: GameState,
    updated: Entity,
    settings: GameSettings,
    *,
    now: datetime | None = None,
) -> GameState:
    """Store an updated entity, flagging a fall to 0 HP exactly once.

    When the entity drops from positive HP to 0 a combat log entry is
    written and, if configured, its concentration effects are broken.

    Args:
        state: Current game state.
        updated: New version of an entity in the state.
        settings: Engine settings.
        now: Current time.

    Returns:
        New GameState.
    """
    previous = state.get_entity(updated.id)
    state = state.replace_entity(updated)
    if previous.is_alive and not updated.is_alive:
        logger.info("Entity incapacitated", entity=updated.id, name=updated.name)
        state = state.with_log(
            f"{updated.name} falls, incapacitated",
            LogCategory.COMBAT,
            capacity=settings.log_capacity,
        )
        if settings.break_concentration_on_incapacitation:
            state = break_concentration(state, updated.id, settings, now=now)
    return state


def damage_entity(
    state: GameState,
    entity_id: str,
    amount: int,
    settings: GameSettings,
    *,
    now: datetime | None = None,
) -> GameState:
    """Apply damage to an entity in the state."""
    target = state.get_entity(entity_id)
    return commit_entity(state, target.apply_damage(amount), settings, now=now)


def heal_entity(
    state: GameState,
    entity_id: str,
    amount: int,
    settings: GameSettings,
) -> GameState:
    """Apply healing to an entity in the state."""
    target = state.get_entity(entity_id)
    return state.replace_entity(target.apply_healing(amount))


def attach_effect_to(
    state: GameState,
    entity_id: str,
    effect: Effect,
    settings: GameSettings,
    *,
    now: datetime | None = None,
) -> GameState:
    """Attach an effect to an entity in the state and log it.

    Args:
        state: Current game state.
        entity_id: Target entity.
        effect: Effect instance to attach.
        settings: Engine settings (stacking policy, log capacity).
        now: Current time.

    Returns:
        New GameState.
    """
    target = state.get_entity(entity_id)
    updated = attach_effect(target, effect, stacking=settings.effect_stacking)
    logger.info(
        "Effect attached",
        entity=entity_id,
        effect=effect.name,
        kind=effect.kind,
        duration=effect.duration.type,
    )
    state = commit_entity(state, updated, settings, now=now)
    return state.with_log(
        f"{target.name} is affected by {effect.name}",
        LogCategory.MAGIC,
        capacity=settings.log_capacity,
    )


def remove_effect_from(
    state: GameState,
    entity_id: str,
    effect_id: UUID,
    settings: GameSettings,
) -> GameState:
    """Detach an effect explicitly, reversing its contribution."""
    target = state.get_entity(entity_id)
    effect = target.find_effect(effect_id)
    updated = detach_effect(target, effect_id)
    state = state.replace_entity(updated)
    return state.with_log(
        f"{effect.name if effect else 'An effect'} is removed from {target.name}",
        LogCategory.MAGIC,
        capacity=settings.log_capacity,
    )


def tick_entity(
    state: GameState,
    entity_id: str,
    boundary: TickBoundary,
    settings: GameSettings,
    *,
    now: datetime | None = None,
) -> GameState:
    """Tick one entity's effects and log expiries and periodic effects.

    Args:
        state: Current game state.
        entity_id: Entity whose effects tick.
        boundary: Tick boundary being crossed.
        settings: Engine settings.
        now: Current time.

    Returns:
        New GameState.
    """
    entity = state.get_entity(entity_id)
    if not entity.active_effects:
        return state
    result = tick_effects(entity, boundary, now=now)
    state = commit_entity(state, result.entity, settings, now=now)

    for effect, amount in result.periodic:
        verb = "takes" if effect.kind == EffectKind.DAMAGE else "recovers"
        noun = "damage" if effect.kind == EffectKind.DAMAGE else "HP"
        state = state.with_log(
            f"{entity.name} {verb} {amount} {noun} from {effect.name}",
            LogCategory.MAGIC,
            capacity=settings.log_capacity,
        )
    for effect in result.expired:
        logger.info("Effect expired", entity=entity_id, effect=effect.name)
        state = state.with_log(
            f"{effect.name} on {entity.name} ends",
            LogCategory.MAGIC,
            capacity=settings.log_capacity,
        )
    return state


def tick_all(
    state: GameState,
    boundary: TickBoundary,
    settings: GameSettings,
    *,
    now: datetime | None = None,
) -> GameState:
    """Tick every entity's effects across a boundary."""
    for entity_id in [e.id for e in state.entities]:
        state = tick_entity(state, entity_id, boundary, settings, now=now)
    return state


def expire_effects(
    state: GameState,
    settings: GameSettings,
    *,
    now: datetime | None = None,
) -> GameState:
    """Remove every effect whose minute/hour span has elapsed.

    Turn and round counters are left alone.
    """
    return tick_all(state, TickBoundary.CLOCK, settings, now=now)


def break_concentration(
    state: GameState,
    caster_id: str,
    settings: GameSettings,
    *,
    now: datetime | None = None,
) -> GameState:
    """Force-expire every concentration effect maintained by a caster.

    The effects may sit on any entity. Each is marked broken and then
    removed through the normal expiry path, reversing its contribution.

    Args:
        state: Current game state.
        caster_id: Entity whose concentration breaks.
        settings: Engine settings.
        now: Current time.

    Returns:
        New GameState.
    """
    caster = state.find_entity(caster_id)
    broken_count = 0
    for entity in list(state.entities):
        targeted = [
            e
            for e in entity.active_effects
            if e.caster_id == caster_id and e.is_concentration
        ]
        if not targeted:
            continue
        marked = entity
        for effect in targeted:
            marked = marked.replace_effect(effect.break_concentration())
        broken_count += len(targeted)
        state = state.replace_entity(marked)
        state = tick_entity(state, entity.id, TickBoundary.CLOCK, settings, now=now)

    if broken_count:
        name = caster.name if caster is not None else caster_id
        logger.info("Concentration broken", caster=caster_id, effects=broken_count)
        state = state.with_log(
            f"{name} loses concentration",
            LogCategory.MAGIC,
            capacity=settings.log_capacity,
        )
    return state


__all__ = [
    "apply_contribution",
    "reverse_contribution",
    "next_duration",
    "is_expired",
    "TickResult",
    "attach_effect",
    "detach_effect",
    "tick_effects",
    "commit_entity",
    "damage_entity",
    "heal_entity",
    "attach_effect_to",
    "remove_effect_from",
    "tick_entity",
    "tick_all",
    "expire_effects",
    "break_concentration",
]
