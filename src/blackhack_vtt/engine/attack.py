"""Weapon attack resolution.

To hit, the attacker rolls a d20 under Strength (melee) or Dexterity
(ranged). A ranged attack against a target inside melee reach rolls two
d20 and keeps the higher one. On a hit the attacker rolls its damage die
(class die for characters, the chosen attack's formula for monsters);
a natural 1 on the to-hit die doubles the damage. A monster attack that
inflicts a condition attaches it to a target that survives the hit.

A miss changes nothing but the log, so the attacker keeps its action.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from blackhack_vtt.core.config import GameSettings
from blackhack_vtt.core.constants import CRITICAL_DAMAGE_MULTIPLIER
from blackhack_vtt.core.exceptions import (
    InsufficientResourcesError,
    InvalidTargetError,
    OutOfRangeError,
)
from blackhack_vtt.core.logging import get_logger
from blackhack_vtt.engine.dice import CheckResult, DiceRoller
from blackhack_vtt.engine.effects import attach_effect_to, damage_entity
from blackhack_vtt.engine.geometry import distance
from blackhack_vtt.engine.turn_manager import mark_action, require_able, require_turn
from blackhack_vtt.models.effects import Effect, TurnsDuration
from blackhack_vtt.models.entities import Monster, MonsterAttack
from blackhack_vtt.models.enums import AttackMode, EffectKind, LogCategory, RollType
from blackhack_vtt.models.game_state import GameState


logger = get_logger(__name__)


@dataclass(frozen=True)
class AttackOutcome:
    """Result of an attack.

    Attributes:
        state: Game state after the attack.
        hit: Whether the attack succeeded.
        check: The to-hit roll.
        damage: Damage dealt (0 on a miss).
        critical: Whether the to-hit die showed a natural 1.
        distance: Distance between attacker and target.
        attack_name: Monster attack used, if any.
    """

    state: GameState
    hit: bool
    check: CheckResult
    damage: int = 0
    critical: bool = False
    distance: float = 0.0
    attack_name: str | None = None


def _select_monster_attack(attacker: Monster, attack_name: str | None) -> MonsterAttack | None:
    attack = attacker.get_attack(attack_name)
    if attack_name is not None and attack is None:
        raise InsufficientResourcesError(
            f"{attacker.name} has no attack named {attack_name!r}",
            details={"attack_name": attack_name},
        )
    return attack


def resolve_attack(
    state: GameState,
    attacker_id: str,
    target_id: str,
    mode: AttackMode | str,
    dice: DiceRoller,
    settings: GameSettings,
    *,
    attack_name: str | None = None,
    now: datetime | None = None,
) -> AttackOutcome:
    """Resolve a melee or ranged attack.

    All validation happens before the to-hit roll.

    Args:
        state: Current game state.
        attacker_id: Attacking entity.
        target_id: Target entity.
        mode: Melee or ranged.
        dice: Source of randomness.
        settings: Engine settings (reach, condition duration).
        attack_name: Monster attack to use; defaults to the first one.
        now: Current time.

    Returns:
        AttackOutcome with the new state.

    Raises:
        EntityNotFoundError: If either entity does not exist.
        ActorIncapacitatedError: If the attacker cannot act.
        NotYourTurnError: If it is another entity's turn.
        ActionAlreadyUsedError: If the attacker already acted this turn.
        InvalidTargetError: If the target is the attacker, an ally or already down.
        InsufficientResourcesError: If a named monster attack does not exist.
        OutOfRangeError: If the target is beyond reach.
    """
    mode = AttackMode(mode)
    attacker = state.get_entity(attacker_id)
    require_able(attacker)
    require_turn(state, attacker, "act")

    target = state.get_entity(target_id)
    if target.id == attacker.id:
        raise InvalidTargetError(f"{attacker.name} cannot attack itself", target_id=target.id)
    if target.kind == attacker.kind:
        raise InvalidTargetError(
            f"{attacker.name} cannot attack an ally ({target.name})", target_id=target.id
        )
    if not target.is_alive:
        raise InvalidTargetError(f"{target.name} is already incapacitated", target_id=target.id)

    monster_attack: MonsterAttack | None = None
    if isinstance(attacker, Monster):
        monster_attack = _select_monster_attack(attacker, attack_name)

    gap = distance(attacker.position, target.position, scale=settings.cell_scale)
    reach = settings.melee_range if mode == AttackMode.MELEE else settings.ranged_range
    if gap > reach:
        raise OutOfRangeError(
            f"{target.name} is out of {mode.value} range",
            distance=round(gap, 2),
            max_range=reach,
        )

    roll_type = RollType.NORMAL
    if mode == AttackMode.RANGED and gap <= settings.melee_range:
        roll_type = RollType.DISADVANTAGE

    attribute = mode.attribute
    check = dice.roll_check(attacker.attributes.get(attribute), roll_type=roll_type)
    weapon = monster_attack.name if monster_attack else f"{mode.value} attack"

    logger.info(
        "Attack rolled",
        attacker=attacker.id,
        target=target.id,
        mode=mode,
        dice=check.dice,
        roll=check.roll,
        target_value=check.target,
        success=check.success,
    )

    if not check.success:
        state = state.with_log(
            f"{attacker.name} misses {target.name} with {weapon} "
            f"({attribute.abbreviation} {check.roll} vs {check.target})",
            LogCategory.COMBAT,
            capacity=settings.log_capacity,
        )
        return AttackOutcome(
            state=state,
            hit=False,
            check=check,
            distance=gap,
            attack_name=monster_attack.name if monster_attack else None,
        )

    critical = check.is_natural_one
    if monster_attack is not None:
        damage = dice.roll_formula(monster_attack.damage)
    else:
        damage = dice.roll_die(attacker.damage_die)
    if critical:
        damage *= CRITICAL_DAMAGE_MULTIPLIER

    state = mark_action(state, attacker, "act")
    state = state.with_log(
        f"{attacker.name} hits {target.name} with {weapon} for {damage} damage"
        + (" (critical!)" if critical else ""),
        LogCategory.COMBAT,
        capacity=settings.log_capacity,
    )
    state = damage_entity(state, target.id, damage, settings, now=now)

    if monster_attack is not None and monster_attack.inflicts is not None:
        if state.get_entity(target.id).is_alive:
            inflicted = Effect(
                name=monster_attack.inflicts.value.capitalize(),
                kind=EffectKind.CONTROL,
                condition=monster_attack.inflicts,
                duration=TurnsDuration(remaining=settings.inflicted_condition_turns),
                source=f"{attacker.id}:{monster_attack.name}",
                caster_id=attacker.id,
                applied_at=now or datetime.now(),
            )
            state = attach_effect_to(state, target.id, inflicted, settings, now=now)

    return AttackOutcome(
        state=state,
        hit=True,
        check=check,
        damage=damage,
        critical=critical,
        distance=gap,
        attack_name=monster_attack.name if monster_attack else None,
    )


__all__ = [
    "AttackOutcome",
    "resolve_attack",
]
