"""Initiative and turn management for combat encounters.

The combat state machine has two states: Idle (no CombatSession) and
Active. ``start_combat`` rolls initiative and enters Active,
``next_turn`` advances the turn pointer, and ``end_combat`` returns to
Idle. During Active each entity may move once and act (attack or cast)
once per turn; both budgets reset when the round rolls over.

An entity at 0 HP keeps its slot in the initiative order but its turns
are skipped, with a log entry each time.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from blackhack_vtt.core.config import GameSettings
from blackhack_vtt.core.exceptions import (
    ActionAlreadyUsedError,
    ActorIncapacitatedError,
    CombatError,
    NotYourTurnError,
)
from blackhack_vtt.core.logging import get_logger
from blackhack_vtt.engine.dice import DiceRoller
from blackhack_vtt.engine.effects import tick_all, tick_entity
from blackhack_vtt.models.entities import Entity, entity_key
from blackhack_vtt.models.enums import Attribute, EntityKind, LogCategory, TickBoundary
from blackhack_vtt.models.game_state import CombatSession, GameState, InitiativeEntry


logger = get_logger(__name__)

ActionType = Literal["move", "act"]


# =============================================================================
# Initiative
# =============================================================================


def roll_initiative(entity: Entity, dice: DiceRoller) -> InitiativeEntry:
    """Roll initiative for one entity: d20 + Dexterity modifier.

    Args:
        entity: The combatant.
        dice: Source of randomness.

    Returns:
        The InitiativeEntry for the entity.
    """
    entry = InitiativeEntry(
        entity_id=entity.id,
        kind=entity.kind_tag,
        name=entity.name,
        roll=dice.roll_die(20),
        modifier=entity.attributes.modifier(Attribute.DEX),
        dexterity=entity.attributes.dexterity,
    )
    logger.info(
        "Initiative rolled",
        combatant=entity.name,
        roll=entry.roll,
        dex_mod=entry.modifier,
        initiative=entry.initiative,
    )
    return entry


def sort_initiative(entries: list[InitiativeEntry]) -> list[InitiativeEntry]:
    """Order entries by initiative, then Dexterity, both descending.

    The sort is stable, so re-sorting an ordered list leaves it unchanged.
    """
    return sorted(entries, key=lambda e: e.sort_key, reverse=True)


# =============================================================================
# State Machine
# =============================================================================


def start_combat(
    state: GameState,
    dice: DiceRoller,
    settings: GameSettings,
    *,
    participant_ids: list[str] | None = None,
) -> GameState:
    """Roll initiative and enter the Active state.

    Args:
        state: Current game state (must be Idle).
        dice: Source of randomness.
        settings: Engine settings.
        participant_ids: Entities joining the fight; defaults to every
            living entity.

    Returns:
        New GameState with a CombatSession.

    Raises:
        CombatError: If combat is already active or nobody can fight.
        EntityNotFoundError: If a participant id is unknown.
    """
    if state.combat is not None:
        raise CombatError(
            "Combat is already in progress",
            round_number=state.combat.round_number,
        )

    if participant_ids is None:
        participants = state.living_entities
    else:
        participants = [state.get_entity(entity_id) for entity_id in participant_ids]
        participants = [p for p in participants if p.is_alive]
    if not participants:
        raise CombatError("No living entities can take part in combat")

    order = sort_initiative([roll_initiative(entity, dice) for entity in participants])
    session = CombatSession(initiative_order=order)

    state = state.with_combat(session)
    for entry in order:
        sign = "+" if entry.modifier >= 0 else "-"
        state = state.with_log(
            f"{entry.name} rolls initiative {entry.initiative} "
            f"({entry.roll} {sign} {abs(entry.modifier)})",
            LogCategory.INITIATIVE,
            capacity=settings.log_capacity,
        )
    state = state.with_log(
        "Combat begins! Round 1",
        LogCategory.COMBAT,
        capacity=settings.log_capacity,
    )
    logger.info("Combat started", combatants=len(order), first=order[0].name)
    return state.with_log(
        f"{order[0].name}'s turn",
        LogCategory.TURN,
        capacity=settings.log_capacity,
    )


def next_turn(
    state: GameState,
    settings: GameSettings,
    *,
    now: datetime | None = None,
) -> GameState:
    """End the current turn and pass to the next living combatant.

    The entity whose turn ends has its turn-end effects ticked. When the
    pointer wraps to the top of the order, the round number increases,
    the move/act budgets clear and every entity's round effects tick.
    Entries whose entity is at 0 HP are skipped.

    Args:
        state: Current game state (must be Active).
        settings: Engine settings.
        now: Current time for effect expiry.

    Returns:
        New GameState.

    Raises:
        CombatError: If no combat is active, or every combatant is down.
    """
    if state.combat is None:
        raise CombatError("No combat in progress")

    session = state.combat
    for _ in range(len(session.initiative_order)):
        ended = session.current_entry
        if state.find_entity(ended.entity_id) is not None:
            state = tick_entity(state, ended.entity_id, TickBoundary.TURN_END, settings, now=now)

        session, wrapped = session.advance()
        state = state.with_combat(session)
        if wrapped:
            logger.info("Round started", round_number=session.round_number)
            state = state.with_log(
                f"Round {session.round_number} begins",
                LogCategory.TURN,
                capacity=settings.log_capacity,
            )
            state = tick_all(state, TickBoundary.ROUND_END, settings, now=now)

        current = state.find_entity(session.current_entry.entity_id)
        if current is not None and current.is_alive:
            break
        state = state.with_log(
            f"{session.current_entry.name} is incapacitated; turn skipped",
            LogCategory.TURN,
            capacity=settings.log_capacity,
        )
    else:
        raise CombatError("No living combatants", round_number=session.round_number)

    logger.info(
        "Turn advanced",
        combatant=session.current_entry.name,
        round_number=session.round_number,
    )
    return state.with_log(
        f"{session.current_entry.name}'s turn",
        LogCategory.TURN,
        capacity=settings.log_capacity,
    )


def end_combat(state: GameState, settings: GameSettings) -> GameState:
    """Discard the combat session and return to Idle.

    Raises:
        CombatError: If no combat is active.
    """
    if state.combat is None:
        raise CombatError("No combat in progress")
    rounds = state.combat.round_number
    logger.info("Combat ended", rounds=rounds)
    return state.with_combat(None).with_log(
        f"Combat ends after {rounds} round{'s' if rounds != 1 else ''}",
        LogCategory.COMBAT,
        capacity=settings.log_capacity,
    )


# =============================================================================
# Action Budget
# =============================================================================


def can_move(state: GameState, entity_id: str, kind: EntityKind | str) -> bool:
    """Check whether an entity may move now.

    Always True outside combat. In combat, only the current entity may
    move, once per turn.
    """
    session = state.combat
    if session is None:
        return True
    return session.is_current(entity_id, kind) and not session.has_moved(
        entity_key(entity_id, kind)
    )


def can_act(state: GameState, entity_id: str, kind: EntityKind | str) -> bool:
    """Check whether an entity may attack or cast now.

    Always True outside combat. In combat, only the current entity may
    act, once per turn.
    """
    session = state.combat
    if session is None:
        return True
    return session.is_current(entity_id, kind) and not session.has_acted(
        entity_key(entity_id, kind)
    )


def require_able(entity: Entity) -> None:
    """Raise if the entity is down or held by a disabling condition.

    Raises:
        ActorIncapacitatedError: If the entity is at 0 HP, paralyzed,
            stunned or asleep.
    """
    if not entity.is_alive:
        raise ActorIncapacitatedError(f"{entity.name} is incapacitated")
    blocking = sorted(c.value for c in entity.conditions if c.prevents_action)
    if blocking:
        raise ActorIncapacitatedError(
            f"{entity.name} cannot act while {', '.join(blocking)}",
            details={"conditions": blocking},
        )


def require_turn(state: GameState, entity: Entity, action: ActionType) -> None:
    """Raise if ``entity`` may not take ``action`` right now.

    Args:
        state: Current game state.
        entity: The acting entity.
        action: ``'move'`` or ``'act'``.

    Raises:
        NotYourTurnError: If combat is active and it is another entity's turn.
        ActionAlreadyUsedError: If the entity already used that action this turn.
    """
    session = state.combat
    if session is None:
        return
    if not session.is_current(entity.id, entity.kind):
        raise NotYourTurnError(
            f"It is not {entity.name}'s turn",
            combatant_id=entity.id,
            round_number=session.round_number,
        )
    used = session.has_moved(entity.key) if action == "move" else session.has_acted(entity.key)
    if used:
        verb = "moved" if action == "move" else "acted"
        raise ActionAlreadyUsedError(
            f"{entity.name} has already {verb} this turn",
            action=action,
            combatant_id=entity.id,
            round_number=session.round_number,
        )


def mark_action(state: GameState, entity: Entity, action: ActionType) -> GameState:
    """Record that ``entity`` used ``action`` this turn; a no-op outside combat."""
    session = state.combat
    if session is None:
        return state
    if action == "move":
        return state.with_combat(session.mark_moved(entity.key))
    return state.with_combat(session.mark_acted(entity.key))


__all__ = [
    "ActionType",
    "roll_initiative",
    "sort_initiative",
    "start_combat",
    "next_turn",
    "end_combat",
    "can_move",
    "can_act",
    "require_able",
    "require_turn",
    "mark_action",
]
