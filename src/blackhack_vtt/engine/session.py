"""Engine facade for the presentation layer.

TabletopEngine is the single entry point a UI calls with player and DM
intents. Every method takes the current GameState snapshot and returns
the next one; the engine itself holds no game state, only its dice,
settings and update listeners.

Rejected intents never raise out of the facade:

- an illegal move returns the state unchanged, with no log entry
- any other rule violation returns the unchanged state plus an
  ``error`` log entry
- an unexpected exception is logged with its traceback and reported as
  an ``error`` log entry on the unchanged state

The domain functions in the sibling modules raise instead, for callers
that want to handle rejections themselves.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

from blackhack_vtt.core.config import GameSettings, get_settings
from blackhack_vtt.core.exceptions import GameEngineError, InvalidMoveError
from blackhack_vtt.core.logging import bind_context, clear_context, get_logger
from blackhack_vtt.engine import attack as attack_rules
from blackhack_vtt.engine import effects as effect_rules
from blackhack_vtt.engine import movement as movement_rules
from blackhack_vtt.engine import spells as spell_rules
from blackhack_vtt.engine import turn_manager
from blackhack_vtt.engine.dice import DiceRoller
from blackhack_vtt.models.entities import Entity, GridPosition
from blackhack_vtt.models.enums import AttackMode, EntityKind, LogCategory, TerrainType
from blackhack_vtt.models.game_state import GameState


logger = get_logger(__name__)

UpdateHandler = Callable[[GameState], Any]


class TabletopEngine:
    """Boundary between the UI and the rules engine.

    Attributes:
        dice: Source of randomness for every roll.
        settings: Rules engine settings.
    """

    def __init__(
        self,
        *,
        dice: DiceRoller | None = None,
        settings: GameSettings | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            dice: Dice roller; a fresh DiceRoller by default.
            settings: Engine settings; the application settings by default.
        """
        self.dice = dice if dice is not None else DiceRoller()
        self.settings = settings or get_settings().game
        self._handlers: list[UpdateHandler] = []
        logger.info("TabletopEngine initialized", grid_size=self.settings.grid_size)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def on_update(self, handler: UpdateHandler) -> None:
        """Register a callback invoked with the new state after each intent.

        Args:
            handler: Callable receiving the resulting GameState.
        """
        self._handlers.append(handler)

    def _emit(self, state: GameState) -> None:
        for handler in self._handlers:
            try:
                handler(state)
            except Exception:
                logger.exception("Update handler error", handler=repr(handler))

    def _guard(
        self,
        state: GameState,
        operation: str,
        action: Callable[[], GameState],
    ) -> GameState:
        """Run an intent, turning rejections into log entries.

        Args:
            state: State the intent starts from.
            operation: Intent name for diagnostics.
            action: Computes the next state.

        Returns:
            The next state, or ``state`` (possibly with an error entry) if
            the intent was rejected.
        """
        bind_context(intent=operation)
        try:
            result = action()
        except InvalidMoveError as exc:
            logger.debug("Move rejected", reason=exc.details.get("reason"))
            return state
        except GameEngineError as exc:
            logger.warning(
                "Intent rejected",
                error=type(exc).__name__,
                message=exc.message,
            )
            result = state.with_log(
                exc.message,
                LogCategory.ERROR,
                capacity=self.settings.log_capacity,
            )
        except Exception as exc:
            logger.exception("Unexpected engine error")
            result = state.with_log(
                f"Unexpected error during {operation}: {exc}",
                LogCategory.ERROR,
                capacity=self.settings.log_capacity,
            )
        finally:
            clear_context()
        self._emit(result)
        return result

    # -------------------------------------------------------------------------
    # Combat sequencing
    # -------------------------------------------------------------------------

    def start_combat(
        self,
        state: GameState,
        participant_ids: list[str] | None = None,
    ) -> GameState:
        """Roll initiative and begin combat."""
        return self._guard(
            state,
            "start_combat",
            lambda: turn_manager.start_combat(
                state, self.dice, self.settings, participant_ids=participant_ids
            ),
        )

    def next_turn(self, state: GameState, *, now: datetime | None = None) -> GameState:
        """Pass the turn to the next living combatant."""
        return self._guard(
            state,
            "next_turn",
            lambda: turn_manager.next_turn(state, self.settings, now=now),
        )

    def end_combat(self, state: GameState) -> GameState:
        """Leave combat."""
        return self._guard(
            state,
            "end_combat",
            lambda: turn_manager.end_combat(state, self.settings),
        )

    def can_move(self, state: GameState, entity_id: str, kind: EntityKind | str) -> bool:
        """Check whether an entity may move now."""
        return turn_manager.can_move(state, entity_id, kind)

    def can_act(self, state: GameState, entity_id: str, kind: EntityKind | str) -> bool:
        """Check whether an entity may attack or cast now."""
        return turn_manager.can_act(state, entity_id, kind)

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    def move_entity(
        self,
        state: GameState,
        entity_id: str,
        kind: EntityKind | str,
        target: GridPosition,
        *,
        as_dungeon_master: bool = False,
        now: datetime | None = None,
    ) -> GameState:
        """Move an entity to a cell, running terrain checks on entry."""
        return self._guard(
            state,
            "move_entity",
            lambda: movement_rules.move_entity(
                state,
                entity_id,
                kind,
                target,
                self.dice,
                self.settings,
                as_dungeon_master=as_dungeon_master,
                now=now,
            ).state,
        )

    def check_terrain(
        self,
        state: GameState,
        entity_id: str,
        terrain: TerrainType | str,
        *,
        now: datetime | None = None,
    ) -> GameState:
        """Roll a terrain check for an entity outside of a move."""
        return self._guard(
            state,
            "check_terrain",
            lambda: movement_rules.check_terrain(
                state, entity_id, TerrainType(terrain), self.dice, self.settings, now=now
            )[0],
        )

    # -------------------------------------------------------------------------
    # Attacks and spells
    # -------------------------------------------------------------------------

    def attack(
        self,
        state: GameState,
        attacker_id: str,
        target_id: str,
        mode: AttackMode | str = AttackMode.MELEE,
        *,
        attack_name: str | None = None,
        now: datetime | None = None,
    ) -> GameState:
        """Resolve a melee or ranged attack."""
        return self._guard(
            state,
            "attack",
            lambda: attack_rules.resolve_attack(
                state,
                attacker_id,
                target_id,
                mode,
                self.dice,
                self.settings,
                attack_name=attack_name,
                now=now,
            ).state,
        )

    def cast_spell(
        self,
        state: GameState,
        caster_id: str,
        spell_id: str,
        target: spell_rules.SpellTarget = None,
        *,
        now: datetime | None = None,
    ) -> GameState:
        """Cast a spell at an entity, a cell, or nobody (self/group spells)."""
        return self._guard(
            state,
            "cast_spell",
            lambda: spell_rules.cast_spell(
                state, caster_id, spell_id, target, self.dice, self.settings, now=now
            ).state,
        )

    def can_cast_spell(self, state: GameState, caster_id: str, spell_id: str) -> bool:
        """Check whether a caster could cast a spell right now."""
        return spell_rules.can_cast_spell(state, caster_id, spell_id)

    def get_valid_targets(self, state: GameState, caster_id: str, spell_id: str) -> list[Entity]:
        """List the entities a spell may be aimed at."""
        return spell_rules.get_valid_targets(state, caster_id, spell_id, self.settings)

    def memorize_spell(self, state: GameState, character_id: str, spell_id: str) -> GameState:
        """Prepare a spell from the spellbook."""
        return self._guard(
            state,
            "memorize_spell",
            lambda: spell_rules.memorize_spell(state, character_id, spell_id, self.settings),
        )

    def forget_spell(self, state: GameState, character_id: str, spell_id: str) -> GameState:
        """Drop a memorized spell."""
        return self._guard(
            state,
            "forget_spell",
            lambda: spell_rules.forget_spell(state, character_id, spell_id, self.settings),
        )

    def restore_spell_slots(self, state: GameState, character_id: str) -> GameState:
        """Refill a caster's slots."""
        return self._guard(
            state,
            "restore_spell_slots",
            lambda: spell_rules.restore_spell_slots(state, character_id, self.settings),
        )

    # -------------------------------------------------------------------------
    # Effects
    # -------------------------------------------------------------------------

    def break_concentration(
        self,
        state: GameState,
        caster_id: str,
        *,
        now: datetime | None = None,
    ) -> GameState:
        """End every concentration effect a caster maintains."""
        return self._guard(
            state,
            "break_concentration",
            lambda: effect_rules.break_concentration(state, caster_id, self.settings, now=now),
        )

    def expire_effects(self, state: GameState, *, now: datetime | None = None) -> GameState:
        """Remove effects whose minute/hour span has elapsed."""
        return self._guard(
            state,
            "expire_effects",
            lambda: effect_rules.expire_effects(state, self.settings, now=now),
        )

    def remove_effect(self, state: GameState, entity_id: str, effect_id: UUID) -> GameState:
        """Dispel one effect, reversing its contribution."""
        return self._guard(
            state,
            "remove_effect",
            lambda: effect_rules.remove_effect_from(state, entity_id, effect_id, self.settings),
        )

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select_entity(self, state: GameState, entity_id: str) -> GameState:
        """Record that the user selected an entity."""

        def _select() -> GameState:
            entity = state.get_entity(entity_id)
            return state.with_log(
                f"{entity.name} selected",
                LogCategory.SELECTION,
                capacity=self.settings.log_capacity,
            )

        return self._guard(state, "select_entity", _select)


__all__ = [
    "UpdateHandler",
    "TabletopEngine",
]
