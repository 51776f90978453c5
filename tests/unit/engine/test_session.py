"""Tests for the TabletopEngine facade."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from blackhack_vtt.core.config import GameSettings
from blackhack_vtt.engine.dice import DiceRoller, ScriptedDiceRoller
from blackhack_vtt.engine.session import TabletopEngine
from blackhack_vtt.models.entities import Character, GridPosition, Monster
from blackhack_vtt.models.enums import LogCategory
from blackhack_vtt.models.game_state import GameState


class ExplodingDice(DiceRoller):
    """Dice that fail with a non-engine error."""

    def roll_die(self, sides: int) -> int:
        raise RuntimeError("table flipped")


@pytest.fixture
def duel(warrior: Character, goblin: Monster, make_state: Callable[..., GameState]) -> GameState:
    return make_state(warrior, goblin)


@pytest.fixture
def updates() -> list[GameState]:
    """Collects every state pushed to an update handler."""
    return []


@pytest.fixture
def engine(settings: GameSettings, updates: list[GameState]) -> TabletopEngine:
    """Engine with scripted dice and a recording handler."""
    table = TabletopEngine(dice=ScriptedDiceRoller([]), settings=settings)
    table.on_update(updates.append)
    return table


class TestTabletopEngine:
    """Tests for intent handling at the boundary."""

    def test_default_construction(self) -> None:
        """Test the engine falls back to application settings."""
        table = TabletopEngine()

        assert table.settings.grid_size == 30
        assert isinstance(table.dice, DiceRoller)

    def test_select_entity(
        self,
        engine: TabletopEngine,
        sample_world: GameState,
        updates: list[GameState],
    ) -> None:
        """Test selection writes a log entry and notifies handlers."""
        state = engine.select_entity(sample_world, "C1")

        assert state.log[-1].message == "Thorgrim selected"
        assert state.log[-1].category == LogCategory.SELECTION
        assert updates == [state]

    def test_rule_violation_becomes_error_entry(
        self,
        engine: TabletopEngine,
        sample_world: GameState,
    ) -> None:
        """Test a rejected intent returns the state plus an error entry."""
        state = engine.select_entity(sample_world, "X9")

        assert state.entities == sample_world.entities
        assert state.log[-1].category == LogCategory.ERROR
        assert "X9" in state.log[-1].message

    def test_invalid_move_is_silent(
        self,
        engine: TabletopEngine,
        sample_world: GameState,
        updates: list[GameState],
    ) -> None:
        """Test an illegal move returns the same state with no log entry."""
        state = engine.move_entity(sample_world, "C1", "character", GridPosition(x=29, y=29))

        assert state is sample_world
        assert updates == []

    def test_legal_move(self, engine: TabletopEngine, sample_world: GameState) -> None:
        """Test a legal move goes through."""
        state = engine.move_entity(sample_world, "C1", "character", GridPosition(x=11, y=20))

        assert state.get_entity("C1").position == GridPosition(x=11, y=20)

    def test_unexpected_error_is_logged(self, duel: GameState, settings: GameSettings) -> None:
        """Test non-engine errors are contained and logged."""
        table = TabletopEngine(dice=ExplodingDice(), settings=settings)

        state = table.attack(duel, "W1", "G1")

        assert state.log[-1].category == LogCategory.ERROR
        assert state.log[-1].message == "Unexpected error during attack: table flipped"
        assert state.entities == duel.entities

    def test_failing_handler_does_not_break_intent(
        self,
        engine: TabletopEngine,
        sample_world: GameState,
    ) -> None:
        """Test a raising handler is isolated from the engine."""

        def broken(_: GameState) -> None:
            raise ValueError("render failed")

        engine.on_update(broken)

        state = engine.select_entity(sample_world, "M1")

        assert state.log[-1].message == "Ghoul selected"

    def test_next_turn_without_combat(
        self,
        engine: TabletopEngine,
        sample_world: GameState,
    ) -> None:
        """Test advancing outside combat reports an error."""
        state = engine.next_turn(sample_world)

        assert state.log[-1].message == "No combat in progress"


class TestEngineFlows:
    """Tests for intents routed through the facade."""

    def test_combat_round_trip(self, engine: TabletopEngine, sample_world: GameState) -> None:
        """Test start, advance and end via the facade."""
        engine.dice.push(12, 7, 3)

        state = engine.start_combat(sample_world)
        assert state.combat.current_entry.entity_id == "C1"
        assert engine.can_move(state, "C1", "character") is True
        assert engine.can_act(state, "C2", "character") is False

        state = engine.next_turn(state)
        assert state.combat.current_entry.entity_id == "C2"

        state = engine.end_combat(state)
        assert state.combat is None

    def test_next_turn_with_everyone_down(
        self,
        engine: TabletopEngine,
        sample_world: GameState,
    ) -> None:
        """Test a wiped table reports an error and keeps the current turn."""
        engine.dice.push(12, 7, 3)
        started = engine.start_combat(sample_world)
        state = started.replace_entities(
            entity.apply_damage(999) for entity in started.entities
        )

        advanced = engine.next_turn(state)

        assert advanced.combat == state.combat
        assert advanced.log[-1].category == LogCategory.ERROR
        assert advanced.log[-1].message == "No living combatants"
        assert "Thorgrim's turn" not in [e.message for e in advanced.log[len(state.log):]]

    def test_attack_out_of_range(self, engine: TabletopEngine, sample_world: GameState) -> None:
        """Test an unreachable target produces an error entry."""
        state = engine.attack(sample_world, "C1", "M1")

        assert state.log[-1].category == LogCategory.ERROR
        assert "out of melee range" in state.log[-1].message

    def test_cast_and_remove_effect(
        self,
        engine: TabletopEngine,
        cleric: Character,
        warrior: Character,
        make_state: Callable[..., GameState],
    ) -> None:
        """Test a dispelled buff reverses its contribution."""
        engine.dice.push(10)
        state = engine.cast_spell(make_state(cleric, warrior), "CL1", "bless", "W1")
        effect = state.get_entity("W1").active_effects[0]
        assert state.get_entity("W1").attributes.wisdom == 12

        state = engine.remove_effect(state, "W1", effect.id)

        assert state.get_entity("W1").attributes.wisdom == 10
        assert state.get_entity("W1").active_effects == []

    def test_spell_queries(self, engine: TabletopEngine, sample_world: GameState) -> None:
        """Test the read-only spell queries."""
        assert engine.can_cast_spell(sample_world, "C2", "magic_missile") is True
        assert engine.can_cast_spell(sample_world, "C2", "fireball") is False
        assert [e.id for e in engine.get_valid_targets(sample_world, "C2", "magic_missile")] == [
            "M1"
        ]

    def test_memorize_limit_reported(
        self,
        engine: TabletopEngine,
        sample_world: GameState,
    ) -> None:
        """Test a level 1 sorcerer cannot hold a second spell."""
        state = engine.memorize_spell(sample_world, "C2", "hold_person")

        assert state.log[-1].category == LogCategory.ERROR

    def test_forget_and_restore(self, engine: TabletopEngine, sample_world: GameState) -> None:
        """Test spellbook and rest intents."""
        state = engine.forget_spell(sample_world, "C2", "magic_missile")
        state = engine.restore_spell_slots(state, "C2")

        elara = state.get_entity("C2")
        assert elara.memorized_spells == frozenset()
        assert elara.slots_for(1) == 1
        assert elara.slots_for(2) == 0

    def test_check_terrain(self, engine: TabletopEngine, sample_world: GameState) -> None:
        """Test a standalone hazard check."""
        engine.dice.push(20, 6)

        state = engine.check_terrain(sample_world, "C1", "hazard")

        assert state.get_entity("C1").hp.current == 22
