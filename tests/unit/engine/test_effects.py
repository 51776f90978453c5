"""Tests for the effect and condition lifecycle."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

import pytest

from blackhack_vtt.core.config import GameSettings
from blackhack_vtt.core.exceptions import EffectError
from blackhack_vtt.engine.effects import (
    apply_contribution,
    attach_effect,
    attach_effect_to,
    break_concentration,
    damage_entity,
    detach_effect,
    expire_effects,
    is_expired,
    next_duration,
    reverse_contribution,
    tick_effects,
    tick_entity,
)
from blackhack_vtt.models.effects import (
    ConcentrationDuration,
    Effect,
    HoursDuration,
    MinutesDuration,
    PermanentDuration,
    RoundsDuration,
    TurnsDuration,
)
from blackhack_vtt.models.entities import Character, Monster
from blackhack_vtt.models.enums import (
    Attribute,
    Condition,
    EffectKind,
    LogCategory,
    TickBoundary,
)
from blackhack_vtt.models.game_state import GameState


def wisdom_buff(turns: int = 3, *, source: str = "bless", caster_id: str = "CL1") -> Effect:
    return Effect(
        name="Bless",
        kind=EffectKind.BUFF,
        attribute=Attribute.WIS,
        value=2,
        duration=TurnsDuration(remaining=turns),
        source=source,
        caster_id=caster_id,
    )


def hold(caster_id: str = "S1") -> Effect:
    return Effect(
        name="Hold Person",
        kind=EffectKind.CONTROL,
        condition=Condition.PARALYZED,
        duration=ConcentrationDuration(),
        source="hold_person",
        caster_id=caster_id,
    )


class TestContribution:
    """Tests for applying and reversing contributions."""

    def test_buff_and_reverse(self, warrior: Character) -> None:
        """Test a buff is exactly reversed."""
        effect = wisdom_buff()
        buffed = apply_contribution(warrior, effect)

        assert buffed.attributes.wisdom == warrior.attributes.wisdom + 2
        assert reverse_contribution(buffed, effect).attributes == warrior.attributes

    def test_debuff_and_reverse(self, warrior: Character) -> None:
        """Test a debuff lowers then restores the attribute."""
        effect = Effect(
            name="Weakness",
            kind=EffectKind.DEBUFF,
            attribute=Attribute.STR,
            value=2,
            duration=RoundsDuration(remaining=3),
        )
        weakened = apply_contribution(warrior, effect)

        assert weakened.attributes.strength == 14
        assert reverse_contribution(weakened, effect).attributes.strength == 16

    def test_control_condition(self, warrior: Character) -> None:
        """Test control effects grant and clear their condition."""
        effect = hold()
        held = apply_contribution(warrior, effect)

        assert Condition.PARALYZED in held.conditions
        assert Condition.PARALYZED not in reverse_contribution(held, effect).conditions

    def test_shared_condition_survives_one_reversal(self, warrior: Character) -> None:
        """Test a condition stays while another effect still grants it."""
        first, second = hold("S1"), hold("S2")
        held = attach_effect(attach_effect(warrior, first), second)

        released_once = detach_effect(held, first.id)

        assert Condition.PARALYZED in released_once.conditions
        assert Condition.PARALYZED not in detach_effect(released_once, second.id).conditions

    def test_damage_not_reversed(self, warrior: Character) -> None:
        """Test damage effects are not undone on removal."""
        effect = Effect(
            name="Acid",
            kind=EffectKind.DAMAGE,
            value=3,
            duration=TurnsDuration(remaining=1),
        )
        burned = apply_contribution(warrior, effect)

        assert burned.hp.current == 17
        assert reverse_contribution(burned, effect).hp.current == 17


class TestDuration:
    """Tests for duration bookkeeping."""

    def test_turns_count_on_turn_end_only(self) -> None:
        """Test turn durations ignore round rollovers."""
        duration = TurnsDuration(remaining=2)

        assert next_duration(duration, TickBoundary.TURN_END).remaining == 1
        assert next_duration(duration, TickBoundary.ROUND_END) is duration

    def test_rounds_count_on_round_end_only(self) -> None:
        """Test round durations ignore turn ends."""
        duration = RoundsDuration(remaining=2)

        assert next_duration(duration, TickBoundary.ROUND_END).remaining == 1
        assert next_duration(duration, TickBoundary.TURN_END) is duration

    def test_never_below_zero(self) -> None:
        """Test counters floor at zero."""
        assert next_duration(TurnsDuration(remaining=0), TickBoundary.TURN_END).remaining == 0

    def test_wall_clock_expiry(self) -> None:
        """Test minute and hour durations compare elapsed time."""
        start = datetime(2024, 1, 1, 12, 0)
        minutes = Effect(
            name="Shield",
            kind=EffectKind.BUFF,
            attribute=Attribute.CON,
            value=1,
            duration=MinutesDuration(minutes=10),
            applied_at=start,
        )
        hours = minutes.with_duration(HoursDuration(hours=1))

        assert is_expired(minutes, now=start + timedelta(minutes=9)) is False
        assert is_expired(minutes, now=start + timedelta(minutes=10)) is True
        assert is_expired(hours, now=start + timedelta(minutes=59)) is False
        assert is_expired(hours, now=start + timedelta(hours=1)) is True

    def test_concentration_and_permanent(self) -> None:
        """Test concentration expires once broken; permanent never does."""
        effect = hold()
        permanent = effect.with_duration(PermanentDuration())

        assert is_expired(effect) is False
        assert is_expired(effect.break_concentration()) is True
        assert is_expired(permanent, now=datetime(2999, 1, 1)) is False


class TestTickEffects:
    """Tests for ticking an entity's effects."""

    def test_buff_reversed_after_three_turns(self, cleric: Character) -> None:
        """Test +2 Wisdom for 3 turns restores Wisdom after 3 ticks."""
        original = cleric.attributes.wisdom
        entity = attach_effect(cleric, wisdom_buff(3))
        assert entity.attributes.wisdom == original + 2

        for _ in range(2):
            entity = tick_effects(entity, TickBoundary.TURN_END).entity
            assert entity.attributes.wisdom == original + 2

        result = tick_effects(entity, TickBoundary.TURN_END)

        assert result.entity.attributes.wisdom == original
        assert result.entity.active_effects == []
        assert [e.name for e in result.expired] == ["Bless"]

    def test_periodic_damage(self, warrior: Character) -> None:
        """Test damage over time applies on attach and on each turn end."""
        poison = Effect(
            name="Poison",
            kind=EffectKind.DAMAGE,
            value=2,
            duration=TurnsDuration(remaining=2),
        )
        entity = attach_effect(warrior, poison)
        assert entity.hp.current == 18

        first = tick_effects(entity, TickBoundary.TURN_END)
        assert first.entity.hp.current == 16
        assert first.periodic[0][1] == 2

        second = tick_effects(first.entity, TickBoundary.TURN_END)
        assert second.entity.hp.current == 16
        assert second.entity.active_effects == []

    def test_stacking_default(self, cleric: Character) -> None:
        """Test re-applying the same buff stacks by default."""
        entity = attach_effect(attach_effect(cleric, wisdom_buff()), wisdom_buff())

        assert len(entity.active_effects) == 2
        assert entity.attributes.wisdom == cleric.attributes.wisdom + 4

    def test_refresh_policy(self, cleric: Character) -> None:
        """Test the refresh policy replaces an effect from the same source and caster."""
        entity = attach_effect(cleric, wisdom_buff(1))
        entity = attach_effect(entity, wisdom_buff(3), stacking="refresh")

        assert len(entity.active_effects) == 1
        assert entity.active_effects[0].duration.remaining == 3
        assert entity.attributes.wisdom == cleric.attributes.wisdom + 2

    def test_detach_unknown(self, warrior: Character) -> None:
        """Test detaching an absent effect raises EffectError."""
        with pytest.raises(EffectError):
            detach_effect(warrior, wisdom_buff().id)


class TestStateHelpers:
    """Tests for state-level effect helpers."""

    def test_fall_logged_once(
        self,
        goblin: Monster,
        make_state: Callable[..., GameState],
        settings: GameSettings,
    ) -> None:
        """Test dropping to 0 HP is logged at the transition only."""
        state = make_state(goblin)

        state = damage_entity(state, "G1", 20, settings)
        state = damage_entity(state, "G1", 5, settings)

        falls = [e for e in state.log if "falls" in e.message]
        assert len(falls) == 1
        assert state.get_entity("G1").hp.current == 0

    def test_attach_logs_magic(
        self,
        cleric: Character,
        make_state: Callable[..., GameState],
        settings: GameSettings,
    ) -> None:
        """Test attaching an effect writes a magic log entry."""
        state = attach_effect_to(make_state(cleric), "CL1", wisdom_buff(), settings)

        assert state.log[-1].category == LogCategory.MAGIC
        assert "Bless" in state.log[-1].message

    def test_tick_entity_logs_expiry(
        self,
        cleric: Character,
        make_state: Callable[..., GameState],
        settings: GameSettings,
    ) -> None:
        """Test an expiring effect is logged."""
        state = attach_effect_to(make_state(cleric), "CL1", wisdom_buff(1), settings)

        state = tick_entity(state, "CL1", TickBoundary.TURN_END, settings)

        assert state.log[-1].message == "Bless on Mira ends"
        assert state.get_entity("CL1").attributes.wisdom == cleric.attributes.wisdom

    def test_break_concentration(
        self,
        sorcerer: Character,
        goblin: Monster,
        make_state: Callable[..., GameState],
        settings: GameSettings,
    ) -> None:
        """Test breaking concentration frees every held target."""
        state = attach_effect_to(make_state(sorcerer, goblin), "G1", hold("S1"), settings)
        assert Condition.PARALYZED in state.get_entity("G1").conditions

        state = break_concentration(state, "S1", settings)

        goblin_after = state.get_entity("G1")
        assert Condition.PARALYZED not in goblin_after.conditions
        assert goblin_after.active_effects == []
        assert state.log[-1].message == "Elara loses concentration"

    def test_caster_falling_breaks_concentration(
        self,
        sorcerer: Character,
        goblin: Monster,
        make_state: Callable[..., GameState],
        settings: GameSettings,
    ) -> None:
        """Test a caster dropping to 0 HP releases its concentration effects."""
        state = attach_effect_to(make_state(sorcerer, goblin), "G1", hold("S1"), settings)

        state = damage_entity(state, "S1", 50, settings)

        assert Condition.PARALYZED not in state.get_entity("G1").conditions

    def test_expire_effects_by_clock(
        self,
        warrior: Character,
        make_state: Callable[..., GameState],
        settings: GameSettings,
    ) -> None:
        """Test clock expiry removes elapsed effects and keeps turn counters."""
        start = datetime(2024, 1, 1, 12, 0)
        timed = Effect(
            name="Stoneskin",
            kind=EffectKind.BUFF,
            attribute=Attribute.CON,
            value=2,
            duration=MinutesDuration(minutes=1),
            applied_at=start,
        )
        counted = wisdom_buff(2)
        state = attach_effect_to(make_state(warrior), "W1", timed, settings, now=start)
        state = attach_effect_to(state, "W1", counted, settings, now=start)

        state = expire_effects(state, settings, now=start + timedelta(minutes=2))

        remaining = state.get_entity("W1").active_effects
        assert [e.name for e in remaining] == ["Bless"]
        assert remaining[0].duration.remaining == 2
        assert state.get_entity("W1").attributes.constitution == 14
