"""Tests for spellcasting, targeting and spellbook management."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from blackhack_vtt.core.config import GameSettings
from blackhack_vtt.core.exceptions import (
    ActionAlreadyUsedError,
    InsufficientResourcesError,
    InvalidTargetError,
    OutOfRangeError,
    SpellbookError,
)
from blackhack_vtt.engine.dice import ScriptedDiceRoller
from blackhack_vtt.engine.spells import (
    can_cast_spell,
    cast_spell,
    forget_spell,
    get_valid_targets,
    memorize_spell,
    restore_spell_slots,
    validate_cast,
)
from blackhack_vtt.engine.turn_manager import can_act, start_combat
from blackhack_vtt.models.effects import ConcentrationDuration
from blackhack_vtt.models.entities import Character, GridPosition, Monster
from blackhack_vtt.models.enums import Condition, LogCategory
from blackhack_vtt.models.game_state import GameState


Factory = Callable[..., ScriptedDiceRoller]


@pytest.fixture
def party(
    sorcerer: Character,
    warrior: Character,
    goblin: Monster,
    make_state: Callable[..., GameState],
) -> GameState:
    """Sorcerer at (3, 5), warrior at (5, 5), goblin at (6, 5)."""
    return make_state(sorcerer, warrior, goblin)


class TestValidateCast:
    """Tests for caster-side validation."""

    def test_valid(self, party: GameState) -> None:
        """Test a memorized spell with a free slot passes."""
        caster, spell = validate_cast(party, "S1", "magic_missile")

        assert caster.id == "S1"
        assert spell.name == "Magic Missile"

    def test_non_caster(self, party: GameState) -> None:
        """Test entities without the spellcaster flag cannot cast."""
        with pytest.raises(InsufficientResourcesError):
            validate_cast(party, "W1", "magic_missile")

    def test_unknown_spell(self, party: GameState) -> None:
        """Test unknown spell ids are rejected."""
        with pytest.raises(InsufficientResourcesError):
            validate_cast(party, "S1", "wish")

    def test_level_too_high(self, party: GameState) -> None:
        """Test spells above the caster's level are rejected."""
        junior = party.get_entity("S1").model_copy(update={"level": 2})
        state = party.replace_entity(junior)

        with pytest.raises(InsufficientResourcesError):
            validate_cast(state, "S1", "fireball")

    def test_no_slots(self, party: GameState) -> None:
        """Test an empty slot level is rejected."""
        drained = party.get_entity("S1").with_spell_slots({1: 0, 2: 1, 3: 1})
        state = party.replace_entity(drained)

        with pytest.raises(InsufficientResourcesError):
            validate_cast(state, "S1", "magic_missile")

    def test_not_memorized(self, party: GameState) -> None:
        """Test sorcerers must memorize spells first."""
        with pytest.raises(InsufficientResourcesError) as exc_info:
            validate_cast(party, "S1", "ray_of_enfeeblement")

        assert "has not memorized" in exc_info.value.message

    def test_cleric_casts_from_spellbook(
        self,
        cleric: Character,
        make_state: Callable[..., GameState],
    ) -> None:
        """Test clerics cast any known spell without memorizing."""
        caster, _ = validate_cast(make_state(cleric), "CL1", "bless")
        assert caster.id == "CL1"

    def test_can_cast_spell(self, party: GameState) -> None:
        """Test the boolean form."""
        assert can_cast_spell(party, "S1", "magic_missile") is True
        assert can_cast_spell(party, "S1", "ray_of_enfeeblement") is False
        assert can_cast_spell(party, "W1", "magic_missile") is False


class TestDamageSpells:
    """Tests for damage spells."""

    def test_magic_missile(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test 1d4 + caster level against a single enemy."""
        outcome = cast_spell(party, "S1", "magic_missile", "G1", scripted_dice(10, 2), settings)

        assert outcome.success is True
        assert outcome.amounts == {"G1": 5}
        assert outcome.state.get_entity("G1").hp.current == 3
        assert outcome.state.get_entity("S1").slots_for(1) == 1
        assert outcome.state.log[-1].message == "Goblin takes 5 damage from Magic Missile"

    def test_failed_cast_spends_slot(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test a failed cast still consumes the slot."""
        outcome = cast_spell(party, "S1", "magic_missile", "G1", scripted_dice(18), settings)

        assert outcome.success is False
        assert outcome.state.get_entity("S1").slots_for(1) == 1
        assert outcome.state.get_entity("G1").hp.current == 8
        assert outcome.state.log[-1].message == "Elara fails to cast Magic Missile (INT 18 vs 17)"
        assert outcome.state.log[-1].category == LogCategory.MAGIC

    def test_level_check_modifier(
        self,
        party: GameState,
        scripted_dice: Factory,
    ) -> None:
        """Test the optional spell level penalty on the cast roll."""
        settings = GameSettings(spell_level_check_modifier=True)

        outcome = cast_spell(party, "S1", "magic_missile", "G1", scripted_dice(17), settings)

        assert outcome.check.roll == 18
        assert outcome.success is False

    def test_fireball_area_with_saves(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test one damage roll, a Dexterity save per target, half on success."""
        # Cast 5, damage 6d6 = 18, warrior saves (5 vs 12), goblin fails (15 vs 10).
        dice = scripted_dice(5, 3, 3, 3, 3, 3, 3, 5, 15)

        outcome = cast_spell(party, "S1", "fireball", GridPosition(x=8, y=5), dice, settings)

        assert outcome.target_ids == ["W1", "G1"]
        assert outcome.saves == {"W1": True, "G1": False}
        assert outcome.amounts == {"W1": 9, "G1": 18}
        assert outcome.state.get_entity("W1").hp.current == 11
        assert outcome.state.get_entity("G1").hp.current == 0
        assert outcome.state.get_entity("S1").hp.current == 12
        messages = [e.message for e in outcome.state.log]
        assert "Borin takes 9 damage from Fireball (saved)" in messages
        assert dice.remaining == 0

    def test_fireball_can_hit_caster(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test the caster is caught in its own blast."""
        dice = scripted_dice(5, 1, 1, 1, 1, 1, 1, 20, 20, 20)

        outcome = cast_spell(party, "S1", "fireball", "W1", dice, settings)

        assert outcome.target_ids == ["S1", "W1", "G1"]
        assert outcome.state.get_entity("S1").hp.current == 6

    def test_area_needs_point(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test area spells without a point are rejected."""
        with pytest.raises(InvalidTargetError):
            cast_spell(party, "S1", "fireball", None, scripted_dice(), settings)


class TestTargeting:
    """Tests for target legality."""

    def test_single_must_be_enemy(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test single-target spells reject allies."""
        with pytest.raises(InvalidTargetError):
            cast_spell(party, "S1", "magic_missile", "W1", scripted_dice(), settings)

    def test_ally_spell_rejects_enemy(
        self,
        cleric: Character,
        goblin: Monster,
        make_state: Callable[..., GameState],
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test ally spells reject enemies."""
        state = make_state(cleric, goblin)

        with pytest.raises(InvalidTargetError):
            cast_spell(state, "CL1", "bless", "G1", scripted_dice(), settings)

    def test_range_checked_before_slot(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test an out-of-range target is rejected without rolling or spending."""
        far = party.get_entity("G1").move_to(GridPosition(x=20, y=5))
        state = party.replace_entity(far)

        with pytest.raises(OutOfRangeError) as exc_info:
            cast_spell(state, "S1", "hold_person", "G1", scripted_dice(), settings)

        assert exc_info.value.details["max_range"] == 18.0
        assert state.get_entity("S1").slots_for(2) == 1

    def test_fallen_target(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test downed entities cannot be targeted."""
        state = party.replace_entity(party.get_entity("G1").apply_damage(100))

        with pytest.raises(InvalidTargetError):
            cast_spell(state, "S1", "magic_missile", "G1", scripted_dice(), settings)

    def test_valid_targets(
        self,
        cleric: Character,
        party: GameState,
        settings: GameSettings,
    ) -> None:
        """Test target lists per targeting mode."""
        state = GameState(entities=[*party.entities, cleric])

        assert [e.id for e in get_valid_targets(state, "S1", "magic_missile", settings)] == ["G1"]
        assert [e.id for e in get_valid_targets(state, "CL1", "bless", settings)] == [
            "S1",
            "W1",
            "CL1",
        ]
        assert get_valid_targets(state, "S1", "fireball", settings) == []
        assert get_valid_targets(state, "S1", "wish", settings) == []

    def test_valid_targets_respect_range(
        self,
        cleric: Character,
        warrior: Character,
        make_state: Callable[..., GameState],
        settings: GameSettings,
    ) -> None:
        """Test targets beyond the spell's range are left out."""
        distant = warrior.move_to(GridPosition(x=25, y=25))
        state = make_state(cleric, distant)

        assert [e.id for e in get_valid_targets(state, "CL1", "cure_wounds", settings)] == ["CL1"]


class TestEffectSpells:
    """Tests for healing, buff and control spells."""

    def test_bless_buffs_ally(
        self,
        cleric: Character,
        warrior: Character,
        make_state: Callable[..., GameState],
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test bless adds 2 Wisdom through an attached effect."""
        state = make_state(cleric, warrior)

        outcome = cast_spell(state, "CL1", "bless", "W1", scripted_dice(10), settings)

        blessed = outcome.state.get_entity("W1")
        assert blessed.attributes.wisdom == 12
        assert blessed.active_effects[0].source == "bless"
        assert blessed.active_effects[0].caster_id == "CL1"

    def test_cure_wounds_caps_at_max(
        self,
        cleric: Character,
        warrior: Character,
        make_state: Callable[..., GameState],
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test healing reports the HP actually restored."""
        state = make_state(cleric, warrior.apply_damage(10))

        outcome = cast_spell(state, "CL1", "cure_wounds", "W1", scripted_dice(3, 8), settings)

        assert outcome.amounts == {"W1": 10}
        assert outcome.state.get_entity("W1").hp.current == 20
        assert outcome.state.log[-1].message == "Borin recovers 10 HP from Cure Wounds"

    def test_hold_person_concentration(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test hold person paralyzes for as long as the caster concentrates."""
        outcome = cast_spell(party, "S1", "hold_person", "G1", scripted_dice(4), settings)

        held = outcome.state.get_entity("G1")
        assert Condition.PARALYZED in held.conditions
        assert isinstance(held.active_effects[0].duration, ConcentrationDuration)

    def test_prayer_hits_all_allies(
        self,
        cleric: Character,
        warrior: Character,
        goblin: Monster,
        make_state: Callable[..., GameState],
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test all-allies spells include the caster and skip enemies."""
        caster = cleric.with_spell_slots({1: 2, 2: 1, 3: 1})
        state = make_state(warrior, caster, goblin)

        outcome = cast_spell(state, "CL1", "prayer", None, scripted_dice(2), settings)

        assert outcome.target_ids == ["W1", "CL1"]
        assert outcome.state.get_entity("W1").attributes.constitution == 15
        assert outcome.state.get_entity("CL1").attributes.constitution == 13
        assert outcome.state.get_entity("G1").active_effects == []


class TestCastInCombat:
    """Tests for the shared action budget."""

    def test_cast_uses_action(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test casting, even unsuccessfully, uses the turn's action."""
        state = start_combat(party, scripted_dice(20, 1, 1), settings)

        state = cast_spell(state, "S1", "magic_missile", "G1", scripted_dice(19), settings).state

        assert can_act(state, "S1", "character") is False
        with pytest.raises(ActionAlreadyUsedError):
            cast_spell(state, "S1", "magic_missile", "G1", scripted_dice(), settings)


class TestSpellbook:
    """Tests for memorizing, forgetting and resting."""

    def test_memorize_limit(self, party: GameState, settings: GameSettings) -> None:
        """Test a level 3 caster holds at most three spells."""
        with pytest.raises(InsufficientResourcesError):
            memorize_spell(party, "S1", "ray_of_enfeeblement", settings)

    def test_forget_then_memorize(self, party: GameState, settings: GameSettings) -> None:
        """Test forgetting frees room for another spell."""
        state = forget_spell(party, "S1", "fireball", settings)
        state = memorize_spell(state, "S1", "ray_of_enfeeblement", settings)

        assert state.get_entity("S1").memorized_spells == frozenset(
            {"magic_missile", "hold_person", "ray_of_enfeeblement"}
        )
        assert [e.message for e in state.log] == [
            "Elara forgets Fireball",
            "Elara memorizes Ray of Enfeeblement",
        ]

    def test_memorize_then_forget_restores_set(
        self,
        sorcerer: Character,
        make_state: Callable[..., GameState],
        settings: GameSettings,
    ) -> None:
        """Test memorizing and then forgetting a spell leaves the memorized set as it was."""
        caster = sorcerer.model_copy(update={"memorized_spells": frozenset({"magic_missile"})})
        state = make_state(caster)
        before = state.get_entity("S1").memorized_spells

        state = memorize_spell(state, "S1", "fireball", settings)
        assert "fireball" in state.get_entity("S1").memorized_spells

        state = forget_spell(state, "S1", "fireball", settings)
        assert state.get_entity("S1").memorized_spells == before

    def test_memorize_outside_spellbook(self, party: GameState, settings: GameSettings) -> None:
        """Test only spellbook spells can be memorized."""
        with pytest.raises(SpellbookError):
            memorize_spell(party, "S1", "bless", settings)

    def test_memorize_twice(self, party: GameState, settings: GameSettings) -> None:
        """Test a memorized spell cannot be memorized again."""
        with pytest.raises(SpellbookError):
            memorize_spell(party, "S1", "magic_missile", settings)

    def test_forget_unknown(self, party: GameState, settings: GameSettings) -> None:
        """Test forgetting a spell that is not memorized."""
        with pytest.raises(SpellbookError):
            forget_spell(party, "S1", "ray_of_enfeeblement", settings)

    def test_restore_slots(
        self,
        party: GameState,
        settings: GameSettings,
        scripted_dice: Factory,
    ) -> None:
        """Test resting refills the class table for the caster's level."""
        state = cast_spell(party, "S1", "magic_missile", "G1", scripted_dice(19), settings).state

        state = restore_spell_slots(state, "S1", settings)

        restored = state.get_entity("S1")
        assert restored.slots_for(1) == 3
        assert restored.slots_for(2) == 1
        assert state.log[-1].message == "Elara's spell slots are restored"

    def test_restore_non_caster(self, party: GameState, settings: GameSettings) -> None:
        """Test warriors and monsters have no slot table."""
        with pytest.raises(InvalidTargetError):
            restore_spell_slots(party, "W1", settings)
        with pytest.raises(InvalidTargetError):
            restore_spell_slots(party, "G1", settings)
