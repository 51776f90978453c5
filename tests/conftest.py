"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Black Hack VTT test suite.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest

from blackhack_vtt.core.config import GameSettings
from blackhack_vtt.engine.dice import ScriptedDiceRoller
from blackhack_vtt.models.entities import (
    AttributeScores,
    Character,
    GridPosition,
    Monster,
    MonsterAttack,
    ResourcePool,
)
from blackhack_vtt.models.enums import CharacterClass, Condition
from blackhack_vtt.models.game_state import GameState


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from blackhack_vtt.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "BLACKHACK_VTT_DEBUG": "true",
        "BLACKHACK_VTT_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def settings() -> GameSettings:
    """Provide default rules engine settings."""
    return GameSettings()


# =============================================================================
# Dice Fixtures
# =============================================================================


@pytest.fixture
def scripted_dice() -> Callable[..., ScriptedDiceRoller]:
    """Provide a factory for dice that replay the given faces.

    Returns:
        Callable taking die faces and returning a ScriptedDiceRoller.
    """

    def _make(*faces: int) -> ScriptedDiceRoller:
        return ScriptedDiceRoller(faces)

    return _make


@pytest.fixture
def dice_roller() -> ScriptedDiceRoller:
    """An empty scripted roller; tests push the faces they need."""
    return ScriptedDiceRoller([])


# =============================================================================
# Entity Fixtures
# =============================================================================


@pytest.fixture
def warrior() -> Character:
    """A level 1 warrior at (5, 5)."""
    return Character(
        id="W1",
        name="Borin",
        character_class=CharacterClass.WARRIOR,
        position=GridPosition(x=5, y=5),
        attributes=AttributeScores(strength=16, dexterity=12, constitution=14),
        hp=ResourcePool.full(20),
    )


@pytest.fixture
def cleric() -> Character:
    """A level 3 cleric at (5, 6) with a full slot table."""
    return Character(
        id="CL1",
        name="Mira",
        character_class=CharacterClass.CLERIC,
        level=3,
        position=GridPosition(x=5, y=6),
        attributes=AttributeScores(wisdom=14, dexterity=10, constitution=12),
        hp=ResourcePool.full(15),
        spellcaster=True,
        spells_remaining={1: 2, 2: 1},
        spellbook=frozenset({"cure_wounds", "bless", "prayer"}),
    )


@pytest.fixture
def sorcerer() -> Character:
    """A level 3 sorcerer at (3, 5) with three memorized spells."""
    return Character(
        id="S1",
        name="Elara",
        character_class=CharacterClass.SORCERER,
        level=3,
        position=GridPosition(x=3, y=5),
        attributes=AttributeScores(intelligence=17, dexterity=14),
        hp=ResourcePool.full(12),
        spellcaster=True,
        spells_remaining={1: 2, 2: 1, 3: 1},
        spellbook=frozenset({"magic_missile", "fireball", "hold_person", "ray_of_enfeeblement"}),
        memorized_spells=frozenset({"magic_missile", "fireball", "hold_person"}),
    )


@pytest.fixture
def goblin() -> Monster:
    """A goblin standing next to the warrior, at (6, 5)."""
    return Monster(
        id="G1",
        name="Goblin",
        position=GridPosition(x=6, y=5),
        attributes=AttributeScores(strength=12, dexterity=10, constitution=10),
        hp=ResourcePool.full(8),
        attacks=[MonsterAttack(name="Rusty blade", damage="1d6")],
    )


@pytest.fixture
def ghoul() -> Monster:
    """A ghoul with a paralysing claw, at (5, 4)."""
    return Monster(
        id="M1",
        name="Ghoul",
        level=2,
        position=GridPosition(x=5, y=4),
        attributes=AttributeScores(strength=16, dexterity=12, constitution=14),
        hp=ResourcePool.full(12),
        attacks=[MonsterAttack(name="Claws", damage="1d6", inflicts=Condition.PARALYZED)],
    )


@pytest.fixture
def make_state() -> Callable[..., GameState]:
    """Provide a factory building a GameState from entities."""

    def _make(*entities: Character | Monster, **kwargs: object) -> GameState:
        return GameState(entities=list(entities), **kwargs)

    return _make


@pytest.fixture
def sample_world() -> GameState:
    """The default starting encounter."""
    from blackhack_vtt.models.world import create_sample_world

    return create_sample_world()
