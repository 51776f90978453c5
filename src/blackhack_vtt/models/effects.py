"""Pydantic V2 schemas for timed effects.

An Effect is a modifier applied to an entity by a spell, a monster attack
or an ability. Its duration is a tagged union discriminated by ``type``:

- ``TurnsDuration``: counts down at the end of each of the owner's turns.
- ``RoundsDuration``: counts down at each round rollover.
- ``MinutesDuration`` / ``HoursDuration``: expire by elapsed wall-clock time.
- ``ConcentrationDuration``: lasts until the caster's focus is broken.
- ``PermanentDuration``: never expires on its own.

Models are frozen; every change produces a new instance.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Annotated, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from blackhack_vtt.models.enums import Attribute, Condition, DurationType, EffectKind


# =============================================================================
# Durations
# =============================================================================


class TurnsDuration(BaseModel):
    """Duration counted in the owner's turns."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["turns"] = "turns"
    remaining: int = Field(ge=0, description="Turns left")


class RoundsDuration(BaseModel):
    """Duration counted in combat rounds."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["rounds"] = "rounds"
    remaining: int = Field(ge=0, description="Rounds left")


class MinutesDuration(BaseModel):
    """Duration measured in wall-clock minutes since application."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["minutes"] = "minutes"
    minutes: int = Field(gt=0, description="Total minutes")

    @property
    def span(self) -> timedelta:
        """Total lifetime as a timedelta."""
        return timedelta(minutes=self.minutes)


class HoursDuration(BaseModel):
    """Duration measured in wall-clock hours since application."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["hours"] = "hours"
    hours: int = Field(gt=0, description="Total hours")

    @property
    def span(self) -> timedelta:
        """Total lifetime as a timedelta."""
        return timedelta(hours=self.hours)


class ConcentrationDuration(BaseModel):
    """Duration tied to the caster's concentration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["concentration"] = "concentration"
    broken: bool = Field(default=False, description="Concentration has been broken")


class PermanentDuration(BaseModel):
    """Duration that never runs out."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["permanent"] = "permanent"


Duration = Annotated[
    TurnsDuration
    | RoundsDuration
    | MinutesDuration
    | HoursDuration
    | ConcentrationDuration
    | PermanentDuration,
    Field(discriminator="type"),
]


# =============================================================================
# Effect
# =============================================================================


class Effect(BaseModel):
    """An active modifier carried by an entity.

    Attributes:
        id: Unique effect instance identifier.
        name: Display name (e.g., 'Bless').
        kind: What the effect does.
        attribute: Attribute changed by buffs and debuffs.
        value: Attribute delta, or HP per application for damage/healing.
        condition: Condition granted by control effects.
        duration: How long the effect lasts.
        source: Identifier of the originating spell or attack.
        caster_id: Entity that created the effect, if any.
        visual_effect: Optional presentation tag for the UI.
        applied_at: When the effect was attached.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID = Field(default_factory=uuid4, description="Unique effect ID")
    name: str = Field(min_length=1, max_length=100, description="Effect name")
    kind: EffectKind = Field(description="Effect kind")
    attribute: Attribute | None = Field(default=None, description="Modified attribute")
    value: int = Field(default=0, ge=0, description="Magnitude of the effect")
    condition: Condition | None = Field(default=None, description="Granted condition")
    duration: Duration = Field(description="Effect lifetime")
    source: str = Field(default="", description="Originating spell or attack")
    caster_id: str | None = Field(default=None, description="Entity that applied it")
    visual_effect: str | None = Field(default=None, description="UI presentation tag")
    applied_at: datetime = Field(default_factory=datetime.now, description="Application time")

    @model_validator(mode="after")
    def validate_payload(self) -> "Effect":
        """Ensure each kind carries the data it needs.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If a buff/debuff has no attribute or a control
                effect has no condition.
        """
        if self.kind in (EffectKind.BUFF, EffectKind.DEBUFF) and self.attribute is None:
            raise ValueError(f"{self.kind} effects require an attribute")
        if self.kind == EffectKind.CONTROL and self.condition is None:
            raise ValueError("control effects require a condition")
        return self

    @property
    def is_concentration(self) -> bool:
        """Check if the effect depends on the caster's concentration."""
        return self.duration.type == DurationType.CONCENTRATION

    def with_duration(self, duration: Duration) -> Effect:
        """Return a copy with a different duration.

        Args:
            duration: The replacement duration.

        Returns:
            New Effect with the given duration.
        """
        return self.model_copy(update={"duration": duration})

    def break_concentration(self) -> Effect:
        """Return a copy whose concentration is marked as broken.

        Returns:
            New Effect; non-concentration effects are returned unchanged.
        """
        if not self.is_concentration:
            return self
        return self.with_duration(ConcentrationDuration(broken=True))


__all__ = [
    "TurnsDuration",
    "RoundsDuration",
    "MinutesDuration",
    "HoursDuration",
    "ConcentrationDuration",
    "PermanentDuration",
    "Duration",
    "Effect",
]
