"""Custom exception hierarchy for the Black Hack virtual tabletop engine.

This module defines the exception hierarchy used across the rules engine.
All exceptions inherit from TabletopError, enabling unified error handling
at the engine boundary while preserving domain-specific context.

None of the game engine errors are fatal: each one describes a rejected
player intent, raised before any state is mutated.

Example:
    >>> from blackhack_vtt.core.exceptions import OutOfRangeError
    >>> raise OutOfRangeError("Target too far", distance=40.5, max_range=36.0)
"""

from __future__ import annotations

from typing import Any


class TabletopError(Exception):
    """Base exception for all virtual tabletop errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception.

        Returns:
            String representation suitable for debugging.
        """
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(TabletopError):
    """Raised when application configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


# =============================================================================
# Game Engine Domain Exceptions
# =============================================================================


class GameEngineError(TabletopError):
    """Base exception for all rules engine errors.

    Raised when a player intent cannot be carried out. The engine
    guarantees that no state was mutated when one of these is raised.
    """


class EntityNotFoundError(GameEngineError):
    """Raised when an entity id does not resolve in the game state."""

    def __init__(
        self,
        message: str,
        *,
        entity_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the missing entity id.

        Args:
            message: Human-readable error description.
            entity_id: The id that failed to resolve.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if entity_id:
            combined_details["entity_id"] = entity_id
        super().__init__(message, details=combined_details)


class CombatError(GameEngineError):
    """Raised when the combat state machine is driven incorrectly.

    This includes starting combat twice, advancing turns without a
    session, or starting combat with no eligible combatants.
    """

    def __init__(
        self,
        message: str,
        *,
        combatant_id: str | None = None,
        round_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize combat error with combat context.

        Args:
            message: Human-readable error description.
            combatant_id: Identifier of the combatant involved.
            round_number: Current combat round when error occurred.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if combatant_id:
            combined_details["combatant_id"] = combatant_id
        if round_number is not None:
            combined_details["round_number"] = round_number
        super().__init__(message, details=combined_details)


class NotYourTurnError(CombatError):
    """Raised when an entity tries to act outside of its turn."""


class ActionAlreadyUsedError(CombatError):
    """Raised when an entity repeats an action type within one turn."""

    def __init__(
        self,
        message: str,
        *,
        action: str | None = None,
        combatant_id: str | None = None,
        round_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the consumed action type.

        Args:
            message: Human-readable error description.
            action: The action type already consumed (``move`` or ``act``).
            combatant_id: Identifier of the combatant involved.
            round_number: Current combat round when error occurred.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if action:
            combined_details["action"] = action
        super().__init__(
            message,
            combatant_id=combatant_id,
            round_number=round_number,
            details=combined_details,
        )


class ActorIncapacitatedError(GameEngineError):
    """Raised when a downed or disabled entity is asked to act."""


class InvalidMoveError(GameEngineError):
    """Raised when a movement target is out of bounds, range, or blocked."""

    def __init__(
        self,
        message: str,
        *,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the rejection reason.

        Args:
            message: Human-readable error description.
            reason: Short machine-readable reason (``bounds``, ``range``, ...).
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if reason:
            combined_details["reason"] = reason
        super().__init__(message, details=combined_details)


class InsufficientResourcesError(GameEngineError):
    """Raised when a spell slot is missing or a spell is not known."""


class OutOfRangeError(GameEngineError):
    """Raised when a target lies beyond attack or spell range."""

    def __init__(
        self,
        message: str,
        *,
        distance: float | None = None,
        max_range: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the measured distance and allowed range.

        Args:
            message: Human-readable error description.
            distance: Distance to the target in distance units.
            max_range: Maximum allowed range in distance units.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if distance is not None:
            combined_details["distance"] = distance
        if max_range is not None:
            combined_details["max_range"] = max_range
        super().__init__(message, details=combined_details)


class InvalidTargetError(GameEngineError):
    """Raised when a target does not match what the action allows."""

    def __init__(
        self,
        message: str,
        *,
        target_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the rejected target.

        Args:
            message: Human-readable error description.
            target_id: Identifier of the rejected target.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if target_id:
            combined_details["target_id"] = target_id
        super().__init__(message, details=combined_details)


class SpellbookError(GameEngineError):
    """Raised when memorizing or forgetting a spell is not allowed."""

    def __init__(
        self,
        message: str,
        *,
        spell_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the spell involved.

        Args:
            message: Human-readable error description.
            spell_id: Identifier of the spell.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if spell_id:
            combined_details["spell_id"] = spell_id
        super().__init__(message, details=combined_details)


class EffectError(GameEngineError):
    """Raised when an effect cannot be found or is malformed."""

    def __init__(
        self,
        message: str,
        *,
        effect_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the effect involved.

        Args:
            message: Human-readable error description.
            effect_id: Identifier of the effect.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if effect_id:
            combined_details["effect_id"] = effect_id
        super().__init__(message, details=combined_details)


class DiceRollError(GameEngineError):
    """Raised when dice rolling operations fail.

    This typically occurs when parsing invalid dice notation, asking for
    a die with fewer than one side, or exhausting a scripted roll sequence.
    """

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that failed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


__all__ = [
    "TabletopError",
    "ConfigurationError",
    "GameEngineError",
    "EntityNotFoundError",
    "CombatError",
    "NotYourTurnError",
    "ActionAlreadyUsedError",
    "ActorIncapacitatedError",
    "InvalidMoveError",
    "InsufficientResourcesError",
    "OutOfRangeError",
    "InvalidTargetError",
    "SpellbookError",
    "EffectError",
    "DiceRollError",
]
