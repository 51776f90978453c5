"""Dice rolling for a roll-low ruleset.

This module isolates every random draw of the engine behind DiceRoller.
The primitives are:

- ``roll_die(sides)``: one uniform integer in ``[1, sides]``
- ``roll_dice(count, sides)``: sum of ``count`` independent ``roll_die`` calls
- ``roll_check(target)``: a d20 compared against an attribute, succeeding
  when the roll is equal to or under the target

Randomness comes from the d20 library. ScriptedDiceRoller replaces it with
a fixed sequence of faces so tests and replays are deterministic; every
engine rule is built on the primitives above so the substitution covers
all of them.
"""

from __future__ import annotations

import random
import re
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import d20

from blackhack_vtt.core.exceptions import DiceRollError
from blackhack_vtt.core.logging import get_logger
from blackhack_vtt.models.enums import RollType


logger = get_logger(__name__)

_FORMULA_PATTERN = re.compile(r"^\s*(\d*)\s*d\s*(\d+)\s*(?:([+-])\s*(\d+))?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class DiceExpression:
    """The result of a dice expression roll.

    Attributes:
        expression: The expression that was rolled.
        total: The total result of the roll.
        dice: Kept die faces.
        modifier: Static modifier applied.
        is_critical: Whether a kept d20 showed a natural 1.
        is_fumble: Whether a kept d20 showed a natural 20.
        roll_type: The type of roll performed.
    """

    expression: str
    total: int
    dice: list[int]
    modifier: int
    is_critical: bool
    is_fumble: bool
    roll_type: RollType


@dataclass(frozen=True)
class CheckResult:
    """A d20 roll against an attribute.

    Attributes:
        roll: The kept d20 face.
        target: The value the roll had to equal or beat from below.
        dice: Every d20 face rolled (two with advantage/disadvantage).
        roll_type: The type of roll performed.
    """

    roll: int
    target: int
    dice: tuple[int, ...]
    roll_type: RollType = RollType.NORMAL

    @property
    def success(self) -> bool:
        """Roll-low success: roll <= target."""
        return self.roll <= self.target

    @property
    def is_natural_one(self) -> bool:
        return self.roll == 1


@dataclass(frozen=True)
class DiceFormula:
    """A parsed ``XdY+Z`` formula.

    Attributes:
        count: Number of dice.
        sides: Sides per die.
        bonus: Flat amount added (may be negative).
    """

    count: int
    sides: int
    bonus: int = 0

    @classmethod
    def parse(cls, formula: str) -> DiceFormula:
        """Parse ``XdY``, ``dY`` or ``XdY+Z`` / ``XdY-Z``.

        Args:
            formula: Formula text.

        Returns:
            The parsed formula.

        Raises:
            DiceRollError: If the text is not a simple dice formula.
        """
        match = _FORMULA_PATTERN.match(formula or "")
        if match is None:
            raise DiceRollError("Invalid dice formula", expression=formula)
        count_str, sides_str, sign, bonus_str = match.groups()
        count = int(count_str) if count_str else 1
        sides = int(sides_str)
        if sides < 1:
            raise DiceRollError("Dice must have at least one side", expression=formula)
        bonus = int(bonus_str) if bonus_str else 0
        if sign == "-":
            bonus = -bonus
        return cls(count=count, sides=sides, bonus=bonus)

    def __str__(self) -> str:
        if self.bonus:
            sign = "+" if self.bonus > 0 else "-"
            return f"{self.count}d{self.sides}{sign}{abs(self.bonus)}"
        return f"{self.count}d{self.sides}"


class DiceRoller:
    """Dice rolling backed by the d20 library.

    Example:
        >>> roller = DiceRoller(seed=42)
        >>> check = roller.roll_check(14)
        >>> check.success == (check.roll <= 14)
        True
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def roll_die(self, sides: int) -> int:
        """Roll a single die.

        Args:
            sides: Number of faces.

        Returns:
            Uniform integer in ``[1, sides]``.

        Raises:
            DiceRollError: If sides < 1.
        """
        if sides < 1:
            raise DiceRollError("Dice must have at least one side", expression=f"1d{sides}")
        return d20.roll(f"1d{sides}").total

    def roll_dice(self, count: int, sides: int) -> int:
        """Roll several dice and sum them.

        Args:
            count: Number of dice; 0 yields 0.
            sides: Faces per die.

        Returns:
            Sum of ``count`` independent die rolls.

        Raises:
            DiceRollError: If count is negative or sides < 1.
        """
        if count < 0:
            raise DiceRollError("Cannot roll a negative number of dice", expression=f"{count}d{sides}")
        return sum(self.roll_die(sides) for _ in range(count))

    def roll_check(
        self,
        target: int,
        *,
        roll_type: RollType = RollType.NORMAL,
        bonus: int = 0,
    ) -> CheckResult:
        """Roll a d20 against a target value.

        With advantage the lower of two d20 is kept, with disadvantage the
        higher, since lower is better here.

        Args:
            target: The attribute (or derived value) to roll under.
            roll_type: Normal, advantage or disadvantage.
            bonus: Added to the kept die before comparison (a penalty in
                a roll-low system).

        Returns:
            CheckResult with the kept face plus bonus as ``roll``.
        """
        faces = [self.roll_die(20)]
        if roll_type != RollType.NORMAL:
            faces.append(self.roll_die(20))
        kept = max(faces) if roll_type == RollType.DISADVANTAGE else min(faces)
        result = CheckResult(
            roll=kept + bonus,
            target=target,
            dice=tuple(faces),
            roll_type=roll_type,
        )
        logger.debug(
            "Check rolled",
            dice=result.dice,
            roll=result.roll,
            target=target,
            success=result.success,
        )
        return result

    def roll_formula(self, formula: DiceFormula | str, *, bonus: int = 0) -> int:
        """Roll an ``XdY+Z`` formula using the primitives.

        Args:
            formula: Parsed formula or formula text.
            bonus: Extra flat amount (e.g., caster level).

        Returns:
            Total rolled, never below 0.
        """
        parsed = DiceFormula.parse(formula) if isinstance(formula, str) else formula
        return max(0, self.roll_dice(parsed.count, parsed.sides) + parsed.bonus + bonus)

    # -------------------------------------------------------------------------
    # Free-form notation
    # -------------------------------------------------------------------------

    def roll(
        self,
        expression: str,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> DiceExpression:
        """Roll arbitrary dice notation through the d20 library.

        Intended for free rolls requested from the table; rules resolution
        uses the primitives instead.

        Args:
            expression: Dice expression (e.g., '1d20', '2d6+3').
            roll_type: For d20 expressions, advantage keeps the lowest die
                and disadvantage the highest.

        Returns:
            DiceExpression containing roll results.

        Raises:
            DiceRollError: If the expression is invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        modified_expression = expression
        if "d20" in expression.lower() and roll_type != RollType.NORMAL:
            keep = "kl1" if roll_type == RollType.ADVANTAGE else "kh1"
            modified_expression = re.sub(r"\b1?d20\b", f"2d20{keep}", expression, flags=re.IGNORECASE)

        try:
            result = d20.roll(modified_expression)
        except d20.RollError as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=expression,
            ) from exc

        kept = self._extract_kept_dice(result.expr)
        dice_values = [face for _, face in kept]
        d20_faces = [face for size, face in kept if size == 20]

        rolled = DiceExpression(
            expression=expression,
            total=result.total,
            dice=dice_values,
            modifier=result.total - sum(dice_values),
            is_critical=bool(d20_faces) and d20_faces[0] == 1,
            is_fumble=bool(d20_faces) and d20_faces[0] == 20,
            roll_type=roll_type,
        )
        logger.info("Dice rolled", expression=expression, total=rolled.total)
        return rolled

    def _extract_kept_dice(self, expr: Any) -> list[tuple[int, int]]:
        """Collect (sides, face) pairs of kept dice from a d20 expression tree.

        Args:
            expr: The d20 expression tree.

        Returns:
            Kept dice in expression order.
        """
        values: list[tuple[int, int]] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                for die in node.values:
                    if die.kept:
                        values.append((die.size, die.number))
            elif hasattr(node, "children"):
                for child in node.children:
                    traverse(child)

        traverse(expr)
        return values


class ScriptedDiceRoller(DiceRoller):
    """A DiceRoller that replays a fixed sequence of die faces.

    Every call to ``roll_die`` consumes the next face, so ``roll_dice``,
    ``roll_check`` and ``roll_formula`` are scripted too.

    Example:
        >>> dice = ScriptedDiceRoller([5, 6])
        >>> dice.roll_check(16).success
        True
        >>> dice.roll_die(8)
        6
    """

    def __init__(self, faces: Iterable[int]) -> None:
        """Initialize with the faces to replay.

        Args:
            faces: Die faces in the order they will be returned.
        """
        super().__init__()
        self._faces: deque[int] = deque(faces)

    @property
    def remaining(self) -> int:
        """Number of faces not yet consumed."""
        return len(self._faces)

    def push(self, *faces: int) -> None:
        """Append more faces to the script."""
        self._faces.extend(faces)

    def roll_die(self, sides: int) -> int:
        """Return the next scripted face.

        Raises:
            DiceRollError: If the script is exhausted or the face does not
                fit on the requested die.
        """
        if sides < 1:
            raise DiceRollError("Dice must have at least one side", expression=f"1d{sides}")
        if not self._faces:
            raise DiceRollError("Scripted dice exhausted", expression=f"1d{sides}")
        face = self._faces.popleft()
        if not 1 <= face <= sides:
            raise DiceRollError(
                f"Scripted face {face} does not fit a d{sides}",
                expression=f"1d{sides}",
            )
        return face


# Module-level convenience roller
_default_roller: DiceRoller | None = None


def roll(
    expression: str,
    *,
    roll_type: RollType = RollType.NORMAL,
) -> DiceExpression:
    """Convenience function to roll dice notation.

    Args:
        expression: Dice expression (e.g., '3d6').
        roll_type: Type of roll (normal, advantage, disadvantage).

    Returns:
        DiceExpression containing roll results.
    """
    global _default_roller  # noqa: PLW0603
    if _default_roller is None:
        _default_roller = DiceRoller()
    return _default_roller.roll(expression, roll_type=roll_type)


__all__ = [
    "DiceExpression",
    "CheckResult",
    "DiceFormula",
    "DiceRoller",
    "ScriptedDiceRoller",
    "roll",
]
