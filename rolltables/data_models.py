"""
Shared data structures for the random table engine.

All randomness in the engine flows through DiceRoller so that a session
can be seeded, logged and reproduced.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence
import random
import re


# =============================================================================
# DICE
# =============================================================================


DICE_NOTATION = re.compile(r"([1-9]\d*)?d([1-9]\d*)")

# Upper bound on N in NdM; larger counts are not treated as dice
MAX_DICE = 1000


class DiceRoller:
    """
    Centralized randomization interface.
    All dice rolls must go through this class for reproducibility and logging.
    """

    _instance = None
    _seed: Optional[int] = None
    _roll_log: list = []
    _rng: random.Random = random.Random()

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def set_seed(cls, seed: int) -> None:
        """Set random seed for reproducibility."""
        cls._seed = seed
        cls._rng.seed(seed)

    @classmethod
    def get_seed(cls) -> Optional[int]:
        return cls._seed

    @classmethod
    def roll(cls, dice: str, reason: str = "") -> "DiceResult":
        """
        Roll dice using compact notation (e.g., '2d6', 'd20').

        Args:
            dice: Dice notation string, ``[N]dM``
            reason: Why this roll is being made (for logging)

        Returns:
            DiceResult with individual rolls and total

        Raises:
            ValueError: If the notation is not ``[N]dM``, or N exceeds MAX_DICE
        """
        match = DICE_NOTATION.fullmatch(dice)
        if match is None:
            raise ValueError(f"Invalid dice notation: {dice!r}")

        num_dice = int(match.group(1)) if match.group(1) else 1
        die_size = int(match.group(2))
        if num_dice > MAX_DICE:
            raise ValueError(f"Too many dice in {dice!r} (max {MAX_DICE})")

        rolls = [cls._rng.randint(1, die_size) for _ in range(num_dice)]
        return cls._record(dice, rolls, reason)

    @classmethod
    def randint(cls, low: int, high: int, reason: str = "") -> int:
        """Return a random integer in [low, high], inclusive."""
        value = cls._rng.randint(low, high)
        cls._record(f"range({low}-{high})", [value], reason)
        return value

    @classmethod
    def choice(cls, seq: Sequence[Any], reason: str = "") -> Any:
        """
        Choose a random element from a non-empty sequence.

        Raises:
            IndexError: If sequence is empty
        """
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        index = cls.randint(1, len(seq), reason or f"choice from {len(seq)} options")
        return seq[index - 1]

    @classmethod
    def _record(cls, notation: str, rolls: list[int], reason: str) -> "DiceResult":
        result = DiceResult(
            notation=notation,
            rolls=rolls,
            total=sum(rolls),
            reason=reason,
        )
        cls._roll_log.append(result)

        from rolltables.observability.run_log import get_run_log

        get_run_log().log_roll(
            notation=notation,
            rolls=rolls,
            total=result.total,
            reason=reason,
        )
        return result

    @classmethod
    def get_roll_log(cls) -> list:
        """Get the complete roll log for the session."""
        return cls._roll_log.copy()

    @classmethod
    def clear_roll_log(cls) -> None:
        """Clear the roll log."""
        cls._roll_log = []


@dataclass
class DiceResult:
    """Result of a dice roll with full information."""
    notation: str
    rolls: list[int]
    total: int
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.notation}: {self.rolls} = {self.total}"
