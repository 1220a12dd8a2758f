"""
Dice expression evaluation and the default table behaviours.

Dice notation is ``[N]dM``: the sum of N (default 1) uniform draws from
1..M. The default roller, filter and fetcher defined here are used by any
table that does not configure its own.
"""

import logging
from typing import Any, Callable, Optional

from rolltables.data_models import DICE_NOTATION, MAX_DICE, DiceRoller
from rolltables.tables.table_types import RangeEntry, RollResult

logger = logging.getLogger(__name__)


def parse_dice(text: str) -> Optional[tuple[int, int]]:
    """
    Parse dice notation.

    Returns:
        ``(num_dice, die_size)``, or None when ``text`` is not dice notation
        or asks for more than MAX_DICE dice
    """
    match = DICE_NOTATION.fullmatch(text)
    if match is None:
        return None
    num_dice = int(match.group(1)) if match.group(1) else 1
    if num_dice > MAX_DICE:
        return None
    return num_dice, int(match.group(2))


def evaluate_dice(text: str) -> Optional[int]:
    """Roll ``text`` as dice notation; None if it is not dice notation."""
    if parse_dice(text) is None:
        return None
    result = DiceRoller.roll(text, f"dice expression {text}")
    logger.debug(f"Dice expression {result}")
    return result.total


# =============================================================================
# DEFAULT BEHAVIOURS
# =============================================================================


def default_roller(data: tuple) -> RollResult:
    """Pick a row: a single uniform draw from 1..len(data)."""
    if not data:
        return RollResult.empty()
    return RollResult.sequence([DiceRoller.randint(1, len(data), "row pick")])


def default_filter(raw: RollResult) -> RollResult:
    """Sum every die in the raw draw into one selector."""
    if raw.is_empty:
        return raw
    return RollResult.integer(raw.total())


def default_fetcher(data: tuple, selector: RollResult) -> Optional[str]:
    """
    Map a selector to an entry of ``data``.

    An empty selector picks a random entry. Weighted-range data returns the
    entry whose range contains the selector. Anything else treats the
    selector as a 1-based row number.
    """
    if not data:
        return None

    if selector.is_empty:
        entry = DiceRoller.choice(data, "random entry")
        return entry.content if isinstance(entry, RangeEntry) else entry

    value = selector.as_int()
    if all(isinstance(e, RangeEntry) for e in data):
        for entry in data:
            if entry.matches(value):
                return entry.content
        return None

    if 1 <= value <= len(data):
        entry = data[value - 1]
        return entry.content if isinstance(entry, RangeEntry) else entry
    return None


# =============================================================================
# ROLLER AND FILTER FACTORIES
# =============================================================================


def dice_roller(notation: str) -> Callable[[tuple], RollResult]:
    """
    Build a roller that ignores the table data and rolls ``notation``.

    The roller returns the individual die faces, so the default filter
    sums them.

    Raises:
        ValueError: If ``notation`` is not dice notation
    """
    if parse_dice(notation) is None:
        raise ValueError(f"Invalid dice notation: {notation!r}")

    def roll(data: tuple) -> RollResult:
        return RollResult.sequence(DiceRoller.roll(notation, f"table roller {notation}").rolls)

    roll.__name__ = f"roll_{notation}"
    return roll


def take_highest(count: int = 1) -> Callable[[RollResult], RollResult]:
    """Build a filter that sums the ``count`` highest dice."""

    def keep(raw: RollResult) -> RollResult:
        if raw.is_empty:
            return raw
        return RollResult.integer(sum(sorted(raw.values, reverse=True)[:count]))

    return keep


def take_lowest(count: int = 1) -> Callable[[RollResult], RollResult]:
    """Build a filter that sums the ``count`` lowest dice."""

    def keep(raw: RollResult) -> RollResult:
        if raw.is_empty:
            return raw
        return RollResult.integer(sum(sorted(raw.values)[:count]))

    return keep


FILTERS: dict[str, Callable[[int], Callable[[RollResult], Any]]] = {
    "sum": lambda _count=1: default_filter,
    "highest": take_highest,
    "lowest": take_lowest,
}
