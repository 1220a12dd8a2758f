"""
Table type definitions for the random table engine.

A table is data, not a subtype: its draw, filter and fetch behaviour are
stored as plain callables on an immutable TableDefinition.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union


class RollKind(str, Enum):
    """Shapes a roll result can take as it flows through the pipeline."""
    INTEGER = "integer"
    SEQUENCE = "sequence"
    EMPTY = "empty"


@dataclass(frozen=True)
class RollResult:
    """
    Output of a roller or filter.

    Rollers usually produce a SEQUENCE of die faces, filters usually reduce
    that to an INTEGER selector, and either may produce EMPTY.
    """
    kind: RollKind
    values: tuple[int, ...] = ()

    @classmethod
    def integer(cls, value: int) -> "RollResult":
        return cls(RollKind.INTEGER, (value,))

    @classmethod
    def sequence(cls, values: Iterable[int]) -> "RollResult":
        return cls(RollKind.SEQUENCE, tuple(values))

    @classmethod
    def empty(cls) -> "RollResult":
        return cls(RollKind.EMPTY)

    @classmethod
    def of(cls, value: Any) -> "RollResult":
        """
        Coerce a roller/filter return value into a RollResult.

        Accepts an existing RollResult, an int, an iterable of ints, or None.

        Raises:
            TypeError: For booleans, strings or non-integer members
        """
        if isinstance(value, RollResult):
            return value
        if value is None:
            return cls.empty()
        if isinstance(value, bool):
            raise TypeError("A roll result cannot be a boolean")
        if isinstance(value, int):
            return cls.integer(value)
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            raise TypeError(f"Cannot interpret {value!r} as a roll result")

        values = tuple(value)
        if not values:
            return cls.empty()
        for v in values:
            if isinstance(v, bool) or not isinstance(v, int):
                raise TypeError(f"Roll values must be integers, got {v!r}")
        return cls.sequence(values)

    @property
    def is_empty(self) -> bool:
        return self.kind == RollKind.EMPTY

    def total(self) -> int:
        """Sum of all values; 0 when empty."""
        return sum(self.values)

    def as_int(self) -> Optional[int]:
        """The selector as a single integer, or None when empty."""
        if self.is_empty:
            return None
        return self.total()

    def __iter__(self):
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class RangeEntry:
    """
    A weighted-range entry: content selected by any value in ``selector``.

    ``selector`` is either a ``range`` (a contiguous span of roll values) or a
    ``frozenset`` of explicit roll values.
    """
    selector: Union[range, frozenset]
    content: str

    def matches(self, value: int) -> bool:
        """Check if a roll value selects this entry."""
        return value in self.selector

    @classmethod
    def from_pair(cls, key: Any, content: str) -> "RangeEntry":
        """
        Build an entry from an ``(indices-or-range, content)`` pair.

        ``key`` may be a single int, a ``range`` or an iterable of ints.
        """
        if isinstance(key, range):
            return cls(key, content)
        if isinstance(key, bool):
            raise TypeError("A range key cannot be a boolean")
        if isinstance(key, int):
            return cls(frozenset((key,)), content)
        if isinstance(key, Iterable) and not isinstance(key, (str, bytes)):
            return cls(frozenset(key), content)
        raise TypeError(f"Cannot interpret {key!r} as a roll range")

    @classmethod
    def from_dict(cls, data: dict) -> "RangeEntry":
        """Build an entry from ``{"roll": ..., "result": ...}`` or ``roll_min``/``roll_max``."""
        content = data.get("result", data.get("description", ""))
        if "roll" in data:
            return cls.from_pair(data["roll"], content)
        roll_min = data["roll_min"]
        roll_max = data.get("roll_max", roll_min)
        return cls(range(roll_min, roll_max + 1), content)

    def __str__(self) -> str:
        if isinstance(self.selector, range):
            span = f"{self.selector.start}-{self.selector.stop - 1}"
        else:
            span = ",".join(str(v) for v in sorted(self.selector))
        return f"[{span}] {self.content}"


TableEntry = Union[str, RangeEntry]
Roller = Callable[[tuple], Any]
Filter = Callable[[RollResult], Any]
Fetcher = Callable[[tuple, RollResult], Optional[str]]


@dataclass(frozen=True)
class TableDefinition:
    """
    A registered random table.

    Tables are immutable once built; registering the same name again
    replaces the definition as a whole.
    """
    name: str
    data: tuple
    roller: Roller = field(repr=False)
    filter: Filter = field(repr=False)
    fetcher: Fetcher = field(repr=False)
    private: bool = False
    store: bool = False
    reuse: Optional[str] = None

    @property
    def is_weighted(self) -> bool:
        """True when every entry is a weighted-range entry."""
        return bool(self.data) and all(isinstance(e, RangeEntry) for e in self.data)
