"""
Shared storage of raw table draws.

A table flagged ``store`` caches its raw (pre-filter) draw here under its
own name; tables flagged ``reuse`` read it back so several tables can
interpret one roll. Entries are meant to live for a single top-level
evaluation.
"""

import logging
from typing import Optional

from rolltables.tables.table_types import RollResult

logger = logging.getLogger(__name__)


class RollCache:
    """Mapping of table name to that table's most recent stored raw draw."""

    def __init__(self):
        self._results: dict[str, RollResult] = {}

    def get(self, name: str) -> Optional[RollResult]:
        return self._results.get(name)

    def put(self, name: str, raw: RollResult) -> None:
        """Store a raw draw, overwriting any previous value."""
        self._results[name] = raw
        logger.debug(f"Cached draw for {name}: {list(raw.values)}")

    def discard(self, name: str) -> None:
        """Remove a table's slot if present."""
        if self._results.pop(name, None) is not None:
            logger.debug(f"Released cached draw for {name}")

    def clear(self) -> None:
        self._results.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._results

    def __len__(self) -> int:
        return len(self._results)


# Global roll cache instance
_roll_cache: Optional[RollCache] = None


def get_roll_cache() -> RollCache:
    """Get the global RollCache instance."""
    global _roll_cache
    if _roll_cache is None:
        _roll_cache = RollCache()
    return _roll_cache
