"""
Table registration and lookup for the random table engine.

Provides the process-wide store of table definitions, reference
resolution for the roll pipeline, and loading of tables from JSON files.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from rolltables.tables.dice_expression import (
    FILTERS,
    default_fetcher,
    default_filter,
    default_roller,
    dice_roller,
)
from rolltables.tables.table_types import (
    Fetcher,
    Filter,
    RangeEntry,
    Roller,
    TableDefinition,
    TableEntry,
)

logger = logging.getLogger(__name__)


class TableNotFoundError(LookupError):
    """No table is registered under the requested name."""


class InvalidReferenceError(TypeError):
    """A table reference of an unsupported kind was given."""


class TableLoadError(ValueError):
    """A table file could not be parsed into table definitions."""


TableRef = Union[TableDefinition, str, int]


def _coerce_entry(entry: Any) -> TableEntry:
    """
    Normalise one registered entry.

    Strings and RangeEntry objects are kept, numbers become text, and any
    two-item list or tuple ending in a string is a weighted-range pair.

    Raises:
        TypeError: For any other entry shape
    """
    if isinstance(entry, (str, RangeEntry)):
        return entry
    if isinstance(entry, (tuple, list)) and len(entry) == 2 and isinstance(entry[1], str):
        return RangeEntry.from_pair(entry[0], entry[1])
    if isinstance(entry, (int, float)) and not isinstance(entry, bool):
        return str(entry)
    raise TypeError(f"Unsupported table entry: {entry!r}")


def _parse_json_entry(entry: Any) -> TableEntry:
    """A JSON entry is a string, or an object with ``result`` and an optional roll range."""
    if not isinstance(entry, dict):
        return str(entry)
    if "roll" in entry or "roll_min" in entry:
        return RangeEntry.from_dict(entry)
    return entry.get("result", entry.get("description", ""))


class TableRegistry:
    """
    Store of every registered table, keyed by name.

    Registering a name twice replaces the earlier definition entirely.

    Usage:
        registry = TableRegistry()
        registry.register("Weather", ["Rain", "Fog", "Clear"])
        registry.register("Oracle", [(2, "No"), (range(3, 7), "Yes")],
                          roller=dice_roller("1d6"), store=True)
    """

    def __init__(self):
        self._tables: dict[str, TableDefinition] = {}

    def register(
        self,
        name: str,
        data: Iterable[Any],
        *,
        roller: Optional[Roller] = None,
        filter: Optional[Filter] = None,
        fetcher: Optional[Fetcher] = None,
        private: bool = False,
        store: bool = False,
        reuse: Optional[str] = None,
    ) -> None:
        """
        Register a table, replacing any table of the same name.

        Args:
            name: Table name
            data: Entries; strings, RangeEntry objects or
                ``(indices-or-range, content)`` pairs
            roller: Produces the raw draw from the data (default: row pick)
            filter: Reduces the raw draw to a selector (default: sum)
            fetcher: Maps ``(data, selector)`` to an entry (default lookup)
            private: Exclude from list_public()
            store: Cache this table's raw draw under its own name
            reuse: Name of a stored table whose draw replaces our own
        """
        self.register_table(
            TableDefinition(
                name=sys.intern(name),
                data=tuple(_coerce_entry(e) for e in data),
                roller=roller or default_roller,
                filter=filter or default_filter,
                fetcher=fetcher or default_fetcher,
                private=private,
                store=store,
                reuse=sys.intern(reuse) if reuse else None,
            )
        )

    def register_table(self, table: TableDefinition) -> None:
        """Register a prebuilt table definition."""
        if table.name in self._tables:
            logger.debug(f"Replacing table definition: {table.name}")
        self._tables[table.name] = table

    def lookup(
        self, ref: TableRef, allow_missing: bool = False
    ) -> Union[TableDefinition, int, None]:
        """
        Resolve a table reference.

        Args:
            ref: A TableDefinition (returned as-is), a table name, or an int
                (returned unchanged as a literal value)
            allow_missing: Return None instead of raising for unknown names

        Raises:
            TableNotFoundError: Unknown name and allow_missing is False
            InvalidReferenceError: ref is of an unsupported type
        """
        if isinstance(ref, TableDefinition):
            return ref
        if isinstance(ref, bool):
            raise InvalidReferenceError(f"Invalid table reference: {ref!r}")
        if isinstance(ref, int):
            return ref
        if isinstance(ref, str):
            table = self._tables.get(ref)
            if table is None and not allow_missing:
                raise TableNotFoundError(f"Unknown table: {ref}")
            return table
        raise InvalidReferenceError(f"Invalid table reference: {ref!r}")

    def list_public(self) -> list[str]:
        """Names of all tables that are not private, sorted."""
        return sorted(name for name, t in self._tables.items() if not t.private)

    def names(self) -> list[str]:
        return sorted(self._tables)

    def clear(self) -> None:
        self._tables.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    # =========================================================================
    # JSON LOADING
    # =========================================================================

    def load_tables_from_json(self, file_path: Path) -> int:
        """
        Load tables from a JSON file.

        The file holds ``{"tables": [...]}``, a list of table objects, or a
        single table object.

        Args:
            file_path: Path to JSON file containing table definitions

        Returns:
            Number of tables loaded

        Raises:
            TableLoadError: If the file is not valid table JSON
        """
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise TableLoadError(f"Invalid JSON in {file_path}: {e}") from e

        if isinstance(data, dict):
            tables_data = data.get("tables", [data])
        elif isinstance(data, list):
            tables_data = data
        else:
            raise TableLoadError(f"Expected an object or list in {file_path}")

        for table_data in tables_data:
            self._register_json_table(table_data, file_path)

        logger.info(f"Loaded {len(tables_data)} tables from {file_path}")
        return len(tables_data)

    def load_tables_from_directory(self, directory: Path) -> int:
        """Load every ``*.json`` file in ``directory``, in name order."""
        json_files = sorted(Path(directory).glob("*.json"))
        logger.info(f"Found {len(json_files)} table files in {directory}")
        return sum(self.load_tables_from_json(path) for path in json_files)

    def _register_json_table(self, data: Any, source: Path) -> None:
        """Parse and register one table object from JSON data."""
        if not isinstance(data, dict) or not data.get("name"):
            raise TableLoadError(f"Table without a name in {source}")

        name = data["name"]
        try:
            if not isinstance(name, str):
                raise TypeError(f"table name must be a string, not {type(name).__name__}")
            reuse = data.get("reuse")
            if reuse is not None and not isinstance(reuse, str):
                raise TypeError(f"reuse must name a table, not {reuse!r}")
            entries = [_parse_json_entry(e) for e in data.get("entries", [])]
            roller = dice_roller(data["roller"]) if data.get("roller") else None
            filter_fn = self._parse_filter(data.get("filter"))
        except (KeyError, TypeError, ValueError) as e:
            raise TableLoadError(f"Invalid table {name!r} in {source}: {e}") from e

        self.register(
            name,
            entries,
            roller=roller,
            filter=filter_fn,
            private=bool(data.get("private", False)),
            store=bool(data.get("store", False)),
            reuse=reuse,
        )

    @staticmethod
    def _parse_filter(value: Any) -> Optional[Filter]:
        """Parse ``"sum"``, ``"highest"`` or ``{"highest": 2}`` style filters."""
        if value is None:
            return None
        if isinstance(value, str):
            value = {value: 1}
        if not isinstance(value, dict) or len(value) != 1:
            raise ValueError(f"Invalid filter: {value!r}")
        ((kind, count),) = value.items()
        if kind not in FILTERS:
            raise ValueError(f"Unknown filter: {kind!r}")
        return FILTERS[kind](count)


# Global table registry instance
_table_registry: Optional[TableRegistry] = None


def get_table_registry() -> TableRegistry:
    """Get the global TableRegistry instance."""
    global _table_registry
    if _table_registry is None:
        _table_registry = TableRegistry()
    return _table_registry


def reset_table_registry() -> TableRegistry:
    """Clear and return the global TableRegistry instance."""
    registry = get_table_registry()
    registry.clear()
    return registry
