"""
Random tables and their resolution.

This module provides:
- Table definitions with pluggable roller, filter and fetcher behaviour
- A registry of named tables, loadable from JSON
- Dice notation evaluation and the default table behaviours
- The roll pipeline with shared store/reuse draws
- ``${...}`` template interpolation
"""

from rolltables.tables.table_types import (
    RollKind,
    RollResult,
    RangeEntry,
    TableDefinition,
)
from rolltables.tables.dice_expression import (
    parse_dice,
    evaluate_dice,
    default_roller,
    default_filter,
    default_fetcher,
    dice_roller,
    take_highest,
    take_lowest,
)
from rolltables.tables.roll_cache import RollCache, get_roll_cache
from rolltables.tables.table_registry import (
    TableRegistry,
    TableNotFoundError,
    InvalidReferenceError,
    TableLoadError,
    get_table_registry,
    reset_table_registry,
)
from rolltables.tables.roll_pipeline import RollContext, draw_table, roll_table
from rolltables.tables.template_engine import (
    PLACEHOLDER_PATTERN,
    evaluate,
    resolve_placeholder,
    resolve_text,
)

__all__ = [
    "RollKind",
    "RollResult",
    "RangeEntry",
    "TableDefinition",
    "parse_dice",
    "evaluate_dice",
    "default_roller",
    "default_filter",
    "default_fetcher",
    "dice_roller",
    "take_highest",
    "take_lowest",
    "RollCache",
    "get_roll_cache",
    "TableRegistry",
    "TableNotFoundError",
    "InvalidReferenceError",
    "TableLoadError",
    "get_table_registry",
    "reset_table_registry",
    "RollContext",
    "draw_table",
    "roll_table",
    "PLACEHOLDER_PATTERN",
    "evaluate",
    "resolve_placeholder",
    "resolve_text",
]
