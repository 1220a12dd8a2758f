"""
The roll pipeline: draw, cache, filter, fetch and resolve a single table.

Evaluation state (registry and roll cache) travels in an explicit
RollContext so that recursive resolution never depends on ambient globals
and tests can run against isolated instances.
"""

import logging
from dataclasses import dataclass, field

from rolltables.observability.run_log import get_run_log
from rolltables.tables.roll_cache import RollCache, get_roll_cache
from rolltables.tables.table_registry import (
    TableRef,
    TableRegistry,
    get_table_registry,
)
from rolltables.tables.table_types import RollResult, TableDefinition

logger = logging.getLogger(__name__)


@dataclass
class RollContext:
    """Shared state for one evaluation call tree."""
    registry: TableRegistry
    cache: RollCache = field(default_factory=RollCache)

    @classmethod
    def default(cls) -> "RollContext":
        """Context bound to the process-wide registry and cache."""
        return cls(registry=get_table_registry(), cache=get_roll_cache())


def draw_table(table: TableDefinition, ctx: RollContext) -> RollResult:
    """
    Produce a table's raw draw and cache it if the table stores.

    A reuse table adopts its source's cached draw, drawing for the source
    first when nothing is cached yet.
    """
    if table.reuse:
        raw = ctx.cache.get(table.reuse)
        if raw is None:
            source = ctx.registry.lookup(table.reuse)
            raw = draw_table(source, ctx)
            ctx.cache.put(source.name, raw)
        else:
            logger.debug(f"{table.name} reusing cached draw of {table.reuse}")
    else:
        raw = RollResult.of(table.roller(table.data))

    if table.store:
        ctx.cache.put(table.name, raw)
    return raw


def roll_table(ref: TableRef, ctx: RollContext) -> str:
    """
    Evaluate a table and return its fully resolved text.

    The fetched entry is itself resolved as template text, so tables may
    reference other tables. The table's own cache slot is released when
    evaluation finishes, whether or not it succeeded.

    Raises:
        TableNotFoundError: If ``ref`` names an unregistered table
        InvalidReferenceError: If ``ref`` is of an unsupported type
    """
    table = ctx.registry.lookup(ref)
    if isinstance(table, int):
        return str(table)

    try:
        raw = draw_table(table, ctx)
        selector = RollResult.of(table.filter(raw))
        entry = None if selector.is_empty else table.fetcher(table.data, selector)

        if entry is None or entry == "":
            text = ""
        else:
            from rolltables.tables.template_engine import resolve_text

            text = resolve_text(str(entry), ctx)

        logger.debug(f"Rolled {table.name}: {list(raw.values)} -> {selector.as_int()}: {text!r}")
        get_run_log().log_table_lookup(
            table_name=table.name,
            raw_rolls=list(raw.values),
            selector=selector.as_int(),
            result_text=text,
            reused_from=table.reuse,
        )
        return text
    finally:
        ctx.cache.discard(table.name)
