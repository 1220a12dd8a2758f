"""
Template interpolation for the random table engine.

Resolves ``${...}`` placeholders in free text. A placeholder names a
registered table, holds dice notation, or is passed through verbatim.
"""

import logging
import re
from typing import Callable, Optional

from rolltables.observability.run_log import get_run_log
from rolltables.tables.dice_expression import evaluate_dice
from rolltables.tables.roll_pipeline import RollContext, roll_table

logger = logging.getLogger(__name__)

# A payload runs to the next "}" and may not contain "${"
PLACEHOLDER_PATTERN = re.compile(r"\$\{((?:(?!\$\{)[^}])*)\}")

Reporter = Callable[[str, str], None]


def resolve_placeholder(payload: str, ctx: RollContext) -> str:
    """
    Resolve a single placeholder payload.

    Table names win over dice notation; anything else is returned unchanged.
    """
    table = ctx.registry.lookup(payload, allow_missing=True)
    if table is not None:
        return roll_table(table, ctx)

    total = evaluate_dice(payload)
    if total is not None:
        return str(total)

    logger.debug(f"Passing through unresolved token: {payload!r}")
    return payload


def resolve_text(text: str, ctx: RollContext) -> str:
    """Replace every placeholder in ``text``, left to right."""
    return PLACEHOLDER_PATTERN.sub(
        lambda match: resolve_placeholder(match.group(1), ctx), text
    )


def evaluate(
    text: str,
    ctx: Optional[RollContext] = None,
    reporter: Optional[Reporter] = None,
) -> str:
    """
    Evaluate free text: a table name, a dice expression, or a template.

    Text without any ``${`` is treated as a single placeholder, so
    ``"Weather"`` and ``"${Weather}"`` resolve the same way. The roll cache
    is emptied before and after, limiting stored draws to this call.

    Args:
        text: Text to evaluate
        ctx: Evaluation context (default: process-wide registry and cache)
        reporter: Optional callable receiving ``(text, result)``

    Returns:
        The fully resolved string
    """
    ctx = ctx or RollContext.default()
    ctx.cache.clear()
    try:
        if "${" in text:
            result = resolve_text(text, ctx)
        else:
            result = resolve_placeholder(text.strip(), ctx)
    finally:
        ctx.cache.clear()

    get_run_log().log_evaluation(text=text, result=result)
    if reporter is not None:
        reporter(text, result)
    return result
