"""
Observability for the random table engine.

Keeps an in-memory log of every dice roll, table lookup and top-level
evaluation so that a result can be inspected or exported.
"""

from rolltables.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RollEvent,
    TableLookupEvent,
    EvaluationEvent,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RollEvent",
    "TableLookupEvent",
    "EvaluationEvent",
    "get_run_log",
    "reset_run_log",
]
