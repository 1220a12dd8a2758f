"""
Event log for table engine sessions.

Every dice roll, every pass through the roll pipeline and every top-level
evaluation lands here, in order, so a result can be traced back to the
dice that produced it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional
import json
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Kinds of recorded events."""

    ROLL = "roll"
    TABLE_LOOKUP = "table_lookup"
    EVALUATION = "evaluation"


@dataclass
class LogEvent:
    """Fields shared by every recorded event."""

    # Subclasses overwrite event_type in __post_init__
    event_type: EventType = EventType.ROLL
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
        }


@dataclass
class RollEvent(LogEvent):
    """Dice thrown by the DiceRoller."""

    notation: str = ""  # "2d6", or "range(1-12)" for a row pick
    rolls: list[int] = field(default_factory=list)
    total: int = 0
    reason: str = ""

    def __post_init__(self):
        self.event_type = EventType.ROLL

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "notation": self.notation,
            "rolls": self.rolls,
            "total": self.total,
            "reason": self.reason,
        }

    def __str__(self) -> str:
        return f"[{self.sequence_number}] ROLL {self.notation}: {self.rolls} = {self.total} ({self.reason})"


@dataclass
class TableLookupEvent(LogEvent):
    """One table taken through the roll pipeline."""

    table_name: str = ""
    raw_rolls: list[int] = field(default_factory=list)  # Before the filter
    selector: Optional[int] = None  # None when the filter gave nothing
    result_text: str = ""
    reused_from: Optional[str] = None

    def __post_init__(self):
        self.event_type = EventType.TABLE_LOOKUP

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "table_name": self.table_name,
            "raw_rolls": self.raw_rolls,
            "selector": self.selector,
            "result_text": self.result_text,
            "reused_from": self.reused_from,
        }

    def __str__(self) -> str:
        reuse_str = f" (reusing {self.reused_from})" if self.reused_from else ""
        return (
            f"[{self.sequence_number}] TABLE {self.table_name} "
            f"{self.raw_rolls} -> {self.selector}{reuse_str}: {self.result_text}"
        )


@dataclass
class EvaluationEvent(LogEvent):
    """Free text resolved by evaluate()."""

    text: str = ""
    result: str = ""

    def __post_init__(self):
        self.event_type = EventType.EVALUATION

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "text": self.text, "result": self.result}

    def __str__(self) -> str:
        return f"[{self.sequence_number}] EVAL {self.text!r} -> {self.result!r}"


class RunLog:
    """
    Ordered record of engine events for one process.

    Use get_run_log() rather than constructing one directly.
    """

    def __init__(self):
        self._events: list[LogEvent] = []
        self._seed: Optional[int] = None
        self._session_start: datetime = datetime.now()

    def reset(self) -> None:
        """Forget every event and start a new session."""
        self._events = []
        self._session_start = datetime.now()
        logger.debug("RunLog reset")

    def set_seed(self, seed: int) -> None:
        self._seed = seed
        logger.info(f"RunLog seed set: {seed}")

    def get_seed(self) -> Optional[int]:
        return self._seed

    def _append(self, event: LogEvent) -> LogEvent:
        event.sequence_number = len(self._events) + 1
        self._events.append(event)
        return event

    def log_roll(self, notation: str, rolls: list[int], total: int, reason: str = "") -> RollEvent:
        return self._append(
            RollEvent(notation=notation, rolls=list(rolls), total=total, reason=reason)
        )

    def log_table_lookup(
        self,
        table_name: str,
        raw_rolls: list[int],
        selector: Optional[int],
        result_text: str,
        reused_from: Optional[str] = None,
    ) -> TableLookupEvent:
        return self._append(
            TableLookupEvent(
                table_name=table_name,
                raw_rolls=list(raw_rolls),
                selector=selector,
                result_text=result_text,
                reused_from=reused_from,
            )
        )

    def log_evaluation(self, text: str, result: str) -> EvaluationEvent:
        return self._append(EvaluationEvent(text=text, result=result))

    def get_rolls(self) -> list[RollEvent]:
        return [e for e in self._events if isinstance(e, RollEvent)]

    def get_table_lookups(self) -> list[TableLookupEvent]:
        return [e for e in self._events if isinstance(e, TableLookupEvent)]

    def get_evaluations(self) -> list[EvaluationEvent]:
        return [e for e in self._events if isinstance(e, EvaluationEvent)]

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Counts of each event kind plus session metadata."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "rolls": len(self.get_rolls()),
            "table_lookups": len(self.get_table_lookups()),
            "evaluations": len(self.get_evaluations()),
        }

    def save(self, filepath: str) -> None:
        """Write the summary and every event to ``filepath`` as JSON."""
        payload = {
            **self.get_summary(),
            "events": [e.to_dict() for e in self._events],
        }
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        logger.info(f"RunLog saved to {filepath}")

    def format_log(self, max_events: Optional[int] = None) -> str:
        """
        Render the log for a terminal.

        Args:
            max_events: Only show the most recent events

        Returns:
            Header lines followed by one line per event
        """
        events = self._events[-max_events:] if max_events else self._events
        lines = [
            "=== Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {self._seed if self._seed is not None else 'not set'}",
            f"Total Events: {len(self._events)}",
            "",
        ]
        lines.extend(str(event) for event in events)
        return "\n".join(lines)


_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the global RunLog instance."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog()
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the global RunLog instance."""
    log = get_run_log()
    log.reset()
    return log
