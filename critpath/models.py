from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple


def _parse_duration(value: Any) -> float:
    if isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return math.nan


def _parse_predecessor_ids(value: Any) -> Tuple[str, ...]:
    """Normalize predecessor references to an ordered tuple of unique tokens."""
    if value is None:
        return ()
    if isinstance(value, str):
        tokens = [part.strip() for part in re.split(r"[;,]", value)]
    elif isinstance(value, (set, frozenset)):
        tokens = sorted(str(part).strip() for part in value)
    elif isinstance(value, Iterable):
        tokens = [str(part).strip() for part in value]
    else:
        tokens = [str(value).strip()]

    seen: set[str] = set()
    ordered: List[str] = []
    for token in tokens:
        if not token or token in {"-", "—"} or token in seen:
            continue
        seen.add(token)
        ordered.append(token)
    return tuple(ordered)


@dataclass(frozen=True)
class Activity:
    """A schedulable unit of work as entered by the caller."""

    id: str
    name: str
    duration: float
    predecessor_ids: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", "" if self.id is None else str(self.id).strip())
        object.__setattr__(self, "name", str(self.name or "").strip())
        object.__setattr__(self, "duration", _parse_duration(self.duration))
        object.__setattr__(self, "predecessor_ids", _parse_predecessor_ids(self.predecessor_ids))

    @property
    def is_valid(self) -> bool:
        return bool(self.id) and bool(self.name) and math.isfinite(self.duration) and self.duration > 0

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Activity":
        """
        Build an activity from a loose mapping.

        Accepts ``predecessor_ids`` or ``predecessors`` for the dependency set,
        either as an iterable of ids or a delimited string like ``"A;B, C"``.
        """
        if isinstance(record, Activity):
            return record
        predecessors = record.get("predecessor_ids", record.get("predecessors"))
        return cls(
            id=record.get("id", ""),
            name=record.get("name", ""),
            duration=record.get("duration"),
            predecessor_ids=predecessors,
        )

    def __str__(self) -> str:
        preds = ";".join(self.predecessor_ids) if self.predecessor_ids else "-"
        return f"{self.id} ({self.name}, {self.duration:g}) <- {preds}"


@dataclass
class ScheduleNode:
    """Working node of one computation, with all scheduling attributes."""

    id: str
    name: str
    duration: float
    predecessor_ids: List[str] = field(default_factory=list)
    successor_ids: List[str] = field(default_factory=list)

    # Forward pass results
    earliest_start: float = 0.0
    earliest_finish: float = 0.0

    # Backward pass results
    latest_start: float = math.inf
    latest_finish: float = math.inf

    # Float calculations
    total_float: float = 0.0
    free_float: float = 0.0

    is_critical: bool = False

    @property
    def is_sink(self) -> bool:
        return not self.successor_ids


@dataclass(frozen=True)
class ActivityMetrics:
    """One row of the schedule report."""

    id: str
    name: str
    duration: float
    earliest_start: float
    earliest_finish: float
    latest_start: float
    latest_finish: float
    total_float: float
    free_float: float
    is_critical: bool

    @classmethod
    def from_node(cls, node: ScheduleNode) -> "ActivityMetrics":
        return cls(
            id=node.id,
            name=node.name,
            duration=node.duration,
            earliest_start=node.earliest_start,
            earliest_finish=node.earliest_finish,
            latest_start=node.latest_start,
            latest_finish=node.latest_finish,
            total_float=node.total_float,
            free_float=node.free_float,
            is_critical=node.is_critical,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "duration": self.duration,
            "earliest_start": self.earliest_start,
            "earliest_finish": self.earliest_finish,
            "latest_start": self.latest_start,
            "latest_finish": self.latest_finish,
            "total_float": self.total_float,
            "free_float": self.free_float,
            "is_critical": self.is_critical,
        }


@dataclass(frozen=True)
class ScheduleResult:
    """Full outcome of one schedule computation."""

    activities: Tuple[ActivityMetrics, ...] = ()
    critical_path_ids: Tuple[str, ...] = ()
    project_duration: float = 0
    warnings: Tuple[str, ...] = ()
    calculation_log: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def empty(cls, warnings: Iterable[str] = (), calculation_log: Iterable[str] = ()) -> "ScheduleResult":
        return cls(warnings=tuple(warnings), calculation_log=tuple(calculation_log))

    @property
    def is_empty(self) -> bool:
        return not self.activities

    def get(self, activity_id: str) -> ActivityMetrics:
        for row in self.activities:
            if row.id == activity_id:
                return row
        raise KeyError(activity_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activities": [row.to_dict() for row in self.activities],
            "critical_path_ids": list(self.critical_path_ids),
            "project_duration": self.project_duration,
            "warnings": list(self.warnings),
        }
