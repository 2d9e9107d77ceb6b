"""Immutable snapshot and result types for the scheduling suggestion engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional, Tuple
from uuid import UUID

TaskPriority = Literal["URGENT", "HIGH", "MEDIUM", "LOW"]
FactorType = Literal["availability", "dependency", "priority", "time_estimate", "workload"]

TASK_STATUS_DONE = "DONE"


@dataclass(frozen=True)
class DependencySnapshot:
    """The parts of an upstream task that bound when a dependent task can be due."""

    status: str
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def resolved_date(self) -> Optional[datetime]:
        """Completion date for finished work, due date for open work, else ``None``."""
        if self.status == TASK_STATUS_DONE:
            return self.completed_at
        return self.due_date


@dataclass(frozen=True)
class TaskSnapshot:
    id: UUID
    title: str
    priority: str
    status: str = "TODO"
    due_date: Optional[datetime] = None
    time_estimate: Optional[int] = None
    depends_on: Tuple[DependencySnapshot, ...] = ()


@dataclass(frozen=True)
class CalendarEventSnapshot:
    id: UUID
    title: str
    start_at: datetime
    end_at: datetime
    all_day: bool = False


@dataclass(frozen=True)
class SchedulingSnapshot:
    """Everything one engine run reads, captured before the run starts."""

    now: datetime
    tasks: Tuple[TaskSnapshot, ...]
    calendar_ids: Tuple[UUID, ...] = ()
    events: Tuple[CalendarEventSnapshot, ...] = ()

    @property
    def has_calendars(self) -> bool:
        return bool(self.calendar_ids)


@dataclass(frozen=True)
class TimeSlot:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class Factor:
    type: FactorType
    impact: float
    description: str


@dataclass(frozen=True)
class Conflict:
    event_id: UUID
    event_title: str
    start_at: datetime
    end_at: datetime


@dataclass(frozen=True)
class SchedulingSuggestion:
    """
    One recommendation for one task.

    ``suggested_start_date`` and ``conflicts`` stay ``None`` when the run did not
    produce them; ``conflicts`` is never an empty tuple.
    """

    task_id: UUID
    task_title: str
    current_due_date: Optional[datetime]
    suggested_due_date: datetime
    confidence: float
    reasoning: str
    factors: Tuple[Factor, ...]
    suggested_start_date: Optional[datetime] = None
    conflicts: Optional[Tuple[Conflict, ...]] = None


@dataclass(frozen=True)
class SchedulingSummary:
    total_tasks: int = 0
    needs_scheduling: int = 0
    high_confidence: int = 0
    medium_confidence: int = 0
    low_confidence: int = 0
    conflicts: int = 0


@dataclass(frozen=True)
class SchedulingAnalysis:
    suggestions: Tuple[SchedulingSuggestion, ...]
    summary: SchedulingSummary = field(default_factory=SchedulingSummary)
