"""Collaborator-facing loaders that materialize the scheduling snapshot."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import asc, case, desc, nulls_last
from sqlalchemy.orm import Session

from app.db.models.calendar import Calendar, CalendarMember
from app.db.models.event import Event
from app.db.models.task import Task, TaskDependency
from app.db.models.user import User
from app.services.scheduling.models import (
    TASK_STATUS_DONE,
    CalendarEventSnapshot,
    DependencySnapshot,
    TaskSnapshot,
)

DEFAULT_TASK_LIMIT = 50
CALENDAR_READ_ROLES = ("OWNER", "ADMIN", "EDITOR", "READER")
PRIORITY_RANK = {"URGENT": 4, "HIGH": 3, "MEDIUM": 2, "LOW": 1}


class SchedulingDataSource:
    """Read-only access to the tasks and calendars one engine run needs."""

    def load_tasks(
        self,
        user_id: UUID,
        dashboard_id: UUID,
        business_id: Optional[UUID] = None,
        task_ids: Optional[Sequence[UUID]] = None,
        *,
        limit: int = DEFAULT_TASK_LIMIT,
    ) -> List[TaskSnapshot]:
        raise NotImplementedError

    def load_calendar_ids(self, user_id: UUID, business_id: Optional[UUID] = None) -> List[UUID]:
        raise NotImplementedError

    def load_events(
        self,
        calendar_ids: Sequence[UUID],
        start: datetime,
        end: datetime,
    ) -> List[CalendarEventSnapshot]:
        raise NotImplementedError

    def load_timezone(self, user_id: UUID) -> Optional[str]:
        """IANA zone name the user schedules in, or None for the deployment default."""
        return None


class SqlSchedulingDataSource(SchedulingDataSource):
    """Loads snapshots from the relational store through a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def load_tasks(
        self,
        user_id: UUID,
        dashboard_id: UUID,
        business_id: Optional[UUID] = None,
        task_ids: Optional[Sequence[UUID]] = None,
        *,
        limit: int = DEFAULT_TASK_LIMIT,
    ) -> List[TaskSnapshot]:
        query = self.db.query(Task).filter(
            Task.created_by_id == user_id,
            Task.dashboard_id == dashboard_id,
            Task.trashed_at.is_(None),
            Task.status != TASK_STATUS_DONE,
        )
        if business_id:
            query = query.filter(Task.business_id == business_id)
        else:
            query = query.filter(Task.business_id.is_(None))
        if task_ids:
            query = query.filter(Task.id.in_(list(task_ids)))

        rows = (
            query.order_by(
                desc(case(PRIORITY_RANK, value=Task.priority, else_=0)),
                nulls_last(asc(Task.due_date)),
                asc(Task.created_at),
            )
            .limit(limit)
            .all()
        )
        dependencies = self._load_dependencies([row.id for row in rows])

        return [
            TaskSnapshot(
                id=row.id,
                title=row.title,
                priority=row.priority,
                status=row.status,
                due_date=row.due_date,
                time_estimate=row.time_estimate,
                depends_on=tuple(dependencies.get(row.id, ())),
            )
            for row in rows
        ]

    def load_calendar_ids(self, user_id: UUID, business_id: Optional[UUID] = None) -> List[UUID]:
        context_type = "BUSINESS" if business_id else "PERSONAL"
        context_id = business_id or user_id
        rows = (
            self.db.query(CalendarMember.calendar_id)
            .join(Calendar, Calendar.id == CalendarMember.calendar_id)
            .filter(
                CalendarMember.user_id == user_id,
                CalendarMember.role.in_(CALENDAR_READ_ROLES),
                Calendar.context_type == context_type,
                Calendar.context_id == context_id,
            )
            .distinct()
            .all()
        )
        return [row[0] for row in rows]

    def load_timezone(self, user_id: UUID) -> Optional[str]:
        return self.db.query(User.timezone).filter(User.id == user_id).scalar()

    def load_events(
        self,
        calendar_ids: Sequence[UUID],
        start: datetime,
        end: datetime,
    ) -> List[CalendarEventSnapshot]:
        if not calendar_ids:
            return []
        rows = (
            self.db.query(Event)
            .filter(
                Event.calendar_id.in_(list(calendar_ids)),
                Event.start_at >= start,
                Event.start_at <= end,
                Event.status != "CANCELED",
                Event.trashed_at.is_(None),
            )
            .order_by(asc(Event.start_at))
            .all()
        )
        return [
            CalendarEventSnapshot(
                id=row.id,
                title=row.title,
                start_at=row.start_at,
                end_at=row.end_at,
                all_day=bool(row.all_day),
            )
            for row in rows
        ]

    def _load_dependencies(self, task_ids: List[UUID]) -> Dict[UUID, List[DependencySnapshot]]:
        if not task_ids:
            return {}
        rows = (
            self.db.query(TaskDependency.task_id, Task.status, Task.due_date, Task.completed_at)
            .join(Task, Task.id == TaskDependency.depends_on_task_id)
            .filter(TaskDependency.task_id.in_(task_ids))
            .order_by(asc(TaskDependency.task_id), asc(Task.created_at))
            .all()
        )
        grouped: Dict[UUID, List[DependencySnapshot]] = {}
        for task_id, status, due_date, completed_at in rows:
            grouped.setdefault(task_id, []).append(
                DependencySnapshot(
                    status=status,
                    due_date=due_date,
                    completed_at=completed_at,
                )
            )
        return grouped
