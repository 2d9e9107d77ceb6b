"""Declarative base plus the task, calendar and audit models it carries."""

from app.db.base import Base
from app.db.models import AgentActionLog, Calendar, CalendarMember, Event, Task, TaskDependency, User

__all__ = ["AgentActionLog", "Base", "Calendar", "CalendarMember", "Event", "Task", "TaskDependency", "User"]
