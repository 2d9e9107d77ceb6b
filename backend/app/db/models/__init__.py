"""ORM models exposed for metadata discovery."""
from app.db.models.agent_action_log import AgentActionLog
from app.db.models.calendar import Calendar, CalendarMember
from app.db.models.event import Event
from app.db.models.task import Task, TaskDependency
from app.db.models.user import User

__all__ = [
    "AgentActionLog",
    "Calendar",
    "CalendarMember",
    "Event",
    "Task",
    "TaskDependency",
    "User",
]
