"""Write accepted scheduling suggestions back onto tasks."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models.agent_action_log import AgentActionLog
from app.db.models.task import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleChange:
    task_id: UUID
    suggested_due_date: datetime
    suggested_start_date: Optional[datetime] = None


@dataclass
class ApplyResult:
    updated: int
    failed: int
    total: int
    log_id: Optional[UUID] = None


def apply_scheduling_changes(
    db: Session,
    user_id: UUID,
    changes: Sequence[ScheduleChange],
    *,
    request_id: str | None = None,
) -> ApplyResult:
    """
    Set due (and start) dates for the user's tasks.

    Tasks that are missing, trashed or owned by someone else are counted as
    failed and skipped. Updates and the audit entry are committed together.
    """
    updated_ids: List[UUID] = []
    failed_ids: List[UUID] = []
    log: AgentActionLog | None = None

    try:
        for change in changes:
            task = (
                db.query(Task)
                .filter(
                    Task.id == change.task_id,
                    Task.created_by_id == user_id,
                    Task.trashed_at.is_(None),
                )
                .first()
            )
            if not task:
                logger.warning("Skipping schedule change for task %s: not found or access denied", change.task_id)
                failed_ids.append(change.task_id)
                continue

            task.due_date = change.suggested_due_date
            if change.suggested_start_date:
                task.start_date = change.suggested_start_date
            db.add(task)
            updated_ids.append(task.id)

        if updated_ids:
            log = AgentActionLog(
                user_id=user_id,
                action_type="scheduling_applied",
                action_payload={
                    "task_ids": [str(task_id) for task_id in updated_ids],
                    "failed_task_ids": [str(task_id) for task_id in failed_ids],
                },
                reason="Scheduling suggestions applied",
                request_id=request_id,
                undo_available=False,
            )
            db.add(log)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Scheduling changes applied: user=%s updated=%s failed=%s",
        user_id,
        len(updated_ids),
        len(failed_ids),
    )
    return ApplyResult(
        updated=len(updated_ids),
        failed=len(failed_ids),
        total=len(changes),
        log_id=log.id if log else None,
    )
