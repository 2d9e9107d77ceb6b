"""Entry points that load a snapshot and run the suggestion engine over it."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import List, Optional, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings
from app.observability.tracing import trace
from app.services.scheduling.aggregator import build_analysis
from app.services.scheduling.engine import build_basic_suggestions, build_suggestions
from app.services.scheduling.loaders import SchedulingDataSource
from app.services.scheduling.models import SchedulingAnalysis, SchedulingSnapshot, SchedulingSuggestion

logger = logging.getLogger(__name__)


class SchedulingDataError(RuntimeError):
    """Raised when the task or calendar snapshot could not be loaded."""


def load_snapshot(
    source: SchedulingDataSource,
    user_id: UUID,
    dashboard_id: UUID,
    business_id: Optional[UUID] = None,
    task_ids: Optional[Sequence[UUID]] = None,
    *,
    now: datetime,
) -> SchedulingSnapshot:
    """Read tasks, calendars and events once; the engine never goes back to the store."""
    tasks = source.load_tasks(
        user_id,
        dashboard_id,
        business_id,
        task_ids,
        limit=settings.scheduling_task_limit,
    )
    calendar_ids = source.load_calendar_ids(user_id, business_id)
    events = []
    if calendar_ids:
        window_end = now + timedelta(days=settings.scheduling_lookahead_days)
        events = source.load_events(calendar_ids, now, window_end)
    return SchedulingSnapshot(
        now=now,
        tasks=tuple(tasks),
        calendar_ids=tuple(calendar_ids),
        events=tuple(events),
    )


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """The named IANA zone when it exists, the configured default otherwise."""
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r; scheduling in %s instead", name, settings.scheduling_timezone)
    return ZoneInfo(settings.scheduling_timezone)


def run_engine(snapshot: SchedulingSnapshot, tz: tzinfo) -> List[SchedulingSuggestion]:
    """Full analysis when calendars are visible, priority-only suggestions otherwise."""
    if not snapshot.has_calendars:
        return build_basic_suggestions(snapshot)
    return build_suggestions(snapshot, tz, slot_search_days=settings.scheduling_slot_search_days)


def generate_suggestions(
    source: SchedulingDataSource,
    user_id: UUID,
    dashboard_id: UUID,
    business_id: Optional[UUID] = None,
    task_ids: Optional[Sequence[UUID]] = None,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    request_id: Optional[str] = None,
) -> List[SchedulingSuggestion]:
    """
    Suggest a due date for each open task of the user in the given scope.

    Raises SchedulingDataError when any loader fails; no partial list is returned.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    metadata = {
        "dashboard_id": str(dashboard_id),
        "business_id": str(business_id) if business_id else None,
        "requested_task_count": len(task_ids) if task_ids else 0,
    }

    with trace(
        "scheduling.generate_suggestions",
        metadata=metadata,
        user_id=str(user_id),
        request_id=request_id,
    ) as span:
        try:
            snapshot = load_snapshot(source, user_id, dashboard_id, business_id, task_ids, now=now)
            if tz is None:
                tz = resolve_timezone(source.load_timezone(user_id))
        except Exception as exc:
            logger.exception("Failed to generate scheduling suggestions for user %s", user_id)
            raise SchedulingDataError("Unable to load scheduling data") from exc

        suggestions = run_engine(snapshot, tz)
        logger.info(
            "Scheduling suggestions generated: user=%s tasks=%s calendars=%s events=%s degraded=%s",
            user_id,
            len(snapshot.tasks),
            len(snapshot.calendar_ids),
            len(snapshot.events),
            not snapshot.has_calendars,
        )
        if span:
            span.update(
                metadata={
                    **{key: value for key, value in metadata.items() if value is not None},
                    "suggestion_count": len(suggestions),
                    "degraded": not snapshot.has_calendars,
                }
            )

    return suggestions


def analyze(
    source: SchedulingDataSource,
    user_id: UUID,
    task_ids: Sequence[UUID],
    dashboard_id: UUID,
    business_id: Optional[UUID] = None,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    request_id: Optional[str] = None,
) -> SchedulingAnalysis:
    """Generate suggestions for ``task_ids`` and summarize them."""
    requested = list(task_ids or [])
    with trace(
        "scheduling.analyze",
        metadata={"dashboard_id": str(dashboard_id), "requested_task_count": len(requested)},
        user_id=str(user_id),
        request_id=request_id,
    ):
        suggestions = generate_suggestions(
            source,
            user_id,
            dashboard_id,
            business_id,
            requested,
            now=now,
            tz=tz,
            request_id=request_id,
        )
        return build_analysis(suggestions, len(requested))
