"""Slot search and conflict detection against calendar events."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Optional, Sequence, Tuple

from app.services.scheduling.models import CalendarEventSnapshot, Conflict, TimeSlot

SLOT_START_HOURS: Tuple[int, ...] = (9, 13, 15)
CONFLICT_CHECK_HOUR = 9
DEFAULT_SLOT_SEARCH_DAYS = 7


def local_day(moment: datetime, tz: tzinfo) -> date:
    """Calendar day of ``moment`` as seen in ``tz``."""
    return moment.astimezone(tz).date()


def at_local_hour(day: date, hour: int, tz: tzinfo) -> datetime:
    return datetime.combine(day, time(hour=hour), tzinfo=tz)


def overlaps(start: datetime, end: datetime, event: CalendarEventSnapshot, tz: tzinfo) -> bool:
    """
    Return True when the candidate ``[start, end)`` collides with ``event``.

    All-day events block the whole calendar day they start on. Timed events use
    a half-open overlap test, and a candidate that encloses the event counts too.
    """
    if event.all_day:
        return local_day(event.start_at, tz) == local_day(start, tz)

    return (
        (event.start_at <= start < event.end_at)
        or (event.start_at < end <= event.end_at)
        or (start <= event.start_at and end >= event.end_at)
    )


def find_slot(
    start_date: datetime,
    duration_minutes: int,
    events: Sequence[CalendarEventSnapshot],
    tz: tzinfo,
    *,
    search_days: int = DEFAULT_SLOT_SEARCH_DAYS,
    start_hours: Iterable[int] = SLOT_START_HOURS,
) -> Optional[TimeSlot]:
    """
    Find the first conflict-free window of ``duration_minutes``.

    Days are scanned from the calendar day of ``start_date`` onwards; every
    start hour of a day is tried before moving to the next day.
    """
    first_day = local_day(start_date, tz)
    duration = timedelta(minutes=duration_minutes)
    hours = tuple(start_hours)

    for offset in range(search_days):
        day = first_day + timedelta(days=offset)
        for hour in hours:
            slot_start = at_local_hour(day, hour, tz)
            slot_end = slot_start + duration
            if not any(overlaps(slot_start, slot_end, event, tz) for event in events):
                return TimeSlot(start=slot_start, end=slot_end)
    return None


def detect_conflicts(
    start: datetime,
    end: datetime,
    events: Sequence[CalendarEventSnapshot],
    tz: tzinfo,
) -> Tuple[Conflict, ...]:
    """Return every event overlapping ``[start, end)``, in event order."""
    return tuple(
        Conflict(
            event_id=event.id,
            event_title=event.title,
            start_at=event.start_at,
            end_at=event.end_at,
        )
        for event in events
        if overlaps(start, end, event, tz)
    )
