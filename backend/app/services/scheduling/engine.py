"""Per-task scheduling analysis over an immutable snapshot."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Dict, List, Optional, Sequence, Tuple

from app.services.scheduling.models import (
    Conflict,
    Factor,
    SchedulingSnapshot,
    SchedulingSuggestion,
    TaskSnapshot,
)
from app.services.scheduling.slots import (
    CONFLICT_CHECK_HOUR,
    DEFAULT_SLOT_SEARCH_DAYS,
    at_local_hour,
    detect_conflicts,
    find_slot,
    local_day,
)

BASE_CONFIDENCE = 0.5
DEFAULT_CONFLICT_DURATION_MIN = 60
DEPENDENCY_CONFIDENCE_BONUS = 0.15
SLOT_CONFIDENCE_BONUS = 0.1
DUE_DATE_CONFIDENCE_BONUS = 0.1
CONFLICT_CONFIDENCE_PENALTY = 0.2
DUE_DATE_HORIZON_DAYS = 30
DUE_DATE_NEAR_DAYS = 7
OVERLOAD_THRESHOLD = 3
FALLBACK_REASONING = "Suggested based on general scheduling best practices"


@dataclass(frozen=True)
class PriorityRule:
    offset_days: int
    confidence_bonus: float
    impact: float
    description: str


PRIORITY_RULES: Dict[str, PriorityRule] = {
    "URGENT": PriorityRule(1, 0.2, 0.3, "Urgent priority requires immediate attention"),
    "HIGH": PriorityRule(3, 0.1, 0.2, "High priority task"),
    "MEDIUM": PriorityRule(7, 0.0, 0.1, "Medium priority task"),
    "LOW": PriorityRule(14, 0.0, 0.05, "Low priority task"),
}


def priority_rule(priority: str) -> PriorityRule:
    """Rule for ``priority``; anything unrecognised is treated as LOW."""
    return PRIORITY_RULES.get(priority, PRIORITY_RULES["LOW"])


def clamp_confidence(value: float) -> float:
    return round(max(0.0, min(1.0, value)), 2)


def latest_dependency_date(task: TaskSnapshot) -> Optional[datetime]:
    """Latest resolved date across ``task``'s dependencies, ignoring unresolved ones."""
    resolved = [date for date in (dep.resolved_date() for dep in task.depends_on) if date is not None]
    latest: Optional[datetime] = None
    for candidate in resolved:
        if latest is None or candidate > latest:
            latest = candidate
    return latest


def suggest_for_task(
    task: TaskSnapshot,
    snapshot: SchedulingSnapshot,
    tz: tzinfo,
    *,
    slot_search_days: int = DEFAULT_SLOT_SEARCH_DAYS,
) -> SchedulingSuggestion:
    """Combine every scheduling factor for one task into a single suggestion."""
    now = snapshot.now
    factors: List[Factor] = []
    confidence = BASE_CONFIDENCE
    suggested_start: Optional[datetime] = None

    rule = priority_rule(task.priority)
    suggested = now + timedelta(days=rule.offset_days)
    factors.append(Factor(type="priority", impact=rule.impact, description=rule.description))
    confidence += rule.confidence_bonus

    dependency_floor = latest_dependency_date(task)
    if dependency_floor is not None:
        suggested = dependency_floor + timedelta(days=1)
        factors.append(
            Factor(
                type="dependency",
                impact=0.3,
                description=f"Depends on {len(task.depends_on)} task(s)",
            )
        )
        confidence += DEPENDENCY_CONFIDENCE_BONUS

    if task.time_estimate:
        hours = task.time_estimate / 60
        slot = find_slot(suggested, task.time_estimate, snapshot.events, tz, search_days=slot_search_days)
        if slot:
            suggested = slot.start
            suggested_start = slot.start
            factors.append(Factor(type="time_estimate", impact=0.2, description=f"Requires {hours:.1f} hours"))
            confidence += SLOT_CONFIDENCE_BONUS
        else:
            factors.append(
                Factor(
                    type="time_estimate",
                    impact=0.1,
                    description=f"Requires {hours:.1f} hours (no ideal slot found)",
                )
            )

    if task.due_date and _keeps_existing_due_date(task, now, dependency_floor):
        suggested = task.due_date
        factors.append(Factor(type="availability", impact=0.15, description="Current due date is appropriate"))
        confidence += DUE_DATE_CONFIDENCE_BONUS

    same_day = _count_same_day_siblings(task, snapshot.tasks, suggested, tz)
    if same_day > OVERLOAD_THRESHOLD:
        suggested = suggested + timedelta(days=1)
        factors.append(
            Factor(
                type="workload",
                impact=0.1,
                description=f"Avoiding overload ({same_day} tasks already scheduled)",
            )
        )

    check_start = at_local_hour(local_day(suggested, tz), CONFLICT_CHECK_HOUR, tz)
    check_end = check_start + timedelta(minutes=task.time_estimate or DEFAULT_CONFLICT_DURATION_MIN)
    conflicts = detect_conflicts(check_start, check_end, snapshot.events, tz)
    if conflicts:
        confidence -= CONFLICT_CONFIDENCE_PENALTY

    return SchedulingSuggestion(
        task_id=task.id,
        task_title=task.title,
        current_due_date=task.due_date,
        suggested_due_date=suggested,
        suggested_start_date=suggested_start,
        confidence=clamp_confidence(confidence),
        reasoning=build_reasoning(factors, conflicts),
        factors=tuple(factors),
        conflicts=conflicts or None,
    )


def build_suggestions(
    snapshot: SchedulingSnapshot,
    tz: tzinfo,
    *,
    slot_search_days: int = DEFAULT_SLOT_SEARCH_DAYS,
) -> List[SchedulingSuggestion]:
    """Analyze every task in ``snapshot`` and order the results by confidence."""
    suggestions = [
        suggest_for_task(task, snapshot, tz, slot_search_days=slot_search_days)
        for task in snapshot.tasks
    ]
    return sort_by_confidence(suggestions)


def build_basic_suggestions(snapshot: SchedulingSnapshot) -> List[SchedulingSuggestion]:
    """
    Calendar-free suggestions used when the user can see no calendars.

    Only the priority offset is applied. No slot search and no conflict check
    run, so neither a start date nor a conflicts list is ever produced.
    """
    suggestions: List[SchedulingSuggestion] = []
    for task in snapshot.tasks:
        rule = priority_rule(task.priority)
        suggestions.append(
            SchedulingSuggestion(
                task_id=task.id,
                task_title=task.title,
                current_due_date=task.due_date,
                suggested_due_date=snapshot.now + timedelta(days=rule.offset_days),
                confidence=clamp_confidence(BASE_CONFIDENCE + rule.confidence_bonus),
                reasoning=f"Suggested based on priority ({task.priority})",
                factors=(Factor(type="priority", impact=0.3, description=f"{task.priority} priority task"),),
            )
        )
    return sort_by_confidence(suggestions)


def sort_by_confidence(suggestions: Sequence[SchedulingSuggestion]) -> List[SchedulingSuggestion]:
    # sorted() is stable, so equal confidences keep snapshot order.
    return sorted(suggestions, key=lambda suggestion: suggestion.confidence, reverse=True)


def build_reasoning(factors: Sequence[Factor], conflicts: Tuple[Conflict, ...]) -> str:
    parts: List[str] = []
    for factor_type in ("priority", "dependency", "time_estimate"):
        factor = next((item for item in factors if item.type == factor_type), None)
        if factor and factor.description:
            parts.append(factor.description)
    if conflicts:
        parts.append(f"Warning: {len(conflicts)} potential conflict(s) with calendar events")
    if not parts:
        return FALLBACK_REASONING
    return ". ".join(parts)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _keeps_existing_due_date(task: TaskSnapshot, now: datetime, dependency_floor: Optional[datetime]) -> bool:
    """Whether the task's own due date is close enough to keep as the suggestion."""
    due = task.due_date
    if due is None:
        return False
    days_until_due = math.ceil((due - now).total_seconds() / 86400)
    if not 0 < days_until_due < DUE_DATE_HORIZON_DAYS:
        return False
    if days_until_due > DUE_DATE_NEAR_DAYS and task.priority != "URGENT":
        return False
    # Dependencies are a hard floor; an earlier due date cannot override them.
    return dependency_floor is None or due > dependency_floor


def _count_same_day_siblings(
    task: TaskSnapshot,
    tasks: Sequence[TaskSnapshot],
    suggested: datetime,
    tz: tzinfo,
) -> int:
    target_day = local_day(suggested, tz)
    return sum(
        1
        for other in tasks
        if other.id != task.id and other.due_date is not None and local_day(other.due_date, tz) == target_day
    )


__all__ = [
    "PRIORITY_RULES",
    "build_basic_suggestions",
    "build_reasoning",
    "build_suggestions",
    "clamp_confidence",
    "latest_dependency_date",
    "sort_by_confidence",
    "suggest_for_task",
]
