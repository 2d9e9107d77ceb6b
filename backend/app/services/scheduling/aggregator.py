"""Batch summary over a list of scheduling suggestions."""
from __future__ import annotations

from typing import Sequence

from app.services.scheduling.models import SchedulingAnalysis, SchedulingSuggestion, SchedulingSummary

HIGH_CONFIDENCE = 0.7
MEDIUM_CONFIDENCE = 0.4


def summarize(suggestions: Sequence[SchedulingSuggestion], requested_task_count: int) -> SchedulingSummary:
    """
    Count suggestions per confidence tier and how many carry conflicts.

    ``total_tasks`` echoes the size of the requested id set, which can differ
    from the number of suggestions actually produced.
    """
    high = sum(1 for item in suggestions if item.confidence >= HIGH_CONFIDENCE)
    medium = sum(1 for item in suggestions if MEDIUM_CONFIDENCE <= item.confidence < HIGH_CONFIDENCE)
    low = sum(1 for item in suggestions if item.confidence < MEDIUM_CONFIDENCE)
    with_conflicts = sum(1 for item in suggestions if item.conflicts)

    return SchedulingSummary(
        total_tasks=requested_task_count,
        needs_scheduling=len(suggestions),
        high_confidence=high,
        medium_confidence=medium,
        low_confidence=low,
        conflicts=with_conflicts,
    )


def build_analysis(suggestions: Sequence[SchedulingSuggestion], requested_task_count: int) -> SchedulingAnalysis:
    return SchedulingAnalysis(
        suggestions=tuple(suggestions),
        summary=summarize(suggestions, requested_task_count),
    )
