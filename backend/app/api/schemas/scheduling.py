"""Schemas for scheduling suggestion endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer

from app.services.scheduling.models import SchedulingAnalysis, SchedulingSuggestion


class FactorPayload(BaseModel):
    type: Literal["availability", "dependency", "priority", "time_estimate", "workload"]
    impact: float
    description: str


class ConflictPayload(BaseModel):
    event_id: UUID
    event_title: str
    start_at: datetime
    end_at: datetime


class SchedulingSuggestionPayload(BaseModel):
    task_id: UUID
    task_title: str
    current_due_date: Optional[datetime]
    suggested_due_date: datetime
    suggested_start_date: Optional[datetime] = None
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    factors: List[FactorPayload]
    conflicts: Optional[List[ConflictPayload]] = None

    @model_serializer(mode="wrap")
    def _omit_unproduced_fields(self, handler: SerializerFunctionWrapHandler) -> Dict[str, Any]:
        # A missing key means "not produced"; null would read as "checked, nothing found".
        data = handler(self)
        for key in ("suggested_start_date", "conflicts"):
            if data.get(key) is None:
                data.pop(key, None)
        return data

    @classmethod
    def from_suggestion(cls, suggestion: SchedulingSuggestion) -> "SchedulingSuggestionPayload":
        return cls(
            task_id=suggestion.task_id,
            task_title=suggestion.task_title,
            current_due_date=suggestion.current_due_date,
            suggested_due_date=suggestion.suggested_due_date,
            suggested_start_date=suggestion.suggested_start_date,
            confidence=suggestion.confidence,
            reasoning=suggestion.reasoning,
            factors=[
                FactorPayload(type=factor.type, impact=factor.impact, description=factor.description)
                for factor in suggestion.factors
            ],
            conflicts=(
                [
                    ConflictPayload(
                        event_id=conflict.event_id,
                        event_title=conflict.event_title,
                        start_at=conflict.start_at,
                        end_at=conflict.end_at,
                    )
                    for conflict in suggestion.conflicts
                ]
                if suggestion.conflicts
                else None
            ),
        )


class SchedulingSummaryPayload(BaseModel):
    total_tasks: int
    needs_scheduling: int
    high_confidence: int
    medium_confidence: int
    low_confidence: int
    conflicts: int


class SchedulingAnalysisPayload(BaseModel):
    suggestions: List[SchedulingSuggestionPayload]
    summary: SchedulingSummaryPayload

    @classmethod
    def from_analysis(cls, analysis: SchedulingAnalysis) -> "SchedulingAnalysisPayload":
        summary = analysis.summary
        return cls(
            suggestions=[SchedulingSuggestionPayload.from_suggestion(item) for item in analysis.suggestions],
            summary=SchedulingSummaryPayload(
                total_tasks=summary.total_tasks,
                needs_scheduling=summary.needs_scheduling,
                high_confidence=summary.high_confidence,
                medium_confidence=summary.medium_confidence,
                low_confidence=summary.low_confidence,
                conflicts=summary.conflicts,
            ),
        )


class SchedulingSuggestionsResponse(BaseModel):
    user_id: UUID
    suggestions: List[SchedulingSuggestionPayload]
    count: int
    request_id: str


class SchedulingAnalyzeRequest(BaseModel):
    user_id: UUID
    dashboard_id: UUID
    business_id: Optional[UUID] = None
    task_ids: List[UUID] = Field(default_factory=list)


class SchedulingAnalysisResponse(BaseModel):
    user_id: UUID
    analysis: SchedulingAnalysisPayload
    request_id: str


class ScheduleChangePayload(BaseModel):
    task_id: UUID
    suggested_due_date: datetime
    suggested_start_date: Optional[datetime] = None


class SchedulingApplyRequest(BaseModel):
    user_id: UUID
    changes: List[ScheduleChangePayload] = Field(min_length=1)


class SchedulingApplyResponse(BaseModel):
    updated: int
    failed: int
    total: int
    request_id: str
