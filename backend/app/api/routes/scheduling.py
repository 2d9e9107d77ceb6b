"""Scheduling suggestion API routes."""
from __future__ import annotations

from time import perf_counter
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.scheduling import (
    SchedulingAnalysisPayload,
    SchedulingAnalysisResponse,
    SchedulingAnalyzeRequest,
    SchedulingApplyRequest,
    SchedulingApplyResponse,
    SchedulingSuggestionPayload,
    SchedulingSuggestionsResponse,
)
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.scheduling.apply import ScheduleChange, apply_scheduling_changes
from app.services.scheduling.loaders import SqlSchedulingDataSource
from app.services.scheduling.service import SchedulingDataError, analyze, generate_suggestions

router = APIRouter()


@router.get("/scheduling/suggestions", response_model=SchedulingSuggestionsResponse, tags=["scheduling"])
def get_scheduling_suggestions(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the tasks"),
    dashboard_id: UUID = Query(..., description="Dashboard the tasks belong to"),
    business_id: Optional[UUID] = Query(default=None, description="Business scope; omit for personal tasks"),
    db: Session = Depends(get_db),
) -> SchedulingSuggestionsResponse:
    """Suggest due dates for the user's open tasks, highest confidence first."""
    request_id = getattr(http_request.state, "request_id", None)
    start = perf_counter()

    try:
        suggestions = generate_suggestions(
            SqlSchedulingDataSource(db),
            user_id,
            dashboard_id,
            business_id,
            request_id=request_id,
        )
    except SchedulingDataError as exc:
        log_metric("scheduling.suggestions.success", 0, metadata={"user_id": str(user_id)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate scheduling suggestions",
        ) from exc

    latency_ms = (perf_counter() - start) * 1000
    log_metric("scheduling.suggestions.success", 1, metadata={"user_id": str(user_id)})
    log_metric("scheduling.suggestions.count", len(suggestions), metadata={"user_id": str(user_id)})
    log_metric("scheduling.suggestions.latency_ms", latency_ms, metadata={"user_id": str(user_id)})

    return SchedulingSuggestionsResponse(
        user_id=user_id,
        suggestions=[SchedulingSuggestionPayload.from_suggestion(item) for item in suggestions],
        count=len(suggestions),
        request_id=request_id or "",
    )


@router.post("/scheduling/analyze", response_model=SchedulingAnalysisResponse, tags=["scheduling"])
def analyze_task_scheduling(
    payload: SchedulingAnalyzeRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> SchedulingAnalysisResponse:
    """Analyze specific tasks and summarize the resulting suggestions."""
    request_id = getattr(http_request.state, "request_id", None)
    start = perf_counter()

    try:
        analysis = analyze(
            SqlSchedulingDataSource(db),
            payload.user_id,
            payload.task_ids,
            payload.dashboard_id,
            payload.business_id,
            request_id=request_id,
        )
    except SchedulingDataError as exc:
        log_metric("scheduling.analyze.success", 0, metadata={"user_id": str(payload.user_id)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to analyze task scheduling",
        ) from exc

    latency_ms = (perf_counter() - start) * 1000
    metric_metadata = {"user_id": str(payload.user_id)}
    log_metric("scheduling.analyze.success", 1, metadata=metric_metadata)
    log_metric("scheduling.analyze.count", analysis.summary.needs_scheduling, metadata=metric_metadata)
    log_metric("scheduling.analyze.conflicts", analysis.summary.conflicts, metadata=metric_metadata)
    log_metric("scheduling.analyze.latency_ms", latency_ms, metadata=metric_metadata)

    return SchedulingAnalysisResponse(
        user_id=payload.user_id,
        analysis=SchedulingAnalysisPayload.from_analysis(analysis),
        request_id=request_id or "",
    )


@router.post("/scheduling/apply", response_model=SchedulingApplyResponse, tags=["scheduling"])
def apply_scheduling_suggestions(
    payload: SchedulingApplyRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> SchedulingApplyResponse:
    """Write accepted suggestions back onto the user's tasks."""
    request_id = getattr(http_request.state, "request_id", None)
    start = perf_counter()

    with trace(
        "scheduling.apply",
        metadata={"change_count": len(payload.changes)},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        result = apply_scheduling_changes(
            db,
            payload.user_id,
            [
                ScheduleChange(
                    task_id=change.task_id,
                    suggested_due_date=change.suggested_due_date,
                    suggested_start_date=change.suggested_start_date,
                )
                for change in payload.changes
            ],
            request_id=request_id,
        )

    latency_ms = (perf_counter() - start) * 1000
    metric_metadata = {"user_id": str(payload.user_id)}
    log_metric("scheduling.apply.updated", result.updated, metadata=metric_metadata)
    log_metric("scheduling.apply.failed", result.failed, metadata=metric_metadata)
    log_metric("scheduling.apply.latency_ms", latency_ms, metadata=metric_metadata)

    return SchedulingApplyResponse(
        updated=result.updated,
        failed=result.failed,
        total=result.total,
        request_id=request_id or "",
    )
