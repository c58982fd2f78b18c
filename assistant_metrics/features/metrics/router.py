"""Metrics API endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from assistant_metrics.config import get_settings
from assistant_metrics.core.rate_limiter import default_rate_limit, limiter

from .models import (
    ConversationStats,
    MetricSnapshot,
    MetricsHistoryResponse,
    OverviewResponse,
    Period,
    PeriodMetrics,
    TopicDataResponse,
)
from .service import MetricsService, get_metrics_service, parse_period

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


def get_period(period: str | None = None) -> Period:
    """Resolve the period query parameter; missing or empty means week."""
    try:
        return parse_period(period)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("", response_model=PeriodMetrics)
async def get_metrics(
    period: Period = Depends(get_period),
    user_id: str | None = None,
    metrics_service: MetricsService = Depends(get_metrics_service),
):
    """
    Get aggregated metrics for a period.

    Args:
        period: day, week, month or year (default week)
        user_id: Restrict to one user's conversations (optional)
    """
    try:
        return await metrics_service.get_metrics_for_period(period, user_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch metrics: {str(e)}")


@router.get("/topic", response_model=TopicDataResponse)
async def get_topic_metrics(
    period: Period = Depends(get_period),
    user_id: str | None = None,
    metrics_service: MetricsService = Depends(get_metrics_service),
):
    """Get the topic distribution for a period."""
    try:
        topic_data = await metrics_service.get_topic_data(period, user_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch topic metrics: {str(e)}")

    return TopicDataResponse(
        period=period,
        topic_data=topic_data,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/conversations", response_model=ConversationStats)
async def get_conversation_metrics(
    period: Period = Depends(get_period),
    user_id: str | None = None,
    metrics_service: MetricsService = Depends(get_metrics_service),
):
    """Get conversation counts by status for a period."""
    try:
        return await metrics_service.get_conversation_stats(period, user_id)
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Failed to fetch conversation metrics: {str(e)}"
        )


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(
    period: Period = Depends(get_period),
    user_id: str | None = None,
    metrics_service: MetricsService = Depends(get_metrics_service),
):
    """
    Get the dashboard overview for a period.

    Headline metrics, topic points and a chart of active dialogs per hour,
    day, week or month depending on the period.
    """
    try:
        return await metrics_service.get_overview(period, user_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch overview: {str(e)}")


@router.get("/history", response_model=MetricsHistoryResponse)
async def get_metrics_history(
    limit: int | None = Query(default=None, ge=1, le=100),
    metrics_service: MetricsService = Depends(get_metrics_service),
):
    """Get the latest stored metric snapshots, newest first."""
    limit = limit or get_settings().metrics_history_limit
    try:
        snapshots = await metrics_service.get_metrics_history(limit)
    except Exception as e:
        logger.error(f"Loading metrics history failed: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch metrics history: {str(e)}")

    return MetricsHistoryResponse(metrics=snapshots)


@router.post("/refresh", response_model=MetricSnapshot)
@limiter.limit(default_rate_limit)
async def refresh_metrics(
    request: Request,
    metrics_service: MetricsService = Depends(get_metrics_service),
):
    """Recompute the rolling window now and store a snapshot."""
    try:
        return await metrics_service.update_system_metrics()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update metrics: {str(e)}")
