"""Metrics service: scheduled snapshots and per-period reads."""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from assistant_metrics.config import get_settings
from assistant_metrics.core.firestore import FirestoreClient, get_firestore_client
from assistant_metrics.utils.rounding import round_half_up

from .activity import build_activity_chart
from .calculator import MetricsCalculator, get_metrics_calculator
from .models import (
    Conversation,
    ConversationStats,
    ConversationStatus,
    Message,
    MetricSnapshot,
    OverviewMetrics,
    OverviewResponse,
    Period,
    PeriodMetrics,
    TopicDataPoint,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_period(value: Period | str | None) -> Period:
    """Resolve a period name; missing values default to a week."""
    if value is None or value == "":
        return Period.WEEK
    if isinstance(value, Period):
        return value
    try:
        return Period(value.lower())
    except ValueError:
        raise ValueError(f"Unknown period: {value}") from None


def period_name(period: Period | str | None) -> str | None:
    return period.value if isinstance(period, Period) else period


def topic_points(topic_data: dict[str, int]) -> list[TopicDataPoint]:
    return [TopicDataPoint(label=label, value=value) for label, value in topic_data.items()]


class MetricsService:
    """Service for metric snapshots and dashboard statistics."""

    def __init__(
        self,
        firestore: FirestoreClient,
        calculator: MetricsCalculator,
        snapshot_window_days: int = 7,
        now: Callable[[], datetime] = utc_now,
    ):
        self.firestore = firestore
        self.calculator = calculator
        self.snapshot_window_days = snapshot_window_days
        self.now = now

    async def update_system_metrics(self) -> MetricSnapshot:
        """
        Recompute the rolling window and persist it as a new snapshot.

        Meant to be called on a schedule (daily by default). The whole cache is
        cleared first so a snapshot is never built from a previous run's result.
        Snapshots are append-only. Failures are logged here and re-raised, so
        the scheduler does not log them again.
        """
        try:
            start_date = self.now() - timedelta(days=self.snapshot_window_days)

            self.calculator.clear_cache()
            metrics = await self.calculator.calculate_all_metrics(start_date)

            record = await self.firestore.create_metric(
                {
                    "date": self.now(),
                    "total_conversations": metrics.total_conversations,
                    "total_messages": metrics.total_messages,
                    "avg_response_time": metrics.avg_response_time,
                    "success_rate": metrics.success_rate,
                    "topic_data": metrics.topic_data,
                }
            )
        except Exception as e:
            logger.error(f"Updating system metrics failed: {type(e).__name__}: {e}")
            raise

        logger.info(f"Metrics snapshot {record['id']} stored")
        return MetricSnapshot.model_validate(record)

    async def get_metrics_for_period(
        self,
        period: Period | str | None = Period.WEEK,
        user_id: str | None = None,
    ) -> PeriodMetrics:
        """
        Get metrics for a reporting period.

        Args:
            period: 'day', 'week', 'month' or 'year' (default 'week')
            user_id: Restrict to one user's conversations (optional)

        Raises:
            ValueError: If the period name is unknown
        """
        try:
            period = parse_period(period)
            start_date = period.start_date(self.now())
            metrics = await self.calculator.calculate_all_metrics(start_date, period, user_id)
        except Exception as e:
            logger.error(f"Metrics for period {period_name(period)} failed: {type(e).__name__}: {e}")
            raise

        return PeriodMetrics(period=period, **metrics.model_dump())

    async def get_topic_data(
        self,
        period: Period | str | None = Period.WEEK,
        user_id: str | None = None,
    ) -> list[TopicDataPoint]:
        """Topic distribution for a period as chart points."""
        metrics = await self.get_metrics_for_period(period, user_id)
        return topic_points(metrics.topic_data)

    async def _list_conversations(
        self,
        start_date: datetime | None,
        user_id: str | None,
        status: ConversationStatus | None = None,
    ) -> list[Conversation]:
        rows = await self.firestore.list_conversations(
            status=status.value if status else None,
            start_date=start_date,
        )
        conversations = [Conversation.model_validate(row) for row in rows]
        if user_id is not None:
            conversations = [c for c in conversations if c.created_by == user_id]
        return conversations

    async def get_conversation_stats(
        self,
        period: Period | str | None = Period.WEEK,
        user_id: str | None = None,
    ) -> ConversationStats:
        """
        Count conversations started in a period, by status.

        Active and completed counts come from status-filtered queries. The
        average covers every message of the period's conversations and is
        rounded to one decimal.

        Raises:
            ValueError: If the period name is unknown
        """
        try:
            period = parse_period(period)
            now = self.now()
            start_date = period.start_date(now)

            conversations = await self._list_conversations(start_date, user_id)
            active = await self._list_conversations(
                start_date, user_id, ConversationStatus.ACTIVE
            )
            completed = await self._list_conversations(
                start_date, user_id, ConversationStatus.COMPLETED
            )

            message_count = 0
            if conversations:
                rows = await self.firestore.list_messages(
                    start_date,
                    conversation_ids=[c.id for c in conversations],
                )
                message_count = len(rows)
        except Exception as e:
            logger.error(
                f"Conversation stats for period {period_name(period)} failed: {type(e).__name__}: {e}"
            )
            raise

        avg_messages = 0.0
        if conversations:
            avg_messages = round_half_up(message_count * 10 / len(conversations)) / 10

        return ConversationStats(
            period=period,
            total_conversations=len(conversations),
            active_conversations=len(active),
            completed_conversations=len(completed),
            avg_messages_per_conversation=avg_messages,
            period_start=start_date,
            period_end=now,
        )

    async def _activity_messages(self, start_date: datetime, user_id: str | None) -> list[Message]:
        if user_id is None:
            rows = await self.firestore.list_messages(start_date)
        else:
            # A dialog counts as active in the period whenever it was created
            conversations = await self._list_conversations(None, user_id)
            if not conversations:
                return []
            rows = await self.firestore.list_messages(
                start_date,
                conversation_ids=[c.id for c in conversations],
            )
        return [Message.model_validate(row) for row in rows]

    async def get_overview(
        self,
        period: Period | str | None = Period.WEEK,
        user_id: str | None = None,
    ) -> OverviewResponse:
        """
        Dashboard overview for a period.

        Combines the headline metrics and topic points with a chart of
        conversations that had messages in each hour, day, week or month of
        the period.

        Raises:
            ValueError: If the period name is unknown
        """
        metrics = await self.get_metrics_for_period(period, user_id)
        period = metrics.period
        now = self.now()

        try:
            messages = await self._activity_messages(period.start_date(now), user_id)
        except Exception as e:
            logger.error(f"Activity chart for period {period.value} failed: {type(e).__name__}: {e}")
            raise

        return OverviewResponse(
            metrics=OverviewMetrics(
                total_conversations=metrics.total_conversations,
                avg_response_time=metrics.avg_response_time,
                success_rate=metrics.success_rate,
                period=period,
            ),
            topic_data=topic_points(metrics.topic_data),
            chart_data=build_activity_chart(messages, period, now),
            active_dialog_count=len({message.conversation_id for message in messages}),
            group_by=period.group_by,
        )

    async def get_metrics_history(self, limit: int = 10) -> list[MetricSnapshot]:
        """Latest persisted snapshots, newest first."""
        records = await self.firestore.get_latest_metrics(limit)
        return [MetricSnapshot.model_validate(record) for record in records]


def get_metrics_service() -> MetricsService:
    """Get metrics service instance."""
    settings = get_settings()
    return MetricsService(
        firestore=get_firestore_client(),
        calculator=get_metrics_calculator(),
        snapshot_window_days=settings.metrics_snapshot_window_days,
    )
