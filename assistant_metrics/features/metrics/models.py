"""Metrics data models."""

import json
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from assistant_metrics.utils.dates import shift_months


class Period(str, Enum):
    """Reporting window for metric queries."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    def start_date(self, now: datetime) -> datetime:
        """Start of the window ending at now."""
        if self is Period.DAY:
            return now - timedelta(days=1)
        if self is Period.WEEK:
            return now - timedelta(days=7)
        if self is Period.MONTH:
            return shift_months(now, -1)
        return shift_months(now, -12)

    @property
    def group_by(self) -> "GroupBy":
        """Bucket size of the activity chart for this period."""
        return _GROUP_BY[self]


class GroupBy(str, Enum):
    """Bucket size of the activity chart."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


_GROUP_BY = {
    Period.DAY: GroupBy.HOUR,
    Period.WEEK: GroupBy.DAY,
    Period.MONTH: GroupBy.WEEK,
    Period.YEAR: GroupBy.MONTH,
}


class SenderType(str, Enum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ConversationStatus(str, Enum):
    """Lifecycle state of a conversation."""

    ACTIVE = "active"
    COMPLETED = "completed"


class Message(BaseModel):
    """Message as stored by the messaging channels."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    conversation_id: str
    sender_type: SenderType
    content: str = ""
    timestamp: datetime
    metadata: dict[str, Any] | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, value: Any) -> dict[str, Any] | None:
        """Accept metadata stored either as a JSON string or as a mapping."""
        if isinstance(value, (str, bytes)):
            try:
                value = json.loads(value)
            except ValueError:
                return None
        return value if isinstance(value, dict) else None

    @property
    def topic(self) -> str | None:
        if not self.metadata:
            return None
        topic = self.metadata.get("topic")
        return str(topic) if topic else None


class Conversation(BaseModel):
    """Conversation between an end user and an assistant."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    created_by: str | None = None
    status: str = "active"
    created_at: datetime


class MetricsResult(BaseModel):
    """Aggregated metrics for one reporting window."""

    model_config = ConfigDict(frozen=True)

    total_conversations: int = 0
    total_messages: int = 0
    avg_response_time: int = 0  # milliseconds
    success_rate: int = 0  # percent, 0-100
    topic_data: dict[str, int] = Field(default_factory=dict)


class PeriodMetrics(MetricsResult):
    """Metrics annotated with the requested period."""

    period: Period


class MetricSnapshot(BaseModel):
    """Persisted metrics record written by the scheduled job."""

    id: str
    date: datetime
    total_conversations: int = 0
    total_messages: int = 0
    avg_response_time: int = 0
    success_rate: int = 0
    topic_data: dict[str, int] | None = None


class TopicDataPoint(BaseModel):
    """One slice of the topic chart."""

    label: str
    value: int


class TopicDataResponse(BaseModel):
    """Topic distribution for a period."""

    period: Period
    topic_data: list[TopicDataPoint]
    timestamp: datetime


class MetricsHistoryResponse(BaseModel):
    """Latest persisted metric snapshots."""

    metrics: list[MetricSnapshot]


class ConversationStats(BaseModel):
    """Conversation counts for a period."""

    period: Period
    total_conversations: int = 0
    active_conversations: int = 0
    completed_conversations: int = 0
    avg_messages_per_conversation: float = 0.0
    period_start: datetime
    period_end: datetime


class ChartPoint(BaseModel):
    """Active dialogs in one chart bucket."""

    date: str
    count: int


class OverviewMetrics(BaseModel):
    """Headline figures of the dashboard overview."""

    total_conversations: int = 0
    avg_response_time: int = 0
    success_rate: int = 0
    period: Period


class OverviewResponse(BaseModel):
    """Dashboard overview: headline metrics, topics and activity chart."""

    metrics: OverviewMetrics
    topic_data: list[TopicDataPoint]
    chart_data: list[ChartPoint]
    active_dialog_count: int = 0
    group_by: GroupBy
