"""Active-dialog chart for the dashboard overview."""

from collections.abc import Iterable
from datetime import datetime, timedelta

from assistant_metrics.utils.dates import shift_months

from .models import ChartPoint, GroupBy, Message, Period

# Buckets shown per chart
BUCKET_COUNTS = {
    GroupBy.HOUR: 24,
    GroupBy.DAY: 7,
    GroupBy.WEEK: 4,
    GroupBy.MONTH: 12,
}


def bucket_label(moment: datetime, group_by: GroupBy) -> str:
    """Chart label of the bucket containing moment."""
    if group_by is GroupBy.HOUR:
        return moment.strftime("%H:00")
    if group_by is GroupBy.DAY:
        return moment.date().isoformat()
    if group_by is GroupBy.WEEK:
        year, week, _ = moment.isocalendar()
        return f"{year}-W{week:02d}"
    return moment.strftime("%Y-%m")


def bucket_labels(now: datetime, group_by: GroupBy) -> list[str]:
    """Labels of every bucket ending with the one containing now, oldest first."""
    labels = []
    for offset in range(BUCKET_COUNTS[group_by] - 1, -1, -1):
        if group_by is GroupBy.HOUR:
            moment = now - timedelta(hours=offset)
        elif group_by is GroupBy.DAY:
            moment = now - timedelta(days=offset)
        elif group_by is GroupBy.WEEK:
            moment = now - timedelta(weeks=offset)
        else:
            moment = shift_months(now, -offset)
        labels.append(bucket_label(moment, group_by))
    return labels


def build_activity_chart(
    messages: Iterable[Message],
    period: Period,
    now: datetime,
) -> list[ChartPoint]:
    """
    Count distinct conversations with messages in each bucket.

    Every bucket of the period is present, empty ones with a zero count.
    Messages outside the charted buckets are ignored.

    Args:
        messages: Messages of the period
        period: Reporting period; decides the bucket size
        now: End of the period

    Returns:
        One point per bucket, oldest first
    """
    group_by = period.group_by
    buckets: dict[str, set[str]] = {label: set() for label in bucket_labels(now, group_by)}

    for message in messages:
        label = bucket_label(message.timestamp.astimezone(now.tzinfo), group_by)
        if label in buckets:
            buckets[label].add(message.conversation_id)

    return [ChartPoint(date=label, count=len(ids)) for label, ids in buckets.items()]
