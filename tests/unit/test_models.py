"""Metrics model tests."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from assistant_metrics.features.metrics.models import (
    Conversation,
    GroupBy,
    Message,
    MetricsResult,
    Period,
    SenderType,
)
from assistant_metrics.utils.dates import shift_months


NOW = datetime(2026, 3, 31, 9, 30, tzinfo=timezone.utc)


class TestPeriod:
    def test_day(self):
        assert Period.DAY.start_date(NOW) == datetime(2026, 3, 30, 9, 30, tzinfo=timezone.utc)

    def test_week(self):
        assert Period.WEEK.start_date(NOW) == datetime(2026, 3, 24, 9, 30, tzinfo=timezone.utc)

    def test_month_clamps_to_month_end(self):
        assert Period.MONTH.start_date(NOW) == datetime(2026, 2, 28, 9, 30, tzinfo=timezone.utc)

    def test_year(self):
        assert Period.YEAR.start_date(NOW) == datetime(2025, 3, 31, 9, 30, tzinfo=timezone.utc)

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            Period("fortnight")


def test_shift_months_across_year_boundary():
    value = datetime(2026, 1, 15)
    assert shift_months(value, -1) == datetime(2025, 12, 15)
    assert shift_months(datetime(2024, 2, 29), -12) == datetime(2023, 2, 28)


class TestMessage:
    def base(self, **overrides):
        data = {
            "id": 1,
            "conversation_id": 10,
            "sender_type": "assistant",
            "content": "Привет",
            "timestamp": NOW,
        }
        data.update(overrides)
        return Message.model_validate(data)

    def test_numeric_ids_become_strings(self):
        message = self.base()
        assert message.id == "1"
        assert message.conversation_id == "10"

    def test_sender_type_compares_with_enum(self):
        assert self.base().sender_type == SenderType.ASSISTANT

    def test_system_sender_accepted(self):
        assert self.base(sender_type="system").sender_type is SenderType.SYSTEM

    def test_unknown_sender_rejected(self):
        with pytest.raises(ValidationError):
            self.base(sender_type="bot")

    def test_metadata_mapping_kept(self):
        assert self.base(metadata={"topic": "Оплата"}).topic == "Оплата"

    def test_metadata_json_string_parsed(self):
        message = self.base(metadata='{"topic": "Доставка", "runId": "r1"}')
        assert message.metadata == {"topic": "Доставка", "runId": "r1"}
        assert message.topic == "Доставка"

    def test_non_object_json_dropped(self):
        assert self.base(metadata="[1, 2]").metadata is None

    def test_empty_topic_is_absent(self):
        assert self.base(metadata={"topic": ""}).topic is None
        assert self.base().topic is None

    def test_messages_are_immutable(self):
        with pytest.raises(ValidationError):
            self.base().content = "changed"


def test_conversation_from_store_row():
    conversation = Conversation.model_validate(
        {"id": 5, "created_by": 2, "status": "active", "created_at": NOW, "thread_id": "t"}
    )
    assert conversation.id == "5"
    assert conversation.created_by == "2"


def test_metrics_result_is_frozen():
    with pytest.raises(ValidationError):
        MetricsResult().total_messages = 3


def test_chart_bucket_per_period():
    assert Period.DAY.group_by is GroupBy.HOUR
    assert Period.WEEK.group_by is GroupBy.DAY
    assert Period.MONTH.group_by is GroupBy.WEEK
    assert Period.YEAR.group_by is GroupBy.MONTH
