"""Shared test helpers: fixed time and an in-memory store."""

from datetime import datetime, timedelta, timezone
from typing import Any


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced wall clock (epoch seconds)."""

    def __init__(self, start: float = 1_000_000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakeFirestore:
    """In-memory stand-in for FirestoreClient."""

    def __init__(self):
        self.conversations: list[dict[str, Any]] = []
        self.messages: list[dict[str, Any]] = []
        self.metrics: list[dict[str, Any]] = []
        self.conversation_queries = 0
        self.status_queries: list[str | None] = []
        self.message_queries: list[list[str] | None] = []
        self.fail_with: Exception | None = None

    def add_conversation(self, conv_id, created_by="1", created_at=None, status="active"):
        self.conversations.append(
            {
                "id": conv_id,
                "created_by": created_by,
                "status": status,
                "created_at": created_at or NOW - timedelta(days=1),
            }
        )

    def add_message(self, msg_id, conv_id, sender_type, content="", at=None, metadata=None):
        self.messages.append(
            {
                "id": msg_id,
                "conversation_id": conv_id,
                "sender_type": sender_type,
                "content": content,
                "timestamp": at or NOW - timedelta(hours=1),
                "metadata": metadata,
            }
        )

    async def list_conversations(self, status=None, start_date=None):
        self.conversation_queries += 1
        self.status_queries.append(status)
        if self.fail_with:
            raise self.fail_with
        return [
            dict(c)
            for c in self.conversations
            if (status is None or c["status"] == status)
            and (start_date is None or c["created_at"] >= start_date)
        ]

    async def list_messages(self, start_date, conversation_ids=None):
        self.message_queries.append(conversation_ids)
        return [
            dict(m)
            for m in self.messages
            if m["timestamp"] >= start_date
            and (conversation_ids is None or m["conversation_id"] in conversation_ids)
        ]

    async def create_metric(self, metric):
        record = {**metric, "id": f"metric-{len(self.metrics) + 1}"}
        self.metrics.append(record)
        return record

    async def get_latest_metrics(self, limit=10):
        return sorted(self.metrics, key=lambda m: m["date"], reverse=True)[:limit]

