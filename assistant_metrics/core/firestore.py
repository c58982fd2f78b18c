"""Firestore client wrapper for conversation, message and metric storage."""

from datetime import datetime, timezone
from typing import Any

from google.cloud import firestore

from assistant_metrics.config import get_settings


# Firestore rejects "in" filters with more than 30 values
IN_QUERY_LIMIT = 30


class FirestoreClient:
    """Wrapper for Firestore operations."""

    _instance: "FirestoreClient | None" = None
    _db: firestore.Client | None = None

    def __new__(cls) -> "FirestoreClient":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def db(self) -> firestore.Client:
        """Get or create Firestore client."""
        if self._db is None:
            settings = get_settings()
            # Use project from settings if provided, otherwise auto-detect
            project = settings.google_cloud_project if settings.google_cloud_project else None
            self._db = firestore.Client(project=project)
        return self._db

    # Conversation operations
    async def list_conversations(
        self,
        status: str | None = None,
        start_date: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """List conversations, optionally filtered by status and creation date."""
        query = self.db.collection("conversations")

        if status:
            query = query.where("status", "==", status)
        if start_date:
            query = query.where("created_at", ">=", start_date)

        return [doc.to_dict() for doc in query.stream()]

    # Message operations
    async def list_messages(
        self,
        start_date: datetime,
        conversation_ids: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """List messages sent since start_date, optionally for given conversations."""
        base = self.db.collection("messages").where("timestamp", ">=", start_date)

        if conversation_ids is None:
            return [doc.to_dict() for doc in base.stream()]

        messages = []
        for i in range(0, len(conversation_ids), IN_QUERY_LIMIT):
            batch_ids = conversation_ids[i:i + IN_QUERY_LIMIT]
            query = base.where("conversation_id", "in", batch_ids)
            messages.extend(doc.to_dict() for doc in query.stream())
        return messages

    # Metric snapshots (append-only)
    async def create_metric(self, metric: dict[str, Any]) -> dict[str, Any]:
        """Insert a metrics snapshot."""
        ref = self.db.collection("metrics").document()
        metric_data = {
            **metric,
            "id": ref.id,
            "date": metric.get("date") or datetime.now(timezone.utc),
        }
        ref.set(metric_data)
        return metric_data

    async def get_latest_metrics(self, limit: int = 10) -> list[dict[str, Any]]:
        """Get the most recent metrics snapshots, newest first."""
        docs = (
            self.db.collection("metrics")
            .order_by("date", direction=firestore.Query.DESCENDING)
            .limit(limit)
            .stream()
        )
        return [doc.to_dict() for doc in docs]


def get_firestore_client() -> FirestoreClient:
    """Get Firestore client instance (dependency injection)."""
    return FirestoreClient()
