"""Deterministic calculation of conversation metrics."""

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta
from functools import lru_cache

from assistant_metrics.config import get_settings
from assistant_metrics.core.firestore import FirestoreClient, get_firestore_client
from assistant_metrics.utils.rounding import percentage, round_half_up

from .cache import MetricsCache
from .models import Conversation, Message, MetricsResult, Period, SenderType
from .topics import analyze_topics

logger = logging.getLogger(__name__)


# Replies faster or slower than this are treated as measurement noise
MIN_RESPONSE_TIME_MS = 100
MAX_RESPONSE_TIME_MS = 30_000

# Phrases marking an assistant reply as unsuccessful (matched lower-cased)
FAILURE_PHRASES = (
    "извините, я не могу",
    "извините, но я не могу",
    "я не понимаю",
    "не удалось",
    "ошибка",
    "не знаю",
    "не могу ответить",
    "не имею доступа",
    "недостаточно информации",
    "не удалось найти",
)


def group_by_conversation(messages: Iterable[Message]) -> dict[str, list[Message]]:
    """Group messages per conversation, each list ordered by (timestamp, id)."""
    grouped: dict[str, list[Message]] = defaultdict(list)
    for message in messages:
        grouped[message.conversation_id].append(message)

    return {
        conversation_id: sorted(grouped[conversation_id], key=lambda m: (m.timestamp, m.id))
        for conversation_id in sorted(grouped)
    }


def iter_reply_pairs(messages: Iterable[Message]) -> Iterator[tuple[Message, Message]]:
    """Yield (user message, assistant reply) pairs that are adjacent in a conversation."""
    for conversation in group_by_conversation(messages).values():
        for current, following in zip(conversation, conversation[1:]):
            if (
                current.sender_type == SenderType.USER
                and following.sender_type == SenderType.ASSISTANT
            ):
                yield current, following


def calculate_avg_response_time(messages: Iterable[Message]) -> int:
    """
    Average assistant response time in milliseconds.

    Only replies that directly follow a user message count, and only when the
    delay is between 100 ms and 30 s.

    Returns:
        Rounded mean delay, or 0 when no reply qualifies
    """
    delays = []
    for question, reply in iter_reply_pairs(messages):
        delay_ms = (reply.timestamp - question.timestamp) / timedelta(milliseconds=1)
        if MIN_RESPONSE_TIME_MS <= delay_ms <= MAX_RESPONSE_TIME_MS:
            delays.append(delay_ms)

    if not delays:
        return 0
    return round_half_up(sum(delays) / len(delays))


def is_failed_reply(content: str) -> bool:
    text = content.lower()
    return any(phrase in text for phrase in FAILURE_PHRASES)


def calculate_success_rate(messages: Iterable[Message]) -> int:
    """
    Share of assistant replies that do not contain a failure phrase.

    Returns:
        Percentage 0-100, or 0 when there are no user -> assistant pairs
    """
    total = 0
    successful = 0
    for _, reply in iter_reply_pairs(messages):
        total += 1
        if not is_failed_reply(reply.content):
            successful += 1

    return percentage(successful, total)


class MetricsCalculator:
    """Aggregates stored conversations into cached MetricsResult objects."""

    def __init__(self, firestore: FirestoreClient, cache: MetricsCache):
        self.firestore = firestore
        self.cache = cache

    def clear_cache(self) -> None:
        """Force recomputation for every period and user."""
        self.cache.clear()
        logger.info("Metrics cache cleared")

    async def _fetch(
        self,
        start_date: datetime,
        user_id: str | None,
    ) -> tuple[list[Conversation], list[Message]]:
        rows = await self.firestore.list_conversations(start_date=start_date)
        conversations = [Conversation.model_validate(row) for row in rows]

        if user_id is None:
            rows = await self.firestore.list_messages(start_date)
            return conversations, [Message.model_validate(row) for row in rows]

        conversations = [c for c in conversations if c.created_by == user_id]
        if not conversations:
            return conversations, []

        rows = await self.firestore.list_messages(
            start_date,
            conversation_ids=[c.id for c in conversations],
        )
        return conversations, [Message.model_validate(row) for row in rows]

    async def calculate_all_metrics(
        self,
        start_date: datetime,
        period: Period = Period.WEEK,
        user_id: str | None = None,
    ) -> MetricsResult:
        """
        Calculate every dashboard metric for a window.

        Args:
            start_date: Only conversations and messages since this moment count
            period: Reporting period, part of the cache key
            user_id: Restrict to conversations created by this user (optional)

        Returns:
            Cached result when fresh, otherwise a newly computed one
        """
        key = self.cache.make_key(period, user_id)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Metrics cache hit for %s", key)
            return cached

        conversations, messages = await self._fetch(start_date, user_id)

        active_ids = {message.conversation_id for message in messages}
        active_conversations = [c for c in conversations if c.id in active_ids]
        assistant_messages = [
            message for message in messages if message.sender_type == SenderType.ASSISTANT
        ]

        result = MetricsResult(
            total_conversations=len(active_conversations),
            total_messages=len(assistant_messages),
            avg_response_time=calculate_avg_response_time(messages),
            success_rate=calculate_success_rate(messages),
            topic_data=analyze_topics(messages),
        )
        self.cache.set(key, result)

        logger.info(
            "Calculated metrics %s: %d conversations, %d messages, response time %dms, success %d%%",
            key,
            result.total_conversations,
            result.total_messages,
            result.avg_response_time,
            result.success_rate,
        )
        return result


@lru_cache
def get_metrics_calculator() -> MetricsCalculator:
    """Get the process-wide calculator so the cache survives between requests."""
    settings = get_settings()
    return MetricsCalculator(
        firestore=get_firestore_client(),
        cache=MetricsCache(ttl_seconds=settings.metrics_cache_ttl_seconds),
    )
