"""Topic distribution of messages."""

from collections import Counter
from collections.abc import Iterable

from assistant_metrics.utils.rounding import percentage

from .models import Message


# Bucket for untagged messages and for topics outside the top list
OTHER_TOPIC = "Другие"

MAX_NAMED_TOPICS = 5
MIN_TOPIC_PERCENTAGE = 5


def analyze_topics(messages: Iterable[Message]) -> dict[str, int]:
    """
    Build a topic -> percentage histogram.

    The top five topics with at least 5% of messages are kept by name.
    Everything else is folded into the "Другие" bucket. Percentages are
    capped so that their sum never exceeds 100.

    Args:
        messages: Messages to analyze (may be empty)

    Returns:
        Mapping of topic label to percentage, ordered by frequency
    """
    counts = Counter(message.topic or OTHER_TOPIC for message in messages)
    total = sum(counts.values())
    if total == 0:
        return {}

    # Most frequent first, then alphabetical ignoring case
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0].casefold(), item[0]))

    result: dict[str, int] = {}
    folded = 0
    assigned = 0

    for index, (topic, count) in enumerate(ranked):
        share = percentage(count, total)
        if index < MAX_NAMED_TOPICS and share >= MIN_TOPIC_PERCENTAGE:
            share = min(share, 100 - assigned)
            result[topic] = share
            assigned += share
        else:
            folded += share

    folded = min(folded, 100 - assigned)
    if folded > 0:
        result[OTHER_TOPIC] = result.get(OTHER_TOPIC, 0) + folded

    return result
