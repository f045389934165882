"""
Staleness resolution.

A topic's ``updated_at`` is its version marker. An incoming document is only
written when nothing is stored yet or when it is strictly newer than what is
stored.
"""

from typing import Optional

from ..models.outcome_models import Decision
from ..models.topic_models import Topic, TopicVersion


def resolve(incoming: Topic, existing: Optional[TopicVersion]) -> Decision:
    """
    Decide how an incoming topic relates to the stored one.

    Args:
        incoming: Decoded topic document
        existing: Stored identity and version, None when never written

    Returns:
        CREATE or UPDATE when the document must be written,
        SKIP_EQUAL or SKIP_STALE otherwise
    """
    if existing is None:
        return Decision.CREATE

    if existing.updated_at == incoming.updated_at:
        return Decision.SKIP_EQUAL

    if existing.updated_at > incoming.updated_at:
        return Decision.SKIP_STALE

    return Decision.UPDATE
