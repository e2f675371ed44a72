"""Topic search: exact lookup across manuals and the sorted completion source."""

from typing import Iterable

from topic_help.core.manual import Manual, TopicHit
from topic_help.core.registry import ManualRegistry


def search_manual(manual: Manual, topic: str) -> list[TopicHit]:
    """Exact-match *topic* in one manual; one hit per link."""
    return [TopicHit(topic, manual.name, link) for link in manual.links_for(topic)]


def search_manuals(manuals: Iterable[Manual], topic: str) -> list[TopicHit]:
    """Exact-match *topic* across *manuals*, in manual order.

    Hits from different manuals are all reported, even for the same topic.
    """
    results: list[TopicHit] = []
    for manual in manuals:
        results.extend(search_manual(manual, topic))
    return results


def search_for_context(registry: ManualRegistry, context: str, topic: str) -> list[TopicHit]:
    """Exact-match *topic* in every manual that applies to *context*."""
    return search_manuals(registry.manuals_for_context(context), topic)


def all_topics(manuals: Iterable[Manual]) -> list[TopicHit]:
    """Every topic/link pair of *manuals*, sorted by topic.

    Sorting is by code point, case-sensitive; it is stable, so hits for the
    same topic keep manual order and link insertion order.
    """
    hits: list[TopicHit] = []
    for manual in manuals:
        hits.extend(manual.iter_hits())
    hits.sort(key=lambda h: h.topic)
    return hits


def topics_with_prefix(hits: Iterable[TopicHit], prefix: str) -> list[TopicHit]:
    """Hits whose topic starts with *prefix* (case-sensitive)."""
    return [h for h in hits if h.topic.startswith(prefix)]


def common_prefix(topics: list[str]) -> str:
    """Longest string every element of *topics* starts with."""
    if not topics:
        return ""
    low, high = min(topics), max(topics)
    i = 0
    while i < len(low) and low[i] == high[i]:
        i += 1
    return low[:i]
