"""
Batch translation of related-search and blog ids into display labels.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable

from mingle_analytics.errors import EventStoreError
from mingle_analytics.schemas import Event

logger = logging.getLogger(__name__)


@dataclass
class ResolvedLabels:
    related_search: Dict[str, str] = field(default_factory=dict)
    blog: Dict[str, str] = field(default_factory=dict)


def referenced_ids(events: Iterable[Event]):
    """Distinct related-search ids and blog ids referenced by a batch, in first-seen order."""
    related_search_ids, blog_ids = {}, {}
    for event in events:
        if event.related_search_id:
            related_search_ids[event.related_search_id] = None
        if event.blog_id:
            blog_ids[event.blog_id] = None
    return list(related_search_ids), list(blog_ids)


def _lookup(store, table, label_column, ids) -> Dict[str, str]:
    if not ids:
        return {}
    try:
        rows = store.fetch_rows_in(table, ("id", label_column), "id", ids)
    except EventStoreError as e:
        logger.warning("Label lookup on %s failed, falling back to raw labels: %s", table, e)
        return {}
    return {
        str(row["id"]): row[label_column]
        for row in rows
        if row.get("id") is not None and row.get(label_column)
    }


def resolve_labels(store, events: Iterable[Event]) -> ResolvedLabels:
    """
    One bulk lookup per entity type, and none when the batch references no id
    of that type.
    """
    related_search_ids, blog_ids = referenced_ids(events)
    return ResolvedLabels(
        related_search=_lookup(store, "related_searches", "search_text", related_search_ids),
        blog=_lookup(store, "blogs", "title", blog_ids),
    )
