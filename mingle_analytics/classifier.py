"""
Event classification.

Each event is classified once, before aggregation, into a page view and/or a
click. Clicks are further routed into exactly one breakdown bucket based on
the prefix of their button id:

    related-search-<...>   the related search term itself
    visit-now-<...>        the "Visit Now" button next to a related search
    blog-card-<...>        a blog card
    anything else          a generic button

"Visit Now" clicks are joined to their related search by term string, not by
id. Two searches sharing a display term therefore share their visit-now counts.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from mingle_analytics.labels import ResolvedLabels
from mingle_analytics.schemas import Event

PAGE_VIEW_KEYWORDS = ("page", "view")
DEFAULT_CLICK_KEYWORDS = ("click",)

RELATED_SEARCH_PREFIX = "related-search-"
VISIT_NOW_PREFIX = "visit-now-"
BLOG_CARD_PREFIX = "blog-card-"

UNKNOWN_BUTTON = "unknown-button"
UNKNOWN_LABEL = "Unknown"


class EventKind(str, Enum):
    PAGE_VIEW = "page_view"
    RELATED_SEARCH_CLICK = "related_search_click"
    VISIT_NOW_CLICK = "visit_now_click"
    BLOG_CLICK = "blog_click"
    OTHER_CLICK = "other_click"
    NONE = "none"


CLICK_KINDS = frozenset({
    EventKind.RELATED_SEARCH_CLICK,
    EventKind.VISIT_NOW_CLICK,
    EventKind.BLOG_CLICK,
    EventKind.OTHER_CLICK,
})


@dataclass(frozen=True)
class Classification:
    page_view: bool
    click: bool
    kind: EventKind
    # breakdown key: search term, blog title or button label
    label: Optional[str] = None
    # related search whose view count a page view increments
    view_term: Optional[str] = None


def clean_text(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def is_page_view(event_type: Optional[str]) -> bool:
    t = (event_type or "").lower()
    return any(k in t for k in PAGE_VIEW_KEYWORDS)


def is_click(event_type: Optional[str], keywords: Sequence[str] = DEFAULT_CLICK_KEYWORDS) -> bool:
    t = (event_type or "").lower()
    return any(k in t for k in keywords)


def _search_term(event: Event, labels: ResolvedLabels, fallback: Optional[str] = None) -> str:
    return (
        labels.related_search.get(event.related_search_id or "")
        or clean_text(event.related_search_label)
        or clean_text(fallback)
        or UNKNOWN_LABEL
    )


def _click_bucket(event: Event, labels: ResolvedLabels):
    button_id = clean_text(event.button_id) or ""
    button_label = clean_text(event.button_label)
    if button_label == UNKNOWN_LABEL:
        button_label = None

    if button_id.startswith(RELATED_SEARCH_PREFIX) and (event.related_search_id or clean_text(event.related_search_label)):
        return EventKind.RELATED_SEARCH_CLICK, _search_term(event, labels, button_label)

    if button_id.startswith(VISIT_NOW_PREFIX):
        term = button_label or clean_text(button_id[len(VISIT_NOW_PREFIX):]) or UNKNOWN_LABEL
        return EventKind.VISIT_NOW_CLICK, term

    if button_id.startswith(BLOG_CARD_PREFIX) and (event.blog_id or clean_text(event.blog_title)):
        title = (
            labels.blog.get(event.blog_id or "")
            or clean_text(event.blog_title)
            or button_label
            or UNKNOWN_LABEL
        )
        return EventKind.BLOG_CLICK, title

    label = button_label or button_id
    if not label or label.lower() == UNKNOWN_BUTTON:
        return EventKind.NONE, None
    return EventKind.OTHER_CLICK, label


def classify(event: Event, labels: Optional[ResolvedLabels] = None,
             click_keywords: Sequence[str] = DEFAULT_CLICK_KEYWORDS) -> Classification:
    """Never raises; missing fields fall back to "Unknown" labels or no bucket."""
    labels = labels or ResolvedLabels()
    page_view = is_page_view(event.event_type)
    click = is_click(event.event_type, click_keywords)

    view_term = None
    if page_view and (event.related_search_id or clean_text(event.related_search_label)):
        view_term = _search_term(event, labels)

    kind, label = EventKind.NONE, None
    if click:
        kind, label = _click_bucket(event, labels)
    if kind is EventKind.NONE and page_view:
        kind = EventKind.PAGE_VIEW

    return Classification(page_view=page_view, click=click, kind=kind, label=label, view_term=view_term)


def classify_batch(events: Iterable[Event], labels: Optional[ResolvedLabels] = None,
                   click_keywords: Sequence[str] = DEFAULT_CLICK_KEYWORDS) -> List[Tuple[Event, Classification]]:
    return [(event, classify(event, labels, click_keywords)) for event in events]
