"""
Session aggregation.

Folds one project's classified events into per-session summaries with nested
breakdowns of related-search, blog and other-button clicks. The aggregator is
schema-agnostic: the project adapters are responsible for turning raw rows
into `Event` / `SessionRow` values.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from mingle_analytics.classifier import Classification, EventKind, clean_text
from mingle_analytics.schemas import (
    BlogClickEntry,
    ButtonInteractionEntry,
    Event,
    SearchResultEntry,
    SessionRow,
    SessionSummary,
    SiteStats,
)

DEFAULT_IP = "unknown"
DEFAULT_COUNTRY = "WW"
DEFAULT_SOURCE = "direct"
DEFAULT_DEVICE = "unknown"

DESCRIPTOR_DEFAULTS = {
    "ip_address": DEFAULT_IP,
    "country": DEFAULT_COUNTRY,
    "source": DEFAULT_SOURCE,
    "device": DEFAULT_DEVICE,
}

# values the backends use to mean "not known"
_PLACEHOLDERS = {
    "ip_address": {"unknown", "n/a"},
    "country": {"ww", "unknown"},
    "source": {"direct"},
    "device": {"unknown"},
}


def guess_device(user_agent: Optional[str]) -> Optional[str]:
    if not user_agent:
        return None
    ua = user_agent.lower()
    if "iphone" in ua or "android" in ua or "mobile" in ua:
        return "mobile"
    return "desktop"


@dataclass
class GlobalTotals:
    """Distinct page and click identifiers seen across every session of a pass."""
    pages: Set[str] = field(default_factory=set)
    clicks: Set[str] = field(default_factory=set)


class _SessionAccumulator:
    def __init__(self, session_id: str):
        self.session_id = session_id
        self.descriptors = dict(DESCRIPTOR_DEFAULTS)
        self.page_views = 0
        self.pages: Set[str] = set()
        self.total_clicks = 0
        self.clicks: Set[str] = set()
        self.searches: Dict[str, dict] = {}
        self.blogs: Dict[str, dict] = {}
        self.buttons: Dict[str, dict] = {}
        self.last_active = None

    def describe(self, **values):
        # a present, non-placeholder value replaces whatever is there
        for name, value in values.items():
            value = clean_text(value)
            if value and value.lower() not in _PLACEHOLDERS[name]:
                self.descriptors[name] = value

    def touch(self, ts):
        if ts is not None and (self.last_active is None or ts > self.last_active):
            self.last_active = ts

    def actor(self, event: Event) -> str:
        ip = clean_text(event.ip_address)
        if ip and ip.lower() not in _PLACEHOLDERS["ip_address"]:
            return ip
        if self.descriptors["ip_address"] != DEFAULT_IP:
            return self.descriptors["ip_address"]
        return self.session_id

    def search_entry(self, term: str) -> dict:
        if term not in self.searches:
            self.searches[term] = {"views": 0, "clicks": 0, "ips": set(), "visit_now": 0, "visit_now_ips": set()}
        return self.searches[term]

    def summary(self, project) -> SessionSummary:
        return SessionSummary(
            session_id=self.session_id,
            project_name=project.name,
            project_icon=project.icon,
            project_color=project.color,
            page_views=self.page_views,
            unique_pages=len(self.pages),
            total_clicks=self.total_clicks,
            unique_clicks=len(self.clicks),
            search_results=[
                SearchResultEntry(
                    term=term,
                    views=e["views"],
                    total_clicks=e["clicks"],
                    unique_clicks=len(e["ips"]),
                    visit_now_clicks=e["visit_now"],
                    visit_now_unique=len(e["visit_now_ips"]),
                )
                for term, e in self.searches.items()
            ],
            blog_clicks=[
                BlogClickEntry(title=title, total_clicks=e["clicks"], unique_clicks=len(e["ips"]))
                for title, e in self.blogs.items()
            ],
            button_interactions=[
                ButtonInteractionEntry(button=label, total=e["total"], unique=len(e["ips"]))
                for label, e in self.buttons.items()
            ],
            last_active=self.last_active,
            **self.descriptors,
        )


def page_key(event: Event) -> str:
    if clean_text(event.page_url):
        return event.page_url.strip()
    if event.blog_id:
        return f"blog-{event.blog_id}"
    return f"pv-{event.event_id}"


def click_key(event: Event) -> str:
    return (
        clean_text(event.button_id)
        or event.related_search_id
        or (f"blog-{event.blog_id}" if event.blog_id else None)
        or clean_text(event.button_label)
        or f"click-{event.event_id}"
    )


@dataclass
class ProjectReport:
    summaries: List[SessionSummary]
    stats: SiteStats


def empty_report(project) -> ProjectReport:
    return ProjectReport(summaries=[], stats=site_stats(project, [], GlobalTotals()))


def site_stats(project, summaries: List[SessionSummary], totals: GlobalTotals) -> SiteStats:
    return SiteStats(
        project_name=project.name,
        project_icon=project.icon,
        project_color=project.color,
        session_count=len(summaries),
        page_views=sum(s.page_views for s in summaries),
        unique_pages=len(totals.pages),
        total_clicks=sum(s.total_clicks for s in summaries),
        unique_clicks=len(totals.clicks),
    )


def aggregate(project, classified: Iterable[Tuple[Event, Classification]],
              sessions: Iterable[SessionRow] = (), totals: Optional[GlobalTotals] = None) -> ProjectReport:
    """
    Builds one summary per session key. Session rows, when given, seed the
    summaries first so that sessions without any event are still reported.
    Summaries come out in first-seen order; breakdown lists likewise.
    """
    totals = totals if totals is not None else GlobalTotals()
    acc: Dict[str, _SessionAccumulator] = {}

    def get(session_id) -> _SessionAccumulator:
        if session_id not in acc:
            acc[session_id] = _SessionAccumulator(session_id)
        return acc[session_id]

    for row in sessions:
        s = get(row.session_id)
        s.describe(
            ip_address=row.ip_address,
            country=row.country,
            source=row.source,
            device=guess_device(row.user_agent),
        )
        s.touch(row.last_active)

    for event, c in classified:
        s = get(event.session_id)
        s.describe(ip_address=event.ip_address, country=event.country, source=event.source, device=event.device)
        s.touch(event.created_at)

        if c.page_view:
            s.page_views += 1
            key = page_key(event)
            s.pages.add(key)
            totals.pages.add(key)
            if c.view_term:
                s.search_entry(c.view_term)["views"] += 1

        if not c.click:
            continue

        s.total_clicks += 1
        key = click_key(event)
        s.clicks.add(key)
        totals.clicks.add(key)

        actor = s.actor(event)
        if c.kind is EventKind.RELATED_SEARCH_CLICK:
            entry = s.search_entry(c.label)
            entry["clicks"] += 1
            entry["ips"].add(actor)
        elif c.kind is EventKind.VISIT_NOW_CLICK:
            entry = s.search_entry(c.label)
            entry["visit_now"] += 1
            entry["visit_now_ips"].add(actor)
        elif c.kind is EventKind.BLOG_CLICK:
            entry = s.blogs.setdefault(c.label, {"clicks": 0, "ips": set()})
            entry["clicks"] += 1
            entry["ips"].add(actor)
        elif c.kind is EventKind.OTHER_CLICK:
            entry = s.buttons.setdefault(c.label, {"total": 0, "ips": set()})
            entry["total"] += 1
            entry["ips"].add(actor)

    summaries = [s.summary(project) for s in acc.values()]
    return ProjectReport(summaries=summaries, stats=site_stats(project, summaries, totals))
