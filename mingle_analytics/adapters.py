"""
Per-project adapters.

Each backend stores its clickstream in a differently shaped schema:

    TopicMingle     sessions + page_views + clicks tables
    DataOrbitZone   one `analytics` table holding page views and clicks
    SearchProject   one `analytics` row per session, already aggregated

The adapters only map rows onto the common `Event` / `SessionRow` shapes;
all counting happens in `aggregator.aggregate`. SearchProject rows are
already per-session, so its adapter maps them straight onto summaries.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from mingle_analytics.aggregator import (
    DEFAULT_COUNTRY,
    DEFAULT_DEVICE,
    DEFAULT_IP,
    DEFAULT_SOURCE,
    ProjectReport,
    aggregate,
)
from mingle_analytics.classifier import (
    BLOG_CARD_PREFIX,
    DEFAULT_CLICK_KEYWORDS,
    RELATED_SEARCH_PREFIX,
    UNKNOWN_LABEL,
    classify_batch,
    clean_text,
)
from mingle_analytics.labels import resolve_labels
from mingle_analytics.schemas import (
    ButtonInteractionEntry,
    EmailCapture,
    Event,
    SearchResultEntry,
    SessionRow,
    SessionSummary,
    SiteStats,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    icon: str
    color: str


DATAORBITZONE = Project("dataorbitzone", "DataOrbitZone", "shopping-cart", "from-orange-500 to-orange-600")
SEARCHPROJECT = Project("searchproject", "SearchProject", "home", "from-pink-500 to-pink-600")
MAIN = Project("main", "TopicMingle", "palette", "from-cyan-500 to-cyan-600")

PROJECTS = (DATAORBITZONE, SEARCHPROJECT, MAIN)
PROJECTS_BY_ID = {p.id: p for p in PROJECTS}


def parse_ts(value) -> Optional[datetime]:
    """Best-effort timestamp parsing; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        try:
            # "2026-01-29T12:34:56.000Z" style; fromisoformat rejects "Z" before 3.11
            ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _str(value) -> Optional[str]:
    return clean_text(value)


def _int(value) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


class ProjectAdapter:
    click_keywords = DEFAULT_CLICK_KEYWORDS

    def __init__(self, project: Project):
        self.project = project

    def list_sessions(self, store) -> List[SessionRow]:
        return []

    def list_events(self, store) -> List[Event]:
        raise NotImplementedError

    def build_report(self, store) -> ProjectReport:
        sessions = self.list_sessions(store)
        events = self.list_events(store)
        labels = resolve_labels(store, events)
        report = aggregate(self.project, classify_batch(events, labels, self.click_keywords), sessions)
        logger.info(
            "%s: %d session rows, %d events -> %d sessions",
            self.project.name, len(sessions), len(events), len(report.summaries),
        )
        return report


class MainSiteAdapter(ProjectAdapter):
    def list_sessions(self, store):
        rows = []
        for r in store.fetch_rows("sessions", order_by="created_at"):
            session_id = _str(r.get("session_id"))
            if not session_id:
                continue
            rows.append(SessionRow(
                session_id=session_id,
                ip_address=_str(r.get("ip_address")),
                country=_str(r.get("country")),
                source=_str(r.get("source")),
                user_agent=_str(r.get("user_agent")),
                last_active=parse_ts(r.get("last_active")) or parse_ts(r.get("created_at")),
            ))
        return rows

    def list_events(self, store):
        events = []
        for r in store.fetch_rows("page_views", order_by="viewed_at"):
            if not _str(r.get("session_id")):
                continue
            events.append(Event(
                event_id=f"pv-{r.get('id')}",
                session_id=_str(r.get("session_id")),
                event_type="page_view",
                page_url=_str(r.get("page_url")),
                blog_id=_str(r.get("blog_id")),
                country=_str(r.get("country")),
                source=_str(r.get("source")),
                created_at=parse_ts(r.get("viewed_at")),
            ))

        for r in store.fetch_rows("clicks", order_by="clicked_at"):
            if not _str(r.get("session_id")):
                continue
            button_id = _str(r.get("button_id")) or ""
            button_label = _str(r.get("button_label"))
            # the clicks table has no foreign keys; the label names the target
            events.append(Event(
                event_id=f"click-{r.get('id')}",
                session_id=_str(r.get("session_id")),
                event_type="click",
                button_id=button_id,
                button_label=button_label,
                related_search_label=button_label if button_id.startswith(RELATED_SEARCH_PREFIX) else None,
                blog_title=button_label if button_id.startswith(BLOG_CARD_PREFIX) else None,
                page_url=_str(r.get("page_url")),
                country=_str(r.get("country")),
                source=_str(r.get("source")),
                created_at=parse_ts(r.get("clicked_at")),
            ))
        return events


class DataOrbitZoneAdapter(ProjectAdapter):
    click_keywords = ("click", "button")

    def list_events(self, store):
        events = []
        for i, r in enumerate(store.fetch_rows("analytics", order_by="created_at")):
            ip = _str(r.get("ip_address"))
            events.append(Event(
                event_id=_str(r.get("id")) or f"{self.project.id}-{i}",
                session_id=_str(r.get("session_id")) or f"anon-{ip or DEFAULT_IP}",
                event_type=_str(r.get("event_type")),
                button_id=_str(r.get("button_id")),
                button_label=_str(r.get("button_label")),
                related_search_id=_str(r.get("related_search_id")),
                related_search_label=_str(r.get("related_search_label")),
                blog_id=_str(r.get("blog_id")),
                ip_address=ip,
                country=_str(r.get("country")),
                device=_str(r.get("device")),
                source=_str(r.get("source")),
                page_url=_str(r.get("page_url")) or _str(r.get("url")),
                created_at=parse_ts(r.get("created_at")),
            ))
        return events


class SearchProjectAdapter(ProjectAdapter):
    """Rows of SearchProject's `analytics` table are per-session rollups."""

    def list_events(self, store):
        return []

    def _search_results(self, row) -> List[SearchResultEntry]:
        if isinstance(row.get("search_results"), list):
            return [
                SearchResultEntry(
                    term=_str(sr.get("term")) or UNKNOWN_LABEL,
                    views=_int(sr.get("views")),
                    total_clicks=_int(sr.get("totalClicks", sr.get("total_clicks"))),
                    unique_clicks=_int(sr.get("uniqueClicks", sr.get("unique_clicks"))),
                )
                for sr in row["search_results"]
                if isinstance(sr, dict)
            ]
        views, clicks = _int(row.get("related_searches")), _int(row.get("result_clicks"))
        if not views and not clicks:
            return []
        return [SearchResultEntry(
            term="results",
            views=views,
            total_clicks=clicks,
            unique_clicks=min(_int(row.get("unique_clicks")), clicks),
        )]

    def _button_interactions(self, row) -> List[ButtonInteractionEntry]:
        if isinstance(row.get("button_interactions"), list):
            return [
                ButtonInteractionEntry(
                    button=_str(bi.get("button")) or UNKNOWN_LABEL,
                    total=_int(bi.get("total")),
                    unique=_int(bi.get("unique")),
                )
                for bi in row["button_interactions"]
                if isinstance(bi, dict)
            ]
        clicks = _int(row.get("result_clicks"))
        if not clicks:
            return []
        return [ButtonInteractionEntry(
            button="result-click",
            total=clicks,
            unique=min(_int(row.get("unique_result_clicks")), clicks),
        )]

    def _summary(self, i: int, row: Dict[str, Any]) -> SessionSummary:
        page_views, clicks = _int(row.get("page_views")), _int(row.get("clicks"))
        page_urls, button_ids = row.get("page_urls"), row.get("button_ids")
        unique_pages = (
            _int(row.get("unique_pages"))
            or (len({str(p) for p in page_urls}) if isinstance(page_urls, list) else 0)
            or _int(row.get("unique_pages_count"))
        )
        unique_clicks = (
            _int(row.get("unique_clicks"))
            or (len({str(b) for b in button_ids}) if isinstance(button_ids, list) else 0)
            or _int(row.get("unique_clicks_count"))
        )
        return SessionSummary(
            session_id=_str(row.get("session_id")) or f"sp-{_str(row.get('id')) or i}",
            project_name=self.project.name,
            project_icon=self.project.icon,
            project_color=self.project.color,
            device=_str(row.get("device")) or DEFAULT_DEVICE,
            ip_address=_str(row.get("ip_address")) or DEFAULT_IP,
            country=_str(row.get("country")) or DEFAULT_COUNTRY,
            source=_str(row.get("source")) or DEFAULT_SOURCE,
            time_spent=_int(row.get("time_spent")),
            page_views=page_views,
            unique_pages=min(unique_pages, page_views),
            total_clicks=clicks,
            unique_clicks=min(unique_clicks, clicks),
            search_results=self._search_results(row),
            button_interactions=self._button_interactions(row),
            last_active=parse_ts(row.get("timestamp")) or parse_ts(row.get("created_at")),
        )

    def build_report(self, store):
        rows = store.fetch_rows("analytics", order_by="timestamp")
        summaries = [self._summary(i, r) for i, r in enumerate(rows)]

        # explicit id arrays give real distinct counts; otherwise sum the rollups
        pages, clicks = set(), set()
        for r in rows:
            if isinstance(r.get("page_urls"), list):
                pages.update(str(p) for p in r["page_urls"])
            if isinstance(r.get("button_ids"), list):
                clicks.update(str(b) for b in r["button_ids"])

        stats = SiteStats(
            project_name=self.project.name,
            project_icon=self.project.icon,
            project_color=self.project.color,
            session_count=len(rows),
            page_views=sum(s.page_views for s in summaries),
            unique_pages=len(pages) or sum(s.unique_pages for s in summaries),
            total_clicks=sum(s.total_clicks for s in summaries),
            unique_clicks=len(clicks) or sum(s.unique_clicks for s in summaries),
        )
        logger.info("%s: %d rollup rows", self.project.name, len(rows))
        return ProjectReport(summaries=summaries, stats=stats)


ADAPTERS = {
    MAIN.id: MainSiteAdapter(MAIN),
    DATAORBITZONE.id: DataOrbitZoneAdapter(DATAORBITZONE),
    SEARCHPROJECT.id: SearchProjectAdapter(SEARCHPROJECT),
}


def list_email_captures(store) -> List[EmailCapture]:
    captures = []
    for r in store.fetch_rows("email_captures", order_by="captured_at"):
        email = _str(r.get("email"))
        if not email:
            continue
        captures.append(EmailCapture(
            id=_str(r.get("id")) or email,
            email=email,
            page_key=_str(r.get("page_key")),
            country=_str(r.get("country")),
            source=_str(r.get("source")),
            captured_at=parse_ts(r.get("captured_at")),
        ))
    return captures
