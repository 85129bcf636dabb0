"""
Cross-project merge and refresh coordination.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from mingle_analytics.adapters import ADAPTERS, MAIN, PROJECTS, PROJECTS_BY_ID, ProjectAdapter
from mingle_analytics.aggregator import ProjectReport, empty_report
from mingle_analytics.errors import ConfigurationError
from mingle_analytics.schemas import DashboardView, SessionSummary, UnifiedReport
from mingle_analytics.stores import EventStore, RestEventStore, SqlEventStore

logger = logging.getLogger(__name__)

SITES = ("all",) + tuple(p.id for p in PROJECTS)
PERIODS = ("today", "week", "month", "all")


@dataclass
class ProjectSource:
    adapter: ProjectAdapter
    store: Optional[EventStore]

    @property
    def project(self):
        return self.adapter.project


def build_sources(settings, session_factory) -> List[ProjectSource]:
    """One source per project; the main site reads the local database unless a URL is set."""
    sources = []
    for project in PROJECTS:
        url, key = settings.project_backend(project.id)
        if url:
            store = RestEventStore(url, key, timeout=settings.request_timeout, limit=settings.fetch_limit)
        elif project is MAIN:
            store = SqlEventStore(session_factory, limit=settings.fetch_limit)
        else:
            store = None
        sources.append(ProjectSource(adapter=ADAPTERS[project.id], store=store))
    return sources


async def _load(source: ProjectSource) -> ProjectReport:
    if source.store is None:
        raise ConfigurationError(f"no backend URL configured for {source.project.name}")
    return await asyncio.to_thread(source.adapter.build_report, source.store)


def sort_sessions(sessions: Iterable[SessionSummary]) -> List[SessionSummary]:
    """Most recent first; sessions without a timestamp go last."""
    return sorted(
        sessions,
        key=lambda s: s.last_active.timestamp() if s.last_active else float("-inf"),
        reverse=True,
    )


async def merge_projects(sources: List[ProjectSource], generation: int = 0,
                         now: Optional[datetime] = None) -> UnifiedReport:
    """
    Fetches and aggregates every project concurrently. A project that fails
    contributes zeroed stats and a warning instead of failing the merge.
    """
    results = await asyncio.gather(*(_load(s) for s in sources), return_exceptions=True)

    stats, sessions, warnings = [], [], []
    for source, result in zip(sources, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning("%s: refresh failed: %s", source.project.name, result)
            warnings.append(f"{source.project.name}: {result}")
            result = empty_report(source.project)
        stats.append(result.stats)
        sessions.extend(result.summaries)

    return UnifiedReport(
        generation=generation,
        generated_at=now or datetime.now(timezone.utc),
        site_stats=stats,
        sessions=sort_sessions(sessions),
        warnings=warnings,
    )


class AnalyticsHub:
    """
    Runs refreshes and keeps the most recent completed report.

    Every refresh is tagged with a generation number; a refresh that finishes
    after a newer one has started is discarded.
    """

    def __init__(self, sources: List[ProjectSource]):
        self.sources = list(sources)
        self.latest: Optional[UnifiedReport] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def refresh(self) -> Optional[UnifiedReport]:
        self._generation += 1
        generation = self._generation
        logger.info("Refresh #%d started", generation)

        report = await merge_projects(self.sources, generation)

        if generation != self._generation:
            logger.info("Dropping refresh #%d, superseded by #%d", generation, self._generation)
            return None
        self.latest = report
        return report


def period_start(period: str, now: datetime) -> Optional[datetime]:
    if period == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return now - timedelta(days=30)
    return None


def filter_report(report: UnifiedReport, site: str = "all", period: str = "all",
                  now: Optional[datetime] = None) -> DashboardView:
    """
    Post-hoc view over an already merged report. Site stats are narrowed by
    site only; sessions by site and by `last_active` falling inside the period.
    """
    if site not in SITES:
        raise ValueError(f"Unknown site: {site}")
    if period not in PERIODS:
        raise ValueError(f"Unknown period: {period}")

    stats, sessions = report.site_stats, report.sessions
    if site != "all":
        name = PROJECTS_BY_ID[site].name
        stats = [s for s in stats if s.project_name == name]
        sessions = [s for s in sessions if s.project_name == name]

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start = period_start(period, now)
    if start is not None:
        sessions = [s for s in sessions if s.last_active is not None and s.last_active >= start]

    return DashboardView(
        site=site,
        period=period,
        generation=report.generation,
        generated_at=report.generated_at,
        site_stats=stats,
        sessions=sessions,
        warnings=report.warnings,
    )
