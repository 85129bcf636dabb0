from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


# ---------------------------------------------------------------------------
# Tracker payloads (main site -> /api/sessions, /api/page-views, /api/clicks)
# ---------------------------------------------------------------------------

class SessionPayload(BaseModel):
    """
    Session upsert sent by the site on every visit.
    The session is keyed by `session_id`; later visits refresh the other fields.
    """
    session_id: str = Field(..., min_length=1, description="Client-persisted session key")
    ip_address: Optional[str] = Field(None, description="Visitor IP; the request address is used when missing")
    user_agent: Optional[str] = None
    country: Optional[str] = None
    source: Optional[str] = Field(None, description="Traffic source label, e.g. 'google' or 'direct'")


class PageViewPayload(BaseModel):
    session_id: str = Field(..., min_length=1)
    page_url: str = Field(..., description="The page that was viewed")
    blog_id: Optional[str] = None
    country: Optional[str] = None
    source: Optional[str] = None


class ClickPayload(BaseModel):
    session_id: str = Field(..., min_length=1)
    button_id: str = Field(..., description="e.g. 'related-search-3', 'visit-now-3', 'blog-card-12'")
    button_label: Optional[str] = None
    page_url: Optional[str] = None
    country: Optional[str] = None
    source: Optional[str] = None


class TrackResponse(BaseModel):
    status: str = "ok"
    received_at: datetime


# ---------------------------------------------------------------------------
# Common shapes produced by the project adapters
# ---------------------------------------------------------------------------

class SessionRow(BaseModel):
    session_id: str
    ip_address: Optional[str] = None
    country: Optional[str] = None
    source: Optional[str] = None
    user_agent: Optional[str] = None
    last_active: Optional[datetime] = None


class Event(BaseModel):
    """A single page view or click, whatever table it was read from."""
    event_id: str
    session_id: str
    event_type: Optional[str] = None
    button_id: Optional[str] = None
    button_label: Optional[str] = None
    related_search_id: Optional[str] = None
    related_search_label: Optional[str] = None
    blog_id: Optional[str] = None
    blog_title: Optional[str] = None
    ip_address: Optional[str] = None
    country: Optional[str] = None
    device: Optional[str] = None
    source: Optional[str] = None
    page_url: Optional[str] = None
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Report shapes consumed by the dashboard
# ---------------------------------------------------------------------------

class SearchResultEntry(BaseModel):
    term: str
    views: int = 0
    total_clicks: int = 0
    unique_clicks: int = 0
    visit_now_clicks: int = 0
    visit_now_unique: int = 0


class BlogClickEntry(BaseModel):
    title: str
    total_clicks: int = 0
    unique_clicks: int = 0


class ButtonInteractionEntry(BaseModel):
    button: str
    total: int = 0
    unique: int = 0


class SessionSummary(BaseModel):
    session_id: str
    project_name: str
    project_icon: str
    project_color: str
    device: str = "unknown"
    ip_address: str = "unknown"
    country: str = "WW"
    source: str = "direct"
    time_spent: int = Field(0, description="Seconds on site, when the backend records it")
    page_views: int = 0
    unique_pages: int = 0
    total_clicks: int = 0
    unique_clicks: int = 0
    search_results: List[SearchResultEntry] = Field(default_factory=list)
    blog_clicks: List[BlogClickEntry] = Field(default_factory=list)
    button_interactions: List[ButtonInteractionEntry] = Field(default_factory=list)
    last_active: Optional[datetime] = None


class SiteStats(BaseModel):
    project_name: str
    project_icon: str
    project_color: str
    session_count: int = 0
    page_views: int = 0
    unique_pages: int = 0
    total_clicks: int = 0
    unique_clicks: int = 0


class UnifiedReport(BaseModel):
    generation: int
    generated_at: datetime
    site_stats: List[SiteStats]
    sessions: List[SessionSummary]
    warnings: List[str] = Field(default_factory=list)


class DashboardView(BaseModel):
    site: str
    period: str
    generation: int
    generated_at: datetime
    site_stats: List[SiteStats]
    sessions: List[SessionSummary]
    warnings: List[str] = Field(default_factory=list)


class EmailCapture(BaseModel):
    id: str
    email: str
    page_key: Optional[str] = None
    country: Optional[str] = None
    source: Optional[str] = None
    captured_at: Optional[datetime] = None
