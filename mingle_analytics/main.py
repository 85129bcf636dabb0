from fastapi import FastAPI, Request, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from datetime import datetime
import logging
from sqlalchemy.orm import Session

from mingle_analytics.adapters import PROJECTS_BY_ID, list_email_captures
from mingle_analytics.aggregator import DEFAULT_IP
from mingle_analytics.config import settings
from mingle_analytics.database import engine, Base, SessionLocal, get_db
from mingle_analytics.errors import AnalyticsError
from mingle_analytics.merger import AnalyticsHub, PERIODS, SITES, build_sources, filter_report
from mingle_analytics.models import Click, PageView, TrackedSession
from mingle_analytics.schemas import (
    ClickPayload,
    DashboardView,
    EmailCapture,
    PageViewPayload,
    SessionPayload,
    TrackResponse,
)
from typing import List

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.app_name)

# The tracker script runs on the content sites, which live on other origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

hub = AnalyticsHub(build_sources(settings, SessionLocal))


def get_hub() -> AnalyticsHub:
    return hub


def _check_view_params(site: str, period: str):
    if site not in SITES:
        raise HTTPException(status_code=400, detail=f"site must be one of {', '.join(SITES)}")
    if period not in PERIODS:
        raise HTTPException(status_code=400, detail=f"period must be one of {', '.join(PERIODS)}")


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------

@app.post("/api/sessions", response_model=TrackResponse)
async def upsert_session(payload: SessionPayload, request: Request, db: Session = Depends(get_db)):
    """
    Creates the session on first visit and refreshes it on every later one.
    """
    now = datetime.utcnow()
    ip_address = payload.ip_address
    # the tracker posts "unknown" when its IP lookup fails
    if not ip_address or ip_address.lower() == DEFAULT_IP:
        ip_address = request.client.host if request.client else None

    row = db.query(TrackedSession).filter(TrackedSession.session_id == payload.session_id).first()
    if row is None:
        row = TrackedSession(session_id=payload.session_id, created_at=now)
        db.add(row)

    row.ip_address = ip_address or row.ip_address
    row.user_agent = payload.user_agent or row.user_agent or request.headers.get("user-agent")
    row.country = payload.country or row.country
    row.source = payload.source or row.source
    row.last_active = now
    db.commit()

    logger.info("Session %s seen from %s", payload.session_id, ip_address)
    return TrackResponse(received_at=now)


@app.post("/api/page-views", response_model=TrackResponse)
async def track_page_view(payload: PageViewPayload, db: Session = Depends(get_db)):
    db_event = PageView(
        session_id=payload.session_id,
        page_url=payload.page_url,
        blog_id=payload.blog_id,
        country=payload.country,
        source=payload.source,
    )
    db.add(db_event)
    db.commit()
    db.refresh(db_event)

    logger.info("Saved page view on %s (ID: %s)", payload.page_url, db_event.id)
    return TrackResponse(received_at=datetime.utcnow())


@app.post("/api/clicks", response_model=TrackResponse)
async def track_click(payload: ClickPayload, db: Session = Depends(get_db)):
    db_event = Click(
        session_id=payload.session_id,
        button_id=payload.button_id,
        button_label=payload.button_label,
        page_url=payload.page_url,
        country=payload.country,
        source=payload.source,
    )
    db.add(db_event)
    db.commit()
    db.refresh(db_event)

    logger.info("Saved click on %s (ID: %s)", payload.button_id, db_event.id)
    return TrackResponse(received_at=datetime.utcnow())


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

@app.get("/api/analytics", response_model=DashboardView)
async def get_analytics(site: str = "all", period: str = "today", hub: AnalyticsHub = Depends(get_hub)):
    """
    Refetches every project and returns the merged report narrowed to one
    site and period. A refresh overtaken by a newer one answers 409.
    """
    _check_view_params(site, period)
    report = await hub.refresh()
    if report is None:
        raise HTTPException(status_code=409, detail="Superseded by a newer refresh")
    return filter_report(report, site, period)


@app.get("/api/analytics/cached", response_model=DashboardView)
async def get_cached_analytics(site: str = "all", period: str = "today", hub: AnalyticsHub = Depends(get_hub)):
    _check_view_params(site, period)
    if hub.latest is None:
        raise HTTPException(status_code=404, detail="No report yet, call /api/analytics first")
    return filter_report(hub.latest, site, period)


@app.get("/api/email-captures", response_model=List[EmailCapture])
def get_email_captures(site: str = "main", hub: AnalyticsHub = Depends(get_hub)):
    if site not in PROJECTS_BY_ID:
        raise HTTPException(status_code=404, detail=f"Unknown site: {site}")

    source = next(s for s in hub.sources if s.project.id == site)
    if source.store is None:
        raise HTTPException(status_code=502, detail=f"No backend configured for {source.project.name}")
    try:
        return list_email_captures(source.store)
    except AnalyticsError as e:
        logger.warning("Email captures for %s failed: %s", site, e)
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
