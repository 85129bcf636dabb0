import uuid
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text
from datetime import datetime
from mingle_analytics.database import Base


def _uuid():
    return str(uuid.uuid4())


class TrackedSession(Base):
    __tablename__ = "sessions"

    id = Column(String, primary_key=True, default=_uuid)
    session_id = Column(String, unique=True, index=True, nullable=False)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    country = Column(String, nullable=True)
    source = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_active = Column(DateTime, default=datetime.utcnow, index=True)


class PageView(Base):
    __tablename__ = "page_views"

    id = Column(String, primary_key=True, default=_uuid)
    session_id = Column(String, index=True, nullable=False)
    page_url = Column(String, nullable=False)
    blog_id = Column(String, nullable=True)
    country = Column(String, nullable=True)
    source = Column(String, nullable=True)
    viewed_at = Column(DateTime, default=datetime.utcnow, index=True)


class Click(Base):
    __tablename__ = "clicks"

    id = Column(String, primary_key=True, default=_uuid)
    session_id = Column(String, index=True, nullable=False)
    button_id = Column(String, nullable=False)
    button_label = Column(String, nullable=True)
    page_url = Column(String, nullable=True)
    country = Column(String, nullable=True)
    source = Column(String, nullable=True)
    clicked_at = Column(DateTime, default=datetime.utcnow, index=True)


class EmailCapture(Base):
    __tablename__ = "email_captures"

    id = Column(String, primary_key=True, default=_uuid)
    email = Column(String, nullable=False)
    page_key = Column(String, nullable=False)
    country = Column(String, nullable=True)
    source = Column(String, nullable=True)
    captured_at = Column(DateTime, default=datetime.utcnow)


# Reference tables, only read for label resolution

class Blog(Base):
    __tablename__ = "blogs"

    id = Column(String, primary_key=True, default=_uuid)
    title = Column(String, nullable=False)
    slug = Column(String, nullable=False)
    content = Column(Text, default="")
    status = Column(String, default="draft")
    created_at = Column(DateTime, default=datetime.utcnow)


class RelatedSearch(Base):
    __tablename__ = "related_searches"

    id = Column(String, primary_key=True, default=_uuid)
    search_text = Column(String, nullable=False)
    display_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
