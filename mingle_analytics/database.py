from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from mingle_analytics.config import settings


def make_engine(url: str, **kwargs):
    if url.startswith("sqlite"):
        # FastAPI serves requests from a threadpool
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, **kwargs)


engine = make_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
