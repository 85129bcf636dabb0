import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
for _name in ("MAIN_URL", "DATAORBITZONE_URL", "SEARCHPROJECT_URL"):
    os.environ.pop(_name, None)

import itertools  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from mingle_analytics import models  # noqa: E402,F401
from mingle_analytics.database import Base  # noqa: E402
from mingle_analytics.schemas import Event  # noqa: E402
from mingle_analytics.stores import EventStore  # noqa: E402


class FakeStore(EventStore):
    """In-memory tables; records every bulk lookup it serves."""

    def __init__(self, tables=None, fail=None, lookup_fail=None):
        self.tables = tables or {}
        self.fail = fail
        self.lookup_fail = lookup_fail
        self.lookups = []

    def fetch_rows(self, table, order_by=None):
        if self.fail is not None:
            raise self.fail
        return [dict(r) for r in self.tables.get(table, [])]

    def fetch_rows_in(self, table, columns, column, values):
        values = list(values)
        self.lookups.append((table, values))
        if self.lookup_fail is not None:
            raise self.lookup_fail
        return [
            {c: r.get(c) for c in columns}
            for r in self.tables.get(table, [])
            if r.get(column) in values
        ]


_ids = itertools.count(1)


def make_event(**kwargs) -> Event:
    kwargs.setdefault("event_id", f"e{next(_ids)}")
    kwargs.setdefault("session_id", "s1")
    return Event(**kwargs)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
