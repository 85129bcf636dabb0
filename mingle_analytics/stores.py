"""
Read-only access to a project's backend.

Every project exposes the same handful of tables (sessions, page_views,
clicks, analytics, related_searches, blogs, email_captures), either through
the hosted backend's REST surface or, for the main site, through the local
database the tracker endpoints write to.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests
from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError

from mingle_analytics.database import Base
from mingle_analytics.errors import EventStoreError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class EventStore:
    """Table-level read interface shared by the project adapters."""

    def fetch_rows(self, table: str, order_by: Optional[str] = None) -> List[Row]:
        """Returns every row of `table`, newest first when `order_by` is given."""
        raise NotImplementedError

    def fetch_rows_in(self, table: str, columns: Sequence[str], column: str, values: Iterable[str]) -> List[Row]:
        """Returns `columns` of the rows whose `column` is one of `values` (a single query)."""
        raise NotImplementedError


def _quote(value: str) -> str:
    # PostgREST accepts double-quoted members inside in.(...)
    return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'


def _warn_if_truncated(table: str, rows: List[Row], limit: int) -> List[Row]:
    if limit and len(rows) >= limit:
        logger.warning("%s: hit the fetch limit of %d rows, older rows are not counted", table, limit)
    return rows


class RestEventStore(EventStore):
    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0, limit: int = 5000,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.limit = limit
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        })

    def _get(self, table: str, params: Dict[str, str]) -> List[Row]:
        url = f"{self.base_url}/rest/v1/{table}"
        logger.debug("GET %s params=%s", url, params)
        try:
            r = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise EventStoreError(f"GET {table} failed: {e}", table=table) from e

        if r.status_code != 200:
            raise EventStoreError(f"GET {table} failed: {r.status_code} {r.text[:200]}", table=table)

        try:
            data = r.json()
        except ValueError as e:
            raise EventStoreError(f"GET {table} returned invalid JSON", table=table) from e

        if not isinstance(data, list):
            raise EventStoreError(f"GET {table} returned {type(data).__name__}, expected a list", table=table)
        return data

    def fetch_rows(self, table, order_by=None):
        params = {"select": "*", "limit": str(self.limit)}
        if order_by:
            params["order"] = f"{order_by}.desc"
        return _warn_if_truncated(table, self._get(table, params), self.limit)

    def fetch_rows_in(self, table, columns, column, values):
        values = list(values)
        if not values:
            return []
        params = {
            "select": ",".join(columns),
            column: "in.(" + ",".join(_quote(v) for v in values) + ")",
        }
        return self._get(table, params)


class SqlEventStore(EventStore):
    def __init__(self, session_factory, metadata=None, limit: int = 5000):
        self.session_factory = session_factory
        self.metadata = metadata if metadata is not None else Base.metadata
        self.limit = limit

    def _table(self, name):
        try:
            return self.metadata.tables[name]
        except KeyError:
            raise EventStoreError(f"Unknown table: {name}", table=name) from None

    def _column(self, table, name):
        try:
            return table.c[name]
        except KeyError:
            raise EventStoreError(f"Unknown column: {table.name}.{name}", table=table.name) from None

    def _execute(self, table, stmt) -> List[Row]:
        try:
            with self.session_factory() as db:
                return [dict(r) for r in db.execute(stmt).mappings().all()]
        except SQLAlchemyError as e:
            raise EventStoreError(f"Query on {table.name} failed: {e}", table=table.name) from e

    def fetch_rows(self, table, order_by=None):
        t = self._table(table)
        stmt = select(t)
        if order_by:
            stmt = stmt.order_by(desc(self._column(t, order_by)))
        return _warn_if_truncated(table, self._execute(t, stmt.limit(self.limit)), self.limit)

    def fetch_rows_in(self, table, columns, column, values):
        values = list(values)
        if not values:
            return []
        t = self._table(table)
        stmt = select(*[self._column(t, c) for c in columns]).where(self._column(t, column).in_(values))
        return self._execute(t, stmt)
