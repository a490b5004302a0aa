"""
Row sources for company profile reads.

A row source answers one primitive: select every column of ``table`` where
``filter_column`` equals ``value``, optionally ordered and limited. Rows come
back as plain dicts with whatever keys the deployment's schema has. Failures
are raised as RowSourceError carrying the backend's error code and message so
app.services.source_fallback can classify them.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx
from sqlalchemy import String, cast, column, literal_column, select, table, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import Settings
from app.errors import DataSourceNotConfigured

logger = logging.getLogger(__name__)


class RowSourceError(Exception):
    """A failed query against the row store."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"RowSourceError(code={self.code!r}, message={self.message!r})"


class RowSource(Protocol):
    """Interface for the external row store."""

    name: str

    async def select(
        self,
        table_name: str,
        filter_column: str,
        value: Any,
        order_column: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        ...

    async def ping(self) -> bool:
        ...


class SqlRowSource:
    """Row source over an async SQLAlchemy engine (asyncpg)."""

    name = "sql"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    def build_query(
        self,
        table_name: str,
        filter_column: str,
        value: Any,
        order_column: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ):
        # Compare as text: the filter column may be an integer id in one
        # deployment and a varchar in another.
        query = (
            select(literal_column("*"))
            .select_from(table(table_name))
            .where(cast(column(filter_column), String) == str(value))
        )
        if order_column:
            order = column(order_column)
            query = query.order_by(order.asc() if ascending else order.desc())
        if limit is not None:
            query = query.limit(limit)
        return query

    async def select(
        self,
        table_name: str,
        filter_column: str,
        value: Any,
        order_column: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        query = self.build_query(table_name, filter_column, value, order_column, ascending, limit)
        # One connection per query, so a failed statement never aborts the
        # transaction a concurrent fetch is using.
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(query)
                return [dict(row) for row in result.mappings().all()]
        except DBAPIError as exc:
            raise translate_dbapi_error(exc) from exc

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("SQL row source ping failed", exc_info=True)
            return False


def translate_dbapi_error(exc: DBAPIError) -> RowSourceError:
    """Map a SQLAlchemy DBAPIError onto the row source error shape.

    The SQLSTATE (e.g. 42P01 undefined_table, 42703 undefined_column) is
    exposed by asyncpg as ``sqlstate`` and by psycopg as ``pgcode``.
    """
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    message = str(orig) if orig is not None else str(exc)
    return RowSourceError(message, code=code)


class PostgrestRowSource:
    """Row source over a PostgREST endpoint (Supabase REST)."""

    name = "postgrest"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=httpx.Timeout(self.timeout_seconds),
            transport=self._transport,
        )

    @staticmethod
    def build_params(
        filter_column: str,
        value: Any,
        order_column: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> Dict[str, str]:
        params = {"select": "*", filter_column: f"eq.{value}"}
        if order_column:
            params["order"] = f"{order_column}.{'asc' if ascending else 'desc'}"
        if limit is not None:
            params["limit"] = str(limit)
        return params

    async def select(
        self,
        table_name: str,
        filter_column: str,
        value: Any,
        order_column: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = self.build_params(filter_column, value, order_column, ascending, limit)
        try:
            async with self._client() as client:
                response = await client.get(f"/{table_name}", params=params)
        except httpx.HTTPError as exc:
            raise RowSourceError(f"PostgREST request failed: {exc}") from exc

        if response.status_code >= 400:
            raise _error_from_response(response)

        payload = response.json()
        if not isinstance(payload, list):
            raise RowSourceError(f"Unexpected PostgREST payload for {table_name}: {type(payload).__name__}")
        return [row for row in payload if isinstance(row, dict)]

    async def ping(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get("/")
            return response.status_code < 500
        except httpx.HTTPError:
            logger.warning("PostgREST row source ping failed", exc_info=True)
            return False


def _error_from_response(response: httpx.Response) -> RowSourceError:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or response.text
        return RowSourceError(str(message), code=body.get("code"))
    return RowSourceError(response.text or f"HTTP {response.status_code}")


def build_row_source(config: Settings, engine: Optional[AsyncEngine] = None) -> Optional[RowSource]:
    """Build the configured row source, or None when no connection is configured.

    An unknown ROW_SOURCE is a configuration error and raises
    DataSourceNotConfigured.
    """
    backend = (config.ROW_SOURCE or "").strip().lower()
    if backend == "postgrest":
        if not config.POSTGREST_URL:
            return None
        return PostgrestRowSource(
            config.POSTGREST_URL,
            api_key=config.POSTGREST_API_KEY,
            timeout_seconds=config.ROW_SOURCE_TIMEOUT_SECONDS,
        )
    if backend == "sql":
        if engine is None:
            return None
        return SqlRowSource(engine)
    logger.error("Unknown ROW_SOURCE %r; expected 'sql' or 'postgrest'", config.ROW_SOURCE)
    raise DataSourceNotConfigured()
