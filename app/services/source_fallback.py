"""
Candidate table / filter column fallback for schema-drifted deployments.

Deployments disagree on table names (``company_history`` vs
``purchase_trend``), on the column that carries the company id, and on
whether an ordering column exists. The fetcher walks an ordered list of
candidates and stops at the first table that answers.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from app.repositories.row_source import RowSource, RowSourceError

logger = logging.getLogger(__name__)


class SourceErrorKind(str, Enum):
    MISSING_TABLE = "missing_table"
    MISSING_COLUMN = "missing_column"
    OTHER = "other"


MISSING_TABLE_CODES = {"42P01", "PGRST205"}
MISSING_COLUMN_CODES = {"42703", "PGRST204"}

_MISSING_TABLE_MESSAGE = re.compile(r"could not find the table|relation .* does not exist", re.IGNORECASE)
_MISSING_COLUMN_MESSAGE = re.compile(r"column .* does not exist|could not find .*column", re.IGNORECASE)
_SCHEMA_CACHE_MESSAGE = re.compile(r"schema cache", re.IGNORECASE)

DEFAULT_FILTER_COLUMNS = ["company_id", "companyid", "companyId", "customer_id", "customerid", "id"]


def classify_source_error(error: RowSourceError) -> SourceErrorKind:
    """Classify a row source failure by its code, then by its message.

    A schema-cache miss that does not name a column is treated as a missing
    table.
    """
    code = (error.code or "").strip().upper()
    if code in MISSING_TABLE_CODES:
        return SourceErrorKind.MISSING_TABLE
    if code in MISSING_COLUMN_CODES:
        return SourceErrorKind.MISSING_COLUMN

    # Column first: Postgres says 'column "x" of relation "y" does not exist'
    message = error.message or ""
    if _MISSING_COLUMN_MESSAGE.search(message):
        return SourceErrorKind.MISSING_COLUMN
    if _MISSING_TABLE_MESSAGE.search(message):
        return SourceErrorKind.MISSING_TABLE
    if _SCHEMA_CACHE_MESSAGE.search(message):
        return SourceErrorKind.MISSING_TABLE
    return SourceErrorKind.OTHER


@dataclass
class SourceResult:
    """Rows returned by the first candidate table that answered."""

    table: Optional[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)
    filter_column: Optional[str] = None
    ordered: bool = False


class FallbackFetcher:
    """Runs the candidate table / filter column chain against one row source."""

    def __init__(self, source: RowSource):
        self.source = source

    async def fetch_from_candidates(
        self,
        candidate_tables: Sequence[str],
        filter_column_candidates: Sequence[str],
        company_id: str,
        order_column: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> SourceResult:
        """Return the first successful response across candidate tables.

        Results are never merged: once a table answers, even with no rows,
        later candidates are not queried. Errors that are neither a missing
        table nor a missing column propagate to the caller.
        """
        for table_name in candidate_tables:
            for filter_column in filter_column_candidates:
                try:
                    rows, ordered = await self._select_with_order_fallback(
                        table_name, filter_column, company_id, order_column, ascending, limit
                    )
                except RowSourceError as exc:
                    kind = classify_source_error(exc)
                    if kind is SourceErrorKind.MISSING_TABLE:
                        logger.info("Table %s unavailable, trying next candidate", table_name)
                        break
                    if kind is SourceErrorKind.MISSING_COLUMN:
                        logger.debug("Filter column %s.%s unavailable: %s", table_name, filter_column, exc.message)
                        continue
                    raise

                logger.debug(
                    "Fetched %d rows from %s filtered on %s (ordered=%s)",
                    len(rows),
                    table_name,
                    filter_column,
                    ordered,
                )
                return SourceResult(table=table_name, rows=rows, filter_column=filter_column, ordered=ordered)

        return SourceResult(table=None)

    async def _select_with_order_fallback(
        self,
        table_name: str,
        filter_column: str,
        company_id: str,
        order_column: Optional[str],
        ascending: bool,
        limit: Optional[int],
    ) -> tuple:
        try:
            rows = await self.source.select(table_name, filter_column, company_id, order_column, ascending, limit)
            return rows, bool(order_column)
        except RowSourceError as exc:
            if not order_column or classify_source_error(exc) is not SourceErrorKind.MISSING_COLUMN:
                raise
            logger.debug("Retrying %s.%s without ordering on %s", table_name, filter_column, order_column)

        rows = await self.source.select(table_name, filter_column, company_id, None, ascending, limit)
        return rows, False

    async def fetch_first_available(
        self,
        candidate_tables: Sequence[str],
        filter_column_candidates: Sequence[str],
        company_id: str,
        order_column: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        result = await self.fetch_from_candidates(
            candidate_tables, filter_column_candidates, company_id, order_column, ascending, limit
        )
        return result.rows

    async def fetch_first_row(
        self,
        candidate_tables: Sequence[str],
        company_id: str,
        filter_column_candidates: Sequence[str] = ("company_id", "companyid"),
    ) -> Optional[Dict[str, Any]]:
        rows = await self.fetch_first_available(candidate_tables, filter_column_candidates, company_id, limit=1)
        return rows[0] if rows else None


async def fetch_first_available(
    source: RowSource,
    candidate_tables: Sequence[str],
    filter_column_candidates: Sequence[str],
    company_id: str,
    order_column: Optional[str] = None,
    ascending: bool = True,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Module-level convenience around FallbackFetcher.fetch_first_available."""
    return await FallbackFetcher(source).fetch_first_available(
        candidate_tables, filter_column_candidates, company_id, order_column, ascending, limit
    )
