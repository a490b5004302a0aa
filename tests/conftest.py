"""
Pytest configuration and shared fixtures.
"""

import asyncio
import os
from typing import Any, Dict, Iterable, List, Optional

import pytest

from app.repositories.row_source import RowSourceError


class FakeRowSource:
    """In-memory row store that records every query it receives.

    Tables not listed raise an undefined-table error; filtering or ordering
    on a column no row carries raises an undefined-column error, the way
    Postgres does.
    """

    name = "fake"

    def __init__(
        self,
        tables: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        columns: Optional[Dict[str, Iterable[str]]] = None,
        errors: Optional[Dict[str, RowSourceError]] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.tables = tables or {}
        self.columns = {name: set(cols) for name, cols in (columns or {}).items()}
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls: List[Dict[str, Any]] = []

    def _columns(self, table_name: str) -> set:
        cols = set(self.columns.get(table_name, set()))
        for row in self.tables.get(table_name, []):
            cols.update(row.keys())
        return cols

    async def select(self, table_name, filter_column, value, order_column=None, ascending=True, limit=None):
        self.calls.append(
            {
                "table": table_name,
                "filter_column": filter_column,
                "value": value,
                "order_column": order_column,
                "ascending": ascending,
                "limit": limit,
            }
        )
        if table_name in self.delays:
            await asyncio.sleep(self.delays[table_name])
        if table_name in self.errors:
            raise self.errors[table_name]
        if table_name not in self.tables and table_name not in self.columns:
            raise RowSourceError(f'relation "public.{table_name}" does not exist', code="42P01")

        cols = self._columns(table_name)
        for col in (filter_column, order_column):
            if col and col not in cols:
                raise RowSourceError(f"column {table_name}.{col} does not exist", code="42703")

        rows = [dict(row) for row in self.tables.get(table_name, []) if str(row.get(filter_column)) == str(value)]
        if order_column:
            rows.sort(key=lambda row: str(row.get(order_column) or ""), reverse=not ascending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def ping(self) -> bool:
        return True

    def tables_queried(self) -> List[str]:
        seen: List[str] = []
        for call in self.calls:
            if call["table"] not in seen:
                seen.append(call["table"])
        return seen


@pytest.fixture
def fake_source_factory():
    return FakeRowSource


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no external deps")
    config.addinivalue_line("markers", "db: requires database")
    config.addinivalue_line("markers", "server: requires running HTTP server")


def pytest_collection_modifyitems(config, items):
    run_db = os.environ.get("RUN_DB_TESTS") == "1"
    run_server = os.environ.get("RUN_SERVER_TESTS") == "1"

    skip_db = pytest.mark.skip(reason="db tests skipped by default; set RUN_DB_TESTS=1 to enable")
    skip_server = pytest.mark.skip(reason="server tests skipped by default; set RUN_SERVER_TESTS=1 to enable")

    for item in items:
        if "db" in item.keywords and not run_db:
            item.add_marker(skip_db)
        if "server" in item.keywords and not run_server:
            item.add_marker(skip_server)
