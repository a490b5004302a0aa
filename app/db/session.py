"""
Database engine configuration.

This file sets up the async database connection using SQLAlchemy + asyncpg.
The engine only exists when DATABASE_URL is configured; profile reads go
through app.repositories.row_source, which borrows one pooled connection
per query.
"""

from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.config import Settings, settings


def build_engine(config: Settings) -> Optional[AsyncEngine]:
    """Create the async engine for the configured DATABASE_URL, if any."""
    if not config.DATABASE_URL:
        return None
    return create_async_engine(
        config.DATABASE_URL,
        echo=config.DEBUG,  # When DEBUG=True, prints SQL queries to console
        future=True,
        pool_pre_ping=True,
    )


# Created lazily so importing the app never requires a database.
# One engine per DATABASE_URL, so an overridden Settings gets its own pool.
_engines: Dict[str, AsyncEngine] = {}


def get_engine(config: Settings = settings) -> Optional[AsyncEngine]:
    if not config.DATABASE_URL:
        return None
    engine = _engines.get(config.DATABASE_URL)
    if engine is None:
        engine = build_engine(config)
        _engines[config.DATABASE_URL] = engine
    return engine


async def dispose_engine() -> None:
    """Close pooled connections (called on application shutdown)."""
    while _engines:
        _, engine = _engines.popitem()
        await engine.dispose()
