"""Health check router."""

from typing import Optional

from fastapi import APIRouter, Depends

from app.core.dependencies import get_row_source
from app.repositories.row_source import RowSource

router = APIRouter()


@router.get("/health")
async def health_check(source: Optional[RowSource] = Depends(get_row_source)):
    """Lightweight health endpoint with a row source reachability check."""

    source_ok = False
    if source is not None:
        source_ok = await source.ping()

    return {
        "api_ok": True,
        "row_source": source.name if source is not None else None,
        "row_source_ok": source_ok,
    }
