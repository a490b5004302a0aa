"""
FastAPI dependencies shared by the routers.
"""

from typing import Optional

from fastapi import Depends

from app.core.config import Settings, settings
from app.db.session import get_engine
from app.repositories.row_source import RowSource, build_row_source
from app.services.company_profile_service import CompanyProfileService


def get_settings() -> Settings:
    return settings


def get_row_source(config: Settings = Depends(get_settings)) -> Optional[RowSource]:
    """
    Get the configured row source.

    Returns None when neither a database nor a PostgREST endpoint is
    configured; the profile service turns that into a 503.
    """
    engine = get_engine(config) if (config.ROW_SOURCE or "").strip().lower() == "sql" else None
    return build_row_source(config, engine=engine)


def get_company_profile_service(
    source: Optional[RowSource] = Depends(get_row_source),
    config: Settings = Depends(get_settings),
) -> CompanyProfileService:
    return CompanyProfileService(source, config)
