"""
Company Profile Router - API endpoints.

Read-only view of one company assembled from the trade-intelligence tables.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.dependencies import get_company_profile_service
from app.schemas.company_profile import CompanyProfile
from app.services.company_profile_service import CompanyProfileService

router = APIRouter(prefix="/api/companies", tags=["Company Profile"])


@router.get("/{company_id}/profile", response_model=CompanyProfile)
async def get_company_profile(
    company_id: str,
    hs: Optional[str] = Query(None, description="HS code prefix used to filter purchase history"),
    service: CompanyProfileService = Depends(get_company_profile_service),
):
    """
    Get the aggregated profile for a company.

    When the HS filter matches no purchase lines, every line is returned and
    ``statistics.hs_filter_fallback_used`` is true.
    """
    return await service.load_profile(company_id, hs_code=hs)
