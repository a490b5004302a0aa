"""
Schemas package.

Import all schemas here for easy access.
"""

from app.schemas.company_profile import (
    CompanyBasicInfo,
    CompanyEmail,
    CompanyEmailEntry,
    CompanyMaster,
    CompanyOverview,
    CompanyProfile,
    ContactPerson,
    FlowNode,
    PurchaseHistoryLine,
    PurchaseStatistics,
    SupplyChainRelationship,
)

__all__ = [
    "CompanyBasicInfo",
    "CompanyEmail",
    "CompanyEmailEntry",
    "CompanyMaster",
    "CompanyOverview",
    "CompanyProfile",
    "ContactPerson",
    "FlowNode",
    "PurchaseHistoryLine",
    "PurchaseStatistics",
    "SupplyChainRelationship",
]
