"""
Canonical company profile records.

Every record is produced by a row mapper in app.services.profile_mappers and
is keyed to ``company_id``. Numeric fields hold a finite number or None.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class CompanyRecord(BaseModel):
    company_id: str


class CompanyMaster(CompanyRecord):
    customer: Optional[str] = None
    customer_name: Optional[str] = None
    location: Optional[str] = None
    customer_location: Optional[str] = None
    website: Optional[str] = None
    trades: Optional[float] = None
    supplier_number: Optional[float] = None
    value_tag: Optional[str] = None
    latest_purchase_time: Optional[str] = None
    product: Optional[str] = None
    product_description: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None


class CompanyOverview(CompanyRecord):
    company_introduction: Optional[str] = None
    business_overview: Optional[str] = None
    employee_size: Optional[float] = None
    procurement_overview: Optional[str] = None
    total_purchase_value: Optional[float] = None
    purchase_value_last_12m: Optional[float] = None
    purchase_frequency_per_year: Optional[float] = None
    latest_purchase_date: Optional[str] = None
    purchase_interval_days: Optional[float] = None
    is_active: Optional[bool] = None
    trade_start_date: Optional[str] = None
    trade_end_date: Optional[str] = None
    core_products: Optional[List[str]] = None
    core_supplier_countries: Optional[List[str]] = None
    core_suppliers: Optional[List[str]] = None
    growth_rate_last_3m: Optional[float] = None
    yoy_growth_rate: Optional[float] = None
    purchase_stability: Optional[str] = None
    purchase_activity_label: Optional[str] = None
    indicator_review: Optional[str] = None
    procurement_structure: Optional[str] = None
    updated_at: Optional[str] = None


class CompanyBasicInfo(CompanyRecord):
    company_name: Optional[str] = None
    name_standard: Optional[str] = None
    name_en: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    operating_status: Optional[str] = None
    address: Optional[str] = None
    organization_type: Optional[str] = None
    zip_code: Optional[str] = None
    founded: Optional[str] = None
    employees: Optional[str] = None
    company_profile: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ContactPerson(CompanyRecord):
    id: str
    name: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    employment_date: Optional[str] = None
    business_email: Optional[str] = None
    supplement_email_1: Optional[str] = None
    supplement_email_2: Optional[str] = None
    social_media: Optional[str] = None
    tel: Optional[str] = None
    fax: Optional[str] = None
    whatsapp: Optional[str] = None
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    region: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def emails(self) -> List[str]:
        return [e for e in (self.business_email, self.supplement_email_1, self.supplement_email_2) if e]


class CompanyEmail(CompanyRecord):
    id: str
    email: Optional[str] = None
    importance: Optional[str] = None
    source_description: Optional[str] = None
    source: Optional[str] = None
    created_at: Optional[str] = None


class PurchaseHistoryLine(CompanyRecord):
    id: str
    date: Optional[str] = None
    importer: Optional[str] = None
    exporter: Optional[str] = None
    hs_code: Optional[str] = None
    product: Optional[str] = None
    product_description: Optional[str] = None
    origin_country: Optional[str] = None
    destination_country: Optional[str] = None
    total_price_usd: Optional[float] = None
    weight_kg: Optional[float] = None
    quantity: Optional[float] = None
    unit_price_usd_kg: Optional[float] = None
    unit_price_usd_qty: Optional[float] = None
    quantity_unit: Optional[str] = None
    created_at: Optional[str] = None


class SupplyChainRelationship(CompanyRecord):
    id: str
    exporter: Optional[str] = None
    importer: Optional[str] = None
    trades_sum: Optional[float] = None
    trade_frequency_ratio: Optional[float] = None
    kg_weight: Optional[float] = None
    weight_ratio: Optional[float] = None
    quantity: Optional[float] = None
    quantity_ratio: Optional[float] = None
    total_price_usd: Optional[float] = None
    total_price_ratio: Optional[float] = None
    supplier_name: Optional[str] = None
    supplier_country: Optional[str] = None
    relationship_type: Optional[str] = None
    product: Optional[str] = None
    hs_code: Optional[str] = None
    incoterm: Optional[str] = None
    lead_time_days: Optional[float] = None
    risk_level: Optional[str] = None
    last_shipment_date: Optional[str] = None
    volume_mt: Optional[float] = None
    total_value_usd: Optional[float] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


class CompanyEmailEntry(BaseModel):
    """A deduplicated company email with its provenance label."""

    email: str
    source: str


class FlowNode(BaseModel):
    name: str
    value: float


class PurchaseStatistics(BaseModel):
    records: int = 0
    suppliers: int = 0
    origins: int = 0
    destinations: int = 0
    products: int = 0
    hs_filter_fallback_used: bool = False
    latest_record_date: Optional[str] = None


class CompanyProfile(BaseModel):
    """Response body of GET /api/companies/{company_id}/profile."""

    company_id: str
    company_name: str
    company_location: Optional[str] = None
    company_website: Optional[str] = None
    hs_code: Optional[str] = None
    master: Optional[CompanyMaster] = None
    overview: Optional[CompanyOverview] = None
    basic_info: Optional[CompanyBasicInfo] = None
    contacts: List[ContactPerson] = Field(default_factory=list)
    contact_rows: List[ContactPerson] = Field(default_factory=list)
    company_emails: List[CompanyEmailEntry] = Field(default_factory=list)
    purchase_history: List[PurchaseHistoryLine] = Field(default_factory=list)
    supply_chain: List[SupplyChainRelationship] = Field(default_factory=list)
    exporter_flow: List[FlowNode] = Field(default_factory=list)
    importer_flow: List[FlowNode] = Field(default_factory=list)
    statistics: PurchaseStatistics = Field(default_factory=PurchaseStatistics)
