"""
Row mappers for the company profile.

One pure function per entity. Each field declares the aliases it accepts
across schema variants, in priority order. Mappers never mutate the input row
and never raise; a field that cannot be resolved comes back as None.
"""

from typing import Any, Optional, Sequence

from app.schemas.company_profile import (
    CompanyBasicInfo,
    CompanyEmail,
    CompanyMaster,
    CompanyOverview,
    ContactPerson,
    PurchaseHistoryLine,
    SupplyChainRelationship,
)
from app.utils.row_values import (
    GenericRow,
    resolve_candidate,
    to_bool_or_null,
    to_number_or_null,
    to_text_list,
    to_text_or_null,
)

COMPANY_ID_ALIASES = ["company_id", "companyid"]
CONTACT_COMPANY_ID_ALIASES = ["company_id", "companyid", "customer_id", "customerid", "id"]
CREATED_AT_ALIASES = ["created_at", "updated_at"]

PRODUCT_ALIASES = ["product", "product_name", "item"]
HS_CODE_ALIASES = ["hs_code", "hscode", "hs"]
QUANTITY_ALIASES = ["quantity", "qty", "volume"]
WEIGHT_KG_ALIASES = ["weight_kg", "weightkg", "weight", "kg"]

CONTACT_NAME_ALIASES = [
    "name",
    "contact_name",
    "contact",
    "full_name",
    "fullname",
    "contact_person",
    "contactperson",
    "person_name",
    "representative",
    "representative_name",
    "owner_name",
    "pic_name",
]
EMAIL_ALIASES = ["email", "business_email", "contact_email", "work_email", "company_email"]


def _text(row: GenericRow, aliases: Sequence[str]) -> Optional[str]:
    return to_text_or_null(resolve_candidate(row, aliases))


def _number(row: GenericRow, aliases: Sequence[str]) -> Optional[float]:
    return to_number_or_null(resolve_candidate(row, aliases))


def _company_id(row: GenericRow, fallback_company_id: str, aliases: Sequence[str] = COMPANY_ID_ALIASES) -> str:
    return _text(row, aliases) or fallback_company_id


def _row_id(row: GenericRow, aliases: Sequence[str], prefix: str, company_id: str, index: int) -> str:
    return _text(row, aliases) or f"{prefix}-{company_id}-{index}"


def map_company_master_row(row: GenericRow, fallback_company_id: str) -> CompanyMaster:
    return CompanyMaster(
        company_id=_company_id(row, fallback_company_id),
        customer=_text(row, ["customer", "company_name"]),
        customer_name=_text(row, ["customer_name", "name_standard", "name_en"]),
        location=_text(row, ["location", "country"]),
        customer_location=_text(row, ["customer_location"]),
        website=_text(row, ["website", "url", "site"]),
        trades=_number(row, ["trades", "trades_sum", "trade_count"]),
        supplier_number=_number(row, ["supplier_number", "suppliers", "supplier_count"]),
        value_tag=_text(row, ["value_tag", "tag"]),
        latest_purchase_time=_text(row, ["latest_purchase_time", "latest_purchase_date", "last_purchase_date"]),
        product=_text(row, PRODUCT_ALIASES),
        product_description=_text(row, ["product_description", "description"]),
        status=_text(row, ["status"]),
        created_at=_text(row, ["created_at"]),
    )


def map_overview_row(row: GenericRow, fallback_company_id: str) -> CompanyOverview:
    return CompanyOverview(
        company_id=_company_id(row, fallback_company_id),
        company_introduction=_text(row, ["company_introduction", "introduction"]),
        business_overview=_text(row, ["business_overview"]),
        employee_size=_number(row, ["employee_size", "employees"]),
        procurement_overview=_text(row, ["procurement_overview"]),
        total_purchase_value=_number(row, ["total_purchase_value", "total_purchase_usd"]),
        purchase_value_last_12m=_number(row, ["purchase_value_last_12m", "purchase_value_12m"]),
        purchase_frequency_per_year=_number(row, ["purchase_frequency_per_year", "purchase_frequency"]),
        latest_purchase_date=_text(row, ["latest_purchase_date", "last_purchase_date"]),
        purchase_interval_days=_number(row, ["purchase_interval_days", "purchase_interval"]),
        is_active=to_bool_or_null(resolve_candidate(row, ["is_active", "active"])),
        trade_start_date=_text(row, ["trade_start_date"]),
        trade_end_date=_text(row, ["trade_end_date"]),
        core_products=to_text_list(resolve_candidate(row, ["core_products"])),
        core_supplier_countries=to_text_list(resolve_candidate(row, ["core_supplier_countries"])),
        core_suppliers=to_text_list(resolve_candidate(row, ["core_suppliers"])),
        growth_rate_last_3m=_number(row, ["growth_rate_last_3m", "recent_trends"]),
        yoy_growth_rate=_number(row, ["yoy_growth_rate", "purchasing_trend"]),
        purchase_stability=_text(row, ["purchase_stability"]),
        purchase_activity_label=_text(row, ["purchase_activity_label", "purchase_activity"]),
        indicator_review=_text(row, ["indicator_review"]),
        procurement_structure=_text(row, ["procurement_structure"]),
        updated_at=_text(row, ["updated_at", "created_at"]),
    )


def map_basic_info_row(row: GenericRow, fallback_company_id: str) -> CompanyBasicInfo:
    return CompanyBasicInfo(
        company_id=_company_id(row, fallback_company_id),
        company_name=_text(row, ["company_name", "name_en", "name_standard", "customer"]),
        name_standard=_text(row, ["name_standard"]),
        name_en=_text(row, ["name_en"]),
        location=_text(row, ["location", "country", "customer_location"]),
        website=_text(row, ["website", "url", "site"]),
        operating_status=_text(row, ["operating_status", "status"]),
        address=_text(row, ["address"]),
        organization_type=_text(row, ["organization_type", "org_type"]),
        zip_code=_text(row, ["zip_code", "zipcode", "postal_code"]),
        founded=_text(row, ["founded", "founded_year"]),
        employees=_text(row, ["employees", "employee_size"]),
        company_profile=_text(row, ["company_profile", "profile"]),
        twitter=_text(row, ["twitter"]),
        instagram=_text(row, ["instagram"]),
        facebook=_text(row, ["facebook"]),
        created_at=_text(row, ["created_at"]),
        updated_at=_text(row, ["updated_at", "created_at"]),
    )


def map_contact_row(row: GenericRow, fallback_company_id: str, index: int) -> ContactPerson:
    company_id = _company_id(row, fallback_company_id, CONTACT_COMPANY_ID_ALIASES)
    return ContactPerson(
        id=_row_id(row, ["id", "contact_id"], "contact", company_id, index),
        company_id=company_id,
        name=_text(row, CONTACT_NAME_ALIASES),
        position=_text(row, ["position", "job_title", "title", "role", "designation"]),
        department=_text(row, ["department", "team", "division", "function"]),
        employment_date=_text(row, ["employment_date", "employment_year", "joined_at"]),
        business_email=_text(row, ["contact_email", "business_email", "email", "company_email", "work_email"]),
        supplement_email_1=_text(row, ["contact_email_1", "supplement_email_1", "email_1", "secondary_email"]),
        supplement_email_2=_text(row, ["contact_email_2", "supplement_email_2", "email_2", "alternate_email"]),
        social_media=_text(row, ["social_media"]),
        tel=_text(row, ["tel", "phone", "telephone", "mobile", "phone_number", "contact_number"]),
        fax=_text(row, ["fax"]),
        whatsapp=_text(row, ["whatsapp"]),
        linkedin=_text(row, ["linkedin"]),
        twitter=_text(row, ["twitter"]),
        instagram=_text(row, ["instagram"]),
        facebook=_text(row, ["facebook"]),
        region=_text(row, ["region", "country"]),
        created_at=_text(row, CREATED_AT_ALIASES),
    )


def map_company_email_row(row: GenericRow, fallback_company_id: str, index: int) -> CompanyEmail:
    company_id = _company_id(row, fallback_company_id)
    return CompanyEmail(
        id=_row_id(row, ["id", "email_id"], "company-email", company_id, index),
        company_id=company_id,
        email=_text(row, EMAIL_ALIASES),
        importance=_text(row, ["importance", "priority"]),
        source_description=_text(row, ["source_description", "description"]),
        source=_text(row, ["source"]),
        created_at=_text(row, CREATED_AT_ALIASES),
    )


def map_purchase_history_row(row: GenericRow, fallback_company_id: str, index: int) -> PurchaseHistoryLine:
    company_id = _company_id(row, fallback_company_id)
    return PurchaseHistoryLine(
        id=_row_id(row, ["id", "history_id", "line_id"], "history", company_id, index),
        company_id=company_id,
        date=_text(row, ["date", "trade_date", "purchase_date", "invoice_date", "shipment_date", "month"]),
        importer=_text(row, ["importer", "company_name", "customer", "buyer"]),
        exporter=_text(row, ["exporter", "supplier", "vendor", "counterparty"]),
        hs_code=_text(row, HS_CODE_ALIASES),
        product=_text(row, PRODUCT_ALIASES),
        product_description=_text(row, ["product_description", "description"]),
        origin_country=_text(row, ["origin_country", "supplier_country", "origin"]),
        destination_country=_text(row, ["destination_country", "country", "destination"]),
        total_price_usd=_number(row, ["total_price_usd", "value_usd", "amount_usd", "invoice_usd", "usd"]),
        weight_kg=_number(row, WEIGHT_KG_ALIASES),
        quantity=_number(row, QUANTITY_ALIASES),
        unit_price_usd_kg=_number(row, ["unit_price_usd_kg", "usd_per_kg"]),
        unit_price_usd_qty=_number(row, ["unit_price_usd_qty", "usd_per_qty"]),
        quantity_unit=_text(row, ["quantity_unit", "unit"]),
        created_at=_text(row, CREATED_AT_ALIASES),
    )


def map_supply_chain_row(row: GenericRow, fallback_company_id: str, index: int) -> SupplyChainRelationship:
    company_id = _company_id(row, fallback_company_id)
    exporter = _text(row, ["exporter", "supplier_name", "supplier", "vendor", "counterparty"])
    kg_weight = _number(row, ["kg_weight", *WEIGHT_KG_ALIASES])
    total_price_usd = _number(row, ["total_price_usd", "total_value_usd", "value_usd", "amount_usd", "usd"])
    volume_mt = _number(row, ["volume_mt", "qty_mt", "quantity_mt", "mt"])
    if volume_mt is None and kg_weight is not None:
        volume_mt = kg_weight / 1000

    return SupplyChainRelationship(
        id=_row_id(row, ["id", "supplychain_id", "line_id"], "supply", company_id, index),
        company_id=company_id,
        exporter=exporter,
        importer=_text(row, ["importer", "buyer", "customer", "company_name"]),
        trades_sum=_number(row, ["trades_sum", "trades", "trade_sum"]),
        trade_frequency_ratio=_number(row, ["trade_frequency_ratio", "frequency_ratio", "trade_freq_ratio"]),
        kg_weight=kg_weight,
        weight_ratio=_number(row, ["weight_ratio"]),
        quantity=_number(row, QUANTITY_ALIASES),
        quantity_ratio=_number(row, ["quantity_ratio", "qty_ratio"]),
        total_price_usd=total_price_usd,
        total_price_ratio=_number(row, ["total_price_ratio", "value_ratio", "usd_ratio"]),
        supplier_name=exporter,
        supplier_country=_text(row, ["supplier_country", "origin_country", "origin"]),
        relationship_type=_text(row, ["relationship_type", "relationship", "type"]),
        product=_text(row, PRODUCT_ALIASES),
        hs_code=_text(row, HS_CODE_ALIASES),
        incoterm=_text(row, ["incoterm", "incoterms", "terms"]),
        lead_time_days=_number(row, ["lead_time_days", "leadtime_days", "lead_time", "leadtime"]),
        risk_level=_text(row, ["risk_level", "risk", "risk_tier"]),
        last_shipment_date=_text(row, ["last_shipment_date", "last_purchase_date", "latest_date", "date"]),
        volume_mt=volume_mt,
        total_value_usd=total_price_usd,
        status=_text(row, ["status"]),
        notes=_text(row, ["notes", "remark", "remarks"]),
        created_at=_text(row, CREATED_AT_ALIASES),
    )


def map_rows(rows: Sequence[GenericRow], mapper: Any, fallback_company_id: str) -> list:
    """Apply an indexed mapper to every row, preserving fetch order."""
    return [mapper(row, fallback_company_id, index) for index, row in enumerate(rows)]
