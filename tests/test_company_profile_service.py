"""
Tests for the company profile aggregation service against a fake row store.
"""

import asyncio

import pytest

from app.core.config import Settings
from app.errors import (
    DataSourceNotConfigured,
    MissingCompanyReference,
    ProfileNotFound,
    ProfileUnavailable,
)
from app.repositories.row_source import RowSourceError
from app.services.company_profile_service import (
    CompanyProfileService,
    build_fallback_purchase_line,
    pick_preferred_company_name,
)
from app.schemas.company_profile import CompanyMaster, CompanyOverview

COMPANY_ID = "c-1"


def _config(**overrides):
    return Settings(_env_file=None, **overrides)


def _tables():
    return {
        "companies": [{"company_id": COMPANY_ID, "customer": "ACME-VN", "website": "www.acme.vn"}],
        "company_overview": [
            {"company_id": COMPANY_ID, "recent_trends": "0.2", "core_suppliers": ["Delta Steel"], "is_active": True}
        ],
        "company_info": [
            {"company_id": COMPANY_ID, "Company_Name": "Acme Trading Company Limited", "Country": "Vietnam"}
        ],
        "company_contract": [
            {"companyId": COMPANY_ID, "Contact_Name": "An", "Contact_Email": "An@acme.vn", "created_at": "2024-01-02"},
            {"companyId": COMPANY_ID, "Contact_Name": "An dup", "Contact_Email": "an@acme.vn ", "created_at": "2024-01-03"},
            {"companyId": COMPANY_ID, "Contact_Name": "Binh", "Phone": "0901", "created_at": "2024-01-04"},
            {"companyId": COMPANY_ID, "Department": "Sales", "created_at": "2024-01-05"},
        ],
        "company_emails": [
            {"company_id": COMPANY_ID, "email": "sales@acme.vn", "created_at": "2024-01-01"},
            {"company_id": COMPANY_ID, "email": "SALES@acme.vn", "created_at": "2024-01-02"},
        ],
        "purchase_trend": [
            {"company_id": COMPANY_ID, "date": "2024-02-01", "exporter": "Delta Steel", "hs_code": "7208.51",
             "quantity": "100", "origin_country": "Japan", "product": "Coil"},
            {"company_id": COMPANY_ID, "date": "2024-03-01", "exporter": "Echo Metals", "hs_code": "7209.16",
             "quantity": "50", "origin_country": "Korea", "product": "Sheet"},
            {"company_id": COMPANY_ID, "date": "2024-01-01", "exporter": "Delta Steel", "hs_code": "3901.10",
             "weight_kg": "20", "origin_country": "Japan", "product": "Resin"},
        ],
        "company_supply_chain": [
            {"company_id": COMPANY_ID, "supplier_name": "Delta Steel", "importer": "Acme Trading Company Limited",
             "trades_sum": 12, "created_at": "2024-01-01"},
            {"company_id": COMPANY_ID, "supplier_name": "Echo Metals", "importer": "Beta Distribution",
             "trades_sum": 3, "created_at": "2024-01-02"},
        ],
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_load_profile_assembles_every_section(fake_source_factory):
    source = fake_source_factory(tables=_tables())
    service = CompanyProfileService(source, _config())

    profile = await service.load_profile(COMPANY_ID)

    assert profile.company_name == "Acme Trading Company Limited"
    assert profile.company_location == "Vietnam"
    assert profile.company_website == "https://www.acme.vn"
    assert profile.master.customer == "ACME-VN"
    assert profile.overview.growth_rate_last_3m == 0.2
    assert profile.basic_info.company_id == COMPANY_ID

    assert [c.name for c in profile.contacts] == ["An"]
    assert [c.name for c in profile.contact_rows] == ["An", "Binh"]
    assert [(e.email, e.source) for e in profile.company_emails] == [("sales@acme.vn", "company_emails")]

    # Ordered by date descending
    assert [line.date for line in profile.purchase_history] == ["2024-03-01", "2024-02-01", "2024-01-01"]
    assert [(n.name, n.value) for n in profile.exporter_flow] == [("Delta Steel", 12), ("Echo Metals", 3)]
    assert [(n.name, n.value) for n in profile.importer_flow] == [("Beta Distribution", 3)]

    stats = profile.statistics
    assert stats.records == 3
    assert stats.suppliers == 2
    assert stats.origins == 2
    assert stats.products == 3
    assert stats.hs_filter_fallback_used is False
    assert stats.latest_record_date == "2024-03-01"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_load_profile_skips_drifted_tables(fake_source_factory):
    source = fake_source_factory(tables=_tables())
    service = CompanyProfileService(source, _config())

    await service.load_profile(COMPANY_ID)

    queried = source.tables_queried()
    # purchase_trend answered, so purchase_trends is never touched
    assert "purchase_trend" in queried
    assert "purchase_trends" not in queried
    assert "company_history" in queried
    # company_emails answered before company_contact
    assert "company_contact" not in queried


@pytest.mark.unit
@pytest.mark.asyncio
async def test_hs_filter_narrows_or_falls_back(fake_source_factory):
    service = CompanyProfileService(fake_source_factory(tables=_tables()), _config())

    narrowed = await service.load_profile(COMPANY_ID, hs_code="7208")
    assert [line.hs_code for line in narrowed.purchase_history] == ["7208.51"]
    assert narrowed.statistics.records == 1
    assert narrowed.statistics.hs_filter_fallback_used is False

    fallback = await service.load_profile(COMPANY_ID, hs_code="8471")
    assert fallback.statistics.records == 3
    assert fallback.statistics.hs_filter_fallback_used is True
    assert fallback.hs_code == "8471"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_flow_nodes_fall_back_to_purchase_history(fake_source_factory):
    tables = _tables()
    del tables["company_supply_chain"]
    service = CompanyProfileService(fake_source_factory(tables=tables), _config())

    profile = await service.load_profile(COMPANY_ID)

    assert profile.supply_chain == []
    assert [(n.name, n.value) for n in profile.exporter_flow] == [("Delta Steel", 120), ("Echo Metals", 50)]
    assert profile.importer_flow == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fallback_purchase_line_when_history_is_missing(fake_source_factory):
    tables = {
        "company_overview": [
            {"company_id": COMPANY_ID, "latest_purchase_date": "2024-06-30", "purchase_value_last_12m": "5,000",
             "core_products": "Coil, Sheet", "core_suppliers": ["Delta Steel"]}
        ],
        "company_info": [{"company_id": COMPANY_ID, "company_name": "Acme", "location": "Vietnam"}],
    }
    service = CompanyProfileService(fake_source_factory(tables=tables), _config())

    profile = await service.load_profile(COMPANY_ID)

    assert len(profile.purchase_history) == 1
    line = profile.purchase_history[0]
    assert line.id == f"fallback-{COMPANY_ID}"
    assert line.date == "2024-06-30"
    assert line.importer == "Acme"
    assert line.exporter == "Delta Steel"
    assert line.product == "Coil"
    assert line.destination_country == "Vietnam"
    assert line.total_price_usd == 5000.0
    assert profile.statistics.records == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_other_error_is_fatal_for_the_whole_load(fake_source_factory):
    tables = _tables()
    errors = {"company_overview": RowSourceError("canceling statement due to statement timeout", code="57014")}
    service = CompanyProfileService(fake_source_factory(tables=tables, errors=errors), _config())

    with pytest.raises(ProfileUnavailable) as excinfo:
        await service.load_profile(COMPANY_ID)

    assert excinfo.value.status_code == 502
    assert excinfo.value.payload["error"]["message"] == "Unable to load company profile right now."
    assert isinstance(excinfo.value.__cause__, RowSourceError)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fatal_error_stops_sibling_fetches(fake_source_factory):
    source = fake_source_factory(
        tables=_tables(),
        errors={"company_overview": RowSourceError("canceling statement due to statement timeout", code="57014")},
        delays={"supabese-company_history": 0.2, "supabese-company_supplychain": 0.2},
    )
    service = CompanyProfileService(source, _config())

    with pytest.raises(ProfileUnavailable):
        await service.load_profile(COMPANY_ID)
    calls_at_failure = len(source.calls)

    await asyncio.sleep(0.4)

    assert len(source.calls) == calls_at_failure
    assert "supabese_company_history" not in source.tables_queried()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_nothing_found_raises_not_found(fake_source_factory):
    service = CompanyProfileService(fake_source_factory(tables=_tables()), _config())

    with pytest.raises(ProfileNotFound):
        await service.load_profile("unknown-company")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_placeholder_company_email_still_counts_as_profile_data(fake_source_factory):
    tables = {"company_emails": [{"company_id": COMPANY_ID, "email": "n/a", "created_at": "2024-01-01"}]}
    service = CompanyProfileService(fake_source_factory(tables=tables), _config())

    profile = await service.load_profile(COMPANY_ID)

    assert profile.company_name == COMPANY_ID
    assert profile.company_emails == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_emailless_contacts_alone_are_not_a_profile(fake_source_factory):
    tables = {"company_contract": [{"company_id": COMPANY_ID, "Contact_Name": "Binh", "created_at": "2024-01-01"}]}
    service = CompanyProfileService(fake_source_factory(tables=tables), _config())

    with pytest.raises(ProfileNotFound):
        await service.load_profile(COMPANY_ID)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_missing_reference_and_missing_source():
    with pytest.raises(MissingCompanyReference):
        await CompanyProfileService(None, _config()).load_profile("  ")

    with pytest.raises(DataSourceNotConfigured):
        await CompanyProfileService(None, _config()).load_profile(COMPANY_ID)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_flow_limit_comes_from_settings(fake_source_factory):
    tables = {
        "company_supply_chain": [
            {"company_id": COMPANY_ID, "exporter": f"Exporter {i}", "trades_sum": i, "created_at": "2024-01-01"}
            for i in range(8)
        ]
    }
    service = CompanyProfileService(fake_source_factory(tables=tables), _config(FLOW_NODE_LIMIT=5))

    profile = await service.load_profile(COMPANY_ID)

    assert len(profile.exporter_flow) == 5


@pytest.mark.unit
def test_pick_preferred_company_name():
    assert pick_preferred_company_name("ACME-VN", "Acme Trading Company Limited") == "Acme Trading Company Limited"
    assert pick_preferred_company_name("CÔNG TY TNHH ACME", "ACME") == "CÔNG TY TNHH ACME"
    assert pick_preferred_company_name(None, "  ", "Acme") == "Acme"
    assert pick_preferred_company_name(None, "") is None


@pytest.mark.unit
def test_build_fallback_purchase_line_needs_some_signal():
    assert build_fallback_purchase_line(COMPANY_ID, "Acme", None, None, None) is None

    master = CompanyMaster(company_id=COMPANY_ID, trades=42, product="Resin")
    line = build_fallback_purchase_line(COMPANY_ID, "Acme", "Vietnam", CompanyOverview(company_id=COMPANY_ID), master)
    assert line.quantity == 42
    assert line.weight_kg == 42
    assert line.product == "Resin"
    assert line.date is None
