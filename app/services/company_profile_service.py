"""
Company profile aggregation.

Loads every profile entity concurrently through the candidate table
fallback, maps the raw rows onto canonical records, and derives the contact
lists, flow graphs and purchase statistics. Nothing is cached; each call
builds a fresh profile.
"""

import asyncio
import logging
import re
from typing import List, Optional, Sequence

from app.core.config import Settings, settings as default_settings
from app.errors import (
    DataSourceNotConfigured,
    MissingCompanyReference,
    ProfileNotFound,
    ProfileUnavailable,
)
from app.repositories.row_source import RowSource
from app.schemas.company_profile import (
    CompanyBasicInfo,
    CompanyEmail,
    CompanyMaster,
    CompanyOverview,
    CompanyProfile,
    ContactPerson,
    PurchaseHistoryLine,
    SupplyChainRelationship,
)
from app.services.contact_dedup import (
    EmaillessContactPolicy,
    dedupe_company_emails,
    dedupe_contacts,
    label_email_provenance,
    sort_by_email,
)
from app.services.flow_aggregation import (
    exporter_flow_nodes,
    filter_by_hs_prefix,
    importer_flow_nodes,
    purchase_statistics,
)
from app.services.profile_mappers import (
    map_basic_info_row,
    map_company_email_row,
    map_company_master_row,
    map_contact_row,
    map_overview_row,
    map_purchase_history_row,
    map_rows,
    map_supply_chain_row,
)
from app.services.source_fallback import DEFAULT_FILTER_COLUMNS, FallbackFetcher
from app.utils.row_values import pick_first_text, to_text_or_null
from app.utils.url_canonicalizer import normalize_url

logger = logging.getLogger(__name__)

# Candidate tables, in priority order. Misspelled names are real deployments.
COMPANY_MASTER_TABLES = ["supabase_companies", "companies"]
OVERVIEW_TABLES = ["company_overview"]
BASIC_INFO_TABLES = ["company_basic_info", "company_info"]
CONTACT_TABLES = ["company_contract"]
COMPANY_EMAIL_TABLES = ["company_email", "company_emails", "company_contact", "company_contacts", "company_contract"]
PURCHASE_HISTORY_TABLES = [
    "supabese-company_history",
    "supabese_company_history",
    "supabase_company_history",
    "company_history",
    "purchase_trend",
    "purchase_trends",
]
SUPPLY_CHAIN_TABLES = [
    "supabese-company_supplychain",
    "supabese_company_supplychain",
    "supabase_company_supplychain",
    "company_supplychain",
    "company_supply_chain",
]
SINGLE_ROW_FILTER_COLUMNS = ["company_id", "companyid"]

_CORPORATE_HINT = re.compile(r"(CÔNG TY|COMPANY|LIMITED|LTD|CORP|CORPORATION|CO\.)")
_SHORT_ALIAS = re.compile(r"^[A-Z0-9]+(?:[-/][A-Z0-9]+)+$")


def _company_name_score(value: str) -> int:
    words = len(value.split())
    upper = value.upper()
    points = 0
    if len(value) >= 18:
        points += 4
    if words >= 3:
        points += 4
    if _CORPORATE_HINT.search(upper):
        points += 3
    if len(value) <= 12 and _SHORT_ALIAS.match(value):
        points -= 6
    return points


def pick_preferred_company_name(*values: Optional[str]) -> Optional[str]:
    """Pick the most name-like candidate: long, multi-word, corporate suffixed.

    Short dashed codes ("ABC-12") lose to real names. Ties go to the longer
    value, then to the earlier argument.
    """
    candidates: List[str] = []
    for value in values:
        trimmed = (value or "").strip()
        if trimmed and trimmed not in candidates:
            candidates.append(trimmed)
    if not candidates:
        return None
    return sorted(candidates, key=lambda name: (-_company_name_score(name), -len(name)))[0]


def build_fallback_purchase_line(
    company_id: str,
    company_name: str,
    company_location: Optional[str],
    overview: Optional[CompanyOverview],
    master: Optional[CompanyMaster],
) -> Optional[PurchaseHistoryLine]:
    """Synthesize one purchase line from summary rows when no history exists."""
    latest_date = pick_first_text(
        overview.latest_purchase_date if overview else None,
        master.latest_purchase_time if master else None,
        overview.updated_at if overview else None,
        master.created_at if master else None,
    )
    fallback_weight = master.trades if master else None
    fallback_amount = overview.purchase_value_last_12m if overview else None
    if latest_date is None and fallback_weight is None and fallback_amount is None:
        return None

    def first(values: Optional[List[str]]) -> Optional[str]:
        return values[0] if values else None

    return PurchaseHistoryLine(
        id=f"fallback-{company_id}",
        company_id=company_id,
        date=latest_date,
        importer=company_name,
        exporter=first(overview.core_suppliers) if overview else None,
        product=(first(overview.core_products) if overview else None) or (master.product if master else None),
        product_description=pick_first_text(
            master.product_description if master else None,
            overview.business_overview if overview else None,
        ),
        origin_country=first(overview.core_supplier_countries) if overview else None,
        destination_country=company_location,
        total_price_usd=fallback_amount,
        weight_kg=fallback_weight,
        quantity=fallback_weight,
    )


class CompanyProfileService:
    """Builds the company profile from a drifted, weakly-typed row store."""

    def __init__(self, source: Optional[RowSource], config: Settings = default_settings):
        self.source = source
        self.config = config
        self.fetcher = FallbackFetcher(source) if source is not None else None

    async def load_profile(self, company_id: str, hs_code: Optional[str] = None) -> CompanyProfile:
        company_id = (company_id or "").strip()
        if not company_id:
            raise MissingCompanyReference()
        if self.fetcher is None:
            raise DataSourceNotConfigured()

        tasks = [
            asyncio.ensure_future(fetch)
            for fetch in (
                self.fetch_company_master(company_id),
                self.fetch_overview(company_id),
                self.fetch_basic_info(company_id),
                self.fetch_contacts(company_id),
                self.fetch_company_emails(company_id),
                self.fetch_purchase_history(company_id),
                self.fetch_supply_chain(company_id),
            )
        ]
        try:
            (
                master,
                overview,
                basic_info,
                contacts,
                company_emails,
                purchase_history,
                supply_chain,
            ) = await asyncio.gather(*tasks)
        except Exception as exc:
            # One failed fetch ends the load; stop the others before reporting
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.error("Failed to load company profile %s", company_id, exc_info=True)
            raise ProfileUnavailable() from exc

        email_keyed = sort_by_email(dedupe_contacts(contacts, EmaillessContactPolicy.DROP))
        contact_rows = dedupe_contacts(contacts, EmaillessContactPolicy.KEEP)
        email_entries = dedupe_company_emails(company_emails)

        # Counts raw non-empty company emails, not the address-shaped entries
        if not any([master, overview, basic_info, email_keyed, company_emails, purchase_history, supply_chain]):
            raise ProfileNotFound()

        company_name = self.resolve_company_name(company_id, master, overview, basic_info, purchase_history)
        company_location = pick_first_text(
            basic_info.location if basic_info else None,
            master.location if master else None,
            master.customer_location if master else None,
        )
        company_website = normalize_url(
            pick_first_text(basic_info.website if basic_info else None, master.website if master else None)
        )

        all_purchase_rows = list(purchase_history)
        if not all_purchase_rows:
            fallback_line = build_fallback_purchase_line(company_id, company_name, company_location, overview, master)
            if fallback_line is not None:
                all_purchase_rows = [fallback_line]

        hs_result = filter_by_hs_prefix(all_purchase_rows, hs_code)
        if hs_result.fallback_used:
            logger.info("HS filter %s matched no purchase rows for %s; showing all rows", hs_code, company_id)

        flow_limit = self.config.FLOW_NODE_LIMIT
        return CompanyProfile(
            company_id=company_id,
            company_name=company_name,
            company_location=company_location,
            company_website=company_website,
            hs_code=hs_code,
            master=master,
            overview=overview,
            basic_info=basic_info,
            contacts=email_keyed,
            contact_rows=contact_rows,
            company_emails=email_entries,
            purchase_history=hs_result.rows,
            supply_chain=supply_chain,
            exporter_flow=exporter_flow_nodes(supply_chain, hs_result.rows, limit=flow_limit),
            importer_flow=importer_flow_nodes(supply_chain, company_name, limit=flow_limit),
            statistics=purchase_statistics(hs_result.rows, hs_result.fallback_used),
        )

    @staticmethod
    def resolve_company_name(
        company_id: str,
        master: Optional[CompanyMaster],
        overview: Optional[CompanyOverview],
        basic_info: Optional[CompanyBasicInfo],
        purchase_history: Sequence[PurchaseHistoryLine],
    ) -> str:
        preferred = pick_preferred_company_name(
            basic_info.company_name if basic_info else None,
            basic_info.name_standard if basic_info else None,
            basic_info.name_en if basic_info else None,
            master.customer_name if master else None,
            purchase_history[0].importer if purchase_history else None,
            master.customer if master else None,
        )
        return preferred or pick_first_text(overview.company_id if overview else None, company_id) or company_id

    async def fetch_company_master(self, company_id: str) -> Optional[CompanyMaster]:
        row = await self.fetcher.fetch_first_row(COMPANY_MASTER_TABLES, company_id, SINGLE_ROW_FILTER_COLUMNS)
        return map_company_master_row(row, company_id) if row else None

    async def fetch_overview(self, company_id: str) -> Optional[CompanyOverview]:
        row = await self.fetcher.fetch_first_row(OVERVIEW_TABLES, company_id, SINGLE_ROW_FILTER_COLUMNS)
        return map_overview_row(row, company_id) if row else None

    async def fetch_basic_info(self, company_id: str) -> Optional[CompanyBasicInfo]:
        row = await self.fetcher.fetch_first_row(BASIC_INFO_TABLES, company_id, SINGLE_ROW_FILTER_COLUMNS)
        return map_basic_info_row(row, company_id) if row else None

    async def fetch_contacts(self, company_id: str) -> List[ContactPerson]:
        rows = await self.fetcher.fetch_first_available(
            CONTACT_TABLES,
            DEFAULT_FILTER_COLUMNS,
            company_id,
            order_column="created_at",
            ascending=True,
            limit=self.config.PROFILE_CONTACT_LIMIT,
        )
        return map_rows(rows, map_contact_row, company_id)

    async def fetch_company_emails(self, company_id: str) -> List[CompanyEmail]:
        result = await self.fetcher.fetch_from_candidates(
            COMPANY_EMAIL_TABLES,
            DEFAULT_FILTER_COLUMNS,
            company_id,
            order_column="created_at",
            ascending=True,
            limit=self.config.PROFILE_CONTACT_LIMIT,
        )
        emails = map_rows(result.rows, map_company_email_row, company_id)
        return [row for row in label_email_provenance(emails, result.table) if to_text_or_null(row.email)]

    async def fetch_purchase_history(self, company_id: str) -> List[PurchaseHistoryLine]:
        rows = await self.fetcher.fetch_first_available(
            PURCHASE_HISTORY_TABLES,
            DEFAULT_FILTER_COLUMNS,
            company_id,
            order_column="date",
            ascending=False,
            limit=self.config.PROFILE_HISTORY_LIMIT,
        )
        return map_rows(rows, map_purchase_history_row, company_id)

    async def fetch_supply_chain(self, company_id: str) -> List[SupplyChainRelationship]:
        rows = await self.fetcher.fetch_first_available(
            SUPPLY_CHAIN_TABLES,
            DEFAULT_FILTER_COLUMNS,
            company_id,
            order_column="created_at",
            ascending=False,
            limit=self.config.PROFILE_SUPPLY_CHAIN_LIMIT,
        )
        return map_rows(rows, map_supply_chain_row, company_id)
