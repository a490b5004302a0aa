"""
Flow graph and purchase statistics for the company profile.

Flow nodes rank trading counterparties by a magnitude metric. Each row
contributes the first non-null metric in a fixed priority order; metrics are
never blended within a row.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from app.schemas.company_profile import (
    FlowNode,
    PurchaseHistoryLine,
    PurchaseStatistics,
    SupplyChainRelationship,
)
from app.utils.row_values import normalize_name

FLOW_NODE_LIMIT = 10
HS_PREFIX_DIGITS = 6

SUPPLY_CHAIN_MAGNITUDE_FIELDS = ("trades_sum", "quantity", "kg_weight", "volume_mt", "total_price_usd")
PURCHASE_MAGNITUDE_FIELDS = ("quantity", "weight_kg", "total_price_usd")

_NON_DIGITS = re.compile(r"\D+")


@dataclass
class HsFilterResult:
    rows: List[PurchaseHistoryLine]
    fallback_used: bool = False
    matched: int = 0


def normalize_hs_prefix(hs_code: Optional[str]) -> str:
    """Keep the digits of an HS code, at most the six-digit subheading."""
    return _NON_DIGITS.sub("", hs_code or "")[:HS_PREFIX_DIGITS]


def filter_by_hs_prefix(rows: Sequence[PurchaseHistoryLine], hs_code: Optional[str]) -> HsFilterResult:
    """Filter purchase lines by HS prefix, falling back to every row.

    When the prefix matches nothing the unfiltered rows are returned with
    ``fallback_used`` set, so callers can say the filter had no effect.
    """
    prefix = normalize_hs_prefix(hs_code)
    if not prefix:
        return HsFilterResult(rows=list(rows), matched=len(rows))

    matched = [row for row in rows if _NON_DIGITS.sub("", row.hs_code or "").startswith(prefix)]
    if matched:
        return HsFilterResult(rows=matched, matched=len(matched))
    return HsFilterResult(rows=list(rows), fallback_used=bool(rows), matched=0)


def _magnitude(row: object, fields: Sequence[str]) -> float:
    for name in fields:
        value = getattr(row, name, None)
        if value is not None:
            return value
    return 0


def _rank(grouped: Dict[str, float], limit: int) -> List[FlowNode]:
    nodes = [FlowNode(name=name, value=value) for name, value in grouped.items()]
    nodes.sort(key=lambda node: node.value, reverse=True)
    return nodes[:limit]


def _group(rows: Iterable[object], name_of, fields: Sequence[str], exclude: str = "") -> Dict[str, float]:
    grouped: Dict[str, float] = {}
    for row in rows:
        name = (name_of(row) or "").strip()
        if not name:
            continue
        if exclude and normalize_name(name) == exclude:
            continue
        grouped[name] = grouped.get(name, 0) + _magnitude(row, fields)
    return grouped


def exporter_flow_nodes(
    supply_chain: Sequence[SupplyChainRelationship],
    purchase_history: Sequence[PurchaseHistoryLine],
    limit: int = FLOW_NODE_LIMIT,
) -> List[FlowNode]:
    """Top exporters, from supply-chain rows or else from purchase history."""
    grouped = _group(
        supply_chain,
        lambda row: row.exporter or row.supplier_name,
        SUPPLY_CHAIN_MAGNITUDE_FIELDS,
    )
    if not grouped:
        grouped = _group(purchase_history, lambda row: row.exporter, PURCHASE_MAGNITUDE_FIELDS)
    return _rank(grouped, limit)


def importer_flow_nodes(
    supply_chain: Sequence[SupplyChainRelationship],
    company_name: Optional[str],
    limit: int = FLOW_NODE_LIMIT,
) -> List[FlowNode]:
    """Top importers, excluding the subject company itself."""
    grouped = _group(
        supply_chain,
        lambda row: row.importer,
        SUPPLY_CHAIN_MAGNITUDE_FIELDS,
        exclude=normalize_name(company_name),
    )
    return _rank(grouped, limit)


def _distinct(values: Iterable[Optional[str]]) -> int:
    return len({value for value in values if value})


def purchase_statistics(rows: Sequence[PurchaseHistoryLine], hs_filter_fallback_used: bool = False) -> PurchaseStatistics:
    dates = [row.date for row in rows if row.date]
    return PurchaseStatistics(
        records=len(rows),
        suppliers=_distinct(row.exporter for row in rows),
        origins=_distinct(row.origin_country for row in rows),
        destinations=_distinct(row.destination_country for row in rows),
        products=_distinct(row.product for row in rows),
        hs_filter_fallback_used=hs_filter_fallback_used,
        latest_record_date=max(dates) if dates else None,
    )
