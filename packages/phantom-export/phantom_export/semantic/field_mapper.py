"""Map semantic field names to ``Table[Column]`` references.

Lookup order: the scenario's dimension table, then the shared calendar
fields, then a guess that the field is a fact-table column with its first
letter upper-cased. The guess may name a column that does not exist;
``map_field`` keeps it (and warns), ``resolve_field`` drops it.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..models.dashboard import Scenario
from ..models.schema import ColumnRef
from .registry import get_fact_table, get_schema

logger = logging.getLogger(__name__)


def _refs(table: str, **columns: str) -> dict[str, ColumnRef]:
    return {field: ColumnRef(table, column) for field, column in columns.items()}


DIMENSION_FIELDS: dict[Scenario, dict[str, ColumnRef]] = {
    Scenario.RETAIL: {
        **_refs("Store", Region="Region", Store="StoreName"),
        **_refs("Product", Category="Category", Product="ProductName"),
    },
    Scenario.SAAS: _refs("Customer", Region="Region", Tier="Tier", Customer="CustomerName", Industry="Industry"),
    Scenario.HR: _refs("Employee", Department="Department", Role="Role", Office="Office"),
    Scenario.LOGISTICS: _refs(
        "Shipment", Carrier="Carrier", Origin="Origin", Destination="Destination", Status="Status"
    ),
    Scenario.PORTFOLIO: {
        **_refs("PortfolioEntity", Sector="Sector", Region="Region"),
        **_refs("ControversyScore", Group="Group", EntityName="EntityName"),
    },
    Scenario.FINANCE: _refs(
        "FinanceRecord", Account="Account", BusinessUnit="BusinessUnit", Scenario="Scenario", Region="Region"
    ),
    Scenario.SOCIAL: _refs("SocialPost", Platform="Platform", Sentiment="Sentiment", Location="Location", User="User"),
}

DATE_FIELDS: dict[str, ColumnRef] = _refs("DateTable", Month="Month", Year="Year", Quarter="Quarter")


def capitalize_first(name: str) -> str:
    """Upper-case the first character only (``revenuePL`` -> ``RevenuePL``)."""
    return name[:1].upper() + name[1:]


def _lookup(scenario: Scenario, field: str) -> tuple[ColumnRef, bool]:
    """Return the reference and whether it came from a fixed table."""
    mapped = DIMENSION_FIELDS[scenario].get(field) or DATE_FIELDS.get(field)
    if mapped is not None:
        return mapped, True
    return ColumnRef(get_fact_table(scenario), capitalize_first(field)), False


def map_field(scenario: Scenario | str, field: str) -> ColumnRef:
    """Best-effort mapping; never fails, warns on a dangling guess."""
    scenario = Scenario.coerce(scenario)
    ref, fixed = _lookup(scenario, field)
    if not fixed and not get_schema(scenario).has_column(ref.table, ref.column):
        logger.warning(
            "Field %r has no mapping in %s; guessed %s which is not in the schema",
            field, scenario.value, ref.dax,
        )
    return ref


def resolve_field(scenario: Scenario | str, field: Optional[str]) -> Optional[ColumnRef]:
    """Validated mapping: ``None`` when the field does not name a real column."""
    if not field:
        return None
    scenario = Scenario.coerce(scenario)
    ref, _ = _lookup(scenario, field)
    table = get_schema(scenario).table(ref.table)
    column = table.column(ref.column) if table else None
    if column is None:
        return None
    # canonical casing from the schema (``mrr`` -> ``MRR``)
    return ColumnRef(ref.table, column.name)
