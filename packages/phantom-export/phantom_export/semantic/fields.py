"""Semantic fields per scenario.

Each field has a role that decides whether it is a legal dimension or an
aggregatable measure. Field order matters: defaults pick the first match.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models.dashboard import Scenario


class SemanticRole(str, Enum):
    TIME = "Time"
    ENTITY = "Entity"
    GEOGRAPHY = "Geography"
    CATEGORY = "Category"
    MEASURE = "Measure"
    IDENTIFIER = "Identifier"


@dataclass(frozen=True)
class SemanticField:
    name: str
    role: SemanticRole
    type: str = "string"


def _fields(*specs: tuple[str, str]) -> tuple[SemanticField, ...]:
    out = []
    for name, role in specs:
        role_enum = SemanticRole(role)
        if role_enum is SemanticRole.TIME:
            kind = "date"
        elif role_enum is SemanticRole.MEASURE:
            kind = "number"
        else:
            kind = "string"
        out.append(SemanticField(name, role_enum, kind))
    return tuple(out)


SCENARIO_FIELDS: dict[Scenario, tuple[SemanticField, ...]] = {
    Scenario.RETAIL: _fields(
        ("Date", "Time"), ("Store", "Entity"), ("Region", "Geography"),
        ("Category", "Category"), ("Product", "Category"),
        ("Revenue", "Measure"), ("Profit", "Measure"), ("Quantity", "Measure"), ("Discount", "Measure"),
    ),
    Scenario.SAAS: _fields(
        ("Date", "Time"), ("Customer", "Entity"), ("Region", "Geography"),
        ("Tier", "Category"), ("Industry", "Category"),
        ("MRR", "Measure"), ("ARR", "Measure"), ("Churn", "Measure"), ("LTV", "Measure"), ("CAC", "Measure"),
    ),
    Scenario.HR: _fields(
        ("Date", "Time"), ("Employee", "Entity"), ("Office", "Geography"),
        ("Department", "Category"), ("Role", "Category"),
        ("Salary", "Measure"), ("Rating", "Measure"), ("Tenure", "Measure"), ("Attrition", "Measure"),
    ),
    Scenario.LOGISTICS: _fields(
        ("Date", "Time"), ("Carrier", "Entity"), ("Origin", "Geography"), ("Destination", "Geography"),
        ("Status", "Category"),
        ("Cost", "Measure"), ("Weight", "Measure"), ("OnTime", "Measure"),
    ),
    Scenario.FINANCE: _fields(
        ("Date", "Time"), ("Account", "Entity"), ("Region", "Geography"),
        ("BusinessUnit", "Category"), ("Scenario", "Category"),
        ("Amount", "Measure"), ("Variance", "Measure"),
    ),
    Scenario.PORTFOLIO: _fields(
        ("Date", "Time"), ("Entity", "Entity"), ("Region", "Geography"), ("Sector", "Category"),
        ("MarketValue", "Measure"), ("ControversyScore", "Measure"), ("Score", "Measure"),
    ),
    Scenario.SOCIAL: _fields(
        ("Date", "Time"), ("User", "Entity"), ("Location", "Geography"),
        ("Platform", "Category"), ("Sentiment", "Category"),
        ("Engagements", "Measure"), ("Mentions", "Measure"), ("SentimentScore", "Measure"),
    ),
}

_DIMENSION_ROLES = (SemanticRole.CATEGORY, SemanticRole.ENTITY, SemanticRole.GEOGRAPHY)


def get_fields(scenario: Scenario | str) -> tuple[SemanticField, ...]:
    return SCENARIO_FIELDS[Scenario.coerce(scenario)]


def default_category(scenario: Scenario | str) -> Optional[str]:
    """First category-like field: the default axis for bar-family visuals."""
    for f in get_fields(scenario):
        if f.role in _DIMENSION_ROLES:
            return f.name
    return None


def default_time(scenario: Scenario | str) -> Optional[str]:
    for f in get_fields(scenario):
        if f.role is SemanticRole.TIME:
            return f.name
    return None


def default_table_columns(scenario: Scenario | str) -> list[str]:
    """One leading dimension followed by the first two measures."""
    scenario_fields = get_fields(scenario)
    dimension = next(
        (f.name for f in scenario_fields if f.role not in (SemanticRole.MEASURE, SemanticRole.IDENTIFIER)),
        None,
    )
    measures = [f.name for f in scenario_fields if f.role is SemanticRole.MEASURE][:2]
    return [name for name in [dimension, *measures] if name]
