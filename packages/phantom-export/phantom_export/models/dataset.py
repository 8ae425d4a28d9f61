"""Dataset snapshot rows consumed by the project package writer.

Rows mirror the dashboard store's collections. Keys in the store snapshot are
camelCase (``revenuePL``, ``storeId``); each field records its key in
metadata so ``from_dict`` can read snapshots without a naming convention.
Rows are frozen: an export never mutates its input.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, Mapping, Optional, Union

Temporal = Union[str, date, datetime, None]


def _col(key: str):
    return field(default=None, metadata={"key": key})


class _Row:
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        kwargs = {}
        for f in fields(cls):
            key = f.metadata.get("key", f.name)
            if key in data:
                kwargs[f.name] = data[key]
        return cls(**kwargs)


@dataclass(frozen=True)
class Store(_Row):
    id: Optional[str] = _col("id")
    name: Optional[str] = _col("name")
    region: Optional[str] = _col("region")
    country: Optional[str] = _col("country")


@dataclass(frozen=True)
class Product(_Row):
    id: Optional[str] = _col("id")
    name: Optional[str] = _col("name")
    category: Optional[str] = _col("category")
    price: Optional[float] = _col("price")


@dataclass(frozen=True)
class Sale(_Row):
    id: Optional[str] = _col("id")
    store_id: Optional[str] = _col("storeId")
    product_id: Optional[str] = _col("productId")
    date: Temporal = _col("date")
    quantity: Optional[int] = _col("quantity")
    quantity_pl: Optional[int] = _col("quantityPL")
    quantity_py: Optional[int] = _col("quantityPY")
    revenue: Optional[float] = _col("revenue")
    revenue_pl: Optional[float] = _col("revenuePL")
    revenue_py: Optional[float] = _col("revenuePY")
    profit: Optional[float] = _col("profit")
    profit_pl: Optional[float] = _col("profitPL")
    profit_py: Optional[float] = _col("profitPY")
    discount: Optional[float] = _col("discount")
    discount_pl: Optional[float] = _col("discountPL")
    discount_py: Optional[float] = _col("discountPY")


@dataclass(frozen=True)
class Customer(_Row):
    id: Optional[str] = _col("id")
    name: Optional[str] = _col("name")
    tier: Optional[str] = _col("tier")
    region: Optional[str] = _col("region")
    industry: Optional[str] = _col("industry")


@dataclass(frozen=True)
class Subscription(_Row):
    id: Optional[str] = _col("id")
    customer_id: Optional[str] = _col("customerId")
    date: Temporal = _col("date")
    mrr: Optional[float] = _col("mrr")
    mrr_pl: Optional[float] = _col("mrrPL")
    mrr_py: Optional[float] = _col("mrrPY")
    churn: Optional[int] = _col("churn")
    ltv: Optional[float] = _col("ltv")
    arr: Optional[float] = _col("arr")
    cac: Optional[float] = _col("cac")


@dataclass(frozen=True)
class Employee(_Row):
    id: Optional[str] = _col("id")
    name: Optional[str] = _col("name")
    department: Optional[str] = _col("department")
    role: Optional[str] = _col("role")
    office: Optional[str] = _col("office")
    hire_date: Temporal = _col("hireDate")
    salary: Optional[float] = _col("salary")
    salary_pl: Optional[float] = _col("salaryPL")
    salary_py: Optional[float] = _col("salaryPY")
    rating: Optional[int] = _col("rating")
    rating_pl: Optional[float] = _col("ratingPL")
    rating_py: Optional[float] = _col("ratingPY")
    attrition: Optional[int] = _col("attrition")
    tenure: Optional[int] = _col("tenure")


@dataclass(frozen=True)
class Shipment(_Row):
    id: Optional[str] = _col("id")
    origin: Optional[str] = _col("origin")
    destination: Optional[str] = _col("destination")
    carrier: Optional[str] = _col("carrier")
    cost: Optional[float] = _col("cost")
    cost_pl: Optional[float] = _col("costPL")
    cost_py: Optional[float] = _col("costPY")
    weight: Optional[float] = _col("weight")
    weight_pl: Optional[float] = _col("weightPL")
    weight_py: Optional[float] = _col("weightPY")
    status: Optional[str] = _col("status")
    date: Temporal = _col("date")
    on_time: Optional[int] = _col("onTime")


@dataclass(frozen=True)
class PortfolioEntity(_Row):
    id: Optional[str] = _col("id")
    name: Optional[str] = _col("name")
    sector: Optional[str] = _col("sector")
    region: Optional[str] = _col("region")
    market_value: Optional[float] = _col("marketValue")
    source_region: Optional[str] = _col("sourceRegion")
    source: Optional[str] = _col("source")
    account_report_name: Optional[str] = _col("accountReportName")
    account_code: Optional[str] = _col("accountCode")


@dataclass(frozen=True)
class ControversyScore(_Row):
    id: Optional[str] = _col("id")
    entity_id: Optional[str] = _col("entityId")
    entity_name: Optional[str] = _col("entityName")
    category: Optional[str] = _col("category")
    score: Optional[int] = _col("score")
    previous_score: Optional[int] = _col("previousScore")
    score_change: Optional[int] = _col("scoreChange")
    valid_from: Temporal = _col("validFrom")
    market_value: Optional[float] = _col("marketValue")
    justification: Optional[str] = _col("justification")
    source: Optional[str] = _col("source")
    region: Optional[str] = _col("region")
    group: Optional[str] = _col("group")


@dataclass(frozen=True)
class SocialPost(_Row):
    id: Optional[str] = _col("id")
    date: Temporal = _col("date")
    user: Optional[str] = _col("user")
    location: Optional[str] = _col("location")
    platform: Optional[str] = _col("platform")
    sentiment: Optional[str] = _col("sentiment")
    engagements: Optional[int] = _col("engagements")
    engagements_pl: Optional[int] = _col("engagementsPL")
    engagements_py: Optional[int] = _col("engagementsPY")
    mentions: Optional[int] = _col("mentions")
    mentions_pl: Optional[int] = _col("mentionsPL")
    mentions_py: Optional[int] = _col("mentionsPY")
    sentiment_score: Optional[float] = _col("sentimentScore")


@dataclass(frozen=True)
class FinanceRecord(_Row):
    id: Optional[str] = _col("id")
    date: Temporal = _col("date")
    account: Optional[str] = _col("account")
    region: Optional[str] = _col("region")
    business_unit: Optional[str] = _col("businessUnit")
    scenario: Optional[str] = _col("scenario")
    amount: Optional[float] = _col("amount")
    variance: Optional[float] = _col("variance")


COLLECTIONS: dict[str, tuple[str, type]] = {
    "stores": ("stores", Store),
    "products": ("products", Product),
    "sales": ("sales", Sale),
    "customers": ("customers", Customer),
    "subscriptions": ("subscriptions", Subscription),
    "employees": ("employees", Employee),
    "shipments": ("shipments", Shipment),
    "portfolio_entities": ("portfolioEntities", PortfolioEntity),
    "controversy_scores": ("controversyScores", ControversyScore),
    "social_posts": ("socialPosts", SocialPost),
    "finance_records": ("financeRecords", FinanceRecord),
}


@dataclass(frozen=True)
class ExportData:
    """Read-only snapshot of every row collection, for one export call."""

    stores: tuple[Store, ...] = ()
    products: tuple[Product, ...] = ()
    sales: tuple[Sale, ...] = ()
    customers: tuple[Customer, ...] = ()
    subscriptions: tuple[Subscription, ...] = ()
    employees: tuple[Employee, ...] = ()
    shipments: tuple[Shipment, ...] = ()
    portfolio_entities: tuple[PortfolioEntity, ...] = ()
    controversy_scores: tuple[ControversyScore, ...] = ()
    social_posts: tuple[SocialPost, ...] = ()
    finance_records: tuple[FinanceRecord, ...] = ()

    def __post_init__(self):
        # Accept lists (or any iterable) and freeze them
        for name in COLLECTIONS:
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value or ()))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExportData":
        """Read a store snapshot keyed by camelCase collection names."""
        kwargs = {}
        for attr, (key, row_cls) in COLLECTIONS.items():
            rows = data.get(key, data.get(attr)) or []
            kwargs[attr] = tuple(
                row if isinstance(row, row_cls) else row_cls.from_dict(row) for row in rows
            )
        return cls(**kwargs)

    def counts(self) -> dict[str, int]:
        return {name: len(getattr(self, name)) for name in COLLECTIONS}
