"""Map a dataset snapshot onto the rows of each schema table.

Rows are plain dicts keyed by schema column name. Derived dimensions
(Department, Carrier, Location, Category) are the distinct fact values in
first-seen order; the calendar table holds the distinct dates of the
scenario's date column.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Iterable, Optional

from ..models.dashboard import Scenario
from ..models.dataset import ExportData
from ..models.schema import PBISchema
from .m_literals import parse_datetime

logger = logging.getLogger(__name__)

Row = dict[str, Any]

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _rows(records: Iterable[Any], **columns: str) -> list[Row]:
    """One dict per record, ``Column=attribute`` pairs."""
    return [{column: getattr(record, attr) for column, attr in columns.items()} for record in records]


def _distinct(values: Iterable[Any]) -> list[Any]:
    return list(dict.fromkeys(values))


def date_table_rows(values: Iterable[Any]) -> list[Row]:
    """Calendar rows for the distinct dates among ``values``.

    Every derived column is filled in; the table writer keeps only the
    columns the scenario's DateTable declares.
    """
    days: list[date] = []
    seen: set[date] = set()
    for value in values:
        moment = parse_datetime(value)
        if moment is None:
            if value is not None:
                logger.warning("Skipping unparseable date %r in calendar table", value)
            continue
        day = moment.date()
        if day not in seen:
            seen.add(day)
            days.append(day)

    return [
        {
            "Date": day.isoformat(),
            "Year": day.year,
            "Month": MONTH_NAMES[day.month - 1],
            "Quarter": f"Q{(day.month - 1) // 3 + 1}",
            "MonthNum": day.month,
            "WeekNum": day.isocalendar()[1],
            "DayOfWeek": DAY_NAMES[day.weekday()],
        }
        for day in days
    ]


def _retail(data: ExportData) -> dict[str, list[Row]]:
    return {
        "Sales": _rows(
            data.sales,
            SaleID="id", StoreID="store_id", ProductID="product_id", Date="date",
            Quantity="quantity", QuantityPL="quantity_pl", QuantityPY="quantity_py",
            Revenue="revenue", RevenuePL="revenue_pl", RevenuePY="revenue_py",
            Profit="profit", ProfitPL="profit_pl", ProfitPY="profit_py",
            Discount="discount", DiscountPL="discount_pl", DiscountPY="discount_py",
        ),
        "Store": _rows(data.stores, StoreID="id", StoreName="name", Region="region", Country="country"),
        "Product": _rows(data.products, ProductID="id", ProductName="name", Category="category", Price="price"),
        "DateTable": date_table_rows(sale.date for sale in data.sales),
    }


def _saas(data: ExportData) -> dict[str, list[Row]]:
    return {
        "Customer": _rows(
            data.customers,
            CustomerID="id", CustomerName="name", Tier="tier", Region="region", Industry="industry",
        ),
        "Subscription": _rows(
            data.subscriptions,
            SubscriptionID="id", CustomerID="customer_id", Date="date",
            MRR="mrr", MRRPL="mrr_pl", MRRPY="mrr_py",
            Churn="churn", LTV="ltv", ARR="arr", CAC="cac",
        ),
        "DateTable": date_table_rows(sub.date for sub in data.subscriptions),
    }


def _hr(data: ExportData) -> dict[str, list[Row]]:
    return {
        "Employee": _rows(
            data.employees,
            EmployeeID="id", EmployeeName="name", Department="department", Role="role", Office="office",
            HireDate="hire_date", Salary="salary", SalaryPL="salary_pl", SalaryPY="salary_py",
            Rating="rating", RatingPL="rating_pl", RatingPY="rating_py",
            Attrition="attrition", Tenure="tenure",
        ),
        "Department": [
            {"Department": dept, "DepartmentGroup": "General"}
            for dept in _distinct(emp.department for emp in data.employees)
        ],
        "DateTable": date_table_rows(emp.hire_date for emp in data.employees),
    }


def _logistics(data: ExportData) -> dict[str, list[Row]]:
    cities = _distinct(city for ship in data.shipments for city in (ship.origin, ship.destination))
    return {
        "Shipment": _rows(
            data.shipments,
            ShipmentID="id", Origin="origin", Destination="destination", Carrier="carrier",
            Cost="cost", CostPL="cost_pl", CostPY="cost_py",
            Weight="weight", WeightPL="weight_pl", WeightPY="weight_py",
            Status="status", Date="date", OnTime="on_time",
        ),
        "Carrier": [
            {"Carrier": carrier, "CarrierType": "Third Party"}
            for carrier in _distinct(ship.carrier for ship in data.shipments)
        ],
        "Location": [{"City": city, "Country": "Unknown", "Region": "Unknown"} for city in cities],
        "DateTable": date_table_rows(ship.date for ship in data.shipments),
    }


def _portfolio(data: ExportData) -> dict[str, list[Row]]:
    return {
        "PortfolioEntity": _rows(
            data.portfolio_entities,
            EntityID="id", EntityName="name", Sector="sector", Region="region", MarketValue="market_value",
            SourceRegion="source_region", Source="source",
            AccountReportName="account_report_name", AccountCode="account_code",
        ),
        "ControversyScore": _rows(
            data.controversy_scores,
            ScoreID="id", EntityID="entity_id", EntityName="entity_name", Category="category",
            Score="score", PreviousScore="previous_score", ScoreChange="score_change",
            ValidFrom="valid_from", MarketValue="market_value", Justification="justification",
            Source="source", Region="region", Group="group",
        ),
        "Category": [
            {"Category": category, "CategoryType": "ESG"}
            for category in _distinct(score.category for score in data.controversy_scores)
        ],
        "DateTable": date_table_rows(score.valid_from for score in data.controversy_scores),
    }


def _social(data: ExportData) -> dict[str, list[Row]]:
    return {
        "SocialPost": _rows(
            data.social_posts,
            PostID="id", Date="date", User="user", Location="location", Platform="platform",
            Sentiment="sentiment",
            Engagements="engagements", EngagementsPL="engagements_pl", EngagementsPY="engagements_py",
            Mentions="mentions", MentionsPL="mentions_pl", MentionsPY="mentions_py",
            SentimentScore="sentiment_score",
        ),
        "DateTable": date_table_rows(post.date for post in data.social_posts),
    }


def _finance(data: ExportData) -> dict[str, list[Row]]:
    return {
        "FinanceRecord": _rows(
            data.finance_records,
            FinanceID="id", Date="date", Account="account", Region="region",
            BusinessUnit="business_unit", Scenario="scenario", Amount="amount", Variance="variance",
        ),
        "DateTable": date_table_rows(record.date for record in data.finance_records),
    }


TABLE_BUILDERS: dict[Scenario, Callable[[ExportData], dict[str, list[Row]]]] = {
    Scenario.RETAIL: _retail,
    Scenario.SAAS: _saas,
    Scenario.HR: _hr,
    Scenario.LOGISTICS: _logistics,
    Scenario.PORTFOLIO: _portfolio,
    Scenario.SOCIAL: _social,
    Scenario.FINANCE: _finance,
}


def build_scenario_tables(
    scenario: Scenario | str,
    data: Optional[ExportData],
    schema: PBISchema,
) -> dict[str, list[Row]]:
    """Rows for every table in ``schema``; tables without a source are empty."""
    scenario = Scenario.coerce(scenario)
    tables = TABLE_BUILDERS[scenario](data or ExportData())
    for table in schema.tables:
        tables.setdefault(table.name, [])
    logger.debug(
        "Built dataset tables for %s: %s",
        scenario.value, ", ".join(f"{name}={len(rows)}" for name, rows in tables.items()),
    )
    return tables
