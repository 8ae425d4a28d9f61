"""Star schema registry.

Every scenario maps to a star schema: dimension tables, a fact table that
carries actual / plan (``PL``) / prior-year (``PY``) columns, a calendar
table, and fact-to-dimension relationships. Column order is significant
because the project package writer encodes rows positionally.
"""

from __future__ import annotations

from ..models.dashboard import Scenario
from ..models.schema import PBIColumn, PBIRelationship, PBISchema, PBITable


def _dim(name: str, data_type: str = "string", hidden: bool = False) -> PBIColumn:
    return PBIColumn(name, data_type, "none", hidden)


def _fact(name: str, data_type: str = "double", summarize: str = "sum") -> PBIColumn:
    return PBIColumn(name, data_type, summarize)


def _measure_family(name: str, data_type: str = "double", summarize: str = "sum") -> list[PBIColumn]:
    """Actual, plan and prior-year columns for one metric."""
    return [_fact(name + suffix, data_type, summarize) for suffix in ("", "PL", "PY")]


def _rel(name: str, from_table: str, from_column: str, to_table: str, to_column: str,
         is_active: bool = True) -> PBIRelationship:
    return PBIRelationship(name, from_table, from_column, to_table, to_column, "oneDirection", is_active)


def _date_table(description: str, *extra: str) -> PBITable:
    """Calendar table with Date/Year plus the requested optional columns."""
    available = {
        "Quarter": _dim("Quarter"),
        "Month": _dim("Month"),
        "MonthNum": _dim("MonthNum", "int64", hidden=True),
        "WeekNum": _dim("WeekNum", "int64"),
        "DayOfWeek": _dim("DayOfWeek"),
    }
    columns = [_dim("Date", "dateTime"), _dim("Year", "int64")]
    columns.extend(available[name] for name in extra)
    return PBITable("DateTable", tuple(columns), description)


# =============================================================================
# SCENARIO SCHEMAS
# =============================================================================

RETAIL_SCHEMA = PBISchema(
    description="Retail Sales Star Schema - Store and Product dimensions with Sales fact table",
    tables=(
        PBITable("Store", (
            _dim("StoreID"), _dim("StoreName"), _dim("Region"), _dim("Country"),
        ), "Store dimension - physical retail locations"),
        PBITable("Product", (
            _dim("ProductID"), _dim("ProductName"), _dim("Category"), _dim("Price", "double"),
        ), "Product dimension - product catalog"),
        PBITable("Sales", (
            _dim("SaleID", hidden=True),
            _dim("StoreID", hidden=True),
            _dim("ProductID", hidden=True),
            _dim("Date", "dateTime"),
            *_measure_family("Quantity", "int64"),
            *_measure_family("Revenue"),
            *_measure_family("Profit"),
            *_measure_family("Discount"),
        ), "Sales fact table - transactional sales data with actuals, plan, and prior year"),
        _date_table(
            "Date dimension - auto-generated calendar table for time intelligence",
            "Quarter", "Month", "MonthNum", "WeekNum", "DayOfWeek",
        ),
    ),
    relationships=(
        _rel("Sales_Store", "Sales", "StoreID", "Store", "StoreID"),
        _rel("Sales_Product", "Sales", "ProductID", "Product", "ProductID"),
        _rel("Sales_Date", "Sales", "Date", "DateTable", "Date"),
    ),
)

SAAS_SCHEMA = PBISchema(
    description="SaaS Subscription Star Schema - Customer dimension with Subscription fact table",
    tables=(
        PBITable("Customer", (
            _dim("CustomerID"), _dim("CustomerName"), _dim("Tier"), _dim("Region"), _dim("Industry"),
        ), "Customer dimension - account information"),
        PBITable("Subscription", (
            _dim("SubscriptionID", hidden=True),
            _dim("CustomerID", hidden=True),
            _dim("Date", "dateTime"),
            *_measure_family("MRR"),
            _fact("Churn", "int64"),
            _fact("LTV", summarize="average"),
            _fact("ARR"),
            _fact("CAC", summarize="average"),
        ), "Subscription fact table - MRR, churn, and LTV metrics with plan/prior year"),
        _date_table("Date dimension - auto-generated calendar table", "Quarter", "Month", "MonthNum"),
    ),
    relationships=(
        _rel("Subscription_Customer", "Subscription", "CustomerID", "Customer", "CustomerID"),
        _rel("Subscription_Date", "Subscription", "Date", "DateTable", "Date"),
    ),
)

HR_SCHEMA = PBISchema(
    description="HR Analytics Schema - Employee table with department analysis",
    tables=(
        PBITable("Employee", (
            _dim("EmployeeID"), _dim("EmployeeName"), _dim("Department"), _dim("Role"), _dim("Office"),
            _dim("HireDate", "dateTime"),
            *_measure_family("Salary"),
            _fact("Rating", "int64", "average"),
            _fact("RatingPL", summarize="average"),
            _fact("RatingPY", summarize="average"),
            _fact("Attrition", "int64"),
            _fact("Tenure", "int64", "average"),
        ), "Employee table - headcount, salary, rating, and attrition data with plan/prior year"),
        PBITable("Department", (
            _dim("Department"), _dim("DepartmentGroup"),
        ), "Department dimension - for hierarchy and grouping"),
        _date_table("Date dimension - for time intelligence on hire dates", "Month", "MonthNum"),
    ),
    relationships=(
        _rel("Employee_Department", "Employee", "Department", "Department", "Department"),
        _rel("Employee_Date", "Employee", "HireDate", "DateTable", "Date"),
    ),
)

LOGISTICS_SCHEMA = PBISchema(
    description="Logistics Supply Chain Schema - Shipment tracking and delivery metrics",
    tables=(
        PBITable("Shipment", (
            _dim("ShipmentID"), _dim("Origin"), _dim("Destination"), _dim("Carrier"),
            *_measure_family("Cost"),
            *_measure_family("Weight"),
            _dim("Status"),
            _dim("Date", "dateTime"),
            _fact("OnTime", "int64"),
        ), "Shipment fact table - cost, weight, status, and on-time delivery with plan/prior year"),
        PBITable("Carrier", (
            _dim("Carrier"), _dim("CarrierType"),
        ), "Carrier dimension - shipping provider details"),
        PBITable("Location", (
            _dim("City"), _dim("Country"), _dim("Region"),
        ), "Location dimension - origin/destination geography"),
        _date_table("Date dimension", "Month", "MonthNum"),
    ),
    relationships=(
        _rel("Shipment_Carrier", "Shipment", "Carrier", "Carrier", "Carrier"),
        _rel("Shipment_Date", "Shipment", "Date", "DateTable", "Date"),
        _rel("Shipment_Origin", "Shipment", "Origin", "Location", "City"),
        # two paths into Location; only one may be active
        _rel("Shipment_Destination", "Shipment", "Destination", "Location", "City", is_active=False),
    ),
)

PORTFOLIO_SCHEMA = PBISchema(
    description="Portfolio Monitoring Schema - ESG controversy scores and entity tracking",
    tables=(
        PBITable("PortfolioEntity", (
            _dim("EntityID"), _dim("EntityName"), _dim("Sector"), _dim("Region"),
            _fact("MarketValue"),
            _dim("SourceRegion"), _dim("Source"), _dim("AccountReportName"), _dim("AccountCode"),
        ), "Entity dimension - companies/investments in the portfolio"),
        PBITable("ControversyScore", (
            _dim("ScoreID", hidden=True),
            _dim("EntityID", hidden=True),
            _dim("EntityName"),
            _dim("Category"),
            _fact("Score", "int64", "average"),
            _fact("PreviousScore", "int64", "average"),
            _fact("ScoreChange", "int64"),
            _dim("ValidFrom", "dateTime"),
            _fact("MarketValue"),
            _dim("Justification"), _dim("Source"), _dim("Region"), _dim("Group"),
        ), "Controversy score fact table - ESG ratings and changes"),
        PBITable("Category", (
            _dim("Category"), _dim("CategoryType"),
        ), "Category dimension - controversy category classification"),
        _date_table("Date dimension", "Month"),
    ),
    relationships=(
        _rel("ControversyScore_Entity", "ControversyScore", "EntityID", "PortfolioEntity", "EntityID"),
        _rel("ControversyScore_Category", "ControversyScore", "Category", "Category", "Category"),
        _rel("ControversyScore_Date", "ControversyScore", "ValidFrom", "DateTable", "Date"),
    ),
)

FINANCE_SCHEMA = PBISchema(
    description="Finance P&L Schema - finance record fact table with account and variance fields",
    tables=(
        PBITable("FinanceRecord", (
            _dim("FinanceID"),
            _dim("Date", "dateTime"),
            _dim("Account"), _dim("Region"), _dim("BusinessUnit"), _dim("Scenario"),
            _fact("Amount"),
            _fact("Variance"),
        ), "Finance fact table - account, region, business unit, scenario"),
        _date_table("Date dimension", "Month", "MonthNum"),
    ),
    relationships=(
        _rel("FinanceRecord_Date", "FinanceRecord", "Date", "DateTable", "Date"),
    ),
)

SOCIAL_SCHEMA = PBISchema(
    description="Social Listening Schema - SocialPost fact table with engagement and sentiment fields",
    tables=(
        PBITable("SocialPost", (
            _dim("PostID", hidden=True),
            _dim("Date", "dateTime"),
            _dim("User"), _dim("Location"), _dim("Platform"), _dim("Sentiment"),
            *_measure_family("Engagements", "int64"),
            *_measure_family("Mentions", "int64"),
            _fact("SentimentScore", summarize="average"),
        ), "Social post fact table - platform, sentiment, and engagement metrics with plan/prior year"),
        _date_table("Date dimension - auto-generated calendar table", "Quarter", "Month", "MonthNum"),
    ),
    relationships=(
        _rel("SocialPost_Date", "SocialPost", "Date", "DateTable", "Date"),
    ),
)

SCHEMAS: dict[Scenario, PBISchema] = {
    Scenario.RETAIL: RETAIL_SCHEMA,
    Scenario.SAAS: SAAS_SCHEMA,
    Scenario.HR: HR_SCHEMA,
    Scenario.LOGISTICS: LOGISTICS_SCHEMA,
    Scenario.PORTFOLIO: PORTFOLIO_SCHEMA,
    Scenario.FINANCE: FINANCE_SCHEMA,
    Scenario.SOCIAL: SOCIAL_SCHEMA,
}

FACT_TABLES: dict[Scenario, str] = {
    Scenario.RETAIL: "Sales",
    Scenario.SAAS: "Subscription",
    Scenario.HR: "Employee",
    Scenario.LOGISTICS: "Shipment",
    Scenario.PORTFOLIO: "ControversyScore",
    Scenario.FINANCE: "FinanceRecord",
    Scenario.SOCIAL: "SocialPost",
}


def get_schema(scenario: Scenario | str) -> PBISchema:
    """Star schema for ``scenario``; unknown values get the Retail schema."""
    return SCHEMAS[Scenario.coerce(scenario)]


def get_fact_table(scenario: Scenario | str) -> str:
    """Name of the table that carries the scenario's measures."""
    return FACT_TABLES[Scenario.coerce(scenario)]
