"""DAX measure generation from dashboard bindings.

Scans dashboard items for unique (metric, aggregation) bindings and emits:

- base aggregation measures, one per binding
- variance measures (ΔPY, ΔPY%, ΔPL, ΔPL%) where plan/prior-year siblings exist
- a four-measure waterfall bridge per waterfall visual
- a fixed KPI set for the active scenario

The final list is deduplicated by name, first seen wins. Nothing here raises:
bindings that cannot be built are skipped with a warning.
"""

from __future__ import annotations

import logging
import textwrap
from typing import Any, Iterable, Mapping

from ..models.dashboard import DashboardItem, Scenario, parse_items
from ..models.schema import DAXMeasure, MetricBinding
from ..semantic.field_mapper import capitalize_first, resolve_field
from ..semantic.registry import get_fact_table, get_schema
from .formatting import (
    CURRENCY_FORMAT,
    NUMBER_FORMAT,
    PERCENT_FORMAT,
    aggregate_expression,
    base_metric,
    measure_format_string,
    measure_name,
    metric_label,
    operation_label,
)

logger = logging.getLogger(__name__)

BASE_FOLDER = "Base Measures"
VARIANCE_FOLDER = "Variance Measures"
WATERFALL_FOLDER = "Waterfall"
DEFAULT_WATERFALL_DIMENSION = "Region"
DEFAULT_WATERFALL_METRIC = "revenue"


def _dax(text: str) -> str:
    return textwrap.dedent(text).strip()


# =============================================================================
# BINDINGS
# =============================================================================

def extract_bindings(items: Iterable[DashboardItem], scenario: Scenario | str) -> list[MetricBinding]:
    """Unique metric bindings across items, keyed by ``metric_operation``.

    Items of type ``kpi`` and items with ``showVariance`` also bind the
    metric's plan and prior-year columns when the fact table has them.
    """
    scenario = Scenario.coerce(scenario)
    schema = get_schema(scenario)
    fact_table = get_fact_table(scenario)
    bindings: dict[str, MetricBinding] = {}

    for item in items:
        props = item.props
        metric = props.metric
        if not metric:
            continue
        operation = props.operation

        key = f"{metric}_{operation}"
        if key not in bindings:
            ref = resolve_field(scenario, metric)
            if ref is None:
                logger.warning(
                    "Skipping binding %s on visual %s: no %s column in the %s schema",
                    key, item.id, capitalize_first(metric), scenario.value,
                )
            else:
                bindings[key] = MetricBinding(metric, operation, ref.table, ref.column)

        if props.show_variance or item.type == "kpi":
            fact = schema.table(fact_table)
            for suffix in ("PL", "PY"):
                sibling_key = f"{metric}{suffix}_{operation}"
                column = fact.column(capitalize_first(metric) + suffix) if fact else None
                if sibling_key in bindings or column is None:
                    continue
                bindings[sibling_key] = MetricBinding(metric + suffix, operation, fact_table, column.name)

    logger.debug("Extracted %d bindings for %s", len(bindings), scenario.value)
    return list(bindings.values())


# =============================================================================
# BASE AND VARIANCE MEASURES
# =============================================================================

def generate_base_measures(bindings: Iterable[MetricBinding]) -> list[DAXMeasure]:
    measures = []
    for binding in bindings:
        label = operation_label(binding.operation)
        measures.append(DAXMeasure(
            name=measure_name(binding.metric, binding.operation),
            expression=aggregate_expression(binding.operation, binding.table, binding.column),
            display_folder=BASE_FOLDER,
            format_string=measure_format_string(binding.metric),
            description=f"{label} of {metric_label(binding.metric)} from {binding.table} table",
        ))
    return measures


def _variance_pair(metric: str, actual: str, comparison: str, tag: str, title: str,
                   absolute_format: str) -> list[DAXMeasure]:
    head = f"VAR _AC = [{actual}]\nVAR _{tag} = [{comparison}]\nRETURN\n"
    return [
        DAXMeasure(
            name=f"{metric} Δ{tag}",
            expression=head + f"_AC - _{tag}",
            display_folder=VARIANCE_FOLDER,
            format_string=absolute_format,
            description=f"{metric} variance vs {title} (AC - {tag})",
        ),
        DAXMeasure(
            name=f"{metric} Δ{tag}%",
            expression=head + f"IF(_{tag} <> 0, DIVIDE(_AC - _{tag}, ABS(_{tag})), BLANK())",
            display_folder=VARIANCE_FOLDER,
            format_string=PERCENT_FORMAT,
            description=f"{metric} percentage variance vs {title}",
        ),
    ]


def generate_variance_measures(bindings: Iterable[MetricBinding]) -> list[DAXMeasure]:
    """ΔPY/ΔPL measures for every actual binding with a same-operation sibling."""
    bindings = list(bindings)
    keys = {b.key for b in bindings}
    measures = []
    for binding in bindings:
        metric = binding.metric
        if base_metric(metric) != metric:
            continue
        op = binding.operation
        label = capitalize_first(metric)
        actual = measure_name(metric, op)
        absolute_format = measure_format_string(metric)
        if f"{metric}PY_{op}" in keys:
            measures.extend(_variance_pair(
                label, actual, measure_name(metric + "PY", op), "PY", "Prior Year", absolute_format
            ))
        if f"{metric}PL_{op}" in keys:
            measures.extend(_variance_pair(
                label, actual, measure_name(metric + "PL", op), "PL", "Plan", absolute_format
            ))
    return measures


# =============================================================================
# WATERFALL
# =============================================================================

def generate_waterfall_measures(items: Iterable[DashboardItem], scenario: Scenario | str) -> list[DAXMeasure]:
    """Start / Variance / End / Running bridge measures per waterfall visual."""
    scenario = Scenario.coerce(scenario)
    schema = get_schema(scenario)
    fact = get_fact_table(scenario)
    waterfalls = [item for item in items if item.type == "waterfall"]
    measures = []

    for index, item in enumerate(waterfalls):
        dimension = item.props.dimension or DEFAULT_WATERFALL_DIMENSION
        metric = item.props.metric or DEFAULT_WATERFALL_METRIC
        suffix = f" {index + 1}" if len(waterfalls) > 1 else ""

        fact_table = schema.table(fact)
        actual_col = fact_table.column(capitalize_first(metric)) if fact_table else None
        prior_col = fact_table.column(capitalize_first(metric) + "PY") if fact_table else None
        if actual_col is None or prior_col is None:
            logger.warning(
                "Skipping waterfall measures for visual %s: %s needs %s and %sPY columns",
                item.id, fact, capitalize_first(metric), capitalize_first(metric),
            )
            continue

        dim_ref = resolve_field(scenario, dimension)
        if dim_ref is None:
            logger.warning(
                "Skipping waterfall measures for visual %s: dimension %r is not in the %s schema",
                item.id, dimension, scenario.value,
            )
            continue
        dim = dim_ref.dax
        ac = f"{fact}[{actual_col.name}]"
        py = f"{fact}[{prior_col.name}]"
        dim_table = dim_ref.table
        prefix = f"Waterfall{suffix}"

        measures.append(DAXMeasure(
            name=f"{prefix} Start",
            expression=_dax(f"""
                // Starting point - Prior Year total
                VAR _PY = CALCULATE(
                    SUM({py}),
                    ALLEXCEPT({fact}, {dim})
                )
                RETURN _PY
            """),
            display_folder=WATERFALL_FOLDER,
            format_string=CURRENCY_FORMAT,
            description=f"Waterfall bridge starting point (PY total) by {dimension}",
        ))
        measures.append(DAXMeasure(
            name=f"{prefix} Variance",
            expression=_dax(f"""
                // Variance contribution by {dimension}
                VAR _AC = SUM({ac})
                VAR _PY = SUM({py})
                RETURN
                _AC - _PY
            """),
            display_folder=WATERFALL_FOLDER,
            format_string=CURRENCY_FORMAT,
            description=f"Waterfall bridge variance contribution by {dimension}",
        ))
        measures.append(DAXMeasure(
            name=f"{prefix} End",
            expression=_dax(f"""
                // Ending point - Actual total
                VAR _AC = CALCULATE(
                    SUM({ac}),
                    ALLEXCEPT({fact}, {dim})
                )
                RETURN _AC
            """),
            display_folder=WATERFALL_FOLDER,
            format_string=CURRENCY_FORMAT,
            description=f"Waterfall bridge ending point (AC total) by {dimension}",
        ))
        measures.append(DAXMeasure(
            name=f"{prefix} Running",
            expression=_dax(f"""
                // Running total for waterfall positioning
                // Cumulative variance up to and including the current bar
                VAR _CurrentDim = SELECTEDVALUE({dim})
                VAR _AllDims = VALUES({dim})
                VAR _PYTotal = CALCULATE(SUM({py}), ALL({dim_table}))
                VAR _RunningVariance =
                    SUMX(
                        FILTER(_AllDims, {dim} <= _CurrentDim),
                        VAR _DimVal = {dim}
                        RETURN
                        CALCULATE(
                            SUM({ac}) - SUM({py}),
                            {dim} = _DimVal
                        )
                    )
                RETURN
                _PYTotal + _RunningVariance
            """),
            display_folder=WATERFALL_FOLDER,
            format_string=CURRENCY_FORMAT,
            description=f"Running total for waterfall chart positioning by {dimension}",
        ))
    return measures


# =============================================================================
# SCENARIO KPI SETS
# =============================================================================

def _kpis(folder: str, *specs: tuple[str, str, str, str]) -> tuple[DAXMeasure, ...]:
    return tuple(
        DAXMeasure(name, _dax(expression), folder, format_string, description)
        for name, expression, format_string, description in specs
    )


def _ratio(numerator_filter: str, table: str) -> str:
    return f"""
        VAR _Hit = CALCULATE(COUNTROWS({table}), {numerator_filter})
        VAR _Total = COUNTROWS({table})
        RETURN
        IF(_Total > 0, DIVIDE(_Hit, _Total), BLANK())
    """


SCENARIO_KPIS: dict[Scenario, tuple[DAXMeasure, ...]] = {
    Scenario.PORTFOLIO: _kpis(
        "Portfolio KPIs",
        ("Unique Entities", "DISTINCTCOUNT(ControversyScore[EntityID])", NUMBER_FORMAT,
         "Count of unique entities in the portfolio"),
        ("Above Threshold", """
            CALCULATE(
                DISTINCTCOUNT(ControversyScore[EntityID]),
                ControversyScore[Score] >= 4
            )
         """, NUMBER_FORMAT, "Count of entities with controversy score >= 4"),
        ("Negative Changes", """
            CALCULATE(
                COUNTROWS(ControversyScore),
                ControversyScore[ScoreChange] < 0
            )
         """, NUMBER_FORMAT, "Count of negative score changes (deterioration)"),
        ("Avg Controversy Score", "AVERAGE(ControversyScore[Score])", "0.00",
         "Average controversy score across entities"),
        ("Total Market Value", "SUM(PortfolioEntity[MarketValue])", "$#,##0.00",
         "Total market value of portfolio entities"),
        ("Net Score Change", "SUM(ControversyScore[ScoreChange])", "+#,##0;-#,##0;0",
         "Net change in controversy scores (positive = improvement)"),
        ("Positive Changes", """
            CALCULATE(
                COUNTROWS(ControversyScore),
                ControversyScore[ScoreChange] > 0
            )
         """, NUMBER_FORMAT, "Count of positive score changes (improvement)"),
    ),
    Scenario.HR: _kpis(
        "HR KPIs",
        ("Headcount", "COUNTROWS(Employee)", NUMBER_FORMAT, "Total employee headcount"),
        ("Attrition Rate", _ratio("Employee[Attrition] = 1", "Employee"), PERCENT_FORMAT,
         "Percentage of employees who have left"),
        ("Avg Performance Rating", "AVERAGE(Employee[Rating])", "0.0",
         "Average employee performance rating (1-5 scale)"),
        ("Avg Tenure", "AVERAGE(Employee[Tenure])", "0.0", "Average employee tenure in years"),
    ),
    Scenario.LOGISTICS: _kpis(
        "Logistics KPIs",
        ("Total Shipments", "COUNTROWS(Shipment)", NUMBER_FORMAT, "Total number of shipments"),
        ("On-Time Rate", _ratio("Shipment[OnTime] = 1", "Shipment"), PERCENT_FORMAT,
         "Percentage of shipments delivered on time"),
        ("Avg Shipment Cost", "AVERAGE(Shipment[Cost])", "$#,##0.00", "Average cost per shipment"),
        *[
            (f"{status} Count", f'CALCULATE(COUNTROWS(Shipment), Shipment[Status] = "{status}")',
             NUMBER_FORMAT, f"Count of shipments with {status} status")
            for status in ("Delivered", "In Transit", "Delayed")
        ],
    ),
    Scenario.SAAS: _kpis(
        "SaaS KPIs",
        ("Churn Rate", _ratio("Subscription[Churn] = 1", "Subscription"), PERCENT_FORMAT,
         "Percentage of subscriptions that churned"),
        ("ARR", "SUM(Subscription[MRR]) * 12", CURRENCY_FORMAT, "Annual Recurring Revenue (MRR × 12)"),
        ("Customer Count", "DISTINCTCOUNT(Subscription[CustomerID])", NUMBER_FORMAT,
         "Count of unique customers"),
        ("ARPU", """
            VAR _TotalMRR = SUM(Subscription[MRR])
            VAR _Customers = DISTINCTCOUNT(Subscription[CustomerID])
            RETURN
            IF(_Customers > 0, DIVIDE(_TotalMRR, _Customers), BLANK())
         """, CURRENCY_FORMAT, "Average MRR per customer"),
    ),
    Scenario.RETAIL: _kpis(
        "Retail KPIs",
        ("Margin %", """
            VAR _Revenue = SUM(Sales[Revenue])
            VAR _Profit = SUM(Sales[Profit])
            RETURN
            IF(_Revenue <> 0, DIVIDE(_Profit, _Revenue), BLANK())
         """, PERCENT_FORMAT, "Profit margin as percentage of revenue"),
        ("YoY Growth", """
            VAR _AC = SUM(Sales[Revenue])
            VAR _PY = SUM(Sales[RevenuePY])
            RETURN
            IF(_PY <> 0, DIVIDE(_AC - _PY, ABS(_PY)), BLANK())
         """, PERCENT_FORMAT, "Year-over-year revenue growth percentage"),
        ("Revenue per Store", """
            VAR _Revenue = SUM(Sales[Revenue])
            VAR _Stores = DISTINCTCOUNT(Sales[StoreID])
            RETURN
            IF(_Stores > 0, DIVIDE(_Revenue, _Stores), BLANK())
         """, CURRENCY_FORMAT, "Average revenue per store"),
        ("Avg Order Value", """
            VAR _Revenue = SUM(Sales[Revenue])
            VAR _Orders = COUNTROWS(Sales)
            RETURN
            IF(_Orders > 0, DIVIDE(_Revenue, _Orders), BLANK())
         """, "$#,##0.00", "Average revenue per transaction"),
    ),
    Scenario.FINANCE: _kpis(
        "Finance KPIs",
        ("Budget Variance %", """
            VAR _Actual = CALCULATE(SUM(FinanceRecord[Amount]), FinanceRecord[Scenario] = "Actual")
            VAR _Budget = CALCULATE(SUM(FinanceRecord[Amount]), FinanceRecord[Scenario] = "Budget")
            RETURN
            IF(_Budget <> 0, DIVIDE(_Actual - _Budget, ABS(_Budget)), BLANK())
         """, PERCENT_FORMAT, "Actual vs Budget variance percentage"),
        ("Forecast Accuracy", """
            VAR _Actual = CALCULATE(SUM(FinanceRecord[Amount]), FinanceRecord[Scenario] = "Actual")
            VAR _Forecast = CALCULATE(SUM(FinanceRecord[Amount]), FinanceRecord[Scenario] = "Forecast")
            RETURN
            IF(_Forecast <> 0, 1 - ABS(DIVIDE(_Actual - _Forecast, _Forecast)), BLANK())
         """, PERCENT_FORMAT, "Forecast accuracy (1 - absolute percentage error)"),
        ("Net Variance", "SUM(FinanceRecord[Variance])", CURRENCY_FORMAT, "Total variance (Actual - Budget)"),
    ),
    Scenario.SOCIAL: _kpis(
        "Social KPIs",
        ("Avg Engagement Rate", "AVERAGE(SocialPost[Engagements])", "#,##0.0",
         "Average engagements per post"),
        ("Positive Sentiment %", _ratio('SocialPost[Sentiment] = "Positive"', "SocialPost"), PERCENT_FORMAT,
         "Percentage of posts with positive sentiment"),
        ("Net Sentiment", """
            VAR _Positive = CALCULATE(COUNTROWS(SocialPost), SocialPost[Sentiment] = "Positive")
            VAR _Negative = CALCULATE(COUNTROWS(SocialPost), SocialPost[Sentiment] = "Negative")
            VAR _Total = COUNTROWS(SocialPost)
            RETURN
            IF(_Total > 0, DIVIDE(_Positive - _Negative, _Total), BLANK())
         """, PERCENT_FORMAT, "Net sentiment score ((Positive - Negative) / Total)"),
        ("Total Mentions", "SUM(SocialPost[Mentions])", NUMBER_FORMAT, "Total mentions across all posts"),
    ),
}

KPI_ORDER = (
    Scenario.PORTFOLIO,
    Scenario.HR,
    Scenario.LOGISTICS,
    Scenario.SAAS,
    Scenario.RETAIL,
    Scenario.FINANCE,
    Scenario.SOCIAL,
)


def generate_scenario_measures(scenario: Scenario | str) -> list[DAXMeasure]:
    """Fixed KPI measures, only for the active scenario."""
    scenario = Scenario.coerce(scenario)
    measures = []
    for gated in KPI_ORDER:
        if gated is scenario:
            # fresh copies so callers can't mutate the shared definitions
            measures.extend(
                DAXMeasure(m.name, m.expression, m.display_folder, m.format_string, m.description)
                for m in SCENARIO_KPIS[gated]
            )
    return measures


# =============================================================================
# ENTRY POINT
# =============================================================================

def dedupe_measures(measures: Iterable[DAXMeasure]) -> list[DAXMeasure]:
    seen: set[str] = set()
    unique = []
    for measure in measures:
        if measure.name in seen:
            logger.debug("Dropping duplicate measure %r", measure.name)
            continue
        seen.add(measure.name)
        unique.append(measure)
    return unique


def generate_all_measures(
    items: Iterable[DashboardItem | Mapping[str, Any]],
    scenario: Scenario | str,
) -> list[DAXMeasure]:
    """Every measure for a dashboard, in generation order, names unique."""
    scenario = Scenario.coerce(scenario)
    items = parse_items(items)
    bindings = extract_bindings(items, scenario)
    measures = dedupe_measures([
        *generate_base_measures(bindings),
        *generate_variance_measures(bindings),
        *generate_waterfall_measures(items, scenario),
        *generate_scenario_measures(scenario),
    ])
    logger.info("Generated %d measures for %s (%d items)", len(measures), scenario.value, len(items))
    return measures
