"""Tests for DAX measure generation."""

import logging

import pytest

from phantom_export.dax.formatting import (
    column_format_string,
    measure_format_string,
    measure_name,
    metric_label,
    variance_ratio,
)
from phantom_export.dax.measure_generator import (
    dedupe_measures,
    extract_bindings,
    generate_all_measures,
    generate_scenario_measures,
)
from phantom_export.models.dashboard import DashboardItem, Scenario
from phantom_export.models.schema import DAXMeasure


def card(metric, item_id="c1", **props):
    return {"id": item_id, "type": "card", "props": {"metric": metric, **props}}


def by_name(measures):
    return {m.name: m for m in measures}


# =============================================================================
# BASE MEASURES
# =============================================================================

class TestBaseMeasures:
    def test_retail_revenue_card(self):
        measures = by_name(generate_all_measures([card("revenue", operation="sum")], "Retail"))
        total = measures["Total Revenue"]
        assert total.expression == "SUM(Sales[Revenue])"
        assert total.format_string == "$#,##0"
        assert total.display_folder == "Base Measures"
        assert total.description == "Total of Revenue from Sales table"

    def test_avg_naming(self):
        items = [{"id": "b", "type": "bar", "props": {"metric": "salary", "operation": "avg"}}]
        measures = by_name(generate_all_measures(items, "HR"))
        assert measures["Avg Salary"].expression == "AVERAGE(Employee[Salary])"

    def test_count_uses_countrows(self):
        measures = by_name(generate_all_measures([card("revenue", operation="count")], "Retail"))
        assert measures["Count of Revenue"].expression == "COUNTROWS(Sales)"

    def test_canonical_column_casing(self):
        measures = by_name(generate_all_measures([card("mrr")], "SaaS"))
        assert measures["Total Mrr"].expression == "SUM(Subscription[MRR])"

    def test_unknown_metric_skipped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="phantom_export.dax.measure_generator"):
            measures = generate_all_measures([card("margin")], "Retail")
        assert "Total Margin" not in by_name(measures)
        assert "margin_sum" in caplog.text

    def test_items_without_metric_bind_nothing(self):
        items = [{"id": "t", "type": "table", "props": {"columns": ["Store"]}}]
        assert extract_bindings([DashboardItem.from_dict(i) for i in items], "Retail") == []


# =============================================================================
# VARIANCE MEASURES
# =============================================================================

class TestVarianceMeasures:
    def test_show_variance_adds_plan_and_prior_year(self):
        measures = generate_all_measures([card("revenue", showVariance=True)], "Retail")
        names = [m.name for m in measures]
        assert names[:3] == ["Total Revenue", "Total Revenue Plan", "Total Revenue PY"]
        assert names[3:7] == ["Revenue ΔPY", "Revenue ΔPY%", "Revenue ΔPL", "Revenue ΔPL%"]

    def test_variance_expressions(self):
        measures = by_name(generate_all_measures([card("revenue", showVariance=True)], "Retail"))
        assert measures["Revenue ΔPY"].expression == (
            "VAR _AC = [Total Revenue]\nVAR _PY = [Total Revenue PY]\nRETURN\n_AC - _PY"
        )
        assert measures["Revenue ΔPL%"].expression.endswith(
            "IF(_PL <> 0, DIVIDE(_AC - _PL, ABS(_PL)), BLANK())"
        )
        assert measures["Revenue ΔPY%"].format_string == "0.0%"
        assert measures["Revenue ΔPY"].format_string == "$#,##0"
        assert measures["Revenue ΔPY"].display_folder == "Variance Measures"

    def test_kpi_items_bind_siblings(self):
        items = [{"id": "k", "type": "kpi", "props": {"metric": "profit"}}]
        names = by_name(generate_all_measures(items, "Retail"))
        assert "Profit ΔPL" in names
        assert "Profit ΔPY%" in names

    def test_no_variance_without_siblings(self):
        measures = generate_all_measures([card("revenue")], "Retail")
        assert not [m for m in measures if m.display_folder == "Variance Measures"]

    def test_no_variance_when_fact_lacks_siblings(self):
        items = [card("ltv", showVariance=True)]
        measures = generate_all_measures(items, "SaaS")
        assert not [m for m in measures if m.display_folder == "Variance Measures"]

    def test_sibling_must_share_operation(self):
        items = [
            card("revenue", item_id="a", operation="avg"),
            card("revenuePY", item_id="b", operation="sum"),
        ]
        measures = generate_all_measures(items, "Retail")
        assert not [m for m in measures if m.display_folder == "Variance Measures"]


# =============================================================================
# WATERFALL
# =============================================================================

class TestWaterfallMeasures:
    def test_single_waterfall_adds_four(self):
        items = [{"id": "w", "type": "waterfall", "props": {"dimension": "Region", "metric": "revenue"}}]
        measures = generate_all_measures(items, "Retail")
        waterfall = [m for m in measures if m.display_folder == "Waterfall"]
        assert [m.name for m in waterfall] == [
            "Waterfall Start", "Waterfall Variance", "Waterfall End", "Waterfall Running",
        ]
        start = waterfall[0].expression
        assert "SUM(Sales[RevenuePY])" in start
        assert "ALLEXCEPT(Sales, Store[Region])" in start
        assert "ALL(Store)" in waterfall[3].expression
        assert all(m.format_string == "$#,##0" for m in waterfall)

    def test_defaults_to_region_and_revenue(self):
        items = [{"id": "w", "type": "waterfall", "props": {}}]
        measures = by_name(generate_all_measures(items, "Retail"))
        assert "Store[Region]" in measures["Waterfall End"].expression

    def test_two_waterfalls_are_suffixed(self):
        items = [
            {"id": "w1", "type": "waterfall", "props": {"metric": "revenue"}},
            {"id": "w2", "type": "waterfall", "props": {"metric": "profit"}},
        ]
        names = by_name(generate_all_measures(items, "Retail"))
        assert "Waterfall 1 Start" in names
        assert "Waterfall 2 Running" in names
        assert "Waterfall Start" not in names
        assert "Sales[ProfitPY]" in names["Waterfall 2 Variance"].expression

    def test_missing_prior_year_column_skips(self, caplog):
        items = [{"id": "w", "type": "waterfall", "props": {"metric": "amount", "dimension": "Account"}}]
        with caplog.at_level(logging.WARNING, logger="phantom_export.dax.measure_generator"):
            measures = generate_all_measures(items, "Finance")
        assert not [m for m in measures if m.display_folder == "Waterfall"]
        assert "Skipping waterfall" in caplog.text

    def test_unknown_dimension_skips(self, caplog):
        items = [{"id": "w", "type": "waterfall", "props": {"metric": "revenue", "dimension": "Channel"}}]
        with caplog.at_level(logging.WARNING, logger="phantom_export.dax.measure_generator"):
            measures = generate_all_measures(items, "Retail")
        assert not [m for m in measures if m.display_folder == "Waterfall"]
        assert not [m for m in measures if "Sales[Channel]" in m.expression]
        assert "dimension 'Channel'" in caplog.text


# =============================================================================
# SCENARIO KPIS
# =============================================================================

class TestScenarioMeasures:
    def test_portfolio_kpis_only_for_portfolio(self, portfolio_items, retail_items):
        portfolio = by_name(generate_all_measures(portfolio_items, "Portfolio"))
        retail = by_name(generate_all_measures(retail_items, "Retail"))
        assert "Unique Entities" in portfolio
        assert portfolio["Above Threshold"].display_folder == "Portfolio KPIs"
        assert "Unique Entities" not in retail

    def test_retail_dashboard_measure_order(self, retail_items):
        names = [m.name for m in generate_all_measures(retail_items, "Retail")]
        assert names == [
            "Total Revenue", "Total Profit",
            "Waterfall Start", "Waterfall Variance", "Waterfall End", "Waterfall Running",
            "Margin %", "YoY Growth", "Revenue per Store", "Avg Order Value",
        ]

    @pytest.mark.parametrize("scenario", list(Scenario))
    def test_every_scenario_has_kpis(self, scenario):
        assert generate_scenario_measures(scenario)

    def test_kpis_are_fresh_copies(self):
        first = generate_scenario_measures("HR")
        first[0].expression = "BROKEN"
        assert generate_scenario_measures("HR")[0].expression == "COUNTROWS(Employee)"

    def test_multiline_kpis_are_dedented(self):
        measures = by_name(generate_scenario_measures("Retail"))
        assert measures["Margin %"].expression.startswith("VAR _Revenue = SUM(Sales[Revenue])\n")


# =============================================================================
# UNIQUENESS
# =============================================================================

class TestDeduplication:
    def test_shared_binding_yields_one_measure(self):
        items = [card("revenue", item_id="a"), card("revenue", item_id="b")]
        names = [m.name for m in generate_all_measures(items, "Retail")]
        assert names.count("Total Revenue") == 1

    def test_first_seen_wins(self):
        first = DAXMeasure("X", "1")
        second = DAXMeasure("X", "2")
        assert dedupe_measures([first, second]) == [first]

    @pytest.mark.parametrize("scenario", list(Scenario))
    def test_names_unique_for_busy_dashboard(self, scenario):
        items = [
            card("revenue", item_id="a", showVariance=True),
            {"id": "k", "type": "kpi", "props": {"metric": "cost"}},
            {"id": "w1", "type": "waterfall", "props": {}},
            {"id": "w2", "type": "waterfall", "props": {"metric": "cost"}},
        ]
        names = [m.name for m in generate_all_measures(items, scenario)]
        assert len(names) == len(set(names))


# =============================================================================
# FORMATTING
# =============================================================================

class TestFormatting:
    @pytest.mark.parametrize("metric,expected", [
        ("churnRate", "0.0%"),
        ("revenue", "$#,##0"),
        ("ltv", "$#,##0"),
        ("quantity", "#,##0"),
    ])
    def test_measure_format(self, metric, expected):
        assert measure_format_string(metric) == expected

    def test_column_format(self):
        assert column_format_string("dateTime", "Date") == "General Date"
        assert column_format_string("int64", "Quantity") == "0"
        assert column_format_string("double", "Price") == "$#,0.00;($#,0.00);$#,0.00"
        assert column_format_string("double", "Weight") == "0.00"
        assert column_format_string("string", "Region") is None

    def test_labels(self):
        assert metric_label("revenuePL") == "Revenue Plan"
        assert metric_label("revenuePY") == "Revenue PY"
        assert measure_name("score", "max") == "Max Score"


class TestVarianceRatio:
    @pytest.mark.parametrize("actual,comparison,expected", [
        (110, 100, 0.1),
        (90, 120, -0.25),
        (-50, -100, 0.5),
    ])
    def test_ratio(self, actual, comparison, expected):
        assert variance_ratio(actual, comparison) == pytest.approx(expected)

    @pytest.mark.parametrize("actual,comparison", [(50, 0), (None, 10), (10, None)])
    def test_blank(self, actual, comparison):
        assert variance_ratio(actual, comparison) is None
