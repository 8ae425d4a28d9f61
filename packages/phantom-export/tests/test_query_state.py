"""Tests for PBIR field-well bindings."""

import logging

import pytest

from phantom_export.dax.measure_generator import generate_all_measures
from phantom_export.models.dashboard import DashboardItem, Scenario, parse_items
from phantom_export.writers.pbip_writer import export_items
from phantom_export.writers.query_state import QueryState, QueryStateBuilder, query_projection


def refs(role):
    return [p["queryRef"] for p in role["projections"]]


@pytest.fixture
def retail_dashboard(retail_items):
    items = export_items(parse_items(retail_items), Scenario.RETAIL)
    return {item.id: item for item in items}, generate_all_measures(items, "Retail")


@pytest.fixture
def builder(retail_dashboard):
    _, measures = retail_dashboard
    return QueryStateBuilder("Retail", measures)


def item(visual_type, item_id="v", **props):
    return DashboardItem.from_dict({"id": item_id, "type": visual_type, "props": props})


class TestProjection:
    def test_column_projection(self):
        proj = query_projection("Store", "Region", False, active=True)
        assert proj == {
            "field": {"Column": {"Expression": {"SourceRef": {"Entity": "Store"}}, "Property": "Region"}},
            "queryRef": "Store.Region",
            "nativeQueryRef": "Region",
            "active": True,
        }

    def test_measure_projection_with_display_name(self):
        proj = query_projection("Sales", "Total Revenue", True, display_name="Total Revenue")
        assert "Measure" in proj["field"]
        assert proj["displayName"] == "Total Revenue"
        assert "active" not in proj

    def test_to_query(self):
        assert QueryState({}).to_query() == {"queryState": {}}
        assert QueryState({}, {"isDefaultSort": True}).to_query()["sortDefinition"] == {"isDefaultSort": True}


class TestRetailDashboard:
    def test_card_carries_variance_reference_labels(self, retail_dashboard, builder):
        items, _ = retail_dashboard
        roles = builder.build(items["c1"]).roles
        assert refs(roles["Values"]) == [
            "Sales.Total Revenue", "Sales.Revenue ΔPY%", "Sales.Revenue ΔPL%",
        ]

    def test_bar(self, retail_dashboard, builder):
        items, _ = retail_dashboard
        state = builder.build(items["b1"])
        assert refs(state.roles["Category"]) == ["Store.Region"]
        assert state.roles["Category"]["projections"][0]["active"] is True
        assert refs(state.roles["Y"]) == ["Sales.Total Revenue"]
        assert state.roles["Y"]["projections"][0]["displayName"] == "Total Revenue"
        assert state.sort == {"isDefaultSort": True}

    def test_line_binds_calendar(self, retail_dashboard, builder):
        items, _ = retail_dashboard
        roles = builder.build(items["l1"]).roles
        assert refs(roles["Category"]) == ["DateTable.Month"]
        assert refs(roles["Y"]) == ["Sales.Total Profit"]

    def test_waterfall_category_not_active(self, retail_dashboard, builder):
        items, _ = retail_dashboard
        roles = builder.build(items["w1"]).roles
        assert "active" not in roles["Category"]["projections"][0]
        assert refs(roles["Y"]) == ["Sales.Total Revenue"]

    def test_table_columns_prefer_model_columns(self, retail_dashboard, builder):
        items, _ = retail_dashboard
        roles = builder.build(items["t1"]).roles
        assert refs(roles["Values"]) == ["Store.StoreName", "Sales.Revenue"]

    def test_table_column_falls_back_to_measure_name(self, builder):
        roles = builder.build(item("table", columns=["Store", "Total Profit"])).roles
        values = roles["Values"]["projections"]
        assert values[1]["queryRef"] == "Sales.Total Profit"
        assert "Measure" in values[1]["field"]

    def test_empty_table_uses_default_columns(self, builder):
        roles = builder.build(item("table")).roles
        assert refs(roles["Values"]) == ["Sales.Date", "Sales.Revenue", "Sales.Profit"]


class TestMissingBindings:
    def test_unknown_dimension_dropped(self, builder, caplog):
        with caplog.at_level(logging.WARNING, logger="phantom_export.writers.query_state"):
            roles = builder.build(item("bar", dimension="Galaxy", metric="revenue")).roles
        assert "Category" not in roles
        assert "Y" in roles
        assert "Galaxy" in caplog.text

    def test_ungenerated_measure_dropped(self, builder, caplog):
        with caplog.at_level(logging.WARNING, logger="phantom_export.writers.query_state"):
            roles = builder.build(item("bar", dimension="Region", metric="discount")).roles
        assert "Y" not in roles
        assert "discount" in caplog.text

    def test_text_visuals_have_no_roles(self, builder):
        assert builder.build(item("portfolioHeader")).roles == {}


class TestVisualFamilies:
    def test_funnel_sorts_by_metric_column(self, builder):
        state = builder.build(item("funnel", dimension="Region", metric="revenue"))
        sort = state.sort["sort"][0]
        assert sort["field"]["Aggregation"]["Expression"]["Column"]["Property"] == "Revenue"
        assert sort["direction"] == "Descending"

    def test_date_range_picker_defaults_to_date(self, builder):
        roles = builder.build(item("dateRangePicker")).roles
        assert refs(roles["Values"]) == ["Sales.Date"]

    def test_slicer(self, builder):
        roles = builder.build(item("slicer", dimension="Category")).roles
        assert refs(roles["Values"]) == ["Product.Category"]

    def test_matrix(self, builder):
        roles = builder.build(item("matrix", rows="Region", columns="Month", values="revenue")).roles
        assert refs(roles["Rows"]) == ["Store.Region"]
        assert refs(roles["Columns"]) == ["DateTable.Month"]
        assert refs(roles["Values"]) == ["Sales.Total Revenue"]

    def test_combo(self, builder):
        state = builder.build(item("combo", barMetric="revenue", lineMetric="profit"))
        assert state.roles["Y"]["projections"][0]["displayName"] == "Bars"
        assert state.roles["Y2"]["projections"][0]["displayName"] == "Line"
        assert refs(state.roles["Category"]) == ["Sales.Date"]
        assert state.sort == {"isDefaultSort": True}

    def test_scatter(self, builder):
        roles = builder.build(item("scatter", dimension="Store", xMetric="revenue", yMetric="profit")).roles
        assert refs(roles["X"]) == ["Sales.Total Revenue"]
        assert refs(roles["Y"]) == ["Sales.Total Profit"]
        assert refs(roles["Series"]) == ["Store.StoreName"]
        assert "Size" not in roles

    def test_kpi_goal_and_trend(self):
        kpi = item("kpi", metric="profit")
        measures = generate_all_measures([kpi], "Retail")
        roles = QueryStateBuilder("Retail", measures).build(kpi).roles
        assert refs(roles["Indicator"]) == ["Sales.Total Profit"]
        assert refs(roles["Goal"]) == ["Sales.Total Profit PY"]
        assert refs(roles["TrendLine"]) == ["DateTable.Month"]

    def test_non_retail_card_has_single_value(self):
        card = item("card", metric="salary")
        measures = generate_all_measures([card], "HR")
        roles = QueryStateBuilder("HR", measures).build(card).roles
        assert refs(roles["Values"]) == ["Employee.Total Salary"]
