"""Tests for the Project Package writer."""

import asyncio
import copy
import json

import pytest

from phantom_export.exceptions import InvalidDashboardError
from phantom_export.ids import SeededIdSource
from phantom_export.models.dashboard import DashboardItem, Scenario
from phantom_export.writers.pbip_writer import PBIPWriter, export_items, pbip_visual_type

P = "PhantomRetail"
R = f"{P}.Report"
M = f"{P}.SemanticModel"
VISUALS = f"{R}/definition/pages/page1/visuals"


@pytest.fixture
def writer(sequential_ids, fixed_clock):
    return PBIPWriter(id_source=sequential_ids, clock=fixed_clock)


@pytest.fixture
def retail_export(writer, retail_items, retail_data):
    return writer.build(retail_items, "Retail", retail_data)


def row_lines(text: str) -> list[str]:
    return [line for line in text.splitlines() if line.startswith("\t\t\t\t{")]


class TestArchiveLayout:
    def test_entry_order(self, retail_export, archive_names):
        assert archive_names(retail_export.archive_bytes) == [
            f"{P}.pbip",
            f"{R}/.platform",
            f"{R}/.pbi/",
            f"{R}/definition.pbir",
            f"{R}/definition/report.json",
            f"{R}/definition/version.json",
            f"{R}/definition/pages/pages.json",
            f"{R}/definition/pages/page1/page.json",
            f"{R}/StaticResources/SharedResources/BaseThemes/CY25SU12.json",
            f"{VISUALS}/c1/visual.json",
            f"{VISUALS}/b1/visual.json",
            f"{VISUALS}/l1/visual.json",
            f"{VISUALS}/w1/visual.json",
            f"{VISUALS}/t1/visual.json",
            f"{M}/.platform",
            f"{M}/.pbi/",
            f"{M}/.pbi/editorSettings.json",
            f"{M}/definition.pbism",
            f"{M}/definition/database.tmdl",
            f"{M}/definition/cultures/en-US.tmdl",
            f"{M}/definition/tables/Store.tmdl",
            f"{M}/definition/tables/Product.tmdl",
            f"{M}/definition/tables/Sales.tmdl",
            f"{M}/definition/tables/DateTable.tmdl",
            f"{M}/definition/model.tmdl",
            f"{M}/diagramLayout.json",
            f"{P}_Guide.md",
        ]

    def test_descriptors(self, retail_export, read_archive):
        files = read_archive(retail_export.archive_bytes)
        assert json.loads(files[f"{P}.pbip"])["artifacts"] == [{"report": {"path": R}}]
        assert json.loads(files[f"{R}/definition.pbir"])["datasetReference"]["byPath"]["path"] == f"../{M}"
        report_platform = json.loads(files[f"{R}/.platform"])
        model_platform = json.loads(files[f"{M}/.platform"])
        assert report_platform["metadata"] == {"type": "Report", "displayName": P}
        assert report_platform["config"]["logicalId"] == "00000000-0000-4000-8000-000000000001"
        assert model_platform["config"]["logicalId"] == "00000000-0000-4000-8000-000000000002"
        assert files[f"{M}/definition/database.tmdl"] == "database\n\tcompatibilityLevel: 1600\n"

    def test_page(self, retail_export, read_archive):
        page = json.loads(read_archive(retail_export.archive_bytes)[f"{R}/definition/pages/page1/page.json"])
        assert page["displayName"] == "Retail Dashboard"
        assert (page["width"], page["height"]) == (1280, 720)

    def test_guide_entry_matches_documentation(self, retail_export, read_archive):
        files = read_archive(retail_export.archive_bytes)
        assert files[f"{P}_Guide.md"] == retail_export.documentation
        assert retail_export.documentation.startswith("# Power BI Project (PBIP) - Retail Dashboard")

    def test_filename(self, retail_export):
        assert retail_export.filename == "PhantomRetail_2024-03-15.pbip.zip"


class TestVisuals:
    def test_positions_and_order(self, retail_export, read_archive):
        files = read_archive(retail_export.archive_bytes)
        bar = json.loads(files[f"{VISUALS}/b1/visual.json"])
        assert bar["name"] == "b1"
        assert bar["position"] == {"x": 320, "y": 0, "z": 1000, "width": 480, "height": 320, "tabOrder": 1}
        assert bar["visual"]["visualType"] == "clusteredBarChart"
        assert bar["visual"]["drillFilterOtherVisuals"] is True

    def test_retail_card(self, retail_export, read_archive):
        card = json.loads(read_archive(retail_export.archive_bytes)[f"{VISUALS}/c1/visual.json"])
        visual = card["visual"]
        assert visual["visualType"] == "cardVisual"
        values = visual["query"]["queryState"]["Values"]["projections"]
        assert [p["queryRef"] for p in values] == [
            "Sales.Total Revenue", "Sales.Revenue ΔPY%", "Sales.Revenue ΔPL%",
        ]
        assert "visualContainerObjects" in visual

    def test_visual_type_rules(self):
        card = DashboardItem(id="c", type="card")
        email_combo = DashboardItem(id="email-1", type="combo")
        assert pbip_visual_type(card, Scenario.RETAIL) == "cardVisual"
        assert pbip_visual_type(card, Scenario.HR) == "card"
        assert pbip_visual_type(email_combo, Scenario.RETAIL) == "lineClusteredColumnComboChart"
        assert pbip_visual_type(DashboardItem(id="x", type="sparkline"), Scenario.RETAIL) == "card"

    def test_export_items_forces_variance_on_retail_cards(self):
        items = [DashboardItem(id="c", type="card", props={"metric": "revenue"})]
        assert export_items(items, Scenario.RETAIL)[0].props.show_variance is True
        assert export_items(items, Scenario.HR)[0].props.show_variance is False
        assert items[0].props.show_variance is False


class TestSemanticModel:
    def test_measures_only_in_fact_table(self, retail_export, read_archive):
        files = read_archive(retail_export.archive_bytes)
        sales = files[f"{M}/definition/tables/Sales.tmdl"]
        assert "\tmeasure 'Total Revenue' = SUM(Sales[Revenue])\n" in sales
        assert "\tmeasure 'Revenue ΔPY%' = ```\n" in sales
        for table in ("Store", "Product", "DateTable"):
            assert "\tmeasure " not in files[f"{M}/definition/tables/{table}.tmdl"]

    def test_rows_embedded(self, retail_export, read_archive):
        files = read_archive(retail_export.archive_bytes)
        store = files[f"{M}/definition/tables/Store.tmdl"]
        assert row_lines(store) == [
            '\t\t\t\t{"S1", "Sydney CBD", "East", "AU"},',
            '\t\t\t\t{"S2", "Perth ""Central""", "West", "AU"}',
        ]
        assert len(row_lines(files[f"{M}/definition/tables/Sales.tmdl"])) == 3
        assert len(row_lines(files[f"{M}/definition/tables/DateTable.tmdl"])) == 2

    def test_lineage_tags_unique(self, retail_export, read_archive):
        files = read_archive(retail_export.archive_bytes)
        tags = [
            line.split(": ", 1)[1]
            for name, text in files.items() if name.endswith(".tmdl")
            for line in text.splitlines() if line.strip().startswith("lineageTag:")
        ]
        assert tags
        assert len(tags) == len(set(tags))

    @pytest.mark.slow
    def test_logistics_500_shipments(self, fixed_clock, read_archive, logistics_data):
        writer = PBIPWriter(id_source=SeededIdSource(1), clock=fixed_clock)
        result = writer.build([], "Logistics", logistics_data)
        files = read_archive(result.archive_bytes)
        prefix = "PhantomLogistics.SemanticModel/definition"
        assert len(row_lines(files[f"{prefix}/tables/Shipment.tmdl"])) == 500
        assert len(row_lines(files[f"{prefix}/tables/Carrier.tmdl"])) == 3
        assert "isActive: false" in files[f"{prefix}/model.tmdl"]

    def test_no_data_gives_empty_partitions(self, writer, retail_items, read_archive):
        files = read_archive(writer.build(retail_items, "Retail", None).archive_bytes)
        assert row_lines(files[f"{M}/definition/tables/Sales.tmdl"]) == []


class TestDeterminism:
    def test_same_seed_same_bytes(self, fixed_clock, retail_items, retail_data):
        def build():
            return PBIPWriter(id_source=SeededIdSource(42), clock=fixed_clock).build(
                retail_items, "Retail", retail_data
            )
        assert build().archive_bytes == build().archive_bytes

    def test_different_seed_different_ids(self, fixed_clock, retail_items, retail_data):
        first = PBIPWriter(id_source=SeededIdSource(1), clock=fixed_clock).build(retail_items, "Retail", retail_data)
        second = PBIPWriter(id_source=SeededIdSource(2), clock=fixed_clock).build(retail_items, "Retail", retail_data)
        assert first.archive_bytes != second.archive_bytes

    def test_async_matches_sync(self, fixed_clock, retail_items, retail_data):
        sync = PBIPWriter(id_source=SeededIdSource(7), clock=fixed_clock).build(retail_items, "Retail", retail_data)
        writer = PBIPWriter(id_source=SeededIdSource(7), clock=fixed_clock)
        result = asyncio.run(writer.build_async(retail_items, "Retail", retail_data))
        assert result.archive_bytes == sync.archive_bytes
        assert result.filename == sync.filename

    def test_inputs_not_mutated(self, writer, retail_items, retail_data):
        items_before = copy.deepcopy(retail_items)
        data_before = copy.deepcopy(retail_data)
        writer.build(retail_items, "Retail", retail_data)
        assert retail_items == items_before
        assert retail_data == data_before


class TestOptions:
    def test_project_prefix_and_filename(self, sequential_ids, fixed_clock, retail_items, archive_names):
        writer = PBIPWriter(id_source=sequential_ids, clock=fixed_clock, project_prefix="Acme")
        result = writer.build(retail_items, "Retail", None)
        assert result.filename == "AcmeRetail_2024-03-15.pbip.zip"
        assert archive_names(result.archive_bytes)[0] == "AcmeRetail.pbip"

    def test_filename_override(self, writer, retail_items):
        assert writer.build(retail_items, "Retail", None, filename="out.zip").filename == "out.zip"

    def test_theme_colors(self, sequential_ids, fixed_clock, retail_items, read_archive):
        writer = PBIPWriter(id_source=sequential_ids, clock=fixed_clock, theme_colors=["#111111", "#222222"])
        files = read_archive(writer.build(retail_items, "Retail", None).archive_bytes)
        theme = json.loads(files[f"{R}/StaticResources/SharedResources/BaseThemes/CY25SU12.json"])
        assert theme["dataColors"] == ["#111111", "#222222"]

    def test_invalid_items_rejected(self, writer):
        with pytest.raises(InvalidDashboardError):
            writer.build([{"id": "x"}], "Retail", None)
