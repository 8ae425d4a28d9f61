"""Project Package (PBIP) writer.

Assembles a zipped Power BI Project: a report artifact with one PBIR
``visual.json`` per dashboard item and a semantic model artifact with one
TMDL file per table, every table partition carrying the dashboard's data as
an M table constructor.

Archive layout (``P`` is the project name)::

    P.pbip
    P.Report/.platform, .pbi/, definition.pbir
    P.Report/definition/report.json, version.json, pages/...
    P.Report/StaticResources/SharedResources/BaseThemes/CY25SU12.json
    P.SemanticModel/.platform, .pbi/editorSettings.json, definition.pbism
    P.SemanticModel/definition/database.tmdl, cultures/, tables/, model.tmdl
    P.SemanticModel/diagramLayout.json
    P_Guide.md
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..archive import ArchiveBuilder
from ..dax.measure_generator import generate_all_measures
from ..ids import Clock, IdSource, RandomIdSource, SystemClock, iso_date
from ..layout.converter import calculate_optimal_canvas, grid_to_pixels, map_visual_type
from ..models.dashboard import DashboardItem, Scenario, parse_items
from ..models.dataset import ExportData
from ..models.result import ExportResult
from ..renderers.guide_renderer import GuideRenderer
from ..semantic.registry import get_fact_table, get_schema
from . import pbip_templates as templates
from .dataset_tables import build_scenario_tables
from .query_state import QueryStateBuilder
from .tmdl_writer import CULTURE_TMDL, DATABASE_TMDL, model_tmdl_lines, table_tmdl_lines
from .visual_objects import container_objects, visual_objects

logger = logging.getLogger(__name__)

VISUAL_SCHEMA = f"{templates.SCHEMA_ROOT}/visualContainer/2.5.0/schema.json"
DEFAULT_PREFIX = "Phantom"


def pbip_visual_type(item: DashboardItem, scenario: Scenario) -> str:
    """PBIR visual type; Retail cards, KPIs and email combos get richer visuals."""
    if scenario is Scenario.RETAIL:
        if item.type == "card":
            return "cardVisual"
        if item.type == "kpi":
            return "kpi"
        if item.type == "combo" and item.id.startswith("email-"):
            return "lineClusteredColumnComboChart"
    return map_visual_type(item.type)


def export_items(items: Iterable[DashboardItem], scenario: Scenario) -> list[DashboardItem]:
    """Items as exported: Retail cards always carry PL/PY variance."""
    if scenario is not Scenario.RETAIL:
        return list(items)
    return [
        item.with_props(item.props.with_variance()) if item.type == "card" else item
        for item in items
    ]


def visual_json(
    item: DashboardItem,
    index: int,
    scenario: Scenario,
    queries: QueryStateBuilder,
    theme_colors: Optional[Sequence[str]] = None,
) -> dict[str, Any]:
    """``visual.json`` for one item; ``index`` drives z-order and tab order."""
    position = grid_to_pixels(item.layout)
    pbi_type = pbip_visual_type(item, scenario)
    visual: dict[str, Any] = {
        "visualType": pbi_type,
        "query": queries.build(item).to_query(),
        "objects": visual_objects(item, pbi_type, scenario, theme_colors),
    }
    container = container_objects(item, pbi_type, scenario, theme_colors)
    if container:
        visual["visualContainerObjects"] = container
    visual["drillFilterOtherVisuals"] = True
    return {
        "$schema": VISUAL_SCHEMA,
        "name": item.id,
        "position": {
            "x": position.x,
            "y": position.y,
            "z": index * 1000,
            "width": position.width,
            "height": position.height,
            "tabOrder": index,
        },
        "visual": visual,
    }


class PBIPWriter:
    """Build ``.pbip.zip`` Project Packages.

    The id source and clock are the only sources of variation: with a
    seeded id source and a fixed clock the archive bytes are reproducible.
    """

    def __init__(
        self,
        id_source: Optional[IdSource] = None,
        clock: Optional[Clock] = None,
        project_prefix: str = DEFAULT_PREFIX,
        theme_colors: Optional[Sequence[str]] = None,
        compression: str = "deflated",
        compress_level: int = 6,
        renderer: Optional[GuideRenderer] = None,
    ):
        self.id_source = id_source or RandomIdSource()
        self.clock = clock or SystemClock()
        self.project_prefix = project_prefix
        self.theme_colors = list(theme_colors) if theme_colors else None
        self.compression = compression
        self.compress_level = compress_level
        self.renderer = renderer or GuideRenderer()

    def project_name(self, scenario: Scenario | str) -> str:
        return f"{self.project_prefix}{Scenario.coerce(scenario).value}"

    def default_filename(self, scenario: Scenario | str) -> str:
        return f"{self.project_name(scenario)}_{iso_date(self.clock)}.pbip.zip"

    def assemble(
        self,
        items: Iterable[DashboardItem | Mapping[str, Any]],
        scenario: Scenario | str,
        data: ExportData | Mapping[str, Any] | None,
    ) -> tuple[ArchiveBuilder, str]:
        """Lay out every archive entry; returns the builder and the guide text.

        Table TMDL is streamed, so the builder can be serialised once.
        """
        scenario = Scenario.coerce(scenario)
        if data is not None and not isinstance(data, ExportData):
            data = ExportData.from_dict(data)
        items = export_items(parse_items(items), scenario)

        schema = get_schema(scenario)
        fact_table = get_fact_table(scenario)
        measures = generate_all_measures(items, scenario)
        queries = QueryStateBuilder(scenario, measures)
        project = self.project_name(scenario)
        report = f"{project}.Report"
        model = f"{project}.SemanticModel"

        report_id = self.id_source.next()
        model_id = self.id_source.next()

        archive = ArchiveBuilder(self.clock, self.compression, self.compress_level)

        archive.add(f"{project}.pbip", templates.pbip_manifest(report))

        # Report artifact
        archive.add(f"{report}/.platform", templates.platform("Report", project, report_id))
        archive.add_folder(f"{report}/.pbi")
        archive.add(f"{report}/definition.pbir", templates.pbir(f"../{model}"))
        archive.add(f"{report}/definition/report.json", templates.REPORT_JSON)
        archive.add(f"{report}/definition/version.json", templates.VERSION_JSON)
        archive.add(f"{report}/definition/pages/pages.json", templates.PAGES_JSON)
        canvas = calculate_optimal_canvas(items)
        page_dir = f"{report}/definition/pages/{templates.PAGE_NAME}"
        archive.add(
            f"{page_dir}/page.json",
            templates.page(f"{scenario.value} Dashboard", canvas.width, canvas.height),
        )
        archive.add(
            f"{report}/StaticResources/SharedResources/BaseThemes/{templates.BASE_THEME}.json",
            templates.base_theme(self.theme_colors),
        )
        for index, item in enumerate(items):
            archive.add(
                f"{page_dir}/visuals/{item.id}/visual.json",
                visual_json(item, index, scenario, queries, self.theme_colors),
            )
        logger.debug("Added %d visuals", len(items))

        # Semantic model artifact
        archive.add(f"{model}/.platform", templates.platform("SemanticModel", project, model_id))
        archive.add_folder(f"{model}/.pbi")
        archive.add(f"{model}/.pbi/editorSettings.json", templates.EDITOR_SETTINGS_JSON)
        archive.add(f"{model}/definition.pbism", templates.PBISM_JSON)
        archive.add(f"{model}/definition/database.tmdl", DATABASE_TMDL)
        archive.add(f"{model}/definition/cultures/en-US.tmdl", CULTURE_TMDL)

        rows = build_scenario_tables(scenario, data, schema)
        for table in schema.tables:
            table_measures = measures if table.name == fact_table else ()
            archive.add(
                f"{model}/definition/tables/{table.name}.tmdl",
                table_tmdl_lines(table, rows.get(table.name, []), self.id_source, table_measures),
            )
        archive.add(f"{model}/definition/model.tmdl", model_tmdl_lines(schema, self.id_source))
        archive.add(f"{model}/diagramLayout.json", templates.DIAGRAM_LAYOUT_JSON)

        documentation = self.renderer.render_pbip(schema, measures, scenario)
        archive.add(f"{project}_Guide.md", documentation)
        return archive, documentation

    def build(
        self,
        items: Iterable[DashboardItem | Mapping[str, Any]],
        scenario: Scenario | str,
        data: ExportData | Mapping[str, Any] | None,
        filename: Optional[str] = None,
    ) -> ExportResult:
        """Build the Project Package.

        Args:
            items: Dashboard items (``DashboardItem`` or designer JSON dicts)
            scenario: Scenario whose schema and dataset are exported
            data: Dataset snapshot; never mutated
            filename: Override for the suggested archive name

        Returns:
            ExportResult with archive bytes, guide Markdown and filename
        """
        scenario = Scenario.coerce(scenario)
        logger.info("Exporting PBIP for %s", scenario.value)
        archive, documentation = self.assemble(items, scenario, data)
        result = ExportResult(
            archive_bytes=archive.to_bytes(),
            documentation=documentation,
            filename=filename or self.default_filename(scenario),
        )
        logger.info("PBIP export complete: %s (%d entries, %d bytes)", result.filename, len(archive), result.size)
        return result

    async def build_async(
        self,
        items: Iterable[DashboardItem | Mapping[str, Any]],
        scenario: Scenario | str,
        data: ExportData | Mapping[str, Any] | None,
        filename: Optional[str] = None,
    ) -> ExportResult:
        """Same as ``build``; suspends only while the archive is compressed."""
        scenario = Scenario.coerce(scenario)
        logger.info("Exporting PBIP for %s", scenario.value)
        archive, documentation = self.assemble(items, scenario, data)
        result = ExportResult(
            archive_bytes=await archive.build_async(),
            documentation=documentation,
            filename=filename or self.default_filename(scenario),
        )
        logger.info("PBIP export complete: %s (%d entries, %d bytes)", result.filename, len(archive), result.size)
        return result
