"""Legacy Template (.pbit) writer.

A schema-and-binding template only: the tabular model carries placeholder
query partitions and a single placeholder data source, never any rows.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from ..archive import ArchiveBuilder
from ..dax.measure_generator import generate_all_measures
from ..ids import Clock, IdSource, RandomIdSource, SystemClock, iso_date, iso_timestamp
from ..layout.converter import convert_all
from ..layout.legacy_layout import build_legacy_layout
from ..models.dashboard import DashboardItem, Scenario, parse_items
from ..models.result import ExportResult
from ..models.schema import DAXMeasure, PBISchema
from ..renderers.guide_renderer import GuideRenderer
from ..semantic.registry import get_fact_table, get_schema

logger = logging.getLogger(__name__)

COMPATIBILITY_LEVEL = 1550
DATA_SOURCE = "DataSource"
CREATED_FROM = "Phantom Dashboard Designer"

CONTENT_TYPES_XML = """<?xml version="1.0" encoding="utf-8"?>
<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
  <Default Extension="json" ContentType="application/json" />
  <Default Extension="xml" ContentType="application/xml" />
</Types>"""

SETTINGS_JSON = {
    "version": "1.0",
    "allowChangeFilterTypes": True,
    "allowInlineExploration": True,
    "allowModifyQueries": True,
    "defaultDrillFilterOtherVisuals": False,
    "allowImmersiveReader": True,
    "queryLimitOption": 0,
    "autoRecoverEnabled": False,
}

CROSS_FILTER_CODES = {"oneDirection": 1, "bothDirections": 2}


def data_model_schema(schema: PBISchema, measures: list[DAXMeasure], scenario: Scenario | str) -> dict[str, Any]:
    """The ``DataModelSchema`` document: tables, measures, relationships."""
    fact_table = get_fact_table(scenario)
    tables = []
    for table in schema.tables:
        entry: dict[str, Any] = {
            "name": table.name,
            "description": table.description,
            "columns": [
                {
                    "name": col.name,
                    "dataType": col.data_type,
                    "sourceColumn": col.source,
                    "isHidden": col.is_hidden,
                    "summarizeBy": col.summarize_by,
                }
                for col in table.columns
            ],
            "partitions": [{
                "name": f"{table.name}_Partition",
                "source": {
                    "type": "query",
                    "query": f"/* Replace with your data source query for {table.name} */\nSELECT * FROM {table.name}",
                    "dataSource": DATA_SOURCE,
                },
            }],
        }
        if table.name == fact_table:
            entry["measures"] = [
                {
                    "name": m.name,
                    "expression": m.expression.strip(),
                    "displayFolder": m.display_folder,
                    "formatString": m.format_string,
                    "description": m.description,
                }
                for m in measures
            ]
        tables.append(entry)

    relationships = [
        {
            "name": rel.name,
            "fromTable": rel.from_table,
            "fromColumn": rel.from_column,
            "toTable": rel.to_table,
            "toColumn": rel.to_column,
            "crossFilteringBehavior": CROSS_FILTER_CODES.get(rel.cross_filtering_behavior, 1),
            "fromCardinality": rel.from_cardinality,
            "toCardinality": rel.to_cardinality,
            "isActive": rel.is_active,
        }
        for rel in schema.relationships
    ]

    return {
        "name": "Model",
        "compatibilityLevel": COMPATIBILITY_LEVEL,
        "model": {
            "culture": "en-US",
            "dataAccessOptions": {"legacyRedirects": True, "returnErrorValuesAsNull": True},
            "tables": tables,
            "relationships": relationships,
            "dataSources": [{
                "name": DATA_SOURCE,
                "connectionString": "/* Configure your connection string here */",
                "type": "structured",
                "credential": {"AuthenticationKind": "UsernamePassword"},
            }],
        },
    }


def metadata(scenario: Scenario | str, clock: Clock) -> dict[str, Any]:
    return {
        "version": "1.0",
        "createdFrom": CREATED_FROM,
        "scenario": Scenario.coerce(scenario).value,
        "exportedAt": iso_timestamp(clock),
    }


class LegacyTemplateWriter:
    """Build ``.pbit`` Legacy Templates."""

    def __init__(
        self,
        id_source: Optional[IdSource] = None,
        clock: Optional[Clock] = None,
        compression: str = "deflated",
        compress_level: int = 6,
        renderer: Optional[GuideRenderer] = None,
    ):
        self.id_source = id_source or RandomIdSource()
        self.clock = clock or SystemClock()
        self.compression = compression
        self.compress_level = compress_level
        self.renderer = renderer or GuideRenderer()

    def default_filename(self, scenario: Scenario | str) -> str:
        return f"{Scenario.coerce(scenario).value}_Dashboard_{iso_date(self.clock)}.pbit"

    def assemble(
        self,
        items: Iterable[DashboardItem | Mapping[str, Any]],
        scenario: Scenario | str,
    ) -> tuple[ArchiveBuilder, str]:
        scenario = Scenario.coerce(scenario)
        items = parse_items(items)
        schema = get_schema(scenario)
        measures = generate_all_measures(items, scenario)
        visuals = convert_all(items)

        archive = ArchiveBuilder(self.clock, self.compression, self.compress_level)
        archive.add("[Content_Types].xml", CONTENT_TYPES_XML)
        archive.add("DataModelSchema", data_model_schema(schema, measures, scenario))
        archive.add("Report/Layout", build_legacy_layout(visuals, scenario, self.id_source))
        archive.add("Settings", SETTINGS_JSON)
        archive.add("Metadata", metadata(scenario, self.clock))

        documentation = self.renderer.render_pbit(schema, measures, scenario)
        return archive, documentation

    def build(
        self,
        items: Iterable[DashboardItem | Mapping[str, Any]],
        scenario: Scenario | str,
        filename: Optional[str] = None,
    ) -> ExportResult:
        """Build the Legacy Template.

        Args:
            items: Dashboard items (``DashboardItem`` or designer JSON dicts)
            scenario: Scenario whose schema is exported
            filename: Override for the suggested archive name

        Returns:
            ExportResult with archive bytes, guide Markdown and filename
        """
        scenario = Scenario.coerce(scenario)
        logger.info("Exporting PBIT for %s", scenario.value)
        archive, documentation = self.assemble(items, scenario)
        result = ExportResult(archive.to_bytes(), documentation, filename or self.default_filename(scenario))
        logger.info("PBIT export complete: %s (%d bytes)", result.filename, result.size)
        return result

    async def build_async(
        self,
        items: Iterable[DashboardItem | Mapping[str, Any]],
        scenario: Scenario | str,
        filename: Optional[str] = None,
    ) -> ExportResult:
        scenario = Scenario.coerce(scenario)
        logger.info("Exporting PBIT for %s", scenario.value)
        archive, documentation = self.assemble(items, scenario)
        result = ExportResult(await archive.build_async(), documentation, filename or self.default_filename(scenario))
        logger.info("PBIT export complete: %s (%d bytes)", result.filename, result.size)
        return result
