"""Report layout document for the legacy template (``Report/Layout``).

One section holds every visual. Each visual container carries its config as
a JSON *string*, with the field-well projections and a prototype query
derived from the projected column references.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from ..ids import IdSource
from ..models.dashboard import Scenario, VisualProps
from ..semantic.field_mapper import map_field
from .converter import CANVAS_HEIGHT, CANVAS_WIDTH, PBIVisualConfig

logger = logging.getLogger(__name__)

LEGACY_THEME = "CY23SU08"
LEGACY_VERSION = "5.50"

AGGREGATE_FUNCTIONS = {
    "avg": "AVERAGE",
    "average": "AVERAGE",
    "min": "MIN",
    "max": "MAX",
    "count": "COUNT",
    "distinctcount": "DISTINCTCOUNT",
}

_COLUMN_REF = re.compile(r"([A-Za-z0-9_]+)\[([^\]]+)\]")

# Category axis + values, keyed by the role name the category goes into
_CATEGORY_ROLE = {
    **dict.fromkeys(
        ["bar", "column", "stackedBar", "stackedColumn", "line", "area", "waterfall", "funnel"],
        "Category",
    ),
    "pie": "Legend",
    "donut": "Legend",
    "treemap": "Group",
}


class ProjectionBuilder:
    """Builds ``queryRef`` projections for one scenario."""

    def __init__(self, scenario: Scenario):
        self.scenario = scenario

    def column(self, field: Optional[str]) -> Optional[list[dict]]:
        if not field:
            return None
        return [{"queryRef": map_field(self.scenario, field).dax}]

    def aggregate(self, field: Optional[str], operation: str = "sum") -> Optional[list[dict]]:
        if not field:
            return None
        function = AGGREGATE_FUNCTIONS.get(operation.lower(), "SUM")
        return [{"queryRef": f"{function}({map_field(self.scenario, field).dax})"}]

    def build(self, original_type: str, props: VisualProps) -> dict[str, list[dict]]:
        roles: dict[str, Optional[list[dict]]] = {}

        if original_type in _CATEGORY_ROLE:
            roles[_CATEGORY_ROLE[original_type]] = self.column(props.get("dimension"))
            roles["Values"] = self.aggregate(props.metric)
        elif original_type in ("card", "gauge"):
            roles["Values"] = self.aggregate(props.metric, props.operation)
        elif original_type == "table":
            columns = props.get("columns") or ()
            roles["Values"] = [ref for col in columns for ref in self.column(col) or ()]
        elif original_type == "matrix":
            roles["Rows"] = self.column(props.get("rows"))
            roles["Columns"] = self.column(props.get("columns"))
            roles["Values"] = self.aggregate(props.get("values"), props.operation)
        elif original_type == "slicer":
            roles["Values"] = self.column(props.get("dimension"))
        elif original_type == "scatter":
            roles["Category"] = self.column(props.get("dimension"))
            roles["X"] = self.aggregate(props.get("xMetric"))
            roles["Y"] = self.aggregate(props.get("yMetric"))
            roles["Size"] = self.aggregate(props.get("sizeMetric"))

        return {role: refs for role, refs in roles.items() if refs is not None}


def build_prototype_query(projections: dict[str, list[dict]]) -> dict[str, Any]:
    """``From``/``Select`` over every ``Table[Column]`` the projections mention."""
    table_columns: dict[str, list[str]] = {}
    for entries in projections.values():
        for entry in entries:
            match = _COLUMN_REF.search(entry.get("queryRef") or "")
            if not match:
                continue
            table, column = match.groups()
            columns = table_columns.setdefault(table, [])
            if column not in columns:
                columns.append(column)

    return {
        "version": 2,
        "From": [{"Name": table, "Entity": table, "Type": 0} for table in table_columns],
        "Select": [
            {
                "Column": {
                    "Expression": {"SourceRef": {"Source": table}},
                    "Property": column,
                },
                "Name": f"{table}.{column}",
            }
            for table, columns in table_columns.items()
            for column in columns
        ],
        "OrderBy": [],
    }


def _visual_container(visual: PBIVisualConfig, index: int, builder: ProjectionBuilder) -> dict[str, Any]:
    pos = visual.position
    projections = builder.build(visual.original_type, visual.props)
    config = {
        "name": visual.name,
        "layouts": [{
            "id": 0,
            "position": {"x": pos.x, "y": pos.y, "z": index, "width": pos.width, "height": pos.height},
        }],
        "singleVisual": {
            "visualType": visual.visual_type,
            "projections": projections,
            "prototypeQuery": build_prototype_query(projections),
            "title": visual.title,
            "showTitle": True,
            "titleText": visual.title,
        },
    }
    return {
        "x": pos.x,
        "y": pos.y,
        "z": index,
        "width": pos.width,
        "height": pos.height,
        "config": json.dumps(config, ensure_ascii=False),
        "filters": "[]",
        "tabOrder": index,
    }


def build_legacy_layout(
    visuals: list[PBIVisualConfig],
    scenario: Scenario | str,
    id_source: IdSource,
) -> dict[str, Any]:
    """Single-page report layout with one container per visual, in order."""
    builder = ProjectionBuilder(Scenario.coerce(scenario))
    report_config = {
        "version": LEGACY_VERSION,
        "themeCollection": {"baseTheme": {"name": LEGACY_THEME, "version": LEGACY_VERSION}},
        "slowDataSourceSettings": {
            "isCrossHighlightingDisabled": False,
            "isSlicerSelectionsButtonEnabled": False,
            "isFilterSelectionsButtonEnabled": True,
            "isFieldWellButtonEnabled": False,
            "isApplyAllButtonEnabled": True,
        },
        "linguisticSchemaSyncVersion": 2,
        "activeSectionIndex": 0,
    }
    return {
        "id": 0,
        "reportId": id_source.next(),
        "sections": [{
            "name": "ReportSection",
            "displayName": "Dashboard",
            "displayOption": 0,
            "width": CANVAS_WIDTH,
            "height": CANVAS_HEIGHT,
            "filters": [],
            "ordinal": 0,
            "visualContainers": [
                _visual_container(visual, index, builder) for index, visual in enumerate(visuals)
            ],
        }],
        "config": json.dumps(report_config, ensure_ascii=False),
    }
