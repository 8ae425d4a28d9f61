"""Grid to pixel conversion and visual type mapping.

The designer places visuals on a 24-column grid whose rows are 1/18 of the
canvas height. Power BI positions visuals in absolute pixels on a
1280x720 page.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..models.dashboard import DashboardItem, GridLayout, VisualProps, parse_items

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 1280
CANVAS_HEIGHT = 720
GRID_COLUMNS = 24
GRID_ROWS = 18
COLUMN_WIDTH = CANVAS_WIDTH / GRID_COLUMNS
ROW_HEIGHT = CANVAS_HEIGHT / GRID_ROWS
MIN_WIDTH = 50
MIN_HEIGHT = 30

DEFAULT_VISUAL_TYPE = "card"

VISUAL_TYPE_MAP: dict[str, str] = {
    # standard charts
    "bar": "clusteredBarChart",
    "column": "clusteredColumnChart",
    "stackedBar": "stackedBarChart",
    "stackedColumn": "stackedColumnChart",
    "line": "lineChart",
    "area": "areaChart",
    "stackedArea": "stackedAreaChart",
    "combo": "lineClusteredColumnComboChart",
    "scatter": "scatterChart",
    "regressionScatter": "scatterChart",
    "pie": "pieChart",
    "donut": "donutChart",
    "funnel": "funnel",
    "treemap": "treemap",
    "gauge": "gauge",
    "card": "card",
    "kpi": "kpi",
    "multiRowCard": "multiRowCard",
    "table": "tableEx",
    "matrix": "pivotTable",
    "waterfall": "waterfallChart",
    "slicer": "slicer",
    # portfolio visuals
    "controversyBar": "clusteredBarChart",
    "entityTable": "tableEx",
    "controversyTable": "tableEx",
    "controversyBottomPanel": "tableEx",
    "portfolioCard": "card",
    "portfolioHeader": "textbox",
    "portfolioHeaderBar": "textbox",
    "dateRangePicker": "slicer",
    "justificationSearch": "slicer",
    "portfolioKPICards": "multiRowCard",
}


@dataclass(frozen=True)
class PixelPosition:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class Canvas:
    width: int
    height: int


@dataclass
class PBIVisualConfig:
    """One dashboard item translated to Power BI terms."""

    name: str
    visual_type: str
    position: PixelPosition
    title: str = ""
    original_type: str = ""
    props: VisualProps = field(default_factory=VisualProps)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def grid_to_pixels(layout: GridLayout | Mapping[str, Any]) -> PixelPosition:
    """Scale a grid rectangle to canvas pixels.

    Origins are clamped at zero and sizes floored at 50x30 so no visual
    collapses to an invisible sliver.
    """
    if isinstance(layout, Mapping):
        layout = GridLayout(
            int(layout.get("x", 0)), int(layout.get("y", 0)),
            int(layout.get("w", 0)), int(layout.get("h", 0)),
        )
    return PixelPosition(
        x=max(0, _round_half_up(layout.x * COLUMN_WIDTH)),
        y=max(0, _round_half_up(layout.y * ROW_HEIGHT)),
        width=max(MIN_WIDTH, _round_half_up(layout.w * COLUMN_WIDTH)),
        height=max(MIN_HEIGHT, _round_half_up(layout.h * ROW_HEIGHT)),
    )


def map_visual_type(source_type: str) -> str:
    """Power BI visual type for a designer type; unknown types become cards."""
    target = VISUAL_TYPE_MAP.get(source_type)
    if target is None:
        logger.debug("No visual type mapping for %r, using %s", source_type, DEFAULT_VISUAL_TYPE)
        return DEFAULT_VISUAL_TYPE
    return target


def convert_item(item: DashboardItem) -> PBIVisualConfig:
    return PBIVisualConfig(
        name=f"visual_{item.id}",
        visual_type=map_visual_type(item.type),
        position=grid_to_pixels(item.layout),
        title=item.title,
        original_type=item.type,
        props=item.props,
    )


def convert_all(items: Iterable[DashboardItem | Mapping[str, Any]]) -> list[PBIVisualConfig]:
    """Convert every item, preserving order (order drives z-order and tab order)."""
    visuals = [convert_item(item) for item in parse_items(items)]
    logger.debug("Converted %d visuals", len(visuals))
    return visuals


def calculate_optimal_canvas(items: Iterable[DashboardItem | Mapping[str, Any]]) -> Canvas:
    """Page size tall enough to hold the lowest visual, never below 720px."""
    bottom = max((item.layout.bottom for item in parse_items(items)), default=0)
    height = max(CANVAS_HEIGHT, math.ceil(bottom * CANVAS_HEIGHT / GRID_ROWS))
    return Canvas(CANVAS_WIDTH, height)
