"""Formatting objects (``objects`` / ``visualContainerObjects``) for PBIR visuals.

Retail exports use the brand styling set; every other scenario gets plain
title, axis and legend formatting. None of this depends on the data.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Sequence

from ..models.dashboard import DashboardItem, Scenario

DEFAULT_THEME_COLORS = (
    "#118DFF", "#12239E", "#E66C37", "#6B007B", "#E044A7",
    "#744EC2", "#D9B300", "#D64550", "#197278", "#6F9FB0",
)

BRAND_COLORS = {
    "primary": "#342BC2",
    "secondary": "#6F67F1",
    "tertiary": "#9993FF",
    "quaternary": "#417ED9",
    "quinary": "#2565C3",
    "lineAccent": "#44B0AB",
    "success": "#93BF35",
    "textPrimary": "#252423",
    "textSecondary": "#808080",
    "title": "#342BC2",
    "background": "#FFFFFF",
}

SERIES_COLORS = ("#342BC2", "#6F67F1", "#9993FF", "#417ED9", "#2565C3")

FONT_REGULAR = "'''Segoe UI'', wf_segoe-ui_normal, helvetica, arial, sans-serif'"
FONT_SEMIBOLD = "'''Segoe UI Semibold'', wf_segoe-ui_semibold, helvetica, arial, sans-serif'"
FONT_BOLD = "'''Segoe UI Bold'', wf_segoe-ui_bold, helvetica, arial, sans-serif'"

AXIS_TYPES = (
    "bar", "column", "stackedBar", "stackedColumn", "line", "area", "stackedArea",
    "waterfall", "scatter", "controversyBar",
)
LEGEND_TYPES = ("pie", "donut", "stackedBar", "stackedColumn", "line", "area", "stackedArea")
CHROMELESS_CHARTS = (
    "bar", "column", "line", "area", "combo", "stackedBar", "stackedColumn", "stackedArea",
)

Objects = dict[str, list[dict[str, Any]]]


# =============================================================================
# EXPRESSION HELPERS
# =============================================================================

def literal(value: str) -> dict[str, Any]:
    return {"expr": {"Literal": {"Value": value}}}


def decimal(value: float) -> dict[str, Any]:
    return literal(f"{value}D")


def integer(value: int) -> dict[str, Any]:
    return literal(f"{value}L")


def boolean(value: bool) -> dict[str, Any]:
    return literal("true" if value else "false")


def text(value: str) -> dict[str, Any]:
    """Single-quoted string literal, inner quotes doubled."""
    return literal("'" + value.replace("'", "''") + "'")


def solid_color(color: str) -> dict[str, Any]:
    return {"solid": {"color": literal(f"'{color}'")}}


def _props(**properties: Any) -> list[dict[str, Any]]:
    return [{"properties": properties}]


def _hidden() -> list[dict[str, Any]]:
    return _props(show=boolean(False))


def primary_color(theme_colors: Optional[Sequence[str]]) -> str:
    return theme_colors[0] if theme_colors else DEFAULT_THEME_COLORS[0]


def _series_points(**extra: Any) -> list[dict[str, Any]]:
    points = []
    for index, color in enumerate(SERIES_COLORS):
        point: dict[str, Any] = {"properties": {"fill": solid_color(color), **extra}}
        if index > 0:
            point["selector"] = {"data": [{"dataViewWildcard": {"matchingOption": index}}]}
        points.append(point)
    return points


def _title(item: DashboardItem, color: str) -> list[dict[str, Any]]:
    return _props(
        show=boolean(True),
        text=text(item.title or ""),
        fontColor=solid_color(color),
        fontSize=integer(12),
    )


# =============================================================================
# OBJECTS
# =============================================================================

def textbox_objects(item: DashboardItem) -> Objects:
    content = item.title or item.props.get("title") or item.props.get("text") or ""
    paragraphs = [{
        "textRuns": [{
            "value": content,
            "textStyle": {"fontFamily": "Segoe UI", "fontSize": "14px", "fontWeight": "bold"},
        }],
        "horizontalTextAlignment": "left",
    }]
    return {"general": _props(paragraphs=literal(json.dumps(paragraphs, ensure_ascii=False)))}


def _retail_card() -> Objects:
    return {
        "calloutArea": _props(size=decimal(60)),
        "calloutValue": _props(
            fontFamily=literal(FONT_BOLD),
            fontSize=decimal(28),
            fontColor=solid_color(BRAND_COLORS["textPrimary"]),
            horizontalAlignment=literal("'center'"),
            labelDisplayUnits=decimal(1),
        ),
        "calloutLabel": _props(
            fontFamily=literal(FONT_REGULAR),
            fontSize=decimal(12),
            fontColor=solid_color(BRAND_COLORS["textSecondary"]),
            position=literal("'aboveValue'"),
            show=boolean(True),
        ),
        "referenceLabelsLayout": _props(
            position=literal("'below'"),
            layout=literal("'vertical'"),
            spacing=decimal(4),
        ),
        "divider": _props(show=boolean(True), color=solid_color("#F0F0F0"), width=decimal(1)),
        "referenceLabelValue": _props(
            fontFamily=literal(FONT_SEMIBOLD),
            fontSize=decimal(12),
            labelDisplayUnits=decimal(0),
        ),
        "referenceLabelTitle": _props(
            fontFamily=literal(FONT_REGULAR),
            fontSize=decimal(11),
            fontColor=solid_color(BRAND_COLORS["textSecondary"]),
            show=boolean(True),
        ),
        "referenceLabelDetail": _props(
            fontFamily=literal(FONT_REGULAR),
            fontSize=decimal(11),
            fontColor=solid_color(BRAND_COLORS["textSecondary"]),
            show=boolean(True),
        ),
        "referenceLabelsBackground": _hidden(),
        "cardBackground": _props(color=solid_color(BRAND_COLORS["background"]), show=boolean(True)),
        "padding": _props(top=decimal(6), bottom=decimal(6), left=decimal(10), right=decimal(10)),
    }


def _retail_kpi(item: DashboardItem) -> Objects:
    goal_text = item.props.get("goalText") or "vs prev"
    lowered = goal_text.lower()
    show_distance = "vs" in lowered or "prev" in lowered or lowered == "py"
    return {
        "goals": _props(
            goalText=text(goal_text),
            fontSize=decimal(10),
            goalFontFamily=literal(FONT_REGULAR),
            goalFontColor=solid_color(BRAND_COLORS["textSecondary"]),
            showGoal=boolean(True),
            direction=literal("'High is good'"),
            distanceLabel=literal("'Percent'"),
            distanceFontColor=solid_color(BRAND_COLORS["success"]),
            distanceFontFamily=literal(FONT_SEMIBOLD),
            showDistance=boolean(show_distance),
            titleFontSize=decimal(10),
            titleBold=boolean(False),
            titleItalic=boolean(False),
            titleUnderline=boolean(False),
            underline=boolean(False),
            italic=boolean(False),
            bold=boolean(False),
        ),
        "indicator": _props(
            horizontalAlignment=literal("'left'"),
            verticalAlignment=literal("'middle'"),
            fontFamily=literal(FONT_BOLD),
            fontSize=decimal(18),
            indicatorDisplayUnits=decimal(1),
            showIcon=boolean(False),
            bold=boolean(False),
            italic=boolean(False),
            underline=boolean(False),
        ),
        "trendline": _props(transparency=decimal(20), show=boolean(False)),
        "status": _props(
            direction=literal("'Negative'"),
            goodColor=solid_color(BRAND_COLORS["textPrimary"]),
            neutralColor=solid_color(BRAND_COLORS["textPrimary"]),
            badColor=solid_color(BRAND_COLORS["textPrimary"]),
        ),
        "lastDate": _hidden(),
    }


def _retail_slicer() -> Objects:
    return {
        "data": _props(mode=literal("'Dropdown'")),
        "header": _hidden(),
        "selection": _props(strictSingleSelect=boolean(True)),
        "items": _props(background=solid_color(BRAND_COLORS["background"])),
    }


def _bar_axes(legend_shown: bool, label_position: str) -> Objects:
    return {
        "categoryAxis": _props(
            show=boolean(True),
            showAxisTitle=boolean(False),
            innerPadding=literal("62.5L"),
            preferredCategoryWidth=decimal(20),
        ),
        "valueAxis": _props(
            show=boolean(False),
            showAxisTitle=boolean(False),
            end=literal("null"),
            invertAxis=boolean(False),
            gridlineShow=boolean(True),
        ),
        "legend": _props(
            show=boolean(legend_shown),
            showGradientLegend=boolean(False),
            position=literal("'Top'"),
        ),
        "labels": _props(
            show=boolean(True),
            labelPosition=literal(f"'{label_position}'"),
            enableTitleDataLabel=boolean(False),
            fontSize=decimal(8),
        ),
    }


def _retail_bar() -> Objects:
    objects = _bar_axes(legend_shown=False, label_position="InsideEnd")
    objects["dataPoint"] = [
        {"properties": {"fill": solid_color(BRAND_COLORS["primary"]), "fillTransparency": decimal(0)}},
        {"properties": {"fill": solid_color(BRAND_COLORS["primary"])}},
    ]
    return objects


def _retail_stacked() -> Objects:
    objects = _bar_axes(legend_shown=True, label_position="InsideCenter")
    objects["dataPoint"] = _series_points(fillTransparency=decimal(0))
    return objects


def _retail_line(item: DashboardItem, theme_colors: Optional[Sequence[str]]) -> Objects:
    return {
        "categoryAxis": _props(
            show=boolean(True), showAxisTitle=boolean(False), innerPadding=literal("62.5L"),
        ),
        "valueAxis": _props(
            show=boolean(True),
            showAxisTitle=boolean(False),
            invertAxis=boolean(False),
            gridlineShow=boolean(False),
            gridlineStyle=literal("'solid'"),
        ),
        "legend": _hidden(),
        "labels": _props(
            show=boolean(False),
            labelPosition=literal("'Under'"),
            enableTitleDataLabel=boolean(False),
            fontSize=decimal(8),
        ),
        "lineStyles": _props(
            lineStyle=literal("'solid'"),
            lineChartType=literal("'smooth'"),
            strokeWidth=integer(1),
            showMarker=boolean(True),
            markerSize=decimal(4),
        ),
        "dataPoint": _props(fill=solid_color(primary_color(theme_colors))),
        "title": _title(item, "#252423"),
    }


def _retail_pie(item: DashboardItem) -> Objects:
    return {
        "legend": _props(show=boolean(True), position=literal("'Top'")),
        "dataLabels": _hidden(),
        "title": _title(item, BRAND_COLORS["textPrimary"]),
        "dataPoint": _series_points(),
    }


def retail_objects(item: DashboardItem, pbi_type: str, theme_colors: Optional[Sequence[str]]) -> Objects:
    if pbi_type == "cardVisual" and item.type == "card":
        return _retail_card()
    if pbi_type == "kpi":
        return _retail_kpi(item)
    if pbi_type == "slicer":
        return _retail_slicer()
    if item.type in ("bar", "column"):
        return _retail_bar()
    if item.type in ("line", "area", "stackedArea"):
        return _retail_line(item, theme_colors)
    if item.type in ("pie", "donut"):
        return _retail_pie(item)
    if item.type in ("stackedBar", "stackedColumn"):
        return _retail_stacked()
    return default_objects(item, pbi_type)


def default_objects(item: DashboardItem, pbi_type: str) -> Objects:
    objects: Objects = {"title": _title(item, "#252423")}
    if item.type in AXIS_TYPES:
        objects["categoryAxis"] = _props(fontSize=integer(9), fontColor=solid_color("#605E5C"))
        objects["valueAxis"] = _props(
            fontSize=integer(9),
            fontColor=solid_color("#605E5C"),
            gridlineShow=boolean(True),
            gridlineColor=solid_color("#F3F2F1"),
        )
    if item.type in LEGEND_TYPES:
        objects["legend"] = _props(show=boolean(True), fontSize=integer(9), fontColor=solid_color("#605E5C"))
    if pbi_type == "slicer":
        objects["slicer"] = _props(slicerType=literal("'Dropdown'"))
    if item.type in ("pie", "donut"):
        objects["dataLabels"] = _hidden()
    return objects


def visual_objects(
    item: DashboardItem,
    pbi_type: str,
    scenario: Scenario,
    theme_colors: Optional[Sequence[str]] = None,
) -> Objects:
    """``visual.objects`` for one item."""
    if pbi_type == "textbox":
        return textbox_objects(item)
    if scenario is Scenario.RETAIL:
        return retail_objects(item, pbi_type, theme_colors)
    return default_objects(item, pbi_type)


def container_objects(
    item: DashboardItem,
    pbi_type: str,
    scenario: Scenario,
    theme_colors: Optional[Sequence[str]] = None,
) -> Optional[Objects]:
    """``visual.visualContainerObjects``; only Retail visuals carry them."""
    if scenario is not Scenario.RETAIL:
        return None

    if pbi_type == "cardVisual" and item.type == "card":
        color_index = item.props.get("colorIndex") or 0
        if theme_colors and isinstance(color_index, int) and 0 <= color_index < len(theme_colors):
            accent = theme_colors[color_index]
        else:
            accent = primary_color(theme_colors)
        return {
            "title": _hidden(),
            # left border only, like the designer's accent bar
            "border": _props(
                show=boolean(True),
                color=solid_color(accent),
                radius=decimal(2),
                width=decimal(4),
                topWidth=decimal(0),
                rightWidth=decimal(0),
                bottomWidth=decimal(0),
                leftWidth=decimal(4),
            ),
            "background": _props(
                show=boolean(True),
                color=solid_color(BRAND_COLORS["background"]),
                transparency=decimal(0),
            ),
            "visualHeader": _hidden(),
        }
    if pbi_type == "kpi":
        return {
            "title": _props(
                show=boolean(True),
                text=text(item.title or ""),
                fontFamily=literal(FONT_SEMIBOLD),
                fontSize=decimal(12),
                fontColor=solid_color(BRAND_COLORS["title"]),
                alignment=literal("'left'"),
                background={"solid": {"color": literal("'None'")}},
            ),
            "padding": _props(top=decimal(5), bottom=decimal(5), left=decimal(5)),
            "background": _hidden(),
        }
    if pbi_type == "slicer":
        return {
            "padding": _props(top=decimal(0), bottom=decimal(0), right=decimal(0), left=decimal(0)),
            "background": _props(color=solid_color(BRAND_COLORS["background"])),
        }
    if item.type in CHROMELESS_CHARTS:
        return {
            "visualHeader": _hidden(),
            "visualTooltip": _props(show=boolean(True)),
            "border": _hidden(),
            "subTitle": _hidden(),
            "title": _hidden(),
            "background": _hidden(),
        }
    if item.type in ("funnel", "scatter", "matrix"):
        return {"title": _hidden(), "background": _hidden()}
    return None
