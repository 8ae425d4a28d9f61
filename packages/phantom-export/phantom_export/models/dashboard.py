"""Dashboard item models.

A dashboard is an ordered list of items, each placed on a 24-column grid and
carrying a props bag whose meaning depends on the visual type. The props bag
is parsed into one of the typed variants below; keys a variant does not know
about are kept in ``extras`` so nothing the designer stored is lost.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from ..exceptions import InvalidDashboardError

logger = logging.getLogger(__name__)


class Scenario(str, Enum):
    """Business domain selecting schema, field mappings and dataset."""

    RETAIL = "Retail"
    SAAS = "SaaS"
    HR = "HR"
    LOGISTICS = "Logistics"
    PORTFOLIO = "Portfolio"
    SOCIAL = "Social"
    FINANCE = "Finance"

    @classmethod
    def coerce(cls, value: "Scenario | str | None") -> "Scenario":
        """Return the matching member, falling back to Retail."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if value == member.value or value == member.name:
                return member
        logger.warning("Unknown scenario %r, falling back to %s", value, cls.RETAIL.value)
        return cls.RETAIL

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class GridLayout:
    """Position in grid units (24 columns, ~18 rows per canvas height)."""

    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h


def _prop(key: str, default: Any = None):
    """Dataclass field bound to a camelCase props key."""
    return field(default=default, metadata={"key": key})


# =============================================================================
# PROPS VARIANTS
# =============================================================================

@dataclass
class VisualProps:
    """Fields every visual may carry. Also the fallback for unknown types."""

    metric: Optional[str] = _prop("metric")
    operation: str = _prop("operation", "sum")
    show_variance: bool = _prop("showVariance", False)
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "VisualProps":
        raw = dict(raw or {})
        # "value" is an older alias for the bound metric
        if not raw.get("metric") and raw.get("value"):
            raw["metric"] = raw.pop("value")
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            key = f.metadata.get("key")
            if key and key in raw:
                kwargs[f.name] = raw.pop(key)
        props = cls(**kwargs, extras=raw)
        props.operation = str(props.operation or "sum").lower()
        props.show_variance = bool(props.show_variance)
        return props

    @property
    def dimension(self) -> Optional[str]:
        return None

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a camelCase props key on the typed fields or the extras."""
        for f in fields(self):
            if f.metadata.get("key") == key:
                return getattr(self, f.name)
        return self.extras.get(key, default)

    def with_variance(self) -> "VisualProps":
        """Copy of these props with ``show_variance`` switched on."""
        return replace(self, show_variance=True, extras=dict(self.extras))


@dataclass
class CategoryChartProps(VisualProps):
    dimension: Optional[str] = _prop("dimension")
    series: Optional[str] = _prop("series")
    top_n: Any = _prop("topN")


@dataclass
class CardProps(VisualProps):
    color_index: int = _prop("colorIndex", 0)
    goal_text: Optional[str] = _prop("goalText")


@dataclass
class ComboProps(VisualProps):
    dimension: Optional[str] = _prop("dimension")
    bar_metric: Optional[str] = _prop("barMetric")
    line_metric: Optional[str] = _prop("lineMetric")


@dataclass
class ScatterProps(VisualProps):
    dimension: Optional[str] = _prop("dimension")
    x_metric: Optional[str] = _prop("xMetric")
    y_metric: Optional[str] = _prop("yMetric")
    size_metric: Optional[str] = _prop("sizeMetric")


@dataclass
class TableProps(VisualProps):
    columns: tuple[str, ...] = _prop("columns", ())

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "TableProps":
        raw = dict(raw or {})
        if not raw.get("columns") and raw.get("fields"):
            raw["columns"] = raw.pop("fields")
        props = super().from_mapping(raw)
        cols = props.columns
        if isinstance(cols, str):
            cols = [cols]
        props.columns = tuple(str(c) for c in (cols or ()) if c)
        return props


@dataclass
class MatrixProps(VisualProps):
    rows: Optional[str] = _prop("rows")
    columns: Optional[str] = _prop("columns")
    values: Optional[str] = _prop("values")


@dataclass
class SlicerProps(VisualProps):
    dimension: Optional[str] = _prop("dimension")


@dataclass
class TextProps(VisualProps):
    title: Optional[str] = _prop("title")
    text: Optional[str] = _prop("text")


PROPS_BY_TYPE: dict[str, type[VisualProps]] = {
    **dict.fromkeys(
        [
            "bar", "column", "stackedBar", "stackedColumn", "line", "area",
            "stackedArea", "pie", "donut", "treemap", "funnel", "waterfall",
            "controversyBar", "multiRowCard", "portfolioCard", "portfolioKPICards",
        ],
        CategoryChartProps,
    ),
    **dict.fromkeys(["card", "gauge", "kpi"], CardProps),
    "combo": ComboProps,
    **dict.fromkeys(["scatter", "regressionScatter"], ScatterProps),
    **dict.fromkeys(
        ["table", "entityTable", "controversyTable", "controversyBottomPanel"], TableProps
    ),
    "matrix": MatrixProps,
    **dict.fromkeys(["slicer", "dateRangePicker", "justificationSearch"], SlicerProps),
    **dict.fromkeys(["portfolioHeader", "portfolioHeaderBar"], TextProps),
}


def parse_props(visual_type: str, raw: Mapping[str, Any] | None) -> VisualProps:
    """Parse a raw props bag into the variant registered for ``visual_type``."""
    return PROPS_BY_TYPE.get(visual_type, VisualProps).from_mapping(raw)


# =============================================================================
# DASHBOARD ITEM
# =============================================================================

@dataclass
class DashboardItem:
    id: str
    type: str
    title: str = ""
    layout: GridLayout = field(default_factory=lambda: GridLayout(0, 0, 4, 4))
    props: VisualProps = field(default_factory=VisualProps)

    def __post_init__(self):
        if isinstance(self.layout, Mapping):
            self.layout = _parse_layout(self.layout, self.id)
        if self.props is None or isinstance(self.props, Mapping):
            self.props = parse_props(self.type, self.props)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DashboardItem":
        """Build an item from the designer's JSON representation."""
        if not isinstance(data, Mapping):
            raise InvalidDashboardError(f"Expected an object, got {type(data).__name__}")
        item_id = data.get("id")
        visual_type = data.get("type")
        if not item_id:
            raise InvalidDashboardError("Dashboard item is missing 'id'")
        if not visual_type:
            raise InvalidDashboardError("Dashboard item is missing 'type'", str(item_id))
        return cls(
            id=str(item_id),
            type=str(visual_type),
            title=str(data.get("title") or ""),
            layout=_parse_layout(data.get("layout") or {}, str(item_id)),
            props=parse_props(str(visual_type), data.get("props")),
        )

    def with_props(self, props: VisualProps) -> "DashboardItem":
        return DashboardItem(id=self.id, type=self.type, title=self.title, layout=self.layout, props=props)


def _parse_layout(raw: Mapping[str, Any], item_id: str) -> GridLayout:
    values = {}
    for key, default in (("x", 0), ("y", 0), ("w", 4), ("h", 4)):
        value = raw.get(key, default)
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or (isinstance(value, float) and not math.isfinite(value))
            or value != int(value)
        ):
            raise InvalidDashboardError(f"Layout '{key}' must be an integer, got {value!r}", item_id)
        if value < 0:
            raise InvalidDashboardError(f"Layout '{key}' must be non-negative, got {value}", item_id)
        values[key] = int(value)
    return GridLayout(**values)


def parse_items(raw_items: Iterable[DashboardItem | Mapping[str, Any]]) -> list[DashboardItem]:
    """Normalise a mixed list of items/dicts, rejecting duplicate ids."""
    items: list[DashboardItem] = []
    seen: set[str] = set()
    for raw in raw_items:
        item = raw if isinstance(raw, DashboardItem) else DashboardItem.from_dict(raw)
        if item.id in seen:
            raise InvalidDashboardError("Duplicate dashboard item id", item.id)
        seen.add(item.id)
        items.append(item)
    return items
