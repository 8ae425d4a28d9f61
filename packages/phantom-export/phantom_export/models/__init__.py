"""Export engine data models."""

from .dashboard import (
    Scenario,
    GridLayout,
    VisualProps,
    CategoryChartProps,
    CardProps,
    ComboProps,
    ScatterProps,
    TableProps,
    MatrixProps,
    SlicerProps,
    TextProps,
    DashboardItem,
    parse_props,
    parse_items,
)
from .schema import (
    PBIColumn,
    PBITable,
    PBIRelationship,
    PBISchema,
    DAXMeasure,
    MetricBinding,
    ColumnRef,
)
from .dataset import ExportData
from .result import ExportResult

__all__ = [
    "Scenario",
    "GridLayout",
    "VisualProps",
    "CategoryChartProps",
    "CardProps",
    "ComboProps",
    "ScatterProps",
    "TableProps",
    "MatrixProps",
    "SlicerProps",
    "TextProps",
    "DashboardItem",
    "parse_props",
    "parse_items",
    "PBIColumn",
    "PBITable",
    "PBIRelationship",
    "PBISchema",
    "DAXMeasure",
    "MetricBinding",
    "ColumnRef",
    "ExportData",
    "ExportResult",
]
