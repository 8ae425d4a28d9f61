"""Tabular model types: tables, columns, relationships, measures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

DataType = Literal["string", "int64", "double", "dateTime", "boolean"]
SummarizeBy = Literal["none", "sum", "count", "average", "min", "max"]
CrossFilter = Literal["oneDirection", "bothDirections"]


@dataclass(frozen=True)
class PBIColumn:
    name: str
    data_type: DataType
    summarize_by: SummarizeBy = "none"
    is_hidden: bool = False
    source_column: Optional[str] = None

    @property
    def source(self) -> str:
        return self.source_column or self.name


@dataclass(frozen=True)
class PBITable:
    name: str
    columns: tuple[PBIColumn, ...]
    description: str = ""
    is_hidden: bool = False

    def column(self, name: str) -> Optional[PBIColumn]:
        """Case-insensitive column lookup."""
        wanted = name.lower()
        for col in self.columns:
            if col.name.lower() == wanted:
                return col
        return None

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]


@dataclass(frozen=True)
class PBIRelationship:
    name: str
    from_table: str
    from_column: str
    to_table: str
    to_column: str
    cross_filtering_behavior: CrossFilter = "oneDirection"
    is_active: bool = True
    from_cardinality: Literal["many", "one"] = "many"
    to_cardinality: Literal["many", "one"] = "one"


@dataclass(frozen=True)
class PBISchema:
    """A star schema: tables in declaration order plus relationships."""

    tables: tuple[PBITable, ...]
    relationships: tuple[PBIRelationship, ...]
    description: str = ""

    def table(self, name: str) -> Optional[PBITable]:
        for tbl in self.tables:
            if tbl.name == name:
                return tbl
        return None

    def has_column(self, table: str, column: str) -> bool:
        tbl = self.table(table)
        return tbl is not None and tbl.column(column) is not None

    @property
    def table_names(self) -> list[str]:
        return [tbl.name for tbl in self.tables]


@dataclass
class DAXMeasure:
    name: str
    expression: str
    display_folder: str = ""
    format_string: str = ""
    description: str = ""

    @property
    def is_multiline(self) -> bool:
        return "\n" in self.expression


@dataclass(frozen=True)
class MetricBinding:
    """A unique (metric, aggregation) pair bound by one or more visuals."""

    metric: str
    operation: str
    table: str
    column: str

    @property
    def key(self) -> str:
        return f"{self.metric}_{self.operation}"


@dataclass(frozen=True)
class ColumnRef:
    table: str
    column: str

    @property
    def dax(self) -> str:
        return f"{self.table}[{self.column}]"

    @property
    def query_ref(self) -> str:
        return f"{self.table}.{self.column}"


