"""Semantic layer: scenario fields, star schemas and field mapping."""

from .fields import SemanticRole, SemanticField, SCENARIO_FIELDS, default_category, default_time, default_table_columns
from .registry import get_schema, get_fact_table, SCHEMAS, FACT_TABLES
from .field_mapper import map_field, resolve_field, capitalize_first

__all__ = [
    "SemanticRole",
    "SemanticField",
    "SCENARIO_FIELDS",
    "default_category",
    "default_time",
    "default_table_columns",
    "get_schema",
    "get_fact_table",
    "SCHEMAS",
    "FACT_TABLES",
    "map_field",
    "resolve_field",
    "capitalize_first",
]
