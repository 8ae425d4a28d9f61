"""Package writers: Legacy Template (.pbit) and Project Package (.pbip.zip)."""

from .legacy_writer import LegacyTemplateWriter, data_model_schema
from .pbip_writer import PBIPWriter, pbip_visual_type, visual_json
from .m_literals import format_m_value, to_m_type
from .tmdl_writer import table_tmdl_lines, model_tmdl_lines, quote_name
from .query_state import QueryState, QueryStateBuilder
from .dataset_tables import build_scenario_tables, date_table_rows

__all__ = [
    "LegacyTemplateWriter",
    "data_model_schema",
    "PBIPWriter",
    "pbip_visual_type",
    "visual_json",
    "format_m_value",
    "to_m_type",
    "table_tmdl_lines",
    "model_tmdl_lines",
    "quote_name",
    "QueryState",
    "QueryStateBuilder",
    "build_scenario_tables",
    "date_table_rows",
]
