"""DAX measure generation and naming/format heuristics."""

from .formatting import (
    measure_name,
    metric_label,
    operation_label,
    aggregate_expression,
    measure_format_string,
    column_format_string,
    variance_ratio,
)
from .measure_generator import (
    extract_bindings,
    generate_base_measures,
    generate_variance_measures,
    generate_waterfall_measures,
    generate_scenario_measures,
    generate_all_measures,
    SCENARIO_KPIS,
)

__all__ = [
    "measure_name",
    "metric_label",
    "operation_label",
    "aggregate_expression",
    "measure_format_string",
    "column_format_string",
    "variance_ratio",
    "extract_bindings",
    "generate_base_measures",
    "generate_variance_measures",
    "generate_waterfall_measures",
    "generate_scenario_measures",
    "generate_all_measures",
    "SCENARIO_KPIS",
]
