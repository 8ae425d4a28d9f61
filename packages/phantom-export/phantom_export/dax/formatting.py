"""Naming and format heuristics for generated measures and columns.

All string-matching heuristics live here so there is one place to audit
and extend them.
"""

from __future__ import annotations

import math
import re
from typing import Callable, Optional

from ..semantic.field_mapper import capitalize_first

PERCENT_KEYWORDS = ("rate", "percentage")
CURRENCY_KEYWORDS = ("revenue", "profit", "cost", "salary", "mrr", "ltv")
# Column formats cover a wider set than measure formats
COLUMN_CURRENCY_KEYWORDS = CURRENCY_KEYWORDS + ("amount", "price", "marketvalue")

PERCENT_FORMAT = "0.0%"
CURRENCY_FORMAT = "$#,##0"
NUMBER_FORMAT = "#,##0"
COLUMN_CURRENCY_FORMAT = "$#,0.00;($#,0.00);$#,0.00"

OPERATION_LABELS = {
    "sum": "Total",
    "avg": "Avg",
    "average": "Avg",
    "count": "Count of",
    "min": "Min",
    "max": "Max",
}

AGGREGATIONS: dict[str, Callable[[str, str], str]] = {
    "sum": lambda table, column: f"SUM({table}[{column}])",
    "avg": lambda table, column: f"AVERAGE({table}[{column}])",
    "average": lambda table, column: f"AVERAGE({table}[{column}])",
    "count": lambda table, _column: f"COUNTROWS({table})",
    "min": lambda table, column: f"MIN({table}[{column}])",
    "max": lambda table, column: f"MAX({table}[{column}])",
    "distinctcount": lambda table, column: f"DISTINCTCOUNT({table}[{column}])",
}

_PLAN_SUFFIX = re.compile(r"PL$")
_PRIOR_SUFFIX = re.compile(r"PY$")


def operation_label(operation: str) -> str:
    """``sum`` -> ``Total``, ``avg`` -> ``Avg``; unknown verbs are capitalised."""
    return OPERATION_LABELS.get(operation.lower(), capitalize_first(operation))


def metric_label(metric: str) -> str:
    """Display label: ``revenuePL`` -> ``Revenue Plan``, ``revenuePY`` -> ``Revenue PY``."""
    label = _PLAN_SUFFIX.sub(" Plan", metric)
    label = _PRIOR_SUFFIX.sub(" PY", label)
    return capitalize_first(label)


def base_metric(metric: str) -> str:
    """Strip a trailing plan/prior-year marker."""
    return _PRIOR_SUFFIX.sub("", _PLAN_SUFFIX.sub("", metric))


def measure_name(metric: str, operation: str = "sum") -> str:
    """Name of the base measure generated for a metric binding."""
    name = f"{operation_label(operation)} {metric_label(metric)}"
    return re.sub(r"\s+", " ", name).strip()


def aggregate_expression(operation: str, table: str, column: str) -> str:
    """DAX aggregation for a binding; unknown verbs fall back to ``SUM``."""
    pattern = AGGREGATIONS.get(operation.lower(), AGGREGATIONS["sum"])
    return pattern(table, column)


def measure_format_string(metric: str) -> str:
    lower = metric.lower()
    if any(keyword in lower for keyword in PERCENT_KEYWORDS):
        return PERCENT_FORMAT
    if any(keyword in lower for keyword in CURRENCY_KEYWORDS):
        return CURRENCY_FORMAT
    return NUMBER_FORMAT


def column_format_string(data_type: str, column: str) -> Optional[str]:
    """Display format for a model column, or ``None`` for text columns."""
    if data_type == "dateTime":
        return "General Date"
    if data_type == "int64":
        return "0"
    if data_type == "double":
        lower = column.lower()
        if any(keyword in lower for keyword in COLUMN_CURRENCY_KEYWORDS):
            return COLUMN_CURRENCY_FORMAT
        return "0.00"
    return None


def variance_ratio(actual: Optional[float], comparison: Optional[float]) -> Optional[float]:
    """Python twin of the generated ``ΔPY%``/``ΔPL%`` DAX.

    Returns ``None`` (the DAX ``BLANK()``) when the comparison is zero or
    missing, so the result is never infinite or NaN.
    """
    if actual is None or comparison is None or comparison == 0:
        return None
    result = (actual - comparison) / abs(comparison)
    if not math.isfinite(result):
        return None
    return result
