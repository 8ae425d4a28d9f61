"""Power Query (M) literal encoding for embedded table rows."""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

M_TYPES = {
    "string": "Text.Type",
    "int64": "Int64.Type",
    "double": "Number.Type",
    "dateTime": "DateTime.Type",
    "boolean": "Logical.Type",
}


def to_m_type(data_type: str) -> str:
    return M_TYPES.get(data_type, "Text.Type")


def parse_datetime(value: Any) -> Optional[datetime]:
    """Coerce a date, datetime or ISO string to a naive UTC datetime.

    Returns ``None`` for values that cannot be read as a date.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        # fromisoformat() only takes a trailing Z from 3.11 on
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


M_ESCAPES = {"#": "#(#)", "\r": "#(cr)", "\n": "#(lf)", "\t": "#(tab)", '"': '""'}


def quote_string(value: Any) -> str:
    """Double-quoted M text literal.

    ``#`` and line breaks are written as ``#(...)`` escapes, so each row of
    a TMDL partition stays on one line.
    """
    return '"' + "".join(M_ESCAPES.get(ch, ch) for ch in str(value)) + '"'


def format_m_value(value: Any, data_type: str) -> str:
    """Render one cell as an M literal for a column of ``data_type``."""
    if value is None:
        return "null"
    if data_type == "string":
        return quote_string(value)
    if data_type == "dateTime":
        moment = parse_datetime(value)
        if moment is None:
            logger.warning("Unparseable date literal %r, emitting null", value)
            return "null"
        return (
            f"#datetime({moment.year}, {moment.month}, {moment.day}, "
            f"{moment.hour}, {moment.minute}, {moment.second})"
        )
    if data_type == "boolean":
        return "true" if value else "false"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        if not math.isfinite(value):
            return "null"
        if value.is_integer() and data_type == "int64":
            return str(int(value))
        return repr(value)
    if isinstance(value, int):
        return str(value)
    # numeric column holding something else, e.g. a numeric string
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Non-numeric value %r in %s column, emitting null", value, data_type)
        return "null"
    return format_m_value(number, data_type)
