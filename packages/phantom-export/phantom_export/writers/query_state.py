"""Field-well bindings (``queryState``) for PBIR visuals.

Every visual family binds its props to named roles (Category, Y, Values,
...). Dimensions go through the validating field mapper; measures are only
projected when the generator actually produced them, so a visual never
points at a field the model does not contain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..dax.formatting import measure_name
from ..models.dashboard import DashboardItem, Scenario
from ..models.schema import ColumnRef, DAXMeasure
from ..semantic.field_mapper import capitalize_first, resolve_field
from ..semantic.fields import default_category, default_table_columns, default_time
from ..semantic.registry import get_fact_table

logger = logging.getLogger(__name__)

BAR_FAMILY = ("bar", "column", "stackedBar", "stackedColumn")
LINE_FAMILY = ("line", "area", "stackedArea")
LEGEND_FAMILY = ("pie", "donut", "treemap")
TABLE_FAMILY = ("table", "entityTable", "controversyTable", "controversyBottomPanel")
SLICER_FAMILY = ("slicer", "dateRangePicker", "justificationSearch")
MULTI_CARD_FAMILY = ("multiRowCard", "portfolioCard", "portfolioKPICards")
TEXT_FAMILY = ("portfolioHeader", "portfolioHeaderBar")

DATE_TABLE = "DateTable"


def query_projection(
    table: str,
    field: str,
    is_measure: bool,
    active: bool = False,
    display_name: Optional[str] = None,
) -> dict[str, Any]:
    kind = "Measure" if is_measure else "Column"
    projection: dict[str, Any] = {
        "field": {
            kind: {
                "Expression": {"SourceRef": {"Entity": table}},
                "Property": field,
            },
        },
        "queryRef": f"{table}.{field}",
        "nativeQueryRef": field,
    }
    if active:
        projection["active"] = True
    if display_name:
        projection["displayName"] = display_name
    return projection


def sort_definition(table: str, field: str, direction: str = "Descending") -> dict[str, Any]:
    return {
        "sort": [{
            "field": {
                "Aggregation": {
                    "Expression": {
                        "Column": {
                            "Expression": {"SourceRef": {"Entity": table}},
                            "Property": field,
                        },
                    },
                    "Function": 0,
                },
            },
            "direction": direction,
        }],
        "isDefaultSort": True,
    }


DEFAULT_SORT = {"isDefaultSort": True}


@dataclass
class QueryState:
    """Role bindings plus an optional sort definition for one visual."""

    roles: dict[str, dict[str, Any]]
    sort: Optional[dict[str, Any]] = None

    def to_query(self) -> dict[str, Any]:
        query: dict[str, Any] = {"queryState": self.roles}
        if self.sort:
            query["sortDefinition"] = self.sort
        return query


class QueryStateBuilder:
    """Builds ``queryState`` for visuals of one export call."""

    def __init__(self, scenario: Scenario | str, measures: Iterable[DAXMeasure]):
        self.scenario = Scenario.coerce(scenario)
        self.fact_table = get_fact_table(self.scenario)
        self.measure_names = {m.name for m in measures}
        self.default_category = default_category(self.scenario)
        self.default_time = default_time(self.scenario)

    # -- resolution -----------------------------------------------------------

    def column(self, field: Optional[str], item_id: str = "") -> Optional[ColumnRef]:
        if not field:
            return None
        ref = resolve_field(self.scenario, field)
        if ref is None:
            logger.warning(
                "Visual %s: field %r is not a column of the %s model, binding dropped",
                item_id, field, self.scenario.value,
            )
        return ref

    def named_measure(self, name: Optional[str]) -> Optional[str]:
        if name and name in self.measure_names:
            return name
        return None

    def measure(self, metric: Optional[str], operation: str, item_id: str = "") -> Optional[str]:
        if not metric:
            return None
        name = self.named_measure(measure_name(metric, operation))
        if name is None:
            logger.warning("Visual %s: no generated measure for %r (%s)", item_id, metric, operation)
        return name

    # -- projections ----------------------------------------------------------

    def _column_role(self, ref: ColumnRef, active: bool = False) -> dict[str, Any]:
        return {"projections": [query_projection(ref.table, ref.column, False, active=active)]}

    def _measure_proj(self, name: str, active: bool = False, display_name: Optional[str] = None) -> dict:
        return query_projection(self.fact_table, name, True, active=active, display_name=display_name)

    def _measure_role(self, name: str, **kwargs: Any) -> dict[str, Any]:
        return {"projections": [self._measure_proj(name, **kwargs)]}

    def retail_kpi_extras(self, metric: Optional[str], operation: str) -> list[dict[str, Any]]:
        """PY / Plan / ΔPY% / ΔPL% measures that exist for ``metric``."""
        if not metric:
            return []
        label = capitalize_first(metric)
        candidates = [
            measure_name(f"{metric}PY", operation),
            measure_name(f"{metric}PL", operation),
            f"{label} ΔPY%",
            f"{label} ΔPL%",
        ]
        return [self._measure_proj(name) for name in candidates if self.named_measure(name)]

    # -- entry point ----------------------------------------------------------

    def build(self, item: DashboardItem) -> QueryState:
        props = item.props
        op = props.operation
        vtype = item.type
        retail = self.scenario is Scenario.RETAIL
        roles: dict[str, dict[str, Any]] = {}
        sort = None

        if vtype == "card" and retail:
            metric = self.measure(props.metric, op, item.id)
            if metric:
                projections = [self._measure_proj(metric)]
                label = capitalize_first(props.metric)
                # variance percentages become the card's reference labels
                for name in (f"{label} ΔPY%", f"{label} ΔPL%"):
                    if self.named_measure(name):
                        projections.append(self._measure_proj(name))
                roles["Values"] = {"projections": projections}

        elif vtype in BAR_FAMILY:
            dim = self.column(props.dimension or self.default_category, item.id)
            metric = self.measure(props.metric, op, item.id)
            if dim:
                roles["Category"] = self._column_role(dim, active=True)
            if metric:
                roles["Y"] = self._measure_role(metric, display_name=metric)
                sort = dict(DEFAULT_SORT)

        elif vtype in LINE_FAMILY:
            dim = self.column(props.dimension or self.default_time, item.id)
            metric = self.measure(props.metric, op, item.id)
            if dim:
                roles["Category"] = self._column_role(dim, active=True)
            if metric:
                roles["Y"] = self._measure_role(metric)

        elif vtype in LEGEND_FAMILY:
            dim = self.column(props.dimension or self.default_category, item.id)
            metric = self.measure(props.metric, op, item.id)
            if dim:
                roles["Category"] = self._column_role(dim, active=True)
            if metric:
                roles["Y"] = self._measure_role(metric)

        elif vtype == "funnel":
            dim = self.column(props.dimension or self.default_category, item.id)
            metric = self.measure(props.metric, op, item.id)
            if dim:
                roles["Category"] = self._column_role(dim, active=True)
            if metric:
                roles["Y"] = self._measure_role(metric)
                sort = sort_definition(self.fact_table, metric.replace("Total ", ""))

        elif vtype in ("waterfall", "controversyBar"):
            dim = self.column(props.dimension or self.default_category, item.id)
            metric = self.measure(props.metric, op, item.id)
            if dim:
                roles["Category"] = self._column_role(dim)
            if metric:
                roles["Y"] = self._measure_role(metric)

        elif vtype in ("card", "gauge"):
            metric = self.measure(props.metric, op, item.id)
            if metric:
                projections = [self._measure_proj(metric)]
                if retail:
                    projections.extend(self.retail_kpi_extras(props.metric, op))
                roles["Values"] = {"projections": projections}

        elif vtype == "kpi":
            metric = self.measure(props.metric, op, item.id)
            if metric:
                roles["Indicator"] = self._measure_role(metric)
                goal = self.named_measure(measure_name(f"{props.metric}PY", op))
                if goal:
                    roles["Goal"] = self._measure_role(goal)
                roles["TrendLine"] = {"projections": [query_projection(DATE_TABLE, "Month", False)]}

        elif vtype in ("scatter", "regressionScatter"):
            x = self.measure(props.get("xMetric"), op, item.id)
            y = self.measure(props.get("yMetric"), op, item.id)
            size = self.measure(props.get("sizeMetric"), op, item.id)
            dim = self.column(props.dimension, item.id)
            if dim:
                roles["Category"] = self._column_role(dim, active=True)
                roles["Series"] = self._column_role(dim)
            if size:
                roles["Size"] = self._measure_role(size)
            if x:
                roles["X"] = self._measure_role(x, active=True)
            if y:
                roles["Y"] = self._measure_role(y)

        elif vtype == "combo":
            dim = self.column(props.dimension or self.default_time, item.id)
            bars = self.measure(props.get("barMetric") or props.metric, op, item.id)
            line = self.measure(props.get("lineMetric"), op, item.id)
            if dim:
                roles["Category"] = self._column_role(dim, active=True)
            if bars:
                roles["Y"] = self._measure_role(bars, display_name="Bars")
            if line:
                roles["Y2"] = self._measure_role(line, display_name="Line")
            sort = dict(DEFAULT_SORT)

        elif vtype in TABLE_FAMILY:
            columns = list(props.get("columns") or ()) or default_table_columns(self.scenario)
            projections = [p for p in (self._table_column(col, op, item.id) for col in columns) if p]
            if projections or vtype == "table":
                roles["Values"] = {"projections": projections}

        elif vtype == "matrix":
            row = self.column(props.get("rows"), item.id)
            col = self.column(props.get("columns"), item.id)
            values = self.measure(props.get("values"), op, item.id)
            if row:
                roles["Rows"] = self._column_role(row, active=True)
            if col:
                roles["Columns"] = self._column_role(col, active=True)
            if values:
                roles["Values"] = self._measure_role(values)

        elif vtype in SLICER_FAMILY:
            field = props.dimension or ("Date" if vtype == "dateRangePicker" else None)
            dim = self.column(field, item.id)
            if dim:
                roles["Values"] = self._column_role(dim, active=True)

        elif vtype in MULTI_CARD_FAMILY:
            dim = self.column(props.dimension or self.default_category, item.id)
            metric = self.measure(props.metric, op, item.id)
            projections = []
            if dim:
                projections.append(query_projection(dim.table, dim.column, False))
            if metric:
                projections.append(self._measure_proj(metric))
            if retail:
                projections.extend(self.retail_kpi_extras(props.metric, op))
            if projections:
                roles["Values"] = {"projections": projections}

        elif vtype not in TEXT_FAMILY:
            logger.debug("Visual %s: no query mapping for type %r", item.id, vtype)

        return QueryState(roles, sort)

    def _table_column(self, column: str, operation: str, item_id: str) -> Optional[dict[str, Any]]:
        """Dimension first, then ``<op> <column>`` measure, then an exact measure name."""
        ref = resolve_field(self.scenario, column)
        if ref is not None:
            return query_projection(ref.table, ref.column, False)
        name = self.named_measure(measure_name(column, operation)) or self.named_measure(column)
        if name:
            return self._measure_proj(name)
        logger.warning("Visual %s: table column %r matches no field or measure", item_id, column)
        return None
