"""TMDL text for the semantic model definition.

Table documents are produced as line generators so large partitions can be
streamed into the archive without building the whole text first.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Iterator, Mapping

from ..dax.formatting import column_format_string
from ..ids import IdSource
from ..models.schema import DAXMeasure, PBISchema, PBITable
from .m_literals import format_m_value, to_m_type

_BARE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DATABASE_TMDL = "database\n\tcompatibilityLevel: 1600\n"

CULTURE_TMDL = (
    "cultureInfo en-US\n"
    "\n"
    "\tlinguisticMetadata =\n"
    "\t\t\t{\n"
    '\t\t\t  "Version": "1.0.0",\n'
    '\t\t\t  "Language": "en-US"\n'
    "\t\t\t}\n"
    "\t\tcontentType: json\n"
)


def quote_name(name: str) -> str:
    """TMDL object name, single-quoted when it is not a bare identifier."""
    if _BARE_NAME.match(name):
        return name
    return "'" + name.replace("'", "''") + "'"


def _measure_lines(measure: DAXMeasure, lineage_tag: str) -> Iterator[str]:
    expression = measure.expression.strip()
    if "\n" in expression:
        # fenced so DAX line comments survive
        yield f"\tmeasure {quote_name(measure.name)} = ```"
        for line in expression.splitlines():
            yield f"\t\t\t{line}" if line.strip() else ""
        yield "\t\t\t```"
    else:
        yield f"\tmeasure {quote_name(measure.name)} = {expression}"
    if measure.format_string:
        yield f"\t\tformatString: {measure.format_string}"
    if measure.display_folder:
        yield f"\t\tdisplayFolder: {measure.display_folder}"
    yield f"\t\tlineageTag: {lineage_tag}"


def table_tmdl_lines(
    table: PBITable,
    rows: Iterable[Mapping[str, Any]],
    id_source: IdSource,
    measures: Iterable[DAXMeasure] = (),
) -> Iterator[str]:
    """Lines (each ending in a newline) of one ``tables/<name>.tmdl`` file."""
    name = quote_name(table.name)
    yield f"table {name}\n"
    yield f"\tlineageTag: {id_source.next()}\n"

    for measure in measures:
        yield "\n"
        for line in _measure_lines(measure, id_source.next()):
            yield line + "\n"

    for column in table.columns:
        yield "\n"
        yield f"\tcolumn {quote_name(column.name)}\n"
        yield f"\t\tdataType: {column.data_type}\n"
        format_string = column_format_string(column.data_type, column.name)
        if format_string:
            yield f"\t\tformatString: {format_string}\n"
        if column.is_hidden:
            yield "\t\tisHidden\n"
        yield f"\t\tlineageTag: {id_source.next()}\n"
        yield f"\t\tsummarizeBy: {column.summarize_by or 'none'}\n"
        yield f"\t\tsourceColumn: {column.source}\n"

    type_fields = ", ".join(f"{quote_name(col.name)} = {to_m_type(col.data_type)}" for col in table.columns)
    yield "\n"
    yield f"\tpartition {name} = m\n"
    yield "\t\tmode: import\n"
    yield "\t\tsource =\n"
    yield "\t\t\tlet\n"
    yield "\t\t\t    Source = #table(\n"
    yield f"\t\t\t        type table [{type_fields}],\n"
    yield "\t\t\t        {\n"
    previous = None
    for row in rows:
        if previous is not None:
            yield previous + ",\n"
        values = ", ".join(format_m_value(row.get(col.name), col.data_type) for col in table.columns)
        previous = f"\t\t\t\t{{{values}}}"
    if previous is not None:
        yield previous + "\n"
    yield "\t\t\t        }\n"
    yield "\t\t\t    )\n"
    yield "\t\t\tin\n"
    yield "\t\t\t    Source\n"


def model_tmdl_lines(schema: PBISchema, id_source: IdSource) -> Iterator[str]:
    """Lines of ``definition/model.tmdl``: model options, table refs, relationships."""
    yield "model Model\n"
    yield "\tculture: en-US\n"
    yield "\tdefaultPowerBIDataSourceVersion: powerBI_V3\n"
    yield "\tsourceQueryCulture: en-AU\n"
    yield "\tdataAccessOptions\n"
    yield "\t\tlegacyRedirects\n"
    yield "\t\treturnErrorValuesAsNull\n"
    yield "\n"
    yield "annotation __PBI_TimeIntelligenceEnabled = 1\n"
    yield "\n"
    yield 'annotation PBI_ProTooling = ["DevMode"]\n'
    yield "\n"
    for table in schema.tables:
        yield f"ref table {quote_name(table.name)}\n"
    yield "\n"
    yield "ref cultureInfo en-US\n"

    for rel in schema.relationships:
        yield "\n"
        yield f"relationship {id_source.next()}\n"
        yield f"\tfromColumn: {quote_name(rel.from_table)}.{quote_name(rel.from_column)}\n"
        yield f"\ttoColumn: {quote_name(rel.to_table)}.{quote_name(rel.to_column)}\n"
        yield f"\tcrossFilteringBehavior: {rel.cross_filtering_behavior}\n"
        yield f"\tfromCardinality: {rel.from_cardinality}\n"
        yield f"\ttoCardinality: {rel.to_cardinality}\n"
        yield f"\tisActive: {'true' if rel.is_active else 'false'}\n"
