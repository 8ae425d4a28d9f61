"""Markdown companion guides for exported packages.

Renders the schema and generated measures through the Jinja2 templates in
``phantom_export/templates``: ``pbit_guide.md.j2`` for Legacy Templates and
``pbip_guide.md.j2`` for Project Packages.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

from jinja2 import Environment, FileSystemLoader

from ..dax.formatting import variance_ratio
from ..models.dashboard import Scenario
from ..models.schema import DAXMeasure, PBIColumn, PBISchema
from ..semantic.registry import get_fact_table
from ..templates import TEMPLATE_DIR

DEFAULT_FOLDER = "General"

# (actual, comparison) pairs shown in the variance worked example
VARIANCE_EXAMPLES = ((110.0, 100.0), (90.0, 120.0), (50.0, 0.0))


def column_notes(column: PBIColumn) -> str:
    """Hidden / summarize notes for the guide's column table."""
    notes = "Hidden, " if column.is_hidden else ""
    if column.summarize_by != "none":
        notes += f"Summarize: {column.summarize_by}"
    return notes


def group_by_folder(measures: Iterable[DAXMeasure]) -> dict[str, list[DAXMeasure]]:
    """Measures keyed by display folder, folders in first-seen order."""
    folders: dict[str, list[DAXMeasure]] = {}
    for measure in measures:
        folders.setdefault(measure.display_folder or DEFAULT_FOLDER, []).append(measure)
    return folders


class GuideRenderer:
    """Render the Markdown guide that ships beside each export."""

    def __init__(self, template_dir: Optional[Path] = None):
        template_dir = template_dir or TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["percent"] = self._percent
        self.env.filters["notes"] = column_notes

    def _percent(self, value: Optional[float]) -> str:
        """Format a ratio as a percentage, ``BLANK()`` for no result."""
        if value is None:
            return "BLANK()"
        return f"{value:+.1%}"

    def render_pbit(
        self,
        schema: PBISchema,
        measures: list[DAXMeasure],
        scenario: Scenario | str,
    ) -> str:
        """Render the Legacy Template guide.

        Args:
            schema: Star schema of the exported scenario
            measures: Generated measures, in generation order
            scenario: Scenario the template was exported for

        Returns:
            Markdown text
        """
        template = self.env.get_template("pbit_guide.md.j2")
        return template.render(**self._build_template_context(schema, measures, scenario))

    def render_pbip(
        self,
        schema: PBISchema,
        measures: list[DAXMeasure],
        scenario: Scenario | str,
    ) -> str:
        """Render the Project Package guide (tables, columns, measure names)."""
        template = self.env.get_template("pbip_guide.md.j2")
        return template.render(**self._build_template_context(schema, measures, scenario))

    def render_to_file(self, markdown: str, output_path: Path) -> Path:
        """Write rendered Markdown to ``output_path``.

        Args:
            markdown: Output of ``render_pbit`` or ``render_pbip``
            output_path: Destination file

        Returns:
            The output path
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(markdown, encoding="utf-8")
        return output_path

    def _build_template_context(
        self,
        schema: PBISchema,
        measures: list[DAXMeasure],
        scenario: Scenario | str,
    ) -> dict[str, Any]:
        scenario = Scenario.coerce(scenario)
        variance_examples = [
            {"actual": actual, "comparison": comparison, "ratio": variance_ratio(actual, comparison)}
            for actual, comparison in VARIANCE_EXAMPLES
        ]
        return {
            "scenario": scenario.value,
            "schema": schema,
            "fact_table": get_fact_table(scenario),
            "measures": measures,
            "folders": group_by_folder(measures),
            "variance_examples": variance_examples,
        }
