"""Phantom Export CLI.

Command-line stand-in for the designer's Export button.

Commands:
    phantom-export pbip <items.json> --data <data.json>   Project Package with data
    phantom-export pbit <items.json>                      Legacy Template
    phantom-export measures <items.json>                  Show generated DAX measures
    phantom-export schema                                 Show a scenario's star schema
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from phantom_export.archive import save_export
from phantom_export.config import get_settings
from phantom_export.dax.measure_generator import generate_all_measures
from phantom_export.exceptions import PhantomExportError
from phantom_export.export import export_pbip, export_pbit
from phantom_export.ids import SeededIdSource
from phantom_export.models.dashboard import Scenario, parse_items
from phantom_export.models.result import ExportResult
from phantom_export.semantic.registry import get_fact_table, get_schema

console = Console()

SCENARIO_CHOICE = click.Choice([s.value for s in Scenario])


def read_json_file(file_path: str) -> Any:
    """Read and parse a JSON file."""
    path = Path(file_path)
    if not path.exists():
        raise click.ClickException(f"File not found: {file_path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {file_path}: {e}")


def load_items(file_path: str, scenario: Optional[str]) -> tuple[Scenario, list]:
    """Read dashboard items; the file may be a list or ``{"scenario", "items"}``."""
    payload = read_json_file(file_path)
    file_scenario = None
    if isinstance(payload, dict):
        file_scenario = payload.get("scenario")
        payload = payload.get("items")
    if not isinstance(payload, list):
        raise click.ClickException(f"Expected a list of dashboard items in {file_path}")
    try:
        items = parse_items(payload)
    except PhantomExportError as e:
        raise click.ClickException(str(e))
    return Scenario.coerce(scenario or file_scenario or Scenario.RETAIL.value), items


def display_export_result(result: ExportResult, kind: str, written: list[Path]) -> None:
    """Summarize a finished export."""
    lines = [
        f"Archive: [bold]{written[0]}[/bold]",
        f"Size: {result.size / 1024:.1f} KB",
    ]
    if len(written) > 1:
        lines.append(f"Guide: {written[1]}")
    console.print(Panel("\n".join(lines), title=f"{kind} Export", border_style="green"))


def run_export(
    kind: str,
    items_file: str,
    data_file: Optional[str],
    scenario: Optional[str],
    output: Optional[str],
    filename: Optional[str],
    seed: Optional[int],
    no_guide: bool,
) -> None:
    settings = get_settings()
    resolved, items = load_items(items_file, scenario)
    id_source = SeededIdSource(seed) if seed is not None else None

    try:
        if kind == "PBIP":
            data = read_json_file(data_file) if data_file else None
            if data is not None and not isinstance(data, dict):
                raise click.ClickException(f"Expected a JSON object in {data_file}")
            result = export_pbip(items, resolved, data, id_source=id_source, filename=filename, settings=settings)
        else:
            result = export_pbit(items, resolved, id_source=id_source, filename=filename, settings=settings)
        written = save_export(
            result,
            output or settings.output_dir,
            write_guide=settings.write_guide and not no_guide,
        )
    except PhantomExportError as e:
        raise click.ClickException(f"Export failed: {e}")
    except OSError as e:
        raise click.ClickException(f"Could not write export: {e}")

    display_export_result(result, kind, written)


@click.group()
@click.version_option(version="0.1.0", prog_name="phantom-export")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def cli(verbose: bool):
    """Phantom Export - Power BI PBIP/PBIT export from Phantom dashboards."""
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@click.argument("items_file", type=click.Path(exists=True))
@click.option("--data", "data_file", type=click.Path(exists=True), required=True, help="Dataset snapshot JSON")
@click.option("--scenario", "-s", type=SCENARIO_CHOICE, default=None, help="Override the items file scenario")
@click.option("--output", "-o", type=click.Path(), help="Output directory")
@click.option("--filename", default=None, help="Archive file name")
@click.option("--seed", type=int, default=None, help="Seed lineage IDs for reproducible archives")
@click.option("--no-guide", is_flag=True, help="Do not write the Markdown guide")
def pbip(
    items_file: str,
    data_file: str,
    scenario: Optional[str],
    output: Optional[str],
    filename: Optional[str],
    seed: Optional[int],
    no_guide: bool,
):
    """Export a Power BI Project package with the dataset embedded.

    Examples:
        phantom-export pbip dashboard.json --data store.json
        phantom-export pbip dashboard.json --data store.json -s Logistics --seed 7
    """
    run_export("PBIP", items_file, data_file, scenario, output, filename, seed, no_guide)


@cli.command()
@click.argument("items_file", type=click.Path(exists=True))
@click.option("--scenario", "-s", type=SCENARIO_CHOICE, default=None, help="Override the items file scenario")
@click.option("--output", "-o", type=click.Path(), help="Output directory")
@click.option("--filename", default=None, help="Archive file name")
@click.option("--seed", type=int, default=None, help="Seed report IDs for reproducible archives")
@click.option("--no-guide", is_flag=True, help="Do not write the Markdown guide")
def pbit(
    items_file: str,
    scenario: Optional[str],
    output: Optional[str],
    filename: Optional[str],
    seed: Optional[int],
    no_guide: bool,
):
    """Export a Power BI Legacy Template (schema and measures, no data).

    Examples:
        phantom-export pbit dashboard.json
        phantom-export pbit dashboard.json -s Finance -o exports/
    """
    run_export("PBIT", items_file, None, scenario, output, filename, seed, no_guide)


@cli.command()
@click.argument("items_file", type=click.Path(exists=True))
@click.option("--scenario", "-s", type=SCENARIO_CHOICE, default=None, help="Override the items file scenario")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def measures(items_file: str, scenario: Optional[str], output_json: bool):
    """List the DAX measures a dashboard would export."""
    resolved, items = load_items(items_file, scenario)
    generated = generate_all_measures(items, resolved)

    if output_json:
        console.print_json(json.dumps([asdict(m) for m in generated], ensure_ascii=False))
        return

    table = Table(title=f"{resolved.value} Measures ({len(generated)})", show_header=True, header_style="bold")
    table.add_column("Folder", style="dim")
    table.add_column("Measure", style="bold")
    table.add_column("Format")
    table.add_column("Expression")
    for m in generated:
        first_line = m.expression.splitlines()[0] if m.expression else ""
        table.add_row(
            m.display_folder,
            m.name,
            m.format_string,
            first_line + (" ..." if m.is_multiline else ""),
        )
    console.print(table)


@cli.command()
@click.option("--scenario", "-s", type=SCENARIO_CHOICE, default=Scenario.RETAIL.value, show_default=True)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def schema(scenario: str, output_json: bool):
    """Show the star schema exported for a scenario."""
    star = get_schema(scenario)
    fact_table = get_fact_table(scenario)

    if output_json:
        console.print_json(json.dumps(asdict(star), ensure_ascii=False))
        return

    console.print(Panel(star.description, title=f"{scenario} Schema", border_style="cyan"))
    for tbl in star.tables:
        title = f"{tbl.name} (fact)" if tbl.name == fact_table else tbl.name
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Column")
        table.add_column("Type", style="dim")
        table.add_column("Summarize")
        for col in tbl.columns:
            name = f"[dim]{col.name}[/dim]" if col.is_hidden else col.name
            table.add_row(name, col.data_type, col.summarize_by)
        console.print(table)

    rels = Table(title="Relationships", show_header=True, header_style="bold")
    rels.add_column("From")
    rels.add_column("To")
    rels.add_column("Active")
    for rel in star.relationships:
        rels.add_row(
            f"{rel.from_table}[{rel.from_column}]",
            f"{rel.to_table}[{rel.to_column}]",
            "yes" if rel.is_active else "no",
        )
    console.print(rels)


if __name__ == "__main__":
    cli()
