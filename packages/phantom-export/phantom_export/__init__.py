"""Phantom Export - Power BI packages from Phantom dashboards.

This package turns a dashboard (visual items on a grid plus a scenario and
its dataset) into Power BI artifacts:
- Legacy Templates (.pbit): star schema, DAX measures and report layout
- Project Packages (.pbip.zip): PBIR visuals and TMDL tables with data embedded
- A Markdown guide describing the generated model
"""

__version__ = "0.1.0"

from .export import export_pbit, export_pbip, export_pbit_async, export_pbip_async
from .dax.measure_generator import generate_all_measures
from .semantic.registry import get_schema, get_fact_table
from .semantic.field_mapper import map_field
from .layout.converter import grid_to_pixels, map_visual_type, convert_all
from .models import DashboardItem, ExportData, ExportResult, Scenario
from .exceptions import PhantomExportError, InvalidDashboardError, ArchiveAssemblyError

__all__ = [
    "export_pbit",
    "export_pbip",
    "export_pbit_async",
    "export_pbip_async",
    "generate_all_measures",
    "get_schema",
    "get_fact_table",
    "map_field",
    "grid_to_pixels",
    "map_visual_type",
    "convert_all",
    "DashboardItem",
    "ExportData",
    "ExportResult",
    "Scenario",
    "PhantomExportError",
    "InvalidDashboardError",
    "ArchiveAssemblyError",
]
