"""One-call export entry points.

Explicit arguments win over ``Settings``; settings only fill in packaging
defaults (compression, project prefix, theme colors).
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from .config.settings import Settings, get_settings
from .ids import Clock, IdSource
from .models.dashboard import DashboardItem, Scenario
from .models.dataset import ExportData
from .models.result import ExportResult
from .writers.legacy_writer import LegacyTemplateWriter
from .writers.pbip_writer import PBIPWriter

Items = Iterable[DashboardItem | Mapping[str, Any]]


def _legacy_writer(id_source, clock, settings: Optional[Settings]) -> LegacyTemplateWriter:
    settings = settings or get_settings()
    return LegacyTemplateWriter(
        id_source=id_source,
        clock=clock,
        compression=settings.compression,
        compress_level=settings.compress_level,
    )


def _pbip_writer(id_source, clock, settings: Optional[Settings]) -> PBIPWriter:
    settings = settings or get_settings()
    return PBIPWriter(
        id_source=id_source,
        clock=clock,
        project_prefix=settings.project_prefix,
        theme_colors=settings.theme_colors,
        compression=settings.compression,
        compress_level=settings.compress_level,
    )


def export_pbit(
    items: Items,
    scenario: Scenario | str,
    *,
    id_source: Optional[IdSource] = None,
    clock: Optional[Clock] = None,
    filename: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ExportResult:
    """Export a dashboard as a Legacy Template (schema and bindings, no data)."""
    return _legacy_writer(id_source, clock, settings).build(items, scenario, filename)


def export_pbip(
    items: Items,
    scenario: Scenario | str,
    data: ExportData | Mapping[str, Any] | None,
    *,
    id_source: Optional[IdSource] = None,
    clock: Optional[Clock] = None,
    filename: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ExportResult:
    """Export a dashboard as a Project Package with its data embedded."""
    return _pbip_writer(id_source, clock, settings).build(items, scenario, data, filename)


async def export_pbit_async(
    items: Items,
    scenario: Scenario | str,
    *,
    id_source: Optional[IdSource] = None,
    clock: Optional[Clock] = None,
    filename: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ExportResult:
    return await _legacy_writer(id_source, clock, settings).build_async(items, scenario, filename)


async def export_pbip_async(
    items: Items,
    scenario: Scenario | str,
    data: ExportData | Mapping[str, Any] | None,
    *,
    id_source: Optional[IdSource] = None,
    clock: Optional[Clock] = None,
    filename: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ExportResult:
    return await _pbip_writer(id_source, clock, settings).build_async(items, scenario, data, filename)
