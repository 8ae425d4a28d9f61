"""Fixed descriptor documents of a Power BI Project package.

These do not depend on the dashboard, only on the project name, logical
ids and canvas size, so the same scenario always yields the same bytes.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from .visual_objects import DEFAULT_THEME_COLORS

SCHEMA_ROOT = "https://developer.microsoft.com/json-schemas/fabric/item/report/definition"
PLATFORM_SCHEMA = (
    "https://developer.microsoft.com/json-schemas/fabric/gitIntegration/platformProperties/2.0.0/schema.json"
)
BASE_THEME = "CY25SU12"
PAGE_NAME = "page1"

REPORT_JSON: dict[str, Any] = {
    "$schema": f"{SCHEMA_ROOT}/report/3.1.0/schema.json",
    "themeCollection": {
        "baseTheme": {
            "name": BASE_THEME,
            "reportVersionAtImport": {"visual": "2.5.0", "report": "3.1.0", "page": "2.3.0"},
            "type": "SharedResources",
        },
    },
    "objects": {
        "section": [{"properties": {"verticalAlignment": {"expr": {"Literal": {"Value": "'Top'"}}}}}],
    },
    "resourcePackages": [{
        "name": "SharedResources",
        "type": "SharedResources",
        "items": [{"name": BASE_THEME, "path": f"BaseThemes/{BASE_THEME}.json", "type": "BaseTheme"}],
    }],
    "settings": {
        "useStylableVisualContainerHeader": True,
        "exportDataMode": "AllowSummarized",
        "defaultDrillFilterOtherVisuals": True,
        "allowChangeFilterTypes": True,
        "useEnhancedTooltips": True,
        "useDefaultAggregateDisplayName": True,
    },
}

VERSION_JSON = {
    "$schema": f"{SCHEMA_ROOT}/versionMetadata/1.0.0/schema.json",
    "version": "2.0.0",
}

PAGES_JSON = {
    "$schema": f"{SCHEMA_ROOT}/pagesMetadata/1.0.0/schema.json",
    "pageOrder": [PAGE_NAME],
    "activePageName": PAGE_NAME,
}

PBISM_JSON = {"version": "4.2", "settings": {}}

DIAGRAM_LAYOUT_JSON = {
    "version": "1.1.0",
    "diagrams": [{
        "ordinal": 0,
        "scrollPosition": {"x": 0, "y": 0},
        "nodes": [],
        "name": "All tables",
        "zoomValue": 100,
        "pinKeyFieldsToTop": False,
        "showExtraHeaderInfo": False,
        "hideKeyFieldsWhenCollapsed": False,
        "tablesLocked": False,
    }],
    "selectedDiagram": "All tables",
    "defaultDiagram": "All tables",
}

EDITOR_SETTINGS_JSON = {
    "version": "1.0",
    "autodetectRelationships": False,
    "parallelQueryLoading": True,
    "typeDetectionEnabled": True,
    "relationshipImportEnabled": True,
    "runBackgroundAnalysis": True,
    "shouldNotifyUserOfNameConflictResolution": True,
}


def base_theme(colors: Optional[Sequence[str]] = None) -> dict[str, Any]:
    return {
        "version": "5.50",
        "name": BASE_THEME,
        "textClasses": {
            "label": {"fontFace": "Segoe UI", "fontSize": 12},
            "title": {"fontFace": "Segoe UI Semibold", "fontSize": 16},
        },
        "dataColors": list(colors) if colors else list(DEFAULT_THEME_COLORS),
        "visualStyles": {},
    }


def platform(artifact_type: str, display_name: str, logical_id: str) -> dict[str, Any]:
    """``.platform`` file for a Report or SemanticModel artifact."""
    return {
        "$schema": PLATFORM_SCHEMA,
        "metadata": {"type": artifact_type, "displayName": display_name},
        "config": {"version": "2.0", "logicalId": logical_id},
    }


def pbip_manifest(report_path: str) -> dict[str, Any]:
    return {
        "version": "1.0",
        "artifacts": [{"report": {"path": report_path}}],
        "settings": {"enableAutoRecovery": True},
    }


def pbir(semantic_model_path: str) -> dict[str, Any]:
    return {"version": "4.0", "datasetReference": {"byPath": {"path": semantic_model_path}}}


def page(display_name: str, width: int, height: int) -> dict[str, Any]:
    return {
        "$schema": f"{SCHEMA_ROOT}/page/2.0.0/schema.json",
        "name": PAGE_NAME,
        "displayName": display_name,
        "displayOption": "FitToPage",
        "height": height,
        "width": width,
    }
