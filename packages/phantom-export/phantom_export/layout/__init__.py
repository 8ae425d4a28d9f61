"""Canvas layout conversion and the legacy report layout document."""

from .converter import (
    PixelPosition,
    Canvas,
    PBIVisualConfig,
    VISUAL_TYPE_MAP,
    grid_to_pixels,
    map_visual_type,
    convert_item,
    convert_all,
    calculate_optimal_canvas,
)
from .legacy_layout import ProjectionBuilder, build_prototype_query, build_legacy_layout

__all__ = [
    "PixelPosition",
    "Canvas",
    "PBIVisualConfig",
    "VISUAL_TYPE_MAP",
    "grid_to_pixels",
    "map_visual_type",
    "convert_item",
    "convert_all",
    "calculate_optimal_canvas",
    "ProjectionBuilder",
    "build_prototype_query",
    "build_legacy_layout",
]
