"""Markdown guide rendering."""

from .guide_renderer import GuideRenderer, column_notes, group_by_folder

__all__ = ["GuideRenderer", "column_notes", "group_by_folder"]
