"""Phantom export templates.

Jinja2 templates for the Markdown guides shipped with each export.
"""

from pathlib import Path

TEMPLATE_DIR = Path(__file__).parent

__all__ = ["TEMPLATE_DIR"]
