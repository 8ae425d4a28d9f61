"""Configuration module for Phantom export settings."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
