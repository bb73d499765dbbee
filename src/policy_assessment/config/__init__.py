"""Configuration for policy assessments."""

from .settings import Settings, load_settings, reload_settings

__all__ = ["Settings", "load_settings", "reload_settings"]
