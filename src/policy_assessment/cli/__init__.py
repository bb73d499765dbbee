"""Command line interface for policy assessments."""

from .main import app

__all__ = ["app"]
