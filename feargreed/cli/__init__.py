"""Command line interface for the Fear & Greed tracker."""

from .main import app, create_app

__all__ = ["app", "create_app"]
