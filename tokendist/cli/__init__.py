"""Command-line tools for inspecting schedules, configuration and proofs."""

from .main import app, get_app

__all__ = ["app", "get_app"]
