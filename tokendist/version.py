from __future__ import annotations

"""
tokendist.version — resolved package version.

Resolution order:
  1. ``TOKENDIST_VERSION`` from the environment (release pipelines)
  2. metadata of the installed ``tokendist`` distribution
  3. ``BASE_VERSION`` (source checkout, not installed)
"""

import os
from importlib import metadata
from typing import Optional

# Bump on intentional releases; keep in step with pyproject.toml.
BASE_VERSION = "0.3.0"


def _installed_version() -> Optional[str]:
    try:
        return metadata.version("tokendist")
    except metadata.PackageNotFoundError:
        return None


def build_version() -> str:
    return os.getenv("TOKENDIST_VERSION") or _installed_version() or BASE_VERSION


__version__ = build_version()


def get_version() -> str:
    return __version__


__all__ = ["__version__", "get_version", "BASE_VERSION"]
