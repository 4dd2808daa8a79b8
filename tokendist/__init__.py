from __future__ import annotations
"""
tokendist — token distribution engine.

Distributes a fixed-supply token through interest-bearing staking (a tiered
"flexible" position per account and a set of fixed-term flat-rate pools) and
through commitment-proof-gated vesting with a cliff-then-linear release.

Public surface (lazily loaded):
- config, errors, metrics, clock, events, interfaces, hashing, state
- staking, vesting, token, access, control
- engine, cli
"""


import importlib
from typing import List

from .version import __version__

__all__: List[str] = [
    "__version__",
    "config",
    "errors",
    "metrics",
    "clock",
    "events",
    "interfaces",
    "hashing",
    "state",
    "staking",
    "vesting",
    "token",
    "access",
    "control",
    "engine",
    "cli",
]

# --- Lazy module loader (PEP 562) -------------------------------------------------

_lazy_modules = set(__all__) - {"__version__"}


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)


def get_version() -> str:
    """Return the tokendist package version string."""
    return __version__
