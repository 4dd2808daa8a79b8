"""Global pause switch."""

from .pausable import Pausable

__all__ = ["Pausable"]
