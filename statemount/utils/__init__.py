"""
Utility functions module.

Shared building blocks used by the registry and the state entities.
"""
from .atom import Atom

__all__ = ["Atom"]
