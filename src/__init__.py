# src/__init__.py
"""noiengine: Notice of Intent document generation and caching engine."""

from noiengine.version import __version__

__all__ = ["__version__"]
