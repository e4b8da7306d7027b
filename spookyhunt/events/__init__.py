"""
Events - Location catalogs for a hunt.

One event at a time: the built-in Halloween catalog, or a catalog file.
"""

from .halloween_2025 import create_halloween_catalog
from .loader import load_catalog, parse_catalog, LocationSchema

__all__ = [
    "create_halloween_catalog",
    "load_catalog",
    "parse_catalog",
    "LocationSchema",
]
