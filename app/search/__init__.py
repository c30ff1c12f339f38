"""Fuzzy multi-query catalog search."""

from __future__ import annotations

from .ranking import CatalogSearchProvider, SearchRanker
from .variants import generate_variants

__all__ = ["CatalogSearchProvider", "SearchRanker", "generate_variants"]
