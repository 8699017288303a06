"""
Query layer for the chunk cache.
"""

from .hybrid import HybridSearch, SearchResult

__all__ = ["HybridSearch", "SearchResult"]
