"""
Service layer orchestrators for code search indexing.
"""

from .indexer import IndexerService, IndexingCallbacks, IndexingResult

__all__ = ["IndexerService", "IndexingCallbacks", "IndexingResult"]
