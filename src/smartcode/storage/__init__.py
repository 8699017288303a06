"""
Persistence for chunks and their embeddings.
"""

from .cache import CachedChunk, ChunkCache, file_sha256, make_chunk_id

__all__ = ["CachedChunk", "ChunkCache", "file_sha256", "make_chunk_id"]
