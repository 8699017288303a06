"""
Chunking utilities for code search indexing.

Verse sources go through an indentation-aware structural chunker; other
files are cut into overlapping line windows. Both honour the token budget of
the embedding model in use.
"""

from .dispatch import VERSE_SUFFIXES, chunk_source
from .line_chunker import chunk_lines
from .models import Chunk, ChunkKind
from .tokenizer import ChunkingParams, estimate_tokens, get_chunking_params
from .verse_chunker import VerseChunker, chunk_verse_file

__all__ = [
    "Chunk",
    "ChunkKind",
    "ChunkingParams",
    "VERSE_SUFFIXES",
    "VerseChunker",
    "chunk_lines",
    "chunk_source",
    "chunk_verse_file",
    "estimate_tokens",
    "get_chunking_params",
]
