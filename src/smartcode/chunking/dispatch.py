"""
Route a file to the chunker that understands it.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ..logger import get_logger
from .line_chunker import chunk_lines
from .models import Chunk
from .tokenizer import ChunkingParams, TokenEstimator, estimate_tokens
from .verse_chunker import chunk_verse_file

log = get_logger(__name__)

VERSE_SUFFIXES = frozenset({".verse"})


def chunk_source(
    content: str,
    path: Optional[Path],
    params: ChunkingParams,
    chunk_size: int = 15,
    chunk_overlap: int = 3,
    estimate: TokenEstimator = estimate_tokens,
) -> List[Chunk]:
    """Chunk one file's text; ``path`` only selects the strategy."""
    suffix = path.suffix.lower() if path is not None else ""
    if suffix in VERSE_SUFFIXES:
        chunks = chunk_verse_file(content, params, estimate)
        mode = "verse"
    else:
        chunks = chunk_lines(content, params, chunk_size, chunk_overlap, estimate)
        mode = "lines"
    log.debug("file_chunked", path=str(path) if path else None, mode=mode, chunks=len(chunks))
    return chunks
