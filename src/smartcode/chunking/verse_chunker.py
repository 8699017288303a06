"""
Indentation-aware chunking for Verse source files.

Verse blocks are delimited by indentation rather than braces, headers can
span several lines and carry effect specifiers (``<transacts>``,
``<decides>``), and ``@attributes`` sit on the lines above what they
annotate. This module does not parse Verse; it recognises where definitions
start and how far their blocks reach, which is what a retrieval index needs.

Three passes run in order, each a pure function of the previous output:

1. :func:`~smartcode.chunking.segmenter.segment` emits top-level
   definitions.
2. :func:`~smartcode.chunking.members.extract_members` adds the first-level
   members of classes, structs and interfaces.
3. :func:`~smartcode.chunking.splitter.apply_token_budget` cuts anything too
   large for the embedding model.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .classifier import read_lines
from .members import extract_members
from .models import Chunk
from .segmenter import segment
from .splitter import apply_token_budget
from .tokenizer import ChunkingParams, TokenEstimator, estimate_tokens


@dataclass(frozen=True)
class VerseChunker:
    """Reusable, stateless Verse chunker bound to one set of token sizes."""

    params: ChunkingParams
    estimate: TokenEstimator = estimate_tokens

    def chunk(self, content: str) -> List[Chunk]:
        lines = read_lines(content)
        chunks = segment(lines, self.estimate)
        chunks = extract_members(chunks, self.estimate)
        return apply_token_budget(chunks, self.params, self.estimate)


def chunk_verse_file(
    content: str,
    params: ChunkingParams,
    estimate: TokenEstimator = estimate_tokens,
) -> List[Chunk]:
    """Chunk the full text of a Verse file."""
    return VerseChunker(params=params, estimate=estimate).chunk(content)
