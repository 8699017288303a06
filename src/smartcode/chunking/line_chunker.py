"""Fixed-size line windows for files without a structural chunker."""
from __future__ import annotations

from typing import List

from .classifier import split_lines
from .models import SIGNATURE_MAX_CHARS, Chunk
from .splitter import apply_token_budget
from .tokenizer import ChunkingParams, TokenEstimator, estimate_tokens


def chunk_lines(
    content: str,
    params: ChunkingParams,
    chunk_size: int = 15,
    chunk_overlap: int = 3,
    estimate: TokenEstimator = estimate_tokens,
) -> List[Chunk]:
    """
    Cut ``content`` into windows of ``chunk_size`` lines.

    Consecutive windows share ``chunk_overlap`` lines. Whitespace-only windows
    are skipped and every window is held to the token budget afterwards.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if not 0 <= chunk_overlap < chunk_size:
        raise ValueError("chunk_overlap must be within [0, chunk_size)")

    lines = split_lines(content)
    step = chunk_size - chunk_overlap
    chunks: List[Chunk] = []
    for start in range(0, len(lines), step):
        window = lines[start : start + chunk_size]
        text = "\n".join(window)
        if text.strip():
            first = next(line for line in window if line.strip())
            chunks.append(
                Chunk(
                    start_line=start + 1,
                    end_line=start + len(window),
                    kind="block",
                    text=text,
                    signature=first.strip()[:SIGNATURE_MAX_CHARS],
                    token_count=estimate(text),
                )
            )
        if start + chunk_size >= len(lines):
            break
    return apply_token_budget(chunks, params, estimate)
