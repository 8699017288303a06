"""
Token-budget enforcement.

Chunks comfortably within budget pass through. Larger ones are cut into line
runs of at most ``target_tokens``, each run after the first starting with a
short tail of the previous run so a query that straddles the cut still finds
context. Sizes are always estimated on the joined text of a run, never summed
per line, since punctuation is charged across the whole text. The cut knows
nothing about syntax and may fall mid-statement.
"""
from __future__ import annotations

from dataclasses import replace
from typing import List, Sequence

from .models import Chunk
from .tokenizer import ChunkingParams, TokenEstimator, estimate_tokens

SPLIT_THRESHOLD = 1.5


def _overlap_tail(
    run: List[int],
    lines: Sequence[str],
    next_index: int,
    overlap_tokens: int,
    target_tokens: int,
    estimate: TokenEstimator,
) -> List[int]:
    """
    Longest suffix of ``run`` to repeat at the head of the next piece.

    The tail alone stays within ``overlap_tokens`` and, together with the line
    at ``next_index``, within ``target_tokens``.
    """
    tail: List[int] = []
    for index in reversed(run):
        candidate = [index] + tail
        if estimate(_join(lines, candidate)) > overlap_tokens:
            break
        if estimate(_join(lines, candidate + [next_index])) > target_tokens:
            break
        tail = candidate
    return tail


def _join(lines: Sequence[str], indices: Sequence[int]) -> str:
    return "\n".join(lines[i] for i in indices)


def split_chunk(
    chunk: Chunk,
    target_tokens: int,
    overlap_tokens: int,
    estimate: TokenEstimator = estimate_tokens,
) -> List[Chunk]:
    """Split ``chunk`` into budget-sized pieces with overlapping edges."""
    lines = chunk.text.split("\n")

    runs: List[List[int]] = []
    current: List[int] = []
    for index in range(len(lines)):
        if current and estimate(_join(lines, current + [index])) > target_tokens:
            runs.append(current)
            current = _overlap_tail(
                current, lines, index, overlap_tokens, target_tokens, estimate
            )
        current.append(index)
    if current:
        runs.append(current)

    pieces: List[Chunk] = []
    for number, run in enumerate(runs):
        text = _join(lines, run)
        if not text.strip():
            continue
        pieces.append(
            replace(
                chunk,
                start_line=chunk.start_line + run[0],
                end_line=chunk.start_line + run[-1],
                text=text,
                token_count=estimate(text),
                continuation=number > 0,
            )
        )
    return pieces


def apply_token_budget(
    chunks: Sequence[Chunk],
    params: ChunkingParams,
    estimate: TokenEstimator = estimate_tokens,
) -> List[Chunk]:
    """Re-split every chunk whose size exceeds 1.5x the target."""
    result: List[Chunk] = []
    for chunk in chunks:
        if chunk.token_count <= params.target_tokens * SPLIT_THRESHOLD:
            result.append(chunk)
            continue
        result.extend(
            split_chunk(chunk, params.target_tokens, params.overlap_tokens, estimate)
        )
    return result
