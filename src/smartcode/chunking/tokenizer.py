"""
Token estimation and per-model chunk sizing.

The estimate is a cheap, deterministic approximation of sub-word tokenizers:
short words cost one token, longer identifiers are charged by length and
punctuation adds half a token per character. Chunk targets are derived from
the context window of the embedding model in use.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional

TokenEstimator = Callable[[str], int]

_WHITESPACE_RE = re.compile(r"\s+")
_SPECIAL_CHARS_RE = re.compile(r"[{}()\[\];:,.<>!=+\-*/%&|^~@#$\"'`\\?]")

DEFAULT_MODEL_TOKEN_LIMIT = 256
TARGET_RATIO = 0.85
OVERLAP_RATIO = 0.18

MODEL_TOKEN_LIMITS: Dict[str, int] = {
    "Xenova/all-MiniLM-L6-v2": 256,
    "sentence-transformers/all-MiniLM-L6-v2": 256,
    "Xenova/all-MiniLM-L12-v2": 256,
    "BAAI/bge-small-en-v1.5": 512,
    "BAAI/bge-base-en-v1.5": 512,
    "nomic-ai/nomic-embed-text-v1.5": 8192,
    "nomic-embed-text-v1.5": 8192,
    "jinaai/jina-embeddings-v2-base-code": 8192,
    "text-embedding-3-small": 8191,
    "text-embedding-3-large": 8191,
    "text-embedding-ada-002": 8191,
}


def estimate_tokens(text: str) -> int:
    """Approximate the number of embedding tokens in ``text``."""
    if not text:
        return 0
    count = 0
    for word in _WHITESPACE_RE.split(text):
        if not word:
            continue
        if len(word) <= 4:
            count += 1
        elif len(word) <= 10:
            count += 2
        else:
            count += math.ceil(len(word) / 4)
    count += len(_SPECIAL_CHARS_RE.findall(text)) // 2
    return count


def get_model_token_limit(model: Optional[str]) -> int:
    if not model:
        return DEFAULT_MODEL_TOKEN_LIMIT
    if model in MODEL_TOKEN_LIMITS:
        return MODEL_TOKEN_LIMITS[model]
    # Providers often prefix the model id with an organisation.
    short_name = model.rsplit("/", 1)[-1]
    for known, limit in MODEL_TOKEN_LIMITS.items():
        if known.rsplit("/", 1)[-1] == short_name:
            return limit
    return DEFAULT_MODEL_TOKEN_LIMIT


@dataclass(frozen=True)
class ChunkingParams:
    """Token sizes a chunker should aim for."""

    max_tokens: int
    target_tokens: int
    overlap_tokens: int

    def __post_init__(self) -> None:
        if self.target_tokens <= 0:
            raise ValueError("target_tokens must be positive")
        if not 0 <= self.overlap_tokens < self.target_tokens:
            raise ValueError("overlap_tokens must be within [0, target_tokens)")


def get_chunking_params(
    model: Optional[str],
    target_override: Optional[int] = None,
    overlap_override: Optional[int] = None,
) -> ChunkingParams:
    """Resolve target/overlap token sizes for an embedding model."""
    max_tokens = get_model_token_limit(model)
    target = target_override or int(max_tokens * TARGET_RATIO)
    overlap = overlap_override if overlap_override is not None else int(target * OVERLAP_RATIO)
    return ChunkingParams(
        max_tokens=max(max_tokens, target),
        target_tokens=target,
        overlap_tokens=overlap,
    )
