"""
Hybrid retrieval over the chunk cache.

Scores blend cosine similarity between the query and chunk embeddings with a
boost for literal matches, so identifiers typed verbatim rank well even when
the embedding model does not know them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..embeddings import EmbeddingAdapter, EmbeddingProviderFactory
from ..logger import get_logger
from ..settings import settings
from ..storage import CachedChunk, ChunkCache

log = get_logger(__name__)

PARTIAL_MATCH_WEIGHT = 0.3
MIN_QUERY_WORD_LENGTH = 3


@dataclass
class SearchResult:
    """A ranked chunk returned to callers."""

    path: str
    start_line: int
    end_line: int
    kind: str
    signature: str
    text: str
    score: float
    similarity: float
    exact_match: bool

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "kind": self.kind,
            "signature": self.signature,
            "text": self.text,
            "score": self.score,
            "similarity": self.similarity,
            "exact_match": self.exact_match,
        }


def _cosine_scores(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    query_norm = query / (np.linalg.norm(query) + 1e-12)
    row_norms = np.linalg.norm(matrix, axis=1, keepdims=True) + 1e-12
    return (matrix / row_norms) @ query_norm


def lexical_bonus(query: str, text: str, exact_match_boost: float) -> tuple[float, bool]:
    """Extra score for literal occurrences of the query in ``text``."""
    lowered_text = text.lower()
    lowered_query = query.lower().strip()
    if lowered_query and lowered_query in lowered_text:
        return exact_match_boost, True
    words = [word for word in lowered_query.split() if len(word) >= MIN_QUERY_WORD_LENGTH]
    if not words:
        return 0.0, False
    matched = sum(1 for word in words if word in lowered_text)
    return PARTIAL_MATCH_WEIGHT * matched / len(words), False


class HybridSearch:
    """Semantic + exact-match search over cached chunks."""

    def __init__(
        self,
        cache: ChunkCache,
        embedding_client: Optional[EmbeddingAdapter] = None,
        semantic_weight: Optional[float] = None,
        exact_match_boost: Optional[float] = None,
    ) -> None:
        self.cache = cache
        self._embedding_client = embedding_client
        self.semantic_weight = (
            semantic_weight if semantic_weight is not None else settings.semantic_weight
        )
        self.exact_match_boost = (
            exact_match_boost if exact_match_boost is not None else settings.exact_match_boost
        )

    @property
    def embedding_client(self) -> EmbeddingAdapter:
        if self._embedding_client is None:
            self._embedding_client = EmbeddingProviderFactory.create()
        return self._embedding_client

    def search(self, query: str, max_results: Optional[int] = None) -> List[SearchResult]:
        """Return the best ``max_results`` chunks for ``query``."""
        if not query or not query.strip():
            raise ValueError("Query cannot be empty.")
        limit = max(1, max_results or settings.max_results)

        entries = self.cache.load_entries()
        if not entries:
            log.info("search_empty_cache", query=query)
            return []

        query_vector = np.asarray(self.embedding_client.embed_query(query), dtype=np.float32)
        similarities = self._similarities(query_vector, entries)

        results: List[SearchResult] = []
        for entry, similarity in zip(entries, similarities):
            bonus, exact = lexical_bonus(query, entry.text, self.exact_match_boost)
            results.append(
                SearchResult(
                    path=entry.path,
                    start_line=entry.start_line,
                    end_line=entry.end_line,
                    kind=entry.kind,
                    signature=entry.signature,
                    text=entry.text,
                    score=self.semantic_weight * float(similarity) + bonus,
                    similarity=float(similarity),
                    exact_match=exact,
                )
            )
        results.sort(key=lambda r: (-r.score, r.path, r.start_line, r.end_line))
        log.info("search_completed", query=query, candidates=len(entries), returned=min(limit, len(results)))
        return results[:limit]

    @staticmethod
    def _similarities(query_vector: np.ndarray, entries: List[CachedChunk]) -> np.ndarray:
        dims = {entry.vector.shape[0] for entry in entries}
        if len(dims) != 1 or query_vector.shape[0] not in dims:
            log.warning("embedding_dimension_mismatch", query=query_vector.shape[0], stored=sorted(dims))
            return np.zeros(len(entries), dtype=np.float32)
        matrix = np.vstack([entry.vector for entry in entries])
        return _cosine_scores(query_vector, matrix)
