"""
Local embedding cache backed by SQLite and NumPy.

Chunk text, line provenance and float32 embeddings live in one SQLite file
under the workspace cache directory. Each file is replaced as a unit, keyed
by its path and content hash, so unchanged files are never re-embedded.
"""

from __future__ import annotations

import hashlib
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..chunking import Chunk
from ..logger import get_logger
from ..settings import settings

log = get_logger(__name__)

_DB_FILENAME = "chunks.sqlite3"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS files (
        path TEXT PRIMARY KEY,
        sha256 TEXT NOT NULL,
        size INTEGER NOT NULL,
        chunk_count INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS chunks (
        chunk_id TEXT PRIMARY KEY,
        path TEXT NOT NULL,
        start_line INTEGER NOT NULL,
        end_line INTEGER NOT NULL,
        kind TEXT NOT NULL,
        signature TEXT NOT NULL,
        parent TEXT,
        continuation INTEGER NOT NULL,
        token_count INTEGER NOT NULL,
        text TEXT NOT NULL,
        content_hash TEXT NOT NULL,
        embedding BLOB NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_chunks_path ON chunks(path)",
    "CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT NOT NULL)",
)


def file_sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def make_chunk_id(path: str, chunk: Chunk) -> str:
    key = f"{path}:{chunk.start_line}:{chunk.end_line}:{chunk.content_hash}"
    return hashlib.md5(key.encode("utf-8")).hexdigest()


@dataclass
class CachedChunk:
    """A stored chunk together with its embedding."""

    chunk_id: str
    path: str
    start_line: int
    end_line: int
    kind: str
    signature: str
    parent: Optional[str]
    continuation: bool
    token_count: int
    text: str
    vector: np.ndarray


class ChunkCache:
    """Thread-safe SQLite store for chunks and their embeddings."""

    def __init__(self, cache_dir: Optional[Path] = None) -> None:
        self.cache_dir = cache_dir or settings.resolved_cache_directory()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.cache_dir / _DB_FILENAME
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
            str(self.db_path), check_same_thread=False
        )
        self._ensure_schema()
        log.info("cache_opened", path=str(self.db_path))

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Chunk cache is closed.")
        return self._conn

    def _ensure_schema(self) -> None:
        conn = self._connection()
        with self._lock, conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    def get_meta(self, key: str) -> Optional[str]:
        conn = self._connection()
        with self._lock:
            row = conn.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set_meta(self, key: str, value: str) -> None:
        conn = self._connection()
        with self._lock, conn:
            conn.execute(
                "INSERT INTO meta(key, value) VALUES(?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def ensure_model(self, model: str) -> bool:
        """
        Bind the cache to an embedding model.

        Vectors from different models are not comparable, so switching model
        empties the cache. Returns True when a reset happened.
        """
        current = self.get_meta("embedding_model")
        if current == model:
            return False
        reset = current is not None
        if reset:
            log.warning("embedding_model_changed", previous=current, current=model)
            self.reset()
        self.set_meta("embedding_model", model)
        return reset

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------
    def file_hash(self, path: str) -> Optional[str]:
        conn = self._connection()
        with self._lock:
            row = conn.execute("SELECT sha256 FROM files WHERE path = ?", (path,)).fetchone()
        return row[0] if row else None

    def indexed_paths(self) -> List[str]:
        conn = self._connection()
        with self._lock:
            rows = conn.execute("SELECT path FROM files ORDER BY path").fetchall()
        return [row[0] for row in rows]

    def replace_file(
        self,
        path: str,
        sha256: str,
        size: int,
        chunks: Sequence[Chunk],
        vectors: Sequence[Sequence[float]],
    ) -> int:
        """Swap all stored chunks of ``path`` for ``chunks`` in one transaction."""
        if len(chunks) != len(vectors):
            raise ValueError(
                f"Got {len(vectors)} embeddings for {len(chunks)} chunks of {path}"
            )
        rows = [
            (
                make_chunk_id(path, chunk),
                path,
                chunk.start_line,
                chunk.end_line,
                chunk.kind,
                chunk.signature,
                chunk.parent,
                int(chunk.continuation),
                chunk.token_count,
                chunk.text,
                chunk.content_hash,
                np.asarray(vector, dtype=np.float32).tobytes(),
            )
            for chunk, vector in zip(chunks, vectors)
        ]
        conn = self._connection()
        with self._lock, conn:
            conn.execute("DELETE FROM chunks WHERE path = ?", (path,))
            conn.executemany(
                "INSERT OR REPLACE INTO chunks(chunk_id, path, start_line, end_line, kind, "
                "signature, parent, continuation, token_count, text, content_hash, embedding) "
                "VALUES(?,?,?,?,?,?,?,?,?,?,?,?)",
                rows,
            )
            conn.execute(
                "INSERT INTO files(path, sha256, size, chunk_count) VALUES(?,?,?,?) "
                "ON CONFLICT(path) DO UPDATE SET sha256 = excluded.sha256, "
                "size = excluded.size, chunk_count = excluded.chunk_count",
                (path, sha256, size, len(rows)),
            )
        log.debug("cache_file_replaced", path=path, chunks=len(rows))
        return len(rows)

    def remove_file(self, path: str) -> None:
        conn = self._connection()
        with self._lock, conn:
            conn.execute("DELETE FROM chunks WHERE path = ?", (path,))
            conn.execute("DELETE FROM files WHERE path = ?", (path,))
        log.debug("cache_file_removed", path=path)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------
    def load_entries(self) -> List[CachedChunk]:
        conn = self._connection()
        with self._lock:
            rows = conn.execute(
                "SELECT chunk_id, path, start_line, end_line, kind, signature, parent, "
                "continuation, token_count, text, embedding FROM chunks "
                "ORDER BY path, start_line, end_line, chunk_id"
            ).fetchall()
        return [
            CachedChunk(
                chunk_id=row[0],
                path=row[1],
                start_line=int(row[2]),
                end_line=int(row[3]),
                kind=row[4],
                signature=row[5],
                parent=row[6],
                continuation=bool(row[7]),
                token_count=int(row[8]),
                text=row[9],
                vector=np.frombuffer(row[10], dtype=np.float32),
            )
            for row in rows
        ]

    def stats(self) -> Dict[str, object]:
        conn = self._connection()
        with self._lock:
            files = conn.execute("SELECT COUNT(*) FROM files").fetchone()[0]
            chunks = conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]
            model = conn.execute(
                "SELECT value FROM meta WHERE key = 'embedding_model'"
            ).fetchone()
        return {
            "files": int(files),
            "chunks": int(chunks),
            "embedding_model": model[0] if model else None,
            "db_path": str(self.db_path),
        }

    def reset(self) -> None:
        """Delete every stored file and chunk; metadata is kept."""
        conn = self._connection()
        with self._lock, conn:
            conn.execute("DELETE FROM chunks")
            conn.execute("DELETE FROM files")
        log.info("cache_reset", path=str(self.db_path))
