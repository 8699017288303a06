"""
Workspace indexing workflow orchestration.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..chunking import Chunk, ChunkingParams, chunk_source, get_chunking_params
from ..embeddings import EmbeddingAdapter, EmbeddingProviderFactory
from ..ingestion import WorkspaceScanner
from ..logger import get_logger
from ..settings import settings
from ..storage import ChunkCache, file_sha256

log = get_logger(__name__)


@dataclass
class IndexingCallbacks:
    file: Optional[Callable[[Path], None]] = None
    stage: Optional[Callable[[str], None]] = None
    embed_progress: Optional[Callable[[int, int], None]] = None


@dataclass
class IndexingResult:
    workspace: Path
    files_scanned: int
    files_indexed: int
    files_unchanged: int
    files_removed: int
    chunk_count: int
    embeddings_indexed: int
    failed_files: List[str] = field(default_factory=list)


@dataclass
class _FileWork:
    path: Path
    key: str
    sha256: str
    size: int
    chunks: List[Chunk]


class IndexerService:
    """Chains scanning, chunking, embedding and caching for one workspace."""

    def __init__(
        self,
        cache: Optional[ChunkCache] = None,
        embedding_client: Optional[EmbeddingAdapter] = None,
        workspace: Optional[Path] = None,
        params: Optional[ChunkingParams] = None,
    ) -> None:
        self.workspace = (workspace or settings.workspace_root).resolve()
        self.cache = cache or ChunkCache()
        self._embedding_client = embedding_client
        self.params = params or get_chunking_params(
            settings.embedding_model,
            target_override=settings.chunk_target_tokens,
            overlap_override=settings.chunk_overlap_tokens,
        )

    @property
    def embedding_client(self) -> EmbeddingAdapter:
        if self._embedding_client is None:
            self._embedding_client = EmbeddingProviderFactory.create()
        return self._embedding_client

    @embedding_client.setter
    def embedding_client(self, client: EmbeddingAdapter) -> None:
        self._embedding_client = client

    def index_workspace(
        self,
        root: Optional[Path] = None,
        force: bool = False,
        callbacks: Optional[IndexingCallbacks] = None,
    ) -> IndexingResult:
        """Bring the cache in line with the files currently in the workspace."""
        cb = callbacks or IndexingCallbacks()
        workspace = (root or self.workspace).resolve()
        if not workspace.is_dir():
            raise FileNotFoundError(f"Workspace not found: {workspace}")

        if self.cache.ensure_model(settings.embedding_model):
            force = True
        if force:
            log.info("forced_reindex", workspace=str(workspace))

        self._stage(cb, "scan_started")
        files = WorkspaceScanner.from_settings(workspace).collect()
        self._stage(cb, "scan_completed")

        self._stage(cb, "chunk_started")
        work, unchanged, failed = self._chunk_changed_files(workspace, files, force, cb)
        self._stage(cb, "chunk_completed")

        self._stage(cb, "embedding_started")
        embedded = self._embed_and_store(work, cb.embed_progress)
        self._stage(cb, "embedding_completed")

        removed = self._prune_missing(workspace, files)

        result = IndexingResult(
            workspace=workspace,
            files_scanned=len(files),
            files_indexed=len(work),
            files_unchanged=unchanged,
            files_removed=removed,
            chunk_count=sum(len(item.chunks) for item in work),
            embeddings_indexed=embedded,
            failed_files=failed,
        )
        log.info(
            "workspace_indexed",
            workspace=str(workspace),
            scanned=result.files_scanned,
            indexed=result.files_indexed,
            unchanged=result.files_unchanged,
            removed=result.files_removed,
            chunks=result.chunk_count,
        )
        return result

    def _chunk_changed_files(
        self,
        workspace: Path,
        files: Sequence[Path],
        force: bool,
        cb: IndexingCallbacks,
    ) -> tuple[List[_FileWork], int, List[str]]:
        candidates: List[tuple[Path, str, bytes]] = []
        unchanged = 0
        failed: List[str] = []
        for path in files:
            key = self._relative_key(workspace, path)
            try:
                data = path.read_bytes()
            except OSError as exc:
                log.warning("file_read_failed", path=str(path), error=str(exc))
                failed.append(key)
                continue
            if not force and self.cache.file_hash(key) == file_sha256(data):
                unchanged += 1
                if cb.file:
                    cb.file(path)
                continue
            candidates.append((path, key, data))

        def chunk_one(item: tuple[Path, str, bytes]) -> _FileWork:
            path, key, data = item
            text = data.decode("utf-8", errors="ignore")
            chunks = chunk_source(
                text,
                path,
                self.params,
                chunk_size=settings.chunk_size,
                chunk_overlap=settings.chunk_overlap,
            )
            return _FileWork(path=path, key=key, sha256=file_sha256(data), size=len(data), chunks=chunks)

        work: List[_FileWork] = []
        workers = max(1, settings.worker_threads)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="chunker") as pool:
            # map() keeps input order, so results stay deterministic.
            for item in pool.map(chunk_one, candidates):
                work.append(item)
                if cb.file:
                    cb.file(item.path)
        return work, unchanged, failed

    def _embed_and_store(
        self,
        work: Sequence[_FileWork],
        progress: Optional[Callable[[int, int], None]] = None,
    ) -> int:
        total = sum(len(item.chunks) for item in work)
        if progress:
            progress(0, total)
        batch_size = self._embedding_batch_size()
        completed = 0
        for item in work:
            vectors: List[List[float]] = []
            contents = [chunk.text for chunk in item.chunks]
            for start in range(0, len(contents), batch_size):
                vectors.extend(self.embedding_client.embed_documents(contents[start : start + batch_size]))
            self.cache.replace_file(item.key, item.sha256, item.size, item.chunks, vectors)
            completed += len(vectors)
            if progress:
                progress(completed, total)
        return completed

    def _prune_missing(self, workspace: Path, files: Sequence[Path]) -> int:
        present = {self._relative_key(workspace, path) for path in files}
        removed = 0
        for key in self.cache.indexed_paths():
            if key not in present:
                self.cache.remove_file(key)
                removed += 1
        return removed

    @staticmethod
    def _stage(cb: IndexingCallbacks, stage: str) -> None:
        if cb.stage:
            cb.stage(stage)

    @staticmethod
    def _relative_key(workspace: Path, path: Path) -> str:
        try:
            return path.resolve().relative_to(workspace).as_posix()
        except ValueError:
            return path.resolve().as_posix()

    @staticmethod
    def _embedding_batch_size() -> int:
        return max(1, settings.embedding_batch_size)
