"""
FastAPI entrypoint for workspace indexing and hybrid code search.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, status
from pydantic import BaseModel

from .dependencies import require_api_key
from .jobs import INDEX_JOB, JobInfo, JobManager
from ..chunking import chunk_source, get_chunking_params
from ..logger import get_logger
from ..search import HybridSearch
from ..services import IndexerService, IndexingCallbacks, IndexingResult
from ..settings import settings
from ..storage import ChunkCache
from ..version import __version__

log = get_logger(__name__)


class ServiceContainer:
    """Lazily built services, so importing the app touches no disk."""

    def __init__(
        self,
        cache: Optional[ChunkCache] = None,
        indexer: Optional[IndexerService] = None,
        search: Optional[HybridSearch] = None,
    ) -> None:
        self._cache = cache
        self._indexer = indexer
        self._search = search

    @property
    def cache(self) -> ChunkCache:
        if self._cache is None:
            self._cache = ChunkCache()
        return self._cache

    @property
    def indexer(self) -> IndexerService:
        if self._indexer is None:
            self._indexer = IndexerService(cache=self.cache)
        return self._indexer

    @property
    def search(self) -> HybridSearch:
        if self._search is None:
            self._search = HybridSearch(self.cache)
        return self._search


app = FastAPI(title="Smart Code Search", version=__version__)
services = ServiceContainer()
job_manager = JobManager()


class StatusResponse(BaseModel):
    version: str
    workspace: str
    files: int
    chunks: int
    embedding_model: Optional[str] = None
    indexing: bool = False


class SearchRequest(BaseModel):
    query: str
    max_results: Optional[int] = None


class SearchHit(BaseModel):
    path: str
    start_line: int
    end_line: int
    kind: str
    signature: str
    text: str
    score: float
    similarity: float
    exact_match: bool


class SearchResponse(BaseModel):
    query: str
    results: List[SearchHit]


class IndexRequest(BaseModel):
    root: Optional[str] = None
    force: bool = False


class IndexResponse(BaseModel):
    workspace: str
    files_scanned: int
    files_indexed: int
    files_unchanged: int
    files_removed: int
    chunk_count: int
    embeddings_indexed: int
    failed_files: List[str] = []


class ChunkRequest(BaseModel):
    content: str
    path: str = "snippet.verse"


class ChunkModel(BaseModel):
    start_line: int
    end_line: int
    kind: str
    signature: str
    token_count: int
    parent: Optional[str] = None
    continuation: bool = False
    text: str


class JobResponse(BaseModel):
    id: str
    type: str
    status: str
    stage: Optional[str]
    progress: Dict[str, Any]
    result: Optional[IndexResponse]
    error: Optional[str]
    duration_ms: float
    created_at: datetime
    updated_at: datetime


@app.get("/healthz")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/status", response_model=StatusResponse, dependencies=[Depends(require_api_key)])
def workspace_status() -> StatusResponse:
    stats = services.cache.stats()
    return StatusResponse(
        version=__version__,
        workspace=str(services.indexer.workspace),
        files=int(stats["files"]),
        chunks=int(stats["chunks"]),
        embedding_model=stats.get("embedding_model"),
        indexing=job_manager.active(INDEX_JOB) is not None,
    )


@app.post("/search", response_model=SearchResponse, dependencies=[Depends(require_api_key)])
def search(request: SearchRequest) -> SearchResponse:
    try:
        results = services.search.search(request.query, max_results=request.max_results)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        log.error("search_failed", query=request.query, error=str(exc))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return SearchResponse(
        query=request.query,
        results=[SearchHit(**result.to_dict()) for result in results],
    )


@app.post("/index", response_model=IndexResponse, dependencies=[Depends(require_api_key)])
def index_workspace(request: IndexRequest) -> IndexResponse:
    root = _resolve_root(request.root)
    job = _claim_index_job(request)
    job_manager.set_status(job.id, "running", stage="indexing")
    try:
        result = services.indexer.index_workspace(root=root, force=request.force)
    except Exception as exc:
        job_manager.fail(job.id, error=str(exc))
        raise
    response = _result_to_response(result)
    job_manager.complete(job.id, response.model_dump())
    return response


@app.post("/jobs/index", response_model=JobResponse, dependencies=[Depends(require_api_key)])
def enqueue_index(request: IndexRequest, background_tasks: BackgroundTasks) -> JobResponse:
    # Validate inputs up front so failures reach the client immediately.
    _resolve_root(request.root)
    job = _claim_index_job(request)
    background_tasks.add_task(_run_index_job, job.id, request.model_dump())
    return _job_to_response(job)


@app.get("/jobs", response_model=List[JobResponse], dependencies=[Depends(require_api_key)])
def list_jobs() -> List[JobResponse]:
    return [_job_to_response(job) for job in job_manager.list()]


@app.get("/jobs/{job_id}", response_model=JobResponse, dependencies=[Depends(require_api_key)])
def get_job(job_id: str) -> JobResponse:
    job = job_manager.get(job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return _job_to_response(job)


@app.delete("/cache", dependencies=[Depends(require_api_key)])
def clear_cache() -> Dict[str, str]:
    if job_manager.active(INDEX_JOB) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Cannot clear the cache while indexing"
        )
    services.cache.reset()
    return {"status": "cleared"}


@app.post("/chunk", response_model=List[ChunkModel], dependencies=[Depends(require_api_key)])
def preview_chunks(request: ChunkRequest) -> List[ChunkModel]:
    params = get_chunking_params(
        settings.embedding_model,
        target_override=settings.chunk_target_tokens,
        overlap_override=settings.chunk_overlap_tokens,
    )
    chunks = chunk_source(
        request.content,
        Path(request.path),
        params,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
    )
    return [ChunkModel(**chunk.to_dict()) for chunk in chunks]


def _claim_index_job(request: IndexRequest) -> JobInfo:
    job = job_manager.create_if_idle(
        INDEX_JOB, metadata={"root": request.root, "force": request.force}
    )
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="An index job is already running"
        )
    return job


def _resolve_root(root: Optional[str]) -> Optional[Path]:
    if root is None:
        return None
    root_path = Path(root)
    if not root_path.is_dir():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Workspace not found: {root_path}",
        )
    return root_path


def _run_index_job(job_id: str, payload: Dict[str, Any]) -> None:
    job_manager.set_status(job_id, "running", stage="initializing")
    try:
        request = IndexRequest(**payload)
        root = _resolve_root(request.root)
        processed = 0

        def on_file(path: Path) -> None:
            nonlocal processed
            processed += 1
            job_manager.update_progress(job_id, files_processed=processed, last_file=str(path))

        def on_stage(stage: str) -> None:
            job_manager.update_stage(job_id, stage)

        def on_embed_progress(completed: int, total: int) -> None:
            job_manager.update_progress(job_id, embed_completed=completed, embed_total=total)

        callbacks = IndexingCallbacks(file=on_file, stage=on_stage, embed_progress=on_embed_progress)
        result = services.indexer.index_workspace(root=root, force=request.force, callbacks=callbacks)
        job_manager.complete(job_id, _result_to_response(result).model_dump())
    except HTTPException as exc:
        job_manager.fail(job_id, error=exc.detail if isinstance(exc.detail, str) else str(exc.detail))
    except Exception as exc:  # pragma: no cover - surfaced through the job record
        log.error("index_job_failed", job_id=job_id, error=str(exc))
        job_manager.fail(job_id, error=str(exc))


def _result_to_response(result: IndexingResult) -> IndexResponse:
    return IndexResponse(
        workspace=str(result.workspace),
        files_scanned=result.files_scanned,
        files_indexed=result.files_indexed,
        files_unchanged=result.files_unchanged,
        files_removed=result.files_removed,
        chunk_count=result.chunk_count,
        embeddings_indexed=result.embeddings_indexed,
        failed_files=result.failed_files,
    )


def _job_to_response(job: JobInfo) -> JobResponse:
    result = IndexResponse(**job.result) if job.result else None
    return JobResponse(
        id=job.id,
        type=job.type,
        status=job.status,
        stage=job.stage,
        progress=job.progress,
        result=result,
        error=job.error,
        duration_ms=job.duration_ms(),
        created_at=datetime.fromtimestamp(job.created_at),
        updated_at=datetime.fromtimestamp(job.updated_at),
    )


def run() -> None:
    """Console entrypoint that serves the API with uvicorn."""
    uvicorn.run(
        "smartcode.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )
