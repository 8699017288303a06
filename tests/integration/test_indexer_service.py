from pathlib import Path

from smartcode.search import HybridSearch
from smartcode.services import IndexerService, IndexingCallbacks
from smartcode.settings import settings
from smartcode.storage import ChunkCache

VERSE_SOURCE = (
    "score_keeper := class(creative_device):\n"
    "    var TotalScore : int = 0\n"
    "\n"
    "    AddScore(Amount:int):void =\n"
    "        set TotalScore += Amount\n"
)


class DummyEmbedding:
    def __init__(self) -> None:
        self.calls = 0

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        return [[float(len(text)), 1.0] for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return [float(len(text)), 1.0]


def _workspace(tmp_path: Path) -> Path:
    workspace = tmp_path / "workspace"
    (workspace / "game").mkdir(parents=True)
    (workspace / "game" / "score.verse").write_text(VERSE_SOURCE)
    (workspace / "README.md").write_text("# Score keeper\n\nTracks the score of each round.\n")
    return workspace


def test_indexer_service_integration(tmp_path, monkeypatch):
    workspace = _workspace(tmp_path)
    monkeypatch.setattr(settings, "workspace_root", workspace)
    monkeypatch.setattr(settings, "embedding_model", "dummy-model")
    monkeypatch.setattr(settings, "embedding_batch_size", 2)

    cache = ChunkCache(tmp_path / "cache")
    embedding = DummyEmbedding()
    service = IndexerService(cache=cache, embedding_client=embedding, workspace=workspace)

    stages: list[str] = []
    seen: list[Path] = []
    callbacks = IndexingCallbacks(file=seen.append, stage=stages.append)
    result = service.index_workspace(callbacks=callbacks)

    assert result.files_scanned == 2
    assert result.files_indexed == 2
    assert result.files_unchanged == 0
    # class + field + method from the Verse file, one window from the README
    assert result.chunk_count == 4
    assert result.embeddings_indexed == 4
    assert stages == [
        "scan_started",
        "scan_completed",
        "chunk_started",
        "chunk_completed",
        "embedding_started",
        "embedding_completed",
    ]
    assert len(seen) == 2
    assert cache.indexed_paths() == ["README.md", "game/score.verse"]
    assert cache.stats()["embedding_model"] == "dummy-model"

    cache.close()


def test_reindex_skips_unchanged_and_prunes_deleted(tmp_path, monkeypatch):
    workspace = _workspace(tmp_path)
    monkeypatch.setattr(settings, "embedding_model", "dummy-model")

    cache = ChunkCache(tmp_path / "cache")
    service = IndexerService(cache=cache, embedding_client=DummyEmbedding(), workspace=workspace)
    service.index_workspace()

    second = service.index_workspace()
    assert second.files_unchanged == 2
    assert second.files_indexed == 0

    (workspace / "README.md").unlink()
    (workspace / "game" / "score.verse").write_text(VERSE_SOURCE + "\nBonus(Value:int):int =\n    Value * 2\n")
    third = service.index_workspace()
    assert third.files_removed == 1
    assert third.files_indexed == 1
    assert cache.indexed_paths() == ["game/score.verse"]

    forced = service.index_workspace(force=True)
    assert forced.files_indexed == 1
    assert forced.files_unchanged == 0

    cache.close()


def test_model_change_forces_reindex(tmp_path, monkeypatch):
    workspace = _workspace(tmp_path)
    cache = ChunkCache(tmp_path / "cache")
    service = IndexerService(cache=cache, embedding_client=DummyEmbedding(), workspace=workspace)

    monkeypatch.setattr(settings, "embedding_model", "model-one")
    service.index_workspace()
    monkeypatch.setattr(settings, "embedding_model", "model-two")
    result = service.index_workspace()

    assert result.files_indexed == 2
    assert result.files_unchanged == 0
    cache.close()


def test_indexed_chunks_are_searchable(tmp_path, monkeypatch):
    workspace = _workspace(tmp_path)
    monkeypatch.setattr(settings, "embedding_model", "dummy-model")
    cache = ChunkCache(tmp_path / "cache")
    embedding = DummyEmbedding()
    IndexerService(cache=cache, embedding_client=embedding, workspace=workspace).index_workspace()

    results = HybridSearch(cache, embedding_client=embedding).search("AddScore", max_results=3)
    assert results
    assert results[0].path == "game/score.verse"
    assert results[0].exact_match
    cache.close()
