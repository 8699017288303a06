import threading

from smartcode.api.jobs import INDEX_JOB, JobManager


def test_only_one_open_job_per_type() -> None:
    manager = JobManager()
    first = manager.create_if_idle(INDEX_JOB, metadata={"force": True})
    assert first is not None
    assert first.status == "queued"
    assert first.progress == {"metadata": {"force": True}}

    assert manager.create_if_idle(INDEX_JOB) is None
    manager.set_status(first.id, "running", stage="scanning")
    assert manager.create_if_idle(INDEX_JOB) is None
    assert manager.active(INDEX_JOB) is first

    assert manager.create_if_idle("reindex") is not None


def test_finished_jobs_free_the_slot() -> None:
    manager = JobManager()
    first = manager.create_if_idle(INDEX_JOB)
    manager.complete(first.id, {"chunk_count": 3})
    second = manager.create_if_idle(INDEX_JOB)
    assert second is not None
    manager.fail(second.id, error="disk full")
    third = manager.create_if_idle(INDEX_JOB)
    assert third is not None

    assert [job.id for job in manager.list()] == [first.id, second.id, third.id]
    assert manager.get(first.id).result == {"chunk_count": 3}
    assert manager.get(second.id).error == "disk full"
    assert manager.active(INDEX_JOB) is third


def test_concurrent_admission_yields_a_single_job() -> None:
    manager = JobManager()
    barrier = threading.Barrier(16)
    admitted = []

    def worker() -> None:
        barrier.wait()
        job = manager.create_if_idle(INDEX_JOB)
        if job is not None:
            admitted.append(job.id)

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(admitted) == 1
    assert [job.id for job in manager.list()] == admitted


def test_progress_and_stage_updates() -> None:
    manager = JobManager()
    job = manager.create_if_idle(INDEX_JOB)
    manager.update_stage(job.id, "embedding")
    manager.update_progress(job.id, embed_completed=2, embed_total=5)
    current = manager.get(job.id)
    assert current.stage == "embedding"
    assert current.progress["embed_completed"] == 2
    assert current.progress["embed_total"] == 5
    assert current.duration_ms() >= 0.0
    assert manager.get("missing") is None
