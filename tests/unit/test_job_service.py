"""Unit tests for submission, idempotency, polling, and the worker queue."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from threading import Event

import pytest

from leveltext.errors import PdfValidationError
from leveltext.models.datatypes import Job, SubmitRequest
from leveltext.pipeline.queue import JobQueue
from leveltext.service import JobService, idempotency_key, progress_view, status_view
from leveltext.store.job_store import JobStore


_TEXT = "Alpha one two three.\n\nBeta one two three.\n\nGamma one two three."


def _request(source_ref: str = _TEXT, kind: str = "text", **overrides: str) -> SubmitRequest:
    values = {
        "source_kind": kind,
        "source_ref": source_ref,
        "target_language": "German",
        "level": "a2",
    }
    values.update(overrides)
    return SubmitRequest(**values)


@pytest.fixture
def service(make_pipeline, job_store: JobStore) -> Iterator[JobService]:
    """Provide a service running jobs through the fake pipeline."""

    pipeline = make_pipeline()
    queue = JobQueue(pipeline.run, max_workers=2)
    yield JobService(store=job_store, queue=queue)
    queue.shutdown(wait=True)


def test_idempotency_key_normalizes_target_and_level() -> None:
    """Case differences in target and level should map to the same key."""

    assert idempotency_key("url", "https://e.com", "German", "b1") == idempotency_key(
        "url", "https://e.com", " german ", "B1"
    )
    assert idempotency_key("url", "https://e.com", "German", "B1") != idempotency_key(
        "url", "https://e.com", "German", "B2"
    )


def test_submit_runs_job_and_poll_reports_completion(service: JobService) -> None:
    """A submitted job should run in the background and finish as completed."""

    response = service.submit(_request())

    assert response.status == "queued"
    view = service.wait(response.job_id, timeout=10)
    assert view.status == "completed"
    assert view.status_label == "Ready"
    assert view.progress is not None
    assert (view.progress.current, view.progress.total, view.progress.percent) == (3, 3, 100)
    assert view.error is None


def test_duplicate_submission_while_active_returns_same_job(
    make_pipeline, job_store: JobStore
) -> None:
    """Submitting the same request during a run must not create a second job."""

    started = Event()
    release = Event()
    pipeline = make_pipeline()

    def _blocking_run(job_id: str):  # type: ignore[no-untyped-def]
        started.set()
        release.wait(5.0)
        return pipeline.run(job_id)

    queue = JobQueue(_blocking_run, max_workers=2)
    service = JobService(store=job_store, queue=queue)
    try:
        first = service.submit(_request())
        assert started.wait(5.0)
        second = service.submit(_request(level="A2"))

        assert second.job_id == first.job_id
        assert len(job_store.list_jobs()) == 1
    finally:
        release.set()
        queue.shutdown(wait=True)


def test_duplicate_submission_of_completed_job_returns_it_without_rerun(
    service: JobService, translator
) -> None:
    """Completed jobs should be returned as-is on resubmission."""

    first = service.submit(_request())
    service.wait(first.job_id, timeout=10)
    calls = len(translator.calls)

    second = service.submit(_request())

    assert second.job_id == first.job_id
    assert second.status == "completed"
    assert second.completed_chunks == 3
    assert len(translator.calls) == calls


def test_resubmitting_failed_job_requeues_it(service: JobService, job_store: JobStore) -> None:
    """A failed job should be re-queued under the same id on resubmission."""

    first = service.submit(_request("tiny"))
    failed = service.wait(first.job_id, timeout=10)
    assert failed.status == "failed"
    assert failed.error is not None
    assert failed.error.code == "CONTENT_TOO_SHORT"
    assert failed.error.retryable is False

    second = service.submit(_request("tiny"))
    again = service.wait(second.job_id, timeout=10)

    assert second.job_id == first.job_id
    assert again.retry_count == 2


def test_resume_requeues_failed_job_by_id(service: JobService) -> None:
    """Resume should run a failed job again."""

    response = service.submit(_request("tiny"))
    service.wait(response.job_id, timeout=10)

    resumed = service.resume(response.job_id)

    assert resumed.job_id == response.job_id
    assert resumed.status == "queued"
    assert service.wait(response.job_id, timeout=10).retry_count == 2


def _translating_record(job_store: JobStore) -> Job:
    """Persist an in-flight job as another process would leave it mid-run."""

    return job_store.create(
        Job(
            id="elsewhere",
            source_kind="text",
            source_ref=_TEXT,
            target_language="German",
            level="A2",
            idempotency_key=idempotency_key("text", _TEXT.strip(), "German", "A2"),
            status="translating",
            chunks=_TEXT.split("\n\n"),
            total_chunks=3,
            completed_chunks=1,
        )
    )


def test_fresh_job_running_in_another_process_is_not_requeued(job_store: JobStore) -> None:
    """A recently updated unfinished job must not get a second run from a new service."""

    _translating_record(job_store)
    runs: list[str] = []
    queue = JobQueue(runs.append, max_workers=1)
    service = JobService(store=job_store, queue=queue)
    try:
        submitted = service.submit(_request())
        resumed = service.resume("elsewhere")
    finally:
        queue.shutdown(wait=True)

    assert (submitted.job_id, submitted.status, submitted.completed_chunks) == (
        "elsewhere",
        "translating",
        1,
    )
    assert resumed.status == "translating"
    assert runs == []
    assert job_store.load("elsewhere").status == "translating"


def test_stale_unfinished_job_is_requeued(job_store: JobStore) -> None:
    """An unfinished job whose record stopped changing should be taken over."""

    _translating_record(job_store)
    runs: list[str] = []
    queue = JobQueue(runs.append, max_workers=1)
    service = JobService(store=job_store, queue=queue, stale_after_seconds=0.0)
    try:
        response = service.submit(_request())
    finally:
        queue.shutdown(wait=True)

    assert response.job_id == "elsewhere"
    assert response.status == "queued"
    assert runs == ["elsewhere"]


@pytest.mark.parametrize(
    ("request_", "message"),
    [
        (_request(kind="audio"), "Unsupported source kind"),
        (_request(level="D1"), "Unsupported level"),
        (_request(target_language="  "), "Target language"),
        (_request("   "), "must not be empty"),
        (_request("ftp://example.com/a", kind="url"), "expected an http"),
    ],
)
def test_submit_rejects_invalid_requests(
    service: JobService, request_: SubmitRequest, message: str
) -> None:
    """Invalid submissions should be rejected before any job is created."""

    with pytest.raises(ValueError, match=message):
        service.submit(request_)
    assert service.store.list_jobs() == []


def test_submit_validates_pdf_before_creating_job(service: JobService, tmp_path: Path) -> None:
    """Invalid PDF uploads should fail synchronously."""

    fake_pdf = tmp_path / "notes.pdf"
    fake_pdf.write_bytes(b"not a pdf" * 20)

    with pytest.raises(PdfValidationError, match="valid PDF"):
        service.submit(_request(str(fake_pdf), kind="pdf"))
    with pytest.raises(PdfValidationError, match="Could not read file"):
        service.submit(_request(str(tmp_path / "missing.pdf"), kind="pdf"))


def test_progress_view_is_absent_before_segmentation(make_text_job) -> None:
    """Jobs without a chunk count should report no progress."""

    job = make_text_job("text")

    assert progress_view(job) is None
    assert status_view(job).status_label == "Waiting to start..."


def test_progress_view_rounds_percent(make_text_job) -> None:
    """Percent should be the rounded completed share."""

    job = make_text_job("text", total_chunks=3, completed_chunks=2)

    progress = progress_view(job)

    assert progress is not None
    assert progress.percent == 67


def test_job_queue_rejects_second_active_run() -> None:
    """A job id can only have one active run at a time."""

    release = Event()
    queue = JobQueue(lambda job_id: release.wait(5.0), max_workers=2)
    try:
        assert queue.submit("a") is True
        assert queue.submit("a") is False
        assert queue.is_active("a") is True
    finally:
        release.set()
        queue.shutdown(wait=True)
    assert queue.is_active("a") is False
