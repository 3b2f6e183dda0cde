"""Job submission and polling facade.

Responsibilities:
- Validate submissions and derive the idempotency key of each request.
- Reuse existing jobs for duplicate submissions; re-queue failed or stranded ones.
- Build lightweight status views for polling callers.

Key types:
- `JobService`: `submit`, `poll`, `resume`, and `wait` operations.
"""

from __future__ import annotations

from hashlib import sha256
from pathlib import Path
from threading import Lock
from urllib.parse import urlparse
import uuid

from .errors import PdfValidationError, is_retryable_code
from .io.pdf_text_extractor import validate_pdf_upload
from .models.datatypes import (
    CEFR_LEVELS,
    SOURCE_KINDS,
    SOURCE_PDF,
    SOURCE_URL,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_LABELS,
    STATUS_QUEUED,
    Job,
    JobErrorView,
    JobProgress,
    JobStatusView,
    SubmitRequest,
    SubmitResponse,
)
from .pipeline.queue import JobQueue
from .store.job_store import JobStore, seconds_since


DEFAULT_STALE_AFTER_SECONDS = 900.0


def idempotency_key(
    source_kind: str,
    source_identity: str,
    target_language: str,
    level: str,
) -> str:
    """Return the stable key identifying one (source, target, level) request."""

    material = "\x1f".join(
        (source_kind, source_identity, target_language.strip().lower(), level.strip().upper())
    )
    return sha256(material.encode("utf-8")).hexdigest()


def progress_view(job: Job) -> JobProgress | None:
    """Return progress counters, or `None` before the chunk count is known."""

    if job.total_chunks <= 0:
        return None
    percent = round(job.completed_chunks / job.total_chunks * 100)
    return JobProgress(current=job.completed_chunks, total=job.total_chunks, percent=percent)


def status_view(job: Job) -> JobStatusView:
    """Build the polling view of a job."""

    error = None
    if job.status == STATUS_FAILED:
        error = JobErrorView(
            message=job.error_message or "Translation failed.",
            code=job.error_code or "INTERNAL_ERROR",
            retryable=is_retryable_code(job.error_code),
        )
    return JobStatusView(
        job_id=job.id,
        status=job.status,
        status_label=STATUS_LABELS.get(job.status, job.status),
        progress=progress_view(job),
        title=job.title,
        error=error,
        retry_count=job.retry_count,
    )


class JobService:
    """Submit jobs to the background queue and report their status."""

    def __init__(
        self,
        *,
        store: JobStore,
        queue: JobQueue,
        stale_after_seconds: float = DEFAULT_STALE_AFTER_SECONDS,
    ) -> None:
        """Initialize the service with its store, worker queue, and stale-run threshold."""

        self.store = store
        self.queue = queue
        self.stale_after_seconds = stale_after_seconds
        self._submit_lock = Lock()

    def submit(self, request: SubmitRequest) -> SubmitResponse:
        """Create or reuse a job for `request` and make sure it is processing.

        Raises:
            ValueError: When the request fields are invalid.
            PdfValidationError: When a PDF submission fails validation.
        """

        source_ref, identity = self._validated_source(request)
        level = request.level.strip().upper()
        target_language = request.target_language.strip()
        key = idempotency_key(request.source_kind, identity, target_language, level)

        with self._submit_lock:
            existing = self.store.find_by_key(key)
            if existing is not None:
                if not self._can_requeue(existing):
                    return self._response(existing)
                return self._requeue(existing)

            job = Job(
                id=uuid.uuid4().hex,
                source_kind=request.source_kind,
                source_ref=source_ref,
                target_language=target_language,
                level=level,
                idempotency_key=key,
            )
            self.store.create(job)
            self.queue.submit(job.id)
        return self._response(job)

    def resume(self, job_id: str) -> SubmitResponse:
        """Re-queue a failed or stranded job by id.

        Raises:
            JobNotFoundError: When `job_id` is unknown.
        """

        with self._submit_lock:
            job = self.store.load(job_id)
            if not self._can_requeue(job):
                return self._response(job)
            return self._requeue(job)

    def poll(self, job_id: str) -> JobStatusView:
        """Return the current status view of a job.

        Raises:
            JobNotFoundError: When `job_id` is unknown.
        """

        return status_view(self.store.load(job_id))

    def wait(self, job_id: str, timeout: float | None = None) -> JobStatusView:
        """Block until the active run of `job_id` finishes and return its status."""

        self.queue.wait(job_id, timeout=timeout)
        return self.poll(job_id)

    def shutdown(self) -> None:
        """Wait for active runs and stop the worker queue."""

        self.queue.shutdown(wait=True)

    def _can_requeue(self, job: Job) -> bool:
        """Return whether no run of `job` can still be making progress.

        Runs started by another process are invisible to the local queue, so an
        unfinished job is only taken over once its record stops being updated.
        """

        if job.status == STATUS_COMPLETED or self.queue.is_active(job.id):
            return False
        if job.status == STATUS_FAILED:
            return True
        return seconds_since(job.updated_at) >= self.stale_after_seconds

    def _requeue(self, job: Job) -> SubmitResponse:
        """Reset a failed or stranded job to `queued` and schedule it."""

        job.status = STATUS_QUEUED
        job.error_message = None
        job.error_code = None
        self.store.save(job)
        self.queue.submit(job.id)
        return self._response(job)

    @staticmethod
    def _response(job: Job) -> SubmitResponse:
        """Build the submission acknowledgement for a job."""

        return SubmitResponse(
            job_id=job.id,
            status=job.status,
            completed_chunks=job.completed_chunks,
            total_chunks=job.total_chunks,
        )

    @staticmethod
    def _validated_source(request: SubmitRequest) -> tuple[str, str]:
        """Validate request fields and return `(source_ref, source_identity)`."""

        if request.source_kind not in SOURCE_KINDS:
            raise ValueError(
                f"Unsupported source kind `{request.source_kind}`; "
                f"supported: {', '.join(SOURCE_KINDS)}."
            )
        if request.level.strip().upper() not in CEFR_LEVELS:
            raise ValueError(
                f"Unsupported level `{request.level}`; supported: {', '.join(CEFR_LEVELS)}."
            )
        if not request.target_language.strip():
            raise ValueError("Target language must be a non-empty string.")

        if request.source_kind == SOURCE_URL:
            url = request.source_ref.strip()
            parsed = urlparse(url)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ValueError(f"Invalid article URL `{url}`; expected an http(s) URL.")
            return url, url

        if request.source_kind == SOURCE_PDF:
            path = Path(request.source_ref).expanduser().resolve()
            try:
                data = path.read_bytes()
            except OSError as exc:
                raise PdfValidationError(f"Could not read file: {path.name}.") from exc
            validate_pdf_upload(path.name, data)
            return str(path), sha256(data).hexdigest()

        text = request.source_ref.strip()
        if not text:
            raise ValueError("Text to translate must not be empty.")
        return request.source_ref, text

