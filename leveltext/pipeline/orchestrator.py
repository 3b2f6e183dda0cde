"""Job state machine for the leveled translation pipeline.

Responsibilities:
- Drive one job through `fetching -> extracting -> detecting -> translating -> completed`.
- Persist the job after every phase and after every translation wave.
- Resume from the last checkpoint and record failures without losing progress.

Key types:
- `TranslationPipeline`: runs a job by id against a `JobStore`.
"""

from __future__ import annotations

from functools import partial
from typing import Mapping

from ..errors import ExtractionError, JobError, JobNotFoundError, to_job_error
from ..llm.detector import LanguageDetector
from ..llm.translator import ChunkTranslator
from ..models.datatypes import (
    STATUS_COMPLETED,
    STATUS_DETECTING,
    STATUS_EXTRACTING,
    STATUS_FAILED,
    STATUS_FETCHING,
    STATUS_QUEUED,
    STATUS_TRANSLATING,
    Job,
)
from ..store.job_store import JobStore
from ..telemetry.logger import JobLogger
from ..text.segmenter import Segmenter
from ..text.words import count_words
from .resume import plan_resume
from .sources import SourceAdapter
from .waves import WaveScheduler


class TranslationPipeline:
    """Run persisted jobs through the phase state machine."""

    def __init__(
        self,
        *,
        store: JobStore,
        sources: Mapping[str, SourceAdapter],
        detector: LanguageDetector,
        translator: ChunkTranslator,
        scheduler: WaveScheduler | None = None,
    ) -> None:
        """Initialize the pipeline with its collaborators."""

        self.store = store
        self.sources = dict(sources)
        self.detector = detector
        self.translator = translator
        self.scheduler = scheduler if scheduler is not None else WaveScheduler()

    def run(self, job_id: str) -> Job:
        """Run or resume a job and return its final persisted state.

        Phase failures are recorded on the job (`failed`, error code, message,
        incremented retry count) rather than raised.

        Raises:
            JobNotFoundError: When `job_id` has no persisted record.
        """

        job = self.store.load(job_id)
        plan = plan_resume(job)
        if plan.entry_phase == STATUS_COMPLETED:
            return job

        log = JobLogger(job.id)
        job.error_message = None
        job.error_code = None
        try:
            if plan.entry_phase == STATUS_FETCHING:
                self._prepare_chunks(job, log)
            else:
                log.resume(plan.entry_phase, plan.start_index, job.total_chunks)
                if plan.reset_reason is not None:
                    log.resume_reset(plan.reset_reason)
                    job.translated_chunks = []
                    job.total_chunks = len(job.chunks or [])
                job.completed_chunks = plan.start_index
                job.status = STATUS_TRANSLATING
                self.store.save(job)
            self._translate(job, log)
            self._complete(job, log)
        except JobNotFoundError:
            raise
        except Exception as exc:
            phase = plan.entry_phase if job.status in (STATUS_QUEUED, STATUS_FAILED) else job.status
            self._fail(job, phase, exc, log)
        return job

    def _enter(self, job: Job, status: str, log: JobLogger) -> None:
        """Move the job into a phase and persist the transition."""

        job.status = status
        self.store.save(job)
        log.phase_start(status)

    def _prepare_chunks(self, job: Job, log: JobLogger) -> None:
        """Run fetch, extract, detect, and segment, persisting after each step."""

        source = self._source_for(job)

        self._enter(job, STATUS_FETCHING, log)
        fetched = source.fetch(job)
        self.store.save(job)
        log.phase_complete(STATUS_FETCHING, strategy=fetched.strategy)

        self._enter(job, STATUS_EXTRACTING, log)
        content = source.extract(job, fetched)
        job.title = content.title
        self.store.save(job)
        log.phase_complete(
            STATUS_EXTRACTING,
            chars=len(content.plain_text),
            skipped_extraction=content.skipped_extraction,
        )

        self._enter(job, STATUS_DETECTING, log)
        job.source_language = self.detector.detect(content.plain_text)
        self.store.save(job)
        log.phase_complete(STATUS_DETECTING, language=job.source_language)

        chunks = Segmenter(source.band).to_chunks(
            content.plain_text, single_chunk=content.single_chunk
        )
        if not chunks:
            raise ExtractionError("no text left to translate after segmentation")
        job.chunks = chunks
        job.total_chunks = len(chunks)
        job.single_chunk = content.single_chunk
        job.translated_chunks = []
        job.completed_chunks = 0
        job.status = STATUS_TRANSLATING
        self.store.save(job)
        log.phase_start(STATUS_TRANSLATING, chunks=len(chunks), single_chunk=content.single_chunk)

    def _translate(self, job: Job, log: JobLogger) -> None:
        """Translate the remaining chunks wave by wave, persisting after each wave."""

        chunks = job.chunks or []
        translate = partial(
            self.translator.translate,
            target_language=job.target_language,
            level=job.level,
        )
        for wave_index, (start, stop) in enumerate(
            self.scheduler.bounds(len(chunks), job.completed_chunks)
        ):
            log.wave_start(wave_index, start, stop - start)
            outcomes = self.scheduler.run_wave(chunks[start:stop], start, translate)
            degraded = 0
            for outcome in outcomes:
                if outcome.chunk.degraded:
                    degraded += 1
                    reason = (
                        outcome.error.code if outcome.error is not None else "unparseable_response"
                    )
                    log.chunk_degraded(outcome.index, reason)
            job.translated_chunks = job.translated_chunks + [outcome.chunk for outcome in outcomes]
            job.completed_chunks = stop
            self.store.save(job)
            log.wave_complete(wave_index, job.completed_chunks, job.total_chunks, degraded)

    def _complete(self, job: Job, log: JobLogger) -> None:
        """Persist the final translation, word count, and full progress in one save."""

        job.word_count = sum(count_words(item.translated) for item in job.translated_chunks)
        job.completed_chunks = job.total_chunks
        job.status = STATUS_COMPLETED
        self.store.save(job)
        log.phase_complete(STATUS_TRANSLATING, words=job.word_count)

    def _fail(self, job: Job, phase: str, exc: Exception, log: JobLogger) -> None:
        """Record a phase failure while keeping accumulated translations."""

        error: JobError = to_job_error(exc)
        job.status = STATUS_FAILED
        job.error_message = error.user_message
        job.error_code = error.code
        job.retry_count += 1
        self.store.save(job)
        log.phase_failure(phase, error.code, error.retryable, type(exc).__name__)

    def _source_for(self, job: Job) -> SourceAdapter:
        """Return the adapter for the job's source kind."""

        try:
            return self.sources[job.source_kind]
        except KeyError as exc:
            raise ExtractionError(f"unsupported source kind `{job.source_kind}`") from exc
