"""Shared pytest fixtures for the Leveltext test suite."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from threading import Lock
from typing import Callable

import pytest
from loguru import logger

from leveltext.models.datatypes import SOURCE_TEXT, ChunkBand, Job, TranslatedChunk
from leveltext.pipeline.orchestrator import TranslationPipeline
from leveltext.pipeline.sources import TextSource
from leveltext.pipeline.waves import WaveScheduler
from leveltext.store.job_store import JobStore


class RecordingTranslator:
    """Deterministic translator that records calls and fails on marked chunks."""

    def __init__(self) -> None:
        """Initialize call log and failure markers."""

        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}
        self._lock = Lock()

    def translate(self, text: str, *, target_language: str, level: str) -> TranslatedChunk:
        """Return a tagged translation, or raise for texts containing a failure marker."""

        with self._lock:
            self.calls.append(text)
        for marker, error in self.failures.items():
            if marker in text:
                raise error
        return TranslatedChunk(
            original=text,
            translated=f"[{target_language} {level}] {text}",
            bridge=f"bridge: {text[:20]}",
        )


class StaticDetector:
    """Detector that always answers with one language."""

    def __init__(self, language: str = "English") -> None:
        """Initialize the fixed answer."""

        self.language = language
        self.calls = 0

    def detect(self, text: str) -> str:
        """Return the fixed language."""

        self.calls += 1
        return self.language


@pytest.fixture(autouse=True)
def _reset_log_sinks() -> Iterator[None]:
    """Drop log sinks added by a test so later tests never write to closed streams."""

    yield
    logger.remove()


@pytest.fixture
def job_store(tmp_path: Path) -> JobStore:
    """Provide an empty job store rooted in a temporary directory."""

    return JobStore(tmp_path / "data")


@pytest.fixture
def translator() -> RecordingTranslator:
    """Provide a recording translator."""

    return RecordingTranslator()


@pytest.fixture
def detector() -> StaticDetector:
    """Provide a detector answering `English`."""

    return StaticDetector()


@pytest.fixture
def small_band() -> ChunkBand:
    """Provide a tiny band so short test texts produce several chunks."""

    return ChunkBand(min_words=2, target_words=4, max_words=6)


@pytest.fixture
def make_pipeline(
    job_store: JobStore,
    translator: RecordingTranslator,
    detector: StaticDetector,
    small_band: ChunkBand,
) -> Callable[..., TranslationPipeline]:
    """Build text-source pipelines around the shared fakes."""

    def _factory(wave_size: int = 2) -> TranslationPipeline:
        return TranslationPipeline(
            store=job_store,
            sources={SOURCE_TEXT: TextSource(small_band, min_content_chars=10)},
            detector=detector,
            translator=translator,
            scheduler=WaveScheduler(wave_size=wave_size, chunk_timeout_seconds=5.0),
        )

    return _factory


@pytest.fixture
def make_text_job(job_store: JobStore) -> Callable[..., Job]:
    """Create and persist a queued text job."""

    def _factory(text: str, job_id: str = "job1", **fields: object) -> Job:
        job = Job(
            id=job_id,
            source_kind=SOURCE_TEXT,
            source_ref=text,
            target_language="German",
            level="A2",
            idempotency_key=f"key-{job_id}",
            **fields,
        )
        return job_store.create(job)

    return _factory


@pytest.fixture
def three_paragraph_text() -> str:
    """Provide text that segments into three chunks with the small band."""

    return "\n\n".join(
        [
            "Alpha one two three.",
            "Beta one two three.",
            "Gamma one two three.",
        ]
    )
