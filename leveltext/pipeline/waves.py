"""Bounded-concurrency translation waves.

Responsibilities:
- Split the remaining chunk range into waves of at most `wave_size` chunks.
- Run one wave on a thread pool and capture every chunk outcome independently.
- Re-associate outcomes with chunk positions regardless of completion order.

A failed or timed-out chunk never fails the wave; its original text is carried
through as a degraded record.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from time import monotonic
from typing import Callable, Sequence

from ..errors import JobError, OperationTimeoutError, to_job_error
from ..llm.openai_client import ProviderError
from ..models.datatypes import TranslatedChunk


TranslateFn = Callable[[str], TranslatedChunk]


@dataclass(frozen=True, slots=True)
class ChunkOutcome:
    """Result of one chunk translation within a wave.

    Attributes:
        index: Absolute chunk position.
        chunk: Translated record, or a passthrough when translation failed.
        error: Captured failure, `None` when the call returned normally.
    """

    index: int
    chunk: TranslatedChunk
    error: JobError | None = None


def wave_bounds(total: int, start: int, wave_size: int) -> list[tuple[int, int]]:
    """Return `[start, stop)` ranges covering `start..total` in order."""

    if wave_size <= 0:
        raise ValueError("`wave_size` must be a positive integer.")
    return [(index, min(index + wave_size, total)) for index in range(start, total, wave_size)]


class WaveScheduler:
    """Run translation waves with bounded parallelism."""

    def __init__(self, wave_size: int = 15, chunk_timeout_seconds: float | None = None) -> None:
        """Initialize the wave size and optional per-chunk deadline."""

        if wave_size <= 0:
            raise ValueError("`wave_size` must be a positive integer.")
        self.wave_size = wave_size
        self.chunk_timeout_seconds = chunk_timeout_seconds

    def bounds(self, total: int, start: int) -> list[tuple[int, int]]:
        """Return the wave ranges for the remaining chunks."""

        return wave_bounds(total, start, self.wave_size)

    def run_wave(
        self,
        texts: Sequence[str],
        start_index: int,
        translate: TranslateFn,
    ) -> list[ChunkOutcome]:
        """Translate one wave and return outcomes in chunk order."""

        if len(texts) > self.wave_size:
            raise ValueError(f"Wave of {len(texts)} chunks exceeds wave size {self.wave_size}.")
        if not texts:
            return []

        executor = ThreadPoolExecutor(
            max_workers=len(texts), thread_name_prefix="leveltext-wave"
        )
        try:
            futures = [executor.submit(translate, text) for text in texts]
            deadline = (
                monotonic() + self.chunk_timeout_seconds
                if self.chunk_timeout_seconds is not None
                else None
            )
            return [
                self._collect(start_index + offset, texts[offset], future, deadline)
                for offset, future in enumerate(futures)
            ]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _collect(
        self,
        index: int,
        text: str,
        future: Future[TranslatedChunk],
        deadline: float | None,
    ) -> ChunkOutcome:
        """Wait for one chunk and convert any failure into a passthrough outcome."""

        remaining = None if deadline is None else max(0.0, deadline - monotonic())
        try:
            chunk = future.result(timeout=remaining)
        except FutureTimeoutError:
            future.cancel()
            return ChunkOutcome(
                index=index,
                chunk=TranslatedChunk.passthrough(text),
                error=OperationTimeoutError("chunk translation", self.chunk_timeout_seconds or 0.0),
            )
        except ProviderError as exc:
            return ChunkOutcome(
                index=index,
                chunk=TranslatedChunk.passthrough(text),
                error=exc.as_job_error(timeout_seconds=self.chunk_timeout_seconds),
            )
        except Exception as exc:
            return ChunkOutcome(
                index=index,
                chunk=TranslatedChunk.passthrough(text),
                error=to_job_error(exc),
            )
        return ChunkOutcome(index=index, chunk=chunk)
