"""Structured job logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level logs for job runs.
- Keep context rendering stable so log lines can be grepped and diffed.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [f"{key}={_sanitize_context_value(context[key])}" for key in sorted(context)]
    return " " + " ".join(tokens)


def configure_logging(sink: TextIO | None = None, level: str = "INFO") -> None:
    """Route loguru output to `sink` with a bare message format."""

    logger.remove()
    logger.add(sink or sys.stderr, format="{message}", level=level, colorize=False)


class JobLogger:
    """Emit deterministic phase and wave events for one job."""

    def __init__(self, job_id: str) -> None:
        """Bind the logger to a job id."""

        self.job_id = job_id

    def _emit(self, level: str, event: str, phase: str, **context: object) -> None:
        """Emit one structured log line."""

        line = (
            f"[job] level={level} job={_sanitize_context_value(self.job_id)} "
            f"phase={phase} event={event}{_format_context(context)}"
        )
        logger.log(level, line)

    def phase_start(self, phase: str, **context: object) -> None:
        """Emit a phase-start event."""

        self._emit("INFO", "start", phase, **context)

    def phase_complete(self, phase: str, **context: object) -> None:
        """Emit a phase-complete event."""

        self._emit("INFO", "complete", phase, **context)

    def phase_failure(self, phase: str, code: str, retryable: bool, error_type: str) -> None:
        """Emit a phase-failure event without sensitive payload details."""

        self._emit(
            "ERROR",
            "failure",
            phase,
            code=code,
            error_type=error_type,
            retryable=str(retryable).lower(),
        )

    def resume(self, phase: str, completed_chunks: int, total_chunks: int) -> None:
        """Emit the re-entry point chosen for a run."""

        self._emit("INFO", "resume", phase, completed=completed_chunks, total=total_chunks)

    def resume_reset(self, reason: str) -> None:
        """Emit a translation-progress reset caused by inconsistent persisted data."""

        self._emit("WARNING", "resume_reset", "translating", reason=reason)

    def wave_start(self, wave_index: int, start: int, size: int) -> None:
        """Emit a wave-start event."""

        self._emit("INFO", "wave_start", "translating", wave=wave_index, start=start, size=size)

    def wave_complete(self, wave_index: int, completed: int, total: int, degraded: int) -> None:
        """Emit a wave-complete event with persisted progress."""

        self._emit(
            "INFO",
            "wave_complete",
            "translating",
            wave=wave_index,
            completed=completed,
            total=total,
            degraded=degraded,
        )

    def chunk_degraded(self, chunk_index: int, reason: str) -> None:
        """Emit a chunk passthrough event."""

        self._emit("WARNING", "chunk_degraded", "translating", chunk=chunk_index, reason=reason)
