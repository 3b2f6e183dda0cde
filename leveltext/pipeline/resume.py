"""Resume planning from persisted job state.

Responsibilities:
- Decide the phase a job run re-enters at from the data already persisted.
- Detect translated progress that no longer matches the persisted chunk list.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models.datatypes import STATUS_COMPLETED, STATUS_FETCHING, STATUS_TRANSLATING, Job


@dataclass(frozen=True, slots=True)
class ResumePlan:
    """Where a job run starts.

    Attributes:
        entry_phase: `fetching`, `translating`, or `completed`.
        start_index: First chunk index still to translate.
        reset_reason: Why persisted translation progress must be discarded, if it must.
    """

    entry_phase: str
    start_index: int = 0
    reset_reason: str | None = None


def translated_prefix_issue(job: Job) -> str | None:
    """Return why the translated prefix is inconsistent with the chunks, or `None`."""

    chunks = job.chunks or []
    translated = job.translated_chunks
    if job.total_chunks != len(chunks):
        return f"total_chunks={job.total_chunks} but {len(chunks)} chunks persisted"
    if len(translated) > len(chunks):
        return f"{len(translated)} translated chunks exceed {len(chunks)} chunks"
    for index, item in enumerate(translated):
        if item.original != chunks[index]:
            return f"translated chunk {index} does not match its original"
    return None


def plan_resume(job: Job) -> ResumePlan:
    """Pick the re-entry phase for a job.

    Jobs without chunks restart at fetching. Jobs with chunks continue
    translating after the persisted translated prefix; an inconsistent prefix
    restarts translation from zero.
    """

    if job.status == STATUS_COMPLETED:
        return ResumePlan(entry_phase=STATUS_COMPLETED, start_index=job.total_chunks)
    if job.chunks is None:
        return ResumePlan(entry_phase=STATUS_FETCHING)

    issue = translated_prefix_issue(job)
    if issue is not None:
        return ResumePlan(entry_phase=STATUS_TRANSLATING, start_index=0, reset_reason=issue)
    return ResumePlan(entry_phase=STATUS_TRANSLATING, start_index=len(job.translated_chunks))
