"""File-backed persistence for job records.

Responsibilities:
- Persist one JSON document per job under `<data_dir>/jobs/`.
- Maintain a secondary index from idempotency key to job id.
- Serialize writes so concurrent job runs never interleave partial files.

Key types:
- `JobStore`: create/load/save/find operations over job records.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from datetime import datetime, timezone
import json
from pathlib import Path
from threading import RLock
from typing import Any

from ..errors import JobNotFoundError
from ..models.datatypes import Job, TranslatedChunk


_JOB_FIELDS = frozenset(item.name for item in fields(Job))


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def seconds_since(timestamp: str) -> float:
    """Return seconds elapsed since an ISO-8601 timestamp, or infinity when unreadable."""

    try:
        moment = datetime.fromisoformat(timestamp)
    except ValueError:
        return float("inf")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (datetime.now(timezone.utc) - moment).total_seconds()


def job_to_payload(job: Job) -> dict[str, Any]:
    """Convert a job record into a JSON-serializable mapping."""

    return asdict(job)


def job_from_payload(payload: dict[str, Any]) -> Job:
    """Rebuild a job record from a persisted mapping.

    Raises:
        ValueError: When the payload is not a job mapping.
    """

    if not isinstance(payload, dict):
        raise ValueError("Job payload must be a JSON object.")
    values = {key: value for key, value in payload.items() if key in _JOB_FIELDS}
    translated_payload = values.pop("translated_chunks", None) or []
    if not isinstance(translated_payload, list):
        raise ValueError("Job payload field `translated_chunks` must be a list.")
    translated = [
        TranslatedChunk(
            original=str(item.get("original", "")),
            translated=str(item.get("translated", "")),
            bridge=item.get("bridge"),
            degraded=bool(item.get("degraded", False)),
        )
        for item in translated_payload
        if isinstance(item, dict)
    ]
    return Job(**values, translated_chunks=translated)


class JobStore:
    """Filesystem-backed job record store."""

    def __init__(self, root: Path) -> None:
        """Initialize the store under `root/jobs`."""

        self.root = root / "jobs"
        self._lock = RLock()

    def create(self, job: Job) -> Job:
        """Persist a new job and register its idempotency key."""

        with self._lock:
            now = utc_timestamp()
            if not job.created_at:
                job.created_at = now
            job.updated_at = now
            self._write(self._job_path(job.id), job_to_payload(job))
            self._write(self._key_path(job.idempotency_key), {"job_id": job.id})
        return job

    def save(self, job: Job) -> Job:
        """Persist the current state of an existing job."""

        with self._lock:
            job.updated_at = utc_timestamp()
            self._write(self._job_path(job.id), job_to_payload(job))
        return job

    def load(self, job_id: str) -> Job:
        """Load a job by id.

        Raises:
            JobNotFoundError: When no record exists for `job_id`.
        """

        with self._lock:
            path = self._job_path(job_id)
            if not path.is_file():
                raise JobNotFoundError(job_id)
            payload = json.loads(path.read_text(encoding="utf-8"))
        return job_from_payload(payload)

    def find_by_key(self, idempotency_key: str) -> Job | None:
        """Return the job registered for an idempotency key, if any."""

        with self._lock:
            key_path = self._key_path(idempotency_key)
            if not key_path.is_file():
                return None
            job_id = json.loads(key_path.read_text(encoding="utf-8")).get("job_id")
            if not isinstance(job_id, str):
                return None
            try:
                return self.load(job_id)
            except JobNotFoundError:
                return None

    def list_jobs(self) -> list[Job]:
        """Return all persisted jobs ordered by creation time."""

        with self._lock:
            if not self.root.is_dir():
                return []
            jobs = [
                job_from_payload(json.loads(path.read_text(encoding="utf-8")))
                for path in sorted(self.root.glob("*.json"))
            ]
        return sorted(jobs, key=lambda job: (job.created_at, job.id))

    def _job_path(self, job_id: str) -> Path:
        """Return the record path for a job id."""

        if not job_id or any(character in job_id for character in "/\\."):
            raise JobNotFoundError(job_id)
        return self.root / f"{job_id}.json"

    def _key_path(self, idempotency_key: str) -> Path:
        """Return the index path for an idempotency key."""

        return self.root / "keys" / f"{idempotency_key}.json"

    @staticmethod
    def _write(path: Path, payload: dict[str, Any]) -> None:
        """Write JSON atomically through a temporary sibling file."""

        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(f"{path.name}.tmp")
        temp_path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True),
            encoding="utf-8",
        )
        temp_path.replace(path)
