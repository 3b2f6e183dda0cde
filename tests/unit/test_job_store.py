"""Unit tests for file-backed job persistence."""

from __future__ import annotations

import json

import pytest

from leveltext.errors import JobNotFoundError
from leveltext.models.datatypes import Job, TranslatedChunk
from leveltext.store.job_store import JobStore, job_from_payload, seconds_since, utc_timestamp


def _job(job_id: str = "abc", key: str = "key-1") -> Job:
    return Job(
        id=job_id,
        source_kind="url",
        source_ref="https://example.com/a",
        target_language="French",
        level="B2",
        idempotency_key=key,
    )


def test_store_roundtrips_job_with_translated_chunks(job_store: JobStore) -> None:
    """Saved jobs should load back with nested chunk records intact."""

    job = job_store.create(_job())
    job.chunks = ["Bonjour."]
    job.total_chunks = 1
    job.translated_chunks = [TranslatedChunk(original="Hello.", translated="Bonjour.", bridge=None)]
    job_store.save(job)

    loaded = job_store.load("abc")

    assert loaded == job
    assert loaded.created_at
    assert isinstance(loaded.translated_chunks[0], TranslatedChunk)


def test_store_writes_readable_json_without_temp_leftovers(job_store: JobStore) -> None:
    """Records should be UTF-8 JSON files written through an atomic rename."""

    job = _job()
    job.title = "Café"
    job_store.create(job)

    path = job_store.root / "abc.json"
    payload = json.loads(path.read_text(encoding="utf-8"))

    assert payload["title"] == "Café"
    assert "Café" in path.read_text(encoding="utf-8")
    assert not list(job_store.root.glob("*.tmp"))


def test_store_finds_job_by_idempotency_key(job_store: JobStore) -> None:
    """The key index should resolve to the registered job."""

    job_store.create(_job("first", key="k1"))

    found = job_store.find_by_key("k1")

    assert found is not None
    assert found.id == "first"
    assert job_store.find_by_key("unknown") is None


@pytest.mark.parametrize("job_id", ["missing", "../escape", ""])
def test_store_load_raises_for_unknown_or_unsafe_ids(job_store: JobStore, job_id: str) -> None:
    """Unknown and path-like ids should raise `JobNotFoundError`."""

    with pytest.raises(JobNotFoundError):
        job_store.load(job_id)


def test_store_lists_jobs_in_creation_order(job_store: JobStore) -> None:
    """Listing should return every persisted job."""

    job_store.create(_job("b", key="kb"))
    job_store.create(_job("a", key="ka"))

    assert {job.id for job in job_store.list_jobs()} == {"a", "b"}


def test_job_from_payload_ignores_unknown_fields() -> None:
    """Older or newer records with extra fields should still load."""

    job = job_from_payload(
        {
            "id": "x",
            "source_kind": "text",
            "source_ref": "hi",
            "target_language": "German",
            "level": "A1",
            "idempotency_key": "k",
            "legacy_field": 1,
            "translated_chunks": [{"original": "hi", "translated": "hallo"}],
        }
    )

    assert job.translated_chunks == [TranslatedChunk(original="hi", translated="hallo")]


def test_seconds_since_handles_fresh_naive_and_unreadable_timestamps() -> None:
    """Elapsed time should be small for fresh writes and infinite for unreadable values."""

    assert 0.0 <= seconds_since(utc_timestamp()) < 5.0
    assert seconds_since("2020-01-01T00:00:00") > 3600.0
    assert seconds_since("") == float("inf")
    assert seconds_since("yesterday") == float("inf")
