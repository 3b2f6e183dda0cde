"""Core datatypes shared across Leveltext modules.

Responsibilities:
- Represent the persisted job record and the values exchanged between phases.
- Define the job status vocabulary and source-kind identifiers.

Key types:
- `Job`: mutable persisted record, written only by the orchestrator run for it.
- `TranslatedChunk`, `ChunkBand`, `FetchResult`, `ExtractedContent`,
  `SubmitRequest`, `SubmitResponse`, `JobProgress`, `JobErrorView`,
  and `JobStatusView`.
"""

from __future__ import annotations

from dataclasses import dataclass, field


SOURCE_URL = "url"
SOURCE_TEXT = "text"
SOURCE_PDF = "pdf"
SOURCE_KINDS = (SOURCE_URL, SOURCE_TEXT, SOURCE_PDF)

STATUS_QUEUED = "queued"
STATUS_FETCHING = "fetching"
STATUS_EXTRACTING = "extracting"
STATUS_DETECTING = "detecting"
STATUS_TRANSLATING = "translating"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

STATUS_ORDER = (
    STATUS_QUEUED,
    STATUS_FETCHING,
    STATUS_EXTRACTING,
    STATUS_DETECTING,
    STATUS_TRANSLATING,
    STATUS_COMPLETED,
)
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_FAILED})

STATUS_LABELS = {
    STATUS_QUEUED: "Waiting to start...",
    STATUS_FETCHING: "Fetching article...",
    STATUS_EXTRACTING: "Extracting content...",
    STATUS_DETECTING: "Detecting language...",
    STATUS_TRANSLATING: "Translating...",
    STATUS_COMPLETED: "Ready",
    STATUS_FAILED: "Failed",
}

CEFR_LEVELS = ("A1", "A2", "B1", "B2", "C1", "C2")
UNKNOWN_LANGUAGE = "Unknown"


@dataclass(frozen=True, slots=True)
class ChunkBand:
    """Word-count band used by the segmenter.

    Attributes:
        min_words: Segments below this size are merged with neighbours.
        target_words: Preferred chunk size and sentence re-split size.
        max_words: Upper bound for merges; larger segments are re-split.
    """

    min_words: int
    target_words: int
    max_words: int

    def validate(self, label: str = "chunk band") -> None:
        """Validate positive ordered band values."""

        if self.min_words <= 0 or self.target_words <= 0 or self.max_words <= 0:
            raise ValueError(f"`{label}` values must be positive integers.")
        if not self.min_words <= self.target_words <= self.max_words:
            raise ValueError(
                f"`{label}` must satisfy min_words <= target_words <= max_words."
            )


@dataclass(frozen=True, slots=True)
class TranslatedChunk:
    """Translation output for one source chunk.

    Attributes:
        original: Source chunk text.
        translated: Leveled translation, or the original text when degraded.
        bridge: Optional literal back-translation used for audio alignment.
        degraded: Whether the original text was substituted for a translation.
    """

    original: str
    translated: str
    bridge: str | None = None
    degraded: bool = False

    @classmethod
    def passthrough(cls, original: str) -> TranslatedChunk:
        """Build a degraded record that carries the original text through."""

        return cls(original=original, translated=original, bridge=None, degraded=True)


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Raw markup returned by the source-fetch strategy."""

    url: str
    markup: str
    strategy: str
    status_code: int | None = None


@dataclass(frozen=True, slots=True)
class ExtractedContent:
    """Plain text and display title produced by a source adapter.

    Attributes:
        title: Display title.
        plain_text: Text handed to the segmenter (or translator, when unsplit).
        single_chunk: Whether segmentation is bypassed for this document.
        skipped_extraction: Whether near-raw markup was passed through.
    """

    title: str
    plain_text: str
    single_chunk: bool = False
    skipped_extraction: bool = False


@dataclass(slots=True)
class Job:
    """Persisted translation job ("article") record.

    Attributes:
        id: Stable job identifier.
        source_kind: One of `url`, `text`, `pdf`.
        source_ref: URL, pasted text, or local PDF path.
        target_language: Requested target language name.
        level: Requested CEFR level.
        idempotency_key: Key derived from source identity, target, and level.
        status: Current state machine status.
        blob_key: Stored PDF blob key, set after upload.
        title: Display title, known after extraction.
        chunks: Ordered original chunks, `None` before segmentation.
        translated_chunks: Ordered translated prefix.
        source_language: Detected source language.
        completed_chunks: Number of chunks translated so far.
        total_chunks: Number of chunks, fixed after segmentation.
        word_count: Word count of the final translation.
        single_chunk: Whether segmentation was bypassed.
        fetch_strategy: Fetch strategy that produced the source markup.
        error_message: User-facing error message of the last failure.
        error_code: Machine-readable code of the last failure.
        retry_count: Number of recorded failures.
        created_at: ISO-8601 creation timestamp.
        updated_at: ISO-8601 last-write timestamp.
    """

    id: str
    source_kind: str
    source_ref: str
    target_language: str
    level: str
    idempotency_key: str
    status: str = STATUS_QUEUED
    blob_key: str | None = None
    title: str | None = None
    chunks: list[str] | None = None
    translated_chunks: list[TranslatedChunk] = field(default_factory=list)
    source_language: str | None = None
    completed_chunks: int = 0
    total_chunks: int = 0
    word_count: int | None = None
    single_chunk: bool = False
    fetch_strategy: str | None = None
    error_message: str | None = None
    error_code: str | None = None
    retry_count: int = 0
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_terminal(self) -> bool:
        """Return whether the job is in a terminal status."""

        return self.status in TERMINAL_STATUSES


@dataclass(frozen=True, slots=True)
class SubmitRequest:
    """Job submission payload."""

    source_kind: str
    source_ref: str
    target_language: str
    level: str


@dataclass(frozen=True, slots=True)
class SubmitResponse:
    """Immediate acknowledgement returned by job submission."""

    job_id: str
    status: str
    completed_chunks: int
    total_chunks: int


@dataclass(frozen=True, slots=True)
class JobProgress:
    """Translation progress counters."""

    current: int
    total: int
    percent: int


@dataclass(frozen=True, slots=True)
class JobErrorView:
    """Caller-facing error details of a failed job."""

    message: str
    code: str
    retryable: bool


@dataclass(frozen=True, slots=True)
class JobStatusView:
    """Lightweight polling view of a job."""

    job_id: str
    status: str
    status_label: str
    progress: JobProgress | None
    title: str | None
    error: JobErrorView | None
    retry_count: int
