"""Source adapters for the fetch and extract phases.

Responsibilities:
- Provide one fetch/extract strategy per source kind (`url`, `text`, `pdf`).
- Record fetch-phase facts (fetch strategy, stored blob key) on the job.
- Carry the segmentation band of each source kind.

Key types:
- `SourceAdapter`: protocol implemented by each source kind.
- `FetchedSource`: raw material handed from fetching to extracting.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..errors import ContentTooShortError, PdfUploadError
from ..io.blob_store import BlobStore, pdf_storage_key
from ..io.extractor import ContentExtractor
from ..io.fetcher import SourceFetcher
from ..io.pdf_text_extractor import PdfTextExtractor, pdf_display_title
from ..models.datatypes import (
    SOURCE_PDF,
    SOURCE_TEXT,
    SOURCE_URL,
    ChunkBand,
    ExtractedContent,
    Job,
)


_PASTED_TITLE_CHARS = 80


@dataclass(frozen=True, slots=True)
class FetchedSource:
    """Raw source material produced by the fetch phase."""

    strategy: str
    markup: str = ""
    data: bytes = b""


class SourceAdapter(Protocol):
    """Fetch and extract steps of one source kind."""

    kind: str
    band: ChunkBand

    def fetch(self, job: Job) -> FetchedSource:
        """Obtain raw source material and record fetch facts on `job`."""

    def extract(self, job: Job, fetched: FetchedSource) -> ExtractedContent:
        """Turn raw material into a title and plain text."""


class UrlSource:
    """Web article source: fetch strategy plus main-content extraction."""

    kind = SOURCE_URL

    def __init__(
        self, fetcher: SourceFetcher, extractor: ContentExtractor, band: ChunkBand
    ) -> None:
        self.fetcher = fetcher
        self.extractor = extractor
        self.band = band

    def fetch(self, job: Job) -> FetchedSource:
        result = self.fetcher.fetch(job.source_ref)
        job.fetch_strategy = result.strategy
        return FetchedSource(strategy=result.strategy, markup=result.markup)

    def extract(self, job: Job, fetched: FetchedSource) -> ExtractedContent:
        return self.extractor.extract(fetched.markup, job.source_ref)


class TextSource:
    """Pasted text source; the text itself is the fetched material."""

    kind = SOURCE_TEXT

    def __init__(self, band: ChunkBand, min_content_chars: int = 100) -> None:
        self.band = band
        self.min_content_chars = min_content_chars

    def fetch(self, job: Job) -> FetchedSource:
        job.fetch_strategy = "inline"
        return FetchedSource(strategy="inline", markup=job.source_ref)

    def extract(self, job: Job, fetched: FetchedSource) -> ExtractedContent:
        text = fetched.markup.replace("\r\n", "\n").strip()
        if len(text) < self.min_content_chars:
            raise ContentTooShortError(len(text), self.min_content_chars)
        return ExtractedContent(title=pasted_text_title(text), plain_text=text)


class PdfSource:
    """Uploaded PDF source: blob upload on fetch, `pypdf` text on extract."""

    kind = SOURCE_PDF

    def __init__(
        self,
        blob_store: BlobStore,
        extractor: PdfTextExtractor,
        band: ChunkBand,
    ) -> None:
        self.blob_store = blob_store
        self.extractor = extractor
        self.band = band

    def fetch(self, job: Job) -> FetchedSource:
        """Reuse a previously stored blob, otherwise upload the local file."""

        if job.blob_key and self.blob_store.exists(job.blob_key):
            return FetchedSource(strategy="blob", data=self.blob_store.get(job.blob_key))

        source_path = Path(job.source_ref)
        try:
            data = source_path.read_bytes()
            key = self.blob_store.put(pdf_storage_key(source_path.name), data)
        except OSError as exc:
            raise PdfUploadError(str(exc)) from exc
        job.blob_key = key
        job.fetch_strategy = "upload"
        return FetchedSource(strategy="upload", data=data)

    def extract(self, job: Job, fetched: FetchedSource) -> ExtractedContent:
        return self.extractor.extract(fetched.data, pdf_display_title(Path(job.source_ref).name))


def pasted_text_title(text: str) -> str:
    """Use the first non-empty line, truncated, as the title of pasted text."""

    for line in text.splitlines():
        candidate = " ".join(line.split())
        if candidate:
            if len(candidate) <= _PASTED_TITLE_CHARS:
                return candidate
            return f"{candidate[: _PASTED_TITLE_CHARS - 3].rstrip()}..."
    return "Pasted text"
