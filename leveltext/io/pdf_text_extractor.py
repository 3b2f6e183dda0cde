"""PDF upload validation and text extraction.

Responsibilities:
- Validate uploaded PDF files before a job is created.
- Extract plain text from stored PDF bytes with `pypdf`.
- Derive a readable display title from the uploaded file name.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import PurePath
import re
from urllib.parse import unquote

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from ..errors import ContentTooShortError, PdfExtractionError, PdfValidationError
from ..models.datatypes import ExtractedContent


MAX_PDF_BYTES = 10 * 1024 * 1024
MIN_PDF_BYTES = 100
PDF_MAGIC = b"%PDF-"


def validate_pdf_upload(file_name: str, data: bytes) -> None:
    """Validate extension, size bounds, and PDF magic bytes.

    Raises:
        PdfValidationError: With a user-facing reason on the first failed check.
    """

    if not file_name.lower().endswith(".pdf"):
        raise PdfValidationError("File must have a .pdf extension.")
    if len(data) > MAX_PDF_BYTES:
        raise PdfValidationError(
            f"File too large ({len(data) / (1024 * 1024):.1f}MB). Maximum size is 10MB."
        )
    if len(data) < MIN_PDF_BYTES:
        raise PdfValidationError("File is too small to be a valid PDF.")
    if not data.startswith(PDF_MAGIC):
        raise PdfValidationError("File does not appear to be a valid PDF.")


def pdf_display_title(file_name: str) -> str:
    """Turn an uploaded file name into a readable title."""

    stem = re.sub(r"\.pdf$", "", PurePath(file_name).name, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s+", " ", re.sub(r"[-_]+", " ", unquote(stem))).strip()
    return cleaned or "Untitled PDF"


class PdfTextExtractor:
    """Extractor for text-based PDFs using `pypdf`."""

    def __init__(self, min_content_chars: int = 50) -> None:
        """Initialize the minimum readable text length."""

        self.min_content_chars = min_content_chars

    def extract(self, data: bytes, display_title: str) -> ExtractedContent:
        """Extract page text joined by blank lines.

        Raises:
            PdfExtractionError: When the document cannot be read or has no text.
            ContentTooShortError: When the text is below the minimum length.
        """

        pages = self.extract_pages(data)
        text = "\n\n".join(page for page in pages if page).strip()
        if not text:
            raise PdfExtractionError(
                "no extractable text found; only text-based PDFs are supported"
            )
        if len(text) < self.min_content_chars:
            raise ContentTooShortError(len(text), self.min_content_chars)
        return ExtractedContent(title=display_title, plain_text=text)

    def extract_pages(self, data: bytes) -> list[str]:
        """Extract stripped text per page."""

        try:
            reader = PdfReader(BytesIO(data))
            if reader.is_encrypted:
                raise PdfExtractionError("document is password-protected")
            pages = [
                (page.extract_text() or "").replace("\f", "\n").strip()
                for page in reader.pages
            ]
        except (PyPdfError, ValueError) as exc:
            raise PdfExtractionError(str(exc)) from exc
        return pages
