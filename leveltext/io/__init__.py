"""Input/output components for Leveltext.

This package contains source fetching, content extraction, PDF handling, and
blob storage used by the pipeline source adapters.
"""

from .blob_store import BlobStore
from .domain_policy import DomainPolicy, DomainRule
from .extractor import ContentExtractor
from .fetcher import SourceFetcher
from .pdf_text_extractor import PdfTextExtractor

__all__ = [
    "BlobStore",
    "ContentExtractor",
    "DomainPolicy",
    "DomainRule",
    "PdfTextExtractor",
    "SourceFetcher",
]
