"""Shared typed data models for Leveltext.

This package contains dataclasses and status constants used across pipeline
modules to avoid cross-module coupling and circular imports.
"""

from .datatypes import (
    ChunkBand,
    ExtractedContent,
    FetchResult,
    Job,
    JobErrorView,
    JobProgress,
    JobStatusView,
    SubmitRequest,
    SubmitResponse,
    TranslatedChunk,
)

__all__ = [
    "ChunkBand",
    "ExtractedContent",
    "FetchResult",
    "Job",
    "JobErrorView",
    "JobProgress",
    "JobStatusView",
    "SubmitRequest",
    "SubmitResponse",
    "TranslatedChunk",
]
