"""Persistence for job records."""

from .job_store import JobStore

__all__ = ["JobStore"]
