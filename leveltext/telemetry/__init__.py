"""Logging utilities for job runs."""

from .logger import JobLogger, configure_logging

__all__ = ["JobLogger", "configure_logging"]
