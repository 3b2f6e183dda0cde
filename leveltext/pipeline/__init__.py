"""Leveltext pipeline package.

This package contains the job state machine, translation waves, resume
planning, source adapters, and the background job queue.
"""

from .orchestrator import TranslationPipeline
from .queue import JobQueue
from .waves import WaveScheduler

__all__ = ["JobQueue", "TranslationPipeline", "WaveScheduler"]
