"""Leveltext package.

Leveled, paragraph-aligned translations of articles, pasted text, and PDFs for
language learners, produced by a resumable multi-phase pipeline.
"""

from .config import LeveltextConfig
from .service import JobService

__all__ = ["JobService", "LeveltextConfig"]
__version__ = "0.1.0"
