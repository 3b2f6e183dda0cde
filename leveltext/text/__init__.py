"""Text processing utilities for segmentation and word statistics."""

from .segmenter import Segmenter
from .words import count_words, split_sentences

__all__ = ["Segmenter", "count_words", "split_sentences"]
