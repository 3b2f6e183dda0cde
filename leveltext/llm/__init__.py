"""LLM-facing components for detection and leveled translation."""

from .detector import LanguageDetector, OpenAILanguageDetector
from .openai_client import OpenAIChatClient, ProviderError
from .prompts import PromptLibrary
from .rate_limiter import RateLimiter
from .translator import ChunkTranslator, OpenAIChunkTranslator

__all__ = [
    "ChunkTranslator",
    "LanguageDetector",
    "OpenAIChatClient",
    "OpenAIChunkTranslator",
    "OpenAILanguageDetector",
    "PromptLibrary",
    "ProviderError",
    "RateLimiter",
]
