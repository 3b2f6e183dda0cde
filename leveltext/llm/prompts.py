"""Prompt template library for LLM calls.

Responsibilities:
- Centralize prompt construction for language detection and leveled translation.
- Keep prompts deterministic for identical inputs.
"""

from __future__ import annotations

from .guidelines import cefr_guidelines


DETECTION_SAMPLE_CHARS = 500


class PromptLibrary:
    """Build prompt strings for supported LLM tasks."""

    def detection_system_prompt(self) -> str:
        """Return the system prompt for single-word language identification."""

        return (
            "You identify the language of text. Respond with only the English name of "
            "the language, for example: English, German, French."
        )

    def detection_prompt(self, text: str) -> str:
        """Return the detection prompt using a bounded text sample."""

        sample = text[:DETECTION_SAMPLE_CHARS]
        return f"What language is this text written in?\n\n{sample}"

    def translation_system_prompt(self) -> str:
        """Return the system prompt for leveled learner translation."""

        return (
            "You are an expert language-learning translator. You adapt text for learners "
            "so that sentence structure, not only vocabulary, matches their level. "
            "Always answer with a single JSON object."
        )

    def translate_prompt(self, *, source_text: str, target_language: str, level: str) -> str:
        """Return the leveled translation prompt for one chunk."""

        return (
            f"Translate the text below into {target_language} for a {level} learner.\n\n"
            f"Level guidance:\n{cefr_guidelines(target_language, level)}\n\n"
            "Rules:\n"
            "- Preserve the meaning and the narrative flow.\n"
            "- Restructure or split sentences that exceed the level constraints.\n"
            "- Drop website boilerplate such as navigation, calls to action, bylines and "
            "share prompts.\n"
            "- Keep paragraph breaks (blank lines between paragraphs).\n\n"
            'Return JSON: {"translated": "<your translation>", '
            '"bridge": "<literal English back-translation of your translation>"}\n\n'
            f"Text to translate:\n{source_text}"
        )
