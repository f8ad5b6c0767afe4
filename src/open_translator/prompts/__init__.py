"""Prompt templates and language helpers."""

from open_translator.prompts.languages import (
    SUPPORTED_LANGUAGES,
    Language,
    detect_language,
    language_from_code,
    language_name,
)
from open_translator.prompts.templates import PromptTemplates, render

__all__ = [
    "SUPPORTED_LANGUAGES",
    "Language",
    "PromptTemplates",
    "detect_language",
    "language_from_code",
    "language_name",
    "render",
]
