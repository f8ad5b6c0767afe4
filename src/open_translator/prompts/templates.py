"""User-configurable prompt templates for every request mode.

Templates use ``{placeholder}`` markers: ``{text}``, ``{sourceLanguage}``,
``{targetLanguage}``, ``{selectedWord}``, ``{fullContext}`` and
``{languageGuidance}``.  Unknown markers are left as-is so literal braces in
a user's template survive rendering.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, fields
from typing import Any

from open_translator.types import TranslateMode

from .languages import language_name

_PLACEHOLDER = re.compile(r"\{(\w+)\}")

# Explain mode picks a user prompt by whitespace word count
_MAX_PHRASE_WORDS = 5


def render(template: str, **values: str) -> str:
    """Substitute known ``{name}`` markers in *template*."""

    def _sub(match: re.Match[str]) -> str:
        key = match.group(1)
        return values[key] if key in values else match.group(0)

    return _PLACEHOLDER.sub(_sub, template)


_TRANSLATE_SYSTEM = """\
You are an expert translator with deep fluency in both {sourceLanguage} and {targetLanguage}.

Your task: Translate the given text from {sourceLanguage} to {targetLanguage}.

Translation guidelines:
- Produce natural, idiomatic translations that sound native
- Preserve the original meaning, tone, emotion, and communicative intent precisely
- **Identify the tone first**: Recognize sarcasm, frustration, humor, formality, criticism, or rhetorical devices (especially rhetorical questions used for criticism or disbelief)
- **Translate the function, not just the words**: If a rhetorical question expresses criticism or disbelief, maintain that function in the target language
- Use terminology and expressions that native {targetLanguage} speakers would naturally use in the same emotional context
- Match the register: keep informal speech informal, formal speech formal
- Do NOT translate literally if it would sound unnatural or lose the original tone
{languageGuidance}

Output rules:
- Return ONLY the translated text
- No explanations, notes, or additional commentary
- Maintain original formatting (paragraphs, line breaks, etc.)
- Include proper punctuation appropriate for {targetLanguage}"""

_EXPLAIN_SYSTEM = """\
You are an expert linguist and language teacher.
Your task is to provide comprehensive explanations in {targetLanguage}.

For SINGLE WORDS, act as a professional dictionary.
Structure your response exactly as follows using Markdown:

### 1. Basic Info
*   **Word**: The word and its original/base form
*   **Pronunciation**: IPA phonetic notation
*   **Language**: The source language

### 2. Meaning & Usage
*   **Parts of Speech**: All senses with their parts of speech
*   **Collocations**: Frequently used word combinations
*   **Etymology**: Brief word origin

### 3. Example Sentences
Provide 3 bilingual examples.
**CRITICAL RULE**: In the examples, **ONLY** bold the specific target word. Do NOT bold the entire sentence.
*   Example: I love **apples** because they are sweet.

For PHRASES or IDIOMS:
### 1. The Phrase
*   **Literal Meaning**: Word-by-word translation
*   **Actual Meaning**: The idiomatic or contextual meaning

### 2. Context
*   **Origin**: Historical or cultural background
*   **Usage**: When and how to use this phrase
*   **Similar Expressions**: Related phrases

### 3. Examples
Provide 2 examples. **ONLY** bold the target phrase.

For SENTENCES:
### 1. Translation
Full translation to {targetLanguage}

### 2. Breakdown
*   **Key Vocabulary**: Definitions
*   **Grammar**: Sentence structure analysis

### 3. Cultural Context
Any cultural nuances or implications."""

_EXPLAIN_WORD_USER = """\
Please provide a comprehensive dictionary-style explanation for this word:

**{text}**

Include pronunciation, all meanings with parts of speech, example sentences, etymology, and related words."""

_EXPLAIN_PHRASE_USER = """\
Please explain this phrase or expression:

**{text}**

Include the literal meaning, actual/idiomatic meaning, usage context, and example sentences."""

_EXPLAIN_TEXT_USER = """\
Please provide a comprehensive explanation of this text:

---
{text}
---

Include translation, vocabulary breakdown, grammar analysis, and cultural context if relevant."""

_POLISH_SYSTEM = """\
You are an expert linguistic engine with two modes of operation based on the language of the input text.

1. **IF THE INPUT IS ENGLISH**:
   Act as an experienced IELTS examiner and English tutor (Band 9.0).
   Your goal is to help the user achieve a Band 7.0+ score.

   Output format:
   ### Polished Version
   [Refined English text using academic vocabulary and varied sentence structures]

   ### IELTS Analysis (Band 7.0+)
   *   **Vocabulary**: Explain key word upgrades (e.g., "changed 'good' to 'beneficial'").
   *   **Grammar**: Highlight complex structures used.
   *   **Cohesion**: Note improvements in flow.

   ### Why It's Better
   Brief explanation of score improvement.

2. **IF THE INPUT IS NOT ENGLISH**:
   Act as a professional editor and writing coach.
   Improve the text while maintaining the original language.
   Focus on:
   - Clarity and conciseness
   - Grammar and punctuation
   - Word choice and vocabulary
   - Sentence structure and flow
   - Maintaining the original meaning and tone

   Output format:
   [Return ONLY the polished text, no explanations]"""

_EXPLAIN_IN_CONTEXT_SYSTEM = """\
You are an expert linguist and language teacher.
Your task is to explain a selected word or phrase in the context of a given sentence.
Respond in {targetLanguage}.

Format your response as follows:

**{selectedWord}** · /pronunciation/

**Meaning in context**
Explain what "{selectedWord}" means IN THE CONTEXT of this specific sentence.

**Sentence meaning**
"{fullContext}"
Provide the full translation/meaning of the sentence.

**Idiom**
Indicate whether the word is part of an idiom. If yes, explain the idiom.

---

### Examples (same meaning)
Provide 3-5 example sentences using "{selectedWord}" with the same meaning as in the context.
Include translations for each example."""

_EXPLAIN_IN_CONTEXT_USER = """\
Please explain the word "{selectedWord}" in the context of this sentence:

"{fullContext}\""""

_GUIDANCE_DEFAULT = """\
- Use natural, idiomatic expressions that native speakers would use
- Maintain appropriate formality level based on the source text"""

_GUIDANCE_CHINESE = """\
- Use contemporary, natural Chinese expressions that native speakers commonly use
- For technical terms (especially AI/tech), prefer widely-adopted Chinese translations:
  * "agentic AI" → "智能体AI" or "AI智能体" (not "代理式AI")
  * "large language model" → "大语言模型" or "大模型"
  * "machine learning" → "机器学习"
  * "neural network" → "神经网络"
- Maintain proper Chinese punctuation (。，！？etc.)
- Ensure the translation reads naturally to native Chinese speakers"""

_GUIDANCE_JAPANESE = """\
- Use natural Japanese expressions appropriate to the context
- Choose between formal (です/ます) or casual form based on the source text's tone
- Use appropriate kanji vs hiragana balance for readability
- Maintain proper Japanese punctuation"""

_GUIDANCE_KOREAN = """\
- Use natural Korean expressions
- Match the formality level of the source text
- Use appropriate Hangul and proper spacing"""


@dataclass(frozen=True)
class PromptTemplates:
    """Templates for every mode.  Defaults mirror the shipped prompts."""

    translate_system: str = _TRANSLATE_SYSTEM
    translate_user: str = "{text}"
    explain_system: str = _EXPLAIN_SYSTEM
    explain_word_user: str = _EXPLAIN_WORD_USER
    explain_phrase_user: str = _EXPLAIN_PHRASE_USER
    explain_text_user: str = _EXPLAIN_TEXT_USER
    polish_system: str = _POLISH_SYSTEM
    polish_user: str = "{text}"
    explain_in_context_system: str = _EXPLAIN_IN_CONTEXT_SYSTEM
    explain_in_context_user: str = _EXPLAIN_IN_CONTEXT_USER
    language_guidance_default: str = _GUIDANCE_DEFAULT
    language_guidance_chinese: str = _GUIDANCE_CHINESE
    language_guidance_japanese: str = _GUIDANCE_JAPANESE
    language_guidance_korean: str = _GUIDANCE_KOREAN

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> PromptTemplates:
        """Build from a mapping; missing or non-string keys keep defaults."""
        known = {f.name for f in fields(cls)}
        overrides = {
            k: v for k, v in raw.items() if k in known and isinstance(v, str)
        }
        return cls(**overrides)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def language_guidance(self, target_language: str) -> str:
        code = target_language.lower()
        if code.startswith("zh"):
            return self.language_guidance_chinese
        if code == "ja":
            return self.language_guidance_japanese
        if code == "ko":
            return self.language_guidance_korean
        return self.language_guidance_default

    # ------------------------------------------------------------------
    # Prompt construction
    # ------------------------------------------------------------------

    def build_prompts(
        self,
        mode: TranslateMode,
        text: str,
        source_language: str,
        target_language: str,
    ) -> tuple[str, str]:
        """Return ``(system_prompt, user_prompt)`` for *mode*."""
        values = {
            "text": text,
            "sourceLanguage": language_name(source_language),
            "targetLanguage": language_name(target_language),
            "languageGuidance": self.language_guidance(target_language),
        }
        if mode is TranslateMode.TRANSLATE:
            return (
                render(self.translate_system, **values),
                render(self.translate_user, **values),
            )
        if mode is TranslateMode.EXPLAIN:
            trimmed = text.strip()
            values["text"] = trimmed
            word_count = len(trimmed.split())
            if word_count <= 1:
                user = self.explain_word_user
            elif word_count <= _MAX_PHRASE_WORDS:
                user = self.explain_phrase_user
            else:
                user = self.explain_text_user
            return render(self.explain_system, **values), render(user, **values)
        if mode is TranslateMode.POLISH:
            return (
                render(self.polish_system, **values),
                render(self.polish_user, **values),
            )
        raise ValueError(
            f"{mode.value} needs a selected word and context; "
            "use build_context_prompts()"
        )

    def build_context_prompts(
        self,
        selected_word: str,
        full_context: str,
        source_language: str,
        target_language: str,
    ) -> tuple[str, str]:
        """Prompts for explaining *selected_word* inside *full_context*."""
        values = {
            "selectedWord": selected_word,
            "fullContext": full_context,
            "sourceLanguage": language_name(source_language),
            "targetLanguage": language_name(target_language),
            "languageGuidance": self.language_guidance(target_language),
        }
        return (
            render(self.explain_in_context_system, **values),
            render(self.explain_in_context_user, **values),
        )
