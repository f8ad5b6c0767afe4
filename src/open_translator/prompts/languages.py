"""Supported languages and a character-script language detector."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Language:
    code: str  # ISO 639-1, plus "zh-TW" and "auto"
    name: str
    native_name: str

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"


SUPPORTED_LANGUAGES: tuple[Language, ...] = (
    Language("en", "English", "English"),
    Language("zh", "Chinese", "中文"),
    Language("zh-TW", "Chinese (Traditional)", "繁體中文"),
    Language("ja", "Japanese", "日本語"),
    Language("ko", "Korean", "한국어"),
    Language("es", "Spanish", "Español"),
    Language("fr", "French", "Français"),
    Language("de", "German", "Deutsch"),
    Language("it", "Italian", "Italiano"),
    Language("pt", "Portuguese", "Português"),
    Language("ru", "Russian", "Русский"),
    Language("ar", "Arabic", "العربية"),
    Language("hi", "Hindi", "हिन्दी"),
    Language("th", "Thai", "ไทย"),
    Language("vi", "Vietnamese", "Tiếng Việt"),
    Language("auto", "Auto Detect", "Auto"),
)

_BY_CODE = {lang.code.lower(): lang for lang in SUPPORTED_LANGUAGES}


def language_from_code(code: str) -> Language | None:
    return _BY_CODE.get(code.lower())


def language_name(code: str) -> str:
    """Display name used in prompts; unknown codes pass through unchanged."""
    if code.lower() == "auto":
        return "auto-detected language"
    lang = language_from_code(code)
    return lang.name if lang else code


# (script, [(start, end), ...]) in the order they are tested
_SCRIPT_RANGES: tuple[tuple[str, tuple[tuple[int, int], ...]], ...] = (
    ("cjk", ((0x4E00, 0x9FFF), (0x3400, 0x4DBF), (0x20000, 0x2A6DF))),
    ("kana", ((0x3040, 0x309F), (0x30A0, 0x30FF))),
    ("hangul", ((0xAC00, 0xD7AF), (0x1100, 0x11FF), (0x3130, 0x318F))),
    ("arabic", ((0x0600, 0x06FF),)),
    ("thai", ((0x0E00, 0x0E7F),)),
    ("devanagari", ((0x0900, 0x097F),)),
    ("cyrillic", ((0x0400, 0x04FF),)),
    ("latin", ((0x41, 0x5A), (0x61, 0x7A))),
)

_THRESHOLD = 0.3


def _script_of(code: int) -> str | None:
    for script, ranges in _SCRIPT_RANGES:
        if any(lo <= code <= hi for lo, hi in ranges):
            return script
    return None


def _is_skipped(code: int) -> bool:
    # ASCII whitespace, digits and punctuation
    return code <= 0x40 or 0x5B <= code <= 0x60 or 0x7B <= code <= 0x7F


def detect_language(text: str) -> str:
    """Guess the language code of *text* from its character scripts.

    Falls back to ``"en"`` when nothing reaches the 30% threshold.
    """
    counts: dict[str, int] = {}
    total = 0
    for ch in text:
        code = ord(ch)
        if _is_skipped(code):
            continue
        total += 1
        script = _script_of(code)
        if script:
            counts[script] = counts.get(script, 0) + 1

    if total == 0:
        return "en"

    threshold = total * _THRESHOLD
    cjk = counts.get("cjk", 0)
    kana = counts.get("kana", 0)

    # Japanese mixes kana with kanji
    if kana and kana + cjk > threshold:
        return "ja"
    if counts.get("hangul", 0) > threshold:
        return "ko"
    if cjk > threshold and not kana:
        return "zh"
    for script, code in (
        ("arabic", "ar"), ("thai", "th"), ("devanagari", "hi"), ("cyrillic", "ru"),
    ):
        if counts.get(script, 0) > threshold:
            return code
    return "en"
