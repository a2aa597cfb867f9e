from __future__ import annotations

__all__ = [
    "DEFAULT_LANGUAGE",
    "resolve_report_language",
    "normalize_report_language",
    "language_display_name",
]

DEFAULT_LANGUAGE = "english"

_PREFIX_LANGUAGES: tuple[tuple[str, str], ...] = (
    ("ru", "russian"),
    ("uk", "ukrainian"),
    ("es", "spanish"),
    ("fr", "french"),
    ("ar", "arabic"),
    ("hi", "hindi"),
)

_SUPPORTED_LANGUAGES = frozenset(language for _, language in _PREFIX_LANGUAGES)

_DISPLAY_NAMES = {
    "en": "English",
    "ru": "Русский",
    "uk": "Українська",
    "es": "Español",
    "fr": "Français",
    "hi": "हिंदी",
}


def resolve_report_language(accept_language: str | None) -> str:
    """Map an ``Accept-Language`` header to the language the report is written in.

    Only the leading tag is considered; unsupported or missing headers give English.
    """
    if not accept_language:
        return DEFAULT_LANGUAGE
    lowered = accept_language.strip().lower()
    for prefix, language in _PREFIX_LANGUAGES:
        if lowered.startswith(prefix):
            return language
    return DEFAULT_LANGUAGE


def language_display_name(code: str) -> str:
    return _DISPLAY_NAMES.get(code, code)


def normalize_report_language(value: str | None) -> str:
    """Accept either a resolved language name or a header/tag like ``fr-CA``."""
    cleaned = (value or "").strip().lower()
    if cleaned == DEFAULT_LANGUAGE or cleaned in _SUPPORTED_LANGUAGES:
        return cleaned
    return resolve_report_language(cleaned)
