"""Language detection and text-reply localization."""

from __future__ import annotations

import re
from enum import Enum


class Language(str, Enum):
    EN = "en"
    BN = "bn"
    HI = "hi"


class ResponseMode(str, Enum):
    """How a response is delivered: displayed and voiced, or displayed only."""

    VOICE = "voice"
    TEXT = "text"


# Checked in order; the first script found wins.
SCRIPT_RANGES: tuple[tuple[Language, re.Pattern[str]], ...] = (
    (Language.BN, re.compile("[\u0980-\u09FF]")),
    (Language.HI, re.compile("[\u0900-\u097F]")),
)

BENGALI_WORDS: dict[str, str] = {
    "hello": "হ্যালো",
    "time": "সময়",
    "goal": "লক্ষ্য",
    "memory": "স্মৃতি",
}

_BENGALI_PATTERNS = [(re.compile(re.escape(en), re.IGNORECASE), bn) for en, bn in BENGALI_WORDS.items()]


def detect_language(text: str) -> Language:
    for language, pattern in SCRIPT_RANGES:
        if pattern.search(text):
            return language
    return Language.EN


def mix_bengali_english(text: str) -> str:
    """Swap the known English words for their Bengali form, wherever they occur."""
    mixed = text
    for pattern, replacement in _BENGALI_PATTERNS:
        mixed = pattern.sub(replacement, mixed)
    return mixed


def localize(response: str, language: Language, mode: ResponseMode) -> str:
    """Adapt a generated response for delivery.

    Only text replies to Bengali speakers are rewritten. Voiced replies stay
    in English for the speech engine.
    """
    if language is Language.BN and mode is ResponseMode.TEXT:
        return mix_bengali_english(response)
    return response
