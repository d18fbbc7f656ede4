"""Language detection for transcribed text."""
import re
import unicodedata
from typing import Optional

ZH = "zh"
EN = "en"
ZH_EN = "zh-en"
EN_ZH = "en-zh"
MIXED = "mixed"
UNKNOWN = "unknown"

LANGUAGE_LABELS = {
    ZH: "中文 🇨🇳",
    EN: "English 🇺🇸",
    ZH_EN: "中英混合 🌍",
    EN_ZH: "中英混合 🌍",
    MIXED: "中英混合 🌍",
}

DEFAULT_LABEL = "自动识别"

ENGLISH_WORD = re.compile(r"\b[a-zA-Z]+\b", re.ASCII)


def _is_han(char: str) -> bool:
    # CJK unified ideographs, extensions and compatibility ideographs
    return unicodedata.name(char, "").startswith(("CJK UNIFIED IDEOGRAPH", "CJK COMPATIBILITY IDEOGRAPH"))


def _is_ascii_letter(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z")


def detect_language(text: Optional[str]) -> str:
    """Tag text as zh, en, zh-en, en-zh, mixed or unknown by Han vs ASCII letter counts."""
    if text is None or not text.strip():
        return UNKNOWN

    han = sum(1 for char in text if _is_han(char))
    latin = sum(1 for char in text if _is_ascii_letter(char))

    if han > latin:
        return ZH_EN if latin else ZH
    if latin > han:
        return EN_ZH if han else EN
    if han or latin:
        return MIXED
    return UNKNOWN


def contains_english_words(text: Optional[str]) -> bool:
    return bool(text) and ENGLISH_WORD.search(text) is not None


def display_label(tag: str) -> str:
    """Bilingual label shown to the user for a language tag."""
    return LANGUAGE_LABELS.get(tag, DEFAULT_LABEL)
