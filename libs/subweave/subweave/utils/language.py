"""Language code conversion and detection.

Codes are ISO 639-1 (`zh`), ISO 639-3 (`cmn`) or BCP 47 locales (`zh-CN`).
`detect_language` is the default language-detection capability; it classifies
text by Unicode script and can be replaced by any `str -> str` callable.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from collections import Counter
from collections.abc import Callable, Iterable

from subweave.models.glossary import Glossary, GlossaryItem

logger = logging.getLogger(__name__)

LanguageDetector = Callable[[str], str]

DEFAULT_LANGUAGE = "en"

_ISO_639_1_TO_3: dict[str, str] = {
    "zh": "cmn",
    "ja": "jpn",
    "en": "eng",
    "ko": "kor",
    "de": "deu",
    "fr": "fra",
    "es": "spa",
    "ru": "rus",
    "ar": "ara",
    "pt": "por",
    "it": "ita",
    "vi": "vie",
    "th": "tha",
    "id": "ind",
    "ms": "msa",
    "hi": "hin",
    "tr": "tur",
    "pl": "pol",
    "nl": "nld",
    "sv": "swe",
}
_ISO_639_3_TO_1 = {v: k for k, v in _ISO_639_1_TO_3.items()}
_ISO_639_3_TO_1["zho"] = "zh"

_LOCALES: dict[str, str] = {"zh": "zh-CN", "cmn": "zh-CN", "zho": "zh-CN"}

_NAMES: dict[str, str] = {
    "zh": "Simplified Chinese",
    "yue": "Cantonese",
    "en": "English",
    "ja": "Japanese",
    "ko": "Korean",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "ru": "Russian",
    "ar": "Arabic",
    "hi": "Hindi",
    "bn": "Bengali",
    "pt": "Portuguese",
    "it": "Italian",
    "vi": "Vietnamese",
    "th": "Thai",
    "id": "Indonesian",
    "ms": "Malay",
    "tr": "Turkish",
    "pl": "Polish",
    "nl": "Dutch",
    "sv": "Swedish",
}

CJK_LANGUAGES = frozenset({"zh", "cmn", "zho", "ja", "jpn", "ko", "kor", "yue"})
CHINESE_LANGUAGES = frozenset({"zh", "cmn", "zho", "zh-cn", "zh-tw", "yue"})
JAPANESE_LANGUAGES = frozenset({"ja", "jpn"})
# CTC alignment models only see Latin script.
ROMANIZE_LANGUAGES = frozenset({"cmn", "jpn", "kor", "ara", "rus", "zho", "yue"})

_KANA = re.compile(r"[\u3040-\u309F\u30A0-\u30FF]")


def iso639_1_to_3(code: str) -> str:
    return _ISO_639_1_TO_3.get(code.lower(), code)


def iso639_3_to_1(code: str) -> str:
    return _ISO_639_3_TO_1.get(code.lower(), code)


def to_locale_code(code: str) -> str:
    lower = code.lower()
    if lower in _LOCALES:
        return _LOCALES[lower]
    return iso639_3_to_1(lower)


def to_language_name(code: str) -> str:
    """Full language name for prompts; unknown codes fall back to English."""
    lower = str(code or "").strip().lower()
    for name in _NAMES.values():
        if name.lower() == lower:
            return name
    base = lower.split("-", 1)[0]
    if base == "zh" and lower in {"zh-tw", "zh-hk"}:
        return "Traditional Chinese"
    return _NAMES.get(iso639_3_to_1(base), "English")


def is_cjk(code: str) -> bool:
    return code.lower() in CJK_LANGUAGES


def is_chinese(code: str) -> bool:
    return code.lower() in CHINESE_LANGUAGES


def is_japanese(code: str) -> bool:
    return code.lower() in JAPANESE_LANGUAGES


def requires_romanization(code: str) -> bool:
    return iso639_1_to_3(code).lower() in ROMANIZE_LANGUAGES


def contains_japanese_kana(text: str) -> bool:
    return bool(_KANA.search(text or ""))


def _script_of(ch: str) -> str | None:
    cp = ord(ch)
    if 0x3040 <= cp <= 0x30FF:
        return "kana"
    if 0xAC00 <= cp <= 0xD7AF or 0x1100 <= cp <= 0x11FF:
        return "hangul"
    if 0x4E00 <= cp <= 0x9FFF or 0x3400 <= cp <= 0x4DBF:
        return "han"
    if 0x0400 <= cp <= 0x04FF:
        return "cyrillic"
    if 0x0600 <= cp <= 0x06FF:
        return "arabic"
    if 0x0E00 <= cp <= 0x0E7F:
        return "thai"
    if 0x0900 <= cp <= 0x097F:
        return "devanagari"
    if ch.isalpha() and unicodedata.name(ch, "").startswith("LATIN"):
        return "latin"
    return None


_SCRIPT_LANGUAGE = {
    "hangul": "ko",
    "han": "zh",
    "cyrillic": "ru",
    "arabic": "ar",
    "thai": "th",
    "devanagari": "hi",
}

_LATIN_STOPWORDS: dict[str, frozenset[str]] = {
    "en": frozenset({"the", "and", "is", "are", "of", "to", "with", "this", "that", "you", "it"}),
    "fr": frozenset({"le", "la", "les", "et", "est", "une", "des", "avec", "pour", "vous", "je", "ne", "du"}),
    "es": frozenset({"el", "los", "las", "y", "es", "una", "con", "para", "por", "pero", "muy", "del"}),
    "de": frozenset({"der", "die", "das", "und", "ist", "nicht", "ein", "eine", "mit", "ich", "zu", "auf"}),
    "it": frozenset({"il", "gli", "della", "che", "non", "sono", "di", "con", "per", "questo"}),
    "pt": frozenset({"o", "os", "uma", "com", "para", "não", "você", "está", "são", "do", "da"}),
}
_WORD = re.compile(r"[^\W\d_]+")


def _latin_language(text: str) -> str:
    hits = Counter(
        lang for word in _WORD.findall(text.lower()) for lang, vocab in _LATIN_STOPWORDS.items() if word in vocab
    )
    if not hits:
        return DEFAULT_LANGUAGE
    best = max(hits.values())
    if hits.get(DEFAULT_LANGUAGE) == best:
        return DEFAULT_LANGUAGE
    return hits.most_common(1)[0][0]


def detect_language(text: str) -> str:
    """Classify `text` by dominant script; returns an ISO 639-1 code.

    Latin-script text is told apart by common function words (en, fr, es, de,
    it, pt). Short Latin text without any of them, such as a single glossary
    term, is reported as English.
    """
    counts = Counter(s for s in map(_script_of, text or "") if s is not None)
    if not counts:
        logger.warning("detect_language: no letters in %r, defaulting to %r", (text or "")[:50], DEFAULT_LANGUAGE)
        return DEFAULT_LANGUAGE
    # Any kana means Japanese even when kanji dominate.
    if counts.get("kana"):
        return "ja"
    script, _ = counts.most_common(1)[0]
    if script == "latin":
        return _latin_language(text)
    return _SCRIPT_LANGUAGE.get(script, DEFAULT_LANGUAGE)


def detect_glossary_language(
    glossary: Glossary | Iterable[GlossaryItem],
    detector: LanguageDetector | None = None,
) -> str:
    """Infer a glossary's target language from its translations."""
    terms = glossary.terms if isinstance(glossary, Glossary) else list(glossary)
    sample = "\n".join(t.translation for t in terms if t.translation)
    if not sample.strip():
        return DEFAULT_LANGUAGE
    return (detector or detect_language)(sample)
