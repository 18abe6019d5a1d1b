"""
Automated language identification.

Wraps langdetect behind a tiny contract: text in, base language code out,
or None when the verdict is not confident ("undetermined"). Analyzers take
the identifier as a parameter so another implementation can be swapped in.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from langdetect import DetectorFactory, detect_langs
from langdetect.detector_factory import init_factory
from langdetect.lang_detect_exception import LangDetectException

logger = logging.getLogger(__name__)

# langdetect is randomised unless seeded.
DetectorFactory.seed = 0

# langdetect loads its profiles lazily into a module global
_factory_lock = threading.Lock()
_factory_ready = False

MIN_TEXT_LENGTH = 10
MIN_CONFIDENCE = 0.80

LanguageIdentifier = Callable[[str], Optional[str]]


class Language(str, Enum):
    FRENCH = "fr"
    ENGLISH = "en"
    SPANISH = "es"
    GERMAN = "de"
    ITALIAN = "it"
    DUTCH = "nl"
    JAPANESE = "ja"
    KOREAN = "ko"
    POLISH = "pl"
    PORTUGUESE = "pt"
    SWEDISH = "sv"
    DANISH = "da"
    FINNISH = "fi"
    NORWEGIAN = "no"
    RUSSIAN = "ru"
    CHINESE = "zh"
    ARABIC = "ar"
    HINDI = "hi"
    TURKISH = "tr"
    CZECH = "cs"
    ROMANIAN = "ro"
    HUNGARIAN = "hu"
    GREEK = "el"
    HEBREW = "he"
    THAI = "th"
    VIETNAMESE = "vi"
    INDONESIAN = "id"

    @property
    def display_name(self) -> str:
        return self.name.title()


# langdetect codes that differ from the base codes used in hreflang
_ALIASES = {
    "zh-cn": "zh",
    "zh-tw": "zh",
    "iw": "he",
    "nb": "no",
    "nn": "no",
}


def supported(code: Optional[str]) -> Optional[Language]:
    """The Language for a base code, or None if it cannot be verified."""
    if not code:
        return None
    try:
        return Language(code.lower())
    except ValueError:
        return None


def display_name(code: Optional[str]) -> str:
    language = supported(code)
    if language is not None:
        return language.display_name
    return code or "-"


def _ensure_profiles() -> None:
    global _factory_ready
    if _factory_ready:
        return
    with _factory_lock:
        if not _factory_ready:
            init_factory()
            _factory_ready = True


def identify_language(text: str) -> Optional[str]:
    """Base language code of ``text``, or None when undetermined."""
    text = (text or "").strip()
    if len(text) < MIN_TEXT_LENGTH:
        return None
    _ensure_profiles()
    try:
        candidates = detect_langs(text)
    except LangDetectException:
        return None
    if not candidates:
        return None
    best = candidates[0]
    if best.prob < MIN_CONFIDENCE:
        logger.debug(f"Low-confidence language guess {best.lang} ({best.prob:.2f})")
        return None
    code = best.lang.lower()
    return _ALIASES.get(code, code)
