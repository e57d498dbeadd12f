# core/matching/text.py
"""Text normalization and similarity scoring for book titles and authors.

Catalog entries and user-entered titles differ in subtitles, translated
edition parentheticals and series numbering, so the scores here combine
exact equality, substring containment and word overlap rather than edit
distance.
"""
import re
import unicodedata
from typing import Optional, Set

# Turkish letters that do not decompose to ASCII under NFKD (ı) or that
# must fold before lowercasing (İ lowercases to "i" + combining dot).
TURKISH_MAP = {
    'ç': 'c', 'ğ': 'g', 'ı': 'i', 'ö': 'o', 'ş': 's', 'ü': 'u',
    'Ç': 'c', 'Ğ': 'g', 'İ': 'i', 'Ö': 'o', 'Ş': 's', 'Ü': 'u',
}
_TURKISH_TABLE = str.maketrans(TURKISH_MAP)

_NON_ALNUM = re.compile(r'[^a-z0-9\s]')
_WHITESPACE = re.compile(r'\s+')
_SLUG_SEPARATORS = re.compile(r'[^a-z0-9]+')

EXACT_SCORE = 1.0
CONTAINMENT_SCORE = 0.9
TITLE_CONTAINMENT_SCORE = 0.95
TITLE_FIRST_WORD_SCORE = 0.85
TITLE_FIRST_WORD_MIN_LENGTH = 3
SURNAME_SCORE = 0.9


def _fold_accents(text: str) -> str:
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(text: Optional[str]) -> str:
    """Lowercase, fold accents, keep only ``[a-z0-9 ]`` and collapse spaces.

    Never raises: ``None`` and empty input normalize to ``""``.
    """
    if not text:
        return ""
    folded = _fold_accents(text.translate(_TURKISH_TABLE)).lower()
    folded = _NON_ALNUM.sub('', folded)
    return _WHITESPACE.sub(' ', folded).strip()


def slugify(text: Optional[str]) -> str:
    """Build a URL slug, e.g. ``"Bilim Kurgu"`` -> ``"bilim-kurgu"``."""
    if not text:
        return ""
    folded = _fold_accents(text.translate(_TURKISH_TABLE)).lower()
    return _SLUG_SEPARATORS.sub('-', folded).strip('-')


def _words(normalized: str) -> Set[str]:
    return {word for word in normalized.split(' ') if len(word) > 1}


def word_overlap(a: str, b: str) -> float:
    """Share of distinct words (longer than one char) the two strings have in common.

    Both arguments must already be normalized.
    """
    words_a = _words(a)
    words_b = _words(b)
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / max(len(words_a), len(words_b))


def _contains(a: str, b: str) -> bool:
    return a in b or b in a


def similarity(a: Optional[str], b: Optional[str]) -> float:
    norm_a = normalize(a)
    norm_b = normalize(b)
    if not norm_a or not norm_b:
        return 0.0
    if norm_a == norm_b:
        return EXACT_SCORE
    if _contains(norm_a, norm_b):
        return CONTAINMENT_SCORE
    return word_overlap(norm_a, norm_b)


def match_title(user_title: Optional[str], catalog_title: Optional[str]) -> float:
    """Score two titles, tolerating subtitles and series numbering.

    "Marslı" against "Marslı (The Martian)" scores 0.95 through
    containment; "Vakıf 1: Vakıf" against "Vakıf Serisi" scores 0.85
    because the leading word matches.
    """
    norm_user = normalize(user_title)
    norm_catalog = normalize(catalog_title)
    if not norm_user or not norm_catalog:
        return 0.0
    if norm_user == norm_catalog:
        return EXACT_SCORE
    if _contains(norm_user, norm_catalog):
        return TITLE_CONTAINMENT_SCORE

    overlap = word_overlap(norm_user, norm_catalog)
    first_user = norm_user.split(' ')[0]
    first_catalog = norm_catalog.split(' ')[0]
    if first_user == first_catalog and len(first_user) >= TITLE_FIRST_WORD_MIN_LENGTH:
        return max(TITLE_FIRST_WORD_SCORE, overlap)
    return overlap


def match_author(user_author: Optional[str], catalog_author: Optional[str]) -> float:
    """Score two author names, comparing surnames before general similarity."""
    norm_user = normalize(user_author)
    norm_catalog = normalize(catalog_author)
    if not norm_user or not norm_catalog:
        return 0.0
    if norm_user == norm_catalog:
        return EXACT_SCORE
    if norm_user.split(' ')[-1] == norm_catalog.split(' ')[-1]:
        return SURNAME_SCORE
    return similarity(norm_user, norm_catalog)
