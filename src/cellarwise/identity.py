"""
Wine identity and duplicate detection.

Two notions of identity are used:
- family identity: case-insensitive "producer::name", shared by every vintage
  of a wine (used by the vintage validator and verdict cache keys)
- identity key: normalised "producer|name|vintage" used to spot duplicates
  before a bottle is added to the cellar
"""

import logging
import re
from typing import Iterable, Optional, TypeVar

from cellarwise.schema import Wine

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=Wine)

_ABBREVIATIONS = [
    (r'\bchateau\b', 'ch'),
    (r'\bdomaine\b', 'dom'),
    (r'\bcuvee\b', 'cuv'),
    (r'\breserve\b', 'res'),
    (r'\bgrand cru\b', 'gc'),
    (r'\bpremier cru\b', 'pc'),
]
_ARTICLES = r'\b(the|la|le|les|el|il)\b'

EMPTY_IDENTITY_KEY = '||nv'


def family_identity(producer: Optional[str], name: Optional[str]) -> str:
    """Lower-cased "producer::name"; a missing producer reads as 'unknown'."""
    return f"{producer or 'unknown'}::{name or ''}".lower()


def normalize_name(text: Optional[str]) -> str:
    """
    Normalize a producer or wine name for comparison.

    Trims, lower-cases, strips punctuation (keeping hyphens), shortens common
    wine abbreviations and drops articles.
    """
    if not text:
        return ''

    text = text.strip().lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'\s+', ' ', text)

    for pattern, short in _ABBREVIATIONS:
        text = re.sub(pattern, short, text)

    text = re.sub(_ARTICLES, '', text)
    return re.sub(r'\s+', ' ', text).strip()


def identity_key(producer: Optional[str], name: Optional[str], vintage: Optional[int]) -> str:
    """Duplicate-detection key: producer|name|vintage ('nv' for no vintage)."""
    vintage_part = str(vintage) if vintage else 'nv'
    return f"{normalize_name(producer)}|{normalize_name(name)}|{vintage_part}"


def wine_key(wine: Wine) -> str:
    return identity_key(wine.producer, wine.name, wine.vintage)


def find_duplicate(candidate: Wine, existing: Iterable[T]) -> Optional[T]:
    """
    Return the first wine in `existing` with the same identity key.

    An empty candidate (no producer, name or vintage) never matches.
    """
    candidate_key = wine_key(candidate)
    if candidate_key == EMPTY_IDENTITY_KEY:
        logger.debug("Empty candidate wine, skipping duplicate search")
        return None

    for wine in existing:
        if wine_key(wine) == candidate_key:
            logger.info(f"Duplicate wine found for key {candidate_key}")
            return wine

    return None


def _text_similarity(a: str, b: str, weight: float) -> float:
    if not a or not b:
        return 0.0
    if a == b:
        return weight
    if a in b or b in a:
        return weight / 2
    return 0.0


def wine_similarity(a: Wine, b: Wine) -> float:
    """
    Fuzzy similarity in [0, 1].

    Producer and name each weigh 0.4 (half credit for a substring match),
    vintage 0.2 (exact match only).
    """
    score = _text_similarity(normalize_name(a.producer), normalize_name(b.producer), 0.4)
    score += _text_similarity(normalize_name(a.name), normalize_name(b.name), 0.4)

    if a.vintage and b.vintage and a.vintage == b.vintage:
        score += 0.2

    return round(score, 4)
