"""Heuristic matcher — zero-cost string matching against the cached pool.

Runs before the semantic matcher so that obvious matches never cost a model
call.  All scoring is deterministic; the caller decides whether the score is
authoritative by comparing it with ``heuristic_confidence_threshold``.

Score tiers (best entity wins, pool order breaks ties):

- **1.0** normalised name equality in either locale
- **0.9** the reference contains the entity's English or Hebrew name
- **0.85** cross-language equivalence via the quick-translation table
- **0.8** a reference token (≥3 chars) appears inside the English name
"""

from __future__ import annotations

import logging
import re
import unicodedata

from models.catalogue import AvailableEntityPool, PoolEntity
from models.resolution import HeuristicMatch
from services.vocabulary import ENGLISH_TO_HEBREW, QUICK_TRANSLATIONS

logger = logging.getLogger(__name__)

SCORE_EXACT = 1.0
SCORE_CONTAINS = 0.9
SCORE_TRANSLATION = 0.85
SCORE_TOKEN = 0.8

MIN_TOKEN_LENGTH = 3

_PUNCT_RE = re.compile(r"[^\w\s]|_", re.UNICODE)
_WS_RE = re.compile(r"\s+", re.UNICODE)


def normalize(text: str) -> str:
    """Case-fold, drop combining marks (accents, niqqud) and punctuation."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    folded = _PUNCT_RE.sub(" ", stripped.casefold())
    return _WS_RE.sub(" ", folded).strip()


def _contains_phrase(haystack: str, phrase: str) -> bool:
    """Whole-word containment for Latin text."""
    return f" {phrase} " in f" {haystack} "


class _Reference:
    """Pre-computed views of a normalised reference."""

    def __init__(self, raw: str) -> None:
        self.norm = normalize(raw)
        self.tokens = [t for t in self.norm.split(" ") if len(t) >= MIN_TOKEN_LENGTH]
        self.hebrew_equivalent = ENGLISH_TO_HEBREW.get(self.norm)
        self.english_variants = [
            variant
            for hebrew, variants in QUICK_TRANSLATIONS.items()
            if hebrew in self.norm
            for variant in variants
        ]


def _score(ref: _Reference, entity: PoolEntity) -> float:
    en = normalize(entity.name.en)
    he = normalize(entity.name.he)

    if ref.norm in (en, he):
        return SCORE_EXACT

    if en and _contains_phrase(ref.norm, en):
        return SCORE_CONTAINS
    # Hebrew prefixes attach to the word, so plain substring containment here.
    # Short names also hit inside unrelated words ("עץ" in "יועץ").
    if he and he in ref.norm:
        return SCORE_CONTAINS

    if ref.hebrew_equivalent and he and ref.hebrew_equivalent in he:
        return SCORE_TRANSLATION
    if en and any(variant in en for variant in ref.english_variants):
        return SCORE_TRANSLATION

    if en and any(token in en for token in ref.tokens):
        return SCORE_TOKEN

    return 0.0


def heuristic_match(reference: str, pool: AvailableEntityPool) -> HeuristicMatch:
    """Find the best string-similarity match for *reference* in *pool*."""
    ref = _Reference(reference)
    if not ref.norm:
        return HeuristicMatch(matched=False)

    best_score = 0.0
    best_id: str | None = None
    for entity in pool.entities:
        score = _score(ref, entity)
        if score > best_score:
            best_score = score
            best_id = entity.id
            if score >= SCORE_EXACT:
                break

    if best_id is None:
        return HeuristicMatch(matched=False)

    logger.debug(
        "Heuristic candidate for %r: %s (%.2f)", reference, best_id, best_score
    )
    return HeuristicMatch(matched=True, entity_id=best_id, confidence=best_score)
