"""
Temporal / category analyzer — pure lexicon scoring, always available.

Temporal : past / present / future share of word-boundary phrase hits;
           no hit → present = 1.0
Category : share over 8 life domains; shares < 0.05 are hidden and the
           rest renormalized; if that hides everything the single best
           domain is kept; no hit → life = 1.0
"""
from __future__ import annotations
import re
from functools import lru_cache
from typing import Dict, Optional, Pattern

from diarium_mood.config import settings
from diarium_mood.models.lexicon import (
    CATEGORY_LEXICON,
    DEFAULT_CATEGORY,
    TEMPORAL_LEXICON,
    Lexicon,
)
from diarium_mood.models.schemas import TemporalDistribution, TextAnalysis


@lru_cache(maxsize=None)
def _phrase_re(phrase: str) -> Pattern:
    return re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE)


def count_word_hits(text: str, lexicon: Lexicon) -> Dict[str, int]:
    """Occurrences of every phrase, whole words only, summed per label."""
    return {
        label: sum(len(_phrase_re(p).findall(text)) for p in phrases)
        for label, phrases in lexicon.items()
    }


def _shares(counts: Dict[str, int]) -> Optional[Dict[str, float]]:
    total = sum(counts.values())
    if total == 0:
        return None
    return {k: v / total for k, v in counts.items()}


class TextAnalyzer:
    def __init__(
        self,
        temporal_lexicon: Lexicon = TEMPORAL_LEXICON,
        category_lexicon: Lexicon = CATEGORY_LEXICON,
        threshold:        Optional[float] = None,
    ):
        self.temporal_lexicon = temporal_lexicon
        self.category_lexicon = category_lexicon
        self.threshold = threshold if threshold is not None else settings.CATEGORY_VISIBILITY_THRESHOLD

    def analyze_temporal(self, text: str) -> TemporalDistribution:
        if not text or not text.strip():
            return TemporalDistribution()

        shares = _shares(count_word_hits(text.lower(), self.temporal_lexicon))
        if shares is None:
            return TemporalDistribution()
        return TemporalDistribution(**shares)

    def analyze_category(self, text: str) -> Dict[str, float]:
        if not text or not text.strip():
            return {DEFAULT_CATEGORY: 1.0}

        shares = _shares(count_word_hits(text.lower(), self.category_lexicon))
        if shares is None:
            return {DEFAULT_CATEGORY: 1.0}

        visible = {k: v for k, v in shares.items() if v >= self.threshold}
        if not visible:
            # max() returns the first maximum, i.e. lexicon order on ties
            top = max(shares, key=shares.get)
            visible = {top: shares[top]}
        # hidden shares are redistributed so the visible ones still sum to 1
        kept = sum(visible.values())
        return {k: v / kept for k, v in visible.items()}

    def analyze(self, text: str) -> TextAnalysis:
        return TextAnalysis(
            temporal=self.analyze_temporal(text),
            category=self.analyze_category(text),
        )
