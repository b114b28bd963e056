"""
Keyword Heuristic Classifier — terminal tier of the cascade.

Design contract:
  classify(text: str) → MoodAnalysis

Deterministic and synchronous: no external resource, never fails. Every
other tier falls back to this one.

Scoring:
  hits[mood] = number of lexicon phrases contained in the lower-cased text
               (plain substring test, multi-word phrases match directly)
  ranking    = moods by hits desc, lexicon order on ties, top 3
  confidence = normalizer.scale_keyword_counts
"""
from __future__ import annotations
from typing import List, Tuple

from diarium_mood.models.lexicon import Lexicon, MOOD_LEXICON
from diarium_mood.models.normalizer import scale_keyword_counts
from diarium_mood.models.schemas import MAX_RANKED, Mood, MoodAnalysis, MoodScore


def count_hits(text_lower: str, lexicon: Lexicon) -> List[Tuple[str, int]]:
    """(label, hits) for every lexicon label, in lexicon order."""
    return [
        (label, sum(1 for phrase in phrases if phrase in text_lower))
        for label, phrases in lexicon.items()
    ]


class KeywordClassifier:
    name = "keyword"

    def __init__(self, lexicon: Lexicon = MOOD_LEXICON):
        self.lexicon = lexicon

    def classify(self, text: str) -> MoodAnalysis:
        if not text or not text.strip():
            return MoodAnalysis.neutral(0.0)

        hits = count_hits(text.lower(), self.lexicon)
        # sorted() is stable, so equal counts keep lexicon order
        ranked = sorted(hits, key=lambda h: h[1], reverse=True)[:MAX_RANKED]

        scores = [
            MoodScore(mood=Mood(label), confidence=conf)
            for label, conf in scale_keyword_counts(ranked)
        ]
        return MoodAnalysis.from_scores(scores)

    async def analyze(self, text: str) -> MoodAnalysis:
        return self.classify(text)
