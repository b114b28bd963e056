"""
Emotion taxonomy — external model labels → the fixed mood set.

Lookup is two-pass:
  1. exact (case-insensitive) key match
  2. first key, in table order, that is a substring of the label or
     contains it
and falls back to neutral. Table order is therefore the tie-break policy
for pass 2 and must stay stable.
"""
from __future__ import annotations
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from diarium_mood.models.schemas import Mood

EmotionTaxonomy = Mapping[str, Mood]

EMOTION_TAXONOMY: EmotionTaxonomy = MappingProxyType({
    # Happy
    "joy":         Mood.HAPPY,
    "happiness":   Mood.HAPPY,
    "excitement":  Mood.HAPPY,
    "optimism":    Mood.HAPPY,
    "love":        Mood.HAPPY,
    "pride":       Mood.HAPPY,
    "relief":      Mood.HAPPY,
    "amusement":   Mood.HAPPY,
    "approval":    Mood.HAPPY,
    "caring":      Mood.HAPPY,
    "gratitude":   Mood.HAPPY,
    "positive":    Mood.HAPPY,

    # Sad
    "sadness":        Mood.SAD,
    "grief":          Mood.SAD,
    "disappointment": Mood.SAD,
    "remorse":        Mood.SAD,
    "shame":          Mood.SAD,
    "negative":       Mood.SAD,

    # Angry
    "anger":       Mood.ANGRY,
    "annoyance":   Mood.ANGRY,
    "disapproval": Mood.ANGRY,
    "disgust":     Mood.ANGRY,

    # Fearful
    "fear":        Mood.FEARFUL,
    "nervousness": Mood.FEARFUL,
    "anxiety":     Mood.FEARFUL,

    # Bad / tired
    "boredom":     Mood.BAD,
    "tiredness":   Mood.BAD,
    "exhaustion":  Mood.BAD,

    # Surprised
    "surprise":    Mood.SURPRISED,
    "confusion":   Mood.SURPRISED,
    "curiosity":   Mood.SURPRISED,

    "neutral":     Mood.NEUTRAL,

    # Sentiment-model labels
    "pos":                Mood.HAPPY,
    "neg":                Mood.SAD,
    "positive_sentiment": Mood.HAPPY,
    "negative_sentiment": Mood.SAD,
})


def lookup_mood(label: str, table: EmotionTaxonomy = EMOTION_TAXONOMY) -> Mood:
    """Map an arbitrary external label to a Mood. Never raises."""
    key = (label or "").strip().lower()
    if not key:
        return Mood.NEUTRAL

    exact = table.get(key)
    if exact is not None:
        return exact

    for entry, mood in table.items():
        if entry in key or key in entry:
            return mood

    return Mood.NEUTRAL


# ── Third-party prediction payloads ───────────────────────────────────────────

def flatten_predictions(payload: Any) -> List[Dict]:
    """
    Normalize classifier output shapes into a flat list of dicts:
      [[{...}, ...]]  → inner list (batch of one)
      [{...}, ...]    → as-is
      {...}           → [{...}]
    Anything else → [].
    """
    while isinstance(payload, list) and payload and isinstance(payload[0], list):
        payload = payload[0]
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        return [p for p in payload if isinstance(p, dict)]
    return []


def label_score(item: Dict, default_score: float = 0.0) -> Tuple[str, float]:
    """Pull (label, score) out of one prediction, tolerating field aliases."""
    label = item.get("label") or item.get("emotion") or item.get("mood") or ""
    score = item.get("score") or item.get("confidence") or default_score
    try:
        score = float(score)
    except (TypeError, ValueError):
        score = default_score
    return str(label), score
