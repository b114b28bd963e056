"""
Value types shared by every tier.

MoodAnalysis = {
    "primary": MoodScore,            # == ranked[0]
    "ranked":  [MoodScore, ...],     # 1–3 distinct moods, confidence desc
}

``to_dict()`` produces the record stored alongside a diary entry:
    {"mood": str, "confidence": float, "moods": [{"mood", "confidence"}, ...]}
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_RANKED = 3


class Mood(str, Enum):
    HAPPY     = "happy"
    SAD       = "sad"
    ANGRY     = "angry"
    FEARFUL   = "fearful"
    BAD       = "bad"
    SURPRISED = "surprised"
    DISGUSTED = "disgusted"
    NEUTRAL   = "neutral"


# The seven moods a classifier can detect; neutral is the "no signal" value.
DETECTABLE_MOODS: Tuple[Mood, ...] = tuple(m for m in Mood if m is not Mood.NEUTRAL)


def parse_mood(value: str) -> Optional[Mood]:
    """Return the Mood named by ``value`` (case-insensitive) or None."""
    try:
        return Mood(value.strip().lower())
    except (AttributeError, ValueError):
        return None


class MoodScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    mood: Mood
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    source_label: Optional[str] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return min(1.0, max(0.0, float(v)))

    def to_dict(self) -> Dict:
        out = {"mood": self.mood.value, "confidence": self.confidence}
        if self.source_label is not None:
            out["originalLabel"] = self.source_label
        return out


class MoodAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: MoodScore
    ranked: Tuple[MoodScore, ...]

    @model_validator(mode="after")
    def _check_ranking(self) -> "MoodAnalysis":
        if not 1 <= len(self.ranked) <= MAX_RANKED:
            raise ValueError(f"ranked must hold 1–{MAX_RANKED} moods, got {len(self.ranked)}")
        if self.ranked[0] != self.primary:
            raise ValueError("primary must equal ranked[0]")
        moods = [s.mood for s in self.ranked]
        if len(set(moods)) != len(moods):
            raise ValueError("ranked moods must be distinct")
        confs = [s.confidence for s in self.ranked]
        if any(a < b for a, b in zip(confs, confs[1:])):
            raise ValueError("ranked must be sorted by descending confidence")
        return self

    # ── Constructors ─────────────────────────────────────────────────────────

    @classmethod
    def from_scores(cls, scores: Iterable[MoodScore]) -> "MoodAnalysis":
        """
        Dedupe by mood (highest confidence wins, first seen on ties), sort
        descending (stable), keep the top three. Empty input → neutral 0.
        """
        best: Dict[Mood, MoodScore] = {}
        for s in scores:
            held = best.get(s.mood)
            if held is None or s.confidence > held.confidence:
                best[s.mood] = s
        ranked = sorted(best.values(), key=lambda s: s.confidence, reverse=True)[:MAX_RANKED]
        if not ranked:
            return cls.neutral(0.0)
        return cls(primary=ranked[0], ranked=tuple(ranked))

    @classmethod
    def neutral(cls, confidence: float = 0.0) -> "MoodAnalysis":
        score = MoodScore(mood=Mood.NEUTRAL, confidence=confidence)
        return cls(primary=score, ranked=(score,))

    # ── Accessors ────────────────────────────────────────────────────────────

    @property
    def mood(self) -> Mood:
        return self.primary.mood

    @property
    def confidence(self) -> float:
        return self.primary.confidence

    def to_dict(self) -> Dict:
        return {
            "mood":       self.mood.value,
            "confidence": self.confidence,
            "moods":      [s.to_dict() for s in self.ranked],
        }


class TemporalDistribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    past:    float = 0.0
    present: float = 1.0
    future:  float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"past": self.past, "present": self.present, "future": self.future}


class TextAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    temporal: TemporalDistribution
    category: Dict[str, float]

    def to_dict(self) -> Dict:
        return {"temporal": self.temporal.to_dict(), "category": dict(self.category)}


def ranked_pairs(analysis: MoodAnalysis) -> List[Tuple[str, float]]:
    """(mood, confidence) pairs, handy for logging and the CLI."""
    return [(s.mood.value, round(s.confidence, 4)) for s in analysis.ranked]
