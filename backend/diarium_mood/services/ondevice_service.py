"""
On-Device Inference Service — local transformers text-classification pipeline.

Pipeline:
  text → transformers pipeline (built once lazily; build and calls run off the event loop)
       → (label, score) pairs → taxonomy mapping → drop neutral
  text → keyword co-detector (CO_DETECTOR_LEXICON)
  merge:
    keyword mood new or more confident → replace, ×1.1 (cap 0.95)
    keyword mood already present       → boost existing ×1.05 (cap 0.95)
  → top 3

Many local models are coarse (binary positive/negative), so the
co-detector is what surfaces moods like fearful or bad.

Never raises: any load or inference error returns neutral @ 0.5.
"""
from __future__ import annotations
import asyncio
from typing import Any, Callable, Dict, List, Optional

from diarium_mood.config import settings
from diarium_mood.errors import TransientTierFailure
from diarium_mood.models.keyword_classifier import count_hits
from diarium_mood.models.lexicon import CO_DETECTOR_LEXICON, Lexicon
from diarium_mood.models.model_handle import ModelHandle
from diarium_mood.models.normalizer import boost, co_detector_confidence
from diarium_mood.models.schemas import MAX_RANKED, Mood, MoodAnalysis, MoodScore
from diarium_mood.models.taxonomy import flatten_predictions, label_score, lookup_mood
from diarium_mood.utils.logging import logger

KEYWORD_SOURCE  = "keyword-detected"
KEYWORD_BOOST   = 1.1
AGREEMENT_BOOST = 1.05
CO_DETECTOR_TOP = 5
ERROR_CONFIDENCE = 0.5


def _build_pipeline(model_name: str, device: str) -> Any:
    from transformers import pipeline
    return pipeline(
        "text-classification",
        model=model_name,
        device=0 if device == "cuda" else -1,
    )


def detect_keyword_moods(text: str, lexicon: Lexicon = CO_DETECTOR_LEXICON) -> List[MoodScore]:
    """Multi-label keyword co-detector: every mood with at least one hit."""
    found = [
        MoodScore(mood=Mood(label), confidence=co_detector_confidence(hits), source_label=KEYWORD_SOURCE)
        for label, hits in count_hits(text.lower(), lexicon)
        if hits > 0
    ]
    found.sort(key=lambda s: s.confidence, reverse=True)
    return found[:CO_DETECTOR_TOP]


def merge_with_keywords(model_moods: List[MoodScore], keyword_moods: List[MoodScore]) -> MoodAnalysis:
    merged: Dict[Mood, MoodScore] = {}
    for m in model_moods:
        if m.mood is not Mood.NEUTRAL:
            merged[m.mood] = m

    for kw in keyword_moods:
        held = merged.get(kw.mood)
        if held is None or kw.confidence > held.confidence:
            merged[kw.mood] = MoodScore(
                mood=kw.mood,
                confidence=boost(kw.confidence, KEYWORD_BOOST),
                source_label=KEYWORD_SOURCE,
            )
        else:
            merged[kw.mood] = held.model_copy(
                update={"confidence": boost(held.confidence, AGREEMENT_BOOST)}
            )

    return MoodAnalysis.from_scores(merged.values())


class OnDeviceService:
    name = "ondevice"

    def __init__(
        self,
        model_name:       Optional[str] = None,
        device:           Optional[str] = None,
        pipeline_factory: Optional[Callable[[str], Any]] = None,
    ):
        self.model_name = model_name or settings.ONDEVICE_MODEL
        self.device     = device or settings.DEVICE
        self._factory   = pipeline_factory or (lambda name: _build_pipeline(name, self.device))
        self.handle: ModelHandle[Any] = ModelHandle(self.name, self._load)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def _load(self) -> Any:
        logger.info(f"ondevice: building pipeline for {self.model_name} (first run may download it)")
        return await asyncio.to_thread(self._factory, self.model_name)

    def warmup(self) -> None:
        self.handle.trigger()

    def status(self) -> str:
        return self.handle.state.value

    # ── Public API ────────────────────────────────────────────────────────────

    async def analyze(self, text: str) -> MoodAnalysis:
        if not text or not text.strip():
            return MoodAnalysis.neutral(0.0)

        try:
            pipe   = await self.handle.get()
            raw    = await self._infer(pipe, text)
        except Exception as e:
            logger.warning(
                f"ondevice: inference unavailable ({e})",
                extra={"tier": self.name, "event": "tier_error", "reason": getattr(e, "reason", type(e).__name__)},
            )
            return MoodAnalysis.neutral(ERROR_CONFIDENCE)

        pairs = sorted(
            (label_score(item) for item in flatten_predictions(raw)),
            key=lambda p: p[1],
            reverse=True,
        )
        model_moods = [
            MoodScore(mood=lookup_mood(label), confidence=score, source_label=label)
            for label, score in pairs[:MAX_RANKED]
        ]
        return merge_with_keywords(model_moods, detect_keyword_moods(text))

    async def _infer(self, pipe: Any, text: str) -> Any:
        try:
            return await asyncio.to_thread(pipe, text, truncation=True)
        except Exception as e:
            raise TransientTierFailure(f"pipeline call failed: {e}") from e
