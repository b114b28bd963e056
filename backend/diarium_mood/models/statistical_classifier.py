"""
Statistical Text Classifier — trained scikit-learn model loaded on first use.

Artifact: a joblib dump of a text → label estimator (usually a Pipeline of
vectorizer + linear classifier) at settings.STATISTICAL_MODEL_PATH. No
artifact is an expected state ("no trained model yet"): the handle goes to
failed and every call is answered by the keyword tier.

Pipeline:
  text → decision_function (or predict_proba) over model.classes_
       → uncertainty guard  (|top| < ε  or  top − bottom < ε  → keyword tier)
       → temperature softmax (T = 0.5) → clear-winner calibration → top 3
"""
from __future__ import annotations
import asyncio
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

import joblib
import numpy as np

from diarium_mood.config import settings
from diarium_mood.errors import ModelUnavailable, TransientTierFailure, UncertainResult
from diarium_mood.models.keyword_classifier import KeywordClassifier
from diarium_mood.models.model_handle import ModelHandle
from diarium_mood.models.normalizer import calibrate, temperature_softmax
from diarium_mood.models.schemas import MAX_RANKED, MoodAnalysis, MoodScore, parse_mood
from diarium_mood.models.taxonomy import lookup_mood
from diarium_mood.utils.logging import logger


def model_scores(model: Any, text: str) -> List[Tuple[str, float]]:
    """Raw (label, score) pairs from the model, sorted by score descending."""
    classes = [str(c) for c in getattr(model, "classes_", [])]

    if hasattr(model, "decision_function"):
        raw = np.atleast_1d(np.asarray(model.decision_function([text]), dtype=np.float64)[0])
        if raw.size == 1 and len(classes) == 2:
            # binary margin: positive favours classes_[1]
            raw = np.array([-raw[0], raw[0]])
    elif hasattr(model, "predict_proba"):
        raw = np.asarray(model.predict_proba([text]), dtype=np.float64)[0]
    else:
        raise TransientTierFailure(f"{type(model).__name__} exposes no class scores")

    if len(classes) != raw.size:
        raise TransientTierFailure(f"model returned {raw.size} scores for {len(classes)} classes")

    return sorted(zip(classes, raw.tolist()), key=lambda p: p[1], reverse=True)


class StatisticalClassifier:
    name = "statistical"

    def __init__(
        self,
        model_path:  Optional[str] = None,
        keyword:     Optional[KeywordClassifier] = None,
        load_model:  Callable[[Path], Any] = joblib.load,
        temperature: Optional[float] = None,
        epsilon:     Optional[float] = None,
    ):
        self.model_path  = Path(model_path or settings.STATISTICAL_MODEL_PATH)
        self.keyword     = keyword or KeywordClassifier()
        self.temperature = temperature or settings.SOFTMAX_TEMPERATURE
        self.epsilon     = epsilon if epsilon is not None else settings.UNCERTAINTY_EPSILON
        self._load_model = load_model
        self.handle: ModelHandle[Any] = ModelHandle(self.name, self._load)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def _load(self) -> Any:
        if not self.model_path.is_file():
            raise ModelUnavailable(f"no trained model at {self.model_path}")
        return await asyncio.to_thread(self._load_model, self.model_path)

    def warmup(self) -> None:
        self.handle.trigger()

    def status(self) -> str:
        return self.handle.state.value

    # ── Public API ────────────────────────────────────────────────────────────

    async def analyze(self, text: str) -> MoodAnalysis:
        if not text or not text.strip():
            return MoodAnalysis.neutral(0.0)

        try:
            model = await self.handle.get()
        except ModelUnavailable:
            return self.keyword.classify(text)

        try:
            return self.score(model, text)
        except UncertainResult as e:
            logger.info(
                f"statistical: {e}, using keyword fallback",
                extra={"tier": self.name, "event": "demotion", "reason": e.reason},
            )
        except Exception as e:
            logger.warning(
                f"statistical: scoring failed ({e}), using keyword fallback",
                extra={"tier": self.name, "event": "demotion", "reason": TransientTierFailure.reason},
            )
        return self.keyword.classify(text)

    def score(self, model: Any, text: str) -> MoodAnalysis:
        pairs = model_scores(model, text.lower().strip())
        if not pairs:
            raise UncertainResult("model produced no scores")

        top    = pairs[0][1]
        spread = abs(top - pairs[-1][1])
        if abs(top) < self.epsilon or spread < self.epsilon:
            raise UncertainResult(f"model uncertain (top={top:.4g}, spread={spread:.4g})")

        probs = temperature_softmax([s for _, s in pairs], self.temperature)
        confs = calibrate(probs[:MAX_RANKED])

        scores = [
            MoodScore(mood=parse_mood(label) or lookup_mood(label), confidence=conf, source_label=label)
            for (label, _), conf in zip(pairs, confs)
        ]
        return MoodAnalysis.from_scores(scores)
