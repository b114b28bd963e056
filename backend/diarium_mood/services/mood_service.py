"""
Mood analysis cascade.

Fallback chain:
  1. Inference tier  — on-device transformers OR remote endpoint
                       (settings.INFERENCE_TIER, never both)
  2. Statistical     — trained scikit-learn model, if an artifact exists
  3. Keyword         — lexicon heuristic, always available, always accepted

A tier's answer is accepted when confidence > 0.6 or the mood is not
neutral; otherwise the next tier is tried. Empty text short-circuits to
neutral @ 0 before any tier runs. analyze_mood never raises.
"""
from __future__ import annotations
import asyncio
import time
from typing import List, Optional, Protocol, Sequence

from diarium_mood.config import settings
from diarium_mood.errors import InputEmpty, ModelUnavailable
from diarium_mood.models.keyword_classifier import KeywordClassifier
from diarium_mood.models.schemas import Mood, MoodAnalysis, TextAnalysis, ranked_pairs
from diarium_mood.models.statistical_classifier import StatisticalClassifier
from diarium_mood.services.text_analyzer import TextAnalyzer
from diarium_mood.utils.logging import logger
from diarium_mood.utils import metrics
from diarium_mood.utils.metrics import MetricsTracker


class MoodTier(Protocol):
    name: str

    async def analyze(self, text: str) -> MoodAnalysis: ...


def is_acceptable(result: MoodAnalysis, threshold: Optional[float] = None) -> bool:
    threshold = settings.ACCEPT_CONFIDENCE if threshold is None else threshold
    return result.confidence > threshold or result.mood is not Mood.NEUTRAL


def build_inference_tier(kind: Optional[str] = None) -> Optional[MoodTier]:
    kind = (kind or settings.INFERENCE_TIER).strip().lower()
    if kind == "ondevice":
        from diarium_mood.services.ondevice_service import OnDeviceService
        return OnDeviceService()
    if kind == "remote":
        from diarium_mood.services.remote_service import RemoteService
        return RemoteService()
    if kind not in ("", "none"):
        logger.warning(f"cascade: unknown INFERENCE_TIER={kind!r}, skipping inference tier")
    return None


class MoodService:
    def __init__(
        self,
        tiers:    Optional[Sequence[MoodTier]] = None,
        keyword:  Optional[KeywordClassifier] = None,
        analyzer: Optional[TextAnalyzer] = None,
        tracker:  Optional[MetricsTracker] = None,
    ):
        self.keyword  = keyword or KeywordClassifier()
        if tiers is None:
            inference = build_inference_tier()
            tiers = [t for t in (inference, StatisticalClassifier(keyword=self.keyword)) if t is not None]
        self.tiers: List[MoodTier] = list(tiers)
        self.analyzer = analyzer or TextAnalyzer()
        self.tracker  = tracker or metrics.metrics_tracker

    # ── Public API ────────────────────────────────────────────────────────────

    async def analyze_mood(self, text: str) -> MoodAnalysis:
        if not text or not text.strip():
            logger.debug("cascade: empty input", extra={"event": "short_circuit", "reason": InputEmpty.reason})
            return MoodAnalysis.neutral(0.0)

        trace = self.tracker.start()

        for tier in self.tiers:
            t0 = time.time()
            try:
                result = await tier.analyze(text)
            except Exception as e:
                # Tiers are expected to absorb their own failures; this is the backstop.
                latency = (time.time() - t0) * 1000
                trace.record(tier.name, Mood.NEUTRAL.value, 0.0, False, "exception", latency)
                logger.warning(
                    f"cascade: {tier.name} raised ({e}), demoting",
                    extra={"tier": tier.name, "event": "demotion", "reason": "exception"},
                )
                continue

            latency = (time.time() - t0) * 1000
            if is_acceptable(result):
                trace.record(tier.name, result.mood.value, result.confidence, True, "", latency)
                self._finish(trace, tier.name, result)
                return result

            trace.record(tier.name, result.mood.value, result.confidence, False, "low_confidence", latency)
            logger.info(
                f"cascade: {tier.name} not accepted ({result.mood.value} {result.confidence:.2f}), demoting",
                extra={"tier": tier.name, "event": "demotion", "reason": "low_confidence"},
            )

        t0 = time.time()
        result = self.keyword.classify(text)
        trace.record(self.keyword.name, result.mood.value, result.confidence, True, "", (time.time() - t0) * 1000)
        self._finish(trace, self.keyword.name, result)
        return result

    def analyze_temporal_and_category(self, text: str) -> TextAnalysis:
        return self.analyzer.analyze(text)

    def warmup(self) -> None:
        """
        Kick off lazy model loads without waiting for them. Outside an event
        loop this is a no-op and the models load on first use instead.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("cascade: warmup skipped, no running event loop", extra={"event": "warmup_skipped"})
            return
        for tier in self.tiers:
            if hasattr(tier, "warmup"):
                tier.warmup()

    async def load_all(self) -> dict:
        """Await every lazily loaded tier once; failures are already logged by the handle."""
        for tier in self.tiers:
            handle = getattr(tier, "handle", None)
            if handle is None:
                continue
            try:
                await handle.get()
            except ModelUnavailable:
                pass
        return self.status()

    def status(self) -> dict:
        out = {t.name: (t.status() if hasattr(t, "status") else "ready") for t in self.tiers}
        out[self.keyword.name] = "ready"
        return out

    # ── Helper ────────────────────────────────────────────────────────────────

    def _finish(self, trace, tier_name: str, result: MoodAnalysis) -> None:
        self.tracker.finish(trace, accepted_tier=tier_name)
        logger.debug(
            f"cascade: {trace.summary()} moods={ranked_pairs(result)}",
            extra={"tier": tier_name, "event": "accepted"},
        )


# ── Lazy service singleton ───────────────────────────────────────────────────
_service: Optional[MoodService] = None


def get_mood_service() -> MoodService:
    global _service
    _service = _service or MoodService()
    return _service


async def analyze_mood(text: str) -> MoodAnalysis:
    return await get_mood_service().analyze_mood(text)


def analyze_temporal_and_category(text: str) -> TextAnalysis:
    return get_mood_service().analyze_temporal_and_category(text)


def warmup() -> None:
    get_mood_service().warmup()
