"""
Cascade trace tracker.

Usage:
    trace = metrics_tracker.start()
    ...
    trace.record("remote", "neutral", 0.3, accepted=False, reason="low_confidence", latency_ms=120.4)
    ...
    final = metrics_tracker.finish(trace, accepted_tier="keyword")   # CascadeTrace
"""
from __future__ import annotations
import time
import json
import os
from collections import deque
from dataclasses import dataclass, asdict, field
from typing import Deque, Dict, List, Optional

from diarium_mood.config import settings
from diarium_mood.utils.logging import logger


@dataclass
class TierAttempt:
    tier: str
    mood: str
    confidence: float
    accepted: bool
    reason: str = ""
    latency_ms: float = 0.0


@dataclass
class CascadeTrace:
    attempts: List[TierAttempt] = field(default_factory=list)
    accepted_tier: str = ""
    total_ms: float = 0.0
    timestamp: str = ""
    started_at: float = field(default_factory=time.time, repr=False)

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = time.strftime("%Y-%m-%dT%H:%M:%S")

    def record(self, tier: str, mood: str, confidence: float, accepted: bool,
               reason: str = "", latency_ms: float = 0.0) -> None:
        self.attempts.append(TierAttempt(tier, mood, round(confidence, 4), accepted, reason, round(latency_ms, 2)))

    @property
    def demotions(self) -> List[TierAttempt]:
        return [a for a in self.attempts if not a.accepted]

    def summary(self) -> str:
        path = " → ".join(
            f"{a.tier}({a.mood} {a.confidence:.2f}{'' if a.accepted else ' ✗'})" for a in self.attempts
        )
        return f"total={self.total_ms:.0f}ms [{path}] accepted={self.accepted_tier}"


class MetricsTracker:
    def __init__(self, log_path: str = "", history_size: int = 500):
        self.log_path = log_path
        if log_path and os.path.dirname(log_path):
            os.makedirs(os.path.dirname(log_path), exist_ok=True)
        self._recent: Deque[CascadeTrace] = deque(maxlen=history_size)

    # ── Record ───────────────────────────────────────────────────────────────

    def start(self) -> CascadeTrace:
        return CascadeTrace()

    def finish(self, trace: CascadeTrace, accepted_tier: str) -> CascadeTrace:
        trace.accepted_tier = accepted_tier
        trace.total_ms = round((time.time() - trace.started_at) * 1000, 2)
        self._recent.append(trace)
        if self.log_path:
            self._persist(trace)
        return trace

    # ── Persistence ──────────────────────────────────────────────────────────

    def _persist(self, trace: CascadeTrace) -> None:
        try:
            with open(self.log_path, "a") as f:
                f.write(json.dumps(asdict(trace), ensure_ascii=False) + "\n")
        except OSError as e:
            logger.warning(f"metrics: could not append trace ({e})")

    def load_history(self) -> List[Dict]:
        if not self.log_path:
            return [asdict(t) for t in self._recent]
        try:
            with open(self.log_path) as f:
                return [json.loads(line) for line in f if line.strip()]
        except FileNotFoundError:
            return []

    def summary_stats(self) -> Dict:
        history = self.load_history()
        if not history:
            return {}
        stats: Dict[str, Dict] = {}
        for h in history:
            for a in h.get("attempts", []):
                s = stats.setdefault(a["tier"], {"n": 0, "accepted": 0, "latencies": []})
                s["n"] += 1
                s["accepted"] += int(a["accepted"])
                s["latencies"].append(a["latency_ms"])
        for s in stats.values():
            vals = s.pop("latencies")
            s["mean_ms"] = round(sum(vals) / len(vals), 1)
            s["max_ms"]  = round(max(vals), 1)
        return stats


# Module-level singleton for convenience
metrics_tracker = MetricsTracker(settings.METRICS_LOG_PATH)
