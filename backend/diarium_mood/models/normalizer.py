"""
Confidence normalization — bring incompatible score spaces into [0, 1].

  log-likelihoods / logits → temperature_softmax → calibrate
  keyword hit counts       → scale_keyword_counts
  co-detector match counts → co_detector_confidence
"""
from __future__ import annotations
from typing import List, Sequence, Tuple

import numpy as np
from scipy.special import softmax

CLEAR_WINNER_PROB   = 0.4
CLEAR_WINNER_BOOST  = 1.2
CONFIDENCE_CAP      = 0.95

KEYWORD_TOP_FLOOR   = 0.6
KEYWORD_OTHER_CAP   = 0.7
KEYWORD_ZERO_FLOOR  = 0.05


def clamp(x: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return min(hi, max(lo, float(x)))


def boost(confidence: float, factor: float, cap: float = CONFIDENCE_CAP) -> float:
    return min(cap, confidence * factor)


# ── Softmax with temperature ─────────────────────────────────────────────────

def temperature_softmax(scores: Sequence[float], temperature: float = 0.5) -> List[float]:
    """
    p_i = exp((s_i - max_s) / T) / Σ_j exp((s_j - max_s) / T)

    Lower temperature sharpens the distribution. Output sums to 1.
    """
    if temperature <= 0:
        raise ValueError(f"temperature must be positive, got {temperature}")
    if len(scores) == 0:
        return []
    arr = np.asarray(scores, dtype=np.float64)
    # scipy subtracts the max internally; result is identical to the shifted form
    return softmax(arr / temperature).tolist()


def calibrate(probabilities: Sequence[float]) -> List[float]:
    """Clear-winner boost (p > 0.4 → min(0.95, p·1.2)) then clamp to [0, 1]."""
    out: List[float] = []
    for p in probabilities:
        if p > CLEAR_WINNER_PROB:
            p = boost(p, CLEAR_WINNER_BOOST)
        out.append(clamp(p))
    return out


def softmax_with_temperature(scores: Sequence[float], temperature: float = 0.5) -> List[float]:
    return calibrate(temperature_softmax(scores, temperature))


# ── Keyword hit counts ───────────────────────────────────────────────────────

def scale_keyword_counts(ranked: Sequence[Tuple[str, int]]) -> List[Tuple[str, float]]:
    """
    Map ranked (label, hits) pairs — already sorted by hits, descending — to
    (label, confidence).

      all zero           → [("neutral", 0.0)]
      top, max ≥ 2       → min(0.95, max(0.6, s / (max + 1)))
      other hit (s > 0)  → min(0.7, s / total)
      no hit             → 0.05   (never 0, keeps ranking stable)
    """
    if not ranked:
        return [("neutral", 0.0)]
    max_score = ranked[0][1]
    if max_score <= 0:
        return [("neutral", 0.0)]

    total = sum(s for _, s in ranked) or 1
    out: List[Tuple[str, float]] = []
    for idx, (label, score) in enumerate(ranked):
        if idx == 0 and max_score >= 2:
            conf = min(CONFIDENCE_CAP, max(KEYWORD_TOP_FLOOR, score / (max_score + 1)))
        elif score > 0:
            conf = min(KEYWORD_OTHER_CAP, score / total)
        else:
            conf = KEYWORD_ZERO_FLOOR
        out.append((label, conf))
    return out


def co_detector_confidence(matches: int) -> float:
    return min(0.9, 0.5 + matches * 0.1)
