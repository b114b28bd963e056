"""
Tier failure taxonomy.

None of these ever reach a caller of ``analyze_mood``: tiers raise them,
the adapters and the cascade catch them and demote to the next tier.
"""
from __future__ import annotations


class MoodAnalysisError(Exception):
    """Base class for every demotion reason."""

    reason = "error"


class InputEmpty(MoodAnalysisError):
    """Empty or whitespace-only text; short-circuits before any tier."""

    reason = "input_empty"


class ModelUnavailable(MoodAnalysisError):
    """Model artifact or inference pipeline is missing or failed to load."""

    reason = "model_unavailable"


class TransientTierFailure(MoodAnalysisError):
    """Network, parse or inference error inside a single tier call."""

    reason = "transient_failure"


class RemoteTierError(TransientTierFailure):
    reason = "remote_error"


class ModelWarmingUp(RemoteTierError):
    """Remote endpoint answered 503: the hosted model is still loading."""

    reason = "model_warming_up"


class UncertainResult(MoodAnalysisError):
    """Classifier output is statistically meaningless (near-uniform scores)."""

    reason = "uncertain_result"
