"""
Diarium mood — diary text → mood ranking + temporal/category focus.

    from diarium_mood import analyze_mood, analyze_temporal_and_category

    analysis = await analyze_mood("I'm really worried about tomorrow's deadline")
    analysis.to_dict()
    # {"mood": "fearful", "confidence": 0.7, "moods": [...]}

    analyze_temporal_and_category("Yesterday at work ...").to_dict()
    # {"temporal": {"past": ..., "present": ..., "future": ...}, "category": {...}}
"""

__version__ = "0.1.0"

from diarium_mood.models.schemas import Mood, MoodAnalysis, MoodScore, TemporalDistribution, TextAnalysis
from diarium_mood.services.mood_service import (
    MoodService,
    analyze_mood,
    analyze_temporal_and_category,
    get_mood_service,
    warmup,
)

__all__ = [
    "Mood",
    "MoodAnalysis",
    "MoodScore",
    "MoodService",
    "TemporalDistribution",
    "TextAnalysis",
    "analyze_mood",
    "analyze_temporal_and_category",
    "get_mood_service",
    "warmup",
]
