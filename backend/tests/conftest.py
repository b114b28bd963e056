"""
Shared fixtures: a small trained scikit-learn artifact and stub cascade tiers.
"""

from __future__ import annotations

import joblib
import pytest
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import make_pipeline

from diarium_mood.models.schemas import Mood, MoodAnalysis, MoodScore

TRAINING_DATA = [
    ("I'm so happy today, this is wonderful", "happy"),
    ("Feeling happy and joyful about everything", "happy"),
    ("What a wonderful joyful day, I love it", "happy"),
    ("I feel happy, grateful and wonderful", "happy"),
    ("So much joy and happiness today", "happy"),
    ("Feeling sad and lonely tonight", "sad"),
    ("I'm so sad, crying and lonely", "sad"),
    ("Everything feels sad and empty", "sad"),
    ("Lonely and sad, nothing seems right", "sad"),
    ("Tears again, so sad and miserable", "sad"),
    ("I'm angry and furious at my boss", "angry"),
    ("So angry, this is infuriating", "angry"),
    ("Furious and mad about the mess", "angry"),
    ("I hate this, I'm angry and annoyed", "angry"),
    ("Mad and furious all day long", "angry"),
]


@pytest.fixture
def model_artifact(tmp_path):
    """Path to a joblib-dumped tf-idf + logistic regression mood model."""
    texts, labels = zip(*TRAINING_DATA)
    model = make_pipeline(TfidfVectorizer(), LogisticRegression(max_iter=1000))
    model.fit(list(texts), list(labels))
    path = tmp_path / "mood-classifier.joblib"
    joblib.dump(model, path)
    return path


@pytest.fixture
def placeholder_artifact(tmp_path):
    """An existing file, for tests that inject their own model loader."""
    path = tmp_path / "placeholder.joblib"
    path.write_bytes(b"")
    return path


def analysis(mood: Mood, confidence: float) -> MoodAnalysis:
    return MoodAnalysis.from_scores([MoodScore(mood=mood, confidence=confidence)])


class StubTier:
    """Cascade tier returning a fixed result (or raising) and counting calls."""

    def __init__(self, name: str, result: MoodAnalysis | None = None, exc: Exception | None = None):
        self.name = name
        self.result = result
        self.exc = exc
        self.calls = 0

    async def analyze(self, text: str) -> MoodAnalysis:
        self.calls += 1
        if self.exc is not None:
            raise self.exc
        return self.result
