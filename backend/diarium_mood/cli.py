"""
Command-line harness for the mood pipeline.

    diarium-mood analyze "Feeling sad and lonely, nothing seems right"
    diarium-mood analyze --json "I'm really worried about tomorrow's deadline"
    diarium-mood status
"""

import asyncio
import json
from typing import Optional

import typer

from diarium_mood.config import settings
from diarium_mood.services.mood_service import MoodService, build_inference_tier
from diarium_mood.models.statistical_classifier import StatisticalClassifier
from diarium_mood.utils.logging import setup_logging

app = typer.Typer(help="Diarium mood analysis tools")


def _service(tier: Optional[str]) -> MoodService:
    if tier is None:
        return MoodService()
    inference = build_inference_tier(tier)
    tiers = [t for t in (inference, StatisticalClassifier()) if t is not None]
    return MoodService(tiers=tiers)


# MARK: - Commands


@app.command()
def analyze(
    text: str = typer.Argument(..., help="Diary text to analyze"),
    tier: Optional[str] = typer.Option(
        None, "--tier", "-t", help="Inference tier: ondevice | remote | none"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Analyze mood, temporal focus and life categories of a diary entry."""
    service = _service(tier)

    mood = asyncio.run(service.analyze_mood(text))
    focus = service.analyze_temporal_and_category(text)

    if json_output:
        print(json.dumps({**mood.to_dict(), **focus.to_dict()}, indent=2))
        return

    for score in mood.ranked:
        print(f"{score.mood.value:<10} {score.confidence * 100:5.1f}%")
    temporal = focus.temporal
    print(f"temporal   past={temporal.past:.2f} present={temporal.present:.2f} future={temporal.future:.2f}")
    print("category   " + " ".join(f"{k}={v:.2f}" for k, v in focus.category.items()))


@app.command()
def status(
    tier: Optional[str] = typer.Option(
        None, "--tier", "-t", help="Inference tier: ondevice | remote | none"
    ),
) -> None:
    """Load every tier once and report its state."""
    service = _service(tier)

    for name, state in asyncio.run(service.load_all()).items():
        print(f"{name:<12} {state}")


@app.callback()
def main(
    log_level: str = typer.Option(settings.LOG_LEVEL, "--log-level", help="Logging level"),
) -> None:
    setup_logging(log_level)


if __name__ == "__main__":
    app()
