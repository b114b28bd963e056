"""
Global configuration — override via environment variables or .env file.
"""
from __future__ import annotations
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    # ── Logging ─────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Cascade ─────────────────────────────────────────────────────────────
    # First tier of the cascade: "ondevice" | "remote" | "none"
    INFERENCE_TIER: str = "ondevice"
    ACCEPT_CONFIDENCE: float = 0.6

    # ── On-device inference (transformers) ──────────────────────────────────
    ONDEVICE_MODEL: str = "distilbert-base-uncased-finetuned-sst-2-english"
    DEVICE: str = "cpu"   # "cpu" | "cuda"

    # ── Remote inference (Hugging Face Inference API) ───────────────────────
    REMOTE_API_BASE: str = "https://api-inference.huggingface.co/models"
    REMOTE_MODEL: str = "j-hartmann/emotion-english-distilroberta-base"
    REMOTE_API_TOKEN: str = ""
    REMOTE_TIMEOUT_S: float = 20.0

    # ── Statistical classifier (scikit-learn artifact) ──────────────────────
    STATISTICAL_MODEL_PATH: str = str(_PACKAGE_DIR / "models" / "artifacts" / "mood-classifier.joblib")
    SOFTMAX_TEMPERATURE: float = 0.5
    UNCERTAINTY_EPSILON: float = 0.001

    # ── Temporal / category ─────────────────────────────────────────────────
    CATEGORY_VISIBILITY_THRESHOLD: float = 0.05

    # ── Metrics ─────────────────────────────────────────────────────────────
    METRICS_LOG_PATH: str = ""   # empty → keep traces in memory only

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
