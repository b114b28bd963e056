"""
Remote Inference Service — hosted text-classification endpoint.

One POST per call:
  POST {REMOTE_API_BASE}/{REMOTE_MODEL}
  Authorization: Bearer <REMOTE_API_TOKEN>     (only when a token is set)
  {"inputs": "<diary text>"}

Expected: 200 with label/score objects in any of the shapes handled by
taxonomy.flatten_predictions. 503 means the hosted model is still loading;
it is surfaced as a tier failure and not retried here.

Never raises: empty input → neutral @ 0, any failure → neutral @ 0.5.
"""
from __future__ import annotations
from typing import Any, List, Optional

import httpx

from diarium_mood.config import settings
from diarium_mood.errors import ModelWarmingUp, RemoteTierError
from diarium_mood.models.schemas import MAX_RANKED, MoodAnalysis, MoodScore
from diarium_mood.models.taxonomy import flatten_predictions, label_score, lookup_mood
from diarium_mood.utils.logging import logger

ERROR_CONFIDENCE = 0.5


class RemoteService:
    name = "remote"

    def __init__(
        self,
        api_base:  Optional[str] = None,
        model:     Optional[str] = None,
        api_token: Optional[str] = None,
        timeout:   Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.model     = model or settings.REMOTE_MODEL
        self.url       = f"{(api_base or settings.REMOTE_API_BASE).rstrip('/')}/{self.model}"
        self.api_token = api_token if api_token is not None else settings.REMOTE_API_TOKEN
        self.timeout   = timeout or settings.REMOTE_TIMEOUT_S
        self._transport = transport

    def status(self) -> str:
        return "configured" if self.api_token else "anonymous"

    # ── Public API ────────────────────────────────────────────────────────────

    async def analyze(self, text: str) -> MoodAnalysis:
        if not text or not text.strip():
            return MoodAnalysis.neutral(0.0)

        try:
            payload = await self._call(text)
            return self._rank(payload)
        except Exception as e:
            logger.warning(
                f"remote: classification failed ({e})",
                extra={"tier": self.name, "event": "tier_error", "reason": getattr(e, "reason", type(e).__name__)},
            )
            return MoodAnalysis.neutral(ERROR_CONFIDENCE)

    # ── Backend ───────────────────────────────────────────────────────────────

    async def _call(self, text: str) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.url, headers=headers, json={"inputs": text})
        except httpx.HTTPError as e:
            raise RemoteTierError(f"request failed: {e}") from e

        if resp.status_code == 503:
            raise ModelWarmingUp("model is loading, try again in a few seconds")

        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteTierError(f"failed to parse response (HTTP {resp.status_code})") from e

        if isinstance(data, dict) and data.get("error"):
            raise RemoteTierError(str(data["error"]))
        if resp.status_code != 200:
            raise RemoteTierError(f"HTTP {resp.status_code}")
        return data

    def _rank(self, payload: Any) -> MoodAnalysis:
        items = flatten_predictions(payload)
        if not items:
            raise RemoteTierError(f"unexpected payload: {type(payload).__name__}")

        # A lone object carries no ranking; treat a missing score as "probably".
        default = ERROR_CONFIDENCE if isinstance(payload, dict) else 0.0
        pairs = sorted((label_score(i, default) for i in items), key=lambda p: p[1], reverse=True)

        scores: List[MoodScore] = [
            MoodScore(mood=lookup_mood(label), confidence=score, source_label=label)
            for label, score in pairs[:MAX_RANKED]
        ]
        return MoodAnalysis.from_scores(scores)
