"""
Tests for the mood analysis cascade and the module-level entry points.
"""

import pytest

from diarium_mood.errors import TransientTierFailure
from diarium_mood.models.schemas import Mood, MoodAnalysis, TextAnalysis
from diarium_mood.services import mood_service
from diarium_mood.services.mood_service import MoodService, build_inference_tier, is_acceptable
from diarium_mood.services.remote_service import RemoteService
from diarium_mood.utils.metrics import MetricsTracker

from conftest import StubTier, analysis

WORRIED = "I'm really worried about tomorrow's deadline"

ENTRIES = [
    "",
    "   ",
    WORRIED,
    "Feeling sad and lonely, nothing seems right",
    "I'm so grateful for my friends and family",
    "This is so frustrating! I'm really annoyed",
    "Chill and composed, everything is fine",
    "Shocked, appalled and disgusted, then tired and drained",
]


class TestAcceptancePolicy:
    def test_low_confidence_non_neutral_is_accepted(self):
        assert is_acceptable(analysis(Mood.ANGRY, 0.3))

    def test_low_confidence_neutral_is_rejected(self):
        assert not is_acceptable(analysis(Mood.NEUTRAL, 0.3))
        assert not is_acceptable(analysis(Mood.NEUTRAL, 0.6))

    def test_confident_neutral_is_accepted(self):
        assert is_acceptable(analysis(Mood.NEUTRAL, 0.61))


class TestCascade:
    def setup_method(self):
        self.tracker = MetricsTracker()

    def _service(self, *tiers):
        return MoodService(tiers=list(tiers), tracker=self.tracker)

    @pytest.mark.parametrize("text", ["", "   ", "\n"])
    async def test_empty_input_short_circuits(self, text):
        first = StubTier("first", analysis(Mood.HAPPY, 0.9))
        result = await self._service(first).analyze_mood(text)
        assert result.mood is Mood.NEUTRAL
        assert result.confidence == 0.0
        assert first.calls == 0

    async def test_non_neutral_low_confidence_stops_the_cascade(self):
        first = StubTier("first", analysis(Mood.ANGRY, 0.3))
        second = StubTier("second", analysis(Mood.HAPPY, 0.9))
        result = await self._service(first, second).analyze_mood("some text")
        assert result.mood is Mood.ANGRY
        assert result.confidence == pytest.approx(0.3)
        assert second.calls == 0

    async def test_neutral_low_confidence_falls_through(self):
        first = StubTier("first", analysis(Mood.NEUTRAL, 0.3))
        second = StubTier("second", analysis(Mood.SAD, 0.8))
        result = await self._service(first, second).analyze_mood("some text")
        assert result.mood is Mood.SAD
        assert first.calls == 1 and second.calls == 1

    async def test_keyword_tier_is_the_backstop(self):
        first = StubTier("first", analysis(Mood.NEUTRAL, 0.5))
        second = StubTier("second", analysis(Mood.NEUTRAL, 0.0))
        result = await self._service(first, second).analyze_mood(WORRIED)
        assert result.mood is Mood.FEARFUL
        assert result.confidence >= 0.6

        (trace,) = self.tracker.load_history()
        assert trace["accepted_tier"] == "keyword"
        assert [a["tier"] for a in trace["attempts"]] == ["first", "second", "keyword"]
        assert [a["accepted"] for a in trace["attempts"]] == [False, False, True]

    async def test_keyword_backstop_accepts_neutral(self):
        first = StubTier("first", analysis(Mood.NEUTRAL, 0.5))
        result = await self._service(first).analyze_mood("The weather report")
        assert result.mood is Mood.NEUTRAL
        assert result.confidence == 0.0

    async def test_raising_tier_is_demoted(self):
        first = StubTier("first", exc=TransientTierFailure("socket closed"))
        second = StubTier("second", exc=RuntimeError("unexpected"))
        third = StubTier("third", analysis(Mood.HAPPY, 0.9))
        result = await self._service(first, second, third).analyze_mood("some text")
        assert result.mood is Mood.HAPPY

        (trace,) = self.tracker.load_history()
        assert [a["reason"] for a in trace["attempts"]] == ["exception", "exception", ""]

    async def test_keyword_only_end_to_end(self):
        result = await self._service().analyze_mood(WORRIED)
        assert result.ranked[0].mood is Mood.FEARFUL
        assert result.confidence >= 0.6

    @pytest.mark.parametrize("text", ENTRIES)
    async def test_ranked_invariants(self, text, tmp_path):
        from diarium_mood.models.statistical_classifier import StatisticalClassifier

        statistical = StatisticalClassifier(model_path=str(tmp_path / "missing.joblib"))
        result = await self._service(statistical).analyze_mood(text)
        moods = [s.mood for s in result.ranked]
        confs = [s.confidence for s in result.ranked]
        assert 1 <= len(result.ranked) <= 3
        assert len(set(moods)) == len(moods)
        assert confs == sorted(confs, reverse=True)
        assert result.primary == result.ranked[0]
        assert all(0.0 <= c <= 1.0 for c in confs)

    async def test_result_serializes_to_entry_record(self):
        result = await self._service().analyze_mood(WORRIED)
        record = result.to_dict()
        assert record["mood"] == "fearful"
        assert record["moods"][0] == {"mood": "fearful", "confidence": record["confidence"]}
        assert len(record["moods"]) == 3

    async def test_load_all_reports_states(self, tmp_path):
        from diarium_mood.models.statistical_classifier import StatisticalClassifier

        statistical = StatisticalClassifier(model_path=str(tmp_path / "missing.joblib"))
        service = self._service(statistical, StubTier("stub", analysis(Mood.HAPPY, 0.9)))
        assert service.status() == {"statistical": "unloaded", "stub": "ready", "keyword": "ready"}
        assert await service.load_all() == {"statistical": "failed", "stub": "ready", "keyword": "ready"}


class TestWarmup:
    def _service(self, tmp_path):
        from diarium_mood.models.statistical_classifier import StatisticalClassifier

        statistical = StatisticalClassifier(model_path=str(tmp_path / "missing.joblib"))
        return MoodService(tiers=[statistical], tracker=MetricsTracker())

    def test_without_event_loop_is_a_no_op(self, tmp_path):
        service = self._service(tmp_path)
        service.warmup()
        assert service.status()["statistical"] == "unloaded"

    async def test_inside_event_loop_starts_loads(self, tmp_path):
        service = self._service(tmp_path)
        service.warmup()
        assert service.status()["statistical"] == "loading"
        assert (await service.load_all())["statistical"] == "failed"

    def test_module_warmup_from_sync_code(self, monkeypatch, tmp_path):
        monkeypatch.setattr(mood_service, "_service", self._service(tmp_path))
        mood_service.warmup()
        assert mood_service.get_mood_service().status()["statistical"] == "unloaded"


class TestInferenceTierSelection:
    def test_remote(self):
        assert isinstance(build_inference_tier("remote"), RemoteService)

    def test_none_and_unknown(self):
        assert build_inference_tier("none") is None
        assert build_inference_tier("carrier-pigeon") is None

    def test_ondevice_is_lazy(self):
        tier = build_inference_tier("ondevice")
        assert tier.name == "ondevice"
        assert tier.status() == "unloaded"


class TestModuleEntryPoints:
    @pytest.fixture(autouse=True)
    def keyword_only_service(self, monkeypatch):
        monkeypatch.setattr(mood_service, "_service", MoodService(tiers=[], tracker=MetricsTracker()))

    async def test_analyze_mood(self):
        result = await mood_service.analyze_mood(WORRIED)
        assert isinstance(result, MoodAnalysis)
        assert result.mood is Mood.FEARFUL

    def test_analyze_temporal_and_category(self):
        result = mood_service.analyze_temporal_and_category(WORRIED)
        assert isinstance(result, TextAnalysis)
        assert result.temporal.future == pytest.approx(1.0)
        # "deadline" is work, "I'm" is self
        assert result.category == pytest.approx({"work": 0.5, "self": 0.5})

    def test_package_exports(self):
        import diarium_mood

        assert diarium_mood.analyze_mood is mood_service.analyze_mood
        assert diarium_mood.get_mood_service() is mood_service._service
