"""
Tests for cascade traces and the JSON log formatter.
"""

import importlib
import json
import logging

import pytest

from diarium_mood import config
from diarium_mood.services.mood_service import MoodService
from diarium_mood.utils import metrics
from diarium_mood.utils.logging import _JSONFormatter
from diarium_mood.utils.metrics import MetricsTracker


def _run_trace(tracker):
    trace = tracker.start()
    trace.record("remote", "neutral", 0.3, accepted=False, reason="low_confidence", latency_ms=120.4)
    trace.record("statistical", "neutral", 0.2, accepted=False, reason="low_confidence", latency_ms=3.0)
    trace.record("keyword", "fearful", 0.7, accepted=True, latency_ms=1.0)
    return tracker.finish(trace, accepted_tier="keyword")


class TestMetricsTracker:
    def test_in_memory_history(self):
        tracker = MetricsTracker()
        final = _run_trace(tracker)
        assert final.accepted_tier == "keyword"
        assert final.total_ms >= 0
        assert [a.tier for a in final.demotions] == ["remote", "statistical"]

        (record,) = tracker.load_history()
        assert record["accepted_tier"] == "keyword"
        assert record["attempts"][0]["reason"] == "low_confidence"

    def test_history_is_bounded(self):
        tracker = MetricsTracker(history_size=2)
        for _ in range(5):
            _run_trace(tracker)
        assert len(tracker.load_history()) == 2

    def test_jsonl_persistence(self, tmp_path):
        path = tmp_path / "traces" / "cascade.jsonl"
        tracker = MetricsTracker(log_path=str(path))
        _run_trace(tracker)
        _run_trace(tracker)

        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["attempts"][2]["tier"] == "keyword"
        assert len(tracker.load_history()) == 2

    def test_missing_log_file(self, tmp_path):
        tracker = MetricsTracker(log_path=str(tmp_path / "never-written.jsonl"))
        assert tracker.load_history() == []
        assert tracker.summary_stats() == {}

    def test_summary_stats(self):
        tracker = MetricsTracker()
        _run_trace(tracker)
        _run_trace(tracker)
        stats = tracker.summary_stats()
        assert stats["remote"] == {"n": 2, "accepted": 0, "mean_ms": 120.4, "max_ms": 120.4}
        assert stats["keyword"]["accepted"] == 2

    def test_summary_line(self):
        final = _run_trace(MetricsTracker())
        line = final.summary()
        assert "remote(neutral 0.30 ✗)" in line
        assert line.endswith("accepted=keyword")


class TestJSONFormatter:
    def _format(self, **extra):
        record = logging.makeLogRecord({
            "name": "diarium_mood",
            "levelno": logging.WARNING,
            "levelname": "WARNING",
            "msg": "cascade: %s demoted",
            "args": ("remote",),
            **extra,
        })
        return json.loads(_JSONFormatter().format(record))

    def test_base_fields(self):
        out = self._format()
        assert out["level"] == "WARNING"
        assert out["logger"] == "diarium_mood"
        assert out["msg"] == "cascade: remote demoted"
        assert "time" in out

    def test_extra_fields_are_top_level(self):
        out = self._format(tier="remote", reason="low_confidence", event="demotion")
        assert out["tier"] == "remote"
        assert out["reason"] == "low_confidence"
        assert out["event"] == "demotion"


class TestConfiguredTracker:
    @pytest.fixture
    def trace_file(self, monkeypatch, tmp_path):
        path = tmp_path / "traces.jsonl"
        monkeypatch.setenv("METRICS_LOG_PATH", str(path))
        monkeypatch.setattr(config, "settings", config.Settings())
        importlib.reload(metrics)
        yield path
        monkeypatch.undo()
        importlib.reload(metrics)

    def test_singleton_uses_configured_path(self, trace_file):
        assert metrics.metrics_tracker.log_path == str(trace_file)

    async def test_analyze_mood_appends_trace(self, trace_file):
        service = MoodService(tiers=[])
        await service.analyze_mood("I'm really worried about tomorrow's deadline")

        (line,) = trace_file.read_text().splitlines()
        record = json.loads(line)
        assert record["accepted_tier"] == "keyword"
        assert record["attempts"][0]["mood"] == "fearful"
