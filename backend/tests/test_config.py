"""
Tests for environment / .env configuration.
"""

from diarium_mood.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("INFERENCE_TIER", raising=False)
        s = Settings()
        assert s.INFERENCE_TIER == "ondevice"
        assert s.ACCEPT_CONFIDENCE == 0.6
        assert s.METRICS_LOG_PATH == ""

    def test_reads_dotenv_file(self, monkeypatch, tmp_path):
        (tmp_path / ".env").write_text("INFERENCE_TIER=remote\nACCEPT_CONFIDENCE=0.75\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("INFERENCE_TIER", raising=False)
        monkeypatch.delenv("ACCEPT_CONFIDENCE", raising=False)
        s = Settings()
        assert s.INFERENCE_TIER == "remote"
        assert s.ACCEPT_CONFIDENCE == 0.75

    def test_environment_overrides_dotenv(self, monkeypatch, tmp_path):
        (tmp_path / ".env").write_text("INFERENCE_TIER=remote\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("INFERENCE_TIER", "none")
        assert Settings().INFERENCE_TIER == "none"

    def test_uses_settings_config_dict(self):
        assert Settings.model_config["env_file"] == ".env"
