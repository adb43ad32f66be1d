"""Tests for settings and provider config loading."""

import os

import pytest
from pydantic import SecretStr, ValidationError

from watermark_relay.config import ProviderConfig, RelaySettings, load_provider_config, load_settings

ENV_KEYS = [
    "WATERMARK_PROVIDER",
    "WATERMARK_API_KEY",
    "WATERMARK_MODEL",
    "PICWISH_POLL_INTERVAL",
    "PICWISH_MAX_POLL_ATTEMPTS",
    "SEGMIND_ACCEPTS_DATA_URI",
    "REPLICATE_VERSION",
    "GEMINI_CANDIDATE_MODELS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield
    # load_dotenv writes straight to os.environ
    for key in ENV_KEYS:
        os.environ.pop(key, None)


class TestProviderConfig:
    def test_is_frozen(self):
        config = ProviderConfig(provider="picwish", credential=SecretStr("secret-key"))
        with pytest.raises(ValidationError):
            config.provider = "segmind"

    def test_credential_is_hidden(self):
        config = ProviderConfig(provider="picwish", credential=SecretStr("secret-key"))
        assert "secret-key" not in repr(config)
        assert "secret-key" not in str(config.model_dump())

    def test_defaults(self):
        config = ProviderConfig(provider="picwish")
        assert config.credential.get_secret_value() == ""
        assert config.model is None


class TestLoadSettings:
    def test_provider_defaults(self):
        settings = load_settings()
        assert (settings.picwish.poll_interval_seconds, settings.picwish.max_poll_attempts) == (1.0, 30)
        assert (settings.segmind.poll_interval_seconds, settings.segmind.max_poll_attempts) == (7.0, 43)
        assert (settings.replicate.poll_interval_seconds, settings.replicate.max_poll_attempts) == (2.0, 60)
        assert settings == RelaySettings()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PICWISH_POLL_INTERVAL", "0.5")
        monkeypatch.setenv("PICWISH_MAX_POLL_ATTEMPTS", "10")
        monkeypatch.setenv("SEGMIND_ACCEPTS_DATA_URI", "no")
        monkeypatch.setenv("GEMINI_CANDIDATE_MODELS", "a, b,")

        settings = load_settings()

        assert settings.picwish.poll_interval_seconds == 0.5
        assert settings.picwish.max_poll_attempts == 10
        assert settings.segmind.accepts_data_uri is False
        assert settings.gemini.candidate_models == ["a", "b"]

    def test_invalid_values(self, monkeypatch):
        monkeypatch.setenv("PICWISH_MAX_POLL_ATTEMPTS", "0")

        with pytest.raises(RuntimeError, match="picwish/max_poll_attempts"):
            load_settings()

    def test_dotenv_file(self, tmp_path):
        env_file = tmp_path / "relay.env"
        env_file.write_text("REPLICATE_VERSION=owner/model:abc\n")

        assert load_settings(env_file).replicate.version == "owner/model:abc"


class TestLoadProviderConfig:
    def test_defaults_to_picwish(self):
        config = load_provider_config()
        assert config.provider == "picwish"
        assert config.credential.get_secret_value() == ""
        assert config.model is None

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("WATERMARK_PROVIDER", " Segmind ")
        monkeypatch.setenv("WATERMARK_API_KEY", "sg-key")
        monkeypatch.setenv("WATERMARK_MODEL", "v2")

        config = load_provider_config()

        assert config.provider == "segmind"
        assert config.credential.get_secret_value() == "sg-key"
        assert config.model == "v2"
