"""
Unit tests for environment configuration.
"""

import pytest

from guidance.config import DEFAULT_MODEL, MISSING, ApiKey, Settings, load_credential


@pytest.fixture
def clean_env(monkeypatch):
    """Clean environment variables before each test."""
    for key in [
        "GEMINI_API_KEY",
        "GEMINI_MODEL",
        "GUIDANCE_RELAY_URL",
        "GUIDANCE_RELAY_TOKEN",
        "GUIDANCE_REQUEST_TIMEOUT",
        "GUIDANCE_REPLY_TIMEOUT",
        "HOST",
        "PORT",
    ]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("guidance.config.load_dotenv", lambda *args, **kwargs: False)


class TestLoadCredential:
    """Test the injected credential."""

    def test_present_key(self, clean_env, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", " secret ")

        credential = load_credential()

        assert credential == ApiKey("secret")
        assert not credential.is_missing

    def test_absent_key_is_missing(self, clean_env):
        assert load_credential() is MISSING
        assert MISSING.is_missing

    def test_blank_key_is_missing(self, clean_env, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "   ")

        assert load_credential() is MISSING

    def test_repr_hides_key(self):
        assert "secret" not in repr(ApiKey("secret"))


class TestSettings:
    """Test Settings.from_env."""

    def test_defaults(self, clean_env):
        settings = Settings.from_env()

        assert settings.credential is MISSING
        assert settings.model_name == DEFAULT_MODEL
        assert settings.relay_url is None
        assert settings.relay_mode == "direct"
        assert settings.request_timeout is None
        assert settings.reply_timeout is None
        assert settings.port == 8000

    def test_relayed_shape(self, clean_env, monkeypatch):
        monkeypatch.setenv("GUIDANCE_RELAY_URL", "https://relay.example/career-guidance")
        monkeypatch.setenv("GUIDANCE_RELAY_TOKEN", "anon")

        settings = Settings.from_env()

        assert settings.relay_mode == "relayed"
        assert settings.relay_token == "anon"

    def test_timeouts_and_model(self, clean_env, monkeypatch):
        monkeypatch.setenv("GEMINI_MODEL", "gemini-2.0-flash")
        monkeypatch.setenv("GUIDANCE_REQUEST_TIMEOUT", "20")
        monkeypatch.setenv("GUIDANCE_REPLY_TIMEOUT", "45.5")
        monkeypatch.setenv("PORT", "9000")

        settings = Settings.from_env()

        assert settings.model_name == "gemini-2.0-flash"
        assert settings.request_timeout == 20.0
        assert settings.reply_timeout == 45.5
        assert settings.port == 9000

    def test_invalid_timeout(self, clean_env, monkeypatch):
        monkeypatch.setenv("GUIDANCE_REPLY_TIMEOUT", "soon")

        with pytest.raises(ValueError):
            Settings.from_env()
