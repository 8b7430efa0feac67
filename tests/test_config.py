from prompt_gateway import config
from prompt_gateway.config import DEFAULT_MODEL, Settings
from tests._helpers import make_settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.openrouter_api_key is None
    assert settings.openrouter_default_model == DEFAULT_MODEL
    assert settings.port == 3000
    assert settings.ws_port == 3001
    assert settings.ws_enabled is False  # forced off by the test environment
    assert settings.sanitize_fail_open is False


def test_environment_aliases(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-env")
    monkeypatch.setenv("OPENROUTER_DEFAULT_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("SANITIZE_FAIL_OPEN", "true")
    settings = Settings(_env_file=None)
    assert settings.openrouter_api_key == "sk-or-env"
    assert settings.openrouter_default_model == "openai/gpt-4o-mini"
    assert settings.sanitize_fail_open is True


def test_known_model_list_is_trimmed():
    settings = make_settings(KNOWN_MODELS=" a/one , ,b/two,")
    assert settings.known_model_list == ["a/one", "b/two"]


def test_default_model_is_advertised():
    assert DEFAULT_MODEL in make_settings().known_model_list


def test_timeout_is_in_seconds():
    assert make_settings(OPENROUTER_TIMEOUT_MS=2500).openrouter_timeout == 2.5


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-first")
    first = config.get_settings()
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-second")
    assert config.get_settings() is first
    config.get_settings.cache_clear()
    assert config.get_settings().openrouter_api_key == "sk-or-second"
