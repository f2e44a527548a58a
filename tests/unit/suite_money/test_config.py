import pytest

from suite_money.config import ENV_REGISTRY_PATH, ENV_ROUNDING_MODE, ENV_WARN_ON_INCONSISTENCY, get_settings, reset_settings
from suite_money.scale import RoundingMode, apply_scale, current_rounding_mode


@pytest.fixture
def settings_env(monkeypatch):
    monkeypatch.setattr("suite_money.config.load_dotenv", lambda: False)
    reset_settings()
    yield monkeypatch
    reset_settings()


def test_settings_defaults(settings_env):
    settings_env.delenv(ENV_ROUNDING_MODE, raising=False)
    settings_env.delenv(ENV_WARN_ON_INCONSISTENCY, raising=False)
    settings_env.delenv(ENV_REGISTRY_PATH, raising=False)

    settings = get_settings()

    assert settings.rounding_mode is None
    assert settings.warn_on_inconsistency is False
    assert settings.registry_path is None


def test_settings_from_environment(settings_env):
    settings_env.setenv(ENV_ROUNDING_MODE, "half_up")
    settings_env.setenv(ENV_WARN_ON_INCONSISTENCY, "yes")
    settings_env.setenv(ENV_REGISTRY_PATH, "/tmp/currencies.json")

    settings = get_settings()

    assert settings.rounding_mode == "half_up"
    assert settings.warn_on_inconsistency is True
    assert settings.registry_path == "/tmp/currencies.json"
    assert get_settings() is settings


def test_configured_rounding_mode_is_the_ambient_default(settings_env):
    settings_env.setenv(ENV_ROUNDING_MODE, "HALF_UP")

    assert current_rounding_mode() is RoundingMode.HALF_UP
    assert str(apply_scale("10.5", 0)) == "11"
