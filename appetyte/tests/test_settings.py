"""Settings loading"""

from ..config.environments.development import DevelopmentSettings
from ..config.settings import Settings, load_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("APPETYTE_ENV", raising=False)
    loaded = load_settings()
    assert type(loaded) is Settings
    assert loaded.service_utc_offset_minutes == 330


def test_development_environment(monkeypatch):
    monkeypatch.setenv("APPETYTE_ENV", "development")
    loaded = load_settings()
    assert isinstance(loaded, DevelopmentSettings)
    assert loaded.mock_auth_enabled is True


def test_env_overrides(monkeypatch):
    monkeypatch.delenv("APPETYTE_ENV", raising=False)
    monkeypatch.setenv("APPETYTE_BALANCE_FLOOR_PAISE", "-20000")
    assert load_settings().balance_floor_paise == -20000
