"""Settings loading from the environment."""

from collections.abc import Generator

import pytest

from shortener import database
from shortener.config import Settings, get_settings


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.APP_ENV == "development"
    assert settings.CODE_MAX_ATTEMPTS == 200
    assert settings.COUNTER_QUEUE_SIZE == 100


def test_code_length_is_not_configurable() -> None:
    # Length is owned by the record schema
    assert "SHORT_CODE_LENGTH" not in Settings.model_fields


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOMAIN", "https://sho.rt")
    monkeypatch.setenv("COUNTER_WORKERS", "9")

    settings = get_settings()

    assert settings.DOMAIN == "https://sho.rt"
    assert settings.COUNTER_WORKERS == 9
    assert get_settings() is settings


@pytest.mark.parametrize(("app_env", "echo"), [("development", True), ("production", False)])
def test_sql_echo_follows_app_env(monkeypatch: pytest.MonkeyPatch, app_env: str, echo: bool) -> None:
    monkeypatch.setattr(database, "settings", Settings(_env_file=None, APP_ENV=app_env))
    monkeypatch.setattr(database, "engine", None)

    assert database.get_engine().echo is echo
