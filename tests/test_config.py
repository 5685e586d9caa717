import pytest
from pydantic import ValidationError

from inkshare.core import config
from inkshare.core.config import Settings, validate_settings


def test_missing_bot_token_aborts(monkeypatch):
    monkeypatch.delenv("BOT_TOKEN", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_blank_bot_token_aborts(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "   ")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_missing_allow_list_aborts(monkeypatch):
    monkeypatch.delenv("WHITELISTED", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_whitelisted_handles(monkeypatch):
    monkeypatch.setenv("WHITELISTED", "alice  @bob\ncarol")

    assert Settings(_env_file=None).whitelisted_handles == ["alice", "bob", "carol"]


def test_defaults(monkeypatch):
    monkeypatch.delenv("STORE_BACKEND", raising=False)

    fresh = Settings(_env_file=None)

    assert fresh.STORE_BACKEND == "file"
    assert fresh.RATE_LIMIT_MAX_MESSAGES == 1
    assert fresh.RATE_LIMIT_WINDOW_SECONDS == 3.0
    assert fresh.REMARKABLE_TIMEOUT_SECONDS is None


def test_validate_settings_accepts_test_config():
    assert validate_settings() is True


def test_validate_settings_rejects_empty_allow_list(monkeypatch):
    monkeypatch.setattr(config.settings, "WHITELISTED", "   ")

    with pytest.raises(ValueError, match="WHITELISTED"):
        validate_settings()


def test_production_requires_webhook_secret(monkeypatch):
    monkeypatch.setattr(config.settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(config.settings, "STORE_BACKEND", "file")
    monkeypatch.setattr(config.settings, "TELEGRAM_WEBHOOK_URL", "https://bot.example.com/api/v1/telegram/webhook")
    monkeypatch.setattr(config.settings, "TELEGRAM_WEBHOOK_SECRET", None)

    with pytest.raises(ValueError, match="TELEGRAM_WEBHOOK_SECRET"):
        validate_settings()


def test_production_rejects_memory_store(monkeypatch):
    monkeypatch.setattr(config.settings, "ENVIRONMENT", "production")

    with pytest.raises(ValueError, match="STORE_BACKEND=memory"):
        validate_settings()
