# tests/test_config.py

import logging

import pytest

from privchat.core.config import DEFAULT_TOKEN_SECRET, Settings, parse_duration


@pytest.mark.parametrize(
    "value,seconds",
    [("90", 90), ("30s", 30), ("15m", 900), ("24h", 86400), ("7d", 604800)],
)
def test_parse_duration(value, seconds):
    assert parse_duration(value) == seconds


@pytest.mark.parametrize("value", ["", "soon", "10w", "-5m"])
def test_parse_duration_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_from_env(monkeypatch):
    monkeypatch.setenv("CHAT_PASSWORD", "pw")
    monkeypatch.setenv("JWT_EXPIRY", "2h")
    monkeypatch.setenv("COMPRESSION_THRESHOLD", "250")
    monkeypatch.setenv("BCRYPT_SALT_ROUNDS", "12")
    monkeypatch.setenv("PASSWORD_SET_DATE", "2026-01-15")
    monkeypatch.setenv("CLIENT_URL", "http://a.example, http://b.example")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "no")

    settings = Settings.from_env()

    assert settings.chat_password == "pw"
    assert settings.token_ttl_seconds == 7200
    assert settings.compression_threshold == 250
    assert settings.hash_rounds == 12
    assert settings.password_set_date.year == 2026
    assert settings.allowed_origins == ("http://a.example", "http://b.example")
    assert settings.rate_limit_enabled is False


def test_defaults(monkeypatch):
    for name in ("JWT_SECRET", "JWT_EXPIRY", "COMPRESSION_THRESHOLD", "PASSWORD_SET_DATE", "CLIENT_URL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.token_secret == DEFAULT_TOKEN_SECRET
    assert settings.token_ttl_seconds == 86400
    assert settings.compression_threshold == 100
    assert settings.password_set_date is None


def test_bad_integer(monkeypatch):
    monkeypatch.setenv("COMPRESSION_THRESHOLD", "lots")
    with pytest.raises(ValueError):
        Settings.from_env()


def test_check_requires_password():
    with pytest.raises(RuntimeError):
        Settings(chat_password=None).check()


def test_check_warns_on_defaults(caplog):
    with caplog.at_level(logging.WARNING):
        Settings(chat_password="x").check()
    assert "JWT_SECRET" in caplog.text
    assert "PASSWORD_SET_DATE" in caplog.text
