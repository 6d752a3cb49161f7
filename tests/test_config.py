"""Tests for settings validation."""

from app.config import Settings


def _jwt_warnings(settings: Settings) -> list[str]:
    return [w for w in settings.validate() if w.startswith("JWT_SECRET_KEY")]


def test_warns_when_jwt_secret_not_set(monkeypatch):
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    settings = Settings()
    assert settings.JWT_SECRET_KEY
    assert len(_jwt_warnings(settings)) == 1


def test_no_warning_when_jwt_secret_set(monkeypatch):
    monkeypatch.setenv("JWT_SECRET_KEY", "a-configured-secret")
    assert _jwt_warnings(Settings()) == []


def test_retry_attempts_must_be_positive():
    settings = Settings()
    settings.CLIENT_RETRY_ATTEMPTS = 0
    assert "CLIENT_RETRY_ATTEMPTS must be at least 1" in settings.validate()
