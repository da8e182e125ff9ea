"""
Unit tests for token and admin password handling.
"""
import importlib
import pytest

from recode.core import config
from recode.core.security import (
    create_access_token,
    create_admin_token,
    decode_token,
    missing_credentials,
    verify_admin_password,
)


def test_token_round_trip():
    token = create_access_token({"sub": "test@example.com"})
    assert decode_token(token)["sub"] == "test@example.com"
    assert decode_token(create_admin_token())["admin"] is True


def test_no_secret_key_rejects_every_token(monkeypatch):
    token = create_admin_token()
    monkeypatch.setattr(config, "SECRET_KEY", None)

    assert decode_token(token) is None
    with pytest.raises(RuntimeError):
        create_access_token({"sub": "test@example.com"})


def test_token_signed_with_another_key_is_rejected(monkeypatch):
    signing_key = config.SECRET_KEY
    monkeypatch.setattr(config, "SECRET_KEY", "some-other-key")
    forged = create_admin_token()
    monkeypatch.setattr(config, "SECRET_KEY", signing_key)

    assert decode_token(forged) is None


def test_unset_admin_password_disables_admin_login(monkeypatch):
    monkeypatch.setattr(config, "ADMIN_PASSWORD", None)

    assert verify_admin_password("") is False
    assert verify_admin_password("admin123") is False
    assert "ADMIN_PASSWORD" in missing_credentials()


def test_admin_password_comparison(monkeypatch):
    monkeypatch.setattr(config, "ADMIN_PASSWORD", "s3cret")

    assert verify_admin_password("s3cret") is True
    assert verify_admin_password("s3cre") is False
    assert missing_credentials() == []


def test_default_config_ships_no_credentials(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
    fresh = importlib.reload(config)
    try:
        assert fresh.SECRET_KEY is None
        assert fresh.ADMIN_PASSWORD is None
    finally:
        monkeypatch.undo()
        importlib.reload(config)
