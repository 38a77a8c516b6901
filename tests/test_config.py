"""
Tests for configuration helpers
"""
import pytest

from skillsync_feedback.core.config import get_env_file, mask_database_url, parse_origins


def test_env_file_defaults_to_local(monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)

    assert get_env_file() == ".env.local"


def test_env_file_follows_app_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "PROD")

    assert get_env_file() == ".env.prod"


def test_invalid_app_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")

    with pytest.raises(ValueError):
        get_env_file()


def test_database_password_is_masked():
    masked = mask_database_url("mysql+pymysql://root:s3cret@db:3306/skillsync_feedback")

    assert "s3cret" not in masked
    assert "root" in masked


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", ["*"]),
        ("*", ["*"]),
        ("http://a.test, http://b.test,", ["http://a.test", "http://b.test"]),
    ],
)
def test_parse_origins(raw, expected):
    assert parse_origins(raw) == expected
