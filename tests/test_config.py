"""Tests for environment-driven settings."""

import pytest

from config import Settings

ENV_VARS = [
    "SPOTIFY_CLIENT_ID",
    "SPOTIFY_CLIENT_SECRET",
    "YOUTUBE_API_KEY",
    "PUBLIC_BASE_URL",
    "HTTP_TIMEOUT",
    "SHORT_ID_LENGTH",
    "LOG_LEVEL",
    "CORS_ORIGINS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env(load_dotenv_file=False)
    assert settings.spotify_client_id is None
    assert settings.youtube_api_key is None
    assert settings.public_base_url == "http://localhost:8000"
    assert settings.http_timeout == 10
    assert settings.short_id_length == 8
    assert settings.cors_origins == ["*"]


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "id")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "secret")
    monkeypatch.setenv("YOUTUBE_API_KEY", "")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://tshare.link/")
    monkeypatch.setenv("HTTP_TIMEOUT", "5")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.test, https://b.test")

    settings = Settings.from_env(load_dotenv_file=False)

    assert settings.spotify_client_id == "id"
    assert settings.youtube_api_key is None
    assert settings.public_base_url == "https://tshare.link"
    assert settings.http_timeout == 5
    assert settings.log_level == "DEBUG"
    assert settings.cors_origins == ["https://a.test", "https://b.test"]


def test_rejects_non_integer(monkeypatch):
    monkeypatch.setenv("HTTP_TIMEOUT", "soon")
    with pytest.raises(ValueError):
        Settings.from_env(load_dotenv_file=False)
