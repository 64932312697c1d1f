from pathlib import Path

import pytest

from upload_relay.core.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DISCORD_WEBHOOK_URL", "PORT", "HOST", "UPLOAD_DIR", "BLACKLIST_PATH", "BLACKLIST_REFRESH_INTERVAL", "TRUST_PROXY"):
        monkeypatch.delenv(name, raising=False)


def test_config_defaults(clean_env):
    # Ensure default settings have expected types and default values
    settings = Settings(_env_file=None)
    assert settings.port == 3000
    assert settings.discord_webhook_url is None
    assert settings.blacklist_refresh_interval == 60
    assert settings.blacklist_path == Path("config/blacklist.json")
    assert settings.upload_dir == Path("uploads")
    assert settings.uploads_url_prefix == "/uploads"
    assert settings.trust_proxy is False


def test_config_reads_environment(clean_env, monkeypatch):
    monkeypatch.setenv("DISCORD_WEBHOOK_URL", "https://hooks.example.com/x")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("TRUST_PROXY", "true")

    settings = Settings(_env_file=None)

    assert settings.discord_webhook_url == "https://hooks.example.com/x"
    assert settings.port == 8080
    assert settings.trust_proxy is True


def test_blank_webhook_is_treated_as_unset(clean_env, monkeypatch):
    monkeypatch.setenv("DISCORD_WEBHOOK_URL", "  ")
    assert Settings(_env_file=None).discord_webhook_url is None


@pytest.mark.parametrize("prefix", ["uploads", "/uploads/", "uploads/"])
def test_uploads_prefix_is_normalized(clean_env, prefix):
    assert Settings(_env_file=None, uploads_url_prefix=prefix).uploads_url_prefix == "/uploads"
