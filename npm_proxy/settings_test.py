import pytest
from pydantic import ValidationError

from npm_proxy.settings import Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.NPM_MIRROR_URLS == [
        "http://115.182.90.219:31449",
        "https://registry.npmjs.org",
    ]
    assert settings.CACHE_MAX_BYTES == 40 * 1024 * 1024
    assert settings.CACHE_POSITIVE_TTL_SECONDS == 60
    assert settings.CACHE_NEGATIVE_TTL_SECONDS == 300


def test_mirror_urls_from_environment(monkeypatch):
    monkeypatch.setenv(
        "NPM_MIRROR_URLS", '["https://registry.npmmirror.com/", "https://registry.npmjs.org"]'
    )

    settings = Settings(_env_file=None)

    assert settings.NPM_MIRROR_URLS == [
        "https://registry.npmmirror.com",
        "https://registry.npmjs.org",
    ]


def test_mirror_urls_from_secret_file(monkeypatch, tmp_path):
    secret = tmp_path / "mirrors"
    secret.write_text("https://one.test\n\nhttps://two.test/\n")
    monkeypatch.setenv("NPM_MIRROR_URLS_FILE", str(secret))

    settings = Settings(_env_file=None)

    assert settings.NPM_MIRROR_URLS == ["https://one.test", "https://two.test"]


def test_scalar_setting_from_secret_file(monkeypatch, tmp_path):
    secret = tmp_path / "agent"
    secret.write_text("custom-agent\n")
    monkeypatch.setenv("NPM_USER_AGENT_FILE", str(secret))

    assert Settings(_env_file=None).NPM_USER_AGENT == "custom-agent"


def test_empty_mirror_list_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, NPM_MIRROR_URLS=[])
