"""
Tests for settings loading and the derived config objects.
"""

import json

import pytest
import yaml

from cartpod.config import ConfigLoader, Settings


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("CONFIG_PATH", "JWT_SECRET", "LOG_LEVEL", "SMTP_PORT", "CLIENT_URL", "CORS_ORIGINS"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_jwt_config_from_settings():
    settings = Settings(
        JWT_SECRET="secret",
        JWT_ISSUER="issuer",
        SESSION_TOKEN_TTL_DAYS=3,
        RESET_TOKEN_TTL_MINUTES=15
    )

    config = settings.jwt_config()

    assert config.secret_key == "secret"
    assert config.algorithm == "HS256"
    assert config.token_issuer == "issuer"
    assert config.session_token_expires == 3
    assert config.reset_token_expires == 15


def test_jwt_config_requires_secret():
    with pytest.raises(ValueError):
        Settings(JWT_SECRET="").jwt_config()


def test_mail_config_from_settings():
    settings = Settings(
        SMTP_HOST="mail.test",
        SMTP_PORT=2525,
        SMTP_USE_TLS=False,
        EMAIL_USER="noreply@example.com",
        EMAIL_PASSWORD="pw",
        CLIENT_URL="http://client.test",
        RESET_TOKEN_TTL_MINUTES=30
    )

    config = settings.mail_config()

    assert config.smtp_host == "mail.test"
    assert config.smtp_port == 2525
    assert config.use_tls is False
    assert config.username == "noreply@example.com"
    assert config.client_url == "http://client.test"
    assert config.reset_token_minutes == 30


def test_log_level_is_validated():
    assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"
    with pytest.raises(ValueError):
        Settings(LOG_LEVEL="chatty")


def test_cors_origins_are_split():
    settings = Settings(CORS_ORIGINS="http://a.test, http://b.test,")

    assert settings.cors_origins == ["http://a.test", "http://b.test"]


class TestConfigLoader:

    def test_yaml_file(self, tmp_path, clean_env):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"JWT_SECRET": "from-yaml", "SMTP_PORT": 2525}))

        settings = ConfigLoader(str(path)).load()

        assert settings.JWT_SECRET == "from-yaml"
        assert settings.SMTP_PORT == 2525

    def test_json_file(self, tmp_path, clean_env):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"CLIENT_URL": "http://json.test"}))

        settings = ConfigLoader(str(path)).load()

        assert settings.CLIENT_URL == "http://json.test"

    def test_environment_beats_file(self, tmp_path, clean_env):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"JWT_SECRET": "from-yaml", "LOG_LEVEL": "ERROR"}))
        clean_env.setenv("JWT_SECRET", "from-env")

        settings = ConfigLoader(str(path)).load()

        assert settings.JWT_SECRET == "from-env"
        assert settings.LOG_LEVEL == "ERROR"

    def test_config_path_from_environment(self, tmp_path, clean_env):
        path = tmp_path / "config.yml"
        path.write_text("JWT_SECRET: via-config-path\n")
        clean_env.setenv("CONFIG_PATH", str(path))

        assert ConfigLoader().load().JWT_SECRET == "via-config-path"

    @pytest.mark.parametrize("name, content", [
        ("missing.yaml", None),
        ("config.toml", "JWT_SECRET = 'x'"),
        ("broken.json", "{not json"),
    ])
    def test_unusable_files_fall_back_to_defaults(self, tmp_path, clean_env, name, content):
        path = tmp_path / name
        if content is not None:
            path.write_text(content)

        settings = ConfigLoader(str(path)).load()

        assert settings.SMTP_PORT == 587

    def test_settings_are_loaded_once(self, clean_env):
        loader = ConfigLoader()

        assert loader.load() is loader.load()
