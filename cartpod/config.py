"""
Application configuration module.

Settings come from, lowest priority first:
1. Default values
2. A YAML or JSON config file (``CONFIG_PATH``)
3. Environment variables and ``.env``

Nothing outside the application factory reads these settings directly; it
derives the typed config objects (``JWTConfig``, ``MailConfig``) that the
services are constructed with.
"""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cartpod.common.auth.jwt import JWTConfig
from cartpod.common.auth.password import DEFAULT_ITERATIONS
from cartpod.common.logger import app_logger
from cartpod.common.notifications import MailConfig

logger = app_logger.getChild("config")


class Settings(BaseSettings):
    """Application settings."""

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./cartpod.db"
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 5

    # Token settings
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "cartpod-api"
    SESSION_TOKEN_TTL_DAYS: int = 7
    RESET_TOKEN_TTL_MINUTES: int = 60
    PASSWORD_HASH_ITERATIONS: int = DEFAULT_ITERATIONS

    # Email settings
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USE_TLS: bool = True
    EMAIL_USER: Optional[str] = None
    EMAIL_PASSWORD: Optional[str] = None
    EMAIL_FROM_NAME: str = "CartPod"
    CLIENT_URL: str = "http://localhost:3000"

    # Seed admin
    ADMIN_NAME: str = "Admin"
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_FILE: Optional[str] = None

    # API settings
    PROJECT_NAME: str = "CartPod API"
    CORS_ORIGINS: str = "*"
    DEFAULT_IMAGE_URL: str = "https://placehold.co/600x400?text=CartPod"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def jwt_config(self) -> JWTConfig:
        if not self.JWT_SECRET:
            raise ValueError("JWT_SECRET must be set")
        return JWTConfig(
            secret_key=self.JWT_SECRET,
            algorithm=self.JWT_ALGORITHM,
            session_token_expires=self.SESSION_TOKEN_TTL_DAYS,
            reset_token_expires=self.RESET_TOKEN_TTL_MINUTES,
            token_issuer=self.JWT_ISSUER,
        )

    def mail_config(self) -> MailConfig:
        return MailConfig(
            smtp_host=self.SMTP_HOST,
            smtp_port=self.SMTP_PORT,
            use_tls=self.SMTP_USE_TLS,
            username=self.EMAIL_USER,
            password=self.EMAIL_PASSWORD,
            from_name=self.EMAIL_FROM_NAME,
            client_url=self.CLIENT_URL,
            reset_token_minutes=self.RESET_TOKEN_TTL_MINUTES,
        )


class ConfigLoader:
    """
    Configuration loader for the application.

    Values from the config file are only used for keys that are not set in
    the environment.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the config loader.

        Args:
            config_path: Path to config file (YAML or JSON)
        """
        self.config_path = config_path or os.environ.get("CONFIG_PATH")
        self._settings = None

    def load(self) -> Settings:
        if self._settings is not None:
            return self._settings

        file_config = {}
        if self.config_path:
            file_config = self._load_from_file(self.config_path)

        overrides = {key: value for key, value in file_config.items() if key not in os.environ}
        self._settings = Settings(**overrides)
        return self._settings

    def _load_from_file(self, path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            path: Path to config file

        Returns:
            Loaded configuration dictionary
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return {}

        try:
            if path.suffix.lower() in ['.yaml', '.yml']:
                with open(path, 'r') as f:
                    return yaml.safe_load(f) or {}
            elif path.suffix.lower() == '.json':
                with open(path, 'r') as f:
                    return json.load(f)
            else:
                logger.warning(f"Unsupported config file format: {path.suffix}")
                return {}
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config file: {e}")
            return {}


@lru_cache()
def get_settings() -> Settings:
    """
    Get the loaded settings.

    Returns:
        Loaded settings
    """
    return ConfigLoader().load()
