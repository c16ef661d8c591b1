"""Application configuration for the patient room launcher."""
from __future__ import annotations

import logging
import re
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .logs import log_action, mask_secret

logger = logging.getLogger(__name__)

REQUIRED_ENV = ("SERVER", "CLIENT_ID", "CLIENT_SECRET", "CONF_OWNER_TRUECONF_ID")
DEFAULT_TOPIC_TEMPLATE = "Meeting with patient {{name}}"

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    cors_allow_origins: str = Field(default="")
    log_level: str = Field(default="INFO")

    server: str = Field(default="")
    client_id: str = Field(default="")
    client_secret: str = Field(default="")
    conf_owner_trueconf_id: str = Field(default="")

    port: int = Field(default=3000)
    conf_topic_template: str = Field(default=DEFAULT_TOPIC_TEMPLATE)
    allow_self_signed: bool = Field(default=False)
    request_timeout: float = Field(default=15.0, gt=0)

    @field_validator("allow_self_signed", mode="before")
    @classmethod
    def _blank_is_false(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return False
        return value

    @field_validator("conf_topic_template", mode="before")
    @classmethod
    def _default_topic(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return DEFAULT_TOPIC_TEMPLATE
        return value

    def missing_required(self) -> list[str]:
        """Return the names of required environment variables that are unset."""

        return [name for name in REQUIRED_ENV if not str(getattr(self, name.lower()) or "").strip()]

    def assert_configured(self) -> None:
        """Fail fast when the TrueConf credentials are incomplete."""

        missing = self.missing_required()
        if missing:
            raise ConfigError(f"Missing environment variables: {', '.join(missing)}")

        log_action(
            logger,
            "env:validated",
            SERVER=self.server,
            CLIENT_ID=self.client_id,
            CLIENT_SECRET=mask_secret(self.client_secret),
            CONF_OWNER_TRUECONF_ID=self.conf_owner_trueconf_id,
        )

    @property
    def server_url(self) -> str:
        """Base URL of the TrueConf Server with a scheme and no trailing slash."""

        value = self.server.strip()
        if not _SCHEME_RE.match(value):
            value = f"https://{value}"
        return value.rstrip("/")

    @property
    def cors_origins(self) -> list[str]:
        """Comma-separated ``CORS_ALLOW_ORIGINS`` as a list."""

        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]

    @property
    def server_configured(self) -> bool:
        return bool(self.server and self.client_id and self.client_secret)

    @property
    def verify_tls(self) -> bool:
        return not self.allow_self_signed


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
