"""
ecs_chatops.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets (bot token, verification token, signing secret) from repr/logging.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ECS_CHATOPS_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "ecs-chatops"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # AWS
    region: str = "us-east-1"
    aws_connect_timeout: float = 5.0
    aws_read_timeout: float = 20.0
    aws_max_attempts: int = 3

    # Slack credentials. When `secrets_encrypted` is true these hold base64 KMS ciphertext.
    bot_user_oauth_token: str = Field(default="", repr=False)
    verification_token: str = Field(default="", repr=False)
    signing_secret: str | None = Field(default=None, repr=False)
    secrets_encrypted: bool = True
    slack_api_base_url: str = "https://slack.com/api/"

    # Naming convention: "<env>-cluster" hosts task families named "<env>-<service>".
    cluster_suffix: str = "-cluster"
    task_family_delimiter: str = "-"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Secrets are resolved per invocation by `services.dispatcher`; this model only carries
# the raw (possibly encrypted) values.
