"""
Shared configuration management for the Event Grid webhook receiver.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


AZURE_AD_JWKS_URL = "https://login.microsoftonline.com/common/discovery/keys"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="WEBHOOK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Service
    service_name: str = Field(default="webhook")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8020)


class WebhookConfig(BaseConfig):
    """Webhook receiver configuration."""

    # Token verification
    aad_client_id: str
    aad_tenant_id: str
    issuer: Optional[str] = Field(default=None)
    jwks_url: str = Field(default=AZURE_AD_JWKS_URL)
    jwks_timeout_seconds: float = Field(default=5.0, gt=0)
    jwks_cache_ttl_seconds: int = Field(default=300, ge=0)

    # Event handling
    max_batch_size: int = Field(default=1, ge=1)

    @property
    def expected_issuer(self) -> str:
        """Issuer string the token `iss` claim must match."""
        if self.issuer:
            return self.issuer
        return f"https://sts.windows.net/{self.aad_tenant_id}/"


def get_config(**overrides) -> WebhookConfig:
    """Get configuration for the webhook service."""
    return WebhookConfig(**overrides)
