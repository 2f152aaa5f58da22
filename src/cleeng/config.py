"""
Configuration management for the Cleeng client.

Supports configuration via environment variables and .env files.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LIVE_ENDPOINT = "https://api.cleeng.com/3.0/json-rpc"
SANDBOX_ENDPOINT = "https://sandbox.cleeng.com/api/3.0/json-rpc"

LIVE_JSAPI_URL = "http://cdn.cleeng.com/js-api/3.0/api.js"
SANDBOX_JSAPI_URL = "http://sandbox.cleeng.com/js-api/3.0/api.js"

CUSTOMER_TOKEN_COOKIE = "CleengClientAccessToken"


class CleengConfig(BaseSettings):
    """
    Configuration settings for the Cleeng API client.

    All settings can be configured via environment variables with the CLEENG_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLEENG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Endpoint settings
    endpoint: Optional[str] = Field(
        default=None,
        description="Custom JSON-RPC endpoint URL (overrides live/sandbox selection)"
    )
    sandbox: bool = Field(
        default=False,
        description="Use the Cleeng sandbox platform instead of the live one"
    )
    jsapi_url: Optional[str] = Field(
        default=None,
        description="Custom URL of the Cleeng JavaScript library"
    )

    # Dispatch settings
    batch_mode: bool = Field(
        default=False,
        description="Queue API calls until commit() instead of sending each immediately"
    )

    # Credentials
    publisher_token: Optional[str] = Field(
        default=None,
        description="Publisher's token, required by publisher-only API methods"
    )
    distributor_token: Optional[str] = Field(
        default=None,
        description="Distributor's token, required by the Associate API"
    )
    customer_token: Optional[str] = Field(
        default=None,
        description="Customer's access token (falls back to the access token cookie)"
    )
    customer_token_cookie: str = Field(
        default=CUSTOMER_TOKEN_COOKIE,
        description="Name of the cookie holding the customer's access token"
    )

    # Transport settings
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single HTTP round trip"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def api_endpoint(self) -> str:
        """Get the JSON-RPC endpoint based on the sandbox switch."""
        if self.endpoint:
            return self.endpoint
        return SANDBOX_ENDPOINT if self.sandbox else LIVE_ENDPOINT

    @property
    def js_api_url(self) -> str:
        """Get the JavaScript library URL based on the sandbox switch."""
        if self.jsapi_url:
            return self.jsapi_url
        return SANDBOX_JSAPI_URL if self.sandbox else LIVE_JSAPI_URL


# Global config instance
_config: Optional[CleengConfig] = None


def get_config() -> CleengConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = CleengConfig()
    return _config


def set_config(config: CleengConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
