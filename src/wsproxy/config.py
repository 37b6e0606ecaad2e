"""Configuration module for the WebSocket proxy."""

from typing import Annotated, Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import DEFAULT_PROXY_PORT, DEFAULT_SWEEP_INTERVAL, ProxyConfig


class ProxySettings(BaseSettings):
    """Proxy configuration settings read from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="PROXY_",
        extra="ignore",
        populate_by_name=True,
    )

    # Listener
    host: Annotated[str, Field(default="0.0.0.0")]
    port: Annotated[int, Field(default=DEFAULT_PROXY_PORT)]
    password: Annotated[str, Field(default="", alias="PROXY_PASS")]
    max_message_size: Annotated[int, Field(default=1024 * 1024, gt=0)]

    # Liveness
    sweep_interval: Annotated[float, Field(default=DEFAULT_SWEEP_INTERVAL, gt=0)]

    # Admin HTTP surface, disabled unless a port is given
    admin_host: Annotated[str, Field(default="127.0.0.1")]
    admin_port: Annotated[Optional[int], Field(default=None, ge=1, le=65535)]

    # Logging
    log_level: Annotated[
        str,
        Field(
            default="INFO",
            pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        ),
    ]
    log_file: Annotated[Optional[str], Field(default=None)]
    log_traffic: Annotated[bool, Field(default=False)]

    @field_validator("port", mode="before")
    @classmethod
    def parse_port(cls, v: Any) -> int:
        """Unset, zero or non-numeric ports fall back to the default."""
        match v:
            case int() as n:
                return n or DEFAULT_PROXY_PORT
            case str() as s:
                try:
                    return int(s.strip()) or DEFAULT_PROXY_PORT
                except ValueError:
                    return DEFAULT_PROXY_PORT
            case _:
                return DEFAULT_PROXY_PORT

    @field_validator("admin_port", "log_file", mode="before")
    @classmethod
    def blank_as_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    def to_proxy_config(self) -> ProxyConfig:
        """Convert settings to ProxyConfig."""
        return ProxyConfig(
            host=self.host,
            port=self.port,
            password=self.password,
            max_message_size=self.max_message_size,
            sweep_interval=self.sweep_interval,
            admin_host=self.admin_host,
            admin_port=self.admin_port,
            log_level=self.log_level,
            log_traffic=self.log_traffic,
        )

    def get_runtime_info(self) -> Dict[str, Any]:
        """Get runtime configuration information, without the secret."""
        return {
            "listen": f"{self.host}:{self.port}",
            "password_required": bool(self.password),
            "sweep_interval": self.sweep_interval,
            "admin": f"{self.admin_host}:{self.admin_port}" if self.admin_port else None,
            "log_traffic": self.log_traffic,
        }


_settings: Optional[ProxySettings] = None


def get_settings() -> ProxySettings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = ProxySettings()
    return _settings


def get_proxy_config() -> ProxyConfig:
    """Get the proxy configuration."""
    return get_settings().to_proxy_config()


def reload_settings() -> ProxySettings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = ProxySettings()
    return _settings
