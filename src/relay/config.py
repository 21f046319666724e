"""
Configuration management for the chat relay.
Uses Pydantic for type-safe configuration with YAML file support.
"""

import os
import sys
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml


DEFAULT_COHERE_MODELS = [
    "command",
    "command-nightly",
    "command-light",
    "command-light-nightly",
    "command-r",
    "command-r-plus",
]


class CohereSettings(BaseModel):
    """Cohere chat provider configuration."""
    model_config = ConfigDict(populate_by_name=True)

    base_url: str = Field(default="https://api.cohere.ai", alias="base-url")
    models: List[str] = Field(default_factory=lambda: list(DEFAULT_COHERE_MODELS))
    web_connector_id: str = Field(default="web-search", alias="web-connector-id")


class BingSettings(BaseModel):
    """Bing chat bridge configuration."""
    model_config = ConfigDict(populate_by_name=True)

    base_url: str = Field(default="http://127.0.0.1:3000", alias="base-url")
    model: str = "gpt-4"
    tone_style: str = Field(default="precise", alias="tone-style")
    cookie_name: str = Field(default="_U", alias="cookie-name")


class AppConfig(BaseSettings):
    """Main application configuration."""
    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    json_logs: bool = Field(default=False, alias="json-logs")

    # Upstream transport
    request_timeout: float = Field(default=60.0, alias="request-timeout")
    proxy_url: Optional[str] = Field(default=None, alias="proxy-url")

    # Response shaping
    system_fingerprint: str = Field(default="fp_44709d6fcb", alias="system-fingerprint")
    internet_suffix: str = Field(default="-internet", alias="internet-suffix")

    # Providers
    cohere: CohereSettings = Field(default_factory=CohereSettings)
    bing: BingSettings = Field(default_factory=BingSettings)

    @validator("internet_suffix")
    def suffix_not_empty(cls, v: str) -> str:
        """An empty suffix would flag every model as internet-enabled."""
        if not v:
            raise ValueError("internet-suffix must not be empty")
        return v

    @classmethod
    def from_file(cls, config_file: str) -> "AppConfig":
        """Load configuration from a YAML file."""
        config_path = Path(config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")

        with open(config_path, "r", encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f)

        if not yaml_config:
            yaml_config = {}

        return cls(**yaml_config)

    def routable_models(self) -> List[str]:
        """Every model id the relay accepts, suffix variants included."""
        models = []
        for model in self.cohere.models:
            models.append(model)
            models.append(f"{model}{self.internet_suffix}")
        models.append(self.bing.model)
        return models

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not (1 <= self.port <= 65535):
            errors.append(f"Port {self.port} is out of valid range (1-65535)")

        if self.request_timeout <= 0:
            errors.append("request-timeout must be positive")

        for name, url in (("cohere", self.cohere.base_url), ("bing", self.bing.base_url)):
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors.append(f"Invalid {name} base-url: {url}")

        if self.bing.model in self.cohere.models:
            errors.append(f"Model {self.bing.model} is configured for both cohere and bing")

        return errors


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        raise RuntimeError("Configuration not initialized. Call load_config() first.")
    return _config


def load_config(config_file: Optional[str] = None) -> AppConfig:
    """Load configuration from file or environment."""
    global _config

    if config_file:
        _config = AppConfig.from_file(config_file)
    else:
        config_locations = [
            "config.yaml",
            "config/config.yaml",
            os.path.expanduser("~/.chat-relay/config.yaml"),
        ]

        for location in config_locations:
            if Path(location).exists():
                _config = AppConfig.from_file(location)
                break
        else:
            _config = AppConfig()

    errors = _config.validate_config()
    if errors:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)

    return _config

