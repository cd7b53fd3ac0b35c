"""Configuration models and loading."""

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from core.exceptions import ConfigurationError

CONFIG_DIR = Path.home() / ".config" / "forward-proxy"
CONFIG_FILE = Path(os.environ.get("FORWARD_PROXY_CONFIG", CONFIG_DIR / "config.json"))


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False


class AuthSettings(BaseModel):
    mode: Literal["basic", "api_key"] = "basic"
    challenge: Literal["www", "proxy"] = "www"
    realm: str = "Login Required"
    username: str = ""
    password: str = ""
    api_key: str = ""
    # Basic mode with no username/password only admits requests when set.
    allow_open: bool = False


class LimitsSettings(BaseModel):
    requests_per_minute: int = 30
    window_seconds: float = 60.0
    upstream_timeout: float = 30.0
    connect_timeout: float = 10.0
    max_connections: int = 100
    max_keepalive_connections: int = 20
    keep_alive_timeout: int = 5


class SafetySettings(BaseModel):
    resolve_dns: bool = False


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    safety: SafetySettings = Field(default_factory=SafetySettings)


# env var -> (section, field)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "PROXY_USERNAME": ("auth", "username"),
    "PROXY_PASSWORD": ("auth", "password"),
    "PROXY_API_KEY": ("auth", "api_key"),
    "PROXY_AUTH_MODE": ("auth", "mode"),
    "PROXY_AUTH_CHALLENGE": ("auth", "challenge"),
    "PROXY_ALLOW_OPEN": ("auth", "allow_open"),
    "PROXY_HOST": ("proxy", "host"),
    "PROXY_PORT": ("proxy", "port"),
    "RATE_LIMIT_PER_MINUTE": ("limits", "requests_per_minute"),
    "UPSTREAM_TIMEOUT": ("limits", "upstream_timeout"),
}


def apply_env_overrides(config: Config, environ: Mapping[str, str]) -> Config:
    """Return a copy of config with environment variables applied on top."""
    data = config.model_dump()
    for name, (section, field) in ENV_OVERRIDES.items():
        value = environ.get(name)
        if value is None or value == "":
            continue
        data[section][field] = value
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment override: {e}") from e


def load_config(
    path: Path = CONFIG_FILE,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if environ is None:
        environ = os.environ

    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        config = Config()
        path.write_text(config.model_dump_json(indent=2))
        return apply_env_overrides(config, environ)

    try:
        data = json.loads(path.read_text())
        config = Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = path.with_suffix(".json.bak")
        path.rename(backup)
        config = Config()
        path.write_text(config.model_dump_json(indent=2))
    return apply_env_overrides(config, environ)
