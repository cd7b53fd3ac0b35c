import json

import pytest

from core.config import Config, apply_env_overrides, load_config
from core.exceptions import ConfigurationError


def test_defaults():
    config = Config()

    assert config.auth.mode == "basic"
    assert config.auth.challenge == "www"
    assert config.auth.allow_open is False
    assert config.limits.requests_per_minute == 30
    assert config.limits.window_seconds == 60.0


def test_missing_file_is_created_with_defaults(tmp_path):
    path = tmp_path / "forward-proxy" / "config.json"

    config = load_config(path, environ={})

    assert path.exists()
    assert config == Config()
    assert json.loads(path.read_text())["limits"]["requests_per_minute"] == 30


def test_file_values_are_loaded(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"auth": {"mode": "api_key", "api_key": "k"}, "proxy": {"port": 9000}}))

    config = load_config(path, environ={})

    assert config.auth.mode == "api_key"
    assert config.auth.api_key == "k"
    assert config.proxy.port == 9000


def test_corrupt_file_is_backed_up(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")

    config = load_config(path, environ={})

    assert config == Config()
    assert (tmp_path / "config.json.bak").read_text() == "{not json"


def test_environment_overrides_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"auth": {"username": "file-user"}}))
    environ = {
        "PROXY_USERNAME": "env-user",
        "PROXY_PASSWORD": "env-pass",
        "RATE_LIMIT_PER_MINUTE": "5",
        "PROXY_ALLOW_OPEN": "true",
        "PROXY_PORT": "",
    }

    config = load_config(path, environ=environ)

    assert config.auth.username == "env-user"
    assert config.auth.password == "env-pass"
    assert config.auth.allow_open is True
    assert config.limits.requests_per_minute == 5
    assert config.proxy.port == 8080


def test_invalid_override_raises():
    with pytest.raises(ConfigurationError):
        apply_env_overrides(Config(), {"PROXY_AUTH_MODE": "digest"})
