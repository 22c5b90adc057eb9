"""Typed configuration loading and server resolution.

The config file is optional TOML:

    [server]
    url = "https://acme.jfrog.io"
    access_token = "..."

Connection settings resolve in this order: command-line flags, ``RBCLI_*``
environment variables, then the ``[server]`` table.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from rbcli.platform.paths import default_config_file

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "ServerConfig",
    "ServerDetails",
    "default_config_path",
    "load_config",
    "load_config_or_default",
    "resolve_config_path",
    "resolve_server_details",
    # Environment variables
    "ENV_CONFIG",
    "ENV_URL",
    "ENV_ACCESS_TOKEN",
    "ENV_USER",
    "ENV_PASSWORD",
]

ENV_CONFIG = "RBCLI_CONFIG"
ENV_URL = "RBCLI_URL"
ENV_ACCESS_TOKEN = "RBCLI_ACCESS_TOKEN"
ENV_USER = "RBCLI_USER"
ENV_PASSWORD = "RBCLI_PASSWORD"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or is incomplete."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """The ``[server]`` table."""

    url: str | None = None
    access_token: str | None = None
    user: str | None = None
    password: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        server: StrDict = get_table(data, "server") or {}
        return cls(
            server=ServerConfig(
                url=get_str(server, "url"),
                access_token=get_str(server, "access_token"),
                user=get_str(server, "user"),
                password=get_str(server, "password"),
            )
        )


@dataclass(frozen=True, slots=True)
class ServerDetails:
    """Resolved connection details for one platform deployment.

    ``url`` is the platform root; service URLs always end with a slash.
    """

    url: str
    access_token: str | None = None
    user: str | None = None
    password: str | None = None

    @property
    def artifactory_url(self) -> str:
        return _with_trailing_slash(self.url) + "artifactory/"

    @property
    def lifecycle_url(self) -> str:
        return _with_trailing_slash(self.url) + "lifecycle/"


def _with_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"


def default_config_path() -> Path:
    return default_config_file()


def resolve_config_path(explicit: Path | None, env: Mapping[str, str] | None = None) -> Path:
    """Pick the config file: --config, then $RBCLI_CONFIG, then the user default."""
    if explicit is not None:
        return explicit.expanduser()
    environ = os.environ if env is None else env
    from_env = environ.get(ENV_CONFIG, "").strip()
    if from_env:
        return Path(from_env).expanduser()
    return default_config_path()


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to config.toml file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result
    return Ok(Config.from_dict(result.value))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file yields the default Config."""
    if not path.exists():
        return Ok(Config())
    return load_config(path)


def resolve_server_details(
    *,
    config: Config,
    url: str | None = None,
    access_token: str | None = None,
    user: str | None = None,
    password: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[ServerDetails, ConfigError]:
    """Merge flags, environment and config file into ServerDetails."""
    environ = os.environ if env is None else env

    def pick(flag: str | None, env_key: str, configured: str | None) -> str | None:
        if flag:
            return flag.strip() or None
        from_env = environ.get(env_key, "").strip()
        if from_env:
            return from_env
        return configured

    resolved_url = pick(url, ENV_URL, config.server.url)
    if not resolved_url:
        return Err(ConfigError("platform URL is mandatory for lifecycle commands"))

    return Ok(
        ServerDetails(
            url=resolved_url,
            access_token=pick(access_token, ENV_ACCESS_TOKEN, config.server.access_token),
            user=pick(user, ENV_USER, config.server.user),
            password=pick(password, ENV_PASSWORD, config.server.password),
        )
    )
