"""User configuration loading.

The configuration file is optional TOML, looked up at ``$RELPUB_CONFIG`` or
``~/.config/relpub/config.toml``:

    keep-v = false
    delegate = "my-delegate --verbose"
    remote = "origin"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str

__all__ = [
    "CONFIG_ENV_VAR",
    "Config",
    "ConfigError",
    "default_config_path",
    "load_config",
    "load_config_or_default",
]

CONFIG_ENV_VAR = "RELPUB_CONFIG"
DEFAULT_REMOTE = "origin"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """User-level publication defaults."""

    keep_v: bool = False
    delegate: str | None = None
    remote: str = DEFAULT_REMOTE

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a parsed TOML table."""
        return cls(
            keep_v=get_bool(data, "keep-v") or False,
            delegate=get_str(data, "delegate"),
            remote=get_str(data, "remote") or DEFAULT_REMOTE,
        )

    def resolve_keep_v(self, cli_keep_v: bool) -> bool:
        """``--keep-v`` on the command line wins over the file value."""
        return cli_keep_v or self.keep_v


def default_config_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    override = env.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "relpub" / "config.toml"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the config file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result
    return Ok(Config.from_dict(result.value))


def load_config_or_default(path: Path) -> Config:
    """Load config, or return defaults when the file is missing or invalid."""
    result = load_config(path)
    if isinstance(result, Ok):
        return result.value
    return Config()
