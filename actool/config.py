"""Configuration loader for actool."""

from __future__ import annotations

import logging
import os
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

from . import constants

LOGGER = logging.getLogger(__name__)

# Credential settings: (environment / key-file name, [credentials] option).
CREDENTIAL_KEYS = (
    (constants.ENV_TOKEN, "token"),
    (constants.ENV_DEVICE_NO, "device_no"),
    (constants.ENV_OPERATOR_NAME, "operator_name"),
)


class ConfigurationError(RuntimeError):
    """Raised when required settings cannot be resolved."""


@dataclass(slots=True)
class GatewayConfig:
    base_url: str = constants.DEFAULT_GATEWAY_BASE_URL
    timeout_seconds: float = constants.DEFAULT_TIMEOUT_SECONDS


@dataclass(slots=True)
class CredentialsConfig:
    token: str
    device_no: str
    operator_name: str


@dataclass(slots=True)
class SchedulerConfig:
    tick_seconds: float = constants.DEFAULT_TICK_SECONDS  # 0 disables the expiry ticker


@dataclass(slots=True)
class LoggingConfig:
    level: str = "WARNING"
    path: Optional[Path] = None
    log_network: bool = False


@dataclass(slots=True)
class ActoolConfig:
    gateway: GatewayConfig
    credentials: CredentialsConfig
    scheduler: SchedulerConfig
    logging: LoggingConfig
    raw: ConfigParser
    path: Path
    env_file: Path


def load_env_file(path: Path) -> Dict[str, str]:
    """Read ``KEY=VALUE`` pairs from a key file.

    Blank lines, ``#`` comments and lines that are not assignments are
    skipped. A missing file yields an empty mapping.

    Raises:
        ConfigurationError: If the file exists but cannot be read.
    """

    if not path.exists():
        return {}

    try:
        values = dotenv_values(path, interpolate=False, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Unable to read key file {path}: {exc}") from exc

    resolved = {key: value.strip() for key, value in values.items() if value is not None}
    LOGGER.debug("Read %d value(s) from key file %s", len(resolved), path)
    return resolved


def load_config(
    path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[Path] = None,
) -> ActoolConfig:
    """Load configuration, resolving credentials from the environment first.

    Credentials are looked up in ``environ`` (default ``os.environ``), then in
    the key file, then in the ``[credentials]`` section of the config file.
    Raises :class:`ConfigurationError` listing every value left unset.
    """

    config_path = path or constants.DEFAULT_CONFIG_PATH
    key_file = env_file or Path.cwd() / constants.DEFAULT_ENV_FILENAME
    environment = os.environ if environ is None else environ

    parser = ConfigParser(interpolation=None)
    parser.read_dict(
        {
            "gateway": {
                "base_url": constants.DEFAULT_GATEWAY_BASE_URL,
                "timeout_seconds": str(constants.DEFAULT_TIMEOUT_SECONDS),
            },
            "scheduler": {
                "tick_seconds": str(constants.DEFAULT_TICK_SECONDS),
            },
            "logging": {
                "level": "WARNING",
                "path": "",
                "log_network": "false",
            },
            "credentials": {},
        }
    )

    if config_path.exists():
        parser.read(config_path, encoding="utf-8")

    key_values = load_env_file(key_file)

    resolved: Dict[str, str] = {}
    missing: list[str] = []
    for env_name, option in CREDENTIAL_KEYS:
        value = (
            environment.get(env_name)
            or key_values.get(env_name)
            or parser.get("credentials", option, fallback="")
        )
        value = value.strip()
        if not value:
            missing.append(env_name)
        resolved[option] = value

    if missing:
        raise ConfigurationError(
            f"Missing required setting(s): {', '.join(missing)}. "
            f"Set them in the environment or in {key_file}."
        )

    default_timeout = GatewayConfig().timeout_seconds
    try:
        timeout_value = parser.getfloat(
            "gateway", "timeout_seconds", fallback=default_timeout
        )
    except ValueError:
        timeout_value = default_timeout

    gateway = GatewayConfig(
        base_url=parser.get("gateway", "base_url").rstrip("/"),
        timeout_seconds=max(1.0, timeout_value),
    )

    scheduler = SchedulerConfig(
        tick_seconds=max(
            0.0,
            parser.getfloat(
                "scheduler", "tick_seconds", fallback=constants.DEFAULT_TICK_SECONDS
            ),
        ),
    )

    log_path_value = parser.get("logging", "path", fallback="").strip()
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="WARNING"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    return ActoolConfig(
        gateway=gateway,
        credentials=CredentialsConfig(**resolved),
        scheduler=scheduler,
        logging=logging_config,
        raw=parser,
        path=config_path,
        env_file=key_file,
    )
