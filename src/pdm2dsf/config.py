"""
Configuration loader merging defaults, config files, environment, and CLI args.
"""

from __future__ import annotations

import argparse
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Tuple

from .dsf_writer import DEFAULT_BIT_RATE, MAX_BIT_RATE
from .errors import ConfigError
from .logging_utils import LogFormat

DEFAULT_CONFIG_FILENAME = "pdm2dsf.toml"
DEFAULT_OUTPUT_PATH = "out.dsf"


@dataclass
class AppConfig:
    """High-level application configuration container."""

    output_path: str = DEFAULT_OUTPUT_PATH
    bit_rate: int = DEFAULT_BIT_RATE
    log_format: str = LogFormat.HUMAN.value
    json_log: bool = False
    dry_run: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


def load_config(
    args: argparse.Namespace | None = None,
    *,
    env: Mapping[str, str] | None = None,
    config_file: str | Path | None = None,
) -> AppConfig:
    """
    Load configuration merging defaults, config file, environment, then CLI.

    Precedence: CLI args > environment variables > config file > defaults.
    """

    defaults = AppConfig()
    config_data: dict[str, Any] = {
        key: getattr(defaults, key) for key in _known_fields()
    }
    extras: dict[str, Any] = {}

    resolved_config_path = _resolve_config_path(args, config_file)
    if resolved_config_path is not None:
        file_config, file_extras = _load_from_file(resolved_config_path)
        config_data.update(file_config)
        extras.update(file_extras)

    config_data.update(_load_from_env(env))
    config_data.update(_load_from_cli(args))

    validated = _validate_config(config_data)
    if validated["json_log"]:
        validated["log_format"] = LogFormat.JSON.value
    if extras:
        validated["extra"] = extras

    return AppConfig(**validated)


def _known_fields() -> set[str]:
    return {f.name for f in fields(AppConfig) if f.init and f.name != "extra"}


def _resolve_config_path(
    args: argparse.Namespace | None, config_file: str | Path | None
) -> Path | None:
    candidate: str | Path | None = None
    if args is not None and getattr(args, "config", None):
        candidate = getattr(args, "config")
    elif config_file is not None:
        candidate = config_file

    if candidate is None:
        default_path = Path(DEFAULT_CONFIG_FILENAME)
        return default_path if default_path.exists() else None

    path = Path(candidate).expanduser()
    if not path.is_file():
        raise ConfigError(f"Config file '{path}' does not exist")
    return path


def _load_from_file(path: Path) -> Tuple[dict[str, Any], dict[str, Any]]:
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except FileNotFoundError:
        return {}, {}
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid config file '{path}': {exc}") from exc

    return _partition_known(data)


def _parse_flag(value: str) -> bool:
    return str(value).lower() in {"1", "true", "yes"}


ENV_KEY_MAP: dict[str, Tuple[str, callable]] = {
    "PDM2DSF_OUTPUT": ("output_path", str),
    "PDM2DSF_BIT_RATE": ("bit_rate", int),
    "PDM2DSF_LOG_FORMAT": ("log_format", str),
    "PDM2DSF_JSON_LOG": ("json_log", _parse_flag),
    "PDM2DSF_DRY_RUN": ("dry_run", _parse_flag),
}


def _load_from_env(env: Mapping[str, str] | None) -> dict[str, Any]:
    source = env if env is not None else os.environ
    result: dict[str, Any] = {}
    for env_key, (config_key, caster) in ENV_KEY_MAP.items():
        if env_key in source and source[env_key] != "":
            try:
                result[config_key] = caster(source[env_key])
            except ValueError as exc:
                raise ConfigError(f"{env_key} is invalid: {exc}") from exc
    return result


CLI_ATTR_MAP: dict[str, Tuple[str, callable]] = {
    "output": ("output_path", str),
    "rate": ("bit_rate", int),
    "json_log": ("json_log", bool),
    "dry_run": ("dry_run", bool),
}


def _load_from_cli(args: argparse.Namespace | None) -> dict[str, Any]:
    if args is None:
        return {}

    result: dict[str, Any] = {}
    for attr_name, (config_key, caster) in CLI_ATTR_MAP.items():
        if hasattr(args, attr_name):
            value = getattr(args, attr_name)
            if value is None:
                continue
            if caster is bool:
                # store_true flags only override when set
                if value:
                    result[config_key] = True
            else:
                result[config_key] = caster(value)
    return result


def _partition_known(data: Mapping[str, Any]) -> Tuple[dict[str, Any], dict[str, Any]]:
    known: dict[str, Any] = {}
    extras: dict[str, Any] = {}
    known_keys = _known_fields()
    for key, value in data.items():
        if key in known_keys:
            known[key] = value
        else:
            extras[key] = value
    return known, extras


def _validate_config(data: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    bit_rate = data.get("bit_rate")
    if isinstance(bit_rate, bool) or not isinstance(bit_rate, int):
        raise ConfigError("bit_rate must be an integer")
    if not (0 < bit_rate <= MAX_BIT_RATE):
        raise ConfigError(f"bit_rate must be between 1 and {MAX_BIT_RATE}")

    output_path = data.get("output_path")
    if not output_path:
        raise ConfigError("output_path must not be empty")
    data["output_path"] = str(output_path)

    log_format = data.get("log_format")
    if log_format not in {fmt.value for fmt in LogFormat}:
        raise ConfigError("log_format must be 'human' or 'json'")

    for flag in ("json_log", "dry_run"):
        value = data.get(flag)
        if isinstance(value, str):
            data[flag] = _parse_flag(value)
        elif not isinstance(value, bool):
            raise ConfigError(f"{flag} must be a boolean")

    return data
