"""Configuration loading: defaults, TOML file, environment, explicit overrides.

Priority (lowest to highest): model defaults, config file, environment
variables, explicit keyword overrides. The file is `tracehop.toml` in the
working directory, falling back to `~/.tracehop.toml`:

    [tracing]
    service_name = "sample-app"
    sample_rate = 1.0

    [exporters]
    endpoint = "http://127.0.0.1:4318/v1/traces"
    enable_console = false

    [executor]
    max_workers = 8
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tracehop.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "tracehop.toml"
ENV_PREFIX = "TRACEHOP_"


class TracingSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    service_name: str = "tracehop-app"
    sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    debug: bool = False
    attr_truncation_limit: int = Field(default=1000, gt=0)


class ExportersSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = Field(default=10.0, gt=0)
    enable_console: bool = False


class ExecutorSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_workers: Optional[int] = Field(default=None, gt=0)


class TracingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tracing: TracingSection = Field(default_factory=TracingSection)
    exporters: ExportersSection = Field(default_factory=ExportersSection)
    executor: ExecutorSection = Field(default_factory=ExecutorSection)


# flat key -> (section, field)
_FLAT_KEYS: Dict[str, Tuple[str, str]] = {
    name: (section, name)
    for section, model in (
        ("tracing", TracingSection),
        ("exporters", ExportersSection),
        ("executor", ExecutorSection),
    )
    for name in model.model_fields
}


def find_config_file() -> Optional[str]:
    """Return the first config file found (cwd, then home), or None."""
    candidates = [Path.cwd() / CONFIG_FILE_NAME, Path.home() / f".{CONFIG_FILE_NAME}"]
    for candidate in candidates:
        if candidate.is_file():
            return str(candidate)
    return None


def load_toml_config(path: str) -> Dict[str, Any]:
    """
    Load a TOML config file as a nested dict.

    A missing file yields an empty dict; unparsable TOML raises ConfigError.
    """
    file_path = Path(path)
    if not file_path.is_file():
        return {}
    try:
        with file_path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError("Invalid TOML in config file", details={"path": path, "error": exc}) from exc


def _flatten(data: Mapping[str, Any], source: str) -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        if key in ("tracing", "exporters", "executor") and isinstance(value, Mapping):
            for inner_key, inner_value in value.items():
                if _FLAT_KEYS.get(inner_key, (None,))[0] != key:
                    raise ConfigError(
                        "Unknown config key", details={"key": f"{key}.{inner_key}", "source": source}
                    )
                flat[inner_key] = inner_value
        elif key in _FLAT_KEYS:
            flat[key] = value
        else:
            raise ConfigError("Unknown config key", details={"key": key, "source": source})
    return flat


def _nest(flat: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    nested: Dict[str, Dict[str, Any]] = {}
    for key, value in flat.items():
        if key not in _FLAT_KEYS:
            raise ConfigError("Unknown config key", details={"key": key})
        section, name = _FLAT_KEYS[key]
        nested.setdefault(section, {})[name] = value
    return nested


def load_env_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect TRACEHOP_* variables as flat config keys (values stay strings)."""
    environ = os.environ if environ is None else environ
    flat: Dict[str, Any] = {}
    for key in _FLAT_KEYS:
        value = environ.get(ENV_PREFIX + key.upper())
        if value is not None and value != "":
            flat[key] = value
    return flat


def load_config_with_priority(
    config_file: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Merge file, environment and overrides into one flat dict (None overrides are ignored)."""
    merged: Dict[str, Any] = {}

    path = config_file or find_config_file()
    if path:
        logger.debug("Loading tracehop config from %s", path)
        merged.update(_flatten(load_toml_config(path), source=path))

    merged.update(load_env_config())
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return merged


def validate_config(flat: Mapping[str, Any]) -> TracingConfig:
    """Build a TracingConfig from flat keys, raising ConfigError on invalid values."""
    try:
        return TracingConfig.model_validate(_nest(flat))
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError("Invalid tracehop configuration", details={"errors": errors}) from exc


def load_config(config_file: Optional[str] = None, **overrides: Any) -> TracingConfig:
    return validate_config(load_config_with_priority(config_file, overrides))
