"""Run configuration: defaults, JSON config files and command-line overrides."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from jsonschema import validate as jsonschema_validate, ValidationError

from headlink.linkify import DEFAULT_STYLE, SUFFIX_STYLES
from headlink.slugs import DEFAULT_POLICY, SLUG_POLICIES

LOGGER = logging.getLogger(__name__)

DEFAULT_OUTPUT = "output.md"
STDIN_PATH = "-"

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "input_path": {"type": "string", "minLength": 1},
        "output_path": {"type": "string", "minLength": 1},
        "write": {"type": "boolean"},
        "suffix_style": {"type": "string", "enum": sorted(SUFFIX_STYLES)},
        "slug_policy": {"type": "string", "enum": sorted(SLUG_POLICIES)},
        "skip_linked": {"type": "boolean"},
        "echo": {"type": "boolean"},
    },
    "additionalProperties": False,
}


class ConfigError(Exception):
    """Raised when the run configuration is missing or invalid."""


@dataclass
class LinkifyConfig:
    """Parameters for a single linkify run."""
    input_path: str
    output_path: str = DEFAULT_OUTPUT
    write: bool = True
    suffix_style: str = DEFAULT_STYLE
    slug_policy: str = DEFAULT_POLICY
    skip_linked: bool = False
    echo: bool = False

    def __post_init__(self):
        validate_config_data(self.to_dict())

    @property
    def reads_stdin(self) -> bool:
        return self.input_path == STDIN_PATH

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def validate_config_data(data: Dict[str, Any]) -> None:
    """Check config values against CONFIG_SCHEMA.

    Raises:
        ConfigError: When a key is unknown or a value has the wrong type.
    """
    try:
        jsonschema_validate(instance=data, schema=CONFIG_SCHEMA)
    except ValidationError as exc:
        location = ".".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ConfigError(f"Invalid config at {location}: {exc.message}") from exc


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read and validate a JSON config file, returning its values.

    Raises:
        ConfigError: If the file cannot be read, is not JSON, or fails validation.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    validate_config_data(data)
    LOGGER.debug("Loaded config from %s: %s", path, data)
    return data


def build_config(
    file_values: Optional[Dict[str, Any]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> LinkifyConfig:
    """Merge config file values with explicit overrides into a LinkifyConfig.

    Overrides whose value is None are treated as "not given" and do not
    replace a file value.
    """
    known = {f.name for f in fields(LinkifyConfig)}
    merged: Dict[str, Any] = dict(file_values or {})
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value
    unknown = sorted(set(merged) - known)
    if unknown:
        raise ConfigError(f"Unknown config key(s): {', '.join(unknown)}")
    validate_config_data(merged)
    if not merged.get("input_path"):
        raise ConfigError("An input path is required (use --input or input_path in the config file)")
    return LinkifyConfig(**merged)
