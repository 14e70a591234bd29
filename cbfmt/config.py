"""Configuration loading for cbfmt (codeblock-format.toml)."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .models import FormatterChain

CONFIG_FILENAME = "codeblock-format.toml"


class ConfigError(RuntimeError):
    """Raised when the configuration file is missing or cannot be parsed."""


@dataclass
class CbfmtConfig:
    """Formatter chains keyed by codeblock language."""

    path: Optional[Path] = None
    languages: Dict[str, FormatterChain] = field(default_factory=dict)


def load_config(config_path: Path) -> CbfmtConfig:
    """Load configuration from ``config_path``."""
    config_path = config_path.expanduser()
    if config_path.is_dir():
        config_path = config_path / CONFIG_FILENAME
    config_file = config_path.resolve()

    try:
        text = config_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read {config_file}: {exc}") from exc

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse {config_file.name}: {exc}") from exc

    languages_data = data.get("languages", {})
    if not isinstance(languages_data, dict):
        raise ConfigError(f"{config_file.name}: [languages] must be a table")

    languages: Dict[str, FormatterChain] = {}
    for language, stages in languages_data.items():
        chain = _as_chain(stages)
        if chain is None:
            raise ConfigError(
                f"{config_file.name}: formatters for '{language}' must be a string or a list of strings"
            )
        languages[str(language)] = chain

    return CbfmtConfig(path=config_file, languages=languages)


def find_closest_config(start: Path | None = None) -> Optional[Path]:
    """Return the nearest config file in ``start`` or any parent directory."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _as_chain(value: Any) -> Optional[FormatterChain]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list):
        return tuple(str(item) for item in value if isinstance(item, str))
    return None


__all__ = ["CONFIG_FILENAME", "CbfmtConfig", "ConfigError", "find_closest_config", "load_config"]
