"""
Loads interactive element configurations from JSON or YAML documents.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import TypeAdapter

from pagecraft.interactive.models import ELEMENT_CONFIG_ADAPTER, AnyElementConfig

logger = logging.getLogger("pagecraft.interactive.config_loader")

ConfigFormat = Literal["json", "yaml"]

_ELEMENT_LIST_ADAPTER = TypeAdapter(list[AnyElementConfig])

_EXTENSION_FORMATS: dict[str, ConfigFormat] = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def _parse_json(content: str) -> Any:
    return json.loads(content)


def _parse_yaml(content: str) -> Any:
    return yaml.safe_load(content or "")


def _detect_format(content: str, path: Optional[Path] = None) -> ConfigFormat:
    """
    Picks the document format from the file extension, falling back to
    sniffing the first non-whitespace character.
    """
    if path is not None:
        detected = _EXTENSION_FORMATS.get(path.suffix.lower())
        if detected is not None:
            return detected

    trimmed = content.lstrip()
    if trimmed.startswith("{") or trimmed.startswith("["):
        return "json"

    return "yaml"


def _parse_document(
    content: str, format: Optional[ConfigFormat], path: Optional[Path] = None
) -> Any:
    fmt = format or _detect_format(content, path)
    if fmt == "json":
        return _parse_json(content)
    return _parse_yaml(content)


def parse_element_config(
    content: str, format: Optional[ConfigFormat] = None
) -> AnyElementConfig:
    """
    Parses one element configuration document.

    Raises:
        ValueError: If the document is not an object, or does not validate
            as a quiz, calculator or survey configuration
    """
    parsed = _parse_document(content, format)
    if not isinstance(parsed, dict) or not parsed:
        raise ValueError("Element configuration must be an object")
    return ELEMENT_CONFIG_ADAPTER.validate_python(parsed)


def parse_element_configs(
    content: str, format: Optional[ConfigFormat] = None
) -> list[AnyElementConfig]:
    """
    Parses a document holding a list of configurations, or a single one.
    """
    parsed = _parse_document(content, format)
    if parsed is None:
        return []
    if isinstance(parsed, dict):
        return [ELEMENT_CONFIG_ADAPTER.validate_python(parsed)]
    if not isinstance(parsed, list):
        raise ValueError("Element configurations must be an object or a list")
    return _ELEMENT_LIST_ADAPTER.validate_python(parsed)


def load_element_config(path: Union[str, Path]) -> AnyElementConfig:
    """Loads one element configuration from a ``.json``/``.yaml``/``.yml`` file."""
    file_path = Path(path)
    content = file_path.read_text(encoding="utf-8")
    parsed = _parse_document(content, None, file_path)
    if not isinstance(parsed, dict) or not parsed:
        raise ValueError(f"Element configuration in {file_path} must be an object")

    config = ELEMENT_CONFIG_ADAPTER.validate_python(parsed)
    logger.debug("Loaded %s configuration %s from %s", config.type, config.id, file_path)
    return config


def load_element_configs(path: Union[str, Path]) -> list[AnyElementConfig]:
    """Loads every element configuration from a file holding a list or an object."""
    file_path = Path(path)
    content = file_path.read_text(encoding="utf-8")
    format = _detect_format(content, file_path)
    configs = parse_element_configs(content, format)
    logger.debug("Loaded %d configurations from %s", len(configs), file_path)
    return configs
