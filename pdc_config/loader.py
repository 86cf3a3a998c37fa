"""
Configuration Loader (``pdc_config.loader``).

Responsibility
--------------
Reads a YAML file and turns its ``pdc:`` mapping into a ``PDCConfig``.

Expected layout::

    pdc:
      due_window_days: 7
      max_bulk_entries: 24
      currency_code: AED

Keys left out keep their ``PDCConfig`` defaults.

Failure modes
-------------
Every problem surfaces as ``ConfigurationError`` naming the file:

* missing or unreadable file, or bytes that are not UTF-8
* malformed YAML
* no ``pdc`` mapping at the top level
* unknown keys or values ``PDCConfig.__post_init__`` rejects
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from pdc_kernel.exceptions import ConfigurationError
from pdc_kernel.logging_config import get_logger
from pdc_modules.cheques.config import PDCConfig

logger = get_logger("config.loader")

SECTION = "pdc"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        UnicodeDecodeError: if the file is not UTF-8.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_pdc_config(path: Path) -> PDCConfig:
    source = str(path)
    try:
        data = load_yaml_file(path)
    except OSError as exc:
        raise ConfigurationError(source, f"cannot read file: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigurationError(source, f"not UTF-8 text: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(source, f"invalid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(source, "top level must be a mapping")

    section = data.get(SECTION)
    if section is None:
        raise ConfigurationError(source, f"missing '{SECTION}' section")
    if not isinstance(section, dict):
        raise ConfigurationError(source, f"'{SECTION}' must be a mapping")

    try:
        config = PDCConfig.from_dict(section)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(source, str(exc)) from exc

    logger.info("pdc_config_loaded", extra={"source": source, "keys": sorted(section)})
    return config
