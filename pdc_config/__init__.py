"""
pdc_config -- single public entrypoint for PDC configuration.

Responsibility:
    Provides the runtime way to obtain ``PDCConfig`` through
    ``get_active_config()``.  Services accept a ``PDCConfig`` argument and
    never read files or environment variables themselves.

Architecture position:
    Configuration.  Sits above ``pdc_kernel`` and next to ``pdc_modules``;
    the kernel MUST NEVER import from ``pdc_config``.

Failure modes:
    - ``ConfigurationError`` -- the configured file is missing, is not
      valid YAML, or holds values ``PDCConfig`` rejects.
"""

from __future__ import annotations

import os
from pathlib import Path

from pdc_config.loader import load_pdc_config
from pdc_kernel.logging_config import get_logger
from pdc_modules.cheques.config import PDCConfig

logger = get_logger("config")

CONFIG_PATH_ENV = "PDC_CONFIG_PATH"


def get_active_config(path: Path | str | None = None) -> PDCConfig:
    """
    Return the configuration in force.

    Resolution order: explicit ``path``, then ``$PDC_CONFIG_PATH``, then
    ``PDCConfig`` defaults.
    """
    source = path or os.environ.get(CONFIG_PATH_ENV)
    if not source:
        logger.info("pdc_config_defaults_in_use")
        return PDCConfig.with_defaults()

    config = load_pdc_config(Path(source))
    logger.info(
        "PDC_CONFIG_TRACE",
        extra={
            "source": str(source),
            "due_window_days": config.due_window_days,
            "max_bulk_entries": config.max_bulk_entries,
            "currency_code": config.currency_code,
        },
    )
    return config


__all__ = ["CONFIG_PATH_ENV", "get_active_config", "load_pdc_config"]
