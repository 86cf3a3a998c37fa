"""
pdc_modules.cheques.config
==========================

Responsibility:
    Configuration schema for PDC management.  Defines structure, validation
    rules and defaults.  Values may be overridden from a YAML file through
    ``pdc_config.get_active_config()``.

Architecture:
    Module layer (pdc_modules).  Consumed by PDCService, PDCReportingService
    and the due-transition task.

Invariants enforced:
    - ``due_window_days`` is non-negative.
    - ``max_bulk_entries`` is at least 1.
    - Lookback windows and list sizes are positive.
    - ``business_timezone`` names a zone in the IANA database.

Failure modes:
    - Invalid configuration values -> ``ValueError`` from ``__post_init__``.
    - Unknown keys in ``from_dict`` -> ``TypeError`` from the constructor.
"""

from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Self
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pdc_kernel.logging_config import get_logger

logger = get_logger("modules.cheques.config")

DEFAULT_DUE_WINDOW_DAYS = 7
# Monthly cheques for a two-year lease.
MAX_BULK_PDCS = 24
HOLDER_NAME_NOT_CONFIGURED = "Company Name Not Configured"


@dataclass
class PDCConfig:
    """
    Configuration schema for PDC management.

    Contract:
        All fields have sensible defaults.  ``__post_init__`` validates all
        constraints and raises ``ValueError`` on violation.

    Example::

        config = PDCConfig(due_window_days=5, currency_code="AED")
    """

    # Scheduler: RECEIVED cheques dated within [today, today + N] become DUE
    due_window_days: int = DEFAULT_DUE_WINDOW_DAYS

    # Bulk submission cap
    max_bulk_entries: int = MAX_BULK_PDCS

    # Dashboard windows
    bounce_lookback_days: int = 30
    recent_deposit_lookback_days: int = 30
    dashboard_list_size: int = 10

    # Presentation
    currency_code: str = "AED"
    holder_name_fallback: str = HOLDER_NAME_NOT_CONFIGURED

    # Day boundaries (due window, month start) follow midnight in this zone
    business_timezone: str = "UTC"

    def __post_init__(self):
        if self.due_window_days < 0:
            raise ValueError("due_window_days cannot be negative")

        if self.max_bulk_entries < 1:
            raise ValueError("max_bulk_entries must be at least 1")

        if self.bounce_lookback_days < 1:
            raise ValueError("bounce_lookback_days must be positive")

        if self.recent_deposit_lookback_days < 1:
            raise ValueError("recent_deposit_lookback_days must be positive")

        if self.dashboard_list_size < 1:
            raise ValueError("dashboard_list_size must be positive")

        if not self.currency_code or len(self.currency_code) != 3:
            raise ValueError("currency_code must be a 3-letter ISO 4217 code")

        if not self.holder_name_fallback:
            raise ValueError("holder_name_fallback cannot be blank")

        if not self.business_timezone:
            raise ValueError("business_timezone cannot be blank")

        try:
            self.business_tzinfo()
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(
                f"business_timezone {self.business_timezone!r} is not a known timezone"
            ) from exc

        logger.info(
            "pdc_config_initialized",
            extra={
                "due_window_days": self.due_window_days,
                "max_bulk_entries": self.max_bulk_entries,
                "bounce_lookback_days": self.bounce_lookback_days,
                "currency_code": self.currency_code,
                "business_timezone": self.business_timezone,
            },
        )

    def business_tzinfo(self) -> tzinfo:
        if self.business_timezone == "UTC":
            return timezone.utc
        return ZoneInfo(self.business_timezone)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard defaults."""
        logger.info("pdc_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from a YAML file)."""
        logger.info(
            "pdc_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
