"""
pdc_modules.cheques.reporting
=============================

Responsibility:
    Read-only aggregation over PDC records: the dashboard KPIs and short
    lists, per-tenant cheque history with bounce rate, the cheque holder's
    display name and currency formatting.

Architecture:
    Module layer.  Reads through ``PDCSelector``; never writes, never
    commits.  Dates come from the injected ``Clock``.

Invariants enforced:
    - No data yields zero-valued summaries, never an error.
    - Bounce rates are ``Decimal`` rounded half-up to one decimal place.
    - ``get_holder_name`` never raises.

Failure modes:
    - ``EntityNotFoundError`` from ``get_tenant_history`` for an unknown
      tenant.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from pdc_kernel.domain.clock import Clock, SystemClock
from pdc_kernel.exceptions import EntityNotFoundError
from pdc_kernel.logging_config import get_logger
from pdc_modules.cheques.collaborators import CompanyProfileProvider, TenantDirectory
from pdc_modules.cheques.config import PDCConfig
from pdc_modules.cheques.models import (
    PENDING_STATUSES,
    DashboardSummary,
    PDCDashboard,
    PDCStatus,
    TenantPDCHistory,
)
from pdc_modules.cheques.selectors import PDCSelector

logger = get_logger("modules.cheques.reporting")

_ONE_DP = Decimal("0.1")
_HUNDRED = Decimal("100")


def bounce_rate(bounced: int, denominator: int) -> Decimal:
    """``bounced / denominator * 100`` to one decimal, half-up; 0.0 when empty."""
    if denominator <= 0:
        return Decimal("0.0")
    rate = Decimal(bounced) * _HUNDRED / Decimal(denominator)
    return rate.quantize(_ONE_DP, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal | None, currency_code: str = "AED") -> str:
    """``Decimal("12500")`` -> ``"AED 12,500.00"``."""
    value = amount if amount is not None else Decimal("0")
    return f"{currency_code} {value:,.2f}"


class PDCReportingService:
    """
    Dashboard and tenant-history aggregation.

    Non-goals:
        - Does NOT render PDF or spreadsheet exports.
    """

    def __init__(
        self,
        session: Session,
        tenant_directory: TenantDirectory,
        company_profile_provider: CompanyProfileProvider | None = None,
        clock: Clock | None = None,
        config: PDCConfig | None = None,
    ):
        self._selector = PDCSelector(session)
        self._tenants = tenant_directory
        self._company_profile = company_profile_provider
        self._config = config or PDCConfig.with_defaults()
        self._clock = clock or SystemClock(self._config.business_tzinfo())

    def format_currency(self, amount: Decimal | None) -> str:
        return format_currency(amount, self._config.currency_code)

    def get_dashboard(self, page: int = 0, size: int | None = None) -> PDCDashboard:
        """
        Build the dashboard as of ``clock.today()``.

        ``page`` / ``size`` apply to both short lists; ``size`` defaults to
        ``dashboard_list_size``.
        """
        if size is None:
            size = self._config.dashboard_list_size
        today = self._clock.today()
        week_end = today + timedelta(days=self._config.due_window_days)
        month_start = today.replace(day=1)
        bounce_since = today - timedelta(days=self._config.bounce_lookback_days)
        deposit_since = today - timedelta(days=self._config.recent_deposit_lookback_days)

        due_count, due_value = self._selector.due_in_window(today, week_end)
        deposited_count, deposited_value = self._selector.deposited_in_period(
            month_start, today,
        )
        outstanding = self._selector.outstanding_value()
        cleared = self._selector.count_by_status(PDCStatus.CLEARED)
        bounced = self._selector.count_by_status(PDCStatus.BOUNCED)

        summary = DashboardSummary(
            total_received=self._selector.count_by_status(PDCStatus.RECEIVED),
            due_this_week_count=due_count,
            due_this_week_value=due_value,
            deposited_this_month_count=deposited_count,
            deposited_this_month_value=deposited_value,
            total_outstanding_value=outstanding,
            bounced_recent_count=self._selector.count_bounced_since(bounce_since),
            cleared_count=cleared,
            bounced_count=bounced,
            bounce_rate_percent=bounce_rate(bounced, cleared + bounced),
            formatted_due_this_week_value=self.format_currency(due_value),
            formatted_deposited_this_month_value=self.format_currency(deposited_value),
            formatted_outstanding_value=self.format_currency(outstanding),
        )

        dashboard = PDCDashboard(
            summary=summary,
            upcoming_this_week=self._selector.upcoming_due(today, week_end, page, size),
            recently_deposited=self._selector.recently_deposited(deposit_since, page, size),
            holder_name=self.get_holder_name(),
        )

        logger.info("pdc_dashboard_built", extra={
            "as_of_date": today,
            "due_this_week_count": due_count,
            "deposited_this_month_count": deposited_count,
            "bounce_rate_percent": summary.bounce_rate_percent,
        })
        return dashboard

    def get_tenant_history(
        self,
        tenant_id: UUID,
        page: int = 0,
        size: int = 20,
    ) -> TenantPDCHistory:
        """
        Counts and bounce rate over every cheque of one tenant.

        Bounce rate here is bounced over all of the tenant's cheques, unlike
        the dashboard which divides by settled (cleared + bounced) cheques.
        """
        tenant = self._tenants.find_by_id(tenant_id)
        if tenant is None:
            raise EntityNotFoundError("Tenant", str(tenant_id))

        counts = self._selector.tenant_status_counts(tenant_id)
        total = sum(counts.values())
        bounced = counts[PDCStatus.BOUNCED]

        return TenantPDCHistory(
            tenant_id=tenant_id,
            tenant_name=tenant.full_name,
            total=total,
            cleared=counts[PDCStatus.CLEARED],
            bounced=bounced,
            pending=sum(counts[s] for s in PENDING_STATUSES),
            bounce_rate_percent=bounce_rate(bounced, total),
            pdcs=self._selector.list_by_tenant(tenant_id, page, size),
        )

    def get_holder_name(self) -> str:
        """Company legal name, or the configured fallback."""
        fallback = self._config.holder_name_fallback
        if self._company_profile is None:
            return fallback
        try:
            profile = self._company_profile.get()
        except Exception:
            logger.exception("pdc_holder_name_lookup_failed")
            return fallback
        if profile is None or not (profile.legal_company_name or "").strip():
            return fallback
        return profile.legal_company_name.strip()
