"""
pdc_modules.cheques
===================

Responsibility:
    Post-dated cheques collected from tenants: registration (single and
    bulk), the deposit / clear / bounce / replace / withdraw / cancel
    lifecycle, the daily RECEIVED -> DUE promotion, and dashboard and
    tenant-history reporting.

Architecture:
    Module layer (pdc_modules).  May import from pdc_kernel and pdc_batch.
    MUST NOT be imported by pdc_kernel or pdc_batch.  Tenant, invoice,
    bank-account and company-profile data come in through the Protocols in
    ``collaborators``.

Invariants enforced:
    - Cheque numbers are unique per tenant.
    - Status changes only along ``PDC_WORKFLOW``, via compare-and-set.
    - A bulk submission is stored completely or not at all.

Failure modes:
    - Rule violations -> ``PDCValidationError`` subclasses.
    - Unknown references -> ``EntityNotFoundError``.
"""

from pdc_modules.cheques.config import PDCConfig
from pdc_modules.cheques.models import (
    PDC,
    DashboardSummary,
    Page,
    PDCAction,
    PDCBulkCreateRequest,
    PDCBulkEntry,
    PDCCreateRequest,
    PDCDashboard,
    PDCFilter,
    PDCReplaceRequest,
    PDCStatus,
    SettlementMethod,
    TenantPDCHistory,
)
from pdc_modules.cheques.reporting import PDCReportingService
from pdc_modules.cheques.service import PDCService
from pdc_modules.cheques.tasks import DueTransitionTask
from pdc_modules.cheques.workflows import PDC_WORKFLOW

__all__ = [
    "PDC",
    "DashboardSummary",
    "Page",
    "PDCAction",
    "PDCBulkCreateRequest",
    "PDCBulkEntry",
    "PDCCreateRequest",
    "PDCDashboard",
    "PDCFilter",
    "PDCReplaceRequest",
    "PDCStatus",
    "SettlementMethod",
    "TenantPDCHistory",
    "PDC_WORKFLOW",
    "PDCConfig",
    "PDCService",
    "PDCReportingService",
    "DueTransitionTask",
]
