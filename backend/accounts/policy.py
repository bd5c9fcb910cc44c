"""
Role-based capability policy.

The table below decides what each role may see and do. API views check it on
every request through ``accounts.permissions``; ``GET /api/auth/me/`` hands the
same table to clients so menus and buttons mirror what the server will allow.

Record-level rules (edit only while pending/lost, invoice a won quotation once,
agents invoice only their own quotations, paid invoices are frozen) live in the
``can_*`` helpers and take an explicit ``AuthContext`` rather than reading the
request.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

ADMIN = 'admin'
SALES_DIRECTOR = 'sales_director'
SALES_AGENT = 'sales_agent'
FINANCE_OFFICER = 'finance_officer'
PARTNER = 'partner'

ROLES = (ADMIN, SALES_DIRECTOR, SALES_AGENT, FINANCE_OFFICER, PARTNER)

QUOTATION_VIEW = 'quotation.view'
QUOTATION_CREATE = 'quotation.create'
QUOTATION_EDIT = 'quotation.edit'
QUOTATION_APPROVE = 'quotation.approve'
QUOTATION_INVOICE = 'quotation.invoice'
INVOICE_VIEW = 'invoice.view'
INVOICE_CREATE = 'invoice.create'
INVOICE_EDIT = 'invoice.edit'
INVOICE_MARK_PAID = 'invoice.mark_paid'
CLIENT_VIEW = 'client.view'
CLIENT_MANAGE = 'client.manage'
REPORTS_VIEW = 'reports.view'
SALES_PERFORMANCE_VIEW = 'reports.sales_performance'
ACCOUNTING_VIEW = 'accounting.view'
USER_MANAGE = 'users.manage'

ROLE_CAPABILITIES: Dict[str, FrozenSet[str]] = {
    # approves, never edits or invoices quotations
    ADMIN: frozenset({
        QUOTATION_VIEW, QUOTATION_APPROVE,
        INVOICE_VIEW, INVOICE_MARK_PAID,
        CLIENT_VIEW, CLIENT_MANAGE,
        REPORTS_VIEW, SALES_PERFORMANCE_VIEW, ACCOUNTING_VIEW,
        USER_MANAGE,
    }),
    SALES_DIRECTOR: frozenset({
        QUOTATION_VIEW, QUOTATION_CREATE, QUOTATION_EDIT, QUOTATION_INVOICE,
        INVOICE_VIEW, INVOICE_CREATE, INVOICE_EDIT,
        CLIENT_VIEW, CLIENT_MANAGE,
        REPORTS_VIEW, SALES_PERFORMANCE_VIEW,
    }),
    SALES_AGENT: frozenset({
        QUOTATION_VIEW, QUOTATION_CREATE, QUOTATION_INVOICE,
        INVOICE_VIEW, INVOICE_CREATE,
        CLIENT_VIEW,
        REPORTS_VIEW,
    }),
    FINANCE_OFFICER: frozenset({
        QUOTATION_VIEW,
        INVOICE_VIEW, INVOICE_CREATE, INVOICE_EDIT, INVOICE_MARK_PAID,
        CLIENT_VIEW, CLIENT_MANAGE,
        REPORTS_VIEW, SALES_PERFORMANCE_VIEW, ACCOUNTING_VIEW,
    }),
    PARTNER: frozenset({
        QUOTATION_VIEW,
        INVOICE_VIEW,
        CLIENT_VIEW,
        REPORTS_VIEW, SALES_PERFORMANCE_VIEW,
    }),
}

ROLE_TABS: Dict[str, List[str]] = {
    ADMIN: ['dashboard', 'users', 'quotations', 'invoices', 'reports', 'accounting', 'settings'],
    SALES_DIRECTOR: ['dashboard', 'quotations', 'create', 'invoices', 'reports', 'team'],
    SALES_AGENT: ['dashboard', 'quotations', 'create', 'invoices'],
    FINANCE_OFFICER: ['dashboard', 'invoices', 'reports', 'accounting', 'analytics'],
    PARTNER: ['dashboard', 'quotations', 'invoices', 'reports', 'documents'],
}

EDITABLE_QUOTATION_STATUSES = ('pending', 'lost')


class AccessDenied(Exception):
    """Raised when a role lacks the capability an operation requires"""

    def __init__(self, capability: str, role: str):
        super().__init__(f"Role '{role}' is not allowed to perform '{capability}'")
        self.capability = capability
        self.role = role


@dataclass(frozen=True)
class AuthContext:
    user_id: Optional[int]
    name: str
    role: str
    is_active: bool = True

    @classmethod
    def from_user(cls, user) -> "AuthContext":
        if user is None or not getattr(user, 'is_authenticated', False):
            return cls(user_id=None, name='', role='', is_active=False)
        active = bool(user.is_active) and getattr(user, 'status', 'active') == 'active'
        return cls(
            user_id=user.pk,
            name=getattr(user, 'display_name', None) or user.get_username(),
            role=getattr(user, 'role', ''),
            is_active=active,
        )

    @property
    def capabilities(self) -> FrozenSet[str]:
        if not self.is_active:
            return frozenset()
        return ROLE_CAPABILITIES.get(self.role, frozenset())

    @property
    def tabs(self) -> List[str]:
        if not self.is_active:
            return []
        return list(ROLE_TABS.get(self.role, []))

    def can(self, capability: str) -> bool:
        return capability in self.capabilities

    def require(self, capability: str) -> None:
        if not self.can(capability):
            raise AccessDenied(capability, self.role or 'anonymous')


def can(role: str, capability: str) -> bool:
    """Plain table lookup for a role, ignoring account status."""
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def can_edit_quotation(ctx: AuthContext, quotation) -> bool:
    return ctx.can(QUOTATION_EDIT) and quotation.status in EDITABLE_QUOTATION_STATUSES


def can_approve_quotation(ctx: AuthContext, quotation) -> bool:
    return ctx.can(QUOTATION_APPROVE) and quotation.status == 'pending'


def can_invoice_quotation(ctx: AuthContext, quotation, has_invoice: bool) -> bool:
    if not ctx.can(QUOTATION_INVOICE) or quotation.status != 'won' or has_invoice:
        return False
    if ctx.role == SALES_AGENT:
        return quotation.created_by_id is not None and quotation.created_by_id == ctx.user_id
    return True


def can_edit_invoice(ctx: AuthContext, invoice) -> bool:
    return ctx.can(INVOICE_EDIT) and invoice.status != 'paid'


def can_mark_invoice_paid(ctx: AuthContext, invoice) -> bool:
    return ctx.can(INVOICE_MARK_PAID) and invoice.status == 'pending'
