"""
core/permissions.py
-------------------
Role → permission matrix and the policy entry point.

Authorization is decided in exactly one place: `can()`. Routes declare the
permission they need via `require("<key>")` (see dependencies.py); they do
not inspect roles themselves.
"""

from enum import Enum as PyEnum
from typing import Any, Dict, Mapping, Optional


class Role(str, PyEnum):
    admin = "admin"
    accountant = "accountant"
    staff = "staff"


class Perm:
    COMPANY_VIEW = "company.view"
    COMPANY_MANAGE = "company.manage"

    USERS_VIEW = "users.view"
    USERS_INVITE = "users.invite"
    USERS_EDIT = "users.edit"
    USERS_DELETE = "users.delete"

    CLIENTS_VIEW = "clients.view"
    CLIENTS_CREATE = "clients.create"
    CLIENTS_EDIT = "clients.edit"
    CLIENTS_DELETE = "clients.delete"

    INVOICES_VIEW = "invoices.view"
    INVOICES_CREATE = "invoices.create"
    INVOICES_EDIT = "invoices.edit"
    INVOICES_DELETE = "invoices.delete"
    INVOICES_MARK_PAID = "invoices.markAsPaid"
    INVOICES_VOID = "invoices.void"

    FINANCE_MANAGE_ACCOUNTS = "finance.manageAccounts"
    FINANCE_RECORD_PAYMENTS = "finance.recordPayments"
    FINANCE_VIEW_REPORTS = "finance.viewReports"
    FINANCE_MANAGE_EXPENSES = "finance.manageExpenses"


_ADMIN = {
    Perm.COMPANY_VIEW: True,
    Perm.COMPANY_MANAGE: True,
    Perm.USERS_VIEW: True,
    Perm.USERS_INVITE: True,
    Perm.USERS_EDIT: True,
    Perm.USERS_DELETE: True,
    Perm.CLIENTS_VIEW: True,
    Perm.CLIENTS_CREATE: True,
    Perm.CLIENTS_EDIT: True,
    Perm.CLIENTS_DELETE: True,
    Perm.INVOICES_VIEW: True,
    Perm.INVOICES_CREATE: True,
    Perm.INVOICES_EDIT: True,
    Perm.INVOICES_DELETE: True,
    Perm.INVOICES_MARK_PAID: True,
    Perm.INVOICES_VOID: True,
    Perm.FINANCE_MANAGE_ACCOUNTS: True,
    Perm.FINANCE_RECORD_PAYMENTS: True,
    Perm.FINANCE_VIEW_REPORTS: True,
    Perm.FINANCE_MANAGE_EXPENSES: True,
}

PERMISSION_MATRIX: Dict[Role, Dict[str, bool]] = {
    Role.admin: _ADMIN,
    Role.accountant: {
        **{key: False for key in _ADMIN},
        Perm.COMPANY_VIEW: True,
        Perm.CLIENTS_VIEW: True,
        Perm.INVOICES_VIEW: True,
        Perm.INVOICES_MARK_PAID: True,
        Perm.INVOICES_VOID: True,
        Perm.FINANCE_MANAGE_ACCOUNTS: True,
        Perm.FINANCE_RECORD_PAYMENTS: True,
        Perm.FINANCE_VIEW_REPORTS: True,
        Perm.FINANCE_MANAGE_EXPENSES: True,
    },
    Role.staff: {
        **{key: False for key in _ADMIN},
        Perm.COMPANY_VIEW: True,
        Perm.CLIENTS_VIEW: True,
        Perm.CLIENTS_CREATE: True,
        Perm.CLIENTS_EDIT: True,
        Perm.INVOICES_VIEW: True,
        Perm.INVOICES_CREATE: True,
        Perm.INVOICES_EDIT: True,
    },
}


def permissions_for_role(role: str) -> Dict[str, bool]:
    """Permission map for a role; unknown roles get nothing."""
    try:
        return dict(PERMISSION_MATRIX[Role(role)])
    except ValueError:
        return {}


def has_permission(permissions: Optional[Mapping[str, bool]], key: str) -> bool:
    if not permissions:
        return False
    return bool(permissions.get(key, False))


def can(identity: Any, action: str, resource: Any = None) -> bool:
    """
    Central policy check.

    True iff there is an identity bound to a company, its permission map
    grants `action`, and, when a resource is given, the resource belongs
    to the identity's company.
    """
    if identity is None or not getattr(identity, "company_id", None):
        return False
    if not has_permission(getattr(identity, "permissions", None), action):
        return False
    if resource is not None:
        return getattr(resource, "company_id", None) == identity.company_id
    return True
