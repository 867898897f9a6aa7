"""
Guard and permission matrix, exercised without a request or database.
"""

from types import SimpleNamespace

import pytest

from summit.core.guard import Authorized, Denied, DenialReason, Identity, authorize
from summit.core.permissions import (
    PERMISSION_MATRIX,
    Perm,
    Role,
    can,
    has_permission,
    permissions_for_role,
)


def identity(role="admin", company_id="company-a"):
    return Identity.for_role(user_id="user-1", company_id=company_id, role=role)


class TestAuthorize:
    def test_no_identity_is_no_session(self):
        assert authorize(None) == Denied(DenialReason.NO_SESSION)

    def test_identity_without_company(self):
        decision = authorize(identity(company_id=None), Perm.CLIENTS_VIEW)
        assert decision == Denied(DenialReason.MISSING_COMPANY)

    def test_missing_permission_names_the_key(self):
        decision = authorize(identity(role="staff"), Perm.USERS_VIEW)
        assert isinstance(decision, Denied)
        assert decision.reason == DenialReason.MISSING_PERMISSION
        assert decision.key == Perm.USERS_VIEW

    def test_granted_permission_carries_company(self):
        decision = authorize(identity(role="accountant"), Perm.FINANCE_VIEW_REPORTS)
        assert isinstance(decision, Authorized)
        assert decision.company_id == "company-a"
        assert decision.user_id == "user-1"
        assert decision.role == "accountant"

    def test_no_permission_required(self):
        assert isinstance(authorize(identity(role="staff")), Authorized)


class TestPermissionMatrix:
    def test_admin_has_everything(self):
        assert all(PERMISSION_MATRIX[Role.admin].values())

    def test_every_role_defines_every_key(self):
        keys = set(PERMISSION_MATRIX[Role.admin])
        for role in Role:
            assert set(PERMISSION_MATRIX[role]) == keys

    @pytest.mark.parametrize(
        "role, key, expected",
        [
            ("accountant", Perm.FINANCE_RECORD_PAYMENTS, True),
            ("accountant", Perm.INVOICES_CREATE, False),
            ("accountant", Perm.USERS_VIEW, False),
            ("staff", Perm.CLIENTS_CREATE, True),
            ("staff", Perm.CLIENTS_DELETE, False),
            ("staff", Perm.INVOICES_MARK_PAID, False),
            ("staff", Perm.FINANCE_VIEW_REPORTS, False),
        ],
    )
    def test_role_grants(self, role, key, expected):
        assert permissions_for_role(role)[key] is expected

    def test_unknown_role_gets_nothing(self):
        assert permissions_for_role("superuser") == {}

    def test_has_permission_handles_missing_maps(self):
        assert has_permission(None, Perm.COMPANY_VIEW) is False
        assert has_permission({}, Perm.COMPANY_VIEW) is False

    def test_permissions_for_role_returns_a_copy(self):
        perms = permissions_for_role("staff")
        perms[Perm.USERS_DELETE] = True
        assert PERMISSION_MATRIX[Role.staff][Perm.USERS_DELETE] is False


class TestCan:
    def test_requires_identity_and_company(self):
        assert can(None, Perm.CLIENTS_VIEW) is False
        assert can(identity(company_id=None), Perm.CLIENTS_VIEW) is False

    def test_resource_of_same_company(self):
        resource = SimpleNamespace(company_id="company-a")
        assert can(identity(), Perm.INVOICES_VIEW, resource) is True

    def test_resource_of_other_company(self):
        resource = SimpleNamespace(company_id="company-b")
        assert can(identity(), Perm.INVOICES_VIEW, resource) is False

    def test_permission_checked_before_resource(self):
        resource = SimpleNamespace(company_id="company-a")
        assert can(identity(role="staff"), Perm.INVOICES_VOID, resource) is False
