"""
core/guard.py
-------------
Tenant-scoping guard.

Every protected route runs `authorize()` before touching the data-access
layer. It is a pure function of the resolved identity, so it can be
exercised without a request or a database.

    authorize(None)                         -> Denied(NO_SESSION)
    authorize(Identity(company_id=None))    -> Denied(MISSING_COMPANY)
    authorize(identity, "users.view")       -> Denied(MISSING_PERMISSION, "users.view")
                                               unless the role grants it
"""

from dataclasses import dataclass, field
from enum import Enum as PyEnum
from typing import Dict, Optional, Union

from summit.core.permissions import has_permission, permissions_for_role


@dataclass(frozen=True)
class Identity:
    """Who is calling: resolved once per request, then passed explicitly."""

    user_id: str
    company_id: Optional[str]
    role: str
    permissions: Dict[str, bool] = field(default_factory=dict)

    @classmethod
    def for_role(cls, user_id: str, company_id: Optional[str], role: str) -> "Identity":
        return cls(
            user_id=user_id,
            company_id=company_id,
            role=role,
            permissions=permissions_for_role(role),
        )


class DenialReason(str, PyEnum):
    NO_SESSION = "no_session"
    MISSING_COMPANY = "missing_company"
    MISSING_PERMISSION = "missing_permission"


@dataclass(frozen=True)
class Authorized:
    company_id: str
    user_id: str
    role: str
    identity: Identity


@dataclass(frozen=True)
class Denied:
    reason: DenialReason
    key: Optional[str] = None


def authorize(
    identity: Optional[Identity], permission: Optional[str] = None
) -> Union[Authorized, Denied]:
    if identity is None:
        return Denied(DenialReason.NO_SESSION)
    if not identity.company_id:
        return Denied(DenialReason.MISSING_COMPANY)
    if permission is not None and not has_permission(identity.permissions, permission):
        return Denied(DenialReason.MISSING_PERMISSION, permission)
    return Authorized(
        company_id=identity.company_id,
        user_id=identity.user_id,
        role=identity.role,
        identity=identity,
    )
