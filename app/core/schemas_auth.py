"""Pydantic schemas for authentication and roles."""

from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class AppRole(str, Enum):
    """Application role, stored in the ``user_roles`` table."""
    SUPER_ADMIN = "super_admin"
    HAGMAR_ADMIN = "hagmar_admin"
    RAVSHATZ = "ravshatz"  # Settlement security coordinator
    ADMIN = "admin"
    PLATOON_COMMANDER = "platoon_commander"
    BATTALION_ADMIN = "battalion_admin"
    DRIVER = "driver"


# Roles allowed to tune readiness weights
READINESS_ADMIN_ROLES = frozenset({AppRole.SUPER_ADMIN, AppRole.HAGMAR_ADMIN})


class UserRoleRow(BaseModel):
    """Row of the ``user_roles`` table."""
    user_id: UUID
    role: AppRole


class PrincipalInfo(BaseModel):
    """Public view of the authenticated caller."""
    user_id: UUID
    email: Optional[str] = None
    role: Optional[AppRole] = None
    settlement: Optional[str] = None
    can_manage_readiness_weights: bool = False
    is_settlement_restricted: bool = False
