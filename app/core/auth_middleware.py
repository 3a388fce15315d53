"""Authentication middleware for FastAPI."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings
from app.core.schemas_auth import READINESS_ADMIN_ROLES, AppRole, PrincipalInfo

logger = logging.getLogger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)

# System principal for API key auth
SYSTEM_USER_ID = UUID("00000000-0000-0000-0000-000000000001")


class AuthContext:
    """Context object containing authenticated user info."""

    def __init__(
        self,
        user_id: UUID,
        token: str,
        role: Optional[AppRole] = None,
        email: Optional[str] = None,
        settlement: Optional[str] = None,
    ):
        self.user_id = user_id
        self.token = token
        self.role = role
        self.email = email
        self.settlement = settlement

    def is_super_admin(self) -> bool:
        return self.role == AppRole.SUPER_ADMIN

    @property
    def can_manage_readiness_weights(self) -> bool:
        """Readiness weights are tunable by defense-module and super admins."""
        return self.role in READINESS_ADMIN_ROLES

    @property
    def is_settlement_restricted(self) -> bool:
        """Settlement coordinators only see their own settlement."""
        return self.role == AppRole.RAVSHATZ

    def can_view_settlement(self, settlement: str) -> bool:
        if not self.is_settlement_restricted:
            return True
        return self.settlement == settlement

    def to_principal(self) -> PrincipalInfo:
        return PrincipalInfo(
            user_id=self.user_id,
            email=self.email,
            role=self.role,
            settlement=self.settlement,
            can_manage_readiness_weights=self.can_manage_readiness_weights,
            is_settlement_restricted=self.is_settlement_restricted,
        )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> Optional[AuthContext]:
    """
    Extract and validate the current user from the request.

    Supports two authentication methods:
    1. Supabase JWT tokens (Bearer auth), role read from ``user_roles``
    2. Admin API key (X-API-Key header) for internal tools

    Returns None if no valid auth is present (for optional auth endpoints).
    """
    admin_api_key = get_settings().ADMIN_API_KEY

    # Check for API key auth first (for internal tools)
    if x_api_key and admin_api_key and x_api_key == admin_api_key:
        logger.debug("Authenticated via admin API key")
        return AuthContext(
            user_id=SYSTEM_USER_ID,
            token="api-key",
            role=AppRole.SUPER_ADMIN,
        )

    # Fall back to Bearer token auth
    if not credentials:
        return None

    token = credentials.credentials

    try:
        from app.db.profiles import get_user_settlement
        from app.db.supabase_client import get_supabase
        from app.db.user_roles import get_user_role

        client = get_supabase()

        # Supabase validates the JWT signature and expiration
        auth_response = client.auth.get_user(token)

        if not auth_response or not auth_response.user:
            return None

        user_id = UUID(auth_response.user.id)
        role = await get_user_role(user_id)

        settlement = None
        if role == AppRole.RAVSHATZ:
            try:
                settlement = await get_user_settlement(user_id)
            except Exception as profile_err:
                # Restricted users without a settlement see nothing
                logger.warning(f"Error loading settlement for {user_id}: {profile_err}")

        return AuthContext(
            user_id=user_id,
            token=token,
            role=role,
            email=auth_response.user.email,
            settlement=settlement,
        )

    except Exception as e:
        logger.warning(f"Auth error: {e}")
        return None


async def require_auth(
    auth: Optional[AuthContext] = Depends(get_current_user),
) -> AuthContext:
    """Require authentication. Raises 401 if not authenticated."""
    if not auth:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth


async def require_readiness_admin(
    auth: AuthContext = Depends(require_auth),
) -> AuthContext:
    """Require the readiness-weights administrator capability."""
    if not auth.can_manage_readiness_weights:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Readiness administrator access required",
        )
    return auth
