"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends

from app.core.auth_middleware import AuthContext, require_auth
from app.core.schemas_auth import PrincipalInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=PrincipalInfo)
async def get_me(
    auth: AuthContext = Depends(require_auth),  # noqa: B008
) -> PrincipalInfo:
    """Return the caller's role, settlement restriction and capabilities."""
    return auth.to_principal()
