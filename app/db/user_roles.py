"""Database operations for user roles."""

from typing import Optional
from uuid import UUID

from pydantic import ValidationError

from app.core.logging import get_logger
from app.core.schemas_auth import AppRole, UserRoleRow
from app.db.supabase_client import get_supabase as get_client

logger = get_logger(__name__)


async def get_user_role(user_id: UUID) -> Optional[AppRole]:
    """Get the role assigned to a user, or None if unassigned or unknown."""
    client = get_client()
    result = (
        client.table("user_roles")
        .select("user_id, role")
        .eq("user_id", str(user_id))
        .limit(1)
        .execute()
    )
    if not result.data:
        return None

    try:
        return UserRoleRow(**result.data[0]).role
    except ValidationError:
        logger.warning(f"Unknown role for user {user_id}: {result.data[0].get('role')}")
        return None
