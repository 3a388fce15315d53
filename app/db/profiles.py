"""Database operations for user profiles."""

from typing import Optional
from uuid import UUID

from app.db.supabase_client import get_supabase as get_client


async def get_user_settlement(user_id: UUID) -> Optional[str]:
    """Get the settlement a user's profile is bound to, if any."""
    client = get_client()
    result = (
        client.table("profiles")
        .select("settlement")
        .eq("user_id", str(user_id))
        .limit(1)
        .execute()
    )
    if result.data:
        return result.data[0].get("settlement") or None
    return None
