"""Read-only access to user display profiles (name and avatar)."""
from typing import Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from attendance.cache.cache_decorators import cached
from attendance.core.config import settings
from attendance.db import repositories as repo


@cached('users:profile', expire=settings.USER_PROFILE_CACHE_SECONDS)
async def get_user_profile(db: AsyncSession, user_id) -> Optional[dict]:
    user = await repo.get_user(db, user_id)
    if user is None:
        return None
    return {
        "id": str(user.id),
        "full_name": user.full_name,
        "image_url": user.image_url,
    }


async def get_user_profiles(db: AsyncSession, user_ids: Iterable) -> Dict[str, dict]:
    """Profiles keyed by stringified user id; unknown users are left out."""
    profiles = {}
    for user_id in set(user_ids):
        profile = await get_user_profile(db, user_id)
        if profile is not None:
            profiles[str(user_id)] = profile
    return profiles
