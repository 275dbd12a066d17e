"""Profile Lookups - shared user reads for every service.

Invariants:
    - Missing users raise ResourceNotFoundError("User", id)
    - Display names fall back to "Someone" for notification payloads
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.core.errors import ResourceNotFoundError
from memoria.models.user import User

FALLBACK_NAME = "Someone"


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise ResourceNotFoundError("User", user_id)
    return user


async def display_name(db: AsyncSession, user_id: str) -> str:
    user = await db.get(User, user_id)
    return user.display_name if user and user.display_name else FALLBACK_NAME


async def users_by_id(db: AsyncSession, user_ids) -> dict[str, User]:
    ids = list(set(user_ids))
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {u.id: u for u in result.scalars().all()}
