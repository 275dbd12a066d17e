"""User Routes - the caller's profile, search, other users' profiles, account deletion.

Invariants:
    - /me routes act on the authenticated caller only
    - Search never returns the caller
    - Another user's response history lists only revealed prompts
"""

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.api.deps import get_current_user
from memoria.api.routes.prompts import prompt_out
from memoria.infrastructure.database import get_db
from memoria.models.user import User
from memoria.schemas.prompt import FeedItemOut
from memoria.schemas.user import (
    ProfileResponse, ProfileUpdate, UserProfile, UserSearchResult,
    UserStatsResponse,
)
from memoria.services.connection_graph import ConnectionGraph
from memoria.services.prompt_cycle import PromptCycle
from memoria.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/me", response_model=UserProfile)
async def get_me(user: User = Depends(get_current_user)):
    return UserProfile.model_validate(user)


@router.patch("/me", response_model=UserProfile)
async def update_me(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await UserDirectory(db).update_profile(
        user.id, **body.model_dump(exclude_unset=True),
    )
    return UserProfile.model_validate(updated)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await UserDirectory(db).delete_account(user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me/stats", response_model=UserStatsResponse)
async def my_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await UserDirectory(db).stats(user.id)
    return UserStatsResponse(**vars(stats))


@router.get("/search", response_model=list[UserSearchResult])
async def search_users(
    q: str = Query(min_length=1, max_length=64),
    limit: int = Query(20, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    results = await UserDirectory(db).search(q, user.id, limit=limit)
    return [
        UserSearchResult(profile=UserProfile.model_validate(u), connection_status=view)
        for u, view in results
    ]


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    directory = UserDirectory(db)
    other = await directory.get(user_id)
    stats = await directory.stats(user_id)
    view, connection = await ConnectionGraph(db).status(user.id, user_id)
    return ProfileResponse(
        profile=UserProfile.model_validate(other),
        stats=UserStatsResponse(**vars(stats)),
        connection_status=view,
        connection_id=str(connection.id) if connection else None,
    )


@router.get("/{user_id}/responses", response_model=list[FeedItemOut])
async def response_feed(
    user_id: str,
    limit: int = Query(20, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entries = await PromptCycle(db).user_feed(user_id, user.id, limit=limit)
    return [
        FeedItemOut(
            id=entry.response.id,
            content=entry.response.content,
            vote_count=entry.response.vote_count,
            created_at=entry.response.created_at,
            updated_at=entry.response.updated_at,
            group_id=entry.response.group_id,
            group_name=entry.group_name,
            prompt=prompt_out(entry.prompt),
        )
        for entry in entries
    ]
