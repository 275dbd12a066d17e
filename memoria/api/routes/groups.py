"""Group Routes - roster management plus the group's weekly responses.

Invariants:
    - Roster mutations are creator-only except join and leave
    - Responses are visible to members only, through the reveal gate
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.api.deps import get_current_user
from memoria.api.routes.prompts import prompt_out
from memoria.core.enforce_roster import is_creator
from memoria.infrastructure.database import get_db
from memoria.models.group import Group
from memoria.models.group_member import GroupMember
from memoria.models.user import User
from memoria.schemas.group import (
    GroupCreate, GroupDeleteResponse, GroupDetailResponse, GroupSettingsUpdate,
    GroupSummary, MemberOut,
)
from memoria.schemas.prompt import ResponseListOut, ResponseOut, ResponseSubmit
from memoria.schemas.user import UserProfile
from memoria.services.connection_graph import ConnectionGraph
from memoria.services.group_roster import GroupRoster
from memoria.services.prompt_cycle import PromptCycle

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/groups", tags=["groups"])


def group_summary(group: Group, member_count: int) -> GroupSummary:
    return GroupSummary(
        id=group.id,
        name=group.name,
        description=group.description,
        visibility=group.visibility,
        min_members=group.min_members,
        max_members=group.max_members,
        creator_id=group.creator_id,
        member_count=member_count,
        created_at=group.created_at,
    )


def member_out(group: Group, membership: GroupMember, profile: User | None) -> MemberOut:
    return MemberOut(
        user_id=membership.user_id,
        display_name=profile.display_name if profile else None,
        handle=profile.handle if profile else None,
        avatar_url=profile.avatar_url if profile else None,
        is_admin=membership.is_admin or is_creator(group, membership.user_id),
        is_creator=is_creator(group, membership.user_id),
        joined_at=membership.joined_at,
    )


# ─── Roster ──────────────────────────────────────────────────────

@router.post("", response_model=GroupSummary, status_code=status.HTTP_201_CREATED)
async def create_group(
    body: GroupCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    group = await GroupRoster(db).create(
        user.id, body.name, body.description, body.visibility,
        body.min_members, body.max_members,
    )
    return group_summary(group, 1)


@router.get("", response_model=list[GroupSummary])
async def my_groups(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return [group_summary(g, n) for g, n in await GroupRoster(db).list_for_user(user.id)]


@router.get("/discover", response_model=list[GroupSummary])
async def discover_groups(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return [group_summary(g, n) for g, n in await GroupRoster(db).discover(user.id)]


@router.get("/friends", response_model=list[GroupSummary])
async def friends_groups(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    friends = await ConnectionGraph(db).friends(user.id)
    listed = await GroupRoster(db).friends_groups(user.id, [f.id for f in friends])
    return [group_summary(g, n) for g, n in listed]


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def get_group(
    group_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    detail = await GroupRoster(db).detail(group_id, user.id)
    return GroupDetailResponse(
        group=group_summary(detail.group, detail.member_count),
        members=[member_out(detail.group, m, p) for m, p in detail.members],
        is_member=detail.is_member,
        is_admin=detail.is_admin,
        is_creator=detail.is_creator,
    )


@router.patch("/{group_id}", response_model=GroupSummary)
async def update_group(
    group_id: UUID,
    body: GroupSettingsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    roster = GroupRoster(db)
    group = await roster.update_settings(
        user.id, group_id, **body.model_dump(exclude_unset=True),
    )
    return group_summary(group, await roster.member_count(group_id))


@router.delete("/{group_id}", response_model=GroupDeleteResponse)
async def delete_group(
    group_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notified = await GroupRoster(db).delete(user.id, group_id)
    return GroupDeleteResponse(notified=notified)


@router.post(
    "/{group_id}/join", response_model=MemberOut,
    status_code=status.HTTP_201_CREATED,
)
async def join_group(
    group_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    roster = GroupRoster(db)
    membership = await roster.join(user.id, group_id)
    group = await roster.get_group(group_id)
    return member_out(group, membership, user)


@router.post("/{group_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_group(
    group_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await GroupRoster(db).leave(user.id, group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{group_id}/members/{member_id}/promote", response_model=MemberOut)
async def promote_member(
    group_id: UUID,
    member_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    roster = GroupRoster(db)
    membership = await roster.promote(user.id, group_id, member_id)
    return member_out(await roster.get_group(group_id), membership, await db.get(User, member_id))


@router.post("/{group_id}/members/{member_id}/demote", response_model=MemberOut)
async def demote_member(
    group_id: UUID,
    member_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    roster = GroupRoster(db)
    membership = await roster.demote(user.id, group_id, member_id)
    return member_out(await roster.get_group(group_id), membership, await db.get(User, member_id))


@router.delete("/{group_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    group_id: UUID,
    member_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await GroupRoster(db).remove(user.id, group_id, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Weekly responses ────────────────────────────────────────────

@router.get("/{group_id}/responses", response_model=ResponseListOut)
async def list_responses(
    group_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    page = await PromptCycle(db).list_responses(group_id, user.id)
    listing = page.listing
    return ResponseListOut(
        prompt=prompt_out(page.prompt),
        responses=[
            ResponseOut(
                id=r.id,
                user_id=r.user_id,
                author=(
                    UserProfile.model_validate(page.authors[r.user_id])
                    if r.user_id in page.authors else None
                ),
                content=r.content,
                vote_count=r.vote_count,
                voted=r.id in page.voted_response_ids,
                created_at=r.created_at,
                updated_at=r.updated_at,
            )
            for r in listing.responses
        ],
        response_count=listing.response_count,
        is_revealed=listing.is_revealed,
        reveal_at=page.prompt.reveal_at,
    )


@router.put("/{group_id}/responses", response_model=ResponseOut)
async def submit_response(
    group_id: UUID,
    body: ResponseSubmit,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    response = await PromptCycle(db).submit_response(user.id, group_id, body.content)
    return ResponseOut(
        id=response.id,
        user_id=response.user_id,
        author=UserProfile.model_validate(user),
        content=response.content,
        vote_count=response.vote_count,
        created_at=response.created_at,
        updated_at=response.updated_at,
    )
