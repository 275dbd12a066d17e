"""Group Roster - membership, creator/admin roles and capacity.

Invariants:
    - Group row and creator membership are written in ONE commit
    - Member count never exceeds max_members: join and settings updates run
      under the per-group lock AND a row lock on the group
    - UNIQUE (group_id, user_id) backs the AlreadyMember pre-check
    - Admin flag transitions are compare-and-swap on is_admin
    - Creator-only operations check creator identity, not the admin flag
    - Notifications go out after commit (NotificationHub swallows failures)

Design Decisions:
    - Member counts are always derived with COUNT(*), never stored
    - Deletion removes votes, responses and memberships of the group with
      bulk statements, then the group row; prompts are global and survive
    - Private visibility only hides a group from discovery; joining by id
      is still allowed
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.core.domain_types import GroupVisibility
from memoria.core.enforce_roster import (
    check_creator, check_is_member, check_member_bounds, is_admin, is_creator,
    validate_join, validate_leave, validate_removal, validate_role_change,
    validate_settings_update,
)
from memoria.core.errors import (
    AlreadyMemberError, InvalidStateError, ResourceNotFoundError,
)
from memoria.core.notification_payloads import (
    GroupDeletedPayload, MemberDemotedPayload, MemberJoinedPayload,
    MemberPromotedPayload, MemberRemovedPayload,
)
from memoria.infrastructure.locks import group_locks
from memoria.models.group import Group
from memoria.models.group_member import GroupMember
from memoria.models.response import Response
from memoria.models.user import User
from memoria.models.vote import Vote
from memoria.services.notification_hub import NotificationHub
from memoria.services.profiles import display_name, users_by_id

logger = logging.getLogger(__name__)


@dataclass
class GroupDetail:
    """A group as seen by one viewer."""
    group: Group
    member_count: int
    members: list[tuple[GroupMember, User | None]] = field(default_factory=list)
    is_member: bool = False
    is_admin: bool = False
    is_creator: bool = False


class GroupRoster:
    def __init__(self, db: AsyncSession, notifications: NotificationHub | None = None):
        self.db = db
        self.notifications = notifications or NotificationHub(db)

    # ─── Loading ─────────────────────────────────────────────────

    async def get_group(self, group_id: UUID, for_update: bool = False) -> Group:
        query = select(Group).where(Group.id == group_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        group = result.scalar_one_or_none()
        if group is None:
            raise ResourceNotFoundError("Group", str(group_id))
        return group

    async def membership(self, group_id: UUID, user_id: str) -> GroupMember | None:
        result = await self.db.execute(
            select(GroupMember).where(
                GroupMember.group_id == group_id, GroupMember.user_id == user_id,
            ),
        )
        return result.scalar_one_or_none()

    async def member_count(self, group_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(GroupMember).where(
                GroupMember.group_id == group_id,
            ),
        )
        return result.scalar_one()

    async def member_counts(self, group_ids: list[UUID]) -> dict[UUID, int]:
        if not group_ids:
            return {}
        result = await self.db.execute(
            select(GroupMember.group_id, func.count())
            .where(GroupMember.group_id.in_(group_ids))
            .group_by(GroupMember.group_id),
        )
        return {gid: count for gid, count in result.all()}

    async def member_ids(self, group_id: UUID) -> list[str]:
        result = await self.db.execute(
            select(GroupMember.user_id).where(GroupMember.group_id == group_id),
        )
        return list(result.scalars().all())

    async def require_member(self, group_id: UUID, user_id: str) -> tuple[Group, GroupMember]:
        """Load the group and the caller's membership, Unauthorized if absent."""
        group = await self.get_group(group_id)
        membership = await self.membership(group_id, user_id)
        error = check_is_member(group, membership)
        if error:
            raise error
        return group, membership

    # ─── Mutations ───────────────────────────────────────────────

    async def create(
        self, creator_id: str, name: str, description: str = "",
        visibility: GroupVisibility = GroupVisibility.PUBLIC,
        min_members: int = 2, max_members: int = 6,
    ) -> Group:
        error = check_member_bounds(min_members, max_members)
        if error:
            raise error
        group = Group(
            name=name,
            description=description,
            visibility=visibility.value,
            min_members=min_members,
            max_members=max_members,
            creator_id=creator_id,
            members=[GroupMember(user_id=creator_id, is_admin=True)],
        )
        self.db.add(group)
        await self.db.commit()
        logger.info("Group created", extra={"user_id": creator_id, "group_id": str(group.id)})
        return group

    async def join(self, user_id: str, group_id: UUID) -> GroupMember:
        async with group_locks.hold(group_id):
            group = await self.get_group(group_id, for_update=True)
            existing = await self.membership(group_id, user_id)
            count = await self.member_count(group_id)
            error = validate_join(group, existing, count)
            if error:
                await self.db.rollback()
                raise error
            member = GroupMember(group_id=group_id, user_id=user_id, is_admin=False)
            self.db.add(member)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.warning(
                    "Duplicate membership rejected by constraint",
                    extra={"user_id": user_id, "group_id": str(group_id)},
                )
                raise AlreadyMemberError(str(group_id))

        logger.info("Member joined", extra={"user_id": user_id, "group_id": str(group_id)})
        if group.creator_id != user_id:
            await self.notifications.emit(group.creator_id, MemberJoinedPayload(
                group_id=str(group.id),
                group_name=group.name,
                member_id=user_id,
                member_name=await display_name(self.db, user_id),
            ))
        return member

    async def leave(self, user_id: str, group_id: UUID) -> None:
        group = await self.get_group(group_id)
        membership = await self.membership(group_id, user_id)
        error = validate_leave(group, user_id, membership)
        if error:
            raise error
        await self._delete_membership(membership)
        logger.info("Member left", extra={"user_id": user_id, "group_id": str(group_id)})

    async def promote(self, acting_user_id: str, group_id: UUID, target_user_id: str) -> GroupMember:
        return await self._set_admin(acting_user_id, group_id, target_user_id, promote=True)

    async def demote(self, acting_user_id: str, group_id: UUID, target_user_id: str) -> GroupMember:
        return await self._set_admin(acting_user_id, group_id, target_user_id, promote=False)

    async def _set_admin(
        self, acting_user_id: str, group_id: UUID, target_user_id: str, promote: bool,
    ) -> GroupMember:
        group = await self.get_group(group_id)
        membership = await self.membership(group_id, target_user_id)
        error = validate_role_change(group, acting_user_id, target_user_id, membership, promote)
        if error:
            raise error

        result = await self.db.execute(
            update(GroupMember)
            .where(
                GroupMember.id == membership.id,
                GroupMember.is_admin.is_(not promote),
            )
            .values(is_admin=promote)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise InvalidStateError(
                "Member is already an admin" if promote else "Member is not an admin",
            )
        await self.db.commit()
        await self.db.refresh(membership)

        logger.info(
            "Member promoted" if promote else "Member demoted",
            extra={"user_id": target_user_id, "group_id": str(group_id)},
        )
        payload_type = MemberPromotedPayload if promote else MemberDemotedPayload
        await self.notifications.emit(target_user_id, payload_type(
            group_id=str(group.id),
            group_name=group.name,
            admin_name=await display_name(self.db, acting_user_id),
        ))
        return membership

    async def remove(self, acting_user_id: str, group_id: UUID, target_user_id: str) -> None:
        group = await self.get_group(group_id)
        membership = await self.membership(group_id, target_user_id)
        error = validate_removal(group, acting_user_id, target_user_id, membership)
        if error:
            raise error
        await self._delete_membership(membership)

        logger.info("Member removed", extra={"user_id": target_user_id, "group_id": str(group_id)})
        await self.notifications.emit(target_user_id, MemberRemovedPayload(
            group_id=str(group.id),
            group_name=group.name,
            admin_name=await display_name(self.db, acting_user_id),
        ))

    async def _delete_membership(self, membership: GroupMember) -> None:
        await self.db.execute(
            delete(GroupMember)
            .where(GroupMember.id == membership.id)
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        self.db.expunge(membership)

    async def update_settings(
        self, acting_user_id: str, group_id: UUID,
        name: str | None = None, description: str | None = None,
        visibility: GroupVisibility | None = None,
        min_members: int | None = None, max_members: int | None = None,
    ) -> Group:
        """Patch semantics: None leaves a field unchanged."""
        async with group_locks.hold(group_id):
            group = await self.get_group(group_id, for_update=True)
            count = await self.member_count(group_id)
            error = validate_settings_update(
                group, acting_user_id, min_members, max_members, count,
            )
            if error:
                await self.db.rollback()
                raise error
            if name is not None:
                group.name = name
            if description is not None:
                group.description = description
            if visibility is not None:
                group.visibility = visibility.value
            if min_members is not None:
                group.min_members = min_members
            if max_members is not None:
                group.max_members = max_members
            await self.db.commit()
        logger.info("Group settings updated", extra={"user_id": acting_user_id, "group_id": str(group_id)})
        return group

    async def delete(self, acting_user_id: str, group_id: UUID) -> int:
        """Creator-only teardown. Returns how many members were notified."""
        group = await self.get_group(group_id)
        error = check_creator(group, acting_user_id, "delete the group")
        if error:
            raise error
        group_name = group.name
        recipients = [uid for uid in await self.member_ids(group_id) if uid != acting_user_id]

        await self._purge(group_id)
        await self.db.commit()
        self.db.expunge(group)
        logger.info("Group deleted", extra={"user_id": acting_user_id, "group_id": str(group_id)})

        return await self.notifications.emit_many(recipients, GroupDeletedPayload(
            group_name=group_name,
            admin_name=await display_name(self.db, acting_user_id),
        ))

    async def _purge(self, group_id: UUID) -> None:
        """Delete votes, responses, memberships and the group row (no commit)."""
        response_ids = select(Response.id).where(Response.group_id == group_id)
        for statement in (
            delete(Vote).where(Vote.response_id.in_(response_ids)),
            delete(Response).where(Response.group_id == group_id),
            delete(GroupMember).where(GroupMember.group_id == group_id),
            delete(Group).where(Group.id == group_id),
        ):
            await self.db.execute(statement.execution_options(synchronize_session=False))

    # ─── Queries ─────────────────────────────────────────────────

    async def detail(self, group_id: UUID, viewer_id: str) -> GroupDetail:
        group = await self.get_group(group_id)
        result = await self.db.execute(
            select(GroupMember)
            .where(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at),
        )
        memberships = list(result.scalars().all())
        profiles = await users_by_id(self.db, [m.user_id for m in memberships])
        own = next((m for m in memberships if m.user_id == viewer_id), None)
        return GroupDetail(
            group=group,
            member_count=len(memberships),
            members=[(m, profiles.get(m.user_id)) for m in memberships],
            is_member=own is not None,
            is_admin=own is not None and is_admin(group, viewer_id, own),
            is_creator=is_creator(group, viewer_id),
        )

    async def list_for_user(self, user_id: str) -> list[tuple[Group, int]]:
        result = await self.db.execute(
            select(Group)
            .join(GroupMember, GroupMember.group_id == Group.id)
            .where(GroupMember.user_id == user_id)
            .order_by(Group.created_at.desc()),
        )
        return await self._with_counts(list(result.scalars().all()))

    async def friends_groups(self, user_id: str, friend_ids: list[str]) -> list[tuple[Group, int]]:
        """Public groups created by the given friends that user_id has not joined."""
        if not friend_ids:
            return []
        result = await self.db.execute(
            select(Group)
            .where(
                Group.creator_id.in_(friend_ids),
                Group.visibility == GroupVisibility.PUBLIC.value,
                Group.id.not_in(self._joined_by(user_id)),
            )
            .order_by(Group.created_at.desc()),
        )
        return await self._with_counts(list(result.scalars().all()))

    async def discover(self, user_id: str, limit: int = 20) -> list[tuple[Group, int]]:
        """Public groups the user is not in that still have room."""
        result = await self.db.execute(
            select(Group)
            .where(
                Group.visibility == GroupVisibility.PUBLIC.value,
                Group.id.not_in(self._joined_by(user_id)),
            )
            .order_by(Group.created_at.desc()),
        )
        listed = await self._with_counts(list(result.scalars().all()))
        return [(g, n) for g, n in listed if n < g.max_members][:limit]

    @staticmethod
    def _joined_by(user_id: str):
        return select(GroupMember.group_id).where(GroupMember.user_id == user_id)

    async def _with_counts(self, groups: list[Group]) -> list[tuple[Group, int]]:
        counts = await self.member_counts([g.id for g in groups])
        return [(g, counts.get(g.id, 0)) for g in groups]
