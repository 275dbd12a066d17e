"""Roster Enforcement - group membership, role and capacity rules.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Return an error instance on violation, None on success
    - 2 <= min_members <= max_members <= 6
    - Member count never exceeds max_members
    - The creator is always a member and always admin; never removed or demoted
    - "is admin" = creator OR is_admin membership row; destructive operations
      check creator identity specifically

Design Decisions:
    - Role checks take the group and the membership row separately: creator
      status comes from the group, admin flag from the row
"""

from memoria.core.domain_types import MAX_GROUP_SIZE, MIN_GROUP_SIZE
from memoria.core.errors import (
    AlreadyMemberError, CapacityExceededError, InvalidGroupBoundsError,
    InvalidStateError, MemoriaError, ResourceNotFoundError, UnauthorizedError,
)
from memoria.core.repository_protocols import GroupLike, MembershipLike


# ─── Predicates ──────────────────────────────────────────────────

def is_creator(group: GroupLike, user_id: str) -> bool:
    return group.creator_id == user_id


def is_admin(group: GroupLike, user_id: str, membership: MembershipLike | None) -> bool:
    if is_creator(group, user_id):
        return True
    return membership is not None and membership.is_admin


# ─── Single checks ───────────────────────────────────────────────

def check_member_bounds(min_members: int, max_members: int) -> MemoriaError | None:
    if not (MIN_GROUP_SIZE <= min_members <= max_members <= MAX_GROUP_SIZE):
        return InvalidGroupBoundsError(min_members, max_members)
    return None


def check_creator(group: GroupLike, acting_user_id: str, action: str) -> MemoriaError | None:
    if not is_creator(group, acting_user_id):
        return UnauthorizedError(f"Only the group creator can {action}")
    return None


def check_not_already_member(
    membership: MembershipLike | None, group_id: str,
) -> MemoriaError | None:
    if membership is not None:
        return AlreadyMemberError(group_id)
    return None


def check_capacity(member_count: int, max_members: int) -> MemoriaError | None:
    if member_count >= max_members:
        return CapacityExceededError(
            f"Group is full ({member_count}/{max_members})",
        )
    return None


def check_target_not_creator(
    group: GroupLike, target_user_id: str, action: str,
) -> MemoriaError | None:
    if is_creator(group, target_user_id):
        return UnauthorizedError(f"Cannot {action} the group creator")
    return None


def check_target_is_member(
    membership: MembershipLike | None, target_user_id: str,
) -> MemoriaError | None:
    if membership is None:
        return ResourceNotFoundError("Member", target_user_id)
    return None


def check_is_member(
    group: GroupLike, membership: MembershipLike | None,
) -> MemoriaError | None:
    if membership is None:
        return UnauthorizedError(f"You are not a member of '{group.name}'")
    return None


def check_admin_flag(membership: MembershipLike, promote: bool) -> MemoriaError | None:
    """Promote needs a non-admin, demote needs an admin."""
    if promote and membership.is_admin:
        return InvalidStateError("Member is already an admin")
    if not promote and not membership.is_admin:
        return InvalidStateError("Member is not an admin")
    return None


def check_max_covers_members(max_members: int, member_count: int) -> MemoriaError | None:
    if max_members < member_count:
        return CapacityExceededError(
            f"max_members ({max_members}) is below the current member count ({member_count})",
        )
    return None


# ─── Chained validations ─────────────────────────────────────────

def validate_join(
    group: GroupLike, membership: MembershipLike | None, member_count: int,
) -> MemoriaError | None:
    return (
        check_not_already_member(membership, str(group.id))
        or check_capacity(member_count, group.max_members)
    )


def validate_role_change(
    group: GroupLike, acting_user_id: str, target_user_id: str,
    membership: MembershipLike | None, promote: bool,
) -> MemoriaError | None:
    action = "promote members" if promote else "demote members"
    return (
        check_creator(group, acting_user_id, action)
        or (None if promote else check_target_not_creator(group, target_user_id, "demote"))
        or check_target_is_member(membership, target_user_id)
        or check_admin_flag(membership, promote)
    )


def validate_removal(
    group: GroupLike, acting_user_id: str, target_user_id: str,
    membership: MembershipLike | None,
) -> MemoriaError | None:
    return (
        check_creator(group, acting_user_id, "remove members")
        or check_target_not_creator(group, target_user_id, "remove")
        or check_target_is_member(membership, target_user_id)
    )


def validate_settings_update(
    group: GroupLike, acting_user_id: str,
    min_members: int | None, max_members: int | None, member_count: int,
) -> MemoriaError | None:
    """Bounds are validated on the merged values (patch over current)."""
    new_min = group.min_members if min_members is None else min_members
    new_max = group.max_members if max_members is None else max_members
    return (
        check_creator(group, acting_user_id, "update group settings")
        or check_member_bounds(new_min, new_max)
        or check_max_covers_members(new_max, member_count)
    )


def validate_leave(
    group: GroupLike, user_id: str, membership: MembershipLike | None,
) -> MemoriaError | None:
    if is_creator(group, user_id):
        return UnauthorizedError(
            "The group creator cannot leave; delete the group instead",
        )
    return check_is_member(group, membership)
