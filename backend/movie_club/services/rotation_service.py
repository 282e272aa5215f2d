"""Rotation engine: whose turn it is, and keeping the turn order intact.

Invariants:
- rotation orders within a group are always exactly 0..N-1
- the current picker is never a skipped member
- renumbering (remove, shuffle) runs under the group's settings row lock

The picker is tracked two ways on GroupSettings: ``current_picker_index``
(a position in the non-skipped, rotation-ordered list) and
``current_picker_member_id`` (a stable reference). The reference wins when
it names an eligible member, so removing somebody else never moves the turn.
"""
import logging
import random
import secrets
import string
from typing import Any, Optional, Sequence, TypeVar

from sqlalchemy.orm import Session

from movie_club.config import settings as app_settings
from movie_club.errors import AlreadyMemberError, LastCommissionerError, MovieClubError, NotFoundError, SelfRemovalError
from movie_club.models.group import (
    DayOfWeek,
    Group,
    GroupMember,
    GroupSettings,
    MemberRole,
    MovieDuration,
)
from movie_club.models.user import User
from movie_club.services.access import (
    get_group_member,
    get_membership,
    list_members,
    lock_settings,
    require_commissioner,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits

SETTINGS_FIELDS = ("announcement_day", "movie_duration", "selection_window_days")


# ---------------------------------------------------------------------------
# Pure rotation helpers
# ---------------------------------------------------------------------------
def eligible_members(members: Sequence[GroupMember]) -> list[GroupMember]:
    """Non-skipped members sorted by rotation order."""
    return sorted((m for m in members if not m.is_skipped), key=lambda m: m.rotation_order)


def resolve_current_picker(members: Sequence[GroupMember], settings: GroupSettings) -> Optional[GroupMember]:
    """Return the member whose turn it is, or None when nobody may pick.

    An out-of-range index is "no current picker", never an error.
    """
    eligible = eligible_members(members)
    if not eligible:
        return None

    if settings.current_picker_member_id:
        for member in eligible:
            if member.member_id == settings.current_picker_member_id:
                return member

    index = settings.current_picker_index or 0
    if 0 <= index < len(eligible):
        return eligible[index]
    return None


def current_picker_position(members: Sequence[GroupMember], settings: GroupSettings) -> Optional[int]:
    """Display index of the current picker within the eligible list."""
    picker = resolve_current_picker(members, settings)
    if picker is None:
        return None
    return eligible_members(members).index(picker)


def renumber(members: Sequence[GroupMember]) -> None:
    """Rewrite rotation orders to 0..N-1, keeping the given sequence."""
    for position, member in enumerate(members):
        member.rotation_order = position


def fisher_yates(items: Sequence[T], rng: random.Random) -> list[T]:
    """Unbiased shuffle into a new list: for i from last down to 1, swap with j in [0, i]."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _anchor_picker(members: Sequence[GroupMember], settings: GroupSettings) -> Optional[GroupMember]:
    """Pin the stable picker reference and resync the display index."""
    eligible = eligible_members(members)
    if not eligible:
        settings.current_picker_member_id = None
        settings.current_picker_index = 0
        return None

    picker = resolve_current_picker(members, settings)
    if picker is None:
        picker = eligible[0]
    settings.current_picker_member_id = picker.member_id
    settings.current_picker_index = eligible.index(picker)
    return picker


# ---------------------------------------------------------------------------
# Group lifecycle
# ---------------------------------------------------------------------------
def generate_join_code(db: Session, length: Optional[int] = None) -> str:
    """Random invitation code that no other group uses."""
    length = length or app_settings.JOIN_CODE_LENGTH
    while True:
        code = "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))
        if not db.query(Group).filter(Group.join_code == code).first():
            return code


def create_group(db: Session, name: str, creator: User) -> Group:
    """Create a group with its creator as the sole commissioner at order 0."""
    name = (name or "").strip()
    if not name:
        raise MovieClubError("Group name is required")

    group = Group(name=name, join_code=generate_join_code(db))
    db.add(group)
    db.flush()

    commissioner = GroupMember(
        group_id=group.group_id,
        user_id=creator.user_id,
        role=MemberRole.commissioner,
        rotation_order=0,
        is_skipped=False,
    )
    db.add(commissioner)
    db.flush()

    db.add(GroupSettings(
        group_id=group.group_id,
        announcement_day=DayOfWeek.monday,
        movie_duration=MovieDuration.weekly,
        current_picker_index=0,
        current_picker_member_id=commissioner.member_id,
        selection_window_days=3,
    ))
    db.commit()
    db.refresh(group)
    logger.info("Created group '%s' (%s) by user %s", group.name, group.group_id, creator.user_id)
    return group


def join_group(db: Session, join_code: str, user: User) -> GroupMember:
    """Append the user to the end of the rotation as a MEMBER."""
    join_code = (join_code or "").strip()
    if not join_code:
        raise MovieClubError("Join code is required")

    group = db.query(Group).filter(Group.join_code == join_code).first()
    if not group:
        raise NotFoundError("Invalid join code")

    settings = lock_settings(db, group.group_id)
    if get_membership(db, group.group_id, user.user_id):
        raise AlreadyMemberError()

    members = list_members(db, group.group_id)
    next_order = max((m.rotation_order for m in members), default=-1) + 1
    member = GroupMember(
        group_id=group.group_id,
        user_id=user.user_id,
        role=MemberRole.member,
        rotation_order=next_order,
        is_skipped=False,
    )
    db.add(member)
    db.flush()

    if settings.current_picker_member_id is None:
        _anchor_picker(members + [member], settings)

    db.commit()
    db.refresh(member)
    logger.info("User %s joined group %s at rotation order %d", user.user_id, group.group_id, next_order)
    return member


# ---------------------------------------------------------------------------
# Commissioner operations
# ---------------------------------------------------------------------------
def remove_member(db: Session, group_id: str, member_id: str, actor_user_id: str) -> None:
    """Delete a member and close the gap in the rotation.

    The picker reference survives, so the turn stays with the same person
    unless that person is the one removed; then it passes to whoever now
    holds the same position.
    """
    require_commissioner(db, group_id, actor_user_id, "remove members")
    settings = lock_settings(db, group_id)
    member = get_group_member(db, group_id, member_id)

    if member.user_id == actor_user_id:
        raise SelfRemovalError()
    removed_user_id = member.user_id

    if settings.current_picker_member_id == member.member_id:
        settings.current_picker_member_id = None

    db.delete(member)
    db.flush()

    remaining = list_members(db, group_id)
    renumber(remaining)
    _anchor_picker(remaining, settings)

    db.commit()
    logger.info("Removed member %s (user %s) from group %s", member_id, removed_user_id, group_id)


def shuffle_members(db: Session, group_id: str, actor_user_id: str, rng: random.Random) -> list[GroupMember]:
    """Randomly permute the rotation and hand the turn to the new first picker."""
    require_commissioner(db, group_id, actor_user_id, "shuffle order")
    settings = lock_settings(db, group_id)

    shuffled = fisher_yates(list_members(db, group_id), rng)
    renumber(shuffled)

    settings.current_picker_index = 0
    settings.current_picker_member_id = None
    _anchor_picker(shuffled, settings)

    db.commit()
    logger.info("Shuffled rotation for group %s (%d members)", group_id, len(shuffled))
    return shuffled


def set_skip(db: Session, group_id: str, member_id: str, skip: bool, actor_user_id: str) -> GroupMember:
    """Toggle a member's skip flag; the eligible list recomputes on next read."""
    require_commissioner(db, group_id, actor_user_id, "skip turns")
    member = get_group_member(db, group_id, member_id)
    member.is_skipped = bool(skip)
    db.commit()
    db.refresh(member)
    logger.info("Member %s in group %s skip=%s", member_id, group_id, member.is_skipped)
    return member


def set_role(db: Session, group_id: str, member_id: str, role: MemberRole, actor_user_id: str) -> GroupMember:
    """Promote or demote a member; the last commissioner cannot be demoted."""
    require_commissioner(db, group_id, actor_user_id, "change roles")
    lock_settings(db, group_id)
    member = get_group_member(db, group_id, member_id)

    if member.role == MemberRole.commissioner and role != MemberRole.commissioner:
        commissioners = (
            db.query(GroupMember)
            .filter(GroupMember.group_id == group_id, GroupMember.role == MemberRole.commissioner)
            .count()
        )
        if commissioners <= 1:
            raise LastCommissionerError()

    member.role = role
    db.commit()
    db.refresh(member)
    logger.info("Member %s in group %s is now %s", member_id, group_id, role.value)
    return member


def update_settings(db: Session, group_id: str, actor_user_id: str, updates: dict[str, Any]) -> GroupSettings:
    """Partial update of the schedule settings."""
    require_commissioner(db, group_id, actor_user_id, "update settings")
    settings = lock_settings(db, group_id)
    for field, value in updates.items():
        if field in SETTINGS_FIELDS and value is not None:
            setattr(settings, field, value)
    db.commit()
    db.refresh(settings)
    logger.info("Updated settings for group %s: %s", group_id, sorted(updates))
    return settings


def advance_turn(db: Session, group_id: str) -> Optional[GroupMember]:
    """Pass the turn to the next eligible member, wrapping around.

    Does not commit; callers own the transaction.
    """
    settings = lock_settings(db, group_id)
    members = list_members(db, group_id)
    eligible = eligible_members(members)
    if not eligible:
        settings.current_picker_member_id = None
        settings.current_picker_index = 0
        return None

    current = resolve_current_picker(members, settings)
    if current is None:
        nxt = eligible[0]
    else:
        nxt = eligible[(eligible.index(current) + 1) % len(eligible)]

    settings.current_picker_member_id = nxt.member_id
    settings.current_picker_index = eligible.index(nxt)
    logger.info("Turn in group %s passed to member %s", group_id, nxt.member_id)
    return nxt


def advance_turn_as(db: Session, group_id: str, actor_user_id: str) -> Optional[GroupMember]:
    """Commissioner-triggered turn advance."""
    require_commissioner(db, group_id, actor_user_id, "advance the rotation")
    picker = advance_turn(db, group_id)
    db.commit()
    return picker
