"""Membership lookups and role checks shared by every group operation."""
from typing import Optional

from sqlalchemy.orm import Session

from movie_club.errors import ForbiddenError, NotFoundError, NotMemberError
from movie_club.models.group import Group, GroupMember, GroupSettings, MemberRole


def get_group(db: Session, group_id: str) -> Group:
    group = db.query(Group).filter(Group.group_id == group_id).first()
    if not group:
        raise NotFoundError("Group not found")
    return group


def get_membership(db: Session, group_id: str, user_id: str) -> Optional[GroupMember]:
    return (
        db.query(GroupMember)
        .filter(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
        .first()
    )


def require_member(db: Session, group_id: str, user_id: str) -> GroupMember:
    """Return the caller's membership or fail with NotMemberError."""
    membership = get_membership(db, group_id, user_id)
    if not membership:
        raise NotMemberError()
    return membership


def require_commissioner(db: Session, group_id: str, user_id: str, action: str = "perform this action") -> GroupMember:
    """Return the caller's commissioner membership or fail with ForbiddenError."""
    membership = (
        db.query(GroupMember)
        .filter(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
            GroupMember.role == MemberRole.commissioner,
        )
        .first()
    )
    if not membership:
        raise ForbiddenError(f"Only commissioners can {action}")
    return membership


def get_group_member(db: Session, group_id: str, member_id: str) -> GroupMember:
    member = (
        db.query(GroupMember)
        .filter(GroupMember.group_id == group_id, GroupMember.member_id == member_id)
        .first()
    )
    if not member:
        raise NotFoundError("Member not found")
    return member


def get_settings(db: Session, group_id: str) -> GroupSettings:
    settings = db.query(GroupSettings).filter(GroupSettings.group_id == group_id).first()
    if not settings:
        raise NotFoundError("Group not found")
    return settings


def lock_settings(db: Session, group_id: str) -> GroupSettings:
    """Load the group's settings row FOR UPDATE.

    Rotation rewrites and movie selection take this lock first, so they
    serialize per group. SQLite ignores the clause; it serializes writers anyway.
    """
    settings = (
        db.query(GroupSettings)
        .filter(GroupSettings.group_id == group_id)
        .with_for_update()
        .first()
    )
    if not settings:
        raise NotFoundError("Group not found")
    return settings


def list_members(db: Session, group_id: str) -> list[GroupMember]:
    """All members of a group in rotation order."""
    return (
        db.query(GroupMember)
        .filter(GroupMember.group_id == group_id)
        .order_by(GroupMember.rotation_order.asc())
        .all()
    )
