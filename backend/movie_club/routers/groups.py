"""Group management API routes: membership, rotation and settings."""
import logging
import random
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from movie_club.database import get_db
from movie_club.dependencies import get_current_user, get_rng
from movie_club.models.group import Group, GroupMember, MemberRole
from movie_club.models.user import User
from movie_club.schemas.group import (
    GroupCreate,
    GroupDetailOut,
    GroupJoin,
    GroupMemberOut,
    GroupOut,
    GroupSettingsOut,
    GroupSettingsUpdate,
    GroupSummaryOut,
    MemberRoleUpdate,
    MemberSkipUpdate,
)
from movie_club.services import movie_service, rotation_service
from movie_club.services.access import get_group, list_members, require_member

logger = logging.getLogger(__name__)
router = APIRouter()


def _group_detail(db: Session, group: Group, membership: GroupMember) -> dict:
    members = list_members(db, group.group_id)
    settings = group.settings
    return {
        "group_id": group.group_id,
        "name": group.name,
        "join_code": group.join_code,
        "created_at": group.created_at,
        "members": members,
        "settings": settings,
        "current_picker": rotation_service.resolve_current_picker(members, settings),
        "current_picker_index": rotation_service.current_picker_position(members, settings),
        "active_movie": movie_service.get_active_movie(db, group.group_id),
        "is_commissioner": membership.role == MemberRole.commissioner,
    }


@router.post("/", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(payload: GroupCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Create a new group. Creator is automatically added as commissioner."""
    return rotation_service.create_group(db, payload.name, user)


@router.post("/join", response_model=GroupOut)
def join_group(payload: GroupJoin, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Join a group by its invitation code; the newcomer goes last in the rotation."""
    member = rotation_service.join_group(db, payload.join_code, user)
    return get_group(db, member.group_id)


@router.get("/", response_model=list[GroupSummaryOut])
def list_my_groups(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Groups the caller belongs to, with their current pick."""
    memberships = (
        db.query(GroupMember)
        .filter(GroupMember.user_id == user.user_id)
        .order_by(GroupMember.joined_at.desc())
        .all()
    )
    return [
        {
            "group_id": m.group.group_id,
            "name": m.group.name,
            "join_code": m.group.join_code,
            "created_at": m.group.created_at,
            "role": m.role,
            "member_count": len(m.group.members),
            "active_movie": movie_service.get_active_movie(db, m.group_id),
        }
        for m in memberships
    ]


@router.get("/{group_id}", response_model=GroupDetailOut)
def get_group_detail(group_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Fetch a group with members in rotation order and the current picker."""
    group = get_group(db, group_id)
    membership = require_member(db, group_id, user.user_id)
    return _group_detail(db, group, membership)


@router.patch("/{group_id}/settings", response_model=GroupSettingsOut)
def update_settings(
    group_id: str,
    payload: GroupSettingsUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Update schedule settings (commissioner only)."""
    return rotation_service.update_settings(db, group_id, user.user_id, payload.model_dump(exclude_unset=True))


@router.post("/{group_id}/shuffle", response_model=list[GroupMemberOut])
def shuffle_rotation(
    group_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    rng: random.Random = Depends(get_rng),
):
    """Randomize the rotation order and restart it from the top (commissioner only)."""
    return rotation_service.shuffle_members(db, group_id, user.user_id, rng)


@router.post("/{group_id}/advance", response_model=GroupDetailOut)
def advance_rotation(group_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Pass the turn to the next non-skipped member (commissioner only)."""
    rotation_service.advance_turn_as(db, group_id, user.user_id)
    return _group_detail(db, get_group(db, group_id), require_member(db, group_id, user.user_id))


@router.delete("/{group_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(group_id: str, member_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Remove a member and close the gap in the rotation (commissioner only)."""
    rotation_service.remove_member(db, group_id, member_id, user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{group_id}/members/{member_id}/skip", response_model=GroupMemberOut)
def skip_member(
    group_id: str,
    member_id: str,
    payload: MemberSkipUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Mark a member as skipped (or not) in the rotation (commissioner only)."""
    return rotation_service.set_skip(db, group_id, member_id, payload.skip, user.user_id)


@router.patch("/{group_id}/members/{member_id}/role", response_model=GroupMemberOut)
def change_role(
    group_id: str,
    member_id: str,
    payload: MemberRoleUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Promote or demote a member (commissioner only)."""
    return rotation_service.set_role(db, group_id, member_id, payload.role, user.user_id)
