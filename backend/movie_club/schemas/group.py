"""Pydantic schemas for Groups, members and settings."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from movie_club.models.group import DayOfWeek, MemberRole, MovieDuration
from movie_club.schemas.movie import MovieOut


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)


class GroupJoin(BaseModel):
    join_code: str = Field(min_length=1)


class GroupOut(BaseModel):
    group_id: str
    name: str
    join_code: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class GroupMemberOut(BaseModel):
    member_id: str
    user_id: str
    display_name: str
    role: MemberRole
    rotation_order: int
    is_skipped: bool
    joined_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class GroupSettingsOut(BaseModel):
    announcement_day: DayOfWeek
    movie_duration: MovieDuration
    selection_window_days: int

    model_config = {"from_attributes": True}


class GroupSettingsUpdate(BaseModel):
    announcement_day: Optional[DayOfWeek] = None
    movie_duration: Optional[MovieDuration] = None
    selection_window_days: Optional[int] = Field(default=None, ge=1)


class GroupDetailOut(GroupOut):
    members: list[GroupMemberOut] = []
    settings: GroupSettingsOut
    current_picker: Optional[GroupMemberOut] = None
    current_picker_index: Optional[int] = None
    active_movie: Optional[MovieOut] = None
    is_commissioner: bool = False


class GroupSummaryOut(GroupOut):
    role: MemberRole
    member_count: int
    active_movie: Optional[MovieOut] = None


class MemberSkipUpdate(BaseModel):
    skip: bool


class MemberRoleUpdate(BaseModel):
    role: MemberRole
