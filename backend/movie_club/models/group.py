"""Group, GroupMember and GroupSettings ORM models."""
import enum
import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from movie_club.database import Base


class MemberRole(str, enum.Enum):
    commissioner = "COMMISSIONER"
    member = "MEMBER"


class DayOfWeek(str, enum.Enum):
    monday = "MONDAY"
    tuesday = "TUESDAY"
    wednesday = "WEDNESDAY"
    thursday = "THURSDAY"
    friday = "FRIDAY"
    saturday = "SATURDAY"
    sunday = "SUNDAY"


class MovieDuration(str, enum.Enum):
    weekly = "WEEKLY"
    biweekly = "BIWEEKLY"
    monthly = "MONTHLY"


class Group(Base):
    __tablename__ = "groups"

    group_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    join_code = Column(String(32), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    members = relationship(
        "GroupMember",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupMember.rotation_order",
    )
    settings = relationship("GroupSettings", back_populates="group", uselist=False, cascade="all, delete-orphan")
    movies = relationship("Movie", back_populates="group", cascade="all, delete-orphan")


class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),)

    member_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), ForeignKey("groups.group_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    role = Column(SAEnum(MemberRole), nullable=False, default=MemberRole.member)
    rotation_order = Column(Integer, nullable=False)
    is_skipped = Column(Boolean, nullable=False, default=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group", back_populates="members")
    user = relationship("User")

    @property
    def display_name(self) -> str:
        return self.user.display_name if self.user else "Unknown"


class GroupSettings(Base):
    __tablename__ = "group_settings"

    group_id = Column(String(36), ForeignKey("groups.group_id", ondelete="CASCADE"), primary_key=True)
    announcement_day = Column(SAEnum(DayOfWeek), nullable=False, default=DayOfWeek.monday)
    movie_duration = Column(SAEnum(MovieDuration), nullable=False, default=MovieDuration.weekly)
    # Position in the non-skipped, rotation-ordered member list
    current_picker_index = Column(Integer, nullable=False, default=0)
    # Stable reference to the picker; survives renumbering
    current_picker_member_id = Column(String(36), nullable=True)
    selection_window_days = Column(Integer, nullable=False, default=3)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    group = relationship("Group", back_populates="settings")
