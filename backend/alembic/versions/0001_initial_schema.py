"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for the Movie Club application:
users, groups, group_members, group_settings, movies, ratings.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_MOVIE_WHERE = sa.text("status IN ('locked', 'published', 'rating_period')")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- groups ---
    op.create_table(
        "groups",
        sa.Column("group_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("join_code", sa.String(32), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- group_members ---
    op.create_table(
        "group_members",
        sa.Column("member_id", sa.String(36), primary_key=True),
        sa.Column("group_id", sa.String(36), sa.ForeignKey("groups.group_id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        sa.Column("rotation_order", sa.Integer, nullable=False),
        sa.Column("is_skipped", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )
    op.create_index("ix_group_members_group_id", "group_members", ["group_id"])

    # --- group_settings ---
    op.create_table(
        "group_settings",
        sa.Column("group_id", sa.String(36), sa.ForeignKey("groups.group_id", ondelete="CASCADE"), primary_key=True),
        sa.Column("announcement_day", sa.String(20), nullable=False, server_default="monday"),
        sa.Column("movie_duration", sa.String(20), nullable=False, server_default="weekly"),
        sa.Column("current_picker_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("current_picker_member_id", sa.String(36), nullable=True),
        sa.Column("selection_window_days", sa.Integer, nullable=False, server_default="3"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- movies ---
    op.create_table(
        "movies",
        sa.Column("movie_id", sa.String(36), primary_key=True),
        sa.Column("group_id", sa.String(36), sa.ForeignKey("groups.group_id", ondelete="CASCADE"), nullable=False),
        sa.Column("tmdb_id", sa.Integer, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("overview", sa.Text, nullable=True),
        sa.Column("poster_path", sa.String(255), nullable=True),
        sa.Column("backdrop_path", sa.String(255), nullable=True),
        sa.Column("release_date", sa.String(20), nullable=True),
        sa.Column("vote_average", sa.Float, nullable=True),
        sa.Column("watch_providers", sa.JSON, nullable=True),
        sa.Column("selected_by_user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("selected_by_name", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="locked"),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rating_reveal_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "uq_movies_one_active_per_group",
        "movies",
        ["group_id"],
        unique=True,
        sqlite_where=ACTIVE_MOVIE_WHERE,
        postgresql_where=ACTIVE_MOVIE_WHERE,
    )

    # --- ratings ---
    op.create_table(
        "ratings",
        sa.Column("rating_id", sa.String(36), primary_key=True),
        sa.Column("movie_id", sa.String(36), sa.ForeignKey("movies.movie_id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("rating", sa.Float, nullable=False),
        sa.Column("review", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("movie_id", "user_id", name="uq_ratings_movie_user"),
        sa.CheckConstraint("rating >= 0.5 AND rating <= 5.0", name="ck_ratings_range"),
    )


def downgrade() -> None:
    op.drop_table("ratings")
    op.drop_index("uq_movies_one_active_per_group", table_name="movies")
    op.drop_table("movies")
    op.drop_table("group_settings")
    op.drop_index("ix_group_members_group_id", table_name="group_members")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("users")
