"""Movie ORM model: one group's pick and its lifecycle status."""
import enum
import uuid
from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, JSON, String, Text, text, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from movie_club.database import Base


class MovieStatus(str, enum.Enum):
    locked = "LOCKED"
    published = "PUBLISHED"
    rating_period = "RATING_PERIOD"
    completed = "COMPLETED"


# A group's "current pick" is whichever movie holds one of these
ACTIVE_STATUSES = (MovieStatus.locked, MovieStatus.published, MovieStatus.rating_period)

# SAEnum persists member names, so the partial index compares against those
_ACTIVE_WHERE = text("status IN ('locked', 'published', 'rating_period')")


class Movie(Base):
    __tablename__ = "movies"
    __table_args__ = (
        Index(
            "uq_movies_one_active_per_group",
            "group_id",
            unique=True,
            sqlite_where=_ACTIVE_WHERE,
            postgresql_where=_ACTIVE_WHERE,
        ),
    )

    movie_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), ForeignKey("groups.group_id", ondelete="CASCADE"), nullable=False)
    tmdb_id = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    overview = Column(Text, nullable=True)
    poster_path = Column(String(255), nullable=True)
    backdrop_path = Column(String(255), nullable=True)
    release_date = Column(String(20), nullable=True)
    vote_average = Column(Float, nullable=True)
    watch_providers = Column(JSON, nullable=True)
    selected_by_user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    selected_by_name = Column(String(100), nullable=False)
    status = Column(SAEnum(MovieStatus), nullable=False, default=MovieStatus.locked)
    locked_at = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    rating_reveal_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group", back_populates="movies")
    ratings = relationship("Rating", back_populates="movie", cascade="all, delete-orphan")
