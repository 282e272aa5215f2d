"""Rating ORM model: one score per (movie, user)."""
import uuid
from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from movie_club.database import Base


class Rating(Base):
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("movie_id", "user_id", name="uq_ratings_movie_user"),
        CheckConstraint("rating >= 0.5 AND rating <= 5.0", name="ck_ratings_range"),
    )

    rating_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    movie_id = Column(String(36), ForeignKey("movies.movie_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    rating = Column(Float, nullable=False)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    movie = relationship("Movie", back_populates="ratings")
    user = relationship("User")

    @property
    def display_name(self) -> str:
        return self.user.display_name if self.user else "Unknown"
