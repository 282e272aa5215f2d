"""Rating aggregation: sealed per-user scores and the revealed summary."""
import logging
import math
from numbers import Real
from typing import Any, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from movie_club.config import settings as app_settings
from movie_club.errors import InvalidRatingError, NotFoundOrForbiddenError, RatingClosedError
from movie_club.models.movie import Movie
from movie_club.models.rating import Rating
from movie_club.models.user import User
from movie_club.services import movie_service
from movie_club.services.access import require_member

logger = logging.getLogger(__name__)

MIN_RATING = 0.5
MAX_RATING = 5.0


def validate_rating(value: Any) -> float:
    """Return the rating as a float, or raise InvalidRatingError."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidRatingError()
    value = float(value)
    if math.isnan(value) or value < MIN_RATING or value > MAX_RATING:
        raise InvalidRatingError()
    return value


def average_rating(ratings: Sequence[Rating]) -> Optional[float]:
    """Arithmetic mean of the scores, or None when there are none."""
    if not ratings:
        return None
    return sum(r.rating for r in ratings) / len(ratings)


def _find_rating(db: Session, movie_id: str, user_id: str) -> Optional[Rating]:
    return db.query(Rating).filter(Rating.movie_id == movie_id, Rating.user_id == user_id).first()


def submit_rating(
    db: Session,
    group_id: str,
    movie_id: str,
    user: User,
    rating: Any,
    review: Optional[str] = None,
    allow_locked: Optional[bool] = None,
) -> Rating:
    """Create or overwrite the caller's rating for a movie.

    Keyed on (movie, user): resubmitting replaces score and review. If a
    concurrent insert wins the unique key, the write is retried as an update.
    """
    value = validate_rating(rating)
    require_member(db, group_id, user.user_id)
    movie = movie_service.get_movie(db, group_id, movie_id)

    if allow_locked is None:
        allow_locked = app_settings.ALLOW_RATING_WHILE_LOCKED
    if not movie_service.is_rateable(movie, allow_locked=allow_locked):
        raise RatingClosedError()

    existing = _find_rating(db, movie_id, user.user_id)
    if existing:
        existing.rating = value
        existing.review = review
        db.commit()
        db.refresh(existing)
        logger.info("Updated rating for movie %s by user %s", movie_id, user.user_id)
        return existing

    new_rating = Rating(movie_id=movie_id, user_id=user.user_id, rating=value, review=review)
    db.add(new_rating)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find_rating(db, movie_id, user.user_id)
        if existing is None:
            raise
        existing.rating = value
        existing.review = review
        db.commit()
        new_rating = existing
    db.refresh(new_rating)
    logger.info("Added rating for movie %s by user %s", movie_id, user.user_id)
    return new_rating


def delete_rating(db: Session, rating_id: str, user_id: str, movie_id: Optional[str] = None) -> None:
    """Delete the caller's own rating; missing and foreign ratings look the same."""
    query = db.query(Rating).filter(Rating.rating_id == rating_id)
    if movie_id:
        query = query.filter(Rating.movie_id == movie_id)
    rating = query.first()
    if not rating or rating.user_id != user_id:
        raise NotFoundOrForbiddenError()

    db.delete(rating)
    db.commit()
    logger.info("Deleted rating %s by user %s", rating_id, user_id)


def rating_summary(movie: Movie, viewer_user_id: str) -> dict[str, Any]:
    """Movie ratings with the reveal gate applied for one viewer.

    Before COMPLETED only the count and the viewer's own rating are
    exposed; other members' scores, reviews and names stay sealed.
    """
    revealed = movie_service.ratings_revealed(movie)
    ratings = list(movie.ratings)
    return {
        "ratings_revealed": revealed,
        "rating_count": len(ratings),
        "my_rating": next((r for r in ratings if r.user_id == viewer_user_id), None),
        "ratings": ratings if revealed else None,
        "average_rating": average_rating(ratings) if revealed else None,
    }
