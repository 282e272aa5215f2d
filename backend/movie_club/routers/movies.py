"""Movie selection, lifecycle and rating routes, nested under a group."""
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from movie_club.config import settings
from movie_club.database import get_db
from movie_club.dependencies import get_current_user, get_metadata_provider
from movie_club.models.user import User
from movie_club.schemas.movie import MovieDetailOut, MovieOut, MovieSelect, MovieStatusUpdate, RatingCreate, RatingOut
from movie_club.services import movie_service, rating_service
from movie_club.services.access import require_member
from movie_club.services.tmdb_client import TMDBClient

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{group_id}/select-movie", response_model=MovieOut, status_code=status.HTTP_201_CREATED)
def select_movie(
    group_id: str,
    payload: MovieSelect,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    provider: TMDBClient = Depends(get_metadata_provider),
):
    """Lock in a movie. Only the current picker may call this, once per period."""
    metadata = payload.model_dump(exclude={"region"})
    return movie_service.select_movie(
        db,
        group_id,
        user,
        metadata,
        provider=provider,
        region=payload.region or settings.DEFAULT_REGION,
    )


@router.get("/{group_id}/movies", response_model=list[MovieOut])
def list_movies(group_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """All picks of the group, newest first."""
    require_member(db, group_id, user.user_id)
    return movie_service.list_movies(db, group_id)


@router.get("/{group_id}/movies/{movie_id}", response_model=MovieDetailOut)
def get_movie(group_id: str, movie_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Movie details; other members' ratings appear only once the movie is COMPLETED."""
    require_member(db, group_id, user.user_id)
    movie = movie_service.get_movie(db, group_id, movie_id)
    return {"movie": movie, **rating_service.rating_summary(movie, user.user_id)}


@router.post("/{group_id}/movies/{movie_id}/status", response_model=MovieOut)
def change_movie_status(
    group_id: str,
    movie_id: str,
    payload: MovieStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Advance the movie lifecycle (commissioner only)."""
    return movie_service.transition_movie(db, group_id, movie_id, payload.status, user.user_id)


@router.post("/{group_id}/movies/{movie_id}/rate", response_model=RatingOut)
def rate_movie(
    group_id: str,
    movie_id: str,
    payload: RatingCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create or replace the caller's rating."""
    return rating_service.submit_rating(db, group_id, movie_id, user, payload.rating, payload.review)


@router.delete("/{group_id}/movies/{movie_id}/rate")
def delete_rating(
    group_id: str,
    movie_id: str,
    rating_id: str = Query(..., description="ID of the rating to delete"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Delete the caller's own rating."""
    rating_service.delete_rating(db, rating_id, user.user_id, movie_id=movie_id)
    return {"success": True}

