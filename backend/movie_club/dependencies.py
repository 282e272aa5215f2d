"""Request-scoped collaborators: identity, metadata provider and randomness."""
import random
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from movie_club.config import settings
from movie_club.database import get_db
from movie_club.errors import UnauthenticatedError
from movie_club.models.user import User
from movie_club.services.tmdb_client import TMDBClient


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller from the ``X-User-Id`` header."""
    if not x_user_id:
        raise UnauthenticatedError()
    user = db.query(User).filter(User.user_id == x_user_id).first()
    if not user:
        raise UnauthenticatedError()
    return user


@lru_cache
def get_metadata_provider() -> TMDBClient:
    return TMDBClient(
        api_key=settings.TMDB_API_KEY,
        base_url=settings.TMDB_API_BASE_URL,
        image_base_url=settings.TMDB_IMAGE_BASE_URL,
        timeout=settings.TMDB_TIMEOUT_SECONDS,
    )


def get_rng() -> random.Random:
    """Random source for shuffles; tests override it with a seeded one."""
    return random.SystemRandom()
