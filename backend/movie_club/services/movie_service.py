"""Movie lifecycle: selection, status transitions and the reveal gate.

    LOCKED ──► PUBLISHED ──► RATING_PERIOD ──► COMPLETED
       │           └────────────────────────────▲
       └──────────────► RATING_PERIOD

At most one movie per group is active (LOCKED, PUBLISHED or RATING_PERIOD).
Selection checks this under the settings row lock, and a partial unique
index on ``movies`` backs it up if two requests still race.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from movie_club.errors import (
    AlreadySelectedError,
    InvalidTransitionError,
    NotFoundError,
    NotYourTurnError,
)
from movie_club.models.group import GroupSettings
from movie_club.models.movie import ACTIVE_STATUSES, Movie, MovieStatus
from movie_club.models.user import User
from movie_club.services import rotation_service
from movie_club.services.access import (
    get_settings,
    list_members,
    lock_settings,
    require_commissioner,
    require_member,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[MovieStatus, frozenset[MovieStatus]] = {
    MovieStatus.locked: frozenset({MovieStatus.published, MovieStatus.rating_period}),
    MovieStatus.published: frozenset({MovieStatus.rating_period, MovieStatus.completed}),
    MovieStatus.rating_period: frozenset({MovieStatus.completed}),
    MovieStatus.completed: frozenset(),
}


class WatchProviderSource(Protocol):
    def watch_providers(self, external_id: int, region: str = "US") -> Optional[dict[str, Any]]:
        ...


def is_active(movie: Movie) -> bool:
    return movie.status in ACTIVE_STATUSES


def is_rateable(movie: Movie, allow_locked: bool = True) -> bool:
    """Whether ratings may be submitted for the movie right now."""
    if movie.status in (MovieStatus.published, MovieStatus.rating_period):
        return True
    return allow_locked and movie.status == MovieStatus.locked


def ratings_revealed(movie: Movie) -> bool:
    """Individual ratings and authors stay hidden until COMPLETED."""
    return movie.status == MovieStatus.completed


def get_movie(db: Session, group_id: str, movie_id: str) -> Movie:
    movie = db.query(Movie).filter(Movie.movie_id == movie_id, Movie.group_id == group_id).first()
    if not movie:
        raise NotFoundError("Movie not found")
    return movie


def get_active_movie(db: Session, group_id: str) -> Optional[Movie]:
    return (
        db.query(Movie)
        .filter(Movie.group_id == group_id, Movie.status.in_(ACTIVE_STATUSES))
        .first()
    )


def list_movies(db: Session, group_id: str) -> list[Movie]:
    return (
        db.query(Movie)
        .filter(Movie.group_id == group_id)
        .order_by(Movie.locked_at.desc(), Movie.created_at.desc())
        .all()
    )


def _fetch_watch_providers(
    provider: Optional[WatchProviderSource], tmdb_id: int, region: str
) -> Optional[dict[str, Any]]:
    if provider is None:
        return None
    try:
        return provider.watch_providers(tmdb_id, region)
    except Exception:
        # Provider data is optional; a broken lookup must not block the pick
        logger.warning("Watch provider lookup failed for tmdb %s", tmdb_id, exc_info=True)
        return None


def _check_can_select(db: Session, group_id: str, user: User, settings: GroupSettings) -> None:
    picker = rotation_service.resolve_current_picker(list_members(db, group_id), settings)
    if picker is None or picker.user_id != user.user_id:
        raise NotYourTurnError()
    if get_active_movie(db, group_id):
        raise AlreadySelectedError()


def select_movie(
    db: Session,
    group_id: str,
    user: User,
    metadata: dict[str, Any],
    provider: Optional[WatchProviderSource] = None,
    region: str = "US",
) -> Movie:
    """Lock in the current picker's movie for this period.

    The watch-provider lookup is network I/O, so it runs before the settings
    row is locked; turn and active-movie checks are repeated under the lock.
    """
    require_member(db, group_id, user.user_id)
    _check_can_select(db, group_id, user, get_settings(db, group_id))

    watch_providers = _fetch_watch_providers(provider, metadata["tmdb_id"], region)

    # Drop what the unlocked read cached so the checks below see committed state
    db.expire_all()
    settings = lock_settings(db, group_id)
    _check_can_select(db, group_id, user, settings)

    movie = Movie(
        group_id=group_id,
        tmdb_id=metadata["tmdb_id"],
        title=metadata["title"],
        overview=metadata.get("overview"),
        poster_path=metadata.get("poster_path"),
        backdrop_path=metadata.get("backdrop_path"),
        release_date=metadata.get("release_date"),
        vote_average=metadata.get("vote_average"),
        watch_providers=watch_providers,
        selected_by_user_id=user.user_id,
        selected_by_name=user.display_name or "Unknown",
        status=MovieStatus.locked,
        locked_at=datetime.now(timezone.utc),
    )
    db.add(movie)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadySelectedError()
    db.refresh(movie)
    logger.info("Group %s: %s locked in '%s' (tmdb %s)", group_id, user.user_id, movie.title, movie.tmdb_id)
    return movie


def transition_movie(db: Session, group_id: str, movie_id: str, target: MovieStatus, actor_user_id: str) -> Movie:
    """Move a movie along its lifecycle.

    Completing a movie opens the reveal gate and passes the turn on.
    """
    require_commissioner(db, group_id, actor_user_id, "change movie status")
    movie = get_movie(db, group_id, movie_id)

    if target not in ALLOWED_TRANSITIONS[movie.status]:
        raise InvalidTransitionError(f"Cannot move a {movie.status.value} movie to {target.value}")

    now = datetime.now(timezone.utc)
    previous = movie.status
    movie.status = target
    if target in (MovieStatus.published, MovieStatus.rating_period) and movie.published_at is None:
        movie.published_at = now
    if target == MovieStatus.completed:
        movie.rating_reveal_at = movie.rating_reveal_at or now
        rotation_service.advance_turn(db, group_id)

    db.commit()
    db.refresh(movie)
    logger.info("Movie %s in group %s: %s -> %s", movie_id, group_id, previous.value, target.value)
    return movie

