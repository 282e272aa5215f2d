"""Movie metadata search routes backed by TMDB."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from movie_club.config import settings
from movie_club.dependencies import get_current_user, get_metadata_provider
from movie_club.models.user import User
from movie_club.services.tmdb_client import TMDBClient, TMDBError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/search")
def search_movies(
    query: str = Query(..., min_length=1),
    provider: TMDBClient = Depends(get_metadata_provider),
    _: User = Depends(get_current_user),
):
    """Search TMDB by title."""
    try:
        results = provider.search_titles(query)
    except TMDBError:
        logger.exception("TMDB search failed for %r", query)
        raise HTTPException(status_code=502, detail="Failed to search movies")
    return {"results": results}


@router.get("/watch-providers/{tmdb_id}")
def watch_providers(
    tmdb_id: int,
    region: Optional[str] = Query(None),
    provider: TMDBClient = Depends(get_metadata_provider),
    _: User = Depends(get_current_user),
):
    """Where to stream, rent or buy a title; ``providers`` is null when unknown."""
    return {"providers": provider.watch_providers(tmdb_id, region or settings.DEFAULT_REGION)}
