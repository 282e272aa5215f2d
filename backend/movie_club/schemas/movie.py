"""Pydantic schemas for Movies and Ratings."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from movie_club.models.movie import MovieStatus


class MovieSelect(BaseModel):
    """Metadata snapshot of the chosen title, as returned by the search endpoint."""

    tmdb_id: int
    title: str = Field(min_length=1)
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: Optional[float] = None
    region: Optional[str] = None


class MovieOut(BaseModel):
    movie_id: str
    group_id: str
    tmdb_id: int
    title: str
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: Optional[float] = None
    watch_providers: Optional[dict[str, Any]] = None
    selected_by_user_id: str
    selected_by_name: str
    status: MovieStatus
    locked_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    rating_reveal_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MovieStatusUpdate(BaseModel):
    status: MovieStatus


class RatingCreate(BaseModel):
    # Passed through untouched; rating_service.validate_rating rejects non-numbers
    rating: Any
    review: Optional[str] = None


class RatingOut(BaseModel):
    rating_id: str
    movie_id: str
    user_id: str
    display_name: str
    rating: float
    review: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MovieDetailOut(BaseModel):
    """A movie behind the reveal gate: ``ratings`` and ``average_rating`` stay null until revealed."""

    movie: MovieOut
    ratings_revealed: bool
    rating_count: int
    my_rating: Optional[RatingOut] = None
    ratings: Optional[list[RatingOut]] = None
    average_rating: Optional[float] = None
