"""FastAPI application entry point."""
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from movie_club.config import settings
from movie_club.database import Base, engine
from movie_club.errors import MovieClubError

# Import routers
from movie_club.routers import users, groups, movies, tmdb

# Import all models so Base.metadata knows about them
from movie_club.models.user import User                              # noqa: F401
from movie_club.models.group import Group, GroupMember, GroupSettings  # noqa: F401
from movie_club.models.movie import Movie                            # noqa: F401
from movie_club.models.rating import Rating                          # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Movie Club",
    description="Rotating movie picks for a group, with ratings sealed until the reveal",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MovieClubError)
async def movie_club_error_handler(request: Request, exc: MovieClubError):
    logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "An internal error occurred"})


# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(groups.router, prefix="/api/groups", tags=["Groups"])
app.include_router(movies.router, prefix="/api/groups", tags=["Movies"])
app.include_router(tmdb.router, prefix="/api/tmdb", tags=["TMDB"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
