"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./movie_club.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    TMDB_API_KEY: str = ""
    TMDB_API_BASE_URL: str = "https://api.themoviedb.org/3"
    TMDB_IMAGE_BASE_URL: str = "https://image.tmdb.org/t/p"
    TMDB_TIMEOUT_SECONDS: float = 5.0
    DEFAULT_REGION: str = "US"

    # LOCKED picks accept ratings before they are published when enabled
    ALLOW_RATING_WHILE_LOCKED: bool = True
    JOIN_CODE_LENGTH: int = 8

    class Config:
        env_file = ".env"


settings = Settings()
