"""Pytest fixtures: throwaway SQLite database and fakes for external collaborators."""
import random
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from movie_club.database import Base, get_db
from movie_club.dependencies import get_metadata_provider, get_rng
from movie_club.main import app

# Import all models so they register with Base.metadata
from movie_club.models.user import User                              # noqa: F401
from movie_club.models.group import Group, GroupMember, GroupSettings  # noqa: F401
from movie_club.models.movie import Movie                            # noqa: F401
from movie_club.models.rating import Rating                          # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


class FakeMetadataProvider:
    """Stands in for TMDBClient; records lookups and can be told to fail."""

    def __init__(self):
        self.providers = {"link": "https://example.test/watch", "stream": [{"provider_name": "Streamy"}], "rent": [], "buy": []}
        self.fail = False
        self.calls = []

    def search_titles(self, query, page=1):
        return [{
            "external_id": 603,
            "title": "The Matrix",
            "overview": "A hacker learns the truth.",
            "poster_ref": "/matrix.jpg",
            "backdrop_ref": "/matrix-bg.jpg",
            "release_date": "1999-03-31",
            "vote_average": 8.2,
        }]

    def watch_providers(self, external_id, region="US"):
        self.calls.append((external_id, region))
        if self.fail:
            raise TimeoutError("provider timed out")
        return self.providers


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def metadata_provider():
    return FakeMetadataProvider()


@pytest.fixture(scope="function")
def client(db_engine, metadata_provider):
    """FastAPI TestClient with database, metadata provider and randomness overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_metadata_provider] = lambda: metadata_provider
    app.dependency_overrides[get_rng] = lambda: random.Random(1234)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: drive the API the way a front end would
# ---------------------------------------------------------------------------
def auth(user: dict) -> dict:
    """Identity header for a user dict returned by create_test_user."""
    return {"X-User-Id": user["user_id"]}


def create_test_user(client: TestClient, name: str = "Test User") -> dict:
    """Helper: POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={"display_name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_group(client: TestClient, creator: dict, name: str = "Test Group") -> dict:
    """Helper: POST /api/groups and return response JSON."""
    resp = client.post("/api/groups/", json={"name": name}, headers=auth(creator))
    assert resp.status_code == 201, resp.text
    return resp.json()


def join_test_group(client: TestClient, user: dict, group: dict) -> dict:
    resp = client.post("/api/groups/join", json={"join_code": group["join_code"]}, headers=auth(user))
    assert resp.status_code == 200, resp.text
    return resp.json()


def get_group_detail(client: TestClient, user: dict, group: dict) -> dict:
    resp = client.get(f"/api/groups/{group['group_id']}", headers=auth(user))
    assert resp.status_code == 200, resp.text
    return resp.json()


def setup_club(client: TestClient, size: int = 3):
    """Commissioner plus size-1 members; returns (users in rotation order, group)."""
    users = [create_test_user(client, name=f"User {i}") for i in range(size)]
    group = create_test_group(client, users[0])
    for user in users[1:]:
        join_test_group(client, user, group)
    return users, group


def member_for(detail: dict, user: dict) -> dict:
    return next(m for m in detail["members"] if m["user_id"] == user["user_id"])


def select_test_movie(client: TestClient, user: dict, group: dict, tmdb_id: int = 603, title: str = "The Matrix"):
    return client.post(
        f"/api/groups/{group['group_id']}/select-movie",
        json={"tmdb_id": tmdb_id, "title": title, "overview": "A hacker learns the truth.", "vote_average": 8.2},
        headers=auth(user),
    )
