"""Tests for movie selection and the movie lifecycle."""
import pytest
from sqlalchemy.exc import IntegrityError

from movie_club.models.movie import Movie, MovieStatus
from movie_club.services import movie_service
from tests.conftest import auth, create_test_user, get_group_detail, member_for, select_test_movie, setup_club


def _set_status(client, user, group, movie, status):
    return client.post(
        f"/api/groups/{group['group_id']}/movies/{movie['movie_id']}/status",
        json={"status": status},
        headers=auth(user),
    )


class TestSelectMovie:

    def test_current_picker_locks_movie_then_second_pick_conflicts(self, client):
        users, group = setup_club(client, size=3)

        resp = select_test_movie(client, users[0], group)
        assert resp.status_code == 201, resp.text
        movie = resp.json()
        assert movie["status"] == "LOCKED"
        assert movie["locked_at"] is not None
        assert movie["selected_by_user_id"] == users[0]["user_id"]
        assert movie["selected_by_name"] == "User 0"

        # Hand the turn to order 1; the active pick still blocks a new one
        client.post(f"/api/groups/{group['group_id']}/advance", headers=auth(users[0]))
        resp = select_test_movie(client, users[1], group, tmdb_id=13, title="Forrest Gump")
        assert resp.status_code == 409
        assert resp.json()["detail"] == "A movie has already been selected for this period"

    def test_not_your_turn(self, client):
        users, group = setup_club(client, size=3)
        resp = select_test_movie(client, users[1], group)
        assert resp.status_code == 403
        assert resp.json()["detail"] == "It's not your turn to select a movie"

    def test_non_member_cannot_select(self, client):
        _, group = setup_club(client, size=2)
        outsider = create_test_user(client, name="Outsider")
        resp = select_test_movie(client, outsider, group)
        assert resp.status_code == 403
        assert resp.json()["detail"] == "You are not a member of this group"

    def test_skipped_picker_cannot_select(self, client):
        users, group = setup_club(client, size=3)
        first = member_for(get_group_detail(client, users[0], group), users[0])
        client.patch(
            f"/api/groups/{group['group_id']}/members/{first['member_id']}/skip",
            json={"skip": True},
            headers=auth(users[0]),
        )
        assert select_test_movie(client, users[0], group).status_code == 403
        assert select_test_movie(client, users[1], group).status_code == 201

    def test_watch_providers_snapshot_uses_default_region(self, client, metadata_provider):
        users, group = setup_club(client, size=1)
        movie = select_test_movie(client, users[0], group).json()
        assert movie["watch_providers"]["stream"][0]["provider_name"] == "Streamy"
        assert metadata_provider.calls == [(603, "US")]

    def test_provider_failure_does_not_block_selection(self, client, metadata_provider):
        metadata_provider.fail = True
        users, group = setup_club(client, size=1)
        resp = select_test_movie(client, users[0], group)
        assert resp.status_code == 201
        assert resp.json()["watch_providers"] is None

    def test_provider_lookup_runs_before_settings_lock(self, client, metadata_provider, monkeypatch):
        users, group = setup_club(client, size=1)
        events = []
        real_lock = movie_service.lock_settings
        real_lookup = metadata_provider.watch_providers

        def recording_lock(db, group_id):
            events.append("lock")
            return real_lock(db, group_id)

        def recording_lookup(external_id, region="US"):
            events.append("lookup")
            return real_lookup(external_id, region)

        monkeypatch.setattr(movie_service, "lock_settings", recording_lock)
        monkeypatch.setattr(metadata_provider, "watch_providers", recording_lookup)

        assert select_test_movie(client, users[0], group).status_code == 201
        assert events == ["lookup", "lock"]

    def test_no_provider_lookup_when_not_your_turn(self, client, metadata_provider):
        users, group = setup_club(client, size=2)
        assert select_test_movie(client, users[1], group).status_code == 403
        select_test_movie(client, users[0], group)
        client.post(f"/api/groups/{group['group_id']}/advance", headers=auth(users[0]))
        assert select_test_movie(client, users[1], group).status_code == 409
        assert metadata_provider.calls == [(603, "US")]

    def test_region_override(self, client, metadata_provider):
        users, group = setup_club(client, size=1)
        resp = client.post(
            f"/api/groups/{group['group_id']}/select-movie",
            json={"tmdb_id": 603, "title": "The Matrix", "region": "GB"},
            headers=auth(users[0]),
        )
        assert resp.status_code == 201
        assert metadata_provider.calls == [(603, "GB")]

    def test_active_movie_shown_on_group(self, client):
        users, group = setup_club(client, size=2)
        movie = select_test_movie(client, users[0], group).json()
        detail = get_group_detail(client, users[1], group)
        assert detail["active_movie"]["movie_id"] == movie["movie_id"]


class TestLifecycle:

    def test_full_lifecycle_advances_turn(self, client):
        users, group = setup_club(client, size=3)
        movie = select_test_movie(client, users[0], group).json()

        resp = _set_status(client, users[0], group, movie, "PUBLISHED")
        assert resp.status_code == 200
        assert resp.json()["published_at"] is not None

        assert _set_status(client, users[0], group, movie, "RATING_PERIOD").status_code == 200
        resp = _set_status(client, users[0], group, movie, "COMPLETED")
        assert resp.status_code == 200
        assert resp.json()["rating_reveal_at"] is not None

        detail = get_group_detail(client, users[0], group)
        assert detail["active_movie"] is None
        assert detail["current_picker"]["user_id"] == users[1]["user_id"]

        # Next picker can now select
        assert select_test_movie(client, users[1], group, tmdb_id=13, title="Forrest Gump").status_code == 201

    def test_locked_can_jump_to_rating_period(self, client):
        users, group = setup_club(client, size=1)
        movie = select_test_movie(client, users[0], group).json()
        assert _set_status(client, users[0], group, movie, "RATING_PERIOD").status_code == 200

    def test_illegal_transitions(self, client):
        users, group = setup_club(client, size=1)
        movie = select_test_movie(client, users[0], group).json()
        assert _set_status(client, users[0], group, movie, "COMPLETED").status_code == 400
        assert _set_status(client, users[0], group, movie, "LOCKED").status_code == 400

        _set_status(client, users[0], group, movie, "PUBLISHED")
        _set_status(client, users[0], group, movie, "COMPLETED")
        assert _set_status(client, users[0], group, movie, "PUBLISHED").status_code == 400

    def test_member_cannot_change_status(self, client):
        users, group = setup_club(client, size=2)
        movie = select_test_movie(client, users[0], group).json()
        assert _set_status(client, users[1], group, movie, "PUBLISHED").status_code == 403

    def test_list_movies_newest_first(self, client):
        users, group = setup_club(client, size=2)
        first = select_test_movie(client, users[0], group).json()
        _set_status(client, users[0], group, first, "PUBLISHED")
        _set_status(client, users[0], group, first, "COMPLETED")
        second = select_test_movie(client, users[1], group, tmdb_id=13, title="Forrest Gump").json()

        resp = client.get(f"/api/groups/{group['group_id']}/movies", headers=auth(users[1]))
        assert resp.status_code == 200
        assert [m["movie_id"] for m in resp.json()] == [second["movie_id"], first["movie_id"]]

    def test_movie_from_other_group_not_found(self, client):
        users, group = setup_club(client, size=1)
        other_users, other_group = setup_club(client, size=1)
        movie = select_test_movie(client, other_users[0], other_group).json()
        resp = client.get(f"/api/groups/{group['group_id']}/movies/{movie['movie_id']}", headers=auth(users[0]))
        assert resp.status_code == 404


class TestActiveMovieInvariant:

    def test_at_most_one_active_movie_per_group(self, client, db):
        users, group = setup_club(client, size=3)
        for round_no in range(3):
            created = []
            for i, user in enumerate(users):
                resp = select_test_movie(client, user, group, tmdb_id=100 * round_no + i, title=f"Pick {round_no}-{i}")
                if resp.status_code == 201:
                    created.append(resp.json())
                active = (
                    db.query(Movie)
                    .filter(Movie.group_id == group["group_id"], Movie.status != MovieStatus.completed)
                    .count()
                )
                assert active <= 1
            assert len(created) == 1
            _set_status(client, users[0], group, created[0], "PUBLISHED")
            _set_status(client, users[0], group, created[0], "COMPLETED")

    def test_partial_unique_index_rejects_second_active_row(self, client, db):
        users, group = setup_club(client, size=1)
        select_test_movie(client, users[0], group)
        db.add(Movie(
            group_id=group["group_id"],
            tmdb_id=1,
            title="Sneaky",
            selected_by_user_id=users[0]["user_id"],
            selected_by_name="User 0",
            status=MovieStatus.locked,
        ))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
