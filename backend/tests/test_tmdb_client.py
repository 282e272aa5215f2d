"""Tests for the TMDB metadata client using a stubbed HTTP session."""
from unittest.mock import Mock

import pytest
import requests

from movie_club.services.tmdb_client import TMDBClient, TMDBError


def _response(payload, status=200):
    resp = Mock()
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    else:
        resp.raise_for_status.return_value = None
    return resp


def _client(session):
    return TMDBClient(api_key="key", base_url="https://tmdb.test/3", timeout=2.5, session=session)


class TestSearchTitles:

    def test_normalizes_results(self):
        session = Mock()
        session.get.return_value = _response({"results": [{
            "id": 603, "title": "The Matrix", "overview": "Neo.", "poster_path": "/p.jpg",
            "backdrop_path": "/b.jpg", "release_date": "1999-03-31", "vote_average": 8.2,
        }]})

        results = _client(session).search_titles("matrix")

        assert results == [{
            "external_id": 603, "title": "The Matrix", "overview": "Neo.", "poster_ref": "/p.jpg",
            "backdrop_ref": "/b.jpg", "release_date": "1999-03-31", "vote_average": 8.2,
        }]
        args, kwargs = session.get.call_args
        assert args[0] == "https://tmdb.test/3/search/movie"
        assert kwargs["params"]["query"] == "matrix"
        assert kwargs["params"]["api_key"] == "key"
        assert kwargs["timeout"] == 2.5

    def test_http_error_raises(self):
        session = Mock()
        session.get.return_value = _response({}, status=500)
        with pytest.raises(TMDBError):
            _client(session).search_titles("matrix")

    def test_missing_api_key(self):
        with pytest.raises(TMDBError):
            TMDBClient(api_key="", session=Mock()).search_titles("matrix")


class TestWatchProviders:

    def test_region_entry(self):
        session = Mock()
        session.get.return_value = _response({"results": {"US": {
            "link": "https://tmdb.test/watch", "flatrate": [{"provider_name": "Netflix"}], "buy": [{"provider_name": "Apple"}],
        }}})
        providers = _client(session).watch_providers(603, "US")
        assert providers == {
            "link": "https://tmdb.test/watch",
            "stream": [{"provider_name": "Netflix"}],
            "rent": [],
            "buy": [{"provider_name": "Apple"}],
        }

    def test_unknown_region_is_none(self):
        session = Mock()
        session.get.return_value = _response({"results": {"US": {"flatrate": []}}})
        assert _client(session).watch_providers(603, "FR") is None

    def test_timeout_degrades_to_none(self):
        session = Mock()
        session.get.side_effect = requests.Timeout("slow")
        assert _client(session).watch_providers(603) is None


class TestImageUrls:

    def test_sizes(self):
        client = TMDBClient(api_key="key", session=Mock())
        assert client.poster_url("/p.jpg") == "https://image.tmdb.org/t/p/w500/p.jpg"
        assert client.backdrop_url("/b.jpg") == "https://image.tmdb.org/t/p/original/b.jpg"
        assert client.poster_url(None) is None
