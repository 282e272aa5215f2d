"""TMDB metadata provider.

Constructed explicitly with its configuration and injected where needed,
so tests can swap in a fake. Every HTTP call is bounded by ``timeout``.
"""
import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)


class TMDBError(Exception):
    """Raised when TMDB cannot answer a search request."""


class TMDBClient:
    """Thin client over the TMDB v3 REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.themoviedb.org/3",
        image_base_url: str = "https://image.tmdb.org/t/p",
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.image_base_url = image_base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        if not self.api_key:
            raise TMDBError("TMDB_API_KEY is not set")
        query = {"api_key": self.api_key}
        query.update(params or {})
        try:
            response = self.session.get(f"{self.base_url}{endpoint}", params=query, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            raise TMDBError(f"TMDB request to {endpoint} failed: {exc}") from exc

    def search_titles(self, query: str, page: int = 1) -> list[dict[str, Any]]:
        """Search movies by title, normalized to the fields a pick snapshots."""
        data = self._get("/search/movie", {"query": query, "page": page, "include_adult": "false"})
        return [
            {
                "external_id": item.get("id"),
                "title": item.get("title", ""),
                "overview": item.get("overview"),
                "poster_ref": item.get("poster_path"),
                "backdrop_ref": item.get("backdrop_path"),
                "release_date": item.get("release_date"),
                "vote_average": item.get("vote_average"),
            }
            for item in data.get("results", [])
        ]

    def watch_providers(self, external_id: int, region: str = "US") -> Optional[dict[str, Any]]:
        """Streaming/rent/buy options for one region, or None if unavailable.

        Never raises: a failed or slow lookup degrades to "no data".
        """
        try:
            data = self._get(f"/movie/{external_id}/watch/providers")
        except TMDBError as exc:
            logger.warning("Watch providers unavailable for %s/%s: %s", external_id, region, exc)
            return None

        entry = (data.get("results") or {}).get(region)
        if not entry:
            return None
        return {
            "link": entry.get("link"),
            "stream": entry.get("flatrate", []),
            "rent": entry.get("rent", []),
            "buy": entry.get("buy", []),
        }

    def image_url(self, path: Optional[str], size: str = "w500") -> Optional[str]:
        if not path:
            return None
        return f"{self.image_base_url}/{size}{path}"

    def poster_url(self, path: Optional[str]) -> Optional[str]:
        return self.image_url(path, "w500")

    def backdrop_url(self, path: Optional[str]) -> Optional[str]:
        return self.image_url(path, "original")
