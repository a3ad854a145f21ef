"""TMDB client — catalog search used to prefill new library items.

Handles: movie/TV title search and genre-id resolution, normalised into the
fields a media item is created with.
"""

import httpx
from typing import Optional

from app.services.vocabulary import MediaType, parse_media_type

ANIMATION_GENRE_ID = 16
MAX_RESULTS = 5


class TmdbClient:
    """The Movie Database API v3 client."""

    BASE_URL = "https://api.themoviedb.org/3"
    IMAGE_BASE = "https://image.tmdb.org/t/p"

    def __init__(
        self,
        api_key: str,
        language: str = "en-US",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.language = language
        self.transport = transport
        # Detect auth mode: JWT (v4 bearer) vs plain key (v3 query param)
        self._is_bearer = api_key.startswith("eyJ")

    async def _get(self, path: str, params: dict | None = None) -> dict:
        """Make authenticated GET request to TMDB.

        Supports both v3 (api_key query param) and v4 (Bearer token header).
        """
        all_params = {"language": self.language, **(params or {})}
        headers = {}

        if self._is_bearer:
            headers["Authorization"] = f"Bearer {self.api_key}"
        else:
            all_params["api_key"] = self.api_key

        async with httpx.AsyncClient(timeout=15.0, transport=self.transport) as client:
            resp = await client.get(f"{self.BASE_URL}{path}", params=all_params, headers=headers)
            resp.raise_for_status()
            return resp.json()

    # ── Search ───────────────────────────────────────────────────

    async def search_movie(self, query: str) -> list[dict]:
        """Search for movies by title."""
        data = await self._get("/search/movie", {"query": query})
        return data.get("results", [])

    async def search_tv(self, query: str) -> list[dict]:
        """Search for TV shows by title."""
        data = await self._get("/search/tv", {"query": query})
        return data.get("results", [])

    # ── Genre lists ──────────────────────────────────────────────

    async def get_genres(self, kind: str) -> dict[int, str]:
        """Get {id: name} mapping for "movie" or "tv" genres."""
        data = await self._get(f"/genre/{kind}/list")
        return {g["id"]: g["name"] for g in data.get("genres", [])}

    # ── Library prefill ──────────────────────────────────────────

    async def search(self, query: str, media_type: str) -> list[dict]:
        """Search the catalog for a library type; text media have no TMDB entries."""
        known = parse_media_type(media_type)
        if known is MediaType.MOVIES:
            kind, results = "movie", await self.search_movie(query)
        elif known in (MediaType.TV_SHOWS, MediaType.ANIME):
            kind, results = "tv", await self.search_tv(query)
            if known is MediaType.ANIME:
                animated = [r for r in results if ANIMATION_GENRE_ID in r.get("genre_ids", [])]
                results = animated or results
        else:
            return []

        results = results[:MAX_RESULTS]
        if not results:
            return []
        genres = await self.get_genres(kind)
        return [self._normalize(r, kind, known, genres) for r in results]

    def _normalize(self, data: dict, kind: str, media_type: MediaType, genres: dict[int, str]) -> dict:
        """Normalize a TMDB search hit into media item fields."""
        released = data.get("release_date") or data.get("first_air_date") or ""
        poster = data.get("poster_path")
        return {
            "title": data.get("title") or data.get("name", ""),
            "type": media_type.value,
            "image_url": f"{self.IMAGE_BASE}/w500{poster}" if poster else None,
            "description": data.get("overview") or None,
            "release_year": int(released[:4]) if released[:4].isdigit() else None,
            "genre": ", ".join(genres[g] for g in data.get("genre_ids", []) if g in genres),
            "external_id": f"tmdb:{kind}:{data['id']}",
        }
