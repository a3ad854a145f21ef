import asyncio

import httpx
import pytest

from app.api.deps import get_tmdb_client
from app.clients.tmdb import TmdbClient
from app.config import settings
from app.main import app

API = "/api/v1"

GENRES = {"genres": [{"id": 16, "name": "Animation"}, {"id": 18, "name": "Drama"}, {"id": 10759, "name": "Action & Adventure"}]}

MOVIES = {"results": [
    {"id": 27205, "title": "Inception", "release_date": "2010-07-15",
     "overview": "A thief who steals secrets.", "poster_path": "/inception.jpg", "genre_ids": [18]},
    {"id": 1, "title": "Untitled", "release_date": "", "overview": "", "poster_path": None, "genre_ids": []},
]}

SHOWS = {"results": [
    {"id": 1429, "name": "Attack on Titan", "first_air_date": "2013-04-07",
     "overview": "Humanity fights titans.", "poster_path": "/aot.jpg", "genre_ids": [16, 10759]},
    {"id": 1399, "name": "Game of Thrones", "first_air_date": "2011-04-17",
     "overview": "", "poster_path": "/got.jpg", "genre_ids": [18]},
]}


def _handler(request: httpx.Request) -> httpx.Response:
    routes = {
        "/3/search/movie": MOVIES,
        "/3/search/tv": SHOWS,
        "/3/genre/movie/list": GENRES,
        "/3/genre/tv/list": GENRES,
    }
    if request.url.path not in routes:
        return httpx.Response(404, json={})
    assert request.url.params["api_key"] == "test-key"
    return httpx.Response(200, json=routes[request.url.path])


def _failing(request: httpx.Request) -> httpx.Response:
    return httpx.Response(500, json={"status_message": "boom"})


@pytest.fixture
def tmdb_client():
    def install(handler):
        client = TmdbClient("test-key", transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_tmdb_client] = lambda: client
        return client
    yield install
    app.dependency_overrides.clear()


def test_movie_search_normalises_results():
    client = TmdbClient("test-key", transport=httpx.MockTransport(_handler))
    results = asyncio.run(client.search("inception", "Movies"))

    assert results[0] == {
        "title": "Inception",
        "type": "Movies",
        "image_url": "https://image.tmdb.org/t/p/w500/inception.jpg",
        "description": "A thief who steals secrets.",
        "release_year": 2010,
        "genre": "Drama",
        "external_id": "tmdb:movie:27205",
    }
    assert results[1]["image_url"] is None
    assert results[1]["release_year"] is None


def test_movie_search_sends_only_query_and_language():
    seen = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _handler(request)

    client = TmdbClient("test-key", transport=httpx.MockTransport(recording))
    asyncio.run(client.search_movie("inception"))
    assert dict(seen[0].url.params) == {"language": "en-US", "query": "inception", "api_key": "test-key"}


def test_anime_search_prefers_animation():
    client = TmdbClient("test-key", transport=httpx.MockTransport(_handler))
    results = asyncio.run(client.search("titan", "Anime"))
    assert [r["title"] for r in results] == ["Attack on Titan"]
    assert results[0]["genre"] == "Animation, Action & Adventure"
    assert results[0]["external_id"] == "tmdb:tv:1429"


def test_text_media_have_no_catalog():
    client = TmdbClient("test-key", transport=httpx.MockTransport(_failing))
    assert asyncio.run(client.search("solo leveling", "Manhwa")) == []


def test_search_endpoint(client, tmdb_client):
    tmdb_client(_handler)
    resp = client.get(f"{API}/search/external", params={"q": "titan", "type": "TV Shows"})
    assert resp.status_code == 200
    assert resp.json()["total"] == 2


def test_search_endpoint_upstream_failure(client, tmdb_client):
    tmdb_client(_failing)
    resp = client.get(f"{API}/search/external", params={"q": "x", "type": "Movies"})
    assert resp.status_code == 502


def test_search_endpoint_unconfigured(client, monkeypatch):
    monkeypatch.setattr(settings, "tmdb_api_key", None)
    resp = client.get(f"{API}/search/external", params={"q": "x"})
    assert resp.status_code == 503
