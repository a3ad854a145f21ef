API = "/api/v1"


def _create(client, **body):
    body.setdefault("title", "Frieren")
    body.setdefault("type", "Anime")
    resp = client.post(f"{API}/media", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_returns_item_and_achievements(client):
    data = _create(client, season=1, episode=1, total_episodes=28, genre="Fantasy, Adventure")
    item = data["item"]
    assert item["progress"] == "S1E1"
    assert item["progress_percent"] == 4
    assert item["status"] == "To Watch"
    assert item["is_archived"] is False
    assert data["achievements"] == []


def test_create_requires_title_and_type(client):
    assert client.post(f"{API}/media", json={"type": "Anime"}).status_code == 422
    assert client.post(f"{API}/media", json={"title": "x"}).status_code == 422
    assert client.post(f"{API}/media", json={"title": "x", "type": "Anime", "episode": -1}).status_code == 422


def test_list_and_status_filter(client):
    _create(client, title="A")
    _create(client, title="B", status="In Progress")

    resp = client.get(f"{API}/media")
    assert resp.json()["total"] == 2

    resp = client.get(f"{API}/media", params={"status": "inprogress"})
    assert [i["title"] for i in resp.json()["items"]] == ["B"]

    resp = client.get(f"{API}/media/in-progress")
    assert resp.json()["total"] == 1


def test_get_update_delete(client):
    item_id = _create(client)["item"]["id"]

    assert client.get(f"{API}/media/{item_id}").json()["title"] == "Frieren"

    resp = client.patch(f"{API}/media/{item_id}", json={"progress": "S2E3", "rating": 9})
    assert resp.status_code == 200
    assert resp.json()["item"]["progress"] == "S2E3"
    assert resp.json()["item"]["rating"] == 9

    assert client.delete(f"{API}/media/{item_id}").status_code == 204
    assert client.get(f"{API}/media/{item_id}").status_code == 404


def test_missing_item_is_404(client):
    assert client.get(f"{API}/media/does-not-exist").status_code == 404
    assert client.post(f"{API}/media/does-not-exist/increment").status_code == 404


def test_increment_set_and_complete(client):
    item_id = _create(client, type="Manhwa", chapter=10)["item"]["id"]

    resp = client.post(f"{API}/media/{item_id}/increment")
    assert resp.json()["item"]["progress"] == "Ch11"

    resp = client.post(f"{API}/media/{item_id}/increment", json={"amount": 4})
    assert resp.json()["item"]["progress"] == "Ch15"

    resp = client.put(f"{API}/media/{item_id}/progress", json={"value": 3})
    assert resp.json()["item"]["progress"] == "Ch3"

    resp = client.post(f"{API}/media/{item_id}/complete")
    assert resp.json()["item"]["status"] == "Read"
    assert resp.json()["item"]["date_completed"] is not None


def test_quick_update(client):
    _create(client, title="Attack on Titan", season=3, episode=1)

    resp = client.post(f"{API}/media/quick-update", json={"command": "aot 7"})
    assert resp.status_code == 200
    assert resp.json()["item"]["progress"] == "S3E7"

    assert client.post(f"{API}/media/quick-update", json={"command": "what"}).status_code == 400
    assert client.post(f"{API}/media/quick-update", json={"command": "+1"}).status_code == 400
    assert client.post(f"{API}/media/quick-update", json={"command": "qqqq 2"}).status_code == 404


def test_search_recent_random(client):
    _create(client, title="Vinland Saga")
    _create(client, title="Mushishi")

    assert client.get(f"{API}/media/search").status_code == 400
    assert client.get(f"{API}/media/search", params={"q": "  "}).status_code == 400
    resp = client.get(f"{API}/media/search", params={"q": "vinland"})
    assert [i["title"] for i in resp.json()["items"]] == ["Vinland Saga"]

    assert client.get(f"{API}/media/recent", params={"limit": 1}).json()["total"] == 1
    assert client.get(f"{API}/media/random").json()["title"] in {"Vinland Saga", "Mushishi"}
    assert client.get(f"{API}/media/random", params={"status": "completed"}).status_code == 404


def test_bulk_routes(client):
    ids = [_create(client, title=t)["item"]["id"] for t in ("a", "b", "c")]

    resp = client.post(f"{API}/media/bulk/update", json={"ids": ids[:2], "updates": {"status": "Dropped"}})
    assert resp.json()["updated"] == 2

    resp = client.post(f"{API}/media/bulk/delete", json={"ids": ids})
    assert resp.json() == {"deleted": 3}

    assert client.post(f"{API}/media/bulk/delete", json={"ids": []}).status_code == 422


def test_collections_route(client):
    _create(client, title="airing", status="Watching", season=1, episode=10, total_episodes=12)
    shelves = client.get(f"{API}/media/collections").json()
    assert set(shelves) == {"continue_watching", "almost_done", "dropping_soon", "binge_ready"}
    assert shelves["almost_done"][0]["title"] == "airing"


def test_users_are_isolated_by_header(client):
    _create(client, title="mine")
    resp = client.get(f"{API}/media", headers={"X-User-Id": "someone-else"})
    assert resp.json()["total"] == 0


def test_update_rejects_null_required_fields(client):
    item_id = _create(client, status="Watching")["item"]["id"]

    for field in ("title", "type", "status", "is_archived"):
        resp = client.patch(f"{API}/media/{item_id}", json={field: None})
        assert resp.status_code == 422, field

    resp = client.post(f"{API}/media/bulk/update", json={"ids": [item_id], "updates": {"status": None}})
    assert resp.status_code == 422

    item = client.get(f"{API}/media/{item_id}").json()
    assert (item["title"], item["type"], item["status"]) == ("Frieren", "Anime", "Watching")

    # Nullable fields can still be cleared
    resp = client.patch(f"{API}/media/{item_id}", json={"notes": None, "rating": None})
    assert resp.status_code == 200


def test_integers_bounded_to_column_range(client):
    too_big = 2**31
    item_id = _create(client, type="Manhwa", chapter=1)["item"]["id"]

    assert client.post(f"{API}/media", json={"title": "x", "type": "Anime", "episode": too_big}).status_code == 422
    assert client.patch(f"{API}/media/{item_id}", json={"chapter": too_big}).status_code == 422
    assert client.post(f"{API}/media/{item_id}/increment", json={"amount": too_big}).status_code == 422
    assert client.put(f"{API}/media/{item_id}/progress", json={"value": too_big}).status_code == 422

    resp = client.put(f"{API}/media/{item_id}/progress", json={"value": too_big - 1})
    assert resp.json()["item"]["chapter"] == too_big - 1
