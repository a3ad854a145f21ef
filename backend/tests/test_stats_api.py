API = "/api/v1"


def _add(client, title, **body):
    body.setdefault("type", "Anime")
    return client.post(f"{API}/media", json={"title": title, **body}).json()


def test_stats_snapshot(client):
    _add(client, "a", status="Watched", genre="Action, Drama")
    _add(client, "b", status="In Progress", genre="Action")
    _add(client, "c", type="Manhwa", status="Reading", genre="")

    data = client.get(f"{API}/stats").json()
    assert data["total"] == 3
    assert data["by_status"] == {"Watched": 1, "In Progress": 1, "Reading": 1}
    assert data["by_type"]["Anime"]["completed"] == 1
    assert data["in_progress_count"] == 2
    assert data["top_genres"] == [{"name": "Action", "count": 2}, {"name": "Drama", "count": 1}]
    assert data["completion_rate"] == 33
    assert len(data["recently_added"]) == 3


def test_user_stats_counters(client):
    _add(client, "a", status="Dropped")
    data = client.get(f"{API}/stats/user").json()
    assert data["total_items"] == 1
    assert data["dropped_items"] == 1
    assert data["points"] == 0


def test_achievements_unlock_through_api(client):
    unlocked = []
    for n in range(10):
        unlocked += _add(client, f"item {n}")["achievements"]
    assert [a["type"] for a in unlocked] == ["collector_10"]
    assert unlocked[0]["metadata"] == {"count": 10}

    listed = client.get(f"{API}/achievements").json()
    assert listed["total"] == 1
    assert listed["achievements"][0]["title"] == "Getting Started"

    assert client.post(f"{API}/achievements/check").json() == {"unlocked": []}

    progress = client.get(f"{API}/achievements/progress").json()["achievements"]
    assert [p["unlocked"] for p in progress] == [True, False, False, False]


def test_daily_reward_and_points(client):
    first = client.post(f"{API}/rewards/daily").json()
    assert first["claimed"] is True
    assert first["points_awarded"] == 20
    assert first["label"] == "Day 1/7"

    second = client.post(f"{API}/rewards/daily").json()
    assert second["claimed"] is False
    assert second["total_points"] == 20

    points = client.get(f"{API}/rewards/points").json()
    assert points["points"] == 20
    assert points["current_streak"] == 1


def test_leaderboard(client):
    client.post(f"{API}/rewards/daily", headers={"X-User-Id": "bob"})
    client.patch(f"{API}/users/me/nickname", json={"nickname": "Bobby"}, headers={"X-User-Id": "bob"})

    board = client.get(f"{API}/leaderboard").json()["leaderboard"]
    assert board[0] == {
        "rank": 1, "user_id": "bob", "display_name": "Bobby", "points": 20, "current_streak": 1,
    }


def test_profile(client):
    resp = client.patch(f"{API}/users/me/nickname", json={"nickname": "Reader"})
    assert resp.json()["display_name"] == "Reader"

    me = client.get(f"{API}/users/me").json()
    assert me["nickname"] == "Reader"
    assert me["stats"]["points"] == 0


def test_health(client):
    data = client.get(f"{API}/health").json()
    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"
