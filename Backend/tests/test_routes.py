import requests

from routes import movies as movies_routes
from routes import site_stats as site_stats_routes


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._payload

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")


def seed_catalog(db):
    db.data["quizzes"] = {
        "q1": {
            "title": "Space Week",
            "difficulty": 2,
            "questions": [
                {"movie_id": 11, "plot_index": 1},
                {"movie_id": 12, "plot_index": 3},
                {"movie_id": 11, "plot_index": 5},
            ],
        },
        "q2": {"title": "Empty", "difficulty": 1, "questions": []},
    }
    db.data["movies"] = {
        "11": {"id": 11, "title": "Star Wars"},
        "12": {"id": 12, "title": "Finding Nemo"},
    }


def test_health(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.get_json()["ok"] is True


def test_list_quizzes(client, fake_db):
    seed_catalog(fake_db)

    resp = client.get("/api/quizzes")

    assert resp.status_code == 200
    quizzes = {q["id"]: q for q in resp.get_json()["quizzes"]}
    assert set(quizzes) == {"q1", "q2"}
    assert quizzes["q1"]["title"] == "Space Week"


def test_quiz_detail_includes_its_movies(client, fake_db):
    seed_catalog(fake_db)

    resp = client.get("/api/quizzes/q1")

    assert resp.status_code == 200
    quiz = resp.get_json()["quiz"]
    assert quiz["id"] == "q1"
    assert len(quiz["questions"]) == 3
    assert quiz["movies"] == {
        "11": {"id": 11, "title": "Star Wars"},
        "12": {"id": 12, "title": "Finding Nemo"},
    }


def test_quiz_detail_missing(client, fake_db):
    resp = client.get("/api/quizzes/nope")

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Quiz not found"}


def test_user_stats_require_user_id(client):
    assert client.get("/api/user/stats").status_code == 401
    assert client.post("/api/user/stats", json={"score": 1}).status_code == 401


def test_user_stats_default_when_missing(client, fake_db):
    resp = client.get("/api/user/stats", headers={"X-User-Id": "u1"})

    assert resp.status_code == 200
    assert resp.get_json() == {"score": 0, "accuracy": 0, "totalAttempts": 0, "totalQuestionsAnswered": 0}


def test_user_stats_post_merges(client, fake_db):
    fake_db.data["userscores"] = {"u1_global": {"userId": "u1", "type": "global", "score": 10, "totalAttempts": 4}}
    headers = {"X-User-Id": "u1"}

    resp = client.post("/api/user/stats", json={"score": 30, "userId": "someone-else"}, headers=headers)

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}
    assert fake_db.data["userscores"]["u1_global"] == {
        "userId": "u1", "type": "global", "score": 30, "totalAttempts": 4,
    }
    assert client.get("/api/user/stats", headers=headers).get_json()["score"] == 30


def test_user_stats_post_rejects_non_object(client, fake_db):
    resp = client.post("/api/user/stats", json=[1, 2], headers={"X-User-Id": "u1"})

    assert resp.status_code == 400
    assert "userscores" not in fake_db.data


def test_random_movie_proxies_function(client, monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse({"id": 11, "title": "Star Wars"})

    monkeypatch.setattr(movies_routes.requests, "get", fake_get)

    resp = client.get("/api/movies/random")

    assert resp.status_code == 200
    assert resp.get_json() == {"id": 11, "title": "Star Wars"}
    assert len(calls) == 1


def test_random_movie_passes_upstream_status(client, monkeypatch):
    monkeypatch.setattr(movies_routes.requests, "get", lambda url, timeout: FakeResponse({}, 404))

    resp = client.get("/api/movies/random")

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Failed to fetch random movie"}


def test_random_movie_network_failure(client, monkeypatch):
    def boom(url, timeout):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(movies_routes.requests, "get", boom)

    assert client.get("/api/movies/random").status_code == 500


def test_site_stats_proxy(client, monkeypatch):
    seen = {}

    def fake_get(url, params, headers, timeout):
        seen.update(url=url, params=params, headers=headers)
        return FakeResponse({"pageviews": {"value": 1200}, "visitors": {"value": 300}})

    monkeypatch.setattr(site_stats_routes.requests, "get", fake_get)

    resp = client.get("/api/stats")

    assert resp.status_code == 200
    assert resp.get_json()["visitors"] == {"value": 300}
    assert seen["url"].endswith("/stats")
    assert seen["params"]["startAt"] == 0
    assert seen["params"]["endAt"] > 0
    assert "x-umami-api-key" in seen["headers"]


def test_site_stats_failure(client, monkeypatch):
    monkeypatch.setattr(
        site_stats_routes.requests, "get", lambda url, params, headers, timeout: FakeResponse({}, 503)
    )

    resp = client.get("/api/stats")

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to fetch stats"}


def test_share_meta(client):
    resp = client.get("/quizzes/q1/share?score=120&accuracy=80&title=Space%20Week")

    assert resp.status_code == 200
    assert resp.get_json() == {
        "score": "120", "accuracy": "80", "title": "Space Week", "quizId": "q1", "isCrawler": True,
    }


def test_share_link_redirects_people(client):
    resp = client.get("/quizzes/q1/share/Space%20Week/120/80", headers={"User-Agent": "Mozilla/5.0"})

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/quizzes")


def test_share_link_serves_crawlers(client):
    resp = client.get("/quizzes/q1/share/Space%20Week/120/80", headers={"User-Agent": "Twitterbot/1.0"})

    assert resp.status_code == 200
    assert resp.get_json() == {}


def test_unknown_api_path_is_json_404(client):
    resp = client.get("/api/nothing-here")

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Not found"}
