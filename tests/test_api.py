import pytest

from promptr import api
from promptr.api import ApiRequest, handle
from promptr.config import Config
from promptr.exceptions import StoreError


def _post(path, body=None, **kwargs):
    return ApiRequest("POST", path, body=body, **kwargs)


def _signup(store, email="dev@example.com"):
    response = handle(
        _post("/api/auth/signup", {"email": email, "password": "hunter22"}), store=store
    )
    assert response.status == 200
    return response.body


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_generate_name(store):
    response = handle(
        _post("/api/memories/generate-name", {"text": "Write a blog post about remote work culture"}),
        store=store,
    )
    assert response.status == 200
    assert response.body == {"name": "Write Blog Post About Remote Work"}


@pytest.mark.parametrize("body", [None, {}, {"text": ""}, {"text": 42}])
def test_generate_name_requires_text(store, body):
    response = handle(_post("/api/memories/generate-name", body), store=store)
    assert response.status == 400
    assert response.body == {"error": "Text is required"}


def test_generate_name_unexpected_failure(store, monkeypatch):
    def boom(text):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(api, "generate_title", boom)
    response = handle(_post("/api/memories/generate-name", {"text": "hi"}), store=store)
    assert response.status == 500
    assert response.body == {"error": "Failed to generate name"}


def test_preflight_and_cors_headers(store):
    response = handle(
        ApiRequest("OPTIONS", "/api/memories/generate-name", headers={"Origin": "https://a.example"}),
        store=store,
    )
    assert response.status == 204
    assert response.headers["Access-Control-Allow-Origin"] == "https://a.example"
    assert response.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
    assert response.headers["Access-Control-Allow-Credentials"] == "true"


def test_cors_defaults_and_configured_origin(store):
    response = handle(_post("/api/memories/generate-name", {"text": "hi"}), store=store)
    assert response.headers["Access-Control-Allow-Origin"] == "*"

    config = Config()
    config.update_from_cli("allowed_origin", "https://app.example")
    response = handle(
        _post("/api/memories/generate-name", {"text": "hi"}, headers={"Origin": "https://evil.example"}),
        store=store,
        config=config,
    )
    assert response.headers["Access-Control-Allow-Origin"] == "https://app.example"


def test_routes_without_cors_have_no_cors_headers(store):
    response = handle(_post("/api/waitlist", {"email": "a@b.co"}), store=store)
    assert "Access-Control-Allow-Origin" not in response.headers


def test_unknown_path_and_method(store):
    assert handle(ApiRequest("GET", "/api/nope"), store=store).status == 404
    response = handle(ApiRequest("GET", "/api/memories/generate-name"), store=store)
    assert response.status == 405
    assert handle(ApiRequest("OPTIONS", "/api/waitlist"), store=store).status == 405


def test_memories_require_auth(store):
    for method in ("GET", "POST", "DELETE"):
        response = handle(ApiRequest(method, "/api/memories", body={"text": "x"}), store=store)
        assert response.status == 401
        assert response.body == {"error": "Unauthorized"}


def test_memory_crud(store):
    session = _signup(store)
    headers = _auth(session["token"])

    created = handle(
        _post("/api/memories", {"text": "Hello {{who}}", "tool": "Claude", "variableDefaults": {"who": "world"}}, headers=headers),
        store=store,
    )
    assert created.status == 200
    assert created.body == {"success": True}

    listed = handle(ApiRequest("GET", "/api/memories", headers=headers), store=store)
    assert listed.status == 200
    assert len(listed.body) == 1
    record = listed.body[0]
    assert record["text"] == "Hello {{who}}"
    assert record["user_id"] == session["user_id"]
    assert record["variable_defaults"] == {"who": "world"}

    missing = handle(ApiRequest("DELETE", "/api/memories", headers=headers), store=store)
    assert missing.status == 400
    assert missing.body == {"error": "Memory ID is required"}

    deleted = handle(
        ApiRequest("DELETE", "/api/memories", headers=headers, query={"id": record["id"]}),
        store=store,
    )
    assert deleted.body == {"success": True}
    assert handle(ApiRequest("GET", "/api/memories", headers=headers), store=store).body == []


def test_memories_are_scoped_to_user(store):
    alice = _signup(store, "alice@example.com")
    bob = _signup(store, "bob@example.com")
    handle(_post("/api/memories", {"text": "alice only"}, headers=_auth(alice["token"])), store=store)
    listed = handle(ApiRequest("GET", "/api/memories", headers=_auth(bob["token"])), store=store)
    assert listed.body == []


def test_create_memory_requires_text(store):
    session = _signup(store)
    response = handle(_post("/api/memories", {"tool": "x"}, headers=_auth(session["token"])), store=store)
    assert response.status == 400
    assert response.body == {"error": "Text is required"}


def test_waitlist(store):
    assert handle(_post("/api/waitlist", {"email": "a@b.co"}), store=store).body == {"success": True}

    duplicate = handle(_post("/api/waitlist/", {"email": "A@B.co"}), store=store)
    assert duplicate.status == 200
    assert duplicate.body == {"code": "duplicate", "error": "Already on the waitlist"}

    missing = handle(_post("/api/waitlist", {}), store=store)
    assert missing.status == 400
    assert missing.body == {"error": "Email is required"}

    invalid = handle(_post("/api/waitlist", {"email": "nope"}), store=store)
    assert invalid.status == 400
    assert invalid.body == {"error": "Invalid email"}


def test_page_view(store):
    response = handle(
        _post("/api/analytics/pageview", {"path": "/", "referrer": "https://x.example", "userAgent": "pytest"}),
        store=store,
    )
    assert response.body == {"success": True}

    missing = handle(_post("/api/analytics/pageview", {}), store=store)
    assert missing.status == 400
    assert missing.body == {"error": "Path is required"}


def test_page_view_failure_is_swallowed(store, monkeypatch):
    def fail(*args, **kwargs):
        raise StoreError("disk full")

    monkeypatch.setattr(store, "record_page_view", fail)
    response = handle(_post("/api/analytics/pageview", {"path": "/"}), store=store)
    assert response.status == 200
    assert response.body == {"success": False}


def test_signup_and_login(store):
    session = _signup(store)
    assert session["token"]

    again = handle(
        _post("/api/auth/signup", {"email": "dev@example.com", "password": "hunter22"}), store=store
    )
    assert again.status == 400
    assert again.body == {"error": "User already registered"}

    login = handle(
        _post("/api/auth/login", {"email": "dev@example.com", "password": "hunter22"}), store=store
    )
    assert login.status == 200
    assert login.body["user_id"] == session["user_id"]

    bad = handle(
        _post("/api/auth/login", {"email": "dev@example.com", "password": "nope"}), store=store
    )
    assert bad.status == 401
    assert bad.body == {"error": "Invalid login credentials"}

    short = handle(_post("/api/auth/signup", {"email": "x@example.com", "password": "1"}), store=store)
    assert short.status == 400
