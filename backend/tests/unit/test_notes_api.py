import pytest
from fastapi.testclient import TestClient

from backend.src.api.dependencies import get_db_service
from backend.src.api.main import app
from backend.src.api.middleware import AuthContext, get_auth_context, get_optional_auth_context
from backend.src.models.note import NoteCreate
from backend.src.services import config as config_module
from backend.src.services.auth import AuthService

client = TestClient(app)


@pytest.fixture
def api(db_service):
    app.dependency_overrides[get_db_service] = lambda: db_service
    app.dependency_overrides[get_auth_context] = lambda: AuthContext(
        user_id="alice", token="test", payload=None
    )
    app.dependency_overrides[get_optional_auth_context] = app.dependency_overrides[get_auth_context]
    yield client
    app.dependency_overrides = {}


def _create(api, title, content=""):
    response = api.post("/api/notes", json={"title": title, "content": content})
    assert response.status_code == 201
    return response.json()


def test_note_lifecycle_keeps_links_current(api):
    roadmap = _create(api, "Roadmap")
    plan = _create(api, "Plan", "See [[Roadmap]] and [[Budget]]")
    assert plan["counts"]["links"] == 1

    backlinks = api.get(f"/api/notes/{roadmap['id']}/backlinks").json()
    assert [link["note_id"] for link in backlinks] == [plan["id"]]

    budget = _create(api, "Budget")
    updated = api.patch(
        f"/api/notes/{plan['id']}", json={"content": "See [[Roadmap]] and [[Budget]]"}
    ).json()
    assert updated["counts"]["links"] == 2

    links = api.get(f"/api/notes/{plan['id']}/links").json()
    assert {link["note_id"] for link in links} == {roadmap["id"], budget["id"]}

    assert api.delete(f"/api/notes/{roadmap['id']}").status_code == 204
    assert api.get(f"/api/notes/{roadmap['id']}").status_code == 404
    assert api.get(f"/api/notes/{plan['id']}").json()["counts"]["links"] == 1


def test_missing_note_uses_error_body(api):
    response = api.get("/api/notes/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {
        "error": "note_not_found",
        "message": "Note not found",
        "detail": {"note_id": "does-not-exist"},
    }


def test_validation_errors_are_400(api):
    response = api.post("/api/notes", json={"title": "   "})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_preview_rendered_and_moc_routes(api):
    roadmap = _create(api, "Roadmap", "r" * 250)
    index = _create(api, "Index", "[[Roadmap]] [[Nowhere]]")

    preview = api.get(f"/api/notes/{roadmap['id']}/preview").json()
    assert preview["preview"] == "r" * 200 + "..."
    assert preview["counts"]["backlinks"] == 1

    rendered = api.get(f"/api/notes/{index['id']}/rendered").json()
    assert rendered["broken_links"] == ["Nowhere"]

    assert api.get(f"/api/moc/{index['id']}").status_code == 404
    assert api.put(f"/api/notes/{index['id']}/moc", json={"is_moc": True}).json()["is_moc"]
    assert [note["id"] for note in api.get("/api/moc").json()] == [index["id"]]
    detail = api.get(f"/api/moc/{index['id']}").json()
    assert [link["title"] for link in detail["links"]] == ["Roadmap"]


def test_rebuild_and_search(api):
    _create(api, "Roadmap", "Quarterly goals")
    _create(api, "Plan", "[[Roadmap]]")

    rebuilt = api.post("/api/links/rebuild").json()
    results = api.get("/api/search", params={"q": "QUARTERLY"}).json()

    assert rebuilt == {"status": "completed", "notes_synced": 2, "links_created": 1}
    assert [result["title"] for result in results] == ["Roadmap"]


def test_taxonomy_routes(api):
    category = api.post("/api/categories", json={"name": "Work", "color": "#ef4444"})
    assert category.status_code == 201
    category_id = category.json()["id"]

    duplicate = api.post("/api/categories", json={"name": "work"})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "name_conflict"

    note = api.post("/api/notes", json={"title": "Plan", "category_id": category_id}).json()
    assert note["category"]["name"] == "Work"

    listed = api.get("/api/categories").json()
    assert listed[0]["counts"] == {"notes": 1}

    in_use = api.delete(f"/api/categories/{category_id}")
    assert in_use.status_code == 409

    api.patch(f"/api/notes/{note['id']}", json={"category_id": None})
    assert api.delete(f"/api/categories/{category_id}").status_code == 204

    tag = api.post("/api/tags", json={"name": "Idea"}).json()
    renamed = api.patch(f"/api/tags/{tag['id']}", json={"name": "Big Idea"}).json()
    assert renamed["slug"] == "big-idea"


def test_publish_routes(api):
    note = _create(api, "Hello World", "Published body")

    post = api.post(f"/api/notes/{note['id']}/publish").json()
    assert post["slug"] == "hello-world"

    assert api.get("/api/posts/hello-world").json()["id"] == post["id"]
    assert [p["slug"] for p in api.get("/api/posts").json()] == ["hello-world"]

    assert api.delete(f"/api/posts/{post['id']}").status_code == 204
    assert api.get("/api/posts/hello-world").status_code == 404


def test_post_update_and_owner_listing_routes(api):
    note = _create(api, "Hello World", "Published body")
    post = api.post(
        f"/api/notes/{note['id']}/publish", json={"meta_title": "Hello, readers"}
    ).json()
    assert post["meta_title"] == "Hello, readers"

    renamed = api.patch(f"/api/posts/{post['id']}", json={"title": "Goodbye World"}).json()
    assert renamed["slug"] == "goodbye-world"
    assert api.get("/api/posts/hello-world").status_code == 404

    hidden = api.patch(f"/api/posts/{post['id']}", json={"published": False})
    assert hidden.json()["published"] is False
    assert api.get("/api/posts").json() == []
    assert [p["id"] for p in api.get("/api/me/posts").json()] == [post["id"]]

    missing = api.patch("/api/posts/nope", json={"title": "x"})
    assert missing.status_code == 404
    assert missing.json()["error"] == "post_not_found"


def test_comment_routes(api):
    note = _create(api, "Hello World", "Published body")
    post = api.post(f"/api/notes/{note['id']}/publish").json()

    created = api.post(
        f"/api/posts/{post['id']}/comments",
        json={"content": "Great read", "author_name": "Dana", "author_email": "d@example.com"},
    )
    assert created.status_code == 201
    comment = created.json()
    assert comment["user_id"] == "alice"
    assert "author_email" not in comment

    reply = api.post(
        f"/api/posts/{post['id']}/comments",
        json={"content": "Thanks", "author_name": "Alice", "parent_id": comment["id"]},
    ).json()

    threads = api.get(f"/api/posts/{post['id']}/comments").json()
    assert [c["id"] for c in threads] == [comment["id"]]
    assert [c["id"] for c in threads[0]["replies"]] == [reply["id"]]

    blank = api.post(
        f"/api/posts/{post['id']}/comments", json={"content": " ", "author_name": "Dana"}
    )
    assert blank.status_code == 400
    assert blank.json()["error"] == "invalid_comment"

    assert api.delete(f"/api/comments/{comment['id']}").status_code == 204
    assert api.get(f"/api/posts/{post['id']}/comments").json() == []


def test_anonymous_readers_can_comment(db_service, note_service, post_service):
    note = note_service.create_note("alice", NoteCreate(title="Open", content="body"))
    post = post_service.publish_note("alice", note.id)
    app.dependency_overrides[get_db_service] = lambda: db_service
    try:
        created = client.post(
            f"/api/posts/{post.id}/comments",
            json={"content": "Hello", "author_name": "Guest"},
        )
        listed = client.get(f"/api/posts/{post.id}/comments")
        delete = client.delete(f"/api/comments/{created.json()['id']}")
    finally:
        app.dependency_overrides = {}

    assert created.status_code == 201
    assert created.json()["user_id"] is None
    assert [c["content"] for c in listed.json()] == ["Hello"]
    assert delete.status_code == 401


def test_me_and_health(api):
    assert api.get("/api/me").json() == {"user_id": "alice"}
    assert client.get("/health").json() == {"status": "healthy"}


def test_system_logs_capture_extra_fields(api):
    _create(api, "Logged")

    logs = api.get("/api/system/logs").json()

    created = [entry for entry in logs if entry["message"] == "Note created"]
    assert created
    assert created[-1]["extra"]["user_id"] == "alice"


@pytest.fixture
def local_config(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "notes.db"))
    monkeypatch.setenv("JWT_SECRET_KEY", "a-secure-secret-value-123")
    monkeypatch.setenv("ENABLE_LOCAL_MODE", "true")
    monkeypatch.setenv("LOCAL_DEV_TOKEN", "local-dev-token")
    config_module.reload_config()
    yield monkeypatch
    monkeypatch.undo()
    config_module.reload_config()


def test_issued_token_authenticates_requests(local_config, db_service):
    app.dependency_overrides[get_db_service] = lambda: db_service
    try:
        issued = client.post(
            "/api/tokens", headers={"Authorization": "Bearer local-dev-token"}
        )
        assert issued.status_code == 200
        token = issued.json()["token"]

        me = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
        bad = client.get("/api/me", headers={"Authorization": "Token abc"})
    finally:
        app.dependency_overrides = {}

    assert issued.json()["token_type"] == "bearer"
    assert me.json() == {"user_id": "local-dev"}
    assert bad.status_code == 401


def test_token_issuance_requires_authentication(local_config):
    anonymous = client.post("/api/tokens")
    forged_body = client.post("/api/tokens", json={"user_id": "alice"})

    assert anonymous.status_code == 401
    assert forged_body.status_code == 401


def test_issued_token_is_signed_for_the_caller(local_config):
    jwt_service = AuthService(config_module.get_config())
    carol_token = jwt_service.create_jwt("carol")

    response = client.post(
        "/api/tokens",
        json={"user_id": "alice"},
        headers={"Authorization": f"Bearer {carol_token}"},
    )

    assert response.status_code == 200
    payload = jwt_service.validate_jwt(response.json()["token"])
    assert payload.sub == "carol"
