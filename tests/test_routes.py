import logging

from bson import ObjectId

from api.v1.dependencies import get_app_settings
from conftest import auth_headers, register_user
from core.config import Settings
from main import app


def test_root_and_health_endpoints(client):
    assert client.get("/").json() == {"message": "Server running"}
    body = client.get("/api/test").json()
    assert body["status"] == "ok"
    assert isinstance(body["request_id"], str)
    assert body["data"]["status"] == "OK"
    assert body["data"]["message"] == "Backend server is running!"


def test_register_login_and_duplicate(client):
    data = register_user(client, interests=["Design"])
    assert data["message"] == "User registered successfully"
    assert data["user"]["username"] == "alice"
    assert "password_hash" not in data["user"]

    resp = client.post("/api/register", json={"username": "alice", "email": "x@example.com", "password": "pw"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User already exists"

    resp = client.post("/api/login", json={"email": "alice@example.com", "password": "s3cret-pass"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok" and isinstance(body["request_id"], str)
    assert body["data"]["token"]

    resp = client.post("/api/login", json={"email": "alice@example.com", "password": "wrong"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid credentials"


def test_register_validates_payload(client):
    resp = client.post("/api/register", json={"username": "bob", "email": "not-an-email", "password": "pw"})
    assert resp.status_code == 422


def test_register_rejects_interests_that_are_not_a_list_of_strings(client):
    base = {"username": "bob", "email": "bob@example.com", "password": "pw"}

    resp = client.post("/api/register", json={**base, "interests": [1, "AI"]})
    assert resp.status_code == 422

    resp = client.post("/api/register", json={**base, "interests": "Design"})
    assert resp.status_code == 422

    resp = client.post("/api/register", json={**base, "interests": [" AI ", "ai", "", "Design"]})
    assert resp.status_code == 201
    assert resp.json()["data"]["user"]["interests"] == ["AI", "Design"]


def test_profile_update_rejects_scalar_language_list(client):
    headers = auth_headers(register_user(client)["token"])
    resp = client.put("/api/profile", json={"known_languages": "Python"}, headers=headers)
    assert resp.status_code == 422


def test_protected_routes_require_valid_token(client):
    resp = client.get("/api/recommendations")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Access token required"

    resp = client.get("/api/recommendations", headers=auth_headers("garbage"))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Invalid token"


def test_course_listing_filters_and_paginates(client, course_repo):
    for i in range(5):
        course_repo.add(title=f"Python {i}", category="Programming", level="Beginner")
    course_repo.add(title="Sketching", category="Design", level="Advanced", tags=["Drawing"])

    body = client.get("/api/courses", params={"category": "Programming", "limit": 2, "page": 3}).json()["data"]
    assert body["total_courses"] == 5
    assert body["total_pages"] == 3
    assert body["current_page"] == 3
    assert len(body["courses"]) == 1

    body = client.get("/api/courses", params={"category": "all", "search": "draw"}).json()["data"]
    assert [c["title"] for c in body["courses"]] == ["Sketching"]

    assert client.get("/api/categories").json()["data"] == ["Design", "Programming"]


def test_signed_in_search_is_logged(client, course_repo, user_repo, search_log_repo):
    course_repo.add(title="Rust for Beginners")
    token = register_user(client)["token"]

    client.get("/api/courses", params={"search": "rust"}, headers=auth_headers(token))
    client.get("/api/courses", params={"search": "rust"})  # anonymous: not logged

    assert search_log_repo.entries == [
        {"user_id": search_log_repo.entries[0]["user_id"], "query": "rust", "results_count": 1}
    ]
    profile = client.get("/api/profile", headers=auth_headers(token)).json()["data"]
    assert [entry["query"] for entry in profile["search_history"]] == ["rust"]


def test_search_history_keeps_only_the_most_recent_queries(client, course_repo):
    app.dependency_overrides[get_app_settings] = lambda: Settings(search_history_limit=3)
    course_repo.add(title="Go in Practice")
    headers = auth_headers(register_user(client)["token"])

    for term in ["go", "rust", "java", "kotlin", "swift"]:
        assert client.get("/api/courses", params={"search": term}, headers=headers).status_code == 200

    profile = client.get("/api/profile", headers=headers).json()["data"]
    assert [entry["query"] for entry in profile["search_history"]] == ["java", "kotlin", "swift"]


def test_search_logging_failure_does_not_fail_listing(client, course_repo, search_log_repo, monkeypatch, caplog):
    course_repo.add(title="Rust for Beginners")
    headers = auth_headers(register_user(client)["token"])

    def broken_record(user_id, query, results_count):
        raise RuntimeError("search log unavailable")

    monkeypatch.setattr(search_log_repo, "record", broken_record)

    with caplog.at_level(logging.WARNING, logger="services.catalog_service"):
        resp = client.get("/api/courses", params={"search": "rust"}, headers=headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["total_courses"] == 1
    failures = [r for r in caplog.records if r.getMessage() == "search_logging_failed"]
    assert len(failures) == 1
    assert failures[0].levelno == logging.WARNING
    assert failures[0].error == "search log unavailable"


def test_course_detail_errors(client):
    assert client.get(f"/api/courses/{ObjectId()}").status_code == 404
    resp = client.get("/api/courses/bad-id")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid course id"


def test_enroll_complete_and_certificates_flow(client, course_repo):
    course = course_repo.add(title="Kubernetes", rating=4.0, total_ratings=1)
    token = register_user(client)["token"]
    headers = auth_headers(token)

    resp = client.post(f"/api/courses/{course.id}/enroll", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["message"] == "Successfully enrolled in course"

    resp = client.post(f"/api/courses/{course.id}/enroll", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Already enrolled in this course"

    resp = client.post(f"/api/courses/{course.id}/complete", json={"rating": 5}, headers=headers)
    assert resp.status_code == 200
    certificate = resp.json()["data"]
    assert certificate["course_title"] == "Kubernetes"

    detail = client.get(f"/api/courses/{course.id}").json()["data"]
    assert detail["enrolled_students"] == 1
    assert detail["total_ratings"] == 2
    assert detail["rating"] == 4.5

    listed = client.get("/api/certificates", headers=headers).json()["data"]
    assert [c["certificate_id"] for c in listed] == [certificate["certificate_id"]]
    resp = client.get(f"/api/certificates/{certificate['certificate_id']}", headers=headers)
    assert resp.status_code == 200
    assert client.get("/api/certificates/CERT-NOPE", headers=headers).status_code == 404

    resp = client.post(f"/api/courses/{course.id}/complete", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Not enrolled in this course"


def test_rating_out_of_range_is_rejected(client, course_repo):
    course = course_repo.add()
    headers = auth_headers(register_user(client)["token"])
    client.post(f"/api/courses/{course.id}/enroll", headers=headers)

    resp = client.post(f"/api/courses/{course.id}/complete", json={"rating": 9}, headers=headers)
    assert resp.status_code == 422


def test_recommendations_endpoint(client, course_repo):
    design = course_repo.add(title="Figma", category="Design", rating=4.9)
    enrolled = course_repo.add(title="Illustrator", category="Design", rating=4.0)
    course_repo.add(title="Popular", category="Business", enrolled_students=999)
    headers = auth_headers(register_user(client, interests=["Design"])["token"])
    client.post(f"/api/courses/{enrolled.id}/enroll", headers=headers)

    resp = client.get("/api/recommendations", headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    titles = [c["title"] for c in data["recommendations"]]
    assert titles == ["Figma", "Popular"]
    assert data["total_recommendations"] == 2
    assert data["reason"]["interests"] == ["Design"]
    assert design.id == data["recommendations"][0]["id"]


def test_profile_update(client):
    headers = auth_headers(register_user(client)["token"])
    resp = client.put("/api/profile", json={"interests": ["AI"], "known_languages": ["Go"]}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["interests"] == ["AI"]

    profile = client.get("/api/profile", headers=headers).json()["data"]
    assert profile["known_languages"] == ["Go"]
    assert profile["enrolled_courses"] == []


def test_seed_routes(client, course_repo):
    course_repo.add(title="Stale")

    resp = client.post("/api/add-sample-data")
    assert resp.json()["data"] == {"message": "Sample data already exists", "courses": 1}

    resp = client.post("/api/seed-data")
    seeded = resp.json()["data"]
    assert seeded["message"] == "Sample data added successfully"
    assert seeded["courses"] == course_repo.count() > 1
    assert "Stale" not in [c.title for c in course_repo.courses.values()]
