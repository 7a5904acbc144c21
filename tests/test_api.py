from tests.conftest import auth_header


def submit(client, payload, **overrides):
    response = client.post("/api/cleanup-requests", json=payload(**overrides))
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/api/health").json()["status"] == "healthy"
    assert client.get("/api/health/db").json()["database"] == "mock"


def test_anonymous_submission_uses_camel_case(client, payload):
    data = submit(client, payload, problemType="dumping", severity="high")
    assert data["problemLabel"] == "Illegal Dumping"
    assert data["priority"] == "high"
    assert data["status"] == "pending"
    assert data["submittedBy"] is None
    assert data["contactInfo"]["name"] == "Ama Mensah"


def test_submission_validation_errors_are_field_level(client, payload):
    response = client.post("/api/cleanup-requests", json=payload(problemType="flood", description="short"))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"problemType", "description"} <= fields
    assert "'flood'" in next(e["message"] for e in body["errors"] if e["field"] == "problemType")


def test_logged_in_submission_is_linked_to_user(client, payload, user_token):
    response = client.post("/api/cleanup-requests", json=payload(), headers=auth_header(user_token))
    assert response.status_code == 201

    me = client.get("/api/auth/me", headers=auth_header(user_token)).json()["data"]
    assert response.json()["data"]["submittedBy"] == me["id"]
    assert me["requestsCount"] == 1


def test_bad_token_is_rejected(client, payload):
    response = client.post("/api/cleanup-requests", json=payload(), headers=auth_header("not-a-token"))
    assert response.status_code == 401


def test_get_missing_request_is_404(client):
    response = client.get("/api/cleanup-requests/missing")
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_list_with_search_and_filters(client, payload):
    submit(client, payload, location="Main St & 3rd Ave", severity="high")
    submit(client, payload, location="Main St market", severity="low")
    submit(client, payload, location="Harbour Rd", description="Paint all over the sea wall.")

    body = client.get("/api/cleanup-requests", params={"q": "main st", "severity": "high"}).json()["data"]
    assert [r["location"] for r in body["requests"]] == ["Main St & 3rd Ave"]
    assert body["pagination"] == {"currentPage": 1, "totalPages": 1, "totalRequests": 1}

    body = client.get("/api/cleanup-requests", params={"status": "all", "severity": "all"}).json()["data"]
    assert body["pagination"]["totalRequests"] == 3


def test_list_rejects_unknown_filter_values(client):
    response = client.get("/api/cleanup-requests", params={"status": "done", "dateTo": "31/12/2026"})
    assert response.status_code == 400
    assert {e["field"] for e in response.json()["errors"]} == {"status", "dateTo"}


def test_admin_routes_require_admin(client, payload, user_token):
    request_id = submit(client, payload)["id"]
    url = f"/api/cleanup-requests/{request_id}/status"

    assert client.patch(url, json={"status": "in-progress"}).status_code == 401
    assert client.patch(url, json={"status": "in-progress"}, headers=auth_header(user_token)).status_code == 403
    assert client.get("/api/users", headers=auth_header(user_token)).status_code == 403


def test_admin_workflow(client, payload, admin_token):
    headers = auth_header(admin_token)
    request_id = submit(client, payload)["id"]
    base = f"/api/cleanup-requests/{request_id}"

    response = client.patch(f"{base}/status", json={"status": "done"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid status"

    response = client.patch(f"{base}/assign", json={"assignedTo": "Crew A", "estimatedCompletion": "2026-11-01"},
                            headers=headers)
    data = response.json()["data"]
    assert data["status"] == "in-progress"
    assert data["assignedTo"] == "Crew A"

    data = client.patch(f"{base}/status", json={"status": "completed", "adminNotes": "Cleared"},
                        headers=headers).json()["data"]
    assert data["actualCompletion"] is not None
    assert data["adminNotes"] == "Cleared"

    response = client.patch(f"{base}/status", json={"status": "pending"}, headers=headers)
    assert response.status_code == 409

    data = client.patch(base, json={"severity": "low"}, headers=headers).json()["data"]
    assert data["severity"] == "low"
    assert data["priority"] == "medium"

    assert client.delete(base, headers=headers).json()["data"] == {"id": request_id}
    assert client.get(base).status_code == 404


def test_stats_and_recent(client, payload):
    submit(client, payload, severity="low")
    submit(client, payload, severity="high")

    stats = client.get("/api/cleanup-requests/stats").json()["data"]
    assert stats["total"] == 2
    assert stats["pending"] == 2
    assert stats["in-progress"] == 0
    assert stats["severity"] == {"low": 1, "medium": 0, "high": 1}
    assert stats["todayRequests"] == 2

    recent = client.get("/api/cleanup-requests/recent", params={"limit": 1}).json()["data"]
    assert len(recent) == 1
    assert "description" not in recent[0]


def test_register_login_and_me(client):
    response = client.post("/api/auth/register", json={
        "fullName": "Efua Asante", "email": "efua@example.com", "password": "efua-password",
    })
    assert response.status_code == 201
    assert "passwordHash" not in response.json()["data"]["user"]

    duplicate = client.post("/api/auth/register", json={
        "fullName": "Efua", "email": "EFUA@example.com", "password": "efua-password",
    })
    assert duplicate.status_code == 409

    assert client.post("/api/auth/login", json={"email": "efua@example.com", "password": "nope"}).status_code == 401
    token = client.post("/api/auth/login", json={
        "email": "efua@example.com", "password": "efua-password",
    }).json()["data"]["token"]

    me = client.get("/api/auth/me", headers=auth_header(token)).json()["data"]
    assert me["email"] == "efua@example.com"
    assert client.get("/api/auth/me").status_code == 401


def test_password_reset_flow(client, user_token):
    response = client.post("/api/auth/forgot-password", json={"email": "kwame@example.com"})
    token = response.json()["data"]["token"]

    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert unknown.status_code == 200
    assert unknown.json()["data"] is None
    assert unknown.json()["message"] == response.json()["message"]

    assert client.post("/api/auth/reset-password", json={
        "token": token, "newPassword": "fresh-password",
    }).status_code == 200
    assert client.post("/api/auth/reset-password", json={
        "token": token, "newPassword": "fresh-password",
    }).status_code == 400
    assert client.post("/api/auth/login", json={
        "email": "kwame@example.com", "password": "fresh-password",
    }).status_code == 200


def test_profile_and_user_admin(client, admin_token, user_token):
    profile = client.patch("/api/users/profile", json={"location": "Tamale"}, headers=auth_header(user_token))
    assert profile.json()["data"]["location"] == "Tamale"
    user_id = profile.json()["data"]["id"]

    admin = auth_header(admin_token)
    assert len(client.get("/api/users", headers=admin).json()["data"]) == 2

    suspended = client.patch(f"/api/users/{user_id}/status", json={"status": "suspended"}, headers=admin)
    assert suspended.json()["data"]["status"] == "suspended"
    assert client.post("/api/auth/login", json={
        "email": "kwame@example.com", "password": "kwame-password",
    }).status_code == 403

    stats = client.get("/api/stats/users", headers=admin).json()["data"]
    assert stats["totalUsers"] == 2
    assert stats["activeUsers"] == 1

    assert client.delete(f"/api/users/{user_id}", headers=admin).status_code == 200
    assert client.get(f"/api/users/{user_id}", headers=admin).status_code == 404


def test_change_password(client, user_token):
    headers = auth_header(user_token)
    wrong = client.post("/api/users/change-password", json={
        "currentPassword": "nope", "newPassword": "another-password",
    }, headers=headers)
    assert wrong.status_code == 400

    ok = client.post("/api/users/change-password", json={
        "currentPassword": "kwame-password", "newPassword": "another-password",
    }, headers=headers)
    assert ok.status_code == 200
