from stockbook.core.security import create_access_token

PASSWORD = "Password1"


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["database"] == "ok"


def test_login_with_username_and_email(client, users):
    resp = client.post("/api/auth/login", data={"username": "warehouse", "password": PASSWORD})
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "OFFICE_WAREHOUSE"

    resp = client.post("/api/auth/login", data={"username": "warehouse@example.com", "password": PASSWORD})
    assert resp.status_code == 200


def test_login_failure_envelope(client, users):
    resp = client.post("/api/auth/login", data={"username": "warehouse", "password": "nope"})
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"
    assert resp.json() == {"success": False, "error": "Invalid username or password", "code": "UNAUTHORIZED"}


def test_login_inactive_user(client, db, users):
    users["purchasing"].is_active = False
    db.commit()
    resp = client.post("/api/auth/login", data={"username": "purchasing", "password": PASSWORD})
    assert resp.status_code == 403
    assert resp.json()["code"] == "FORBIDDEN"


def test_token_from_login_works(client, users):
    token = client.post("/api/auth/login", data={"username": "admin", "password": PASSWORD}).json()["access_token"]
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["username"] == "admin"
    assert "manageUsers" in resp.json()["capabilities"]


def test_requests_without_token(client, users):
    resp = client.get("/api/raw-materials")
    assert resp.status_code == 401
    assert resp.json()["code"] == "UNAUTHORIZED"


def test_garbage_token(client, users):
    resp = client.get("/api/raw-materials", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_token_for_deleted_user(client, users):
    token = create_access_token({"sub": "00000000-0000-0000-0000-000000000000"})
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_permissions_endpoint(client, headers):
    resp = client.get("/api/auth/permissions", headers=headers["warehouse"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["role"] == "OFFICE_WAREHOUSE"
    assert "deleteFinishedGoods" not in body["capabilities"]
    assert "deleteFinishedGoods" in body["matrix"]["ADMIN"]


def test_legacy_role_is_denied(client, headers):
    resp = client.get("/api/auth/permissions", headers=headers["legacy"])
    assert resp.json()["capabilities"] == []

    resp = client.post("/api/raw-materials", json={"kode": "X", "name": "X"}, headers=headers["legacy"])
    assert resp.status_code == 403
    assert resp.json()["error"] == (
        "You do not have permission to create raw materials. Current role: FACTORY."
    )


def test_change_password(client, headers):
    resp = client.post(
        "/api/auth/password",
        json={"current_password": PASSWORD, "new_password": "weak"},
        headers=headers["warehouse"],
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "new_password"

    resp = client.post(
        "/api/auth/password",
        json={"current_password": PASSWORD, "new_password": "Stronger123"},
        headers=headers["warehouse"],
    )
    assert resp.status_code == 200
    resp = client.post("/api/auth/login", data={"username": "warehouse", "password": "Stronger123"})
    assert resp.status_code == 200
