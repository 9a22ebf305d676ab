from examdesk.models.user import User

API = "/api/v1/auth"
PHONE = "09123456789"


def _send(client, phone=PHONE):
    return client.post(f"{API}/send-otp", json={"phone": phone})


def _login(client, phone=PHONE, **form):
    code = _send(client, phone).json()["data"]["code"]
    return client.post(f"{API}/verify-otp", data={"phone": phone, "code": code, **form})


def test_send_otp_returns_expiry_and_registration_state(client):
    response = _send(client)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["is_registered"] is False
    assert body["data"]["code"].isdigit()
    assert body["data"]["expires_at"]


def test_send_otp_rejects_bad_phone(client):
    response = _send(client, phone="+1555")

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert "phone" in body["errors"]


def test_send_otp_is_rate_limited(client):
    for _ in range(3):
        assert _send(client).status_code == 200

    response = _send(client)

    assert response.status_code == 429
    assert response.json()["success"] is False


def test_verify_registers_new_user(client, db):
    response = _login(client)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["token"]
    assert data["user"]["phone"] == PHONE
    assert data["user"]["name"] == "User 6789"
    assert data["user"]["role"] == "owner"
    assert data["user"]["last_login"] is not None
    assert db.query(User).filter(User.phone == PHONE).count() == 1


def test_verify_uses_given_name_and_stores_avatar(client):
    code = _send(client).json()["data"]["code"]
    response = client.post(
        f"{API}/verify-otp",
        data={"phone": PHONE, "code": code, "name": "Sara"},
        files={"avatar": ("me.png", b"\x89PNG fake", "image/png")},
    )

    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["name"] == "Sara"
    assert user["avatar"].startswith("avatars/")
    assert user["avatar"].endswith(".png")


def test_verify_rejects_non_image_avatar(client):
    code = _send(client).json()["data"]["code"]
    response = client.post(
        f"{API}/verify-otp",
        data={"phone": PHONE, "code": code},
        files={"avatar": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 422
    assert "avatar" in response.json()["errors"]


def test_existing_user_logs_in_without_duplicate(client, db):
    _login(client)
    response = _login(client, name="Ignored")

    assert response.status_code == 200
    assert response.json()["data"]["user"]["name"] == "User 6789"
    assert db.query(User).filter(User.phone == PHONE).count() == 1

    sent = _send(client, PHONE)
    assert sent.json()["data"]["is_registered"] is True


def test_verify_with_wrong_code_is_unauthorized(client):
    code = _send(client).json()["data"]["code"]
    wrong = "0000" if code != "0000" else "1111"

    response = client.post(f"{API}/verify-otp", data={"phone": PHONE, "code": wrong})

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_verify_rejects_malformed_code(client):
    response = client.post(f"{API}/verify-otp", data={"phone": PHONE, "code": "12"})

    assert response.status_code == 422
    assert "code" in response.json()["errors"]


def test_verify_rejects_trailing_newline(client):
    code = _send(client).json()["data"]["code"]
    response = client.post(f"{API}/verify-otp", data={"phone": PHONE + "\n", "code": code + "\n"})

    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"phone", "code"}


def test_code_cannot_be_used_twice(client):
    code = _send(client).json()["data"]["code"]
    first = client.post(f"{API}/verify-otp", data={"phone": PHONE, "code": code})
    second = client.post(f"{API}/verify-otp", data={"phone": PHONE, "code": code})

    assert first.status_code == 200
    assert second.status_code == 401


def test_me_requires_token(client):
    response = client.get(f"{API}/me")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_me_and_logout(client):
    token = _login(client).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    me = client.get(f"{API}/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["data"]["phone"] == PHONE

    assert client.post(f"{API}/logout", headers=headers).status_code == 200
    assert client.get(f"{API}/me", headers=headers).status_code == 401


def test_logout_revokes_only_that_session(client):
    first = _login(client).json()["data"]["token"]
    second = _login(client).json()["data"]["token"]

    client.post(f"{API}/logout", headers={"Authorization": f"Bearer {first}"})

    assert client.get(f"{API}/me", headers={"Authorization": f"Bearer {second}"}).status_code == 200


def test_garbage_token_is_rejected(client):
    response = client.get(f"{API}/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
