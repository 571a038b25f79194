import pytest
from intranet.auth.constants import COOKIE_NAME
from tests.helpers import ADMIN_PHONE, login, url_prefix


@pytest.mark.asyncio
async def test_otp_login_sets_session_cookie(ac_client, app, sender, admin):
    resp = await ac_client.post(f"{url_prefix}/auth/otp/request", json={"phone": "024 123 4567"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["data"]["expires_at"]

    await app.state.sms_dispatcher.drain()
    code = sender.last_code(ADMIN_PHONE)
    # the code only travels by sms
    assert code not in resp.text

    resp = await ac_client.post(f"{url_prefix}/auth/otp/verify", json={"phone": "0241234567", "code": code})
    assert resp.status_code == 200
    assert resp.json()["data"]["admin"]["phone"] == ADMIN_PHONE
    assert ac_client.cookies.get(COOKIE_NAME)

    me = await ac_client.get(f"{url_prefix}/admin/me")
    assert me.status_code == 200
    assert me.json()["data"]["admin"]["name"] == "Ama Mensah"


@pytest.mark.asyncio
async def test_request_failures_map_to_http_statuses(ac_client, admin):
    resp = await ac_client.post(f"{url_prefix}/auth/otp/request", json={"phone": "12345"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_PHONE"

    resp = await ac_client.post(f"{url_prefix}/auth/otp/request", json={"phone": "0209999999"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_REGISTERED"

    first = await ac_client.post(f"{url_prefix}/auth/otp/request", json={"phone": ADMIN_PHONE})
    assert first.status_code == 200
    again = await ac_client.post(f"{url_prefix}/auth/otp/request", json={"phone": ADMIN_PHONE})
    assert again.status_code == 429
    assert again.json()["error"]["code"] == "TOO_SOON"
    assert 0 < int(again.headers["Retry-After"]) <= 60


@pytest.mark.asyncio
async def test_wrong_code_reports_attempts_then_exhausts(ac_client, admin):
    await ac_client.post(f"{url_prefix}/auth/otp/request", json={"phone": ADMIN_PHONE})

    statuses = []
    for guess in ("000000", "000001", "000002"):
        resp = await ac_client.post(f"{url_prefix}/auth/otp/verify", json={"phone": ADMIN_PHONE, "code": guess})
        statuses.append((resp.status_code, resp.json()["error"]["code"], resp.json()["error"]["details"]["attempts_remaining"]))

    assert statuses == [(401, "MISMATCH", 2), (401, "MISMATCH", 1), (429, "EXHAUSTED", 0)]
    assert ac_client.cookies.get(COOKIE_NAME) is None


@pytest.mark.asyncio
async def test_verify_without_code_is_expired(ac_client, admin):
    resp = await ac_client.post(f"{url_prefix}/auth/otp/verify", json={"phone": ADMIN_PHONE, "code": "123456"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "EXPIRED"


@pytest.mark.asyncio
async def test_otp_status_endpoint(ac_client, admin):
    resp = await ac_client.get(f"{url_prefix}/auth/otp/status", params={"phone": ADMIN_PHONE})
    assert resp.json()["data"]["has_active_code"] is False

    await ac_client.post(f"{url_prefix}/auth/otp/request", json={"phone": ADMIN_PHONE})
    data = (await ac_client.get(f"{url_prefix}/auth/otp/status", params={"phone": ADMIN_PHONE})).json()["data"]
    assert data["has_active_code"] is True
    assert data["can_resend"] is False
    assert data["cooldown_remaining_seconds"] > 0


@pytest.mark.asyncio
async def test_logout_revokes_the_session(ac_client, app, sender, admin):
    await login(ac_client, app, sender, ADMIN_PHONE)
    token = ac_client.cookies.get(COOKIE_NAME)

    resp = await ac_client.post(f"{url_prefix}/auth/logout")
    assert resp.status_code == 200

    # even a client that kept the old token is refused
    resp = await ac_client.get(f"{url_prefix}/admin/me", headers={"X-Session-Token": token})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_AUTH"


@pytest.mark.asyncio
async def test_admin_routes_require_a_session(ac_client):
    resp = await ac_client.get(f"{url_prefix}/admin/suggestions")
    assert resp.status_code == 401
    assert resp.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_otp_routes_are_throttled_per_client(ac_client, admin):
    codes = []
    for _ in range(11):
        resp = await ac_client.post(f"{url_prefix}/auth/otp/verify", json={"phone": ADMIN_PHONE, "code": "000000"})
        codes.append(resp.status_code)
    assert codes[-1] == 429
    assert codes[:10].count(429) == 0
