import pytest
from httpx import ASGITransport, AsyncClient
from tests.helpers import ADMIN_PHONE, SUPERADMIN_PHONE, login, url_prefix


@pytest.mark.asyncio
async def test_superadmin_creates_admin(ac_client, app, sender, superadmin):
    await login(ac_client, app, sender, SUPERADMIN_PHONE)

    resp = await ac_client.post(f"{url_prefix}/admin/users", json={
        "phone": "055 000 1111", "name": " Yaw Asante ", "email": "Yaw.Asante@ARL.example.com",
        "role": "admin", "department": "HR"})
    assert resp.status_code == 201
    created = resp.json()["data"]["admin"]
    assert created["phone"] == "233550001111"
    assert created["name"] == "Yaw Asante"
    assert created["email"] == "yaw.asante@arl.example.com"

    dup = await ac_client.post(f"{url_prefix}/admin/users", json={"phone": "0550001111", "name": "Again"})
    assert dup.status_code == 409

    bad = await ac_client.post(f"{url_prefix}/admin/users", json={"phone": "555", "name": "Nope"})
    assert bad.status_code == 400

    listed = (await ac_client.get(f"{url_prefix}/admin/users")).json()["data"]["items"]
    assert {a["phone"] for a in listed} == {SUPERADMIN_PHONE, "233550001111"}


@pytest.mark.asyncio
async def test_plain_admin_cannot_manage_admins(ac_client, app, sender, admin):
    await login(ac_client, app, sender, ADMIN_PHONE)

    assert (await ac_client.get(f"{url_prefix}/admin/users")).status_code == 403
    resp = await ac_client.post(f"{url_prefix}/admin/users", json={"phone": "0550001111", "name": "Yaw"})
    assert resp.status_code == 403
    assert (await ac_client.get(f"{url_prefix}/admin/activity")).status_code == 403


@pytest.mark.asyncio
async def test_deactivation_revokes_live_sessions(ac_client, app, sender, admin, superadmin):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as other:
        await login(other, app, sender, ADMIN_PHONE)
        assert (await other.get(f"{url_prefix}/admin/me")).status_code == 200

        await login(ac_client, app, sender, SUPERADMIN_PHONE)
        resp = await ac_client.patch(f"{url_prefix}/admin/users/{admin.public_id}/active", json={"is_active": False})
        assert resp.status_code == 200
        assert resp.json()["data"]["admin"]["is_active"] is False

        assert (await other.get(f"{url_prefix}/admin/me")).status_code == 401

        # and no new code can be requested for the account
        again = await other.post(f"{url_prefix}/auth/otp/request", json={"phone": ADMIN_PHONE})
        assert again.status_code == 404


@pytest.mark.asyncio
async def test_superadmin_cannot_deactivate_self(ac_client, app, sender, superadmin):
    await login(ac_client, app, sender, SUPERADMIN_PHONE)
    resp = await ac_client.patch(f"{url_prefix}/admin/users/{superadmin.public_id}/active", json={"is_active": False})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_activity_log_records_admin_actions(ac_client, app, sender, superadmin, categories):
    await login(ac_client, app, sender, SUPERADMIN_PHONE)
    await ac_client.post(f"{url_prefix}/admin/suggestion-categories", json={"name": "Transport"})

    data = (await ac_client.get(f"{url_prefix}/admin/activity")).json()["data"]
    actions = [(item["action"], item["resource"]) for item in data["items"]]
    assert actions == [("create", "suggestion_category"), ("login", "auth")]
    assert all(item["admin_name"] == "Kofi Boateng" for item in data["items"])
    assert data["pagination"]["total"] == 2

    only_logins = (await ac_client.get(f"{url_prefix}/admin/activity", params={"action": "login"})).json()["data"]
    assert [item["action"] for item in only_logins["items"]] == ["login"]
