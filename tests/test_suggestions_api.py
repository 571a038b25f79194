import pytest
from tests.helpers import ADMIN_PHONE, login, url_prefix

TEXT = "The night shift bus leaves before the handover ends."


async def submit(ac, category, content=TEXT, **extra):
    return await ac.post(f"{url_prefix}/suggestions", json={"content": content, "category_id": category, **extra})


@pytest.mark.asyncio
async def test_public_categories_list_only_active(ac_client, categories):
    resp = await ac_client.get(f"{url_prefix}/suggestions/categories")
    assert resp.status_code == 200
    slugs = [c["slug"] for c in resp.json()["data"]["items"]]
    assert slugs == ["workplace-improvement", "safety-health"]


@pytest.mark.asyncio
async def test_anonymous_submission_and_rate_limit(ac_client, categories):
    cat = categories["workplace-improvement"].id

    first = await submit(ac_client, cat)
    assert first.status_code == 201
    assert first.json()["data"]["remaining"] == 4

    for _ in range(4):
        assert (await submit(ac_client, "safety-health")).status_code == 201

    blocked = await submit(ac_client, cat)
    assert blocked.status_code == 429
    body = blocked.json()["error"]
    assert body["code"] == "RATE_LIMITED"
    assert body["details"]["remaining"] == 0
    assert body["details"]["reset_at"]
    assert 0 < int(blocked.headers["Retry-After"]) <= 3600

    status = (await ac_client.get(f"{url_prefix}/suggestions/rate-limit")).json()["data"]
    assert (status["allowed"], status["remaining"], status["limit"]) == (False, 0, 5)


@pytest.mark.asyncio
async def test_submission_validation_failures(ac_client, categories):
    short = await submit(ac_client, categories["workplace-improvement"].id, content="too short")
    assert short.status_code == 400
    assert short.json()["error"]["code"] == "TOO_SHORT"

    inactive = await submit(ac_client, categories["retired"].id)
    assert inactive.json()["error"]["code"] == "INVALID_CATEGORY"

    missing = await ac_client.post(f"{url_prefix}/suggestions", json={"category_id": 1})
    assert missing.status_code == 422


@pytest.mark.asyncio
async def test_honeypot_submission_is_accepted_silently(ac_client, categories):
    resp = await submit(ac_client, categories["workplace-improvement"].id, website="http://cheap-pills.example")
    assert resp.status_code == 201

    status = (await ac_client.get(f"{url_prefix}/suggestions/rate-limit")).json()["data"]
    assert status["remaining"] == status["limit"]


@pytest.mark.asyncio
async def test_admin_suggestion_routes_need_a_session(ac_client):
    for path in ("/admin/suggestions", "/admin/suggestions/stats", "/admin/suggestion-categories"):
        resp = await ac_client.get(f"{url_prefix}{path}")
        assert resp.status_code == 401, path


@pytest.mark.asyncio
async def test_moderation_flow(ac_client, app, sender, admin, categories):
    await submit(ac_client, categories["workplace-improvement"].id)
    await submit(ac_client, categories["safety-health"].id, content="Replace the frayed rope on crane two please.")
    await login(ac_client, app, sender, ADMIN_PHONE)

    listing = (await ac_client.get(f"{url_prefix}/admin/suggestions")).json()["data"]
    assert listing["pagination"]["total"] == 2
    assert {s["status"] for s in listing["items"]} == {"new"}

    found = (await ac_client.get(f"{url_prefix}/admin/suggestions", params={"search": "CRANE"})).json()["data"]
    assert len(found["items"]) == 1
    public_id = found["items"][0]["public_id"]
    assert found["items"][0]["category"]["slug"] == "safety-health"

    resp = await ac_client.patch(f"{url_prefix}/admin/suggestions/{public_id}/status",
                                 json={"status": "in_progress", "notes": "Maintenance informed"})
    assert resp.status_code == 200
    updated = resp.json()["data"]["suggestion"]
    assert updated["status"] == "in_progress"
    assert updated["admin_notes"] == "Maintenance informed"
    assert updated["reviewed_by"] == "Ama Mensah"

    in_progress = (await ac_client.get(f"{url_prefix}/admin/suggestions", params={"status": "in_progress"})).json()
    assert [s["public_id"] for s in in_progress["data"]["items"]] == [public_id]

    resp = await ac_client.patch(f"{url_prefix}/admin/suggestions/{public_id}/notes", json={"notes": "Rope ordered"})
    assert resp.json()["data"]["suggestion"]["admin_notes"] == "Rope ordered"

    stats = (await ac_client.get(f"{url_prefix}/admin/suggestions/stats")).json()["data"]
    assert stats["total"] == 2
    assert (stats["new"], stats["in_progress"], stats["resolved"]) == (1, 1, 0)
    assert stats["this_week"] == 2

    assert (await ac_client.delete(f"{url_prefix}/admin/suggestions/{public_id}")).status_code == 200
    gone = await ac_client.get(f"{url_prefix}/admin/suggestions/{public_id}")
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_unknown_suggestion_is_404(ac_client, app, sender, admin):
    await login(ac_client, app, sender, ADMIN_PHONE)
    resp = await ac_client.patch(f"{url_prefix}/admin/suggestions/0190f5f2-0000-7000-8000-000000000000/status",
                                 json={"status": "resolved"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_category_management(ac_client, app, sender, admin, categories):
    await login(ac_client, app, sender, ADMIN_PHONE)
    base = f"{url_prefix}/admin/suggestion-categories"

    created = await ac_client.post(base, json={"name": "  Canteen & Food ", "description": "Meals"})
    assert created.status_code == 201
    category = created.json()["data"]["category"]
    assert (category["name"], category["slug"], category["display_order"]) == ("Canteen & Food", "canteen-food", 3)

    dup = await ac_client.post(base, json={"name": "canteen food"})
    assert dup.status_code == 409

    resp = await ac_client.patch(f"{base}/{category['id']}", json={"is_active": False})
    assert resp.json()["data"]["category"]["is_active"] is False
    public = (await ac_client.get(f"{url_prefix}/suggestions/categories")).json()["data"]["items"]
    assert "canteen-food" not in [c["slug"] for c in public]

    assert (await ac_client.patch(f"{base}/{category['id']}", json={})).status_code == 400
    assert (await ac_client.delete(f"{base}/{category['id']}")).status_code == 200
    assert (await ac_client.delete(f"{base}/{category['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_category_in_use_cannot_be_deleted(ac_client, app, sender, admin, categories):
    cat = categories["workplace-improvement"].id
    await submit(ac_client, cat)
    await login(ac_client, app, sender, ADMIN_PHONE)

    resp = await ac_client.delete(f"{url_prefix}/admin/suggestion-categories/{cat}")
    assert resp.status_code == 409
    all_categories = (await ac_client.get(f"{url_prefix}/admin/suggestion-categories")).json()["data"]["items"]
    assert len(all_categories) == 3


@pytest.mark.asyncio
async def test_out_of_range_category_id_is_a_typed_failure(ac_client, categories):
    resp = await submit(ac_client, 10**20)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_CATEGORY"


@pytest.mark.asyncio
async def test_very_long_content_is_too_long_not_a_validation_error(ac_client, categories):
    resp = await submit(ac_client, categories["workplace-improvement"].id, content="x" * 25000)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "TOO_LONG"


@pytest.mark.asyncio
async def test_admin_category_routes_reject_out_of_range_ids(ac_client, app, sender, admin, categories):
    await login(ac_client, app, sender, ADMIN_PHONE)
    huge = 10**20
    assert (await ac_client.delete(f"{url_prefix}/admin/suggestion-categories/{huge}")).status_code == 422
    assert (await ac_client.get(f"{url_prefix}/admin/suggestions", params={"category": huge})).status_code == 422
