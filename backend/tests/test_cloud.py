"""Cloud script loading, functions and triggers."""

import logging

import pytest

from bujo.store.cloud import Cloud, CloudRequest, load_cloud
from bujo.store.errors import StoreError
from conftest import APP_HEADERS, MASTER_HEADERS


@pytest.mark.asyncio
async def test_call_function(client):
    r = await client.post("/parse/functions/hello", json={"name": "Ada"}, headers=APP_HEADERS)
    assert r.status_code == 200
    assert r.json() == {"result": "Hello Ada!"}


@pytest.mark.asyncio
async def test_async_function_sees_master_flag(client):
    r = await client.post("/parse/functions/whoami", headers=MASTER_HEADERS)
    assert r.json() == {"result": {"master": True}}
    r = await client.post("/parse/functions/whoami", headers=APP_HEADERS)
    assert r.json() == {"result": {"master": False}}


@pytest.mark.asyncio
async def test_unknown_function(client):
    r = await client.post("/parse/functions/nope", headers=APP_HEADERS)
    assert r.status_code == 400
    assert r.json() == {"code": 141, "error": 'Invalid function: "nope"'}


@pytest.mark.asyncio
async def test_function_exception_is_script_failed(client):
    r = await client.post("/parse/functions/explode", headers=APP_HEADERS)
    assert r.status_code == 400
    assert r.json() == {"code": 141, "error": "kaboom"}


@pytest.mark.asyncio
async def test_before_save_fills_defaults(client):
    r = await client.post("/parse/classes/Entry", json={"text": "write tests"}, headers=APP_HEADERS)
    assert r.status_code == 201
    obj = (await client.get(f"/parse/classes/Entry/{r.json()['objectId']}", headers=APP_HEADERS)).json()
    assert obj["done"] is False


@pytest.mark.asyncio
async def test_before_save_can_reject(client):
    r = await client.post("/parse/classes/Entry", json={"text": "  "}, headers=APP_HEADERS)
    assert r.status_code == 400
    assert r.json() == {"code": 142, "error": "An entry needs some text."}

    data = (await client.get("/parse/classes/Entry", params={"count": 1}, headers=APP_HEADERS)).json()
    assert data["count"] == 0


@pytest.mark.asyncio
async def test_before_save_runs_on_update(client):
    r = await client.post("/parse/classes/Entry", json={"text": "ok"}, headers=APP_HEADERS)
    object_id = r.json()["objectId"]
    r = await client.put(f"/parse/classes/Entry/{object_id}", json={"text": ""}, headers=APP_HEADERS)
    assert r.json()["code"] == 142


@pytest.mark.asyncio
async def test_after_save_failure_is_only_logged(client, caplog):
    with caplog.at_level(logging.ERROR, logger="bujo.store.cloud"):
        r = await client.post("/parse/classes/Entry", json={"text": "fail after save"}, headers=APP_HEADERS)
    assert r.status_code == 201
    assert "after save failed" in caplog.text


# ── Loader & registry ────────────────────────────────────────────────────────

def test_missing_script_gives_empty_registry(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="bujo.store.cloud"):
        cloud = load_cloud(str(tmp_path / "absent.py"))
    assert cloud.functions == {}
    assert cloud.triggers == {}
    assert "not found" in caplog.text


def test_broken_script_fails_loudly(tmp_path):
    script = tmp_path / "broken.py"
    script.write_text("raise RuntimeError('bad deploy')\n")
    with pytest.raises(RuntimeError):
        load_cloud(str(script))


@pytest.mark.asyncio
async def test_registry_dispatch():
    cloud = Cloud()
    seen = []

    @cloud.after_delete("Task")
    async def gone(request):
        seen.append(request.object["objectId"])

    await cloud.run_after("afterDelete", "Task", CloudRequest(object={"objectId": "abc"}))
    await cloud.run_after("afterDelete", "Other", CloudRequest(object={"objectId": "zzz"}))
    assert seen == ["abc"]

    with pytest.raises(StoreError) as exc:
        await cloud.run_function("missing", CloudRequest())
    assert exc.value.code == 141


@pytest.mark.asyncio
async def test_function_params_must_be_an_object(client):
    r = await client.post(
        "/parse/functions/hello",
        content=b"[1, 2]",
        headers={**APP_HEADERS, "Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["code"] == 107
