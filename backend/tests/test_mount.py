"""Requests under /parse reach the mounted api untouched; nothing else does."""

import json
import logging

import pytest
from httpx import AsyncClient, ASGITransport

from bujo.main import create_app


class StubApi:
    """ASGI app that counts calls and echoes what it was given."""

    def __init__(self):
        self.calls = []
        self.started = False
        self.stopped = False

    async def startup(self):
        self.started = True

    async def shutdown(self):
        self.stopped = True

    async def __call__(self, scope, receive, send):
        message = await receive()
        self.calls.append(scope["path"])
        payload = {
            "method": scope["method"],
            "path": scope["path"],
            "query": scope["query_string"].decode(),
            "body": message.get("body", b"").decode(),
        }
        await send({
            "type": "http.response.start",
            "status": 200,
            "headers": [(b"content-type", b"application/json")],
        })
        await send({"type": "http.response.body", "body": json.dumps(payload).encode()})


@pytest.fixture
def stub():
    return StubApi()


@pytest.fixture
async def stub_client(settings, stub):
    app = create_app(settings, api=stub)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_every_method_is_forwarded(stub_client, stub):
    for method in ("GET", "POST", "PUT", "DELETE"):
        r = await stub_client.request(method, "/parse/classes/Task/abc", content=b"{}")
        assert r.status_code == 200
        assert r.json()["method"] == method
    assert len(stub.calls) == 4
    assert all(p.endswith("/classes/Task/abc") for p in stub.calls)


@pytest.mark.asyncio
async def test_query_and_body_forwarded_untouched(stub_client, stub):
    r = await stub_client.post("/parse/functions/hello?x=1&y=two", content=b'{"name":"Ada"}')
    data = r.json()
    assert data["query"] == "x=1&y=two"
    assert data["body"] == '{"name":"Ada"}'
    assert data["path"].endswith("/functions/hello")
    assert len(stub.calls) == 1


@pytest.mark.asyncio
async def test_static_paths_do_not_reach_api(stub_client, stub):
    assert (await stub_client.get("/")).status_code == 200
    assert (await stub_client.get("/app.js")).status_code == 200
    assert (await stub_client.get("/fonts/roboto/Roboto-Regular.woff2")).status_code == 200
    assert stub.calls == []


@pytest.mark.asyncio
async def test_lifespan_starts_and_stops_api(settings, stub, caplog):
    app = create_app(settings, api=stub)
    with caplog.at_level(logging.INFO, logger="bujo.main"):
        async with app.router.lifespan_context(app):
            assert stub.started
    assert stub.stopped
    assert "bujo server running on port 1337." in caplog.text
