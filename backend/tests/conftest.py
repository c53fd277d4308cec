"""Shared fixtures: a throwaway site tree, cloud script and SQLite database."""

import pytest
from httpx import AsyncClient, ASGITransport

from bujo.config import Settings
from bujo.main import create_app

APP_HEADERS = {"X-Parse-Application-Id": "bujo"}
MASTER_HEADERS = {**APP_HEADERS, "X-Parse-Master-Key": "bujo"}

FONT_BYTES = b"wOF2\x00\x01\x00\x00fake-font"

CLOUD_SCRIPT = '''
@cloud.define("hello")
def hello(request):
    return f"Hello {request.params.get('name', 'world')}!"


@cloud.define("whoami")
async def whoami(request):
    return {"master": request.master}


@cloud.define("explode")
def explode(request):
    raise RuntimeError("kaboom")


@cloud.before_save("Entry")
def entry_defaults(request):
    if not request.object.get("text", "").strip():
        raise cloud.Error(142, "An entry needs some text.")
    request.object.setdefault("done", False)


@cloud.after_save("Entry")
def entry_saved(request):
    if request.object.get("text") == "fail after save":
        raise RuntimeError("after save failed")
'''


@pytest.fixture
def site_dir(tmp_path):
    site = tmp_path / "_site"
    fonts = site / "fonts" / "roboto"
    fonts.mkdir(parents=True)
    (site / "index.html").write_text('<html><body><div id="root"></div></body></html>')
    (site / "app.js").write_text("console.log('bujo');")
    (site / ".secret").write_text("hidden")
    (fonts / "Roboto-Regular.woff2").write_bytes(FONT_BYTES)
    (tmp_path / "outside.txt").write_text("not part of the site")
    return site


@pytest.fixture
def cloud_script(tmp_path):
    script = tmp_path / "cloud" / "main.py"
    script.parent.mkdir()
    script.write_text(CLOUD_SCRIPT)
    return script


@pytest.fixture
def settings(tmp_path, site_dir, cloud_script):
    return Settings(
        DATABASE_URI=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        CLOUD=str(cloud_script),
        SITE_DIR=str(site_dir),
    )


@pytest.fixture
async def app(settings):
    application = create_app(settings)
    yield application
    await application.state.api.shutdown()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
