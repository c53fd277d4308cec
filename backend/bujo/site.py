"""Static site routes: bundled fonts, top-level files and the root document."""

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse


def resolve_static(root: str, name: str) -> Optional[Path]:
    """Resolve a single path segment to a regular file inside ``root``.

    Returns None for hidden names (leading dot), multi-segment names, and
    anything that would resolve outside ``root``.
    """
    if not name or name.startswith(".") or "/" in name or "\\" in name or "\x00" in name:
        return None
    base = Path(root).resolve()
    candidate = (base / name).resolve()
    if candidate.parent != base or not candidate.is_file():
        return None
    return candidate


def _send_file(root: str, name: str) -> FileResponse:
    path = resolve_static(root, name)
    if path is None:
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(str(path))


def register_site_routes(app: FastAPI, site_dir: str, fonts_subdir: str, index_document: str):
    """Register the static routes in precedence order: fonts, single file, root."""
    fonts_subdir = fonts_subdir.strip("/")
    fonts_dir = str(Path(site_dir) / fonts_subdir)

    @app.api_route(f"/{fonts_subdir}/{{file}}", methods=["GET", "HEAD"], include_in_schema=False)
    async def font_file(file: str):
        return _send_file(fonts_dir, file)

    @app.api_route("/{file}", methods=["GET", "HEAD"], include_in_schema=False)
    async def site_file(file: str):
        return _send_file(site_dir, file)

    @app.api_route("/", methods=["GET", "HEAD"], include_in_schema=False)
    async def root_document():
        return _send_file(site_dir, index_document)
