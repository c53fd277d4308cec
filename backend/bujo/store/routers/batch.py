"""Batch endpoint: several object operations in one request."""

import re
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request

from bujo.store.auth import AuthContext, verify_app_id
from bujo.store.errors import StoreError, INVALID_JSON
from bujo.store.schemas import BatchRequest

router = APIRouter(tags=["Batch"])

MAX_BATCH = 50

_PATH_RE = re.compile(r"^/classes/(?P<class_name>[^/]+)(?:/(?P<object_id>[^/]+))?/?$")


def _relative_path(path: str, mount_path: str) -> str:
    """Strip the api mount path (e.g. ``/parse``) from a sub-request path."""
    if mount_path and path.startswith(mount_path + "/"):
        return path[len(mount_path):]
    return path


async def _run_one(service, method: str, path: str, body: Dict[str, Any], master: bool) -> Any:
    match = _PATH_RE.match(path)
    if not match:
        raise StoreError(INVALID_JSON, f"cannot route batch request path: {path}")
    class_name, object_id = match.group("class_name"), match.group("object_id")

    if method == "POST" and object_id is None:
        return await service.create(class_name, body, master=master)
    if method == "GET" and object_id is not None:
        return await service.get(class_name, object_id)
    if method == "PUT" and object_id is not None:
        return await service.update(class_name, object_id, body, master=master)
    if method == "DELETE" and object_id is not None:
        return await service.delete(class_name, object_id, master=master)
    raise StoreError(INVALID_JSON, f"unsupported batch operation: {method} {path}")


@router.post("/batch")
async def run_batch(
    body: BatchRequest,
    request: Request,
    auth: AuthContext = Depends(verify_app_id),
) -> List[Dict[str, Any]]:
    """Execute sub-requests in order; each gets its own success or error entry."""
    if len(body.requests) > MAX_BATCH:
        raise StoreError(INVALID_JSON, f"too many batch requests (max {MAX_BATCH})")

    service = request.app.state.service
    mount_path = request.app.state.config.mount_path
    results: List[Dict[str, Any]] = []
    for op in body.requests:
        path = _relative_path(op.path, mount_path)
        try:
            result = await _run_one(service, op.method.upper(), path, op.body, auth.master)
            results.append({"success": result})
        except StoreError as e:
            results.append({"error": e.to_dict()})
    return results
