"""Object CRUD and query endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response

from bujo.store.auth import AuthContext, verify_app_id
from bujo.store.query import DEFAULT_LIMIT, parse_where
from bujo.store.schemas import CreatedResponse, UpdatedResponse, QueryResponse

router = APIRouter(prefix="/classes", tags=["Objects"])


def _service(request: Request):
    return request.app.state.service


@router.post("/{class_name}", response_model=CreatedResponse, status_code=201)
async def create_object(
    class_name: str,
    request: Request,
    response: Response,
    body: Dict[str, Any] = Body(default_factory=dict),
    auth: AuthContext = Depends(verify_app_id),
):
    """Create an object; returns its id and creation time."""
    created = await _service(request).create(class_name, body, master=auth.master)
    response.headers["Location"] = (
        f"{request.app.state.config.server_url}/classes/{class_name}/{created['objectId']}"
    )
    return created


@router.get("/{class_name}", response_model=QueryResponse, response_model_exclude_none=True)
async def query_objects(
    class_name: str,
    request: Request,
    where: Optional[str] = Query(None),
    order: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_LIMIT, ge=0),
    skip: int = Query(0, ge=0),
    keys: Optional[str] = Query(None),
    count: int = Query(0),
    _auth: AuthContext = Depends(verify_app_id),
):
    """Query a class with where/order/limit/skip/keys/count."""
    return await _service(request).find(
        class_name,
        where=parse_where(where),
        order=order,
        limit=limit,
        skip=skip,
        keys=keys,
        count=bool(count),
    )


@router.get("/{class_name}/{object_id}")
async def get_object(
    class_name: str,
    object_id: str,
    request: Request,
    _auth: AuthContext = Depends(verify_app_id),
):
    """Fetch a single object."""
    return await _service(request).get(class_name, object_id)


@router.put("/{class_name}/{object_id}", response_model=UpdatedResponse)
async def update_object(
    class_name: str,
    object_id: str,
    request: Request,
    body: Dict[str, Any] = Body(default_factory=dict),
    auth: AuthContext = Depends(verify_app_id),
):
    """Update fields (plain values or field operators) of an object."""
    return await _service(request).update(class_name, object_id, body, master=auth.master)


@router.delete("/{class_name}/{object_id}")
async def delete_object(
    class_name: str,
    object_id: str,
    request: Request,
    auth: AuthContext = Depends(verify_app_id),
):
    """Delete an object."""
    return await _service(request).delete(class_name, object_id, master=auth.master)
