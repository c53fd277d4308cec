"""Cloud function endpoint."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request

from bujo.store.auth import AuthContext, verify_app_id
from bujo.store.cloud import CloudRequest
from bujo.store.schemas import FunctionResponse

router = APIRouter(prefix="/functions", tags=["Cloud"])


@router.post("/{name}", response_model=FunctionResponse)
async def call_function(
    name: str,
    request: Request,
    params: Dict[str, Any] = Body(default_factory=dict),
    auth: AuthContext = Depends(verify_app_id),
):
    """Run a function registered by the cloud script."""
    cloud_request = CloudRequest(
        master=auth.master,
        params=params,
        headers=dict(request.headers),
    )
    result = await request.app.state.service.cloud.run_function(name, cloud_request)
    return FunctionResponse(result=result)
