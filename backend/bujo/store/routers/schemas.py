"""Class schema listing (master key only)."""

from fastapi import APIRouter, Depends, Request

from bujo.store.auth import AuthContext, require_master, verify_app_id
from bujo.store.schemas import ClassSchemaListResponse

router = APIRouter(prefix="/schemas", tags=["Schemas"])


@router.get("", response_model=ClassSchemaListResponse)
async def list_schemas(
    request: Request,
    auth: AuthContext = Depends(verify_app_id),
):
    require_master(auth)
    return ClassSchemaListResponse(results=await request.app.state.service.schemas())
