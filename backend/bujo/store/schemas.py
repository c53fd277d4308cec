"""Pydantic request/response schemas."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


# ── Object Schemas ───────────────────────────────────────────────────────────

class CreatedResponse(BaseModel):
    objectId: str
    createdAt: str


class UpdatedResponse(BaseModel):
    updatedAt: str


class QueryResponse(BaseModel):
    results: List[Dict[str, Any]]
    count: Optional[int] = None


# ── Cloud Schemas ────────────────────────────────────────────────────────────

class FunctionResponse(BaseModel):
    result: Any = None


# ── Batch Schemas ────────────────────────────────────────────────────────────

class BatchOperation(BaseModel):
    method: str
    path: str
    body: Dict[str, Any] = Field(default_factory=dict)


class BatchRequest(BaseModel):
    requests: List[BatchOperation]


# ── Schema Schemas ───────────────────────────────────────────────────────────

class ClassSchema(BaseModel):
    className: str
    fields: Dict[str, Dict[str, str]]


class ClassSchemaListResponse(BaseModel):
    results: List[ClassSchema]


# ── Health ───────────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
