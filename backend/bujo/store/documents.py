"""Document persistence: create, fetch, update, delete and query objects."""

import logging
import re
import secrets
import string
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bujo.store.cloud import Cloud, CloudRequest
from bujo.store.errors import (
    StoreError, OBJECT_NOT_FOUND, INVALID_CLASS_NAME, INVALID_KEY_NAME, INVALID_JSON,
)
from bujo.store.models import Document
from bujo.store.query import DEFAULT_LIMIT, matches, sort_objects, select_keys

logger = logging.getLogger(__name__)

RESERVED_FIELDS = ("objectId", "createdAt", "updatedAt")

_CLASS_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ID_ALPHABET = string.ascii_letters + string.digits


def new_object_id() -> str:
    """10-character alphanumeric object id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(10))


def format_date(dt: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    # SQLite hands back naive datetimes; they were stored as UTC.
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def to_wire(doc: Document) -> Dict[str, Any]:
    obj = dict(doc.data or {})
    obj["objectId"] = doc.object_id
    obj["createdAt"] = format_date(doc.created_at)
    obj["updatedAt"] = format_date(doc.updated_at or doc.created_at)
    return obj


def validate_class_name(class_name: str):
    if not _CLASS_NAME_RE.match(class_name):
        raise StoreError(INVALID_CLASS_NAME, f"Invalid class name: {class_name}")


def _validate_key(key: str):
    if not key or key.startswith("$") or key.startswith("__") or "." in key:
        raise StoreError(INVALID_KEY_NAME, f"Invalid field name: {key}")


def apply_ops(current: Dict[str, Any], body: Dict[str, Any]) -> Dict[str, Any]:
    """Return a new field dict with ``body`` applied on top of ``current``.

    Values of the form ``{"__op": ...}`` are field operators; anything else
    replaces the stored value. Reserved fields are ignored.
    """
    if not isinstance(body, dict):
        raise StoreError(INVALID_JSON, "request body must be a JSON object")
    result = dict(current)
    for key, value in body.items():
        if key in RESERVED_FIELDS:
            continue
        _validate_key(key)
        if isinstance(value, dict) and "__op" in value:
            _apply_op(result, key, value)
        else:
            result[key] = value
    return result


def _apply_op(fields: Dict[str, Any], key: str, op: Dict[str, Any]):
    name = op["__op"]
    if name == "Delete":
        fields.pop(key, None)
    elif name == "Increment":
        amount = op.get("amount", 1)
        existing = fields.get(key, 0)
        if not isinstance(amount, (int, float)) or not isinstance(existing, (int, float)):
            raise StoreError(INVALID_JSON, f"cannot increment non-number field {key}")
        fields[key] = existing + amount
    elif name in ("Add", "AddUnique", "Remove"):
        objects = op.get("objects")
        if not isinstance(objects, list):
            raise StoreError(INVALID_JSON, f"{name} requires an objects array")
        existing = list(fields.get(key) or [])
        if name == "Add":
            existing.extend(objects)
        elif name == "AddUnique":
            existing.extend(o for o in objects if o not in existing)
        else:
            existing = [o for o in existing if o not in objects]
        fields[key] = existing
    else:
        raise StoreError(INVALID_JSON, f"unknown operator: {name}")


def infer_type(value: Any) -> str:
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, (int, float)):
        return "Number"
    if isinstance(value, str):
        return "String"
    if isinstance(value, list):
        return "Array"
    if isinstance(value, dict):
        return value.get("__type") if value.get("__type") in ("Date", "Pointer", "File", "GeoPoint") else "Object"
    return "Object"


class DocumentService:
    """All object operations, bound to one database and one cloud registry."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession], cloud: Cloud):
        self.sessionmaker = sessionmaker
        self.cloud = cloud

    @asynccontextmanager
    async def session(self):
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _load(self, session: AsyncSession, class_name: str, object_id: str) -> Document:
        result = await session.execute(
            select(Document).where(
                Document.class_name == class_name,
                Document.object_id == object_id,
            )
        )
        doc = result.scalar_one_or_none()
        if not doc:
            raise StoreError(OBJECT_NOT_FOUND, "Object not found.")
        return doc

    async def create(self, class_name: str, body: Dict[str, Any], master: bool = False) -> Dict[str, str]:
        validate_class_name(class_name)
        fields = apply_ops({}, body)

        request = CloudRequest(master=master, class_name=class_name, object=fields)
        await self.cloud.run_before_save(class_name, request)

        async with self.session() as session:
            doc = Document(
                object_id=new_object_id(),
                class_name=class_name,
                data=request.object,
            )
            session.add(doc)
            await session.flush()
            await session.refresh(doc)
            wire = to_wire(doc)

        logger.debug(f"Created {class_name}/{doc.object_id}")
        await self.cloud.run_after(
            "afterSave", class_name,
            CloudRequest(master=master, class_name=class_name, object=wire),
        )
        return {"objectId": wire["objectId"], "createdAt": wire["createdAt"]}

    async def get(self, class_name: str, object_id: str) -> Dict[str, Any]:
        validate_class_name(class_name)
        async with self.session() as session:
            doc = await self._load(session, class_name, object_id)
            return to_wire(doc)

    async def update(
        self, class_name: str, object_id: str, body: Dict[str, Any], master: bool = False,
    ) -> Dict[str, str]:
        validate_class_name(class_name)
        async with self.session() as session:
            doc = await self._load(session, class_name, object_id)
            original = to_wire(doc)
            fields = apply_ops(doc.data or {}, body)

            request = CloudRequest(
                master=master, class_name=class_name, object=fields, original=original,
            )
            await self.cloud.run_before_save(class_name, request)

            # Assign a new dict so the JSON column is flagged dirty.
            doc.data = dict(request.object)
            doc.updated_at = datetime.now(timezone.utc)
            await session.flush()
            wire = to_wire(doc)

        await self.cloud.run_after(
            "afterSave", class_name,
            CloudRequest(master=master, class_name=class_name, object=wire, original=original),
        )
        return {"updatedAt": wire["updatedAt"]}

    async def delete(self, class_name: str, object_id: str, master: bool = False) -> Dict[str, Any]:
        validate_class_name(class_name)
        async with self.session() as session:
            doc = await self._load(session, class_name, object_id)
            wire = to_wire(doc)
            await session.execute(delete(Document).where(Document.id == doc.id))

        await self.cloud.run_after(
            "afterDelete", class_name,
            CloudRequest(master=master, class_name=class_name, object=wire),
        )
        return {}

    async def find(
        self,
        class_name: str,
        where: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
        skip: int = 0,
        keys: Optional[str] = None,
        count: bool = False,
    ) -> Dict[str, Any]:
        validate_class_name(class_name)
        skip, limit = max(skip, 0), max(limit, 0)
        if not where and not order:
            return await self._find_page(class_name, limit, skip, keys, count)

        # Constraints run on the JSON wire form, so a filtered or ordered
        # query scans every object of the class before paging.
        async with self.session() as session:
            result = await session.execute(
                select(Document)
                .where(Document.class_name == class_name)
                .order_by(Document.created_at, Document.id)
            )
            objects = [to_wire(d) for d in result.scalars().all()]

        objects = [o for o in objects if matches(o, where or {})]
        total = len(objects)
        objects = sort_objects(objects, order)
        objects = objects[skip:skip + limit]

        response: Dict[str, Any] = {"results": select_keys(objects, keys)}
        if count:
            response["count"] = total
        return response

    async def _find_page(
        self, class_name: str, limit: int, skip: int, keys: Optional[str], count: bool,
    ) -> Dict[str, Any]:
        """Unfiltered query in creation order; paging happens in SQL."""
        async with self.session() as session:
            result = await session.execute(
                select(Document)
                .where(Document.class_name == class_name)
                .order_by(Document.created_at, Document.id)
                .offset(skip)
                .limit(limit)
            )
            objects = [to_wire(d) for d in result.scalars().all()]
            response: Dict[str, Any] = {"results": select_keys(objects, keys)}
            if count:
                total = await session.execute(
                    select(func.count(Document.id)).where(Document.class_name == class_name)
                )
                response["count"] = total.scalar() or 0
        return response

    async def schemas(self) -> List[Dict[str, Any]]:
        """Every class with field types inferred from its stored objects."""
        async with self.session() as session:
            result = await session.execute(select(Document).order_by(Document.class_name, Document.id))
            docs = result.scalars().all()

        classes: Dict[str, Dict[str, Dict[str, str]]] = {}
        for doc in docs:
            fields = classes.setdefault(doc.class_name, {
                "objectId": {"type": "String"},
                "createdAt": {"type": "Date"},
                "updatedAt": {"type": "Date"},
            })
            for key, value in (doc.data or {}).items():
                fields.setdefault(key, {"type": infer_type(value)})
        return [{"className": name, "fields": fields} for name, fields in classes.items()]
