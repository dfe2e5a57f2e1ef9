"""JSON envelope shared by every route: {success, message, data} or {success: false, message, error}."""
from math import ceil

from pydantic import BaseModel
from sqlalchemy.orm import Query


def success_response(data=None, message: str | None = None) -> dict:
    return {"success": True, "message": message or "Opération réussie", "data": data}


def error_response(message: str, error=None) -> dict:
    return {"success": False, "message": message, "error": error}


def dump(schema: type[BaseModel], obj) -> dict:
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


def dump_all(schema: type[BaseModel], objs) -> list[dict]:
    return [dump(schema, o) for o in objs]


def paginate(q: Query, page: int, limit: int) -> tuple[list, dict]:
    total = q.order_by(None).count()
    items = q.offset((page - 1) * limit).limit(limit).all()
    pagination = {"page": page, "limit": limit, "total": total, "pages": ceil(total / limit)}
    return items, pagination
