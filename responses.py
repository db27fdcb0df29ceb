"""
Response envelope.

Every route answers with ``{status_code, data, message, success}`` and every
failure with ``{status_code, error_kind, message, success}``. Documents coming
out of MongoDB are made JSON friendly by ``to_str_id``.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi.responses import JSONResponse
from pydantic import BaseModel


def to_str_id(doc: Any) -> Any:
    """Recursively swap ``_id`` for a string ``id`` and ObjectIds/datetimes for strings."""
    if isinstance(doc, dict):
        d = {}
        for k, v in doc.items():
            if k == "_id":
                d["id"] = to_str_id(v)
            else:
                d[k] = to_str_id(v)
        return d
    if isinstance(doc, (list, tuple)):
        return [to_str_id(v) for v in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    if isinstance(doc, BaseModel):
        return to_str_id(doc.model_dump())
    return doc


class ApiResponse(BaseModel):
    status_code: int = 200
    data: Any = None
    message: str = "Success"
    success: bool = True


class ApiErrorResponse(BaseModel):
    status_code: int
    error_kind: str
    message: str
    success: bool = False


def ok(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    body = ApiResponse(status_code=status_code, data=to_str_id(data), message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def fail(status_code: int, error_kind: str, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    body = ApiErrorResponse(status_code=status_code, error_kind=error_kind, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)
