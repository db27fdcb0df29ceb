from typing import Any, Optional

from bson import ObjectId

from database import objid
from errors import BadRequestError


def require_text(value: Optional[str], message: str) -> str:
    """Return ``value`` stripped, or fail when it is missing or blank."""
    if value is None or not str(value).strip():
        raise BadRequestError(message)
    return str(value).strip()


def optional_objid(value: Any, name: str) -> Optional[ObjectId]:
    if value is None or value == "":
        return None
    return objid(value, name)


def require_password(value: Optional[str], message: str = "Password is required") -> str:
    """Fail on a missing or all-whitespace password; the value itself is kept as typed."""
    if value is None or not str(value).strip():
        raise BadRequestError(message)
    return value


def require_content(value: Optional[str], message: str, max_length: int) -> str:
    """``require_text`` plus an upper bound on the trimmed length."""
    text = require_text(value, message)
    if len(text) > max_length:
        raise BadRequestError(f"Content must be at most {max_length} characters")
    return text
