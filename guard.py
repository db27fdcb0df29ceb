from typing import Any, Dict, NamedTuple, Optional

from errors import ForbiddenError

NOT_OWNER = "you are not the owner"
NO_OWNER = "the resource has no owner or the caller is anonymous"


class Decision(NamedTuple):
    allowed: bool
    reason: Optional[str] = None


def authorize(resource_owner_id: Any, caller_id: Any) -> Decision:
    """Owner check on the string form of both ids (ObjectId vs str safe)."""
    if resource_owner_id is None or caller_id is None:
        return Decision(False, NO_OWNER)
    if str(resource_owner_id) != str(caller_id):
        return Decision(False, NOT_OWNER)
    return Decision(True)


def ensure_owner(resource: Dict[str, Any], caller_id: Any, action: str, owner_field: str = "owner") -> None:
    decision = authorize(resource.get(owner_field), caller_id)
    if not decision.allowed:
        raise ForbiddenError(f"You cannot {action} as {decision.reason}")
