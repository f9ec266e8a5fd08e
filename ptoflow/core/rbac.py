from typing import Optional

from ptoflow.core.errors import ForbiddenError


def is_admin(user: Optional[dict]) -> bool:
    return bool(user) and user.get("isAdmin") is True


def is_manager(user: Optional[dict]) -> bool:
    return bool(user) and isinstance(user.get("isManager"), list) and len(user["isManager"]) > 0


def is_executive_manager(user: Optional[dict]) -> bool:
    return bool(user) and isinstance(user.get("isExecutive_Manager"), list) and len(user["isExecutive_Manager"]) > 0


def require_admin(user: Optional[dict]) -> None:
    if not is_admin(user):
        raise ForbiddenError("Administrator rights required")


def derived_role_flags(memberships: list[dict]) -> dict:
    """Team ids the user manages / executive-manages, from their memberships."""
    return {
        "isManager": [m["team_id"] for m in memberships if m.get("role") == "Manager"],
        "isExecutive_Manager": [m["team_id"] for m in memberships if m.get("role") == "Executive Manager"],
    }


def require_self_or_admin(user: Optional[dict], user_id: str) -> None:
    if is_admin(user) or (user and user.get("user_id") == user_id):
        return
    raise ForbiddenError("You can only change your own profile")
