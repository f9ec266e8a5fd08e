from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from ptoflow.api.deps import get_services
from ptoflow.api.responses import ok
from ptoflow.core.errors import ForbiddenError, NotFoundError
from ptoflow.core.rbac import is_admin, is_executive_manager, is_manager, require_self_or_admin
from ptoflow.core.security import get_admin_user, get_current_user
from ptoflow.schemas.user_schema import AdminFlagIn, UserIn, UserUpdate
from ptoflow.services.container import Services

router = APIRouter(prefix="/users", tags=["users"])

# Fields a user may not change on their own record
ADMIN_ONLY_FIELDS = {"team_memberships", "status", "pto_available_in_the_period"}


@router.get("/me")
async def get_me(current_user: dict = Depends(get_current_user)):
    return ok(current_user)


@router.get("/me/roles")
async def get_my_roles(current_user: dict = Depends(get_current_user)):
    return ok(
        {
            "isAdmin": is_admin(current_user),
            "isManager": is_manager(current_user),
            "isExecutiveManager": is_executive_manager(current_user),
        }
    )


@router.get("/search")
async def search_users(query: Optional[str] = Query(None), services: Services = Depends(get_services)):
    return ok(await services.users.search_users(query))


@router.get("")
async def list_users(
    include_inactive: bool = Query(False),
    services: Services = Depends(get_services),
):
    return ok(await services.users.get_all_users(include_inactive=include_inactive))


@router.post("", status_code=201)
async def create_user(
    payload: UserIn,
    services: Services = Depends(get_services),
    admin: dict = Depends(get_admin_user),
):
    return ok(await services.users.create_user(payload), "User created successfully")


@router.get("/{user_id}")
async def get_user(user_id: str = Path(...), services: Services = Depends(get_services)):
    user = await services.users.get_user_by_id(user_id)
    if not user:
        raise NotFoundError(f"User not found: {user_id}")
    return ok(user)


@router.patch("/{user_id}")
async def update_user(
    payload: UserUpdate,
    user_id: str = Path(...),
    services: Services = Depends(get_services),
    current_user: dict = Depends(get_current_user),
):
    require_self_or_admin(current_user, user_id)
    if not is_admin(current_user) and ADMIN_ONLY_FIELDS & payload.model_fields_set:
        raise ForbiddenError("Administrator rights required")
    return ok(await services.users.update_user(user_id, payload), "User updated successfully")


@router.delete("/{user_id}")
async def deactivate_user(
    user_id: str = Path(...),
    services: Services = Depends(get_services),
    admin: dict = Depends(get_admin_user),
):
    return ok(await services.users.deactivate_user(user_id), "User deactivated")


@router.put("/{user_id}/admin")
async def set_admin(
    payload: AdminFlagIn,
    user_id: str = Path(...),
    services: Services = Depends(get_services),
    admin: dict = Depends(get_admin_user),
):
    return ok(await services.users.set_admin(user_id, payload.is_admin))


@router.get("/{user_id}/managers")
async def get_user_managers(user_id: str = Path(...), services: Services = Depends(get_services)):
    return ok(await services.users.get_user_managers(user_id))


@router.get("/{user_id}/teams")
async def get_user_teams(user_id: str = Path(...), services: Services = Depends(get_services)):
    return ok(await services.teams.get_user_teams(user_id))


@router.post("/{user_id}/balances/recalculate")
async def recalculate_balances(user_id: str = Path(...), services: Services = Depends(get_services)):
    user = await services.balances.recalculate(user_id)
    return ok(
        {
            "used_pto_days_in_period": user.get("used_pto_days_in_period"),
            "remaining_pto_days_in_period": user.get("remaining_pto_days_in_period"),
        }
    )
