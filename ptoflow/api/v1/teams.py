from fastapi import APIRouter, Depends, Path, Query

from ptoflow.api.deps import get_services
from ptoflow.api.responses import ok
from ptoflow.core.security import get_admin_user
from ptoflow.schemas.team_schema import TeamIn, TeamMemberIn, TeamUpdate
from ptoflow.services.container import Services

router = APIRouter(prefix="/teams", tags=["teams"])


@router.get("")
async def get_teams(services: Services = Depends(get_services)):
    return ok(await services.teams.get_all_teams())


@router.post("", status_code=201)
async def create_team(
    payload: TeamIn,
    services: Services = Depends(get_services),
    admin: dict = Depends(get_admin_user),
):
    return ok(await services.teams.create_team(payload), "Team created successfully")


@router.get("/{team_id}")
async def get_team(team_id: str = Path(...), services: Services = Depends(get_services)):
    return ok(await services.teams.get_team_by_id(team_id))


@router.patch("/{team_id}")
async def update_team(
    payload: TeamUpdate,
    team_id: str = Path(...),
    services: Services = Depends(get_services),
    admin: dict = Depends(get_admin_user),
):
    return ok(await services.teams.update_team(team_id, payload), "Team updated successfully")


@router.delete("/{team_id}")
async def delete_team(
    team_id: str = Path(...),
    services: Services = Depends(get_services),
    admin: dict = Depends(get_admin_user),
):
    deleted = await services.teams.delete_team(team_id)
    return {"success": deleted, "message": "Team deleted successfully" if deleted else "Failed to delete team"}


@router.post("/{team_id}/members")
async def add_team_member(
    payload: TeamMemberIn,
    team_id: str = Path(...),
    services: Services = Depends(get_services),
    admin: dict = Depends(get_admin_user),
):
    return ok(await services.teams.add_user_to_team(team_id, payload), "Team member added successfully")


@router.delete("/{team_id}/members/{user_id}")
async def remove_team_member(
    team_id: str = Path(...),
    user_id: str = Path(...),
    services: Services = Depends(get_services),
    admin: dict = Depends(get_admin_user),
):
    return ok(await services.teams.remove_user_from_team(team_id, user_id), "Team member removed successfully")


@router.get("/{team_id}/analytics")
async def team_analytics(
    team_id: str = Path(...),
    date_range: str = Query("current_month"),
    services: Services = Depends(get_services),
):
    return ok(await services.teams.get_team_analytics(team_id, date_range))


@router.get("/{team_id}/pto-requests")
async def team_pto_requests(
    team_id: str = Path(...),
    date_range: str = Query("current_month"),
    services: Services = Depends(get_services),
):
    return ok(await services.teams.get_team_pto_requests(team_id, date_range))
