from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from ptoflow.api.deps import get_services
from ptoflow.api.responses import ok
from ptoflow.core.errors import RecordValidationError
from ptoflow.core.security import get_admin_user
from ptoflow.schemas.common import LeaveType, RequestStatus
from ptoflow.schemas.pto_schema import ApproveIn, DeclineIn, PTORequestIn, PTORequestUpdate
from ptoflow.services.container import Services

router = APIRouter(prefix="/pto-requests", tags=["pto-requests"])


@router.post("", status_code=201)
async def create_pto_request(payload: PTORequestIn, services: Services = Depends(get_services)):
    request = await services.pto.create_pto_request(payload)
    return ok(request, "PTO request submitted successfully")


@router.get("")
async def list_pto_requests(
    requester_id: Optional[list[str]] = Query(None),
    manager_id: Optional[list[str]] = Query(None),
    status: Optional[list[RequestStatus]] = Query(None),
    leave_type: Optional[list[LeaveType]] = Query(None),
    services: Services = Depends(get_services),
):
    # Repeated query params become "is one of" filters
    params = {"requester_id": requester_id, "manager_id": manager_id, "status": status, "leave_type": leave_type}
    filters = {k: v for k, v in params.items() if v}
    return ok(await services.pto.get_pto_requests(filters))


@router.get("/daily-schedules")
async def daily_schedules(
    start_date: date = Query(...),
    end_date: date = Query(...),
    services: Services = Depends(get_services),
):
    if start_date > end_date:
        raise RecordValidationError("start_date", "on or before end_date", "Start date cannot be after end date")
    return ok(await services.pto.get_daily_schedules(start_date, end_date))


@router.get("/user/{user_id}")
async def user_pto_requests(user_id: str = Path(...), services: Services = Depends(get_services)):
    return ok(await services.pto.get_user_pto_requests(user_id))


@router.get("/pending/{manager_id}")
async def manager_pending_approvals(manager_id: str = Path(...), services: Services = Depends(get_services)):
    return ok(await services.pto.get_manager_pending_approvals(manager_id))


@router.get("/{request_id}")
async def get_pto_request(request_id: str = Path(...), services: Services = Depends(get_services)):
    return ok(await services.pto.get_pto_request(request_id))


@router.post("/{request_id}/approve")
async def approve_pto_request(
    payload: ApproveIn,
    request_id: str = Path(...),
    services: Services = Depends(get_services),
):
    request = await services.pto.approve_pto_request(request_id, payload.approver_id)
    return ok(request, "PTO request approved successfully")


@router.post("/{request_id}/decline")
async def decline_pto_request(
    payload: DeclineIn,
    request_id: str = Path(...),
    services: Services = Depends(get_services),
):
    request = await services.pto.decline_pto_request(request_id, payload.decliner_id, payload.reason)
    return ok(request, "PTO request declined successfully")


@router.patch("/{request_id}")
async def update_pto_request(
    payload: PTORequestUpdate,
    request_id: str = Path(...),
    services: Services = Depends(get_services),
):
    return ok(await services.pto.update_pto_request(request_id, payload), "PTO request updated successfully")


@router.delete("/{request_id}")
async def delete_pto_request(
    request_id: str = Path(...),
    services: Services = Depends(get_services),
    admin: dict = Depends(get_admin_user),
):
    deleted = await services.pto.delete_pto_request(request_id)
    return {"success": deleted, "message": "PTO request deleted" if deleted else "Failed to delete PTO request"}
