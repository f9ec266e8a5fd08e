import asyncio
import logging
from datetime import date
from typing import Any, Optional

from ptoflow.core.errors import InvalidTransitionError, NotFoundError, RecordValidationError
from ptoflow.db.record_store import RecordStore, generate_id, utcnow_iso
from ptoflow.db.schema import PTO_DAILY_SCHEDULES, PTO_REQUESTS
from ptoflow.schemas.pto_schema import PTORequestIn, PTORequestUpdate
from ptoflow.services import events as ev
from ptoflow.services.balance_service import calculate_totals, hours_for_schedule_type
from ptoflow.services.events import PostCommitEvents


logger = logging.getLogger("uvicorn.error")

# Copied from the request onto each daily schedule row
SNAPSHOT_FIELDS = (
    "requester_id",
    "requester_name",
    "requester_email",
    "manager_id",
    "manager_name",
    "manager_email",
    "executive_manager_id",
    "executive_manager_name",
    "executive_manager_email",
)

EDITABLE_FIELDS = SNAPSHOT_FIELDS[3:] + ("leave_type", "reason", "start_date", "end_date")


def _serialize_schedules(schedules) -> list[dict]:
    return [
        {"date": s.date.isoformat(), "schedule_type": s.schedule_type.value}
        for s in schedules
    ]


class PTOService:
    def __init__(self, store: RecordStore, events: PostCommitEvents) -> None:
        self.store = store
        self.events = events

    async def _require(self, request_id: str) -> dict:
        request = await self.store.get_by_id(PTO_REQUESTS, request_id)
        if not request:
            raise NotFoundError(f"PTO request not found: {request_id}")
        return request

    async def _write_schedules(self, request: dict, schedules: list[dict]) -> list[dict]:
        rows = []
        for schedule in schedules:
            row = {
                "pto_daily_schedule_id": generate_id(),
                "pto_request_id": request["pto_request_id"],
                "date": schedule["date"],
                "schedule_type": schedule["schedule_type"],
                "leave_type": request.get("leave_type"),
                "hours": hours_for_schedule_type(schedule["schedule_type"]),
            }
            for field in SNAPSHOT_FIELDS:
                row[field] = request.get(field)
            rows.append(row)
        # Order among the schedule writes does not matter
        return list(await asyncio.gather(*(self.store.create(PTO_DAILY_SCHEDULES, r) for r in rows)))

    async def create_pto_request(self, data: PTORequestIn) -> dict:
        schedules = _serialize_schedules(data.daily_schedules)
        total_days, total_hours = calculate_totals(schedules)
        record = data.model_dump(mode="json", exclude={"daily_schedules"})
        record.update(
            {
                "pto_request_id": generate_id(),
                "status": "pending",
                "submitted_at": utcnow_iso(),
                "daily_schedules": schedules,
                "total_days": total_days,
                "total_hours": total_hours,
            }
        )
        request = await self.store.create(PTO_REQUESTS, record)
        await self._write_schedules(request, schedules)
        await self.events.emit(ev.PTO_REQUEST_CREATED, request)
        return request

    async def get_pto_request(self, request_id: str) -> dict:
        request = await self._require(request_id)
        request["daily_schedule_rows"] = await self.get_request_schedules(request_id)
        return request

    async def get_request_schedules(self, request_id: str) -> list[dict]:
        rows = await self.store.find_by_field(PTO_DAILY_SCHEDULES, "pto_request_id", request_id)
        return sorted(rows, key=lambda r: r.get("date") or "")

    async def get_pto_requests(self, filters: Optional[dict[str, Any]] = None) -> list[dict]:
        """Requests matching ``filters`` (exact or list-membership), each with its schedule rows."""
        requests = await self.store.find_all(PTO_REQUESTS, filters)
        if not requests:
            return []
        ids = {r["pto_request_id"] for r in requests}
        rows = await self.store.query(PTO_DAILY_SCHEDULES, lambda s: s.get("pto_request_id") in ids)
        by_request: dict[str, list[dict]] = {}
        for row in sorted(rows, key=lambda r: r.get("date") or ""):
            by_request.setdefault(row["pto_request_id"], []).append(row)
        for request in requests:
            request["daily_schedule_rows"] = by_request.get(request["pto_request_id"], [])
        return sorted(requests, key=lambda r: r.get("submitted_at") or "", reverse=True)

    async def get_user_pto_requests(self, user_id: str) -> list[dict]:
        return await self.store.query(PTO_REQUESTS, lambda r: r.get("requester_id") == user_id)

    async def get_manager_pending_approvals(self, manager_id: str) -> list[dict]:
        return await self.store.query(
            PTO_REQUESTS,
            lambda r: (r.get("manager_id") == manager_id or r.get("executive_manager_id") == manager_id)
            and r.get("status") == "pending",
        )

    async def get_daily_schedules(self, start_date: date, end_date: date) -> list[dict]:
        start, end = start_date.isoformat(), end_date.isoformat()
        rows = await self.store.query(PTO_DAILY_SCHEDULES, lambda s: start <= (s.get("date") or "")[:10] <= end)
        return sorted(rows, key=lambda r: r.get("date") or "")

    async def _transition(self, request_id: str, target: str, changes: dict) -> dict:
        request = await self._require(request_id)
        current = request.get("status")
        if current != "pending":
            raise InvalidTransitionError(request_id, current, target)
        return await self.store.update(PTO_REQUESTS, request_id, {"status": target, "reviewed_at": utcnow_iso(), **changes})

    async def approve_pto_request(self, request_id: str, approver_id: str) -> dict:
        updated = await self._transition(request_id, "approved", {"reviewed_by": approver_id})
        await self.events.emit(ev.PTO_REQUEST_APPROVED, updated)
        return updated

    async def decline_pto_request(self, request_id: str, decliner_id: str, reason: Optional[str] = None) -> dict:
        updated = await self._transition(
            request_id, "declined", {"reviewed_by": decliner_id, "reviewer_reason": reason or ""}
        )
        await self.events.emit(ev.PTO_REQUEST_DECLINED, updated)
        return updated

    async def update_pto_request(self, request_id: str, data: PTORequestUpdate) -> dict:
        request = await self._require(request_id)
        if request.get("status") != "pending":
            raise InvalidTransitionError(request_id, request.get("status"), "edited")
        raw = data.model_dump(mode="json", exclude_unset=True)
        changes = {k: v for k, v in raw.items() if k in EDITABLE_FIELDS and v is not None}
        start = changes.get("start_date", request.get("start_date"))
        end = changes.get("end_date", request.get("end_date"))
        if start and end and start > end:
            raise RecordValidationError("start_date", "on or before end_date", "Start date cannot be after end date")

        new_schedules = None
        if data.daily_schedules is not None:
            new_schedules = _serialize_schedules(data.daily_schedules)
        elif "leave_type" in changes:
            new_schedules = request.get("daily_schedules") or []
        # Moving the range re-checks the schedules that are already stored
        kept = new_schedules if new_schedules is not None else request.get("daily_schedules") or []
        if new_schedules is not None or "start_date" in changes or "end_date" in changes:
            outside = [s["date"] for s in kept if start and end and not (start <= s["date"] <= end)]
            if outside:
                raise RecordValidationError(
                    "daily_schedules",
                    "dates inside the requested range",
                    f"Daily schedules outside the requested range: {', '.join(outside)}",
                )
        if new_schedules is not None:
            total_days, total_hours = calculate_totals(new_schedules)
            changes.update({"daily_schedules": new_schedules, "total_days": total_days, "total_hours": total_hours})

        updated = await self.store.update(PTO_REQUESTS, request_id, changes)
        if new_schedules is not None:
            for row in await self.store.find_by_field(PTO_DAILY_SCHEDULES, "pto_request_id", request_id):
                await self.store.delete(PTO_DAILY_SCHEDULES, row["pto_daily_schedule_id"])
            await self._write_schedules(updated, new_schedules)
        await self.events.emit(ev.PTO_REQUEST_UPDATED, updated)
        return updated

    async def delete_pto_request(self, request_id: str) -> bool:
        """Admin delete. Daily schedule rows of the request are kept."""
        request = await self._require(request_id)
        deleted = await self.store.delete(PTO_REQUESTS, request_id)
        if deleted:
            orphans = await self.store.find_by_field(PTO_DAILY_SCHEDULES, "pto_request_id", request_id)
            logger.info("Deleted PTO request %s; %d daily schedules retained", request_id, len(orphans))
            await self.events.emit(ev.PTO_REQUEST_DELETED, request)
        return deleted
