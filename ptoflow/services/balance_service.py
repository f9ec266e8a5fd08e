from collections import defaultdict
from typing import Iterable

from ptoflow.core.errors import NotFoundError
from ptoflow.db.record_store import RecordStore
from ptoflow.db.schema import DEFAULT_PTO_ALLOCATION, LEAVE_TYPES, PTO_DAILY_SCHEDULES, PTO_REQUESTS, USERS


FULL_DAY = "FULL_DAY"


def hours_for_schedule_type(schedule_type: str) -> int:
    return 8 if schedule_type == FULL_DAY else 4


def days_for_schedule_type(schedule_type: str) -> float:
    return 1 if schedule_type == FULL_DAY else 0.5


def calculate_totals(daily_schedules: Iterable[dict]) -> tuple[float, int]:
    """(total_days, total_hours) for a list of daily schedules."""
    total_days: float = 0
    total_hours = 0
    for schedule in daily_schedules:
        schedule_type = schedule.get("schedule_type")
        total_days += days_for_schedule_type(schedule_type)
        total_hours += hours_for_schedule_type(schedule_type)
    return total_days, total_hours


class BalanceService:
    """Full recomputation of a user's used/remaining PTO days.

    Used days always come from the complete set of the user's approved
    requests, so running it again after any status change corrects the
    balance; running it twice in a row yields the same maps.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def used_days(self, user_id: str) -> dict[str, float]:
        approved = await self.store.query(
            PTO_REQUESTS, lambda r: r.get("requester_id") == user_id and r.get("status") == "approved"
        )
        used: dict[str, float] = defaultdict(float)
        for leave_type in LEAVE_TYPES:
            used[leave_type] = 0
        if not approved:
            return dict(used)

        request_ids = {r.get("pto_request_id") for r in approved}
        rows_by_request: dict[str, list[dict]] = defaultdict(list)
        for row in await self.store.query(PTO_DAILY_SCHEDULES, lambda s: s.get("pto_request_id") in request_ids):
            rows_by_request[row["pto_request_id"]].append(row)

        for request in approved:
            # Imported requests may only carry the embedded copy
            schedules = rows_by_request.get(request.get("pto_request_id")) or request.get("daily_schedules") or []
            for schedule in schedules:
                used[request.get("leave_type", "other")] += days_for_schedule_type(schedule.get("schedule_type"))
        return dict(used)

    async def recalculate(self, user_id: str) -> dict:
        user = await self.store.get_by_id(USERS, user_id)
        if not user:
            raise NotFoundError(f"User not found: {user_id}")
        used = await self.used_days(user_id)
        allocated = user.get("pto_available_in_the_period") or dict(DEFAULT_PTO_ALLOCATION)
        remaining = {leave_type: allocated[leave_type] - used.get(leave_type, 0) for leave_type in allocated}
        return await self.store.update(
            USERS,
            user_id,
            {"used_pto_days_in_period": used, "remaining_pto_days_in_period": remaining},
        )
