from __future__ import annotations

import asyncio
from datetime import date, timedelta

from ptoflow.db.mongo import close_mongo_client
from ptoflow.db.mongo_indexes import ensure_indexes
from ptoflow.db.schema import TEAMS, USERS
from ptoflow.schemas.pto_schema import PTORequestIn
from ptoflow.schemas.team_schema import TeamMemberIn
from ptoflow.services.container import Services, build_services
from ptoflow.services.user_service import new_user_record


# Stable ids so the script can be re-run without duplicating data
TEAM_ID = "team-engineering"
USERS_SEED = [
    ("seed-admin", "Admin User", "admin@ptoflow.local"),
    ("seed-exec", "Erin Executive", "erin@ptoflow.local"),
    ("seed-manager", "Mandy Manager", "mandy@ptoflow.local"),
    ("seed-alice", "Alice Smith", "alice@ptoflow.local"),
    ("seed-bob", "Bob Jones", "bob@ptoflow.local"),
]


def next_weekdays(start: date, count: int) -> list[date]:
    days = []
    current = start
    while len(days) < count:
        if current.weekday() < 5:
            days.append(current)
        current += timedelta(days=1)
    return days


async def seed_users(services: Services) -> None:
    for user_id, name, email in USERS_SEED:
        if await services.store.get_by_id(USERS, user_id):
            continue
        record = new_user_record(user_id, name, email)
        record["isAdmin"] = user_id == "seed-admin"
        await services.store.create(USERS, record)


async def seed_team(services: Services) -> None:
    if not await services.store.get_by_id(TEAMS, TEAM_ID):
        await services.store.create(
            TEAMS,
            {"team_id": TEAM_ID, "team_name": "Engineering", "team_department": "R&D", "team_business_unit": "Product"},
        )
    members = [
        ("seed-manager", "Manager"),
        ("seed-exec", "Executive Manager"),
        ("seed-alice", "Member"),
        ("seed-bob", "Member"),
    ]
    for user_id, role in members:
        await services.teams.add_user_to_team(TEAM_ID, TeamMemberIn(user_id=user_id, role=role))


async def seed_requests(services: Services) -> None:
    if await services.pto.get_user_pto_requests("seed-alice"):
        return
    managers = await services.users.get_user_managers("seed-alice")
    manager = next((m for m in managers if m["role"] == "Manager"), {})
    executive = next((m for m in managers if m["role"] == "Executive Manager"), {})
    days = next_weekdays(date.today() + timedelta(days=14), 3)
    request = await services.pto.create_pto_request(
        PTORequestIn(
            requester_id="seed-alice",
            requester_name="Alice Smith",
            requester_email="alice@ptoflow.local",
            manager_id=manager.get("id"),
            manager_name=manager.get("name"),
            manager_email=manager.get("email"),
            executive_manager_id=executive.get("id"),
            executive_manager_name=executive.get("name"),
            executive_manager_email=executive.get("email"),
            leave_type="vacation",
            reason="Family trip",
            start_date=days[0],
            end_date=days[-1],
            daily_schedules=[{"date": d, "schedule_type": "FULL_DAY"} for d in days],
        )
    )
    await services.pto.approve_pto_request(request["pto_request_id"], manager.get("id") or "seed-manager")


async def seed(services: Services) -> None:
    await seed_users(services)
    await seed_team(services)
    await seed_requests(services)


async def main():
    await ensure_indexes()
    await seed(build_services())
    close_mongo_client()
    print("Seed complete")


if __name__ == "__main__":
    asyncio.run(main())
