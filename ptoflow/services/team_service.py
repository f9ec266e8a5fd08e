import calendar
import logging
from collections import Counter
from datetime import date
from typing import Optional

from ptoflow.core.errors import NotFoundError, RecordValidationError
from ptoflow.core.rbac import derived_role_flags
from ptoflow.db.record_store import RecordStore
from ptoflow.db.schema import PTO_REQUESTS, TEAMS, USERS
from ptoflow.schemas.team_schema import TeamIn, TeamMemberIn, TeamUpdate
from ptoflow.services.user_service import new_user_record


logger = logging.getLogger("uvicorn.error")

# Windows over submitted_at (analytics) and over the requested dates (team calendar)
ANALYTICS_RANGES = ("current_month", "last_month", "last_3_months", "year_to_date", "all")
CALENDAR_RANGES = ("current_month", "next_month", "next_3_months", "all")
EPOCH = date(1970, 1, 1)


def _shift_month(day: date, months: int) -> tuple[int, int]:
    year, month = divmod(day.year * 12 + day.month - 1 + months, 12)
    return year, month + 1


def month_start(day: date, months: int = 0) -> date:
    year, month = _shift_month(day, months)
    return date(year, month, 1)


def month_end(day: date, months: int = 0) -> date:
    year, month = _shift_month(day, months)
    return date(year, month, calendar.monthrange(year, month)[1])


def analytics_window(date_range: str, today: Optional[date] = None) -> tuple[date, date]:
    """Inclusive submission window; unknown names mean everything up to today."""
    today = today or date.today()
    if date_range == "current_month":
        return month_start(today), month_end(today)
    if date_range == "last_month":
        return month_start(today, -1), month_end(today, -1)
    if date_range == "last_3_months":
        return month_start(today, -3), today
    if date_range == "year_to_date":
        return date(today.year, 1, 1), today
    return EPOCH, today


def calendar_window(date_range: str, today: Optional[date] = None) -> tuple[date, date]:
    """Inclusive window the requested days must overlap; unknown names mean no limit."""
    today = today or date.today()
    if date_range == "current_month":
        return month_start(today), month_end(today)
    if date_range == "next_month":
        return month_start(today, 1), month_end(today, 1)
    if date_range == "next_3_months":
        return today, month_end(today, 2)
    return date.min, date.max


# Team fields that mirror a membership role
ROLE_FIELDS = {
    "Manager": ("team_manager_id", "team_manager_name", "team_manager_email"),
    "Executive Manager": (
        "team_executive_manager_id",
        "team_executive_manager_name",
        "team_executive_manager_email",
    ),
}


def _in_team(user: dict, team_id: str) -> bool:
    return any(m.get("team_id") == team_id for m in user.get("team_memberships") or [])


class TeamService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def _require(self, team_id: str) -> dict:
        team = await self.store.get_by_id(TEAMS, team_id)
        if not team:
            raise NotFoundError(f"Team not found: {team_id}")
        return team

    async def members(self, team_id: str) -> list[dict]:
        return await self.store.query(USERS, lambda u: _in_team(u, team_id))

    async def create_team(self, data: TeamIn) -> dict:
        team = await self.store.create(TEAMS, data.model_dump(exclude_none=True))
        logger.info("Team created: %s", team["team_name"])
        return team

    async def get_team_by_id(self, team_id: str) -> dict:
        team = await self._require(team_id)
        team["members"] = await self.members(team_id)
        return team

    async def get_all_teams(self) -> list[dict]:
        teams = await self.store.query(TEAMS)
        users = await self.store.query(USERS)
        for team in teams:
            team["members"] = [u for u in users if _in_team(u, team["team_id"])]
        return sorted(teams, key=lambda t: (t.get("team_name") or "").lower())

    async def update_team(self, team_id: str, data: TeamUpdate) -> dict:
        await self._require(team_id)
        return await self.store.update(TEAMS, team_id, data.model_dump(exclude_unset=True))

    async def delete_team(self, team_id: str) -> bool:
        team = await self._require(team_id)
        for user in await self.members(team_id):
            memberships = [m for m in user.get("team_memberships") or [] if m.get("team_id") != team_id]
            await self.store.update(
                USERS, user["user_id"], {"team_memberships": memberships, **derived_role_flags(memberships)}
            )
        deleted = await self.store.delete(TEAMS, team_id)
        if deleted:
            logger.info("Team deleted: %s", team.get("team_name"))
        return deleted

    async def add_user_to_team(self, team_id: str, member: TeamMemberIn) -> dict:
        team = await self._require(team_id)
        role = member.role.value
        if role == "Manager":
            holder = team.get("team_manager_id")
            if holder and holder != member.user_id:
                raise RecordValidationError("role", "free manager slot", "Team already has a manager")

        user = await self.store.get_by_id(USERS, member.user_id)
        if not user:
            user = await self.store.create(
                USERS, new_user_record(member.user_id, member.display_name or "", member.email)
            )

        memberships = [m for m in user.get("team_memberships") or [] if m.get("team_id") != team_id]
        memberships.append({"team_id": team_id, "role": role})
        user = await self.store.update(
            USERS, user["user_id"], {"team_memberships": memberships, **derived_role_flags(memberships)}
        )

        team_changes = {}
        for held_role, (id_field, name_field, email_field) in ROLE_FIELDS.items():
            if held_role == role:
                team_changes.update(
                    {
                        id_field: user["user_id"],
                        name_field: user.get("display_name") or member.display_name,
                        email_field: user.get("email_address") or member.email,
                    }
                )
            elif team.get(id_field) == user["user_id"]:
                # Role changed away from this slot
                team_changes.update({id_field: None, name_field: None, email_field: None})
        if team_changes:
            await self.store.update(TEAMS, team_id, team_changes)
        logger.info("Team member %s added to team %s as %s", user.get("display_name"), team.get("team_name"), role)
        return user

    async def remove_user_from_team(self, team_id: str, user_id: str) -> dict:
        team = await self._require(team_id)
        user = await self.store.get_by_id(USERS, user_id)
        if not user or not _in_team(user, team_id):
            raise NotFoundError(f"Team member not found: {user_id}")
        memberships = [m for m in user.get("team_memberships") or [] if m.get("team_id") != team_id]
        user = await self.store.update(
            USERS, user_id, {"team_memberships": memberships, **derived_role_flags(memberships)}
        )
        team_changes = {}
        for id_field, name_field, email_field in ROLE_FIELDS.values():
            if team.get(id_field) == user_id:
                team_changes.update({id_field: None, name_field: None, email_field: None})
        if team_changes:
            await self.store.update(TEAMS, team_id, team_changes)
        return user

    async def get_user_teams(self, user_id: str) -> list[dict]:
        user = await self.store.get_by_id(USERS, user_id)
        if not user:
            return []
        team_ids = [m.get("team_id") for m in user.get("team_memberships") or []]
        teams = []
        for team_id in team_ids:
            team = await self.store.get_by_id(TEAMS, team_id)
            if team:
                team["members"] = await self.members(team_id)
                teams.append(team)
        return teams

    async def _member_requests(self, team_id: str, predicate) -> tuple[list[dict], list[dict]]:
        members = await self.members(team_id)
        member_ids = {m["user_id"] for m in members}
        requests = await self.store.query(
            PTO_REQUESTS, lambda r: r.get("requester_id") in member_ids and predicate(r)
        )
        return members, requests

    async def get_team_analytics(
        self, team_id: str, date_range: str = "current_month", today: Optional[date] = None
    ) -> dict:
        """Request statistics for the team, limited to requests submitted inside ``date_range``."""
        team = await self._require(team_id)
        start, end = analytics_window(date_range, today)
        first, last = start.isoformat(), end.isoformat()
        members, requests = await self._member_requests(
            team_id, lambda r: first <= (r.get("submitted_at") or "")[:10] <= last
        )
        approved = [r for r in requests if r.get("status") == "approved"]
        statuses = Counter(r.get("status") for r in requests)

        member_stats = {}
        for member in members:
            mine = [r for r in requests if r.get("requester_id") == member["user_id"]]
            member_stats[member["user_id"]] = {
                "name": member.get("display_name"),
                "total_requests": len(mine),
                "approved_requests": sum(1 for r in mine if r.get("status") == "approved"),
                "pending_requests": sum(1 for r in mine if r.get("status") == "pending"),
                "approved_days": sum(r.get("total_days") or 0 for r in mine if r.get("status") == "approved"),
            }
        return {
            "team": {**team, "members": members},
            "analytics": {
                "total_requests": len(requests),
                "approved_requests": statuses.get("approved", 0),
                "pending_requests": statuses.get("pending", 0),
                "declined_requests": statuses.get("declined", 0),
                "total_days_off": sum(r.get("total_days") or 0 for r in approved),
                "leave_type_breakdown": dict(Counter(r.get("leave_type") or "unknown" for r in requests)),
                "member_stats": member_stats,
            },
            "requests": requests,
            "date_range": {"start": start.isoformat(), "end": end.isoformat(), "type": date_range},
        }

    async def get_team_pto_requests(
        self, team_id: str, date_range: str = "current_month", today: Optional[date] = None
    ) -> list[dict]:
        """Team members' requests whose days overlap ``date_range``."""
        await self._require(team_id)
        start, end = calendar_window(date_range, today)
        first, last = start.isoformat(), end.isoformat()
        _, requests = await self._member_requests(
            team_id,
            lambda r: (r.get("start_date") or "") <= last and (r.get("end_date") or "") >= first,
        )
        return sorted(requests, key=lambda r: r.get("start_date") or "")
