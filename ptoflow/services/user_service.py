import asyncio
import logging
from datetime import date
from typing import Optional

from ptoflow.core.errors import NotFoundError
from ptoflow.core.rbac import derived_role_flags, is_admin, is_executive_manager, is_manager
from ptoflow.db.record_store import RecordStore
from ptoflow.db.schema import (
    DEFAULT_AVAILABILITY,
    DEFAULT_PTO_ALLOCATION,
    EMPLOYMENT_CAPACITY,
    LEAVE_TYPES,
    TEAMS,
    USERS,
)
from ptoflow.schemas.user_schema import IdentityAccount, UserIn, UserUpdate
from ptoflow.services.identity import MIN_QUERY_LENGTH, IdentityProvider


logger = logging.getLogger("uvicorn.error")

LOCAL_SEARCH_ENOUGH = 5
SEARCH_LIMIT = 10


def new_user_record(
    account_id: Optional[str],
    display_name: str,
    email: Optional[str],
    *,
    employment_type: str = "full_time",
    allocation: Optional[dict] = None,
) -> dict:
    """A user with the default employment and PTO settings."""
    allocation = dict(allocation or DEFAULT_PTO_ALLOCATION)
    record = {
        "jira_account_id": account_id,
        "display_name": display_name or "",
        "email_address": email or "",
        "team_memberships": [],
        "employment_type": employment_type,
        "capacity": EMPLOYMENT_CAPACITY.get(employment_type, 40),
        "standard_availability": dict(DEFAULT_AVAILABILITY),
        "isAdmin": False,
        "isManager": [],
        "isExecutive_Manager": [],
        "pto_accountability_type": "standard_year",
        "pto_available_in_the_period": allocation,
        "hiring_date": date.today().isoformat(),
        "status": "active",
        "used_pto_days_in_period": {t: 0 for t in LEAVE_TYPES},
        "remaining_pto_days_in_period": dict(allocation),
    }
    if account_id:
        # Mirror the identity provider's account id when there is one
        record["user_id"] = account_id
    return record


def account_as_user(account: IdentityAccount) -> dict:
    return {
        "user_id": account.account_id,
        "jira_account_id": account.account_id,
        "display_name": account.display_name,
        "email_address": account.email_address,
    }


class UserService:
    def __init__(self, store: RecordStore, identity: IdentityProvider) -> None:
        self.store = store
        self.identity = identity

    async def _require(self, user_id: str) -> dict:
        user = await self.store.get_by_id(USERS, user_id)
        if not user:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    async def find_by_account_id(self, account_id: str) -> Optional[dict]:
        users = await self.store.query(USERS, lambda u: u.get("jira_account_id") == account_id)
        return users[0] if users else None

    async def initialize_user_from_identity(self, account: IdentityAccount) -> dict:
        existing = await self.find_by_account_id(account.account_id)
        if existing:
            return existing
        user = await self.store.create(
            USERS, new_user_record(account.account_id, account.display_name, account.email_address)
        )
        logger.info("Provisioned user %s (%s) from identity provider", user["user_id"], user["display_name"])
        return user

    async def get_or_create_current_user(self, authorization: Optional[str]) -> dict:
        account = await self.identity.get_current_user(authorization)
        return await self.initialize_user_from_identity(account)

    async def get_user_by_id(self, user_id: str) -> Optional[dict]:
        return await self.store.get_by_id(USERS, user_id)

    async def get_all_users(self, include_inactive: bool = False) -> list[dict]:
        users = await self.store.query(
            USERS, None if include_inactive else (lambda u: u.get("status", "active") != "inactive")
        )
        return sorted(users, key=lambda u: (u.get("display_name") or "").lower())

    async def search_users(self, query: Optional[str]) -> list[dict]:
        if not query or len(query.strip()) < MIN_QUERY_LENGTH:
            return []
        term = query.strip().lower()
        local = await self.store.query(
            USERS,
            lambda u: term in (u.get("display_name") or "").lower() or term in (u.get("email_address") or "").lower(),
        )
        if len(local) >= LOCAL_SEARCH_ENOUGH:
            return local
        known = {u.get("jira_account_id") for u in local}
        remote = [
            account_as_user(a)
            for a in await self.identity.search_users(query)
            if a.account_id not in known
        ]
        return (local + remote)[:SEARCH_LIMIT]

    async def create_user(self, data: UserIn) -> dict:
        payload = data.model_dump(mode="json", exclude_none=True)
        account_id = payload.pop("jira_account_id", None) or payload.get("user_id")
        record = new_user_record(
            account_id,
            payload.pop("display_name"),
            payload.pop("email_address", None),
            employment_type=payload["employment_type"],
            allocation=payload.get("pto_available_in_the_period"),
        )
        record.update(payload)
        record.update(derived_role_flags(record["team_memberships"]))
        return await self.store.create(USERS, record)

    async def update_user(self, user_id: str, data: UserUpdate) -> dict:
        existing = await self._require(user_id)
        changes = data.model_dump(mode="json", exclude_unset=True)
        if "employment_type" in changes and "capacity" not in changes:
            changes["capacity"] = EMPLOYMENT_CAPACITY.get(changes["employment_type"], existing.get("capacity"))
        if "team_memberships" in changes:
            changes.update(derived_role_flags(changes["team_memberships"] or []))
        if "pto_available_in_the_period" in changes:
            allocated = changes["pto_available_in_the_period"] or {}
            used = existing.get("used_pto_days_in_period") or {}
            changes["remaining_pto_days_in_period"] = {t: allocated[t] - used.get(t, 0) for t in allocated}
        return await self.store.update(USERS, user_id, changes)

    async def deactivate_user(self, user_id: str) -> dict:
        await self._require(user_id)
        return await self.store.update(USERS, user_id, {"status": "inactive"})

    async def set_admin(self, user_id: str, flag: bool) -> dict:
        await self._require(user_id)
        return await self.store.update(USERS, user_id, {"isAdmin": bool(flag)})

    async def is_current_user_admin(self, authorization: Optional[str]) -> bool:
        return is_admin(await self.get_or_create_current_user(authorization))

    async def is_current_user_manager(self, authorization: Optional[str]) -> bool:
        return is_manager(await self.get_or_create_current_user(authorization))

    async def is_current_user_executive_manager(self, authorization: Optional[str]) -> bool:
        return is_executive_manager(await self.get_or_create_current_user(authorization))

    async def get_user_managers(self, user_id: str) -> list[dict]:
        """Managers, then executive managers, of the teams the user is a plain member of."""
        user = await self.store.get_by_id(USERS, user_id)
        if not user:
            return []
        memberships = [m for m in user.get("team_memberships") or [] if m.get("role") == "Member"]
        if not memberships:
            return []
        teams = await asyncio.gather(*(self.store.get_by_id(TEAMS, m.get("team_id")) for m in memberships))
        teams = [t for t in teams if t]

        managers = []
        executives = []
        for team in teams:
            if team.get("team_manager_id"):
                managers.append(
                    {
                        "id": team["team_manager_id"],
                        "name": team.get("team_manager_name"),
                        "email": team.get("team_manager_email"),
                        "team": team.get("team_name"),
                        "role": "Manager",
                    }
                )
            if team.get("team_executive_manager_id"):
                executives.append(
                    {
                        "id": team["team_executive_manager_id"],
                        "name": team.get("team_executive_manager_name"),
                        "email": team.get("team_executive_manager_email"),
                        "team": team.get("team_name"),
                        "role": "Executive Manager",
                    }
                )
        unique: dict[str, dict] = {}
        for manager in managers + executives:
            unique.setdefault(manager["id"], manager)
        return list(unique.values())
