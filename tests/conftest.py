import asyncio
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from main import app
from ptoflow.api.deps import get_services
from ptoflow.core.errors import IdentityError
from ptoflow.db.kv import MemoryKeyValueStore
from ptoflow.db.schema import USERS
from ptoflow.schemas.user_schema import IdentityAccount
from ptoflow.services.container import build_services
from ptoflow.services.integration import ResourceIntegrationClient
from ptoflow.services.user_service import new_user_record


ADMIN_AUTH = {"Authorization": "Bearer admin-token"}
ALICE_AUTH = {"Authorization": "Bearer alice-token"}


def run(coro):
    return asyncio.run(coro)


class FakeIdentity:
    """Identity provider double: tokens map to accounts, search is a substring match."""

    def __init__(self, accounts: Optional[dict[str, IdentityAccount]] = None, directory=None) -> None:
        self.accounts = accounts or {}
        self.directory = directory or []
        self.search_calls: list[str] = []

    async def get_current_user(self, authorization):
        account = self.accounts.get(authorization)
        if account is None:
            raise IdentityError("Not authenticated")
        return account

    async def search_users(self, query):
        self.search_calls.append(query)
        term = query.lower()
        return [
            a for a in self.directory
            if term in a.display_name.lower() or term in (a.email_address or "").lower()
        ]

    async def find_user_by_email(self, email):
        for account in self.directory:
            if (account.email_address or "").lower() == email.lower():
                return account
        return None


@pytest.fixture
def identity():
    admin = IdentityAccount(account_id="admin-1", display_name="Ada Admin", email_address="ada@example.com")
    alice = IdentityAccount(account_id="alice-1", display_name="Alice Smith", email_address="alice@example.com")
    return FakeIdentity(
        accounts={ADMIN_AUTH["Authorization"]: admin, ALICE_AUTH["Authorization"]: alice},
        directory=[admin, alice],
    )


@pytest.fixture
def services(identity):
    return build_services(
        kv=MemoryKeyValueStore(),
        identity=identity,
        integration=ResourceIntegrationClient(url=""),
    )


@pytest.fixture
def client(services):
    run(services.store.create(USERS, {**new_user_record("admin-1", "Ada Admin", "ada@example.com"), "isAdmin": True}))
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def add_user(services, user_id, name="Test User", email=None, **fields):
    record = {**new_user_record(user_id, name, email or f"{user_id}@example.com"), **fields}
    return run(services.store.create(USERS, record))


def pto_payload(requester_id="u1", days=("2025-03-03", "2025-03-04"), schedule_type="FULL_DAY", **fields):
    payload = {
        "requester_id": requester_id,
        "requester_name": "Alice Smith",
        "manager_id": "m1",
        "manager_name": "Mandy Manager",
        "leaveType": "vacation",
        "startDate": days[0],
        "endDate": days[-1],
        "dailySchedules": [{"date": d, "type": schedule_type} for d in days],
    }
    payload.update(fields)
    return payload
