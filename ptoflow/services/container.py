"""Per-process wiring of the store, clients and domain services."""
from dataclasses import dataclass
from typing import Optional

from ptoflow.db.kv import KeyValueStore, build_store
from ptoflow.db.record_store import RecordStore
from ptoflow.db.schema import PTO_DAILY_SCHEDULES
from ptoflow.services import events as ev
from ptoflow.services import notifications
from ptoflow.services.balance_service import BalanceService
from ptoflow.services.events import PostCommitEvents
from ptoflow.services.identity import AtlassianIdentityClient, IdentityProvider
from ptoflow.services.import_service import ImportService
from ptoflow.services.integration import ResourceIntegrationClient
from ptoflow.services.pto_service import PTOService
from ptoflow.services.team_service import TeamService
from ptoflow.services.user_service import UserService


@dataclass
class Services:
    store: RecordStore
    events: PostCommitEvents
    identity: IdentityProvider
    integration: ResourceIntegrationClient
    balances: BalanceService
    pto: PTOService
    users: UserService
    teams: TeamService
    imports: ImportService


def register_effects(
    events: PostCommitEvents,
    store: RecordStore,
    balances: BalanceService,
    integration: ResourceIntegrationClient,
) -> None:
    async def recalculate_requester_balance(request: dict) -> None:
        await balances.recalculate(request["requester_id"])

    async def integrate_with_resource_management(request: dict) -> None:
        schedules = await store.find_by_field(PTO_DAILY_SCHEDULES, "pto_request_id", request["pto_request_id"])
        await integration.notify_pto_approved(request, schedules)

    events.subscribe(ev.PTO_REQUEST_CREATED, recalculate_requester_balance, "recalculate_balance")
    events.subscribe(ev.PTO_REQUEST_CREATED, notifications.notify_manager, "notify_manager")
    events.subscribe(ev.PTO_REQUEST_UPDATED, recalculate_requester_balance, "recalculate_balance")
    events.subscribe(ev.PTO_REQUEST_APPROVED, recalculate_requester_balance, "recalculate_balance")
    events.subscribe(ev.PTO_REQUEST_APPROVED, notifications.notify_requester, "notify_requester")
    events.subscribe(ev.PTO_REQUEST_APPROVED, integrate_with_resource_management, "resource_integration")
    events.subscribe(ev.PTO_REQUEST_DECLINED, notifications.notify_requester, "notify_requester")
    events.subscribe(ev.PTO_REQUEST_DELETED, recalculate_requester_balance, "recalculate_balance")


def build_services(
    kv: Optional[KeyValueStore] = None,
    identity: Optional[IdentityProvider] = None,
    integration: Optional[ResourceIntegrationClient] = None,
) -> Services:
    store = RecordStore(kv if kv is not None else build_store())
    identity = identity or AtlassianIdentityClient()
    integration = integration or ResourceIntegrationClient()
    events = PostCommitEvents()
    balances = BalanceService(store)
    register_effects(events, store, balances, integration)
    return Services(
        store=store,
        events=events,
        identity=identity,
        integration=integration,
        balances=balances,
        pto=PTOService(store, events),
        users=UserService(store, identity),
        teams=TeamService(store),
        imports=ImportService(store, identity),
    )
