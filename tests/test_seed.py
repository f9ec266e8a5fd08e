from conftest import run
from ptoflow.db.schema import PTO_REQUESTS, TEAMS, USERS
from scripts.seed_data import TEAM_ID, seed


def test_seed_is_repeatable(services):
    run(seed(services))
    run(seed(services))

    assert len(run(services.store.query(USERS))) == 5
    assert len(run(services.store.query(TEAMS))) == 1
    requests = run(services.store.query(PTO_REQUESTS))
    assert len(requests) == 1
    assert requests[0]["status"] == "approved"
    assert requests[0]["manager_id"] == "seed-manager"
    assert requests[0]["executive_manager_id"] == "seed-exec"

    team = run(services.teams.get_team_by_id(TEAM_ID))
    assert team["team_manager_id"] == "seed-manager"
    alice = run(services.store.get_by_id(USERS, "seed-alice"))
    assert alice["used_pto_days_in_period"]["vacation"] == 3
