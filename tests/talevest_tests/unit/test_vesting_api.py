"""
Flask API tests for the token and vesting blueprints.
"""

import json
import os

import pytest

from talevest.core.api_blueprints import create_app
from talevest.core.constants import ONE_TOKEN, SECONDS_PER_30_DAYS, SECONDS_PER_DAY
from talevest.core.deployment import Deployment

from ..conftest import BENEFICIARY, DEPLOYER, OTHER, TREASURY


@pytest.fixture
def deployment(tmp_path, clock):
    host = Deployment(state_file=str(tmp_path / "deployment.json"), time_provider=clock)
    host.deploy_token(DEPLOYER, 1_000_000 * ONE_TOKEN)
    host.deploy_factory(DEPLOYER)
    return host


@pytest.fixture
def client(deployment):
    app = create_app(deployment)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def create_body(clock):
    return {
        "caller": DEPLOYER,
        "beneficiary": BENEFICIARY,
        "start_time": clock.now + SECONDS_PER_DAY,
        "interval_length": SECONDS_PER_30_DAYS,
        "total_intervals": 10,
        "total_amount": 1000 * ONE_TOKEN,
    }


@pytest.fixture
def schedule_address(client, create_body):
    resp = client.post("/schedules", json=create_body)
    assert resp.status_code == 201
    address = resp.get_json()["address"]
    resp = client.post(
        "/token/transfer",
        json={"caller": DEPLOYER, "recipient": address, "amount": 1000 * ONE_TOKEN},
    )
    assert resp.status_code == 200
    return address


def test_health(client, deployment):
    resp = client.get("/health")
    data = resp.get_json()
    assert resp.status_code == 200
    assert data["status"] == "ok"
    assert data["token"] == deployment.token.address
    assert data["factory"] == deployment.factory.address


def test_token_info_and_balance(client, deployment):
    data = client.get("/token").get_json()
    assert data["success"] is True
    assert data["token"]["symbol"] == "PTL"

    data = client.get(f"/token/balance/{DEPLOYER}").get_json()
    assert data["balance"] == 1_000_000 * ONE_TOKEN


def test_create_schedule(client, create_body, deployment):
    resp = client.post("/schedules", json=create_body)

    assert resp.status_code == 201
    data = resp.get_json()
    assert data["schedule"]["beneficiary"] == BENEFICIARY
    assert data["schedule"]["total_amount"] == 1000 * ONE_TOKEN
    assert data["schedule"]["releasable_amount"] == 0
    assert deployment.factory.get_all_schedules() == [data["address"]]


def test_create_schedule_persists_state(client, create_body, deployment):
    client.post("/schedules", json=create_body)
    with open(deployment.state_file) as fh:
        saved = json.load(fh)
    assert len(saved["factory"]["registry"]["all_schedules"]) == 1


def test_create_schedule_validation_error(client, create_body):
    create_body["interval_length"] = SECONDS_PER_DAY
    resp = client.post("/schedules", json=create_body)
    data = resp.get_json()
    assert resp.status_code == 400
    assert data["success"] is False
    assert data["code"] == "validation_error"


def test_create_schedule_zero_intervals_is_invalid_payload(client, create_body):
    create_body["total_intervals"] = 0
    resp = client.post("/schedules", json=create_body)
    data = resp.get_json()
    assert resp.status_code == 400
    assert data["code"] == "invalid_payload"
    assert data["errors"][0]["loc"] == ["total_intervals"]


def test_create_schedule_by_non_owner(client, create_body):
    create_body["caller"] = OTHER
    resp = client.post("/schedules", json=create_body)
    assert resp.status_code == 403
    assert resp.get_json()["code"] == "unauthorized"


def test_missing_body(client):
    resp = client.post("/schedules", data="not json", content_type="text/plain")
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "invalid_payload"


def test_list_and_filter_schedules(client, create_body):
    first = client.post("/schedules", json=create_body).get_json()["address"]
    create_body["beneficiary"] = OTHER
    second = client.post("/schedules", json=create_body).get_json()["address"]

    data = client.get("/schedules").get_json()
    assert data["count"] == 2
    assert data["schedules"] == [first, second]

    data = client.get(f"/schedules/beneficiary/{OTHER}").get_json()
    assert data["schedules"] == [second]


def test_get_schedule(client, schedule_address, deployment):
    data = client.get(f"/schedules/{schedule_address}").get_json()
    assert data["asset"] == deployment.token.address
    assert data["admin"] == DEPLOYER
    assert data["beneficiary_consent"] is False
    assert data["held_balance"] == 1000 * ONE_TOKEN
    assert data["schedule"]["total_intervals"] == 10


def test_unknown_schedule_is_404(client):
    resp = client.get("/schedules/0x" + "e" * 40)
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "invalid_schedule"


def test_release_flow(client, schedule_address, clock, deployment):
    clock.now = deployment.factory.get_schedule(schedule_address).start_time
    clock.advance(3 * SECONDS_PER_30_DAYS)

    resp = client.post(f"/schedules/{schedule_address}/release", json={"caller": BENEFICIARY})
    data = resp.get_json()
    assert resp.status_code == 200
    assert data["released"] == 300 * ONE_TOKEN
    assert data["released_ticks"] == 3

    resp = client.post(f"/schedules/{schedule_address}/release", json={"caller": BENEFICIARY})
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "insufficient_releasable"

    balance = client.get(f"/token/balance/{BENEFICIARY}").get_json()["balance"]
    assert balance == 300 * ONE_TOKEN

    events = client.get(f"/schedules/{schedule_address}/events").get_json()["events"]
    assert [e["event_type"] for e in events] == ["TokensReleased", "ReleaseProgress"]


def test_release_by_admin_forbidden(client, schedule_address, clock):
    clock.advance(5 * SECONDS_PER_30_DAYS)
    resp = client.post(f"/schedules/{schedule_address}/release", json={"caller": DEPLOYER})
    assert resp.status_code == 403


def test_emergency_withdraw_branches(client, schedule_address):
    resp = client.post(
        f"/schedules/{schedule_address}/emergency-withdraw",
        json={"caller": DEPLOYER, "destination": TREASURY},
    )
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "no_excess"

    resp = client.post(
        f"/schedules/{schedule_address}/consent",
        json={"caller": BENEFICIARY, "consent": True},
    )
    assert resp.get_json()["beneficiary_consent"] is True

    resp = client.post(
        f"/schedules/{schedule_address}/emergency-withdraw",
        json={"caller": DEPLOYER, "destination": TREASURY},
    )
    data = resp.get_json()
    assert resp.status_code == 200
    assert data["withdrawn"] == 1000 * ONE_TOKEN
    assert data["branch"] == "full"


def test_consent_requires_boolean(client, schedule_address):
    resp = client.post(
        f"/schedules/{schedule_address}/consent",
        json={"caller": BENEFICIARY, "consent": "yes"},
    )
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "invalid_payload"


def test_parameter_update(client, schedule_address):
    resp = client.post(
        f"/schedules/{schedule_address}/parameters",
        json={"caller": DEPLOYER, "name": "total_amount", "value": 2000 * ONE_TOKEN},
    )
    assert resp.status_code == 200
    assert resp.get_json()["schedule"]["total_amount"] == 2000 * ONE_TOKEN

    resp = client.post(
        f"/schedules/{schedule_address}/parameters",
        json={"caller": DEPLOYER, "name": "beneficiary", "value": OTHER},
    )
    assert resp.get_json()["schedule"]["beneficiary"] == OTHER


def test_parameter_update_rejects_bad_beneficiary_type(client, schedule_address):
    resp = client.post(
        f"/schedules/{schedule_address}/parameters",
        json={"caller": DEPLOYER, "name": "beneficiary", "value": 5},
    )
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "validation_error"


def test_parameter_update_rejects_unknown_name(client, schedule_address):
    resp = client.post(
        f"/schedules/{schedule_address}/parameters",
        json={"caller": DEPLOYER, "name": "released_amount", "value": 0},
    )
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "invalid_payload"


def test_parameter_update_by_beneficiary_forbidden(client, schedule_address):
    resp = client.post(
        f"/schedules/{schedule_address}/parameters",
        json={"caller": BENEFICIARY, "name": "total_amount", "value": 1},
    )
    assert resp.status_code == 403


def test_transfer_over_balance(client):
    resp = client.post(
        "/token/transfer", json={"caller": OTHER, "recipient": BENEFICIARY, "amount": 1}
    )
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "insufficient_balance"


def test_routes_without_factory(tmp_path):
    app = create_app(Deployment(state_file=str(tmp_path / "empty.json")))
    client = app.test_client()
    resp = client.get("/schedules")
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "deployment_error"


def test_unwritable_state_rolls_back_release(client, schedule_address, clock, deployment):
    schedule = deployment.factory.get_schedule(schedule_address)
    clock.now = schedule.start_time + 3 * SECONDS_PER_30_DAYS
    os.remove(deployment.state_file)
    os.mkdir(deployment.state_file)

    resp = client.post(f"/schedules/{schedule_address}/release", json={"caller": BENEFICIARY})

    assert resp.status_code == 500
    assert resp.get_json()["code"] == "state_persistence_error"
    assert schedule.released_amount == 0
    assert deployment.token.balance_of(BENEFICIARY) == 0

    data = client.get(f"/schedules/{schedule_address}").get_json()
    assert data["held_balance"] == 1000 * ONE_TOKEN
    assert data["schedule"]["released_amount"] == 0
    assert data["schedule"]["releasable_amount"] == 300 * ONE_TOKEN


def test_parameter_update_rejects_boolean_value(client, schedule_address, deployment):
    resp = client.post(
        f"/schedules/{schedule_address}/parameters",
        json={"caller": DEPLOYER, "name": "total_intervals", "value": True},
    )
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "invalid_payload"
    assert deployment.factory.get_schedule(schedule_address).total_intervals == 10
