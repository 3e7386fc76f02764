"""
Vesting API Blueprint

Handles schedule endpoints: creation, registry lookups, release, consent,
emergency withdrawal and admin parameter updates. The caller identity is
the ``caller`` field of each JSON body.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint

from talevest.core.api_blueprints.base import (
    get_deployment,
    parse_body,
    success_response,
)
from talevest.core.contracts.exceptions import ValidationError
from talevest.core.input_validation_schemas import (
    CallerInput,
    ConsentInput,
    CreateScheduleInput,
    EmergencyWithdrawInput,
    ParameterUpdateInput,
)

logger = logging.getLogger(__name__)

vesting_bp = Blueprint("vesting", __name__, url_prefix="/schedules")


@vesting_bp.route("", methods=["POST"])
def create_schedule() -> Tuple[Any, int]:
    """Create a schedule administered by the caller."""
    payload = parse_body(CreateScheduleInput)
    deployment = get_deployment()
    with deployment.transaction():
        factory = deployment.require_factory()
        address = factory.create_schedule(
            payload.caller,
            payload.beneficiary,
            payload.start_time,
            payload.interval_length,
            payload.total_intervals,
            payload.total_amount,
        )
        summary = factory.get_schedule_summary_for(address)
    return success_response({"address": address, "schedule": summary.to_dict()}, status=201)


@vesting_bp.route("", methods=["GET"])
def list_schedules() -> Tuple[Any, int]:
    factory = get_deployment().require_factory()
    schedules = factory.get_all_schedules()
    return success_response({"count": len(schedules), "schedules": schedules})


@vesting_bp.route("/beneficiary/<address>", methods=["GET"])
def schedules_for(address: str) -> Tuple[Any, int]:
    factory = get_deployment().require_factory()
    schedules = factory.get_schedules_for(address)
    return success_response(
        {"beneficiary": address.lower(), "count": len(schedules), "schedules": schedules}
    )


@vesting_bp.route("/<address>", methods=["GET"])
def get_schedule(address: str) -> Tuple[Any, int]:
    """Schedule summary plus role and balance details."""
    factory = get_deployment().require_factory()
    schedule = factory.get_schedule(address)
    return success_response(
        {
            "address": schedule.address,
            "asset": schedule.asset,
            "admin": schedule.admin,
            "beneficiary_consent": schedule.beneficiary_consent,
            "held_balance": schedule.held_balance(),
            "schedule": schedule.get_vesting_schedule().to_dict(),
        }
    )


@vesting_bp.route("/<address>/events", methods=["GET"])
def get_schedule_events(address: str) -> Tuple[Any, int]:
    schedule = get_deployment().require_factory().get_schedule(address)
    events = [
        {"event_type": e.event_type, "timestamp": e.timestamp, **e.data} for e in schedule.events
    ]
    return success_response({"address": schedule.address, "events": events})


@vesting_bp.route("/<address>/release", methods=["POST"])
def release(address: str) -> Tuple[Any, int]:
    payload = parse_body(CallerInput)
    deployment = get_deployment()
    with deployment.transaction():
        schedule = deployment.require_factory().get_schedule(address)
        amount = schedule.release(payload.caller)
    return success_response(
        {
            "address": schedule.address,
            "released": amount,
            "released_amount": schedule.released_amount,
            "released_ticks": schedule.released_ticks,
        }
    )


@vesting_bp.route("/<address>/consent", methods=["POST"])
def set_consent(address: str) -> Tuple[Any, int]:
    payload = parse_body(ConsentInput)
    deployment = get_deployment()
    with deployment.transaction():
        schedule = deployment.require_factory().get_schedule(address)
        schedule.set_emergency_consent(payload.caller, payload.consent)
    return success_response(
        {"address": schedule.address, "beneficiary_consent": schedule.beneficiary_consent}
    )


@vesting_bp.route("/<address>/emergency-withdraw", methods=["POST"])
def emergency_withdraw(address: str) -> Tuple[Any, int]:
    payload = parse_body(EmergencyWithdrawInput)
    deployment = get_deployment()
    with deployment.transaction():
        schedule = deployment.require_factory().get_schedule(address)
        amount = schedule.emergency_withdraw(payload.caller, payload.destination)
    return success_response(
        {
            "address": schedule.address,
            "withdrawn": amount,
            "destination": payload.destination.lower(),
            "branch": schedule.events[-1].data["branch"],
        }
    )


@vesting_bp.route("/<address>/parameters", methods=["POST"])
def update_parameter(address: str) -> Tuple[Any, int]:
    """Apply one admin setter, selected by ``name``."""
    payload = parse_body(ParameterUpdateInput)
    deployment = get_deployment()
    with deployment.transaction():
        schedule = deployment.require_factory().get_schedule(address)
        setters: Dict[str, Any] = {
            "total_amount": schedule.set_total_amount,
            "start_time": schedule.set_start_time,
            "total_intervals": schedule.set_total_intervals,
            "beneficiary": schedule.set_beneficiary,
        }
        if payload.name == "beneficiary" and not isinstance(payload.value, str):
            raise ValidationError("beneficiary must be an address string")
        setters[payload.name](payload.caller, payload.value)
        summary = schedule.get_vesting_schedule()
    return success_response({"address": schedule.address, "schedule": summary.to_dict()})
