"""
Token API Blueprint

Token metadata, balances and transfers. Transfers are how an admin funds
a schedule: send tokens to the schedule address.
"""

from __future__ import annotations

from typing import Any, Tuple

from flask import Blueprint

from talevest.core.api_blueprints.base import get_deployment, parse_body, success_response
from talevest.core.input_validation_schemas import TokenTransferInput

token_bp = Blueprint("token", __name__, url_prefix="/token")


@token_bp.route("", methods=["GET"])
def token_info() -> Tuple[Any, int]:
    token = get_deployment().require_token()
    return success_response({"token": token.metadata()})


@token_bp.route("/balance/<address>", methods=["GET"])
def balance(address: str) -> Tuple[Any, int]:
    token = get_deployment().require_token()
    return success_response({"address": address.lower(), "balance": token.balance_of(address)})


@token_bp.route("/transfer", methods=["POST"])
def transfer() -> Tuple[Any, int]:
    payload = parse_body(TokenTransferInput)
    deployment = get_deployment()
    with deployment.transaction():
        token = deployment.require_token()
        token.transfer(payload.caller, payload.recipient, payload.amount)
    return success_response(
        {
            "from": payload.caller.lower(),
            "to": payload.recipient.lower(),
            "amount": payload.amount,
            "balance": token.balance_of(payload.caller),
        }
    )
