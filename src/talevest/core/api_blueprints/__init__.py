"""
Tale Vesting API Blueprints

Flask Blueprints exposing the token and vesting operations of a
Deployment.

Usage:
    from talevest.core.api_blueprints import create_app
    app = create_app(deployment)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Tuple

from flask import Flask, g, jsonify

from talevest.core.api_blueprints.base import (
    InvalidPayload,
    contract_error_response,
    error_response,
)
from talevest.core.api_blueprints.token_bp import token_bp
from talevest.core.api_blueprints.vesting_bp import vesting_bp
from talevest.core.contracts.exceptions import ContractError

if TYPE_CHECKING:
    from talevest.core.deployment import Deployment

__all__ = [
    "token_bp",
    "vesting_bp",
    "register_blueprints",
    "create_app",
    "ALL_BLUEPRINTS",
]

logger = logging.getLogger(__name__)

ALL_BLUEPRINTS = [token_bp, vesting_bp]


def register_blueprints(app: Flask, deployment: "Deployment") -> None:
    """
    Register all API blueprints and error handlers with the Flask app.

    Args:
        app: Flask application instance
        deployment: Contract host the blueprints operate on
    """
    api_context = {"deployment": deployment}

    @app.before_request
    def inject_api_context() -> None:
        """Inject API context into Flask's g object for blueprint access."""
        g.api_context = api_context

    @app.errorhandler(ContractError)
    def handle_contract_error(exc: ContractError) -> Tuple[Any, int]:
        return contract_error_response(exc)

    @app.errorhandler(InvalidPayload)
    def handle_invalid_payload(exc: InvalidPayload) -> Tuple[Any, int]:
        return error_response(
            str(exc), status=400, code="invalid_payload", context={"errors": exc.errors}
        )

    @app.route("/health", methods=["GET"])
    def health() -> Any:
        return jsonify(
            {
                "status": "ok",
                "network": deployment.network,
                "token": deployment.token.address if deployment.token else None,
                "factory": deployment.factory.address if deployment.factory else None,
            }
        )

    for bp in ALL_BLUEPRINTS:
        app.register_blueprint(bp)


def create_app(deployment: "Deployment") -> Flask:
    """Build the Flask app serving ``deployment``."""
    app = Flask("talevest")
    register_blueprints(app, deployment)
    logger.info(
        "API app created",
        extra={"event": "api.created", "network": deployment.network},
    )
    return app
