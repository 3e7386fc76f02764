"""
Base utilities for API Blueprints

Provides the deployment accessor, response helpers and the mapping from
contract errors to HTTP responses shared across blueprints.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Type, TypeVar

from flask import g, jsonify, request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from talevest.core.contracts.exceptions import (
    ContractError,
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientReleasable,
    InvalidSchedule,
    NoExcess,
    NothingToWithdraw,
    TokenPaused,
    Unauthorized,
    ValidationError,
)
from talevest.core.deployment import DeploymentError, StatePersistenceError

if TYPE_CHECKING:
    from talevest.core.deployment import Deployment

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

ERROR_STATUS: Dict[Type[ContractError], int] = {
    ValidationError: 400,
    Unauthorized: 403,
    InvalidSchedule: 404,
    InsufficientReleasable: 409,
    InsufficientBalance: 409,
    InsufficientAllowance: 409,
    NothingToWithdraw: 409,
    NoExcess: 409,
    TokenPaused: 409,
    DeploymentError: 409,
    StatePersistenceError: 500,
}


class InvalidPayload(Exception):
    """Raised when a request body fails schema validation."""

    def __init__(self, message: str, errors: Optional[list] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def get_api_context() -> Dict[str, Any]:
    """Get the API context stored in Flask's g object during request setup."""
    return g.get("api_context", {})


def get_deployment() -> "Deployment":
    """Get the contract host from context."""
    return get_api_context()["deployment"]


def success_response(payload: Dict[str, Any], status: int = 200) -> Tuple[Any, int]:
    """Return a success payload with consistent structure."""
    body = {"success": True, **payload}
    return jsonify(body), status


def error_response(
    message: str,
    status: int = 400,
    code: str = "bad_request",
    context: Optional[Dict[str, Any]] = None,
) -> Tuple[Any, int]:
    """Return an error payload and log it."""
    log = logger.error if status >= 500 else logger.warning
    log(
        "API error: %s",
        message,
        extra={"event": "api.error", "code": code, "status": status, "path": request.path},
    )
    body: Dict[str, Any] = {"success": False, "error": message, "code": code}
    if context:
        body.update(context)
    return jsonify(body), status


def contract_error_response(exc: ContractError) -> Tuple[Any, int]:
    """Map a contract error to its HTTP status."""
    status = 400
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS:
            status = ERROR_STATUS[error_type]
            break
    return error_response(str(exc), status=status, code=exc.code)


def parse_body(model: Type[ModelT]) -> ModelT:
    """
    Validate the JSON request body against ``model``.

    Raises:
        InvalidPayload: If the body is missing, not JSON, or invalid
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidPayload("Request body must be a JSON object")
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise InvalidPayload(
            "Invalid request payload",
            errors=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc
