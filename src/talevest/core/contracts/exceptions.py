"""
Contract error taxonomy.

Every error is raised synchronously before any state is written, so a
failed call never leaves a contract partially updated.
"""

from __future__ import annotations


class ContractError(Exception):
    """Base class for all contract execution failures."""

    code = "contract_error"


class TokenPaused(ContractError):
    """Raised when a state-changing token call is made while paused."""

    code = "token_paused"


class InsufficientBalance(ContractError):
    """Raised when a holder's balance is below the requested transfer."""

    code = "insufficient_balance"


class InsufficientAllowance(ContractError):
    """Raised when a spender's allowance is below the requested amount."""

    code = "insufficient_allowance"


class VestingError(ContractError):
    """Base class for vesting schedule and factory failures."""

    code = "vesting_error"


class ValidationError(VestingError):
    """Malformed or out-of-range creation or update parameters."""

    code = "validation_error"


class Unauthorized(VestingError):
    """Caller does not hold the role the operation requires."""

    code = "unauthorized"


class InsufficientReleasable(VestingError):
    """release() called when nothing is releasable."""

    code = "insufficient_releasable"


class NothingToWithdraw(VestingError):
    """Emergency withdrawal with consent found an empty balance."""

    code = "nothing_to_withdraw"


class NoExcess(VestingError):
    """Emergency withdrawal without consent found no surplus over the obligation."""

    code = "no_excess"


class InvalidSchedule(VestingError):
    """Registry lookup on an unknown schedule address."""

    code = "invalid_schedule"
