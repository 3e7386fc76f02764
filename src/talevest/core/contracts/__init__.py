"""
Tale Vesting Contracts.

This module provides the contract implementations:
- PrompTaleToken: burnable, pausable ERC20-style asset ledger
- VestingSchedule: interval vesting wallet for one beneficiary
- ScheduleFactory: validated schedule creation with an append-only registry
"""

from .erc20 import PrompTaleToken, TokenEvent
from .exceptions import (
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
    VestingError,
)
from .vesting_factory import FactoryEvent, ScheduleFactory, ScheduleRegistry
from .vesting_wallet import ScheduleSummary, VestingEvent, VestingSchedule

__all__ = [
    # Contracts
    "PrompTaleToken",
    "VestingSchedule",
    "ScheduleFactory",
    "ScheduleRegistry",
    # Records
    "TokenEvent",
    "VestingEvent",
    "FactoryEvent",
    "ScheduleSummary",
    # Errors
    "ContractError",
    "VestingError",
    "ValidationError",
    "Unauthorized",
    "InsufficientReleasable",
    "InsufficientBalance",
    "InsufficientAllowance",
    "NothingToWithdraw",
    "NoExcess",
    "InvalidSchedule",
    "TokenPaused",
]
