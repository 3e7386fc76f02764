"""
Vesting schedule factory.

The factory validates grant parameters, deploys a VestingSchedule per
grant, records it in an append-only registry and hands admin control of
the new schedule to the caller. The factory keeps no control over the
schedules it creates; it only reads their query interface for reporting.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from talevest.core.constants import (
    MAX_START_DELAY,
    MAX_TOTAL_INTERVALS,
    MIN_INTERVAL_LENGTH,
    MIN_TOTAL_AMOUNT,
)
from talevest.core.contracts.address_utils import (
    derive_contract_address,
    is_zero_address,
    normalize_address,
    short_address,
)
from talevest.core.contracts.exceptions import InvalidSchedule, Unauthorized, ValidationError
from talevest.core.contracts.vesting_wallet import ScheduleSummary, VestingSchedule

if TYPE_CHECKING:
    from talevest.core.contracts.erc20 import PrompTaleToken

logger = logging.getLogger(__name__)


@dataclass
class ScheduleRegistry:
    """
    Append-only record of every schedule the factory created.

    ``all_schedules`` keeps creation order; ``by_beneficiary`` maps a
    beneficiary to the schedules created for it, also in creation order.
    """

    all_schedules: list[str] = field(default_factory=list)
    by_beneficiary: dict[str, list[str]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def append(self, schedule_address: str, beneficiary: str) -> None:
        with self._lock:
            self.all_schedules.append(schedule_address)
            self.by_beneficiary.setdefault(beneficiary, []).append(schedule_address)

    def __contains__(self, schedule_address: object) -> bool:
        return schedule_address in self.all_schedules

    def __len__(self) -> int:
        return len(self.all_schedules)

    def schedules_for(self, beneficiary: str) -> list[str]:
        return list(self.by_beneficiary.get(normalize_address(beneficiary), []))

    def to_dict(self) -> dict[str, Any]:
        return {
            "all_schedules": list(self.all_schedules),
            "by_beneficiary": {k: list(v) for k, v in self.by_beneficiary.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleRegistry":
        return cls(
            all_schedules=list(data.get("all_schedules", [])),
            by_beneficiary={k: list(v) for k, v in data.get("by_beneficiary", {}).items()},
        )


@dataclass
class FactoryEvent:
    """Event emitted by the factory."""

    event_type: str
    data: dict[str, Any]
    timestamp: int = field(default_factory=lambda: int(time.time()))


class ScheduleFactory:
    """
    Deploys and tracks vesting schedules for a single token.

    Args:
        token: Token the schedules vest
        owner: Address allowed to create schedules
        time_provider: Clock returning Unix seconds, shared with schedules
        address: Existing factory address (when restoring state)
    """

    def __init__(
        self,
        token: "PrompTaleToken",
        owner: str,
        time_provider: Callable[[], int] | None = None,
        address: str | None = None,
    ) -> None:
        owner = normalize_address(owner)
        if is_zero_address(owner):
            raise ValidationError("Factory owner cannot be the zero address.")

        self.token = token
        self.owner = owner
        self.registry = ScheduleRegistry()
        self.schedules: dict[str, VestingSchedule] = {}
        self.events: list[FactoryEvent] = []
        self._time_provider = time_provider or (lambda: int(time.time()))
        self.address = normalize_address(address) or derive_contract_address(
            "factory", token.address, owner
        )

    def _current_time(self) -> int:
        return int(self._time_provider())

    # ==================== Creation ====================

    def validate_schedule_params(
        self,
        beneficiary: str,
        start_time: int,
        interval_length: int,
        total_intervals: int,
        total_amount: int,
        now: int | None = None,
    ) -> None:
        """
        Check grant parameters against the factory limits.

        Raises:
            ValidationError: With a distinct message per failed rule
        """
        if now is None:
            now = self._current_time()
        for name, value in (
            ("start_time", start_time),
            ("interval_length", interval_length),
            ("total_intervals", total_intervals),
            ("total_amount", total_amount),
        ):
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValidationError(f"{name} must be an integer")

        if is_zero_address(beneficiary):
            raise ValidationError("Beneficiary cannot be the zero address.")
        if interval_length <= MIN_INTERVAL_LENGTH:
            raise ValidationError(
                f"Interval length must be greater than {MIN_INTERVAL_LENGTH} seconds."
            )
        if start_time < now:
            raise ValidationError("Start time cannot be in the past.")
        if start_time > now + MAX_START_DELAY:
            raise ValidationError(
                f"Start time cannot be more than {MAX_START_DELAY} seconds in the future."
            )
        if total_intervals <= 0 or total_intervals > MAX_TOTAL_INTERVALS:
            raise ValidationError(
                f"Total intervals must be between 1 and {MAX_TOTAL_INTERVALS}."
            )
        if total_amount < MIN_TOTAL_AMOUNT:
            raise ValidationError(f"Total amount must be at least {MIN_TOTAL_AMOUNT}.")

    def create_schedule(
        self,
        caller: str,
        beneficiary: str,
        start_time: int,
        interval_length: int,
        total_intervals: int,
        total_amount: int,
    ) -> str:
        """
        Create a vesting schedule administered by ``caller``.

        The schedule starts unfunded; the admin funds it by transferring
        tokens to the returned address.

        Returns:
            Address of the new schedule

        Raises:
            Unauthorized: If caller is not the factory owner
            ValidationError: If any parameter is out of range
        """
        self._require_owner(caller)
        now = self._current_time()
        self.validate_schedule_params(
            beneficiary, start_time, interval_length, total_intervals, total_amount, now=now
        )

        schedule = VestingSchedule(
            token=self.token,
            beneficiary=beneficiary,
            admin=caller,
            start_time=start_time,
            interval_length=interval_length,
            total_intervals=total_intervals,
            total_amount=total_amount,
            time_provider=self._time_provider,
            address=derive_contract_address("vesting", self.address, len(self.registry)),
        )

        self.schedules[schedule.address] = schedule
        self.registry.append(schedule.address, schedule.beneficiary)

        self.events.append(
            FactoryEvent(
                event_type="ScheduleCreated",
                data={
                    "schedule": schedule.address,
                    "beneficiary": schedule.beneficiary,
                    "admin": schedule.admin,
                    "total_amount": total_amount,
                },
                timestamp=now,
            )
        )
        logger.info(
            "Vesting schedule created",
            extra={
                "event": "vesting_factory.created",
                "schedule": schedule.address,
                "beneficiary": short_address(schedule.beneficiary),
                "admin": short_address(schedule.admin),
                "start_time": start_time,
                "interval_length": interval_length,
                "total_intervals": total_intervals,
                "total_amount": total_amount,
            },
        )
        return schedule.address

    # ==================== Registry Queries ====================

    def get_all_schedules(self) -> list[str]:
        return list(self.registry.all_schedules)

    def get_schedules_for(self, beneficiary: str) -> list[str]:
        """Schedules created for ``beneficiary`` at creation time, oldest first."""
        return self.registry.schedules_for(beneficiary)

    def get_schedule(self, schedule_address: str) -> VestingSchedule:
        """
        Look up a schedule created by this factory.

        Raises:
            InvalidSchedule: If the address is zero or unregistered
        """
        normalized = normalize_address(schedule_address)
        if is_zero_address(normalized) or normalized not in self.registry:
            raise InvalidSchedule(f"Unknown vesting schedule: {schedule_address!r}")
        return self.schedules[normalized]

    def get_schedule_summary_for(self, schedule_address: str) -> ScheduleSummary:
        return self.get_schedule(schedule_address).get_vesting_schedule()

    # ==================== Ownership ====================

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """Transfer factory ownership (owner only)."""
        self._require_owner(caller)
        new_owner = normalize_address(new_owner)
        if is_zero_address(new_owner):
            raise ValidationError("Factory owner cannot be the zero address.")
        previous = self.owner
        self.owner = new_owner
        self.events.append(
            FactoryEvent(
                event_type="OwnershipTransferred",
                data={"previous_owner": previous, "new_owner": new_owner},
                timestamp=self._current_time(),
            )
        )

    def _require_owner(self, caller: str) -> None:
        if normalize_address(caller) != self.owner:
            raise Unauthorized("Caller is not the factory owner.")

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Serialize factory state, including every schedule."""
        return {
            "address": self.address,
            "token": self.token.address,
            "owner": self.owner,
            "registry": self.registry.to_dict(),
            "schedules": {addr: s.to_dict() for addr, s in self.schedules.items()},
            "events": [asdict(event) for event in self.events],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        token: "PrompTaleToken",
        time_provider: Callable[[], int] | None = None,
    ) -> "ScheduleFactory":
        """Deserialize factory state from dictionary."""
        factory = cls(
            token=token,
            owner=data["owner"],
            time_provider=time_provider,
            address=data["address"],
        )
        factory.registry = ScheduleRegistry.from_dict(data.get("registry", {}))
        factory.schedules = {
            addr: VestingSchedule.from_dict(schedule_data, token, factory._time_provider)
            for addr, schedule_data in data.get("schedules", {}).items()
        }
        factory.events = [FactoryEvent(**event) for event in data.get("events", [])]
        return factory
