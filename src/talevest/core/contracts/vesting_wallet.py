"""
Interval vesting wallet.

A VestingSchedule holds one beneficiary's grant. Its funded balance lives
in the token ledger under the schedule's own address and is released in
discrete installments: every completed interval after ``start_time``
vests ``total_amount / total_intervals`` more tokens, truncated to whole
base units. Truncation remainders are deferred, not lost; once the final
interval completes the vested quantity equals ``total_amount`` exactly.

Roles:
- beneficiary: calls release() and set_emergency_consent()
- admin: calls emergency_withdraw(), the parameter setters and
  transfer_admin()

Every operation performs all of its checks, and the ledger transfer when
there is one, before writing any schedule field.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from talevest.core.contracts.address_utils import (
    derive_contract_address,
    is_zero_address,
    normalize_address,
    short_address,
)
from talevest.core.contracts.exceptions import (
    InsufficientReleasable,
    NoExcess,
    NothingToWithdraw,
    Unauthorized,
    ValidationError,
)

if TYPE_CHECKING:
    from talevest.core.contracts.erc20 import PrompTaleToken

logger = logging.getLogger(__name__)

WITHDRAW_FULL = "full"
WITHDRAW_EXCESS = "excess"


@dataclass
class VestingEvent:
    """Audit-trail entry emitted by a schedule."""

    event_type: str
    data: dict[str, Any]
    timestamp: int = field(default_factory=lambda: int(time.time()))


@dataclass(frozen=True)
class ScheduleSummary:
    """Read-only snapshot returned by get_vesting_schedule()."""

    beneficiary: str
    start_time: int
    interval_length: int
    total_intervals: int
    total_amount: int
    released_ticks: int
    released_amount: int
    releasable_amount: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _require_int(value: Any, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    return value


class VestingSchedule:
    """
    One beneficiary's interval vesting grant.

    Args:
        token: Ledger holding the schedule's funded balance
        beneficiary: Recipient of releases
        admin: Controlling party, distinct from the beneficiary
        start_time: Unix timestamp at which accrual begins
        interval_length: Seconds per accrual tick
        total_intervals: Ticks over which total_amount vests
        total_amount: Total quantity ever releasable, in base units
        time_provider: Clock returning Unix seconds
        address: Existing schedule address (when restoring state)
    """

    def __init__(
        self,
        token: "PrompTaleToken",
        beneficiary: str,
        admin: str,
        start_time: int,
        interval_length: int,
        total_intervals: int,
        total_amount: int,
        time_provider: Callable[[], int] | None = None,
        address: str | None = None,
    ) -> None:
        beneficiary = normalize_address(beneficiary)
        admin = normalize_address(admin)

        if is_zero_address(beneficiary):
            raise ValidationError("Beneficiary cannot be the zero address.")
        if is_zero_address(admin):
            raise ValidationError("Admin cannot be the zero address.")
        if beneficiary == admin:
            raise ValidationError("Beneficiary and admin must be different addresses.")
        if _require_int(start_time, "start_time") < 0:
            raise ValidationError("Start time cannot be negative.")
        if _require_int(interval_length, "interval_length") <= 0:
            raise ValidationError("Interval length must be positive.")
        if _require_int(total_intervals, "total_intervals") <= 0:
            raise ValidationError("Total intervals must be positive.")
        if _require_int(total_amount, "total_amount") < 0:
            raise ValidationError("Total amount cannot be negative.")

        self.token = token
        self.beneficiary = beneficiary
        self.admin = admin
        self.start_time = start_time
        self.interval_length = interval_length
        self.total_intervals = total_intervals
        self.total_amount = total_amount

        self.released_amount = 0
        self.released_ticks = 0
        self.beneficiary_consent = False
        self.events: list[VestingEvent] = []

        self._time_provider = time_provider or (lambda: int(time.time()))
        self.address = normalize_address(address) or derive_contract_address(
            "vesting", token.address, beneficiary, start_time
        )

    @property
    def asset(self) -> str:
        """Address of the vested token."""
        return self.token.address

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    # ==================== Accrual ====================

    def elapsed_ticks(self, now: int | None = None) -> int:
        """Completed intervals since start_time, clamped to [0, total_intervals]."""
        if now is None:
            now = self._current_time()
        if now < self.start_time:
            return 0
        ticks = (now - self.start_time) // self.interval_length
        return max(0, min(ticks, self.total_intervals))

    def vested_amount(self, now: int | None = None) -> int:
        """Cumulative entitlement at ``now``, whether transferred or not."""
        ticks = self.elapsed_ticks(now)
        return self.total_amount * ticks // self.total_intervals

    def releasable_amount(self, now: int | None = None) -> int:
        """Vested quantity not yet transferred to the beneficiary."""
        if now is None:
            now = self._current_time()
        if now < self.start_time:
            return 0
        return max(0, self.vested_amount(now) - self.released_amount)

    def remaining_obligation(self) -> int:
        """Quantity still owed to the beneficiary over the life of the grant."""
        return max(0, self.total_amount - self.released_amount)

    def held_balance(self) -> int:
        """Funded balance currently held by the schedule."""
        return self.token.balance_of(self.address)

    def is_fully_released(self) -> bool:
        return self.released_amount >= self.total_amount

    # ==================== Beneficiary Operations ====================

    def release(self, caller: str) -> int:
        """
        Transfer the releasable quantity to the beneficiary.

        Only the beneficiary may release; the admin cannot trigger a
        release on the beneficiary's behalf.

        Args:
            caller: Address invoking release

        Returns:
            Amount transferred

        Raises:
            Unauthorized: If caller is not the beneficiary
            InsufficientReleasable: If nothing is releasable
            InsufficientBalance: If the held balance cannot cover the release
            TokenPaused: If the token is paused
        """
        self._require_beneficiary(caller)

        now = self._current_time()
        amount = self.releasable_amount(now)
        if amount <= 0:
            raise InsufficientReleasable(
                f"Nothing releasable for schedule {self.address} at {now}."
            )

        self.token.transfer(self.address, self.beneficiary, amount)

        self.released_amount += amount
        self.released_ticks = max(self.released_ticks, self.elapsed_ticks(now))

        self._emit(
            "TokensReleased",
            now,
            beneficiary=self.beneficiary,
            amount=amount,
        )
        self._emit(
            "ReleaseProgress",
            now,
            released_ticks=self.released_ticks,
            released_amount=self.released_amount,
            amount=amount,
        )
        logger.info(
            "Vesting release",
            extra={
                "event": "vesting.release",
                "schedule": short_address(self.address),
                "beneficiary": short_address(self.beneficiary),
                "amount": amount,
                "released_ticks": self.released_ticks,
                "released_amount": self.released_amount,
            },
        )
        return amount

    def set_emergency_consent(self, caller: str, consent: bool) -> None:
        """Allow or forbid the admin to drain the whole balance."""
        self._require_beneficiary(caller)
        self.beneficiary_consent = bool(consent)
        self._emit("EmergencyConsentChanged", None, consent=self.beneficiary_consent)
        logger.info(
            "Emergency consent changed",
            extra={
                "event": "vesting.consent",
                "schedule": short_address(self.address),
                "consent": self.beneficiary_consent,
            },
        )

    # ==================== Admin Operations ====================

    def emergency_withdraw(self, caller: str, destination: str) -> int:
        """
        Move held balance to ``destination`` outside the accrual path.

        With beneficiary consent the whole balance may be withdrawn.
        Without it only the surplus above the remaining obligation
        (total_amount - released_amount) may leave the schedule.
        Released counters are never touched.

        Returns:
            Amount withdrawn

        Raises:
            Unauthorized: If caller is not the admin
            ValidationError: If destination is the zero address or the schedule
            NothingToWithdraw: Consent given and balance is empty
            NoExcess: No consent and balance does not exceed the obligation
        """
        self._require_admin(caller)
        destination = normalize_address(destination)
        if is_zero_address(destination):
            raise ValidationError("Withdrawal destination cannot be the zero address.")
        if destination == self.address:
            raise ValidationError("Withdrawal destination cannot be the schedule itself.")

        balance = self.held_balance()
        if self.beneficiary_consent:
            branch = WITHDRAW_FULL
            if balance <= 0:
                raise NothingToWithdraw(f"Schedule {self.address} holds no balance.")
            amount = balance
        else:
            branch = WITHDRAW_EXCESS
            obligation = self.remaining_obligation()
            if balance <= obligation:
                raise NoExcess(
                    f"Balance {balance} does not exceed remaining obligation {obligation}."
                )
            amount = balance - obligation
            if amount <= 0:
                raise NoExcess("No surplus available for withdrawal.")

        self.token.transfer(self.address, destination, amount)

        self._emit(
            "EmergencyWithdrawal",
            None,
            destination=destination,
            amount=amount,
            branch=branch,
        )
        logger.warning(
            "Emergency withdrawal",
            extra={
                "event": "vesting.emergency_withdraw",
                "schedule": short_address(self.address),
                "destination": short_address(destination),
                "amount": amount,
                "branch": branch,
            },
        )
        return amount

    def set_total_amount(self, caller: str, total_amount: int) -> None:
        self._require_admin(caller)
        if _require_int(total_amount, "total_amount") < 0:
            raise ValidationError("Total amount cannot be negative.")
        if total_amount < self.released_amount:
            raise ValidationError(
                f"Total amount {total_amount} is below already released {self.released_amount}."
            )
        self.total_amount = total_amount
        self._parameter_updated("total_amount", total_amount)

    def set_start_time(self, caller: str, start_time: int) -> None:
        self._require_admin(caller)
        if _require_int(start_time, "start_time") < 0:
            raise ValidationError("Start time cannot be negative.")
        self.start_time = start_time
        self._parameter_updated("start_time", start_time)

    def set_total_intervals(self, caller: str, total_intervals: int) -> None:
        self._require_admin(caller)
        if _require_int(total_intervals, "total_intervals") <= 0:
            raise ValidationError("Total intervals must be positive.")
        if total_intervals < self.released_ticks:
            raise ValidationError(
                f"Total intervals {total_intervals} is below released ticks {self.released_ticks}."
            )
        self.total_intervals = total_intervals
        self._parameter_updated("total_intervals", total_intervals)

    def set_beneficiary(self, caller: str, beneficiary: str) -> None:
        self._require_admin(caller)
        beneficiary = normalize_address(beneficiary)
        if is_zero_address(beneficiary):
            raise ValidationError("Beneficiary cannot be the zero address.")
        if beneficiary == self.admin:
            raise ValidationError("Beneficiary and admin must be different addresses.")
        self.beneficiary = beneficiary
        self._parameter_updated("beneficiary", beneficiary)

    def transfer_admin(self, caller: str, new_admin: str) -> None:
        """Hand admin control to another address (admin only)."""
        self._require_admin(caller)
        new_admin = normalize_address(new_admin)
        if is_zero_address(new_admin):
            raise ValidationError("Admin cannot be the zero address.")
        if new_admin == self.beneficiary:
            raise ValidationError("Beneficiary and admin must be different addresses.")
        previous = self.admin
        self.admin = new_admin
        self._emit("AdminTransferred", None, previous_admin=previous, new_admin=new_admin)
        logger.info(
            "Schedule admin transferred",
            extra={
                "event": "vesting.admin_transferred",
                "schedule": short_address(self.address),
                "new_admin": short_address(new_admin),
            },
        )

    # ==================== Queries ====================

    def get_vesting_schedule(self, now: int | None = None) -> ScheduleSummary:
        if now is None:
            now = self._current_time()
        return ScheduleSummary(
            beneficiary=self.beneficiary,
            start_time=self.start_time,
            interval_length=self.interval_length,
            total_intervals=self.total_intervals,
            total_amount=self.total_amount,
            released_ticks=self.released_ticks,
            released_amount=self.released_amount,
            releasable_amount=self.releasable_amount(now),
        )

    # ==================== Helpers ====================

    def is_admin(self, caller: str) -> bool:
        return normalize_address(caller) == self.admin

    def is_beneficiary(self, caller: str) -> bool:
        return normalize_address(caller) == self.beneficiary

    def _require_admin(self, caller: str) -> None:
        if not self.is_admin(caller):
            raise Unauthorized("Caller is not the schedule admin.")

    def _require_beneficiary(self, caller: str) -> None:
        if not self.is_beneficiary(caller):
            raise Unauthorized("Caller is not the schedule beneficiary.")

    def _parameter_updated(self, name: str, value: Any) -> None:
        self._emit("ParameterUpdated", None, name=name, value=value)
        logger.info(
            "Schedule parameter updated",
            extra={
                "event": "vesting.parameter_updated",
                "schedule": short_address(self.address),
                "parameter": name,
                "value": value,
            },
        )

    def _emit(self, event_type: str, now: int | None, **data: Any) -> None:
        timestamp = self._current_time() if now is None else now
        self.events.append(VestingEvent(event_type=event_type, data=data, timestamp=timestamp))

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Serialize schedule state to dictionary."""
        return {
            "address": self.address,
            "asset": self.asset,
            "beneficiary": self.beneficiary,
            "admin": self.admin,
            "start_time": self.start_time,
            "interval_length": self.interval_length,
            "total_intervals": self.total_intervals,
            "total_amount": self.total_amount,
            "released_amount": self.released_amount,
            "released_ticks": self.released_ticks,
            "beneficiary_consent": self.beneficiary_consent,
            "events": [asdict(event) for event in self.events],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        token: "PrompTaleToken",
        time_provider: Callable[[], int] | None = None,
    ) -> "VestingSchedule":
        """Deserialize schedule state from dictionary."""
        schedule = cls(
            token=token,
            beneficiary=data["beneficiary"],
            admin=data["admin"],
            start_time=int(data["start_time"]),
            interval_length=int(data["interval_length"]),
            total_intervals=int(data["total_intervals"]),
            total_amount=int(data["total_amount"]),
            time_provider=time_provider,
            address=data["address"],
        )
        schedule.released_amount = int(data.get("released_amount", 0))
        schedule.released_ticks = int(data.get("released_ticks", 0))
        schedule.beneficiary_consent = bool(data.get("beneficiary_consent", False))
        schedule.events = [VestingEvent(**event) for event in data.get("events", [])]
        return schedule
