"""
PrompTale (PTL) Token.

ERC20-style fungible token that serves as the asset ledger for vesting
schedules:
- Basic token operations (transfer, approve, transferFrom)
- Burning (holder and allowance based)
- Pausing by the owner
- Ownership transfer
- Events (Transfer, Approval, Paused, Unpaused, OwnershipTransferred)

The whole supply is minted to the deployer at construction; there is no
later minting.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any

from talevest.core.constants import (
    INITIAL_SUPPLY,
    TOKEN_DECIMALS,
    TOKEN_NAME,
    TOKEN_SYMBOL,
    UINT256_MAX,
    ZERO_ADDRESS,
)
from talevest.core.contracts.address_utils import (
    derive_contract_address,
    is_zero_address,
    normalize_address,
    short_address,
)
from talevest.core.contracts.exceptions import (
    ContractError,
    InsufficientAllowance,
    InsufficientBalance,
    TokenPaused,
    Unauthorized,
)

logger = logging.getLogger(__name__)


@dataclass
class TokenEvent:
    """Represents a token event."""

    event_type: str
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class PrompTaleToken:
    """
    Burnable, pausable, owner-controlled ERC20 token.

    All balances and allowances are stored in-memory and serialized with
    to_dict()/from_dict() for the deployment state file.
    """

    name: str = TOKEN_NAME
    symbol: str = TOKEN_SYMBOL
    decimals: int = TOKEN_DECIMALS
    total_supply: int = 0

    address: str = ""
    owner: str = ""

    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)
    events: list[TokenEvent] = field(default_factory=list)

    paused: bool = False

    def __post_init__(self) -> None:
        if not self.address:
            self.address = derive_contract_address(self.name, self.symbol, self.owner)
        self.address = normalize_address(self.address)
        self.owner = normalize_address(self.owner)

    @classmethod
    def deploy(cls, deployer: str, initial_supply: int = INITIAL_SUPPLY) -> "PrompTaleToken":
        """
        Deploy a new token and mint the initial supply to the deployer.

        Args:
            deployer: Address deploying the token (becomes owner)
            initial_supply: Supply in base units

        Returns:
            Deployed token

        Raises:
            ContractError: If the deployer is the zero address or the
                supply is out of range
        """
        if is_zero_address(deployer):
            raise ContractError("PTL: deployer is zero address")
        if initial_supply < 0 or initial_supply > UINT256_MAX:
            raise ContractError("PTL: invalid initial supply")

        token = cls(owner=deployer)
        token.total_supply = initial_supply
        token.balances[token.owner] = initial_supply
        token._emit("Transfer", ZERO_ADDRESS, token.owner, initial_supply)

        logger.info(
            "Token deployed",
            extra={
                "event": "token.deployed",
                "token": token.symbol,
                "address": token.address,
                "owner": short_address(token.owner),
                "initial_supply": initial_supply,
            },
        )
        return token

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        """Get the token balance of an account."""
        return self.balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """Get the allowance granted by owner to spender."""
        return self.allowances.get(normalize_address(owner), {}).get(
            normalize_address(spender), 0
        )

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Args:
            sender: Address sending tokens (msg.sender)
            recipient: Address receiving tokens
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            TokenPaused: If the token is paused
            InsufficientBalance: If sender's balance is below amount
            ContractError: If recipient or amount is invalid
        """
        self._require_not_paused()
        sender_norm = normalize_address(sender)
        recipient_norm = normalize_address(recipient)

        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        sender_balance = self.balances.get(sender_norm, 0)
        if sender_balance < amount:
            raise InsufficientBalance(
                f"PTL: transfer amount exceeds balance ({amount} > {sender_balance})"
            )

        self.balances[sender_norm] = sender_balance - amount
        self.balances[recipient_norm] = self.balances.get(recipient_norm, 0) + amount

        self._emit("Transfer", sender_norm, recipient_norm, amount)

        logger.debug(
            "Token transfer",
            extra={
                "event": "token.transfer",
                "token": self.symbol,
                "from": short_address(sender_norm),
                "to": short_address(recipient_norm),
                "amount": amount,
            },
        )
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Approve spender to spend tokens on behalf of owner."""
        self._require_not_paused()
        owner_norm = normalize_address(owner)
        spender_norm = normalize_address(spender)

        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
        self._emit("Approval", owner_norm, spender_norm, amount)
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Transfer tokens using an allowance.

        Raises:
            InsufficientAllowance: If the allowance is below amount
            InsufficientBalance: If the holder's balance is below amount
        """
        self._require_not_paused()
        spender_norm = normalize_address(spender)
        from_norm = normalize_address(from_addr)
        to_norm = normalize_address(to_addr)

        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        current_allowance = self.allowance(from_norm, spender_norm)
        if current_allowance < amount:
            raise InsufficientAllowance(
                f"PTL: insufficient allowance ({current_allowance} < {amount})"
            )

        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise InsufficientBalance(
                f"PTL: transfer amount exceeds balance ({amount} > {from_balance})"
            )

        if current_allowance != UINT256_MAX:
            self.allowances[from_norm][spender_norm] = current_allowance - amount

        self.balances[from_norm] = from_balance - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount

        self._emit("Transfer", from_norm, to_norm, amount)
        return True

    def increase_allowance(self, owner: str, spender: str, added_value: int) -> bool:
        """Increase spender's allowance, saturating at uint256 max."""
        new_allowance = min(self.allowance(owner, spender) + added_value, UINT256_MAX)
        return self.approve(owner, spender, new_allowance)

    def decrease_allowance(self, owner: str, spender: str, subtracted_value: int) -> bool:
        """Decrease spender's allowance."""
        current = self.allowance(owner, spender)
        if subtracted_value > current:
            raise InsufficientAllowance("PTL: decreased allowance below zero")
        return self.approve(owner, spender, current - subtracted_value)

    # ==================== Burning ====================

    def burn(self, holder: str, amount: int) -> bool:
        """Burn tokens from holder's balance."""
        self._require_not_paused()
        holder_norm = normalize_address(holder)
        self._validate_amount(amount)

        balance = self.balances.get(holder_norm, 0)
        if balance < amount:
            raise InsufficientBalance(f"PTL: burn amount exceeds balance ({amount} > {balance})")

        self.balances[holder_norm] = balance - amount
        self.total_supply -= amount
        self._emit("Transfer", holder_norm, ZERO_ADDRESS, amount)

        logger.info(
            "Token burn",
            extra={
                "event": "token.burn",
                "token": self.symbol,
                "from": short_address(holder_norm),
                "amount": amount,
                "new_supply": self.total_supply,
            },
        )
        return True

    def burn_from(self, spender: str, from_addr: str, amount: int) -> bool:
        """Burn tokens using allowance."""
        self._require_not_paused()
        spender_norm = normalize_address(spender)
        from_norm = normalize_address(from_addr)
        self._validate_amount(amount)

        current_allowance = self.allowance(from_norm, spender_norm)
        if current_allowance < amount:
            raise InsufficientAllowance(
                f"PTL: burn amount exceeds allowance ({amount} > {current_allowance})"
            )

        balance = self.balances.get(from_norm, 0)
        if balance < amount:
            raise InsufficientBalance(f"PTL: burn amount exceeds balance ({amount} > {balance})")

        if current_allowance != UINT256_MAX:
            self.allowances[from_norm][spender_norm] = current_allowance - amount

        self.balances[from_norm] = balance - amount
        self.total_supply -= amount
        self._emit("Transfer", from_norm, ZERO_ADDRESS, amount)
        return True

    # ==================== Admin Functions ====================

    def pause(self, caller: str) -> bool:
        """Pause token transfers (owner only)."""
        self._require_owner(caller)
        self.paused = True
        self._emit("Paused", normalize_address(caller), "", 0)
        logger.warning("Token paused", extra={"event": "token.paused", "token": self.symbol})
        return True

    def unpause(self, caller: str) -> bool:
        """Unpause token transfers (owner only)."""
        self._require_owner(caller)
        self.paused = False
        self._emit("Unpaused", normalize_address(caller), "", 0)
        logger.info("Token unpaused", extra={"event": "token.unpaused", "token": self.symbol})
        return True

    def transfer_ownership(self, caller: str, new_owner: str) -> bool:
        """Transfer ownership (owner only)."""
        self._require_owner(caller)
        new_owner_norm = normalize_address(new_owner)
        self._validate_address(new_owner_norm, "new owner")
        previous = self.owner
        self.owner = new_owner_norm
        self._emit("OwnershipTransferred", previous, new_owner_norm, 0)
        return True

    # ==================== Helpers ====================

    def _validate_address(self, address: str, field_name: str) -> None:
        if is_zero_address(address):
            raise ContractError(f"PTL: {field_name} is zero address")

    def _validate_amount(self, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise ContractError("PTL: amount must be an integer")
        if amount < 0:
            raise ContractError("PTL: amount cannot be negative")
        if amount > UINT256_MAX:
            raise ContractError("PTL: amount exceeds uint256")

    def _require_owner(self, caller: str) -> None:
        if normalize_address(caller) != self.owner:
            raise Unauthorized("PTL: caller is not owner")

    def _require_not_paused(self) -> None:
        if self.paused:
            raise TokenPaused("PTL: token is paused")

    def _emit(self, event_type: str, from_addr: str, to_addr: str, amount: int) -> None:
        self.events.append(
            TokenEvent(
                event_type=event_type,
                from_address=from_addr,
                to_address=to_addr,
                value=amount,
            )
        )

    # ==================== Serialization ====================

    def metadata(self) -> dict[str, Any]:
        """Public token metadata."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "paused": self.paused,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize token state to dictionary."""
        return {
            **self.metadata(),
            "balances": dict(self.balances),
            "allowances": {k: dict(v) for k, v in self.allowances.items()},
            "events": [asdict(event) for event in self.events],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PrompTaleToken":
        """Deserialize token state from dictionary."""
        token = cls(
            name=data.get("name", TOKEN_NAME),
            symbol=data.get("symbol", TOKEN_SYMBOL),
            decimals=data.get("decimals", TOKEN_DECIMALS),
            total_supply=data.get("total_supply", 0),
            address=data["address"],
            owner=data.get("owner", ""),
            paused=data.get("paused", False),
        )
        token.balances = {k: int(v) for k, v in data.get("balances", {}).items()}
        token.allowances = {
            k: {s: int(a) for s, a in v.items()} for k, v in data.get("allowances", {}).items()
        }
        token.events = [TokenEvent(**event) for event in data.get("events", [])]
        return token
