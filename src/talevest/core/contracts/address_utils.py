"""Address helpers shared by the token, schedules and factory."""

from __future__ import annotations

import hashlib
import time

from talevest.core.constants import ZERO_ADDRESS


def normalize_address(address: str | None) -> str:
    """Normalize address to lowercase; None becomes the empty string."""
    return (address or "").strip().lower()


def is_zero_address(address: str | None) -> bool:
    """True for empty, missing or all-zero addresses."""
    normalized = normalize_address(address)
    return not normalized or normalized == ZERO_ADDRESS


def derive_contract_address(*parts: object) -> str:
    """Derive a 20-byte hex contract address from deployment inputs."""
    addr_input = "".join(str(part) for part in parts) + str(time.time_ns())
    addr_hash = hashlib.sha3_256(addr_input.encode()).digest()
    return f"0x{addr_hash[-20:].hex()}"


def short_address(address: str) -> str:
    """Truncate an address for log lines."""
    return address[:10]
