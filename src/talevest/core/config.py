"""
Tale Vesting Configuration

Supports testnet and mainnet with separate defaults. Values come from the
environment, after loading a ``.env`` file from the working directory when
one exists.

SECURITY NOTICE:
- Mainnet deployments MUST set the deployer address explicitly
- Never commit .env files to version control
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


DEFAULT_STATE_FILES = {
    NetworkType.TESTNET: os.path.join("data", "testnet", "deployment.json"),
    NetworkType.MAINNET: os.path.join("data", "mainnet", "deployment.json"),
}


@dataclass(frozen=True)
class VestingConfig:
    """Resolved runtime configuration."""

    network: NetworkType
    deployer_address: str
    token_address: str
    state_file: str
    log_level: str
    log_file: str | None
    api_host: str
    api_port: int

    @property
    def is_mainnet(self) -> bool:
        return self.network is NetworkType.MAINNET


def _parse_network(raw: str) -> NetworkType:
    try:
        return NetworkType(raw.strip().lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"TALE_NETWORK must be one of {[n.value for n in NetworkType]}, got {raw!r}"
        ) from exc


def _parse_int(env_var: str, default: str) -> int:
    raw = os.getenv(env_var, default).strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc


def load_config(network: str | None = None, dotenv_path: str | None = None) -> VestingConfig:
    """
    Build the runtime configuration from the environment.

    Args:
        network: Overrides TALE_NETWORK when given
        dotenv_path: Explicit .env file; defaults to searching the cwd

    Raises:
        ConfigurationError: On invalid values, or missing mainnet settings
    """
    load_dotenv(dotenv_path=dotenv_path or find_dotenv(usecwd=True), override=False)

    network_type = _parse_network(network or os.getenv("TALE_NETWORK", "testnet"))
    deployer = os.getenv("TALE_DEPLOYER_ADDRESS", "").strip().lower()

    if not deployer:
        if network_type is NetworkType.MAINNET:
            raise ConfigurationError(
                "CRITICAL: TALE_DEPLOYER_ADDRESS environment variable required for mainnet."
            )
        logger.warning(
            "TALE_DEPLOYER_ADDRESS not set; deploy commands will require --deployer",
            extra={"event": "config.deployer_missing", "network": network_type.value},
        )

    state_file = os.getenv("TALE_STATE_FILE", "").strip() or DEFAULT_STATE_FILES[network_type]
    log_file = os.getenv("TALE_LOG_FILE", "").strip() or None

    return VestingConfig(
        network=network_type,
        deployer_address=deployer,
        token_address=os.getenv("TALE_TOKEN_ADDRESS", "").strip().lower(),
        state_file=state_file,
        log_level=os.getenv("TALE_LOG_LEVEL", "INFO").strip().upper(),
        log_file=log_file,
        api_host=os.getenv("TALE_API_HOST", "127.0.0.1").strip(),
        api_port=_parse_int("TALE_API_PORT", "8545"),
    )
