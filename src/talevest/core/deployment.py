"""
Tale Vesting - Contract Host

Holds the deployed token and schedule factory for one network, the clock
they share, and the JSON state file they are persisted to. The host is
the single authoritative store: callers mutate contracts inside
``transaction()``, which persists the change or rolls it back.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from talevest.core.constants import INITIAL_SUPPLY
from talevest.core.contracts.address_utils import normalize_address
from talevest.core.contracts.erc20 import PrompTaleToken
from talevest.core.contracts.exceptions import ContractError
from talevest.core.contracts.vesting_factory import ScheduleFactory
from talevest.utils.secure_io import read_json, secure_atomic_write_json

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class DeploymentError(ContractError):
    """Raised when a contract is missing, already deployed, or mismatched."""

    code = "deployment_error"


class StatePersistenceError(DeploymentError):
    """Raised when the state file cannot be written; the change is rolled back."""

    code = "state_persistence_error"


class Deployment:
    """
    Contract host for the token and the schedule factory.

    Args:
        state_file: JSON file the state is saved to (None keeps it in memory)
        time_provider: Clock returning Unix seconds, shared by all contracts
        network: Network tag recorded in the state file
    """

    def __init__(
        self,
        state_file: str | None = None,
        time_provider: Callable[[], int] | None = None,
        network: str = "testnet",
    ) -> None:
        self.state_file = state_file
        self.network = network
        self.time_provider = time_provider or (lambda: int(time.time()))
        self.token: PrompTaleToken | None = None
        self.factory: ScheduleFactory | None = None
        self.lock = threading.RLock()

    # ==================== Deployment ====================

    def deploy_token(self, deployer: str, initial_supply: int = INITIAL_SUPPLY) -> PrompTaleToken:
        """Deploy the PTL token, minting ``initial_supply`` to the deployer."""
        with self.lock:
            if self.token is not None:
                raise DeploymentError(f"Token already deployed at {self.token.address}")
            self.token = PrompTaleToken.deploy(deployer, initial_supply)
            return self.token

    def deploy_factory(self, deployer: str, token_address: str | None = None) -> ScheduleFactory:
        """
        Deploy the schedule factory for the deployed token.

        Args:
            deployer: Factory owner
            token_address: Expected token address; must match the deployed token
        """
        with self.lock:
            token = self.require_token()
            if token_address and normalize_address(token_address) != token.address:
                raise DeploymentError(
                    f"Token {token_address} is not deployed here (have {token.address})"
                )
            if self.factory is not None:
                raise DeploymentError(f"Factory already deployed at {self.factory.address}")
            self.factory = ScheduleFactory(token, deployer, time_provider=self.time_provider)
            logger.info(
                "Factory deployed",
                extra={
                    "event": "deployment.factory_deployed",
                    "address": self.factory.address,
                    "token": token.address,
                    "owner": self.factory.owner[:10],
                },
            )
            return self.factory

    def require_token(self) -> PrompTaleToken:
        if self.token is None:
            raise DeploymentError("Token has not been deployed")
        return self.token

    def require_factory(self) -> ScheduleFactory:
        if self.factory is None:
            raise DeploymentError("Schedule factory has not been deployed")
        return self.factory

    # ==================== Persistence ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": STATE_VERSION,
            "network": self.network,
            "token": self.token.to_dict() if self.token else None,
            "factory": self.factory.to_dict() if self.factory else None,
        }

    def save(self) -> None:
        """Atomically write the state file; a no-op for in-memory hosts."""
        if not self.state_file:
            return
        with self.lock:
            secure_atomic_write_json(self.state_file, self.to_dict())
        logger.debug(
            "Deployment state saved",
            extra={"event": "deployment.saved", "path": self.state_file},
        )

    @contextmanager
    def transaction(self) -> Iterator["Deployment"]:
        """
        Apply contract mutations all-or-nothing.

        Holds ``lock``, snapshots the state, runs the body and saves. If the
        body or the save raises, every contract is restored to the snapshot
        in place (existing token, factory and schedule objects keep their
        identity) and the error is re-raised. A failed write surfaces as
        StatePersistenceError.
        """
        with self.lock:
            snapshot = self.to_dict()
            try:
                yield self
                try:
                    self.save()
                except OSError as exc:
                    raise StatePersistenceError(
                        f"Could not write state file {self.state_file}: {exc}"
                    ) from exc
            except Exception as exc:
                self._rollback(snapshot)
                logger.warning(
                    "Deployment change rolled back: %s",
                    exc,
                    extra={"event": "deployment.rolled_back", "error": type(exc).__name__},
                )
                raise

    def _rollback(self, snapshot: dict[str, Any]) -> None:
        restored = Deployment.from_dict(snapshot, self.state_file, self.time_provider)

        self.token = _restore_into(self.token, restored.token)
        if restored.factory is None:
            self.factory = None
            return

        factory = restored.factory
        factory.token = self.token
        current = self.factory.schedules if self.factory is not None else {}
        for address, schedule in list(factory.schedules.items()):
            schedule.token = self.token
            factory.schedules[address] = _restore_into(current.get(address), schedule)
        self.factory = _restore_into(self.factory, factory)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        state_file: str | None = None,
        time_provider: Callable[[], int] | None = None,
    ) -> "Deployment":
        version = data.get("version")
        if version != STATE_VERSION:
            raise DeploymentError(f"Unsupported state file version: {version!r}")

        deployment = cls(
            state_file=state_file,
            time_provider=time_provider,
            network=data.get("network", "testnet"),
        )
        if data.get("token"):
            deployment.token = PrompTaleToken.from_dict(data["token"])
        if data.get("factory"):
            token = deployment.require_token()
            if normalize_address(data["factory"].get("token")) != token.address:
                raise DeploymentError("Factory state references a different token")
            deployment.factory = ScheduleFactory.from_dict(
                data["factory"], token, deployment.time_provider
            )
        return deployment

    @classmethod
    def load(
        cls,
        state_file: str,
        time_provider: Callable[[], int] | None = None,
        network: str = "testnet",
    ) -> "Deployment":
        """Load ``state_file``, or start an empty host when it does not exist."""
        if not os.path.exists(state_file):
            logger.info(
                "No deployment state found, starting empty",
                extra={"event": "deployment.empty", "path": state_file},
            )
            return cls(state_file=state_file, time_provider=time_provider, network=network)
        return cls.from_dict(read_json(state_file), state_file, time_provider)


def _restore_into(current: Any, restored: Any) -> Any:
    """Copy ``restored`` state onto ``current`` when both are the same contract."""
    if current is None or restored is None or current.address != restored.address:
        return restored
    current.__dict__.update(restored.__dict__)
    return current
