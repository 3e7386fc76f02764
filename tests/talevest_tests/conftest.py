import sys
from pathlib import Path

import pytest

# Ensure the src directory is importable before collection runs.
project_root = Path(__file__).resolve().parents[2]
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from talevest.core.constants import ONE_TOKEN, SECONDS_PER_30_DAYS, SECONDS_PER_DAY
from talevest.core.contracts import PrompTaleToken, ScheduleFactory

GENESIS_TIME = 1_700_000_000

DEPLOYER = "0x" + "a" * 40
BENEFICIARY = "0x" + "b" * 40
OTHER = "0x" + "c" * 40
TREASURY = "0x" + "d" * 40


class FakeClock:
    """Deterministic time provider that tests advance by hand."""

    def __init__(self, now: int = GENESIS_TIME) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token():
    """Token with the full supply minted to DEPLOYER."""
    return PrompTaleToken.deploy(DEPLOYER, 1_000_000 * ONE_TOKEN)


@pytest.fixture
def factory(token, clock):
    return ScheduleFactory(token, DEPLOYER, time_provider=clock)


@pytest.fixture
def schedule_params(clock):
    """1000 tokens over 10 intervals of 30 days, starting one day from now."""
    return {
        "beneficiary": BENEFICIARY,
        "start_time": clock.now + SECONDS_PER_DAY,
        "interval_length": SECONDS_PER_30_DAYS,
        "total_intervals": 10,
        "total_amount": 1000 * ONE_TOKEN,
    }


@pytest.fixture
def schedule(factory, schedule_params):
    """Unfunded schedule administered by DEPLOYER."""
    address = factory.create_schedule(DEPLOYER, **schedule_params)
    return factory.get_schedule(address)


@pytest.fixture
def funded_schedule(schedule, token):
    """Schedule funded with exactly its total amount."""
    token.transfer(DEPLOYER, schedule.address, schedule.total_amount)
    return schedule
