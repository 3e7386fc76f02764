"""
Property-based checks for schedule accrual and withdrawal.
"""

import pytest
from hypothesis import given, settings, strategies as st

from talevest.core.constants import ONE_TOKEN, SECONDS_PER_DAY
from talevest.core.contracts import NoExcess, PrompTaleToken, VestingSchedule

from ..conftest import BENEFICIARY, DEPLOYER, GENESIS_TIME, TREASURY, FakeClock

amounts = st.integers(min_value=0, max_value=10**9 * ONE_TOKEN)
intervals = st.integers(min_value=1, max_value=365)
interval_lengths = st.integers(min_value=SECONDS_PER_DAY + 1, max_value=400 * SECONDS_PER_DAY)


def _build(total_amount, total_intervals, interval_length, funded=True):
    clock = FakeClock(GENESIS_TIME)
    token = PrompTaleToken.deploy(DEPLOYER, 10**10 * ONE_TOKEN)
    schedule = VestingSchedule(
        token=token,
        beneficiary=BENEFICIARY,
        admin=DEPLOYER,
        start_time=GENESIS_TIME,
        interval_length=interval_length,
        total_intervals=total_intervals,
        total_amount=total_amount,
        time_provider=clock,
    )
    if funded:
        token.transfer(DEPLOYER, schedule.address, total_amount)
    return clock, token, schedule


@given(amounts, intervals, interval_lengths, st.integers(min_value=1, max_value=10**9))
def test_nothing_releasable_before_start(total_amount, total_intervals, interval_length, before):
    _, _, schedule = _build(total_amount, total_intervals, interval_length, funded=False)
    assert schedule.releasable_amount(GENESIS_TIME - before) == 0


@given(amounts, intervals, interval_lengths, st.integers(min_value=0, max_value=10**8))
def test_maturity_vests_exact_total(total_amount, total_intervals, interval_length, extra):
    _, _, schedule = _build(total_amount, total_intervals, interval_length, funded=False)
    mature = GENESIS_TIME + total_intervals * interval_length + extra
    assert schedule.vested_amount(mature) == total_amount
    assert schedule.releasable_amount(mature) == total_amount


@given(amounts, intervals, interval_lengths, st.integers(min_value=0), st.integers(min_value=0))
def test_entitlement_is_monotonic(total_amount, total_intervals, interval_length, t1, t2):
    _, _, schedule = _build(total_amount, total_intervals, interval_length, funded=False)
    early, late = sorted((t1, t2))
    assert schedule.vested_amount(early) <= schedule.vested_amount(late) <= total_amount


@settings(max_examples=50)
@given(
    amounts,
    intervals,
    interval_lengths,
    st.lists(st.integers(min_value=0, max_value=60 * SECONDS_PER_DAY), min_size=1, max_size=12),
)
def test_releases_never_exceed_total(total_amount, total_intervals, interval_length, steps):
    clock, token, schedule = _build(total_amount, total_intervals, interval_length)
    previous_ticks = 0
    for step in steps:
        clock.advance(step)
        if schedule.releasable_amount() > 0:
            schedule.release(BENEFICIARY)
        assert schedule.released_ticks >= previous_ticks
        previous_ticks = schedule.released_ticks
        assert schedule.released_amount <= total_amount
        assert token.balance_of(BENEFICIARY) == schedule.released_amount
        # Releasing leaves nothing further releasable at the same instant.
        assert schedule.releasable_amount() == 0

    clock.advance(total_intervals * interval_length)
    if schedule.releasable_amount() > 0:
        schedule.release(BENEFICIARY)
    assert schedule.released_amount == total_amount
    assert schedule.held_balance() == 0


@given(amounts, intervals, interval_lengths, st.integers(min_value=0, max_value=10**6 * ONE_TOKEN))
def test_withdraw_without_consent_keeps_obligation(
    total_amount, total_intervals, interval_length, surplus
):
    _, token, schedule = _build(total_amount, total_intervals, interval_length)
    token.transfer(DEPLOYER, schedule.address, surplus)

    if surplus == 0:
        with pytest.raises(NoExcess):
            schedule.emergency_withdraw(DEPLOYER, TREASURY)
    else:
        assert schedule.emergency_withdraw(DEPLOYER, TREASURY) == surplus

    assert schedule.held_balance() >= schedule.remaining_obligation()
