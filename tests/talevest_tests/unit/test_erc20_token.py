"""
Unit tests for the PrompTale token ledger.
"""

import pytest

from talevest.core.constants import INITIAL_SUPPLY, ONE_TOKEN, TOKEN_DECIMALS, UINT256_MAX
from talevest.core.contracts import (
    ContractError,
    InsufficientAllowance,
    InsufficientBalance,
    PrompTaleToken,
    TokenPaused,
    Unauthorized,
)

from ..conftest import BENEFICIARY, DEPLOYER, OTHER


def test_deploy_mints_supply_to_deployer():
    token = PrompTaleToken.deploy(DEPLOYER)
    assert token.total_supply == INITIAL_SUPPLY
    assert token.balance_of(DEPLOYER) == INITIAL_SUPPLY
    assert token.owner == DEPLOYER
    assert token.decimals == TOKEN_DECIMALS
    assert token.events[0].event_type == "Transfer"
    assert token.events[0].value == INITIAL_SUPPLY


def test_deploy_rejects_zero_deployer():
    with pytest.raises(ContractError):
        PrompTaleToken.deploy("0x" + "0" * 40)


def test_deploy_rejects_negative_supply():
    with pytest.raises(ContractError):
        PrompTaleToken.deploy(DEPLOYER, -1)


def test_transfer_moves_balance(token):
    token.transfer(DEPLOYER, BENEFICIARY, 5 * ONE_TOKEN)
    assert token.balance_of(BENEFICIARY) == 5 * ONE_TOKEN
    assert token.balance_of(DEPLOYER) == 999_995 * ONE_TOKEN
    assert token.events[-1].to_address == BENEFICIARY


def test_transfer_over_balance_fails_without_change(token):
    with pytest.raises(InsufficientBalance):
        token.transfer(BENEFICIARY, OTHER, 1)
    assert token.balance_of(OTHER) == 0


@pytest.mark.parametrize("amount", [-1, 1.5, True, UINT256_MAX + 1])
def test_transfer_rejects_bad_amount(token, amount):
    with pytest.raises(ContractError):
        token.transfer(DEPLOYER, BENEFICIARY, amount)


def test_transfer_to_zero_address_rejected(token):
    with pytest.raises(ContractError):
        token.transfer(DEPLOYER, "0x" + "0" * 40, 1)


def test_addresses_are_case_insensitive(token):
    token.transfer(DEPLOYER.upper().replace("0X", "0x"), BENEFICIARY, 10)
    assert token.balance_of(BENEFICIARY.upper().replace("0X", "0x")) == 10


def test_approve_and_transfer_from(token):
    token.approve(DEPLOYER, OTHER, 100)
    token.transfer_from(OTHER, DEPLOYER, BENEFICIARY, 60)

    assert token.allowance(DEPLOYER, OTHER) == 40
    assert token.balance_of(BENEFICIARY) == 60
    with pytest.raises(InsufficientAllowance):
        token.transfer_from(OTHER, DEPLOYER, BENEFICIARY, 41)


def test_infinite_allowance_is_not_decremented(token):
    token.approve(DEPLOYER, OTHER, UINT256_MAX)
    token.transfer_from(OTHER, DEPLOYER, BENEFICIARY, 60)
    assert token.allowance(DEPLOYER, OTHER) == UINT256_MAX


def test_increase_and_decrease_allowance(token):
    token.increase_allowance(DEPLOYER, OTHER, 10)
    token.increase_allowance(DEPLOYER, OTHER, 5)
    token.decrease_allowance(DEPLOYER, OTHER, 3)
    assert token.allowance(DEPLOYER, OTHER) == 12
    with pytest.raises(InsufficientAllowance):
        token.decrease_allowance(DEPLOYER, OTHER, 13)


def test_burn_reduces_supply(token):
    supply = token.total_supply
    token.burn(DEPLOYER, ONE_TOKEN)
    assert token.total_supply == supply - ONE_TOKEN
    with pytest.raises(InsufficientBalance):
        token.burn(BENEFICIARY, 1)


def test_burn_from_uses_allowance(token):
    token.approve(DEPLOYER, OTHER, ONE_TOKEN)
    token.burn_from(OTHER, DEPLOYER, ONE_TOKEN)
    assert token.allowance(DEPLOYER, OTHER) == 0
    with pytest.raises(InsufficientAllowance):
        token.burn_from(OTHER, DEPLOYER, 1)


def test_pause_blocks_transfers(token):
    token.pause(DEPLOYER)
    with pytest.raises(TokenPaused):
        token.transfer(DEPLOYER, BENEFICIARY, 1)
    with pytest.raises(TokenPaused):
        token.approve(DEPLOYER, OTHER, 1)

    token.unpause(DEPLOYER)
    token.transfer(DEPLOYER, BENEFICIARY, 1)
    assert token.balance_of(BENEFICIARY) == 1


def test_only_owner_pauses(token):
    with pytest.raises(Unauthorized):
        token.pause(OTHER)


def test_transfer_ownership(token):
    token.transfer_ownership(DEPLOYER, OTHER)
    assert token.owner == OTHER
    with pytest.raises(Unauthorized):
        token.pause(DEPLOYER)
    with pytest.raises(ContractError):
        token.transfer_ownership(OTHER, "")


def test_round_trip(token):
    token.transfer(DEPLOYER, BENEFICIARY, 7)
    token.approve(DEPLOYER, OTHER, 3)
    token.pause(DEPLOYER)

    restored = PrompTaleToken.from_dict(token.to_dict())

    assert restored.address == token.address
    assert [e.event_type for e in restored.events] == [e.event_type for e in token.events]
    assert restored.events[1].to_address == BENEFICIARY
    assert restored.events[1].value == 7
    assert restored.metadata() == token.metadata()
    assert restored.balance_of(BENEFICIARY) == 7
    assert restored.allowance(DEPLOYER, OTHER) == 3
    assert restored.paused is True
