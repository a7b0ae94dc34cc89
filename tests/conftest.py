"""
Fixtures mirroring the contract deployment fixtures: a fresh in-process ledger with a mock token, a
cloned (uninitialized or initialized) vesting contract and a vesting factory.
"""

from types import SimpleNamespace

import pytest

from vesting_ops.factory import VestingFactory
from vesting_ops.ledger import ERC20Mock, Ledger
from vesting_ops.scale import DAY, PERCENTAGE_SCALE_FACTOR, e18
from vesting_ops.vesting import Vesting, VestingConfig

GENESIS = 1_700_000_000


@pytest.fixture
def ledger():
    return Ledger(timestamp=GENESIS)


@pytest.fixture
def users(ledger):
    deployer, u1, u2, u3 = ledger.accounts(4)
    return SimpleNamespace(deployer=deployer, u1=u1, u2=u2, u3=u3)


@pytest.fixture
def token(ledger):
    return ledger.deploy(ERC20Mock(18))


@pytest.fixture
def impl(ledger):
    return ledger.deploy(Vesting())


@pytest.fixture
def vesting(ledger, impl):
    return ledger.clone(impl.address)


@pytest.fixture
def start_time(ledger, vesting, token, users):
    """Initializes `vesting` for u1 (1000 tokens, 10% at TGE in 7 days, 30 day cliff, 365 days of
    vesting), funds it and returns the TGE time."""
    tge = ledger.timestamp + 7 * DAY
    vesting.initialize(
        VestingConfig(
            token=token.address,
            claimant=users.u1,
            cliff_duration=30 * DAY,
            vesting_duration=365 * DAY,
            tge_time=tge,
            tge_percentage=10 * PERCENTAGE_SCALE_FACTOR,
            total_amount=e18(1000),
        )
    )
    token.mint(vesting.address, e18(1000))
    return tge


@pytest.fixture
def factory(ledger, impl, token, users):
    return VestingFactory.create(ledger, impl.address, users.deployer, token.address)


@pytest.fixture
def factory_config(ledger, token):
    """Config builder for factory deployments: no cliff, 100 days of vesting, TGE in 7 days."""

    def make(claimant, amount):
        return VestingConfig(
            token=token.address,
            claimant=claimant,
            cliff_duration=0,
            vesting_duration=100 * DAY,
            tge_time=ledger.timestamp + 7 * DAY,
            tge_percentage=0,
            total_amount=e18(amount),
        )

    return make
