"""
Linear vesting release schedule.

A grant of `total_amount` unlocks `tge_percentage` of itself at `tge_time`, nothing more until the
cliff (`tge_time + cliff_duration`) has passed, and then the remainder linearly over
`vesting_duration` seconds.  All arithmetic is integer with floor division, identical to the
on-chain `Vesting` contract: claiming often can leave a few wei of rounding dust compared to
claiming once at the end, and that is not compensated.
"""

from .errors import InvalidConfig
from .scale import HUNDRED_PERCENT, ZERO_ADDRESS


def tge_amount(config):
    return config.total_amount * config.tge_percentage // HUNDRED_PERCENT


def vesting_start(config):
    return config.tge_time + config.cliff_duration


def vesting_end(config):
    return vesting_start(config) + config.vesting_duration


def released_amount(config, timestamp):
    """Total amount unlocked at `timestamp`, claimed or not."""
    if config.vesting_duration == 0 or timestamp < config.tge_time:
        # uninitialized or not started yet
        return 0

    unlocked = tge_amount(config)
    start = vesting_start(config)
    if timestamp < start:
        return unlocked

    elapsed = min(timestamp - start, config.vesting_duration)
    unlocked += (config.total_amount - unlocked) * elapsed // config.vesting_duration
    return min(unlocked, config.total_amount)


def claimable_amount(config, amount_claimed, timestamp):
    released = released_amount(config, timestamp)
    if released <= amount_claimed:
        return 0
    return min(released - amount_claimed, config.total_amount - amount_claimed)


def check_config(config, now):
    """Raises InvalidConfig (with the same reason tags as the contract) if `config` cannot be
    initialized at time `now`.  `config.tge_time` must already be resolved (non-zero)."""
    if config.token == ZERO_ADDRESS:
        raise InvalidConfig("token")
    if config.claimant == ZERO_ADDRESS:
        raise InvalidConfig("claimant")
    if config.vesting_duration <= 0:
        raise InvalidConfig("vestingDuration")
    if vesting_end(config) < now:
        raise InvalidConfig("vesting over")
    if config.tge_percentage > HUNDRED_PERCENT:
        raise InvalidConfig("tgePercentage")
    if config.total_amount <= 0:
        raise InvalidConfig("totalAmount")
