from dataclasses import astuple, dataclass, fields, replace

from web3 import Web3

from . import schedule
from .errors import AlreadyInitialized, ContractError, NothingToClaim, Unauthorized
from .ledger import Contract, keccak256, to_address, transaction
from .scale import ZERO_ADDRESS

VERSION = "1.0.0"

CONFIG_TUPLE = "(address,address,address,uint256,uint256,uint256,uint256,uint256)"

# Functions of contracts/interfaces/IVesting.sol; the ERC-165 interface id is the xor of their
# selectors.
IVESTING_FUNCTIONS = (
    f"initialize({CONFIG_TUPLE})",
    "claim()",
    "getClaimableAmount()",
    "amountClaimed()",
    "config()",
)

ERC165_INTERFACE_ID = bytes.fromhex("01ffc9a7")


def selector(signature):
    return keccak256(signature.encode())[:4]


def interface_id(signatures):
    iid = 0
    for sig in signatures:
        iid ^= int.from_bytes(selector(sig), "big")
    return iid.to_bytes(4, "big")


IVESTING_INTERFACE_ID = interface_id(IVESTING_FUNCTIONS)


@dataclass(frozen=True)
class VestingConfig:
    """Configuration of one vesting instance.  Field order matches IVesting.VestingConfig.

    Every field defaults to zero so that partial configs can be built for tests and checks; a
    zero `tge_time` means "at initialization".
    """

    token: str = ZERO_ADDRESS
    initial_owner: str = ZERO_ADDRESS
    claimant: str = ZERO_ADDRESS
    cliff_duration: int = 0
    vesting_duration: int = 0
    tge_time: int = 0
    tge_percentage: int = 0
    total_amount: int = 0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type is str:
                object.__setattr__(self, f.name, to_address(value))
            else:
                value = int(value)
                if not 0 <= value < 2**256:
                    raise ValueError(f"{f.name} out of uint256 range: {value}")
                object.__setattr__(self, f.name, value)

    def replace(self, **changes):
        return replace(self, **changes)

    def as_tuple(self):
        return astuple(self)

    @classmethod
    def from_tuple(cls, values):
        return cls(*values)

    def as_abi(self):
        """The struct as web3 expects it for a `VestingConfig` parameter."""
        return {
            "token": self.token,
            "initialOwner": self.initial_owner,
            "claimant": self.claimant,
            "cliffDuration": self.cliff_duration,
            "vestingDuration": self.vesting_duration,
            "tgeTime": self.tge_time,
            "tgePercentage": self.tge_percentage,
            "totalAmount": self.total_amount,
        }


class Vesting(Contract):
    """Single-beneficiary vesting wallet.

    Deployed once as an implementation (whose initializer is disabled) and then cloned for each
    claimant; every clone is initialized exactly once with its own config.
    """

    def __init__(self):
        self._initialized = True
        self._config = VestingConfig()
        self.amount_claimed = 0

    @classmethod
    def clone_storage(cls):
        return {"_initialized": False, "_config": VestingConfig(), "amount_claimed": 0}

    def version(self):
        return VERSION

    def supports_interface(self, iid):
        if isinstance(iid, str):
            iid = bytes.fromhex(iid[2:] if iid.startswith("0x") else iid)
        return iid in (IVESTING_INTERFACE_ID, ERC165_INTERFACE_ID)

    @property
    def config(self):
        return self._config

    def get_claimable_amount(self):
        return schedule.claimable_amount(self._config, self.amount_claimed, self.timestamp)

    @transaction
    def initialize(self, config, sender=None):
        if self._initialized:
            raise AlreadyInitialized()
        self._initialized = True

        if config.tge_time == 0:
            config = config.replace(tge_time=self.timestamp)
        schedule.check_config(config, self.timestamp)

        self._config = config
        self.emit("Initialized", version=1)

    @transaction
    def claim(self, sender):
        if to_address(sender) != self._config.claimant or sender == ZERO_ADDRESS:
            raise Unauthorized(sender, f"Vesting_ClaimantOnly: {sender}")

        amount = self.get_claimable_amount()
        if amount == 0:
            raise NothingToClaim()

        self.amount_claimed += amount

        token = self.ledger.at(self._config.token)
        if token is None:
            raise ContractError(f"AddressEmptyCode({self._config.token})")
        token.transfer(self._config.claimant, amount, sender=self.address)

        self.emit("Claimed", amount=amount)
        return amount


def is_vesting(ledger, address):
    """True if `address` is a model contract advertising the IVesting interface."""
    if not Web3.is_address(address) or not ledger.is_contract(address):
        return False
    supports = getattr(ledger.at(address), "supports_interface", None)
    return supports is not None and supports(IVESTING_INTERFACE_ID)
