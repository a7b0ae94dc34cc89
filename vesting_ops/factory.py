"""
Python model of contracts/VestingFactory.sol.

Deployment and funding are split in two phases to bound the work done per transaction when
onboarding a large list of claimants:

1. `deploy` / `deploy_batch` clone and initialize vesting instances and record them;
2. `setup_next_batch` walks the recorded deployments in order from `next_batch_index`, pulling
   each instance's amount from the caller.

Both phases can be re-run safely: an entry that has been funded is never funded again.
"""

from dataclasses import dataclass, replace

from .errors import (
    ContractError,
    InvalidImplementation,
    InvalidIterations,
    InvalidToken,
    NothingToSetup,
    Unauthorized,
)
from .ledger import Contract, to_address, transaction
from .scale import ZERO_ADDRESS
from .vesting import is_vesting


@dataclass
class FactoryDeployment:
    claimant: str
    amount: int
    vesting: str
    is_setup_done: bool = False


class VestingFactory(Contract):
    def __init__(self, implementation, initial_owner, token):
        self.owner = to_address(initial_owner)
        if token == ZERO_ADDRESS:
            raise InvalidToken("VestingFactory_InvalidToken")
        self.token = to_address(token)
        self.vesting_implementation = ZERO_ADDRESS
        self.deployments = []
        self.vestings_of = {}
        self.next_batch_index = 0
        self._pending_implementation = to_address(implementation)

    @classmethod
    def create(cls, ledger, implementation, initial_owner, token):
        """Deploys a factory on `ledger`; the implementation is validated once the factory has an
        address (it may not be the factory itself)."""
        factory = cls(implementation, initial_owner, token)
        with ledger.transaction():
            ledger.deploy(factory)
            factory._set_implementation(factory.__dict__.pop("_pending_implementation"))
        return factory

    def _only_owner(self, sender):
        if to_address(sender) != self.owner:
            raise Unauthorized(sender, f"OwnableUnauthorizedAccount({sender})")

    def _set_implementation(self, implementation):
        if (
            implementation == ZERO_ADDRESS
            or implementation == self.address
            or not is_vesting(self.ledger, implementation)
        ):
            raise InvalidImplementation(implementation)
        self.vesting_implementation = to_address(implementation)
        self.emit("ImplementationSet", implementation=self.vesting_implementation)

    @transaction
    def set_implementation(self, implementation, sender):
        self._only_owner(sender)
        self._set_implementation(implementation)

    @transaction
    def transfer_ownership(self, new_owner, sender):
        self._only_owner(sender)
        if new_owner == ZERO_ADDRESS:
            raise Unauthorized(new_owner, "OwnableInvalidOwner(0x0)")
        previous, self.owner = self.owner, to_address(new_owner)
        self.emit("OwnershipTransferred", previous_owner=previous, new_owner=self.owner)

    def _deploy(self, config):
        vesting = self.ledger.clone(self.vesting_implementation)
        vesting.initialize(config, sender=self.address)

        self.deployments.append(FactoryDeployment(config.claimant, config.total_amount, vesting.address))
        self.vestings_of.setdefault(config.claimant, []).append(vesting.address)

        self.emit(
            "VestingDeployed",
            claimant=config.claimant,
            vesting=vesting.address,
            amount=config.total_amount,
        )
        return vesting.address

    @transaction
    def deploy(self, config, sender):
        self._only_owner(sender)
        return self._deploy(config)

    @transaction
    def deploy_batch(self, configs, sender):
        self._only_owner(sender)
        return [self._deploy(cfg) for cfg in configs]

    @transaction
    def setup_next_batch(self, iterations, sender):
        """Funds up to `iterations` deployments starting at `next_batch_index`, pulling tokens from
        `sender` (who must have approved the factory).  Returns the number of entries funded."""
        self._only_owner(sender)

        start = self.next_batch_index
        if start >= len(self.deployments):
            raise NothingToSetup("VestingFactory_NothingToSetup")
        if int(iterations) <= 0:
            raise InvalidIterations("VestingFactory_InvalidIterations")
        end = min(start + int(iterations), len(self.deployments))

        token = self.ledger.at(self.token)
        if token is None:
            raise ContractError(f"AddressEmptyCode({self.token})")
        funded = 0
        for d in self.deployments[start:end]:
            if d.is_setup_done:
                continue
            token.transfer_from(sender, d.vesting, d.amount, sender=self.address)
            d.is_setup_done = True
            funded += 1

        self.next_batch_index = end
        self.emit("BatchSetup", start=start, end=end, funded=funded)
        return funded

    # Reads.  All of these return copies; nothing here mutates state.

    def get_number_of_deployments(self):
        return len(self.deployments)

    def get_deployment(self, index):
        return replace(self.deployments[index])

    def get_deployments(self, start, count):
        return [replace(d) for d in self.deployments[start : start + count]]

    def get_all_deployments(self):
        return [replace(d) for d in self.deployments]

    def get_vesting_of_claimer(self, claimant):
        return list(self.vestings_of.get(to_address(claimant), []))

    def get_next_batch_deployments(self, count):
        return self.get_deployments(self.next_batch_index, count)

    def pending_amount(self, count=None):
        """Tokens needed to fund the next `count` (default: all) pending deployments."""
        if count is None:
            count = len(self.deployments)
        return sum(d.amount for d in self.get_next_batch_deployments(count) if not d.is_setup_done)
