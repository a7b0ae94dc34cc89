"""
In-process ledger used to execute the Python model of the vesting contracts.

The ledger serializes every state-changing call and makes it atomic: `Ledger.transaction()`
snapshots the storage of every model contract (and the event log) and restores it if the call
raises, the same way a reverted EVM transaction leaves no trace.  It also provides the block clock,
address allocation, the event log and a mintable ERC-20 token.
"""

import copy
import functools
import itertools
import time
from contextlib import contextmanager
from dataclasses import dataclass, field

from Crypto.Hash import keccak
from web3 import Web3

from .errors import InsufficientAllowance, InsufficientBalance
from .scale import ZERO_ADDRESS


def keccak256(data):
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def to_address(addr):
    return Web3.to_checksum_address(addr)


@dataclass(frozen=True)
class Event:
    address: str
    name: str
    args: dict = field(default_factory=dict)


class Contract:
    """Base class of model contracts: plain Python objects whose instance attributes are their
    storage.  `ledger` and `address` are assigned on deployment."""

    ledger = None
    address = None

    def emit(self, name, **args):
        self.ledger.events.append(Event(self.address, name, args))

    @property
    def timestamp(self):
        return self.ledger.timestamp

    def _storage(self):
        return {k: v for k, v in vars(self).items() if k not in ("ledger", "address")}

    @classmethod
    def clone_storage(cls):
        """Initial storage of a minimal-proxy clone of this contract."""
        raise TypeError(f"{cls.__name__} cannot be cloned")


def transaction(method):
    """Runs a model contract method atomically on its ledger."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.ledger.transaction():
            return method(self, *args, **kwargs)

    return wrapper


class Ledger:
    def __init__(self, timestamp=None, seed=b"vesting-ops"):
        self.timestamp = int(time.time()) if timestamp is None else int(timestamp)
        self.contracts = {}
        self.events = []
        self._seed = seed
        self._nonce = itertools.count()
        self._depth = 0

    def new_address(self):
        digest = keccak256(self._seed + next(self._nonce).to_bytes(32, "big"))
        return to_address(digest[-20:])

    def accounts(self, n):
        """Allocates `n` fresh externally-owned account addresses."""
        return [self.new_address() for _ in range(n)]

    def deploy(self, contract):
        contract.ledger = self
        contract.address = self.new_address()
        self.contracts[contract.address] = contract
        return contract

    def clone(self, implementation):
        """Deploys a new instance sharing the implementation's code (class) but not its storage."""
        impl = self.at(implementation)
        instance = type(impl).__new__(type(impl))
        instance.__dict__.update(type(impl).clone_storage())
        instance.implementation = impl.address
        return self.deploy(instance)

    def at(self, address):
        return self.contracts.get(to_address(address))

    def is_contract(self, address):
        return address != ZERO_ADDRESS and to_address(address) in self.contracts

    def sleep(self, seconds):
        self.timestamp += int(seconds)

    def set_timestamp(self, timestamp):
        if timestamp < self.timestamp:
            raise ValueError(f"Cannot move the clock backwards ({timestamp} < {self.timestamp})")
        self.timestamp = int(timestamp)

    def events_named(self, name, address=None):
        return [
            e for e in self.events if e.name == name and (address is None or e.address == address)
        ]

    @contextmanager
    def transaction(self):
        if self._depth:
            # Nested call inside an outer transaction; the outer one owns the snapshot.
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        contracts = dict(self.contracts)
        storage = {a: copy.deepcopy(c._storage()) for a, c in contracts.items()}
        n_events = len(self.events)
        self._depth = 1
        try:
            yield
        except BaseException:
            self.contracts = contracts
            for a, c in contracts.items():
                for k in list(c._storage()):
                    delattr(c, k)
                c.__dict__.update(storage[a])
            del self.events[n_events:]
            raise
        finally:
            self._depth = 0


class ERC20Mock(Contract):
    """Mintable ERC-20 token, mirroring contracts/mocks/ERC20Mock.sol."""

    def __init__(self, decimals=18):
        self.decimals = decimals
        self.total_supply = 0
        self.balances = {}
        self.allowances = {}

    def balance_of(self, account):
        return self.balances.get(to_address(account), 0)

    def allowance(self, owner, spender):
        return self.allowances.get((to_address(owner), to_address(spender)), 0)

    @transaction
    def mint(self, to, amount):
        to = to_address(to)
        self.balances[to] = self.balance_of(to) + amount
        self.total_supply += amount
        self.emit("Transfer", sender=ZERO_ADDRESS, to=to, value=amount)

    @transaction
    def approve(self, spender, amount, sender):
        sender, spender = to_address(sender), to_address(spender)
        self.allowances[(sender, spender)] = amount
        self.emit("Approval", owner=sender, spender=spender, value=amount)
        return True

    @transaction
    def transfer(self, to, amount, sender):
        self._move(to_address(sender), to_address(to), amount)
        return True

    @transaction
    def transfer_from(self, owner, to, amount, sender):
        owner, spender = to_address(owner), to_address(sender)
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowance(
                f"ERC20InsufficientAllowance({spender}, {allowed}, {amount})"
            )
        self.allowances[(owner, spender)] = allowed - amount
        self._move(owner, to_address(to), amount)
        return True

    def _move(self, sender, to, amount):
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalance(f"ERC20InsufficientBalance({sender}, {balance}, {amount})")
        self.balances[sender] = balance - amount
        self.balances[to] = self.balance_of(to) + amount
        self.emit("Transfer", sender=sender, to=to, value=amount)
