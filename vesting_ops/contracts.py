"""
Compilation of the Solidity sources in contracts/ and decoding of their custom errors.
"""

import json
from contextlib import contextmanager
from pathlib import Path

import eth_abi
from solcx import compile_source, install_solc
from web3 import exceptions as w3ex

from .errors import (
    CONTRACT_ERRORS,
    ConfigError,
    ContractError,
    InvalidConfig,
    InvalidImplementation,
    Unauthorized,
)
from .factory import FactoryDeployment
from .ledger import keccak256
from .vesting import VestingConfig

BASEDIR = Path(__file__).resolve().parent.parent
SOLC_VERSION = "0.8.24"

SOURCES = (
    "Vesting.sol",
    "VestingFactory.sol",
    "mocks/ERC20Mock.sol",
)


def compile_contracts(basedir=BASEDIR, sources=SOURCES):
    install_solc(SOLC_VERSION)
    output = compile_source(
        "\n".join(f'import "{s}";' for s in sources),
        base_path=str(basedir),
        include_path=f"{basedir}/contracts",
        solc_version=SOLC_VERSION,
        optimize=True,
        optimize_runs=2,
        revert_strings="debug",
        output_values=["abi", "bin", "storage-layout"],
        import_remappings={
            "@openzeppelin/contracts": "node_modules/@openzeppelin/contracts",
            "@openzeppelin/contracts-upgradeable": "node_modules/@openzeppelin/contracts-upgradeable",
        },
    )
    return Compiled(output)


class Compiled:
    """Compiler output keyed by `path:Name`; contracts can be looked up by bare name."""

    def __init__(self, output):
        self.output = output
        self._errors = None

    def key(self, name):
        if name in self.output:
            return name
        matches = [k for k in self.output if k.rsplit(":", 1)[-1] == name]
        # Prefer our own sources over library ones with the same name
        own = [k for k in matches if not k.startswith("@")]
        if len(own) == 1:
            return own[0]
        if len(matches) == 1:
            return matches[0]
        raise ConfigError(f"Unknown or ambiguous contract name {name!r}")

    def abi(self, name):
        return self.output[self.key(name)]["abi"]

    def bytecode(self, name):
        return self.output[self.key(name)]["bin"]

    def storage_layout(self, name):
        layout = self.output[self.key(name)].get("storage-layout") or {"storage": [], "types": {}}
        if isinstance(layout, str):
            layout = json.loads(layout)
        return layout

    @property
    def errors(self):
        if self._errors is None:
            self._errors = ContractErrors(c["abi"] for c in self.output.values())
        return self._errors

    def contract(self, w3, name, addr):
        return w3.eth.contract(address=addr, abi=self.abi(name))


def keccak4(x):
    return keccak256(x)[:4].hex()


def _abi_type(param):
    if param["type"].startswith("tuple"):
        inner = ",".join(_abi_type(c) for c in param["components"])
        return f"({inner}){param['type'][5:]}"
    return param["type"]


def encode_call(c):
    return (c["name"] + "(" + ",".join(_abi_type(i) for i in c["inputs"]) + ")").encode()


def friendly_call(c):
    return (
        f'{c["type"]} {c["name"]}('
        + ", ".join(f"{i.get('internalType', i['type'])} {i['name']}" for i in c["inputs"])
        + ")"
    )


def error_from_revert(name, args):
    """Maps a decoded custom error onto the matching ContractError subclass."""
    for cls in CONTRACT_ERRORS:
        if name in cls.solidity_names:
            if cls is InvalidConfig:
                return InvalidConfig(args[0])
            if cls is Unauthorized:
                return Unauthorized(args[0] if args else None, f"{name}{tuple(args)}")
            if cls is InvalidImplementation:
                return InvalidImplementation(args[0] if args else None)
            return cls(f"{name}{tuple(args)}" if args else name)
    return ContractError(f"{name}{tuple(args)}")


class ContractErrors:
    """Custom error definitions of a set of ABIs, by 4-byte selector."""

    def __init__(self, abis):
        self.by_selector = {}
        for abi in abis:
            for x in abi:
                if x["type"] == "error":
                    self.by_selector[keccak4(encode_call(x))] = x

    def lookup(self, selector):
        e = self.by_selector.get(selector[2:] if selector.startswith("0x") else selector)
        return e["name"] if e else None

    def decode(self, data):
        """Returns (name, args) for revert data "0x<selector><args>", or None if unknown."""
        if isinstance(data, bytes):
            data = "0x" + data.hex()
        e = self.by_selector.get(data[2:10])
        if e is None:
            return None
        types = [_abi_type(i) for i in e["inputs"]]
        args = eth_abi.decode(types, bytes.fromhex(data[10:])) if types else ()
        return e["name"], tuple(args)

    def to_exception(self, data):
        decoded = self.decode(data)
        if decoded is None:
            return ContractError(f"Unknown contract error: {data}")
        return error_from_revert(*decoded)


@contextmanager
def decoded_reverts(errors):
    """Re-raises custom-error reverts as the matching vesting_ops ContractError."""
    try:
        yield
    except w3ex.ContractCustomError as e:
        raise errors.to_exception(e.data) from e


def read_config(vesting):
    return VestingConfig.from_tuple(vesting.functions.config().call())


def read_deployment(values):
    claimant, amount, vesting, is_setup_done = values
    return FactoryDeployment(claimant, amount, vesting, is_setup_done)
