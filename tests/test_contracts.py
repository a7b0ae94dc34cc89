from unittest.mock import MagicMock

import eth_abi
import pytest
from web3 import exceptions as w3ex

from vesting_ops.contracts import (
    Compiled,
    ContractErrors,
    decoded_reverts,
    encode_call,
    friendly_call,
    keccak4,
    read_config,
    read_deployment,
)
from vesting_ops.errors import (
    AlreadyInitialized,
    ConfigError,
    ContractError,
    InvalidConfig,
    NothingToClaim,
    Unauthorized,
)
from vesting_ops.vesting import CONFIG_TUPLE, IVESTING_INTERFACE_ID, interface_id, selector

ACCOUNT = "0x" + "12" * 20

ERRORS_ABI = [
    {"type": "error", "name": "Vesting_InvalidConfig", "inputs": [{"name": "reason", "type": "string"}]},
    {"type": "error", "name": "Vesting_NothingToClaim", "inputs": []},
    {
        "type": "error",
        "name": "OwnableUnauthorizedAccount",
        "inputs": [{"name": "account", "type": "address", "internalType": "address"}],
    },
    {"type": "error", "name": "InvalidInitialization", "inputs": []},
    {"type": "error", "name": "SomethingElse", "inputs": [{"name": "x", "type": "uint256"}]},
]

INITIALIZE_ABI = {
    "type": "function",
    "name": "initialize",
    "inputs": [
        {
            "name": "config",
            "type": "tuple",
            "internalType": "struct IVesting.VestingConfig",
            "components": [
                {"name": n, "type": t}
                for n, t in [
                    ("token", "address"),
                    ("initialOwner", "address"),
                    ("claimant", "address"),
                    ("cliffDuration", "uint256"),
                    ("vestingDuration", "uint256"),
                    ("tgeTime", "uint256"),
                    ("tgePercentage", "uint256"),
                    ("totalAmount", "uint256"),
                ]
            ],
        }
    ],
}


def revert_data(name, types=(), args=()):
    return "0x" + keccak4(f"{name}({','.join(types)})".encode()) + eth_abi.encode(list(types), list(args)).hex()


@pytest.fixture
def errors():
    return ContractErrors([ERRORS_ABI])


def test_selectors():
    assert keccak4(b"transfer(address,uint256)") == "a9059cbb"
    assert interface_id(["supportsInterface(bytes4)"]) == bytes.fromhex("01ffc9a7")
    assert len(IVESTING_INTERFACE_ID) == 4


def test_encode_call_with_struct():
    assert encode_call(INITIALIZE_ABI) == f"initialize({CONFIG_TUPLE})".encode()
    assert keccak4(encode_call(INITIALIZE_ABI)) == selector(f"initialize({CONFIG_TUPLE})").hex()
    assert friendly_call(INITIALIZE_ABI) == "function initialize(struct IVesting.VestingConfig config)"


def test_lookup(errors):
    sel = keccak4(b"Vesting_NothingToClaim()")
    assert errors.lookup(sel) == "Vesting_NothingToClaim"
    assert errors.lookup("0x" + sel) == "Vesting_NothingToClaim"
    assert errors.lookup("deadbeef") is None


def test_decode(errors):
    data = revert_data("Vesting_InvalidConfig", ["string"], ["token"])
    assert errors.decode(data) == ("Vesting_InvalidConfig", ("token",))
    assert errors.decode(bytes.fromhex(data[2:])) == ("Vesting_InvalidConfig", ("token",))
    assert errors.decode("0xdeadbeef") is None


def test_to_exception(errors):
    e = errors.to_exception(revert_data("Vesting_InvalidConfig", ["string"], ["vesting over"]))
    assert isinstance(e, InvalidConfig) and e.reason == "vesting over"

    assert isinstance(errors.to_exception(revert_data("Vesting_NothingToClaim")), NothingToClaim)
    assert isinstance(errors.to_exception(revert_data("InvalidInitialization")), AlreadyInitialized)

    e = errors.to_exception(revert_data("OwnableUnauthorizedAccount", ["address"], [ACCOUNT]))
    assert isinstance(e, Unauthorized)
    assert e.account.lower() == ACCOUNT

    e = errors.to_exception(revert_data("SomethingElse", ["uint256"], [3]))
    assert type(e) is ContractError
    assert "SomethingElse" in str(e)

    e = errors.to_exception("0xdeadbeef")
    assert type(e) is ContractError
    assert "Unknown" in str(e)


def test_decoded_reverts(errors):
    data = revert_data("Vesting_NothingToClaim")
    with pytest.raises(NothingToClaim) as e:
        with decoded_reverts(errors):
            raise w3ex.ContractCustomError(data, data=data)
    assert isinstance(e.value.__cause__, w3ex.ContractCustomError)

    with pytest.raises(ZeroDivisionError):
        with decoded_reverts(errors):
            1 / 0


def test_compiled_lookup():
    compiled = Compiled(
        {
            "Vesting.sol:Vesting": {"abi": ERRORS_ABI, "bin": "6080"},
            "@openzeppelin/contracts/access/Ownable.sol:Ownable": {"abi": [], "bin": ""},
            "mocks/Ownable.sol:Ownable": {"abi": [], "bin": "60"},
            "a/X.sol:X": {"abi": [], "bin": ""},
            "b/X.sol:X": {"abi": [], "bin": ""},
        }
    )
    assert compiled.key("Vesting") == "Vesting.sol:Vesting"
    assert compiled.key("Vesting.sol:Vesting") == "Vesting.sol:Vesting"
    assert compiled.key("Ownable") == "mocks/Ownable.sol:Ownable"
    assert compiled.bytecode("Vesting") == "6080"
    assert compiled.storage_layout("Vesting") == {"storage": [], "types": {}}
    assert compiled.errors.lookup(keccak4(b"InvalidInitialization()")) == "InvalidInitialization"
    for name in ("X", "Missing"):
        with pytest.raises(ConfigError):
            compiled.key(name)


def test_storage_layout_json_string():
    compiled = Compiled({"V.sol:V": {"abi": [], "bin": "", "storage-layout": '{"storage": [], "types": null}'}})
    assert compiled.storage_layout("V") == {"storage": [], "types": None}


def test_read_config_and_deployment():
    values = (ACCOUNT, ACCOUNT, ACCOUNT, 1, 2, 3, 4, 5)
    vesting = MagicMock()
    vesting.functions.config.return_value.call.return_value = values
    config = read_config(vesting)
    assert config.as_tuple()[3:] == (1, 2, 3, 4, 5)
    assert config.claimant.lower() == ACCOUNT

    d = read_deployment([ACCOUNT, 10, ACCOUNT, True])
    assert (d.claimant, d.amount, d.vesting, d.is_setup_done) == (ACCOUNT, 10, ACCOUNT, True)
