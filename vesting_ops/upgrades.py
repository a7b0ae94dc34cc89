"""
Upgrade support for ERC-1967 (UUPS) proxies.

Before pointing a proxy at a new implementation we compare the storage layout recorded when the
current implementation was deployed (`settings/<network>/layouts.json`, keyed by implementation
address) with the compiler's layout for the new code.  Existing variables must keep their slot,
offset and type; new variables may only be appended.
"""

from web3 import Web3

from .errors import UpgradeValidationError

# bytes32(uint256(keccak256("eip1967.proxy.implementation")) - 1)
IMPLEMENTATION_SLOT = 0x360894A13BA1A3210667C828492DB98DCA3E2076CC3735A920A3CA505D382BBC

UUPS_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "newImplementation", "type": "address"},
            {"internalType": "bytes", "name": "data", "type": "bytes"},
        ],
        "name": "upgradeToAndCall",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
]


def get_implementation(w3, proxy):
    raw = w3.eth.get_storage_at(proxy, IMPLEMENTATION_SLOT)
    return Web3.to_checksum_address(bytes(raw)[-20:])


def _type_label(layout, type_id):
    t = layout.get("types", {}).get(type_id)
    return (t["label"], t["numberOfBytes"]) if t else (type_id, None)


def storage_layout_problems(old, new):
    """Returns a list of human readable incompatibilities of `new` with respect to `old` (both in
    solc's storageLayout format).  An empty list means the upgrade is safe."""
    problems = []
    old_vars = old.get("storage", [])
    new_vars = new.get("storage", [])

    for i, o in enumerate(old_vars):
        where = f"{o['label']} (slot {o['slot']}, offset {o['offset']})"
        if i >= len(new_vars):
            problems.append(f"Deleted variable {where}")
            continue
        n = new_vars[i]
        if n["label"] != o["label"]:
            problems.append(f"Variable {where} renamed or replaced by {n['label']}")
        if (n["slot"], n["offset"]) != (o["slot"], o["offset"]):
            problems.append(f"Variable {where} moved to slot {n['slot']}, offset {n['offset']}")
        old_type, new_type = _type_label(old, o["type"]), _type_label(new, n["type"])
        if old_type != new_type:
            problems.append(f"Variable {where} changed type from {old_type[0]} to {new_type[0]}")

    return problems


def validate_upgrade(old, new):
    problems = storage_layout_problems(old, new)
    if problems:
        raise UpgradeValidationError(problems)


def upgrade_call(w3, proxy, new_implementation, data=b""):
    """The `upgradeToAndCall` call to send to `proxy`."""
    contract = w3.eth.contract(address=proxy, abi=UUPS_ABI)
    return contract.functions.upgradeToAndCall(new_implementation, data)
