from unittest.mock import MagicMock

import pytest

from vesting_ops.errors import UpgradeValidationError
from vesting_ops.upgrades import (
    IMPLEMENTATION_SLOT,
    get_implementation,
    storage_layout_problems,
    validate_upgrade,
)

TYPES = {
    "t_address": {"label": "address", "numberOfBytes": "20"},
    "t_uint256": {"label": "uint256", "numberOfBytes": "32"},
    "t_bool": {"label": "bool", "numberOfBytes": "1"},
}


def var(label, slot, type_id="t_uint256", offset=0):
    return {"label": label, "slot": str(slot), "offset": offset, "type": type_id}


def layout(*storage):
    return {"storage": list(storage), "types": TYPES}


OLD = layout(var("token", 0, "t_address"), var("amountClaimed", 1))


def test_identical_and_appended_layouts_are_compatible():
    assert storage_layout_problems(OLD, OLD) == []
    validate_upgrade(OLD, layout(*OLD["storage"], var("paused", 2, "t_bool")))


def test_deleted_variable():
    (problem,) = storage_layout_problems(OLD, layout(var("token", 0, "t_address")))
    assert problem.startswith("Deleted variable amountClaimed")


def test_renamed_variable():
    (problem,) = storage_layout_problems(OLD, layout(var("token", 0, "t_address"), var("claimed", 1)))
    assert "renamed" in problem


def test_moved_and_retyped_variable():
    new = layout(var("token", 0, "t_address"), var("amountClaimed", 2, "t_bool"))
    problems = storage_layout_problems(OLD, new)
    assert len(problems) == 2
    assert "moved to slot 2" in problems[0]
    assert "from uint256 to bool" in problems[1]


def test_validate_upgrade_raises_with_all_problems():
    with pytest.raises(UpgradeValidationError) as e:
        validate_upgrade(OLD, layout())
    assert len(e.value.problems) == 2
    assert "not storage compatible" in str(e.value)


def test_get_implementation():
    impl = "0x" + "5a" * 20
    w3 = MagicMock()
    w3.eth.get_storage_at.return_value = bytes(12) + bytes.fromhex(impl[2:])

    assert get_implementation(w3, "0xproxy").lower() == impl
    w3.eth.get_storage_at.assert_called_once_with("0xproxy", IMPLEMENTATION_SLOT)
