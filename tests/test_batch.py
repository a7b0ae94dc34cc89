import io

import pytest

from vesting_ops.batch import CHUNK_SIZE, chunked, parse_vesting_csv
from vesting_ops.errors import BatchInputError
from vesting_ops.ledger import Ledger
from vesting_ops.scale import SECONDS_IN_MONTH, e18
from vesting_ops.simulate import simulate_batch

NOW = 1_700_000_000
TGE = NOW + 86400

OWNER, A, B, TOKEN = Ledger(seed=b"batch").accounts(4)

CSV = f"""initialOwner, claimant, totalAmount, tgePercentage, cliffDuration, vestingDuration
{OWNER}, {A}, "1,000,000", 10%, 3, 12

{OWNER}, {B.lower()}, 250.5, 0%, 0, 24
{OWNER}, {A}, 42, 2.5%, 1, 1
"""


def parse(text, **kw):
    return parse_vesting_csv(io.StringIO(text), TOKEN, TGE, **kw)


def test_parse():
    plan = parse(CSV, now=NOW)
    assert len(plan.configs) == 3

    first, second, third = plan.configs
    assert first.token == TOKEN
    assert first.initial_owner == OWNER
    assert first.claimant == A
    assert first.total_amount == e18(1_000_000)
    assert first.tge_percentage == 100_000
    assert first.cliff_duration == 3 * SECONDS_IN_MONTH
    assert first.vesting_duration == 12 * SECONDS_IN_MONTH
    assert first.tge_time == TGE

    # addresses are checksummed
    assert second.claimant == B
    assert second.total_amount == e18("250.5")
    assert second.tge_percentage == 0
    assert third.tge_percentage == 25_000

    assert plan.total_amount == e18("1000292.5")


def test_duplicate_claimants_are_reported_not_rejected():
    plan = parse(CSV)
    assert plan.duplicates == {A: 2}


@pytest.mark.parametrize(
    "row, message",
    [
        (f"{OWNER}, 0x1234, 10, 10%, 0, 12", "Invalid claimant address"),
        (f"nobody, {A}, 10, 10%, 0, 12", "Invalid initialOwner address"),
        (f"{OWNER}, {A}, ten, 10%, 0, 12", "Invalid totalAmount"),
        (f"{OWNER}, {A}, 10, ten%, 0, 12", "Invalid tgePercentage"),
        (f"{OWNER}, {A}, 10, 10%, 1.5, 12", "Invalid cliffDuration"),
        (f"{OWNER}, {A}, 10, 10%, 0, 0", "vestingDuration"),
        (f"{OWNER}, {A}, 0, 10%, 0, 12", "totalAmount"),
        (f"{OWNER}, {A}, 10, 150%, 0, 12", "tgePercentage"),
    ],
)
def test_invalid_rows(row, message):
    text = CSV.splitlines()[0] + "\n" + row + "\n"
    with pytest.raises(BatchInputError) as e:
        parse(text, now=NOW)
    assert message in str(e.value)
    assert e.value.row == 2


def test_missing_column():
    with pytest.raises(BatchInputError) as e:
        parse(f"claimant,totalAmount\n{A},10\n")
    assert "initialOwner" in str(e.value)


def test_vesting_over_is_rejected_before_sending():
    with pytest.raises(BatchInputError) as e:
        parse(CSV, now=TGE + 10 * 365 * 86400)
    assert "vesting over" in str(e.value)


def test_invalid_tge_time():
    with pytest.raises(BatchInputError):
        parse_vesting_csv(io.StringIO(CSV), TOKEN, 0)


def test_parse_file(tmp_path):
    path = tmp_path / "vestings.csv"
    path.write_text(CSV)
    assert len(parse_vesting_csv(path, TOKEN, TGE).configs) == 3


def test_chunks():
    assert chunked(list(range(45)), CHUNK_SIZE) == [
        list(range(20)),
        list(range(20, 40)),
        list(range(40, 45)),
    ]
    assert chunked([], 20) == []
    with pytest.raises(ValueError):
        chunked([1], 0)


def test_simulate_batch():
    rows = "\n".join(f"{OWNER}, {a}, 100, 10%, 1, 12" for a in Ledger(seed=b"many").accounts(45))
    plan = parse(CSV.splitlines()[0] + "\n" + rows, now=NOW)

    model = simulate_batch(plan, NOW)

    assert model.get_number_of_deployments() == 45
    assert model.next_batch_index == 45
    assert all(d.is_setup_done for d in model.get_all_deployments())
    token = model.ledger.at(model.token)
    assert sum(token.balance_of(d.vesting) for d in model.get_all_deployments()) == e18(4500)


def test_row_numbers_are_file_lines():
    text = CSV + f"\n\n{OWNER}, 0x1234, 10, 10%, 0, 12\n"
    with pytest.raises(BatchInputError) as e:
        parse(text)
    # CSV spans lines 1-5 (line 3 is blank), then two blank lines
    assert e.value.row == 8
