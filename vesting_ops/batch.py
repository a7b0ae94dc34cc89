"""
CSV input for bulk vesting deployment.

Expected header (order does not matter):

    initialOwner,claimant,totalAmount,tgePercentage,cliffDuration,vestingDuration

`totalAmount` is in whole tokens and may be comma-grouped ("1,000,000"; quote the field), the TGE
percentage is written like "10%" and both durations are integer months of 30 days.
"""

import csv
import io
from collections import Counter
from dataclasses import dataclass

from web3 import Web3

from . import schedule
from .errors import BatchInputError, InvalidConfig
from .scale import PERCENTAGE_DECIMALS, SECONDS_IN_MONTH, parse_units
from .vesting import VestingConfig

COLUMNS = (
    "initialOwner",
    "claimant",
    "totalAmount",
    "tgePercentage",
    "cliffDuration",
    "vestingDuration",
)

# deployBatch transactions carry at most this many configs
CHUNK_SIZE = 20


@dataclass
class BatchPlan:
    configs: list
    duplicates: dict

    @property
    def total_amount(self):
        return sum(c.total_amount for c in self.configs)

    def chunks(self, size=CHUNK_SIZE):
        return chunked(self.configs, size)


def chunked(items, size):
    if size <= 0:
        raise ValueError(f"Invalid chunk size {size}")
    return [items[i : i + size] for i in range(0, len(items), size)]


def _address(record, column, row):
    value = record[column]
    if not Web3.is_address(value):
        raise BatchInputError(f"Invalid {column} address: {value}", row)
    return Web3.to_checksum_address(value)


def _months(record, column, row):
    try:
        months = int(record[column])
    except ValueError:
        raise BatchInputError(f"Invalid {column} (months): {record[column]!r}", row)
    if months < 0:
        raise BatchInputError(f"Negative {column}: {months}", row)
    return months * SECONDS_IN_MONTH


def parse_record(record, token, tge_time, decimals=18, row=None):
    record = {k.strip(): (v or "").strip() for k, v in record.items() if k is not None}
    missing = [c for c in COLUMNS if c not in record]
    if missing:
        raise BatchInputError(f"Missing column(s): {', '.join(missing)}", row)

    try:
        amount = parse_units(record["totalAmount"].replace(",", ""), decimals)
    except ValueError as e:
        raise BatchInputError(f"Invalid totalAmount: {e}", row)

    pct = record["tgePercentage"]
    try:
        tge_percentage = parse_units(pct[:-1] if pct.endswith("%") else pct, PERCENTAGE_DECIMALS)
    except ValueError as e:
        raise BatchInputError(f"Invalid tgePercentage: {e}", row)

    return VestingConfig(
        token=token,
        initial_owner=_address(record, "initialOwner", row),
        claimant=_address(record, "claimant", row),
        cliff_duration=_months(record, "cliffDuration", row),
        vesting_duration=_months(record, "vestingDuration", row),
        tge_time=tge_time,
        tge_percentage=tge_percentage,
        total_amount=amount,
    )


def parse_vesting_csv(source, token, tge_time, now=None, decimals=18):
    """Parses a CSV file (path or file object) into a BatchPlan.

    Every row is checked against the vesting config invariants at time `now` (if given) so that a
    bad row aborts the run before anything is sent to the chain.
    """
    if tge_time <= 0:
        raise BatchInputError(f"Invalid tgeTime: {tge_time}")

    if isinstance(source, io.IOBase):
        text = source.read()
    else:
        with open(source, newline="", encoding="utf-8") as f:
            text = f.read()

    reader = csv.reader(io.StringIO(text), skipinitialspace=True)
    header = None
    configs = []
    for fields in reader:
        if not any(f.strip() for f in fields):
            continue
        if header is None:
            header = fields
            continue
        # Rows are reported by their line number in the file, blank lines included.
        row = reader.line_num
        cfg = parse_record(dict(zip(header, fields)), token, tge_time, decimals, row)
        if now is not None:
            try:
                schedule.check_config(cfg, now)
            except InvalidConfig as e:
                raise BatchInputError(str(e), row)
        configs.append(cfg)

    counts = Counter(c.claimant for c in configs)
    return BatchPlan(configs, {c: n for c, n in counts.items() if n > 1})
