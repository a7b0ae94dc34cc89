#!/usr/bin/python3

# Vesting contract lister.  This script queries a list of deployed Vesting clones (or, with
# --factory, every vesting contract deployed by a VestingFactory) and dumps their config, claimed
# and claimable amounts and token balance.
#
# To run it, you need the vesting-ops Python dependencies (pip install -e .) and an RPC provider.

import argparse
import sys
import time

from terminaltables import SingleTable
from web3 import Web3

from vesting_ops import schedule
from vesting_ops.contracts import compile_contracts, read_config, read_deployment
from vesting_ops.scale import format_ether, format_months, format_percentage

parser = argparse.ArgumentParser(prog="ls-vesting", description="Vesting contract lister")

parser.add_argument("-r", "--rpc", required=True, help="RPC provider URL", metavar="URL")
parser.add_argument("-T", "--token", help="Token address to validate", metavar="0x...")
parser.add_argument(
    "-F", "--factory", help="List every vesting contract of this VestingFactory", metavar="0x..."
)
parser.add_argument(
    "contracts",
    nargs="*",
    help="Vesting contracts to query",
    metavar="0xContractAddr",
)

args = parser.parse_args()
if not args.contracts and not args.factory:
    parser.error("give vesting contract addresses and/or --factory")

print(f"Loading contracts...")
compiled = compile_contracts()

w3 = Web3(Web3.HTTPProvider(args.rpc))
if not w3.is_connected():
    print("RPC connection failed; check your --rpc value", file=sys.stderr)
    sys.exit(1)

actual_chain = w3.eth.chain_id
now = w3.eth.get_block("latest")["timestamp"]


def get_contract(name, addr):
    return compiled.contract(w3, name, Web3.to_checksum_address(addr))


def validate(expected, value):
    if expected:
        if Web3.to_checksum_address(expected) == value:
            return "✅"
        return f"⛔ {value}"
    return value


contracts = list(args.contracts)
setup_done = {}
if args.factory:
    factory = get_contract("VestingFactory", args.factory).functions
    for d in map(read_deployment, factory.getAllDeployments().call()):
        contracts.append(d.vesting)
        setup_done[d.vesting] = d.is_setup_done

results = [
    [
        "Vesting Contract Address",
        "Token",
        "Claimant",
        "TGE",
        "Cliff",
        "Vesting",
        "Total",
        "Claimed",
        "Claimable",
        "Balance",
        "Setup",
    ]
]
for caddr in contracts:
    try:
        contract = get_contract("Vesting", caddr)
        c = contract.functions
        cfg = read_config(contract)
        claimed, claimable = (x().call() for x in (c.amountClaimed, c.getClaimableAmount))
        if claimable != schedule.claimable_amount(cfg, claimed, now):
            claimable = f"⛔ {format_ether(claimable)}"
        else:
            claimable = format_ether(claimable)
        token = get_contract("IERC20", cfg.token).functions
        balance = token.balanceOf(contract.address).call()
        results.append(
            [
                contract.address,
                validate(args.token, cfg.token),
                cfg.claimant,
                f"{format_percentage(cfg.tge_percentage)} @ {time.strftime('%Y-%m-%d', time.gmtime(cfg.tge_time))}",
                format_months(cfg.cliff_duration),
                format_months(cfg.vesting_duration),
                format_ether(cfg.total_amount),
                format_ether(claimed),
                claimable,
                format_ether(balance),
                setup_done.get(contract.address, "?"),
            ]
        )

    except Exception as e:
        print(f"An error occured with {caddr}: {e}")
        results.append([caddr] + ["N/A"] * 10)


print(f"\n\nResults for chain 0x{actual_chain:x} at {now}:\n")

if args.token:
    print(f"✅ = token address {args.token}\n")
print("⛔ next to Claimable = contract disagrees with the locally computed schedule\n")

table = SingleTable(results)
for i in range(11):
    table.justify_columns[i] = "center"
print(table.table)
