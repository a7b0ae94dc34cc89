from terminaltables import SingleTable

from .. import schedule
from ..console import green, verbose
from ..contracts import read_config, read_deployment
from ..errors import ConfigError
from ..report import read_report, report_entry, write_report
from ..scale import format_ether


def all_deployments(ctx):
    """Writes the deployments report for the current network from the factory's records and each
    vesting contract's config."""
    factory = ctx.contract("VestingFactory", ctx.settings("addresses").must_get_address("factory"))

    entries = []
    for d in map(read_deployment, ctx.call(factory.functions.getAllDeployments())):
        print(f"Querying deployment: {d.vesting} for claimant and config")
        cfg = read_config(ctx.contract("Vesting", d.vesting))
        entries.append(report_entry(d, cfg))

    print(f"Total deployments: {len(entries)}")
    write_report(ctx.report_path, entries)
    verbose(f"Wrote {ctx.report_path}")
    return entries


def _load_report(ctx):
    path = ctx.report_path
    if not path.exists():
        raise ConfigError(f"Deployments file not found: {path} (run `read allDeployments` first)")
    return read_report(path)


def total_claimed(ctx):
    total = 0
    for entry in _load_report(ctx):
        vesting = ctx.contract("Vesting", entry["vesting"])
        claimed = ctx.call(vesting.functions.amountClaimed())
        total += claimed
        print(
            f"Claimant: {entry['claimant']}, Amount Claimed: {format_ether(claimed)} tokens, "
            f"Vesting: {entry['vesting']}"
        )

    print(green(f"Total claimed amount: {format_ether(total)} tokens"))
    return total


def claimable(ctx, at=None):
    """Tabulates, for every reported deployment, the amount claimed, the claimable amount reported
    by the contract at the latest block and the schedule's claimable amount at `at` (default: the
    latest block time)."""
    latest = ctx.timestamp()
    when = latest if at is None else int(at)

    results = [["Vesting", "Claimant", "Total", "Claimed", "Claimable (chain)", f"Claimable @{when}"]]
    mismatches = 0
    for entry in _load_report(ctx):
        vesting = ctx.contract("Vesting", entry["vesting"])
        cfg = read_config(vesting)
        claimed = ctx.call(vesting.functions.amountClaimed())
        onchain = ctx.call(vesting.functions.getClaimableAmount())
        local = schedule.claimable_amount(cfg, claimed, when)
        if when == latest and local != onchain:
            mismatches += 1
        results.append(
            [
                entry["vesting"],
                cfg.claimant,
                format_ether(cfg.total_amount),
                format_ether(claimed),
                format_ether(onchain),
                format_ether(local),
            ]
        )

    print(SingleTable(results).table)
    if mismatches:
        print(f"\x1b[33;1m{mismatches} contract(s) disagree with the local schedule\x1b[0m")
    return results


def register(scopes):
    scope = scopes.add_parser("read", help="Read deployment data").add_subparsers(
        dest="task", metavar="TASK", required=True
    )

    p = scope.add_parser("allDeployments", help="Write all factory deployments to the deployments report")
    p.set_defaults(func=lambda ctx, a: all_deployments(ctx))

    p = scope.add_parser("totalClaimed", help="Read total claimed amount")
    p.set_defaults(func=lambda ctx, a: total_claimed(ctx))

    p = scope.add_parser("claimable", help="Show claimable amounts of all reported deployments")
    p.add_argument("--at", type=int, help="Unix timestamp to compute the schedule at (default: latest block)")
    p.set_defaults(func=lambda ctx, a: claimable(ctx, a.at))
