"""
vesting-ops: deployment and maintenance tasks for the Vesting / VestingFactory contracts.

    vesting-ops --network sepolia deploy factory
    vesting-ops --network sepolia interact factory:deployBatch --input vestings.csv --dry
    vesting-ops --network sepolia interact factory:setupNextBatch --iterations 20
    vesting-ops --network sepolia read allDeployments

Run with `--help` after any scope for more info.
"""

import argparse
import sys

from .console import fail, set_verbose
from .errors import VestingOpsError
from .network import NETWORKS, load_env
from .settings import default_network
from .tasks import TaskContext, deploy, dev, interact, read, upgrade


def build_parser():
    parser = argparse.ArgumentParser(
        prog="vesting-ops", description="Vesting contract deployment and maintenance tasks"
    )
    parser.add_argument(
        "-n",
        "--network",
        choices=sorted(NETWORKS),
        help="Network to run on (default: $NETWORK or localhost)",
    )
    parser.add_argument("--settings-dir", help="Settings root directory (default: ./settings)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Make your terminal work harder")

    scopes = parser.add_subparsers(dest="scope", metavar="SCOPE", required=True)
    for module in (deploy, upgrade, interact, read, dev):
        module.register(scopes)
    return parser


def main(argv=None):
    load_env()
    args = build_parser().parse_args(argv)
    set_verbose(args.verbose)

    try:
        ctx = TaskContext(args.network or default_network(), args.settings_dir)
        args.func(ctx, args)
    except VestingOpsError as e:
        fail(f"{args.scope} {args.task} failed: {e.__class__.__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
