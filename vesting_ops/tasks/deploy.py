from .. import schedule
from ..batch import parse_record
from ..console import green
from ..scale import ZERO_ADDRESS, format_ether, format_percentage


def deploy_implementations(ctx, contracts, dry=False, quiet=False):
    """Deploys bare implementation contracts and records their address (`implementations`) and
    storage layout (`layouts`, used to validate later upgrades)."""
    say = (lambda *a: None) if quiet else print

    if dry:
        say(f'Want to deploy {", ".join(contracts)} but "dry" is enabled')
        return {}

    implementations = ctx.settings("implementations")
    layouts = ctx.settings("layouts")

    deployed = {}
    for contract in contracts:
        say(f"Deploying implementation for contract: {contract}")
        receipt = ctx.deploy(contract)
        addr = receipt["contractAddress"]
        say(f"implementation:{contract} deployed to: {addr}. Gas used: {receipt['gasUsed']}")
        implementations.set(contract, addr)
        layouts.set(addr, ctx.compiled.storage_layout(contract))
        deployed[contract] = addr
    return deployed


def deploy_factory(ctx, dry=False):
    settings = ctx.settings().must_get_reader("factory")
    initial_owner = settings.must_get_address("initialOwner")
    token = settings.must_get_address("token")

    if dry:
        print(f'Want to deploy Vesting and VestingFactory(owner={initial_owner}, token={token}) but "dry" is enabled')
        return None

    deploy_implementations(ctx, ["Vesting"], quiet=True)
    impl = ctx.settings("implementations").must_get_address("Vesting")

    receipt = ctx.deploy("VestingFactory", impl, initial_owner, token)
    addr = receipt["contractAddress"]
    ctx.settings("addresses").set("factory", addr)

    print(green(f"VestingFactory deployed to: {addr}"))
    return addr


def vesting_config_from_settings(ctx):
    """Builds the VestingConfig described by the `vesting` settings (same units as the CSV
    columns; `tgeTime` may be 0 or absent to start at initialization)."""
    settings = ctx.settings()
    token = settings.must_get_reader("factory").must_get_address("token")
    vesting = settings.must_get_reader("vesting")

    record = {
        "initialOwner": vesting.get("initialOwner", ZERO_ADDRESS),
        "claimant": vesting.must_get("claimant"),
        "totalAmount": vesting.must_get("totalAmount"),
        "tgePercentage": vesting.get("tgePercentage", "0%"),
        "cliffDuration": vesting.get("cliffDuration", 0),
        "vestingDuration": vesting.must_get("vestingDuration"),
    }
    tge_time = vesting.must_get_int("tgeTime") if vesting.get("tgeTime") else 0
    return parse_record({k: str(v) for k, v in record.items()}, token, tge_time)


def deploy_vesting(ctx, dry=False):
    """Deploys and initializes one vesting instance through the factory."""
    cfg = vesting_config_from_settings(ctx)
    factory_addr = ctx.settings("addresses").must_get_address("factory")

    now = ctx.timestamp()
    schedule.check_config(cfg if cfg.tge_time else cfg.replace(tge_time=now), now)

    print(
        f"Vesting for {cfg.claimant}: {format_ether(cfg.total_amount)} tokens, "
        f"TGE {format_percentage(cfg.tge_percentage)} at {cfg.tge_time or 'deployment'}, "
        f"cliff {cfg.cliff_duration}s, vesting {cfg.vesting_duration}s"
    )

    factory = ctx.contract("VestingFactory", factory_addr)
    fn = factory.functions.deploy(cfg.as_abi())
    # The return value of a transaction is not available, so ask for it with a call first
    addr = ctx.call(fn)

    if dry:
        print(f'Would deploy vesting to {addr} but "dry" is enabled')
        return addr

    ctx.send(fn, f"VestingFactory.deploy for {cfg.claimant}")
    print(green(f"Vesting deployed to: {addr}"))
    return addr


def register(scopes):
    scope = scopes.add_parser("deploy", help="Deploy contracts").add_subparsers(
        dest="task", metavar="TASK", required=True
    )

    p = scope.add_parser("implementations", help="Deploy implementations")
    p.add_argument("contracts", nargs="*", default=[], help="Name of contracts to deploy implementation for")
    p.add_argument("--dry", action="store_true", help="Do not deploy")
    p.add_argument("--quiet", action="store_true", help="Do not print anything")
    p.set_defaults(func=lambda ctx, a: deploy_implementations(ctx, a.contracts, a.dry, a.quiet))

    p = scope.add_parser("factory", help="Deploy VestingFactory")
    p.add_argument("--dry", action="store_true", help="Do not deploy")
    p.set_defaults(func=lambda ctx, a: deploy_factory(ctx, a.dry))

    p = scope.add_parser("vesting", help="Deploy a single vesting contract from the `vesting` settings")
    p.add_argument("--dry", action="store_true", help="Do not deploy")
    p.set_defaults(func=lambda ctx, a: deploy_vesting(ctx, a.dry))
