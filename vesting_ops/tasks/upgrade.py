from ..console import green
from ..errors import ConfigError
from ..upgrades import get_implementation, upgrade_call, validate_upgrade
from .deploy import deploy_implementations


def _proxy_address(ctx, name, tag):
    addresses = ctx.settings("addresses")
    if tag:
        addresses = addresses.tag(tag)
    return addresses.must_get_address(name)


def validate_contract_upgrade(ctx, name, factory, tag=None):
    """Checks that the implementation `factory` can replace the current implementation of proxy
    `name`.  Only works for implementations deployed with `deploy implementations`, which records
    their storage layout."""
    proxy = _proxy_address(ctx, name, tag)
    current = get_implementation(ctx.w3, proxy)

    old = ctx.settings("layouts").get(current)
    if old is None:
        raise ConfigError(
            f"No storage layout recorded for {current} (current implementation of {name}); "
            "it was not deployed with `deploy implementations`"
        )

    validate_upgrade(old, ctx.compiled.storage_layout(factory))
    print(green(f"{factory} is a valid upgrade for {name} ({proxy}, currently {current})"))
    return current


def upgrade_contract(ctx, name, factory, tag=None):
    proxy = _proxy_address(ctx, name, tag)
    validate_contract_upgrade(ctx, name, factory, tag)

    new_impl = deploy_implementations(ctx, [factory])[factory]

    receipt = ctx.send(upgrade_call(ctx.w3, proxy, new_impl), f"{name}.upgradeToAndCall({new_impl})")
    print(green(f"Upgraded {name}. Gas used: {receipt['gasUsed']}"))
    return receipt


def register(scopes):
    scope = scopes.add_parser("upgrade", help="Upgrade contracts").add_subparsers(
        dest="task", metavar="TASK", required=True
    )

    for task, func, help in (
        ("contract", upgrade_contract, "Upgrade contract to new implementation"),
        ("validate", validate_contract_upgrade, "Validate upgrade of contract"),
    ):
        p = scope.add_parser(task, help=help)
        p.add_argument("--name", required=True, help="Contract name (e.g. 'token')")
        p.add_argument("--factory", required=True, help="Contract factory name (e.g. 'BaseERC20')")
        p.add_argument("--tag", help="Deployment tag, if available")
        p.set_defaults(func=lambda ctx, a, func=func: func(ctx, a.name, a.factory, a.tag))
