from ..console import green


def deploy_erc20_mock(ctx, decimals=18):
    receipt = ctx.deploy("ERC20Mock", decimals)
    addr = receipt["contractAddress"]
    print(green(f"ERC20Mock deployed to: {addr}"))
    return addr


def register(scopes):
    scope = scopes.add_parser("dev", help="Development helpers").add_subparsers(
        dest="task", metavar="TASK", required=True
    )

    p = scope.add_parser("deploy:erc20mock", help="Deploy ERC20Mock")
    p.add_argument("--decimals", type=int, default=18, help="Token decimals")
    p.set_defaults(func=lambda ctx, a: deploy_erc20_mock(ctx, a.decimals))
