from ..batch import CHUNK_SIZE, parse_vesting_csv
from ..console import green, warn
from ..contracts import read_config, read_deployment
from ..errors import ConfigError, InsufficientBalance, InvalidSettingError
from ..scale import SECONDS_IN_MONTH, format_ether, format_percentage
from ..simulate import simulate_batch
from . import wall_clock


def _tge_time(ctx):
    vesting = ctx.settings().must_get_reader("vesting")
    tge_time = vesting.must_get_int("tgeTime")
    if tge_time <= 0:
        raise InvalidSettingError("vesting.tgeTime", tge_time, "must be a positive timestamp")
    return tge_time


def deploy_batch(ctx, input, dry=False, chunk_size=CHUNK_SIZE):
    """Deploys one vesting contract per CSV row through VestingFactory.deployBatch, `chunk_size`
    rows per transaction.  With `dry`, the whole plan is run against the in-process model instead."""
    token = ctx.settings().must_get_reader("factory").must_get_address("token")
    tge_time = _tge_time(ctx)
    now = wall_clock() if dry else ctx.timestamp()

    plan = parse_vesting_csv(input, token, tge_time, now=now)

    for claimant, count in plan.duplicates.items():
        warn(f"Claimant {claimant} appears {count} times in the input file.")

    print("Vesting configs to deploy:")
    for i, cfg in enumerate(plan.configs, start=1):
        print(
            f"Config {i}: Claimant: {cfg.claimant}, Amount: {format_ether(cfg.total_amount)} tokens, "
            f"TGE: {format_percentage(cfg.tge_percentage)}, "
            f"Cliff: {cfg.cliff_duration} seconds ({cfg.cliff_duration // SECONDS_IN_MONTH} months), "
            f"Vesting: {cfg.vesting_duration} seconds ({cfg.vesting_duration // SECONDS_IN_MONTH} months)"
        )
    print(f"Total vesting configs to deploy: {len(plan.configs)}")
    print(f"Total amount to vest: {format_ether(plan.total_amount)} tokens")

    chunks = plan.chunks(chunk_size)
    if dry:
        model = simulate_batch(plan, now, chunk_size)
        print(
            green(
                f"DRY-RUN: {len(chunks)} deployBatch transaction(s) would deploy "
                f"{model.get_number_of_deployments()} vesting contracts; setup would need "
                f"{format_ether(plan.total_amount)} tokens"
            )
        )
        return plan

    factory = ctx.contract("VestingFactory", ctx.settings("addresses").must_get_address("factory"))

    deployed = 0
    for n, chunk in enumerate(chunks, start=1):
        ctx.send(
            factory.functions.deployBatch([c.as_abi() for c in chunk]),
            f"deployBatch chunk {n}/{len(chunks)} ({len(chunk)} configs)",
        )
        deployed += len(chunk)

    print(
        green(
            f"Deployed {deployed} vesting contracts with total amount of "
            f"{format_ether(plan.total_amount)} tokens."
        )
    )
    return plan


def setup_next_batch(ctx, iterations, dry=False):
    """Approves exactly the tokens the next `iterations` pending deployments need and funds them
    with VestingFactory.setupNextBatch."""
    try:
        iterations = int(iterations)
    except ValueError:
        iterations = 0
    if iterations <= 0:
        raise ConfigError(f"Invalid iterations: {iterations}")

    factory_addr = ctx.settings("addresses").must_get_address("factory")
    factory = ctx.contract("VestingFactory", factory_addr)

    print(f"Setting up {iterations} iterations...")
    print(f"Next batch index: {ctx.call(factory.functions.nextBatchIndex())}")

    batch = [read_deployment(d) for d in ctx.call(factory.functions.getNextBatchDeployments(iterations))]
    if not batch:
        print("No deployments found for the next batch.")
        return 0

    print(f"Found {len(batch)} deployments for the next batch.")
    tokens_needed = sum(d.amount for d in batch if not d.is_setup_done)
    print(f"Tokens needed for next {iterations} batches: {format_ether(tokens_needed)}")

    if dry:
        print("Dry run mode: No transactions will be sent.")
        return tokens_needed

    token_addr = ctx.settings().must_get_reader("factory").must_get_address("token")
    token = ctx.contract("IERC20", token_addr)
    balance = ctx.call(token.functions.balanceOf(ctx.deployer))
    print(f"Deployer balance: {format_ether(balance)} tokens")

    if balance < tokens_needed:
        raise InsufficientBalance(
            f"Deployer balance is less than needed: {format_ether(balance)} < {format_ether(tokens_needed)}"
        )

    ctx.send(token.functions.approve(factory_addr, tokens_needed), f"approve({factory_addr}, {tokens_needed})")
    ctx.send(factory.functions.setupNextBatch(iterations), f"setupNextBatch({iterations})")
    return tokens_needed


def read_all(ctx):
    factory = ctx.contract("VestingFactory", ctx.settings("addresses").must_get_address("factory"))

    total = ctx.call(factory.functions.getNumberOfDeployments())
    print(f"Total deployments: {total}")

    for i in range(total):
        d = read_deployment(ctx.call(factory.functions.deployments(i)))
        print(f"Deployment {i}: Claimant: {d.claimant}, Amount: {format_ether(d.amount)} tokens, Vesting: {d.vesting}")

        cfg = read_config(ctx.contract("Vesting", d.vesting))
        print(
            f"  Config: Initial Owner: {cfg.initial_owner}, Token: {cfg.token}, TGE Time: {cfg.tge_time}, "
            f"TGE Percentage: {format_percentage(cfg.tge_percentage)}, "
            f"Cliff Duration: {cfg.cliff_duration} seconds, Vesting Duration: {cfg.vesting_duration} seconds, "
            f"Total Amount: {format_ether(cfg.total_amount)} tokens"
        )
    return total


def register(scopes):
    scope = scopes.add_parser("interact", help="Interact with deployed contracts").add_subparsers(
        dest="task", metavar="TASK", required=True
    )

    p = scope.add_parser("factory:deployBatch", help="Deploy a batch of vesting contracts")
    p.add_argument("--input", required=True, help="Path to the CSV file with vesting data")
    p.add_argument("--dry", action="store_true", help="Run the task in dry mode (no transactions will be sent)")
    p.set_defaults(func=lambda ctx, a: deploy_batch(ctx, a.input, a.dry))

    p = scope.add_parser("factory:setupNextBatch", help="Setup the next batch of vesting contracts")
    p.add_argument("--iterations", required=True, help="Number of iterations to setup")
    p.add_argument("--dry", action="store_true", help="Run the task in dry mode (no transactions will be sent)")
    p.set_defaults(func=lambda ctx, a: setup_next_batch(ctx, a.iterations, a.dry))

    p = scope.add_parser("factory:readAll", help="Read all deployments from the factory")
    p.set_defaults(func=lambda ctx, a: read_all(ctx))
