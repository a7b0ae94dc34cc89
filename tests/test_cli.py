import pytest

from vesting_ops import cli
from vesting_ops.errors import UnknownNetworkError
from vesting_ops.tasks import TaskContext


def test_parse_tasks():
    parser = cli.build_parser()

    args = parser.parse_args(
        ["-n", "sepolia", "interact", "factory:deployBatch", "--input", "vestings.csv", "--dry"]
    )
    assert (args.network, args.scope, args.task) == ("sepolia", "interact", "factory:deployBatch")
    assert args.input == "vestings.csv" and args.dry

    args = parser.parse_args(["interact", "factory:setupNextBatch", "--iterations", "20"])
    assert args.network is None
    assert args.iterations == "20" and not args.dry

    args = parser.parse_args(["upgrade", "validate", "--name", "token", "--factory", "BaseERC20"])
    assert (args.name, args.factory, args.tag) == ("token", "BaseERC20", None)

    args = parser.parse_args(["read", "claimable", "--at", "1700000000"])
    assert args.at == 1_700_000_000

    args = parser.parse_args(["dev", "deploy:erc20mock"])
    assert args.decimals == 18

    args = parser.parse_args(["deploy", "implementations", "Vesting", "VestingFactory", "--quiet"])
    assert args.contracts == ["Vesting", "VestingFactory"] and args.quiet


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["deploy"],
        ["-n", "ropsten", "deploy", "factory"],
        ["interact", "factory:setupNextBatch"],
    ],
)
def test_parse_errors(argv):
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(argv)


def test_failure_exit_code(tmp_path, capsys):
    argv = ["-n", "localhost", "--settings-dir", str(tmp_path), "deploy", "factory", "--dry"]
    assert cli.main(argv) == 1
    err = capsys.readouterr().err
    assert "deploy factory failed" in err
    assert "factory" in err and "MissingSettingError" in err


def test_dry_run_exit_code(tmp_path, capsys):
    settings = tmp_path / "localhost" / "settings.json"
    settings.parent.mkdir()
    settings.write_text('{"factory": {"initialOwner": "0x' + "12" * 20 + '", "token": "0x' + "34" * 20 + '"}}')

    assert cli.main(["-n", "localhost", "--settings-dir", str(tmp_path), "deploy", "factory", "--dry"]) == 0
    assert '"dry" is enabled' in capsys.readouterr().out


def test_unknown_network():
    with pytest.raises(UnknownNetworkError):
        TaskContext("ropsten")
