"""Per-network deployments report, `settings/<network>/deployments.json`."""

import json
from pathlib import Path

from .scale import format_ether, format_months, format_percentage

REPORT_FILE = "deployments.json"


def report_path(network, root="settings"):
    return Path(root) / network / REPORT_FILE


def report_entry(deployment, config):
    """Builds one report entry from a factory deployment and its vesting instance's config."""
    return {
        "claimant": config.claimant,
        "amount": format_ether(deployment.amount),
        "vesting": deployment.vesting,
        "isSetupDone": bool(deployment.is_setup_done),
        "cliffDuration": format_months(config.cliff_duration),
        "vestingDuration": format_months(config.vesting_duration),
        "tgePercentage": format_percentage(config.tge_percentage),
    }


def write_report(path, entries):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(entries, f, indent=2)


def read_report(path):
    with open(path) as f:
        entries = json.load(f)
    if not isinstance(entries, list):
        raise ValueError(f"{path} does not contain a list of deployments")
    return entries
