"""
Named networks, signer setup and transaction sending.

Secrets come from the environment (optionally a `.env` file in the working directory):

    RPC_URL               overrides the network's default RPC endpoint
    INFURA_API_KEY        used to build the default endpoint of public networks
    TESTNET_PRIVATE_KEY   signer for sepolia/goerli
    MAINNET_PRIVATE_KEY   signer for mainnet
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv
from eth_account import Account
from web3 import Web3, middleware

from .console import green, link, verbose
from .errors import ConfigError, ConnectionFailed, TransactionFailed, UnknownNetworkError

TEST_MNEMONIC = "abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon about"

GAS_MULTIPLIER = 1.2


@dataclass(frozen=True)
class Network:
    name: str
    chain_id: int = None
    url: str = None
    infura: str = None
    key_env: str = None
    mnemonic: str = None
    explorer: str = None
    gas_multiplier: float = 1.0

    def rpc_url(self):
        if self.url:
            return self.url
        if os.environ.get("RPC_URL"):
            return os.environ["RPC_URL"]
        return f"https://{self.infura}.infura.io/v3/{os.environ.get('INFURA_API_KEY', '')}"

    def tx_url(self, txid):
        return f"{self.explorer}/tx/{txid}" if self.explorer else txid


NETWORKS = {
    n.name: n
    for n in (
        Network("localhost", url="http://127.0.0.1:8545/", mnemonic=TEST_MNEMONIC),
        Network(
            "sepolia",
            chain_id=11155111,
            infura="sepolia",
            key_env="TESTNET_PRIVATE_KEY",
            explorer="https://sepolia.etherscan.io",
            gas_multiplier=GAS_MULTIPLIER,
        ),
        Network(
            "goerli",
            chain_id=5,
            infura="goerli",
            key_env="TESTNET_PRIVATE_KEY",
            explorer="https://goerli.etherscan.io",
            gas_multiplier=GAS_MULTIPLIER,
        ),
        Network(
            "mainnet",
            chain_id=1,
            infura="mainnet",
            key_env="MAINNET_PRIVATE_KEY",
            explorer="https://etherscan.io",
            gas_multiplier=GAS_MULTIPLIER,
        ),
    )
}


def get_network(name):
    try:
        return NETWORKS[name]
    except KeyError:
        raise UnknownNetworkError(
            f"Unknown network '{name}'; expected one of {', '.join(NETWORKS)}"
        )


def load_env(path=".env"):
    load_dotenv(path)


def load_account(network):
    if network.mnemonic:
        Account.enable_unaudited_hdwallet_features()
        return Account.from_mnemonic(network.mnemonic)

    private_key = os.environ.get(network.key_env or "")
    if not private_key:
        # Read-only: calls work, sending transactions does not
        return None
    if not private_key.startswith("0x") or len(private_key) != 66:
        raise ConfigError(f"{network.key_env} is set but looks invalid")
    return Account.from_key(private_key)


def connect(network, account=None):
    w3 = Web3(Web3.HTTPProvider(network.rpc_url()))
    if not w3.is_connected():
        raise ConnectionFailed(f"{network.name} connection failed; check RPC_URL")

    actual_chain = w3.eth.chain_id
    if network.chain_id is not None and actual_chain != network.chain_id:
        raise ConnectionFailed(
            f"RPC provider is for the wrong chain for {network.name}: "
            f"expected 0x{network.chain_id:x}, provider is 0x{actual_chain:x}"
        )

    if account is not None:
        w3.middleware_onion.inject(middleware.SignAndSendRawMiddlewareBuilder.build(account), layer=0)
        w3.eth.default_account = account.address
    return w3


class Sender:
    """Sends transactions one at a time and waits for each receipt."""

    def __init__(self, w3, network, timeout=300):
        self.w3 = w3
        self.network = network
        self.timeout = timeout

    def tx_params(self, fn):
        params = {"from": self.w3.eth.default_account}
        if self.network.gas_multiplier != 1.0:
            params["gas"] = int(fn.estimate_gas(params) * self.network.gas_multiplier)
        return params

    def send(self, fn, description):
        """Submits contract function call `fn` and returns its receipt; raises TransactionFailed if
        it reverted."""
        verbose(f"    About to invoke: {description}")
        txid = fn.transact(self.tx_params(fn))
        txhex = self.w3.to_hex(txid)
        print(f"Transaction sent: {link(self.network.tx_url(txhex), txhex)}")
        receipt = self.w3.eth.wait_for_transaction_receipt(txid, timeout=self.timeout)
        if receipt["status"] != 1:
            raise TransactionFailed(txhex)
        print(green(f"Transaction confirmed: {txhex}. Gas used: {receipt['gasUsed']}"))
        return receipt
