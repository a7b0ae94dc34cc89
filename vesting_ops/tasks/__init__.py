import time

from ..contracts import compile_contracts, decoded_reverts
from ..errors import ConfigError
from ..network import Sender, connect, get_network, load_account
from ..report import report_path
from ..settings import Settings


class TaskContext:
    """What a task needs to talk to one network: settings files, a connected web3 instance (signing
    if the network's key is set) and the compiled contracts.  Connection and compilation happen on
    first use, so tasks that fail on settings never touch the network."""

    def __init__(self, network, settings_root=None):
        self.network = get_network(network)
        self.settings_root = settings_root
        self._w3 = None
        self._account = None
        self._compiled = None
        self._sender = None

    def settings(self, name="settings"):
        return Settings(name, network=self.network.name, root=self.settings_root)

    @property
    def report_path(self):
        return report_path(self.network.name, self.settings_root or "settings")

    @property
    def w3(self):
        if self._w3 is None:
            self._account = load_account(self.network)
            if self._account is not None:
                print(f"Using wallet {self._account.address}")
            else:
                print(f"{self.network.key_env} is not set; read-only mode")
            self._w3 = connect(self.network, self._account)
        return self._w3

    @property
    def account(self):
        self.w3
        return self._account

    @property
    def compiled(self):
        if self._compiled is None:
            print("Loading contracts...")
            self._compiled = compile_contracts()
        return self._compiled

    @property
    def deployer(self):
        if self.account is None:
            raise ConfigError(f"{self.network.key_env} is not set; cannot sign transactions")
        return self.account.address

    def contract(self, name, addr):
        return self.compiled.contract(self.w3, name, addr)

    def call(self, fn):
        with decoded_reverts(self.compiled.errors):
            if self.account is None:
                return fn.call()
            return fn.call({"from": self.account.address})

    def send(self, fn, description):
        self.deployer
        if self._sender is None:
            self._sender = Sender(self.w3, self.network)
        with decoded_reverts(self.compiled.errors):
            return self._sender.send(fn, description)

    def deploy(self, name, *args):
        self.deployer
        factory = self.w3.eth.contract(abi=self.compiled.abi(name), bytecode=self.compiled.bytecode(name))
        return self.send(factory.constructor(*args), f"{name} constructor {args}")

    def timestamp(self):
        return self.w3.eth.get_block("latest")["timestamp"]


def wall_clock():
    return int(time.time())
