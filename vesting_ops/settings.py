"""
Network-scoped settings and address book.

Every network has its own directory of JSON files, `settings/<network>/<name>.json`.  `settings`
holds operator-provided configuration (`factory.token`, `vesting.tgeTime`, ...), while
`implementations`, `addresses` and `layouts` are written by the deploy tasks.  Keys may be dotted
(`factory.token`) to reach into nested objects.
"""

import json
import os
from pathlib import Path

from web3 import Web3

from .errors import InvalidSettingError, MissingSettingError

DEFAULT_ROOT = "settings"
DEFAULT_FILE = "settings"

_MISSING = object()


def default_network():
    return os.environ.get("NETWORK", "localhost")


class Settings:
    def __init__(self, name=DEFAULT_FILE, network=None, root=None, tag=None, prefix=()):
        self.name = name
        self.network = network or default_network()
        self.root = Path(root or os.environ.get("SETTINGS_DIR", DEFAULT_ROOT))
        self._tag = tag
        self.prefix = tuple(prefix)

    @classmethod
    def file(cls, name, network=None, root=None):
        return cls(name, network=network, root=root)

    @property
    def path(self):
        fname = f"{self.name}.{self._tag}.json" if self._tag else f"{self.name}.json"
        return self.root / self.network / fname

    def tag(self, tag):
        """Returns the same settings file for the address set `tag`."""
        return Settings(self.name, self.network, self.root, tag, self.prefix)

    def _load(self):
        try:
            with open(self.path) as f:
                return json.load(f)
        except FileNotFoundError:
            return {}

    def _keys(self, key):
        return self.prefix + tuple(key.split(".")) if key else self.prefix

    def _label(self, key):
        return ".".join(self._keys(key))

    def get(self, key, default=None):
        node = self._load()
        for k in self._keys(key):
            if not isinstance(node, dict) or k not in node:
                return default
            node = node[k]
        return node

    def set(self, key, value):
        data = self._load()
        *parents, last = self._keys(key)
        node = data
        for k in parents:
            node = node.setdefault(k, {})
            if not isinstance(node, dict):
                raise InvalidSettingError(k, node, "not an object")
        node[last] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".json.tmp")
        with open(tmp, "w") as f:
            json.dump(data, f, indent=4)
            f.write("\n")
        os.replace(tmp, self.path)

    def must_get(self, key):
        value = self.get(key, _MISSING)
        if value is _MISSING or value is None or value == "":
            raise MissingSettingError(self._label(key), self.path)
        return value

    def must_get_address(self, key):
        value = self.must_get(key)
        if not isinstance(value, str) or not Web3.is_address(value):
            raise InvalidSettingError(self._label(key), value, "not an address")
        return Web3.to_checksum_address(value)

    def must_get_int(self, key):
        value = self.must_get(key)
        try:
            return int(str(value).replace(",", ""))
        except ValueError:
            raise InvalidSettingError(self._label(key), value, "not an integer")

    def get_reader(self, key):
        return Settings(self.name, self.network, self.root, self._tag, self._keys(key))

    def must_get_reader(self, key):
        if not isinstance(self.must_get(key), dict):
            raise InvalidSettingError(self._label(key), self.get(key), "not an object")
        return self.get_reader(key)
