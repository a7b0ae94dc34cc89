from .factory import FactoryDeployment, VestingFactory
from .ledger import ERC20Mock, Ledger
from .settings import Settings
from .vesting import Vesting, VestingConfig

__version__ = "1.0.0"
