"""
Exceptions raised by the vesting model, the settings layer and the tasks.

Contract-level errors carry the name of the Solidity custom error they correspond to so that
on-chain reverts can be decoded into the same classes as the in-process model raises (see
`vesting_ops.contracts.ContractErrors`).
"""


class VestingOpsError(Exception):
    pass


# Configuration errors: reported to the operator before anything is sent to the chain.


class ConfigError(VestingOpsError):
    pass


class MissingSettingError(ConfigError):
    def __init__(self, key, path):
        super().__init__(f"Missing setting '{key}' in {path}")
        self.key = key
        self.path = path


class InvalidSettingError(ConfigError):
    def __init__(self, key, value, why):
        super().__init__(f"Invalid setting '{key}' = {value!r}: {why}")
        self.key = key
        self.value = value


class BatchInputError(ConfigError):
    def __init__(self, message, row=None):
        super().__init__(f"Row {row}: {message}" if row is not None else message)
        self.row = row


class UnknownNetworkError(ConfigError):
    pass


# Contract errors: authorization and state errors.  Each rejected operation is atomic.


class ContractError(VestingOpsError):
    solidity_names = ()

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)


class Unauthorized(ContractError):
    solidity_names = ("Vesting_ClaimantOnly", "OwnableUnauthorizedAccount")

    def __init__(self, account=None, message=None):
        super().__init__(message or f"Unauthorized caller {account}")
        self.account = account


class NothingToClaim(ContractError):
    solidity_names = ("Vesting_NothingToClaim",)


class AlreadyInitialized(ContractError):
    solidity_names = ("InvalidInitialization",)


class InvalidConfig(ContractError):
    solidity_names = ("Vesting_InvalidConfig",)

    def __init__(self, reason):
        super().__init__(f"Invalid vesting config: {reason}")
        self.reason = reason


class InvalidImplementation(ContractError):
    solidity_names = ("VestingFactory_InvalidImplementation",)

    def __init__(self, implementation=None):
        super().__init__(f"Invalid vesting implementation {implementation}")
        self.implementation = implementation


class InvalidToken(ContractError):
    solidity_names = ("VestingFactory_InvalidToken",)


class NothingToSetup(ContractError):
    solidity_names = ("VestingFactory_NothingToSetup",)


class InvalidIterations(ContractError):
    solidity_names = ("VestingFactory_InvalidIterations",)


class InsufficientBalance(ContractError):
    solidity_names = ("ERC20InsufficientBalance",)


class InsufficientAllowance(ContractError):
    solidity_names = ("ERC20InsufficientAllowance",)


CONTRACT_ERRORS = (
    Unauthorized,
    NothingToClaim,
    AlreadyInitialized,
    InvalidConfig,
    InvalidImplementation,
    InvalidToken,
    NothingToSetup,
    InvalidIterations,
    InsufficientBalance,
    InsufficientAllowance,
)


# Operational errors.  Nothing retries these; the operator re-runs the task.


class ConnectionFailed(VestingOpsError):
    pass


class TransactionFailed(VestingOpsError):
    def __init__(self, txid, message=None):
        super().__init__(message or f"Transaction {txid} reverted")
        self.txid = txid


class UpgradeValidationError(VestingOpsError):
    def __init__(self, problems):
        super().__init__(
            "Upgrade is not storage compatible:\n" + "\n".join(f"    {p}" for p in problems)
        )
        self.problems = problems
