"""Exceptions raised by wallet operations.

Validation errors (credential, amount, address, configuration) are raised
before any network I/O. Relayer failures are raised as-is to the caller and
never retried here.
"""

from typing import Optional


class WalletError(Exception):
    """Base class for all wallet errors."""
    pass


class MissingConfigurationError(WalletError):
    """A required setting (RPC endpoint, relayer key) is not configured."""

    def __init__(self, setting: str, message: Optional[str] = None):
        self.setting = setting
        super().__init__(message or f"{setting} is not configured")


class UnsupportedChainError(WalletError):
    """No vetted RPC endpoint exists for the requested chain."""

    def __init__(self, chain_id: int, message: Optional[str] = None):
        self.chain_id = chain_id
        super().__init__(message or f"RPC endpoint not available for chain ID {chain_id}")


class MissingCredentialError(WalletError):
    """A transfer was requested without a session credential."""
    pass


class InvalidAmountError(WalletError, ValueError):
    """An amount cannot be represented exactly in token base units."""

    def __init__(self, amount: object, reason: str):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class InvalidAddressError(WalletError, ValueError):
    """An address is not a 20-byte hex EVM address."""

    def __init__(self, address: object):
        self.address = address
        super().__init__(f"Invalid address: {address!r}")


class MetadataResolutionFailure(WalletError):
    """Token metadata lookup failed.

    Recorded on the resolution result and logged; never raised to callers.
    """

    def __init__(self, token_contract: str, chain_id: int, cause: BaseException):
        self.token_contract = token_contract
        self.chain_id = chain_id
        self.cause = cause
        super().__init__(
            f"Failed to resolve decimals for {token_contract} on chain {chain_id}: {cause}"
        )


class SigningServiceError(WalletError):
    """The threshold signing service did not return a usable signature."""
    pass


class RelayerExecutionFailure(WalletError):
    """The relayer failed to sign or broadcast a transfer."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)
