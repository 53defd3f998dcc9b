"""Base interfaces for gas-less transfer relaying.

Relay flow:
1. Orchestrator builds an AuthorizationRequest (amount already in base units)
2. Relayer asks the signing service to sign an ERC-3009 authorization
   with the account's session credential
3. Relayer submits transferWithAuthorization and pays gas
4. Relayer returns the transaction hash

The sending account never needs native currency.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthorizationRequest:
    """Everything the relayer needs to execute one token transfer.

    Attributes:
        signer_address: Threshold-signed account that owns the tokens
        signer_public_key: Uncompressed secp256k1 public key (hex)
        session_credential: Opaque credential for the signing service
        chain_id: EVM chain ID
        rpc_endpoint: Node the relayer should broadcast through
        token_contract: ERC-3009 token contract
        recipient: Transfer destination
        amount: Amount in token base units
    """
    signer_address: str
    signer_public_key: str
    session_credential: Any = field(repr=False)
    chain_id: int
    rpc_endpoint: str = field(repr=False)
    token_contract: str
    recipient: str
    amount: int


class SessionSigner(ABC):
    """Threshold signing service boundary.

    Implementations never see raw private keys; the service signs on behalf
    of the account when presented with a valid session credential.
    """

    @abstractmethod
    async def sign_digest(
        self, session_credential: Any, public_key: str, digest: bytes
    ) -> str:
        """Sign a 32-byte digest.

        Args:
            session_credential: Opaque credential issued for the account
            public_key: Public key of the account's threshold key
            digest: 32-byte message hash

        Returns:
            65-byte signature as 0x hex (r + s + v)

        Raises:
            SigningServiceError: If the service refuses or fails
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class RelayerClient(ABC):
    """Executes signed token transfers on behalf of an account."""

    @abstractmethod
    async def execute_transfer(self, request: AuthorizationRequest) -> str:
        """Arrange signing and broadcast of a transfer.

        Args:
            request: Transfer authorization request

        Returns:
            Transaction hash (0x-prefixed, 32 bytes)

        Raises:
            RelayerExecutionFailure: If signing or broadcast fails
        """
        pass
