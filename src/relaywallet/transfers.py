"""Gas-less ERC-20 transfers from threshold-signed accounts.

Transfer flow:
1. Validate credential, recipient and amount (no I/O)
2. Resolve chain and the endpoint the relayer should broadcast through
3. Resolve token and token precision
4. Scale the amount to base units
5. Hand an AuthorizationRequest to the relayer
6. Return the relayer's transaction hash

The account signs an authorization; the relayer pays gas. Each step
depends on the previous one, so nothing here runs concurrently.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from relaywallet.amounts import MAX_DECIMALS, parse_amount, to_base_units
from relaywallet.chains import ChainRegistry
from relaywallet.errors import InvalidAmountError, MissingCredentialError
from relaywallet.relayer.base import AuthorizationRequest, RelayerClient
from relaywallet.tokens import (
    DEFAULT_USDC_ADDRESS,
    DEFAULT_USDC_DECIMALS,
    TokenDescriptor,
    TokenMetadataResolver,
    checksum_address,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThresholdAccount:
    """A wallet whose key is held by the threshold signing service."""

    address: str
    public_key: str


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a relayed transfer."""

    transaction_hash: str
    chain_id: int
    token_contract: str


class TransferOrchestrator:
    """Coordinates chain/token resolution and relayed execution."""

    def __init__(
        self,
        registry: ChainRegistry,
        resolver: TokenMetadataResolver,
        relayer: RelayerClient,
    ):
        self.registry = registry
        self.resolver = resolver
        self.relayer = relayer

    async def _resolve_token(
        self,
        token_contract: Optional[str],
        token_decimals: Optional[int],
        chain_id: int,
    ) -> TokenDescriptor:
        if token_contract is None:
            token = checksum_address(DEFAULT_USDC_ADDRESS)
            if token_decimals is None:
                token_decimals = DEFAULT_USDC_DECIMALS
        else:
            token = checksum_address(token_contract)

        if token_decimals is None:
            token_decimals = await self.resolver.resolve_decimals(token, chain_id)

        return TokenDescriptor(contract_address=token, decimals=token_decimals)

    async def transfer_token(
        self,
        account: ThresholdAccount,
        recipient: str,
        amount: str,
        *,
        chain_id: Optional[int] = None,
        token_contract: Optional[str] = None,
        token_decimals: Optional[int] = None,
        session_credential: Any = None,
    ) -> TransferResult:
        """Transfer an ERC-20 token through the relayer.

        Args:
            account: Sending threshold-signed account
            recipient: Destination address
            amount: Human-readable amount, e.g. "10.25"
            chain_id: Target chain (default chain if omitted)
            token_contract: ERC-20 contract (USDC on Base if omitted)
            token_decimals: Token precision; skips the on-chain lookup when given
            session_credential: Signing-service credential for ``account``,
                passed through to the signer as-is

        Returns:
            TransferResult with the relayer's transaction hash

        Raises:
            MissingCredentialError: No session credential supplied
            InvalidAddressError: Malformed recipient or token address
            InvalidAmountError: Amount not representable at token precision
            UnsupportedChainError: Chain cannot be used for transfers
            MissingConfigurationError: Token precision must be looked up but the
                chain has no configured read endpoint
            RelayerExecutionFailure: Relayer failed to sign or broadcast
        """
        if session_credential is None:
            raise MissingCredentialError(
                "Session credential is required for threshold wallet signing"
            )

        to = checksum_address(recipient)
        sender = checksum_address(account.address)
        value = parse_amount(amount)
        if token_decimals is not None and (
            isinstance(token_decimals, bool)
            or not isinstance(token_decimals, int)
            or not 0 <= token_decimals <= MAX_DECIMALS
        ):
            raise InvalidAmountError(
                amount, f"token decimals must be between 0 and {MAX_DECIMALS}"
            )

        chain_id = self.registry.default_chain_id if chain_id is None else chain_id

        logger.debug(
            "Transferring %s from %s to %s on chain %d (token %s)",
            amount,
            sender,
            to,
            chain_id,
            token_contract or DEFAULT_USDC_ADDRESS,
        )

        # Local lookup; an unsupported chain fails before any network call
        rpc_endpoint = self.registry.resolve_transfer_endpoint(chain_id)

        token = await self._resolve_token(token_contract, token_decimals, chain_id)

        units = to_base_units(value, token.decimals)
        if units == 0:
            raise InvalidAmountError(amount, "amount must be greater than zero")

        request = AuthorizationRequest(
            signer_address=sender,
            signer_public_key=account.public_key,
            session_credential=session_credential,
            chain_id=chain_id,
            rpc_endpoint=rpc_endpoint,
            token_contract=token.contract_address,
            recipient=to,
            amount=units,
        )

        logger.debug(
            "Sending ERC-20 transfer via relayer: %d base units (%d decimals)",
            units,
            token.decimals,
        )

        tx_hash = await self.relayer.execute_transfer(request)

        logger.info(f"Transfer relayed: {tx_hash} (chain {chain_id})")

        return TransferResult(
            transaction_hash=tx_hash,
            chain_id=chain_id,
            token_contract=token.contract_address,
        )
