"""Balance reads for native currency and ERC-20 tokens.

Only queries public chain state. Both reads go to the strictly resolved
endpoint of the chain, so a misconfigured default chain fails fast instead
of reading from an unexpected node.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from relaywallet.amounts import format_units
from relaywallet.chains import ChainRegistry
from relaywallet.tokens import (
    DEFAULT_USDC_ADDRESS,
    RpcFactory,
    TokenMetadataResolver,
    checksum_address,
    decode_uint,
    encode_balance_of,
)
from relaywallet.rpc import RpcClient, RpcError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceSnapshot:
    """Native and token balances of one address on one chain."""

    native: str  # Human-readable native balance
    token: str  # Human-readable token balance
    token_contract: str
    chain_id: int


class BalanceReader:
    """Reads native and token balances for an address."""

    def __init__(
        self,
        registry: ChainRegistry,
        resolver: TokenMetadataResolver,
        rpc_factory: RpcFactory = RpcClient,
    ):
        self.registry = registry
        self.resolver = resolver
        self.rpc_factory = rpc_factory

    async def get_balances(
        self,
        address: str,
        chain_id: Optional[int] = None,
        token_contract: Optional[str] = None,
    ) -> BalanceSnapshot:
        """Get native and ERC-20 balances.

        Args:
            address: Wallet address to query
            chain_id: Chain to query (default chain if omitted)
            token_contract: ERC-20 contract (USDC on Base if omitted)

        Raises:
            InvalidAddressError: Malformed wallet or token address
            MissingConfigurationError / UnsupportedChainError: No usable endpoint
            RpcError: Either balance read failed
        """
        wallet = checksum_address(address)
        token = checksum_address(token_contract or DEFAULT_USDC_ADDRESS)
        chain_id = self.registry.default_chain_id if chain_id is None else chain_id

        logger.debug("Getting balances for %s on chain %d (token %s)", wallet, chain_id, token)

        chain = self.registry.resolve_chain(chain_id)
        rpc = self.rpc_factory(self.registry.resolve_rpc_endpoint(chain_id))

        native_raw, token_result = await asyncio.gather(
            rpc.get_balance(wallet),
            rpc.eth_call(token, encode_balance_of(wallet)),
        )
        try:
            token_raw = decode_uint(token_result)
        except ValueError as e:
            raise RpcError("eth_call", f"balanceOf returned {token_result!r}") from e

        token_decimals = await self.resolver.resolve_decimals(token, chain_id)

        snapshot = BalanceSnapshot(
            native=format_units(native_raw, chain.native_decimals),
            token=format_units(token_raw, token_decimals),
            token_contract=token,
            chain_id=chain_id,
        )

        logger.debug(
            f"Balances retrieved for {wallet} on chain {chain_id}: "
            f"native={snapshot.native} token={snapshot.token}"
        )
        return snapshot
