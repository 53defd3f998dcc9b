"""ERC-20 token metadata.

Token precision is looked up on-chain for every call; nothing is cached
because the same symbol can have different decimals on different chains.
A failed lookup is not fatal: it is logged and 18 decimals are assumed.
A chain without a usable endpoint is a configuration error and is raised.
Callers who know the precision should pass it explicitly.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector
from web3 import Web3

from relaywallet.amounts import MAX_DECIMALS
from relaywallet.chains import ChainRegistry
from relaywallet.errors import InvalidAddressError, MetadataResolutionFailure
from relaywallet.rpc import RpcClient

logger = logging.getLogger(__name__)

# Default USDC contract address on Base
DEFAULT_USDC_ADDRESS = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
DEFAULT_USDC_DECIMALS = 6

FALLBACK_DECIMALS = 18

DECIMALS_SELECTOR = "0x" + function_signature_to_4byte_selector("decimals()").hex()
BALANCE_OF_SELECTOR = "0x" + function_signature_to_4byte_selector("balanceOf(address)").hex()

RpcFactory = Callable[[str], RpcClient]


@dataclass(frozen=True)
class TokenDescriptor:
    """A token contract and its precision."""

    contract_address: str
    decimals: int


@dataclass(frozen=True)
class DecimalsResolution:
    """Outcome of a decimals lookup.

    ``fallback`` is True when the lookup failed and FALLBACK_DECIMALS was
    substituted; ``error`` then holds the failure.
    """

    token_contract: str
    decimals: int
    fallback: bool = False
    error: Optional[MetadataResolutionFailure] = None


def checksum_address(address: str) -> str:
    """Validate and checksum an EVM address.

    Raises:
        InvalidAddressError: If the address is not 20-byte hex
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidAddressError(address)
    return Web3.to_checksum_address(address)


def encode_balance_of(owner: str) -> str:
    """Calldata for ``balanceOf(owner)``."""
    return BALANCE_OF_SELECTOR + encode(["address"], [owner]).hex()


def decode_uint(data: str) -> int:
    """Decode a single uint256 return value.

    Raises:
        ValueError: If the return data is empty or malformed
    """
    raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    if not raw:
        raise ValueError("empty return data (is this a contract?)")
    try:
        (value,) = decode(["uint256"], raw)
    except DecodingError as e:
        raise ValueError(f"malformed return data: {e}") from e
    return value


class TokenMetadataResolver:
    """Looks up ERC-20 decimals against the chain's execution node."""

    def __init__(self, registry: ChainRegistry, rpc_factory: RpcFactory = RpcClient):
        self.registry = registry
        self.rpc_factory = rpc_factory

    async def fetch_decimals(
        self, token_contract: str, chain_id: Optional[int] = None
    ) -> DecimalsResolution:
        """Fetch token decimals, falling back to 18 if the lookup fails.

        Raises:
            MissingConfigurationError / UnsupportedChainError: No usable endpoint
        """
        resolved_chain = self.registry.default_chain_id if chain_id is None else chain_id
        rpc = self.rpc_factory(self.registry.resolve_rpc_endpoint(chain_id))

        try:
            result = await rpc.eth_call(token_contract, DECIMALS_SELECTOR)
            decimals = decode_uint(result)
            if decimals > MAX_DECIMALS:
                raise ValueError(f"decimals() returned out-of-range value {decimals}")
        except Exception as e:
            failure = MetadataResolutionFailure(token_contract, resolved_chain, e)
            logger.warning(
                f"Failed to get token decimals for {token_contract}, "
                f"defaulting to {FALLBACK_DECIMALS}: {e}"
            )
            return DecimalsResolution(
                token_contract=token_contract,
                decimals=FALLBACK_DECIMALS,
                fallback=True,
                error=failure,
            )

        return DecimalsResolution(token_contract=token_contract, decimals=decimals)

    async def resolve_decimals(
        self, token_contract: str, chain_id: Optional[int] = None
    ) -> int:
        """Get token decimals; lookup failures fall back to 18."""
        resolution = await self.fetch_decimals(token_contract, chain_id)
        return resolution.decimals
