"""Chain configuration and RPC endpoint resolution.

Supported networks:
- Base (8453) - default chain, primary endpoint from ALCHEMY_BASE_RPC
- Ethereum (1) and Sepolia (11155111) - vetted public endpoints

Unknown chain IDs resolve to Base metadata for display purposes only.
Endpoint lookups for them fail: broadcasting through an unvetted endpoint
risks fund loss, so there is no silent fallback there.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from relaywallet.config import (
    BASE_CHAIN_ID,
    ETHEREUM_CHAIN_ID,
    SEPOLIA_CHAIN_ID,
    Settings,
)
from relaywallet.errors import MissingConfigurationError, UnsupportedChainError

logger = logging.getLogger(__name__)

DEFAULT_CHAIN_ID = BASE_CHAIN_ID


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for an EVM chain."""

    chain_id: int
    display_name: str
    native_symbol: str
    rpc_endpoint: str  # Hard-coded public endpoint
    native_decimals: int = 18
    keyed_endpoint_template: Optional[str] = None  # Contains {api_key}
    explorer_url: Optional[str] = None

    def keyed_endpoint(self, api_key: Optional[str]) -> Optional[str]:
        """Build the provider-keyed endpoint, if this chain has one."""
        if not api_key or not self.keyed_endpoint_template:
            return None
        return self.keyed_endpoint_template.format(api_key=api_key)


# ======================
# Chain Configurations
# ======================

BASE = ChainConfig(
    chain_id=BASE_CHAIN_ID,
    display_name="Base",
    native_symbol="ETH",
    rpc_endpoint="https://mainnet.base.org",
    keyed_endpoint_template="https://base-mainnet.g.alchemy.com/v2/{api_key}",
    explorer_url="https://basescan.org",
)

ETHEREUM = ChainConfig(
    chain_id=ETHEREUM_CHAIN_ID,
    display_name="Ethereum",
    native_symbol="ETH",
    rpc_endpoint="https://eth.llamarpc.com",
    keyed_endpoint_template="https://eth-mainnet.g.alchemy.com/v2/{api_key}",
    explorer_url="https://etherscan.io",
)

SEPOLIA = ChainConfig(
    chain_id=SEPOLIA_CHAIN_ID,
    display_name="Sepolia",
    native_symbol="ETH",
    rpc_endpoint="https://rpc.sepolia.org",
    keyed_endpoint_template="https://eth-sepolia.g.alchemy.com/v2/{api_key}",
    explorer_url="https://sepolia.etherscan.io",
)

DEFAULT_CHAINS: tuple[ChainConfig, ...] = (BASE, ETHEREUM, SEPOLIA)


class ChainRegistry:
    """Maps chain IDs to chain configuration and RPC endpoints.

    The table is populated at construction and is read-only afterwards,
    apart from explicit ``register`` calls during startup.

    Args:
        settings: Process settings (primary endpoints, API key)
        chains: Chains to register; defaults to Base, Ethereum and Sepolia
        default_chain_id: Chain used when callers omit a chain ID
    """

    def __init__(
        self,
        settings: Settings,
        chains: tuple[ChainConfig, ...] = DEFAULT_CHAINS,
        default_chain_id: int = DEFAULT_CHAIN_ID,
    ):
        self.settings = settings
        self.default_chain_id = default_chain_id
        self._chains: dict[int, ChainConfig] = {}
        self._vetted: set[int] = set()

        for chain in chains:
            self.register(chain)

        if default_chain_id not in self._chains:
            raise ValueError(f"Default chain {default_chain_id} is not registered")

    def register(self, config: ChainConfig, vetted: bool = True) -> None:
        """Add or replace a chain.

        Args:
            config: Chain configuration
            vetted: Whether the hard-coded endpoint may be used for value-moving
                calls. Unvetted chains only provide metadata.
        """
        self._chains[config.chain_id] = config
        if vetted:
            self._vetted.add(config.chain_id)
        else:
            self._vetted.discard(config.chain_id)
        logger.debug("Registered chain %s (%d)", config.display_name, config.chain_id)

    def supported_chains(self) -> list[ChainConfig]:
        """List registered chains, default chain first."""
        return sorted(
            self._chains.values(),
            key=lambda c: (c.chain_id != self.default_chain_id, c.chain_id),
        )

    def is_supported(self, chain_id: int) -> bool:
        return chain_id in self._chains

    def resolve_chain(self, chain_id: Optional[int] = None) -> ChainConfig:
        """Get chain metadata.

        Unknown chain IDs fall back to the default chain with a warning.
        """
        if chain_id is None or chain_id == self.default_chain_id:
            return self._chains[self.default_chain_id]

        config = self._chains.get(chain_id)
        if config is None:
            default = self._chains[self.default_chain_id]
            logger.warning(
                f"Unknown chain ID {chain_id}, using {default.display_name} as fallback"
            )
            return default
        return config

    def resolve_rpc_endpoint(self, chain_id: Optional[int] = None) -> str:
        """Get the RPC endpoint for read calls.

        Raises:
            MissingConfigurationError: Default chain primary endpoint not set
            UnsupportedChainError: Chain has no vetted endpoint
        """
        if chain_id is None or chain_id == self.default_chain_id:
            rpc_url = self.settings.get_rpc_url(self.default_chain_id)
            if not rpc_url:
                default = self._chains[self.default_chain_id]
                raise MissingConfigurationError(
                    "ALCHEMY_BASE_RPC",
                    f"ALCHEMY_BASE_RPC environment variable is required for "
                    f"{default.display_name} network",
                )
            return rpc_url

        if chain_id not in self._vetted:
            raise UnsupportedChainError(
                chain_id,
                f"RPC URL not configured for chain ID {chain_id}. "
                f"Supported chains: {', '.join(str(c) for c in sorted(self._vetted))}",
            )

        return self.settings.get_rpc_url(chain_id) or self._chains[chain_id].rpc_endpoint

    def resolve_transfer_endpoint(self, chain_id: Optional[int] = None) -> str:
        """Get the RPC endpoint handed to the relayer for a transfer.

        Precedence: configured primary endpoint, then the keyed endpoint built
        from ALCHEMY_API_KEY, then the chain's public endpoint.

        Raises:
            UnsupportedChainError: Chain is not registered as vetted
        """
        chain_id = self.default_chain_id if chain_id is None else chain_id
        if chain_id not in self._vetted:
            raise UnsupportedChainError(
                chain_id, f"Transfers are not supported on chain ID {chain_id}"
            )

        config = self._chains[chain_id]
        primary = self.settings.get_rpc_url(chain_id)
        if primary:
            return primary

        keyed = config.keyed_endpoint(self.settings.alchemy_api_key)
        if keyed:
            logger.debug("Using keyed fallback endpoint for %s", config.display_name)
            return keyed

        logger.debug("Using public fallback endpoint for %s", config.display_name)
        return config.rpc_endpoint
