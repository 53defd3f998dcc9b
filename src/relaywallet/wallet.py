"""Wallet service wiring.

Builds the registry, resolver, balance reader, relayer and orchestrator
from one Settings instance.
"""

import logging
from functools import partial
from typing import Any, Optional

from relaywallet.balances import BalanceReader, BalanceSnapshot
from relaywallet.chains import ChainConfig, ChainRegistry
from relaywallet.config import Settings
from relaywallet.errors import SigningServiceError
from relaywallet.relayer.base import RelayerClient, SessionSigner
from relaywallet.relayer.erc3009 import Erc3009Relayer
from relaywallet.relayer.signer import HttpSessionSigner
from relaywallet.rpc import RpcClient
from relaywallet.tokens import RpcFactory, TokenMetadataResolver
from relaywallet.transfers import ThresholdAccount, TransferOrchestrator, TransferResult

logger = logging.getLogger(__name__)


class WalletService:
    """Facade over balance reads and relayed transfers."""

    def __init__(
        self,
        registry: ChainRegistry,
        reader: BalanceReader,
        orchestrator: Optional[TransferOrchestrator] = None,
    ):
        self.registry = registry
        self.reader = reader
        self.orchestrator = orchestrator

    @property
    def can_transfer(self) -> bool:
        return self.orchestrator is not None

    def supported_chains(self) -> list[ChainConfig]:
        return self.registry.supported_chains()

    async def get_balances(
        self,
        address: str,
        chain_id: Optional[int] = None,
        token_contract: Optional[str] = None,
    ) -> BalanceSnapshot:
        return await self.reader.get_balances(
            address, chain_id=chain_id, token_contract=token_contract
        )

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
        if self.orchestrator is None:
            raise SigningServiceError("Signing service not configured; transfers are disabled")

        return await self.orchestrator.transfer_token(
            account,
            recipient,
            amount,
            chain_id=chain_id,
            token_contract=token_contract,
            token_decimals=token_decimals,
            session_credential=session_credential,
        )


def build_wallet_service(
    settings: Settings,
    signer: Optional[SessionSigner] = None,
    relayer: Optional[RelayerClient] = None,
    rpc_factory: Optional[RpcFactory] = None,
) -> WalletService:
    """Create a WalletService from settings.

    Args:
        settings: Process settings
        signer: Signing service client; built from SIGNING_SERVICE_URL if omitted
        relayer: Relayer override; an Erc3009Relayer is built if omitted
        rpc_factory: RPC client factory override

    Transfers are disabled when neither a relayer nor a signer is available.
    """
    if rpc_factory is None:
        rpc_factory = partial(RpcClient, timeout=settings.rpc_timeout)

    registry = ChainRegistry(settings)
    resolver = TokenMetadataResolver(registry, rpc_factory=rpc_factory)
    reader = BalanceReader(registry, resolver, rpc_factory=rpc_factory)

    if relayer is None:
        if signer is None and settings.signing_service_url:
            signer = HttpSessionSigner(
                settings.signing_service_url,
                auth_token=settings.signing_service_token,
            )
        if signer is not None:
            relayer = Erc3009Relayer(settings, signer, rpc_factory=rpc_factory)

    orchestrator = None
    if relayer is not None:
        orchestrator = TransferOrchestrator(registry, resolver, relayer)
    else:
        logger.warning("No signing service configured - transfers disabled")

    return WalletService(registry, reader, orchestrator)
