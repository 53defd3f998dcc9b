"""Balance and transfer endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from relaywallet.api.schemas import (
    BalanceResponse,
    ChainInfo,
    ChainListResponse,
    ErrorResponse,
    TransferRequest,
    TransferResponse,
)
from relaywallet.transfers import ThresholdAccount
from relaywallet.wallet import WalletService

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    502: {"model": ErrorResponse, "description": "Execution node or relayer failure"},
    503: {"model": ErrorResponse, "description": "Service not configured"},
}


def get_wallet_service(request: Request) -> WalletService:
    return request.app.state.wallet_service


@router.get("/chains", response_model=ChainListResponse)
async def list_chains(service: WalletService = Depends(get_wallet_service)):
    """List supported chains."""
    default_id = service.registry.default_chain_id
    chains = [
        ChainInfo(
            chain_id=c.chain_id,
            name=c.display_name,
            native_symbol=c.native_symbol,
            native_decimals=c.native_decimals,
            explorer_url=c.explorer_url,
            is_default=c.chain_id == default_id,
        )
        for c in service.supported_chains()
    ]
    return ChainListResponse(chains=chains, total=len(chains))


@router.get(
    "/balances/{address}", response_model=BalanceResponse, responses=ERROR_RESPONSES
)
async def get_balances(
    address: str,
    chain_id: Optional[int] = None,
    token_address: Optional[str] = None,
    service: WalletService = Depends(get_wallet_service),
):
    """Get native and token balances for an address."""
    snapshot = await service.get_balances(
        address, chain_id=chain_id, token_contract=token_address
    )
    return BalanceResponse(
        address=address,
        native=snapshot.native,
        token=snapshot.token,
        token_address=snapshot.token_contract,
        chain_id=snapshot.chain_id,
    )


@router.post(
    "/transfers",
    response_model=TransferResponse,
    responses={**ERROR_RESPONSES, 401: {"model": ErrorResponse, "description": "Missing session credential"}},
)
async def transfer_token(
    body: TransferRequest,
    service: WalletService = Depends(get_wallet_service),
):
    """Transfer tokens via the relayer (sender pays no gas)."""
    account = ThresholdAccount(address=body.from_address, public_key=body.public_key)
    result = await service.transfer_token(
        account,
        body.to,
        body.amount,
        chain_id=body.chain_id,
        token_contract=body.token_address,
        token_decimals=body.token_decimals,
        session_credential=body.session_credential,
    )
    return TransferResponse(
        transaction_hash=result.transaction_hash,
        chain_id=result.chain_id,
        token_address=result.token_contract,
    )
