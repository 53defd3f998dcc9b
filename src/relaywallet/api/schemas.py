"""Request/response contracts for the wallet API."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ChainInfo(BaseModel):
    """Public chain metadata."""

    chain_id: int = Field(..., description="EVM chain ID")
    name: str = Field(..., description="Display name")
    native_symbol: str = Field(..., description="Native currency symbol")
    native_decimals: int = Field(..., description="Native currency decimals")
    explorer_url: Optional[str] = Field(None, description="Block explorer URL")
    is_default: bool = Field(False, description="Used when no chain is given")


class ChainListResponse(BaseModel):
    chains: list[ChainInfo]
    total: int


class BalanceResponse(BaseModel):
    """Native and token balances of an address."""

    address: str = Field(..., description="Wallet address queried")
    native: str = Field(..., description="Native balance (human-readable)")
    token: str = Field(..., description="Token balance (human-readable)")
    token_address: str = Field(..., description="Token contract queried")
    chain_id: int = Field(..., description="EVM chain ID")


class TransferRequest(BaseModel):
    """Request to transfer tokens from a threshold-signed account."""

    from_address: str = Field(..., description="Sending account address")
    public_key: str = Field(..., description="Sending account public key")
    to: str = Field(..., description="Recipient address")
    amount: str = Field(..., description="Amount as a decimal string, e.g. '10.25'")
    chain_id: Optional[int] = Field(None, description="Chain ID (default chain if omitted)")
    token_address: Optional[str] = Field(None, description="Token contract (USDC if omitted)")
    token_decimals: Optional[int] = Field(
        None, ge=0, le=255, description="Token decimals (looked up if omitted)"
    )
    session_credential: Optional[Any] = Field(
        None, description="Session credential issued by the signing service"
    )


class TransferResponse(BaseModel):
    """Result of a relayed transfer."""

    transaction_hash: str = Field(..., description="On-chain transaction hash")
    chain_id: int
    token_address: str


class ErrorResponse(BaseModel):
    error: str
    detail: str
