"""FastAPI application factory."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from relaywallet import __version__
from relaywallet.config import Settings, get_settings
from relaywallet.errors import (
    InvalidAddressError,
    InvalidAmountError,
    MissingConfigurationError,
    MissingCredentialError,
    RelayerExecutionFailure,
    SigningServiceError,
    UnsupportedChainError,
    WalletError,
)
from relaywallet.rpc import RpcError
from relaywallet.wallet import WalletService, build_wallet_service

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidAddressError: 400,
    InvalidAmountError: 400,
    UnsupportedChainError: 400,
    MissingCredentialError: 401,
    RelayerExecutionFailure: 502,
    MissingConfigurationError: 503,
    SigningServiceError: 503,
}


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.__class__.__name__, "detail": str(exc)},
    )


async def wallet_error_handler(request: Request, exc: WalletError) -> JSONResponse:
    status_code = next(
        (code for error, code in ERROR_STATUS.items() if isinstance(exc, error)),
        500,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return _error_response(status_code, exc)


async def rpc_error_handler(request: Request, exc: RpcError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} RPC failure: {exc}")
    return _error_response(502, exc)


def create_app(
    settings: Optional[Settings] = None,
    wallet_service: Optional[WalletService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Relay Wallet API",
        description="Balances and gas-less token transfers for threshold-signed wallets",
        version=__version__,
        debug=settings.debug,
    )

    app.state.settings = settings
    app.state.wallet_service = wallet_service or build_wallet_service(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(WalletError, wallet_error_handler)
    app.add_exception_handler(RpcError, rpc_error_handler)

    # Register routes
    from relaywallet.api.routes import health, wallet

    app.include_router(health.router, tags=["Health"])
    app.include_router(wallet.router, prefix="/api/v1", tags=["Wallet"])

    return app
