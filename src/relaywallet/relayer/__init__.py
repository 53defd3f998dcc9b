"""Relaying of gas-less token transfers."""

from relaywallet.relayer.base import AuthorizationRequest, RelayerClient, SessionSigner
from relaywallet.relayer.erc3009 import Erc3009Relayer
from relaywallet.relayer.signer import HttpSessionSigner

__all__ = [
    "AuthorizationRequest",
    "Erc3009Relayer",
    "HttpSessionSigner",
    "RelayerClient",
    "SessionSigner",
]
