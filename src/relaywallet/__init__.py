"""Balances and gas-less ERC-20 transfers for threshold-signed wallets."""

__version__ = "0.1.0"
