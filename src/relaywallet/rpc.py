"""Minimal async JSON-RPC client for EVM execution nodes.

Thin wrapper over httpx: one POST per call, no retries, no failover.
Callers that need resilience wrap calls with their own policy.
"""

import asyncio
import itertools
import logging
import time
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class RpcError(Exception):
    """Raised when an RPC request fails at the transport or JSON-RPC level."""

    def __init__(self, method: str, message: str, code: Optional[int] = None):
        self.method = method
        self.code = code
        super().__init__(f"{method} failed: {message}")


class RpcClient:
    """JSON-RPC client bound to a single endpoint URL.

    Args:
        rpc_url: HTTP(S) endpoint of the execution node
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._transport = transport
        self._ids = itertools.count(1)

    def __repr__(self) -> str:
        # Keyed endpoints carry the API key in the path
        return f"RpcClient(host={httpx.URL(self.rpc_url).host})"

    async def call(self, method: str, params: Optional[list] = None) -> Any:
        """Send a JSON-RPC request and return its ``result``.

        Raises:
            RpcError: On HTTP errors, malformed responses or JSON-RPC errors
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.rpc_url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise RpcError(method, str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise RpcError(method, "response is not valid JSON") from e

        if not isinstance(data, dict):
            raise RpcError(method, "unexpected response shape")

        if data.get("error"):
            error = data["error"]
            if isinstance(error, dict):
                raise RpcError(method, str(error.get("message", error)), error.get("code"))
            raise RpcError(method, str(error))

        if "result" not in data:
            raise RpcError(method, "response has no result")

        return data["result"]

    async def _call_quantity(self, method: str, params: Optional[list] = None) -> int:
        result = await self.call(method, params)
        try:
            return int(result, 16)
        except (TypeError, ValueError) as e:
            raise RpcError(method, f"invalid quantity {result!r}") from e

    async def chain_id(self) -> int:
        return await self._call_quantity("eth_chainId")

    async def get_balance(self, address: str, block: str = "latest") -> int:
        """Get native balance in wei."""
        return await self._call_quantity("eth_getBalance", [address, block])

    async def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        """Execute a read-only contract call and return the raw hex result."""
        result = await self.call("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str):
            raise RpcError("eth_call", f"invalid return data {result!r}")
        return result

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return await self._call_quantity("eth_getTransactionCount", [address, block])

    async def gas_price(self) -> int:
        return await self._call_quantity("eth_gasPrice")

    async def estimate_gas(self, tx: dict) -> int:
        return await self._call_quantity("eth_estimateGas", [tx])

    async def send_raw_transaction(self, raw_tx: str) -> str:
        """Broadcast a signed transaction and return its hash."""
        return await self.call("eth_sendRawTransaction", [raw_tx])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        return await self.call("eth_getTransactionReceipt", [tx_hash])

    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 120.0,
        poll_interval: float = 2.0,
    ) -> dict:
        """Poll until a receipt is available.

        Raises:
            asyncio.TimeoutError: If no receipt arrives within ``timeout``
        """
        deadline = time.monotonic() + timeout
        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt:
                return receipt
            if time.monotonic() >= deadline:
                raise asyncio.TimeoutError(f"No receipt for {tx_hash} after {timeout}s")
            logger.debug("Waiting for receipt of %s", tx_hash)
            await asyncio.sleep(poll_interval)
