"""Pytest configuration and fixtures."""

import json
from typing import Any, Optional

import httpx
import pytest
from eth_abi import encode
from eth_keys import keys

from relaywallet.chains import ChainRegistry
from relaywallet.config import Settings
from relaywallet.relayer.base import AuthorizationRequest, RelayerClient, SessionSigner
from relaywallet.rpc import RpcClient
from relaywallet.tokens import (
    BALANCE_OF_SELECTOR,
    DECIMALS_SELECTOR,
    DEFAULT_USDC_ADDRESS,
    TokenMetadataResolver,
)

BASE_RPC = "https://base-rpc.test/v2/primary"
WALLET = "0x" + "aa" * 20
RECIPIENT = "0x" + "bb" * 20
TX_HASH = "0x" + "cd" * 32

# Test-only key (never holds funds)
SIGNER_KEY = keys.PrivateKey(bytes.fromhex("4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"))
RELAYER_KEY = "0x" + "11" * 32

ENV_VARS = (
    "ALCHEMY_BASE_RPC",
    "BASE_RPC_URL",
    "ETHEREUM_RPC_URL",
    "SEPOLIA_RPC_URL",
    "ALCHEMY_API_KEY",
    "RELAYER_PRIVATE_KEY",
    "LIT_PRIVATE_KEY",
    "SIGNING_SERVICE_URL",
)


def uint_result(value: int) -> str:
    return "0x" + encode(["uint256"], [value]).hex()


class FakeNode:
    """In-memory execution node behind httpx.MockTransport.

    Records every JSON-RPC request so tests can assert call counts.
    """

    def __init__(self):
        self.requests: list[tuple[str, str, list]] = []
        self.native: dict[str, int] = {}
        self.token_balances: dict[tuple[str, str], int] = {}
        self.decimals: dict[str, int] = {}
        self.failing: set[str] = set()
        self.tx_count = 7
        self.gas_price = 1_000_000_000
        self.gas_estimate: Optional[int] = 80_000
        self.receipt_status = "0x1"
        self.receipt_polls_before_ready = 0
        self.sent_raw: list[str] = []

    def set_token_balance(self, token: str, owner: str, value: int) -> None:
        self.token_balances[(token.lower(), owner.lower())] = value

    def methods(self) -> list[str]:
        return [method for _, method, _ in self.requests]

    def _eth_call(self, params: list) -> str:
        call = params[0]
        to, data = call["to"].lower(), call["data"]
        if data.startswith(DECIMALS_SELECTOR):
            if to not in self.decimals:
                return "0x"
            return uint_result(self.decimals[to])
        if data.startswith(BALANCE_OF_SELECTOR):
            owner = "0x" + data[-40:]
            return uint_result(self.token_balances.get((to, owner.lower()), 0))
        return "0x"

    def _dispatch(self, method: str, params: list) -> Any:
        if method == "eth_getBalance":
            return hex(self.native.get(params[0].lower(), 0))
        if method == "eth_call":
            return self._eth_call(params)
        if method == "eth_getTransactionCount":
            return hex(self.tx_count)
        if method == "eth_gasPrice":
            return hex(self.gas_price)
        if method == "eth_estimateGas":
            return hex(self.gas_estimate)
        if method == "eth_sendRawTransaction":
            self.sent_raw.append(params[0])
            return TX_HASH
        if method == "eth_getTransactionReceipt":
            if self.receipt_polls_before_ready > 0:
                self.receipt_polls_before_ready -= 1
                return None
            return {
                "transactionHash": params[0],
                "status": self.receipt_status,
                "blockNumber": "0x10",
            }
        if method == "eth_chainId":
            return hex(8453)
        raise AssertionError(f"unexpected method {method}")

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method, params = body["method"], body["params"]
        self.requests.append((str(request.url), method, params))

        if method in self.failing:
            raise httpx.ConnectError("connection refused", request=request)
        if method == "eth_estimateGas" and self.gas_estimate is None:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": 3, "message": "execution reverted"}},
            )

        return httpx.Response(
            200, json={"jsonrpc": "2.0", "id": body["id"], "result": self._dispatch(method, params)}
        )

    def rpc_factory(self, rpc_url: str) -> RpcClient:
        return RpcClient(rpc_url, transport=httpx.MockTransport(self.handler))


class KeySigner(SessionSigner):
    """Signs with a local key, standing in for the threshold signing service."""

    def __init__(self, private_key: keys.PrivateKey = SIGNER_KEY):
        self.private_key = private_key
        self.calls: list[tuple[Any, str, bytes]] = []

    @property
    def address(self) -> str:
        return self.private_key.public_key.to_checksum_address()

    @property
    def public_key(self) -> str:
        return "0x04" + self.private_key.public_key.to_bytes().hex()

    async def sign_digest(self, session_credential: Any, public_key: str, digest: bytes) -> str:
        self.calls.append((session_credential, public_key, digest))
        return "0x" + self.private_key.sign_msg_hash(digest).to_bytes().hex()


class RecordingRelayer(RelayerClient):
    """Relayer stub that records requests and returns a fixed hash."""

    def __init__(self, tx_hash: str = TX_HASH, error: Optional[Exception] = None):
        self.tx_hash = tx_hash
        self.error = error
        self.requests: list[AuthorizationRequest] = []

    async def execute_transfer(self, request: AuthorizationRequest) -> str:
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.tx_hash


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host environment variables out of Settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        base_rpc_url=BASE_RPC,
        relayer_private_key=RELAYER_KEY,
        receipt_poll_interval=0.0,
        receipt_timeout_seconds=5.0,
    )


@pytest.fixture
def bare_settings() -> Settings:
    """Settings with no endpoints or keys configured."""
    return Settings(_env_file=None)


@pytest.fixture
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture
def registry(settings) -> ChainRegistry:
    return ChainRegistry(settings)


@pytest.fixture
def resolver(registry, node) -> TokenMetadataResolver:
    return TokenMetadataResolver(registry, rpc_factory=node.rpc_factory)


@pytest.fixture
def usdc() -> str:
    return DEFAULT_USDC_ADDRESS


@pytest.fixture
def key_signer() -> KeySigner:
    return KeySigner()


@pytest.fixture
def recording_relayer() -> RecordingRelayer:
    return RecordingRelayer()
