"""ERC-3009 transferWithAuthorization relayer.

The token holder signs an EIP-712 TransferWithAuthorization message through
the threshold signing service; the relayer wallet submits the call and pays
gas. The transfer executes from the holder's address.

Reference: https://eips.ethereum.org/EIPS/eip-3009
"""

import logging
import secrets
import time
from typing import Any, Callable, Optional

from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_keys import keys
from eth_utils import function_signature_to_4byte_selector, keccak, to_hex

from relaywallet.config import Settings
from relaywallet.errors import MissingConfigurationError, RelayerExecutionFailure
from relaywallet.relayer.base import AuthorizationRequest, RelayerClient, SessionSigner
from relaywallet.rpc import RpcClient, RpcError

logger = logging.getLogger(__name__)

# USDC EIP-712 domain
TOKEN_DOMAIN_NAME = "USD Coin"
TOKEN_DOMAIN_VERSION = "2"

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

TRANSFER_WITH_AUTHORIZATION_TYPE = [
    {"name": "from", "type": "address"},
    {"name": "to", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "validAfter", "type": "uint256"},
    {"name": "validBefore", "type": "uint256"},
    {"name": "nonce", "type": "bytes32"},
]

TRANSFER_WITH_AUTHORIZATION_SELECTOR = function_signature_to_4byte_selector(
    "transferWithAuthorization(address,address,uint256,uint256,uint256,bytes32,uint8,bytes32,bytes32)"
)

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2

DEFAULT_GAS_LIMIT = 100_000
GAS_BUFFER_PERCENT = 120


def build_typed_data(
    request: AuthorizationRequest,
    valid_after: int,
    valid_before: int,
    nonce: bytes,
) -> dict[str, Any]:
    """Build EIP-712 typed data for TransferWithAuthorization."""
    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            "TransferWithAuthorization": TRANSFER_WITH_AUTHORIZATION_TYPE,
        },
        "primaryType": "TransferWithAuthorization",
        "domain": {
            "name": TOKEN_DOMAIN_NAME,
            "version": TOKEN_DOMAIN_VERSION,
            "chainId": request.chain_id,
            "verifyingContract": request.token_contract,
        },
        "message": {
            "from": request.signer_address,
            "to": request.recipient,
            "value": request.amount,
            "validAfter": valid_after,
            "validBefore": valid_before,
            "nonce": nonce,
        },
    }


def typed_data_digest(typed_data: dict[str, Any]) -> bytes:
    """EIP-712 digest: keccak256(0x19 0x01 || domainSeparator || hashStruct)."""
    signable = encode_typed_data(full_message=typed_data)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def split_signature(signature: str) -> tuple[int, int, int]:
    """Split a 65-byte r||s||v signature and normalize it.

    Applies EIP-2 low-s normalization (s' = n - s, v flipped) since token
    contracts reject high-s signatures.

    Returns:
        (v, r, s) with v in {27, 28}

    Raises:
        ValueError: If the signature is not 65 bytes
    """
    sig = bytes.fromhex(signature[2:] if signature.startswith("0x") else signature)
    if len(sig) != 65:
        raise ValueError(f"expected 65-byte signature, got {len(sig)} bytes")

    r = int.from_bytes(sig[0:32], "big")
    s = int.from_bytes(sig[32:64], "big")
    v = sig[64]
    if v < 27:
        v += 27

    if s > SECP256K1_HALF_N:
        s = SECP256K1_N - s
        v = 28 if v == 27 else 27

    return v, r, s


def recover_signer(digest: bytes, v: int, r: int, s: int) -> str:
    """Recover the checksummed address that signed ``digest``."""
    signature = keys.Signature(vrs=(v - 27, r, s))
    return signature.recover_public_key_from_msg_hash(digest).to_checksum_address()


def encode_transfer_with_authorization(
    from_address: str,
    to_address: str,
    value: int,
    valid_after: int,
    valid_before: int,
    nonce: bytes,
    v: int,
    r: int,
    s: int,
) -> str:
    """Calldata for transferWithAuthorization(..., v, r, s)."""
    args = encode(
        ["address", "address", "uint256", "uint256", "uint256", "bytes32", "uint8", "bytes32", "bytes32"],
        [
            from_address,
            to_address,
            value,
            valid_after,
            valid_before,
            nonce,
            v,
            r.to_bytes(32, "big"),
            s.to_bytes(32, "big"),
        ],
    )
    return to_hex(TRANSFER_WITH_AUTHORIZATION_SELECTOR + args)


class Erc3009Relayer(RelayerClient):
    """Relayer that submits ERC-3009 authorizations from a gas-paying wallet.

    Args:
        settings: Provides the relayer key, authorization lifetime and
            receipt polling parameters
        signer: Threshold signing service client
        rpc_factory: Builds an RPC client for the request's endpoint
        clock: Returns the current unix time
        nonce_factory: Returns 32 random bytes for the authorization nonce
    """

    def __init__(
        self,
        settings: Settings,
        signer: SessionSigner,
        rpc_factory: Callable[[str], RpcClient] = RpcClient,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[int], bytes] = secrets.token_bytes,
    ):
        self.settings = settings
        self.signer = signer
        self.rpc_factory = rpc_factory
        self.clock = clock
        self.nonce_factory = nonce_factory

    def _relayer_account(self):
        key = self.settings.relayer_private_key
        if not key:
            raise MissingConfigurationError(
                "RELAYER_PRIVATE_KEY",
                "RELAYER_PRIVATE_KEY (or LIT_PRIVATE_KEY) environment variable is required for relayer",
            )
        return Account.from_key(key if key.startswith("0x") else f"0x{key}")

    async def execute_transfer(self, request: AuthorizationRequest) -> str:
        """Sign the authorization and relay transferWithAuthorization."""
        relayer = self._relayer_account()

        try:
            return await self._relay(request, relayer)
        except RelayerExecutionFailure:
            raise
        except Exception as e:
            logger.error(f"Relayed transfer from {request.signer_address} failed: {e}")
            raise RelayerExecutionFailure(f"Relayer failed to execute transfer: {e}") from e

    async def _sign_authorization(
        self, request: AuthorizationRequest
    ) -> tuple[int, int, bytes, int, int, int]:
        """Have the signing service sign the authorization.

        Returns:
            (valid_after, valid_before, nonce, v, r, s)
        """
        valid_after = 0
        valid_before = int(self.clock()) + self.settings.authorization_validity_seconds
        nonce = self.nonce_factory(32)

        typed_data = build_typed_data(request, valid_after, valid_before, nonce)
        digest = typed_data_digest(typed_data)

        logger.debug(
            "Creating ERC-3009 authorization from %s to %s for %d units (validBefore=%d)",
            request.signer_address,
            request.recipient,
            request.amount,
            valid_before,
        )

        signature = await self.signer.sign_digest(
            request.session_credential, request.signer_public_key, digest
        )
        v, r, s = split_signature(signature)

        recovered = recover_signer(digest, v, r, s)
        if recovered.lower() != request.signer_address.lower():
            raise RelayerExecutionFailure(
                f"Signature does not recover to signer: expected "
                f"{request.signer_address}, got {recovered}"
            )

        return valid_after, valid_before, nonce, v, r, s

    async def _relay(self, request: AuthorizationRequest, relayer) -> str:
        valid_after, valid_before, nonce, v, r, s = await self._sign_authorization(request)

        calldata = encode_transfer_with_authorization(
            request.signer_address,
            request.recipient,
            request.amount,
            valid_after,
            valid_before,
            nonce,
            v,
            r,
            s,
        )

        rpc = self.rpc_factory(request.rpc_endpoint)
        tx_nonce = await rpc.get_transaction_count(relayer.address)
        gas_price = await rpc.gas_price()

        try:
            estimated = await rpc.estimate_gas(
                {"from": relayer.address, "to": request.token_contract, "data": calldata}
            )
            gas_limit = estimated * GAS_BUFFER_PERCENT // 100
        except RpcError as e:
            logger.warning(f"Gas estimation failed, using default: {e}")
            gas_limit = DEFAULT_GAS_LIMIT

        tx = {
            "to": request.token_contract,
            "value": 0,
            "data": calldata,
            "gas": gas_limit,
            "gasPrice": gas_price,
            "nonce": tx_nonce,
            "chainId": request.chain_id,
        }
        signed = relayer.sign_transaction(tx)

        logger.debug(
            "Calling transferWithAuthorization via relayer %s (nonce=%d, gas=%d)",
            relayer.address,
            tx_nonce,
            gas_limit,
        )
        tx_hash = await rpc.send_raw_transaction(to_hex(signed.raw_transaction))

        receipt = await rpc.wait_for_receipt(
            tx_hash,
            timeout=self.settings.receipt_timeout_seconds,
            poll_interval=self.settings.receipt_poll_interval,
        )
        if _receipt_status(receipt) != 1:
            raise RelayerExecutionFailure(f"Transaction reverted: {tx_hash}", tx_hash=tx_hash)

        logger.debug(
            "Transaction confirmed: %s (block %s)", tx_hash, receipt.get("blockNumber")
        )
        return receipt.get("transactionHash") or tx_hash


def _receipt_status(receipt: dict) -> Optional[int]:
    status = receipt.get("status")
    if isinstance(status, str):
        return int(status, 16)
    return status
