"""HTTP client for the threshold signing service.

The service holds the key shares; this client only forwards a digest and
the caller's session credential and returns the combined signature.

Request:  POST {signing_service_url}
          {"publicKey": "0x04...", "toSign": "0x<32 bytes>", "sessionCredential": ...}
Response: {"signature": "0x<65 bytes r||s||v>"}
"""

import logging
from typing import Any, Optional

import httpx

from relaywallet.errors import SigningServiceError
from relaywallet.relayer.base import SessionSigner

logger = logging.getLogger(__name__)


class HttpSessionSigner(SessionSigner):
    """Signs digests through a remote threshold signing service."""

    REQUEST_TIMEOUT = 30.0

    def __init__(
        self,
        service_url: str,
        auth_token: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.service_url = service_url
        self.timeout = timeout
        self._headers = {"Content-Type": "application/json"}
        if auth_token:
            self._headers["Authorization"] = f"Bearer {auth_token}"
        self._transport = transport

    def __repr__(self) -> str:
        return f"HttpSessionSigner(url={self.service_url})"

    async def sign_digest(
        self, session_credential: Any, public_key: str, digest: bytes
    ) -> str:
        if len(digest) != 32:
            raise SigningServiceError(f"Digest must be 32 bytes, got {len(digest)}")

        body = {
            "publicKey": public_key,
            "toSign": "0x" + digest.hex(),
            "sessionCredential": session_credential,
        }

        logger.debug("Requesting signature for public key %s...", public_key[:12])

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, headers=self._headers, transport=self._transport
            ) as client:
                response = await client.post(self.service_url, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise SigningServiceError(f"Signing service request failed: {e}") from e
        except ValueError as e:
            raise SigningServiceError("Signing service returned invalid JSON") from e

        signature = data.get("signature") if isinstance(data, dict) else None
        if not isinstance(signature, str) or not signature:
            raise SigningServiceError("Signing service response has no signature")

        return signature if signature.startswith("0x") else f"0x{signature}"
