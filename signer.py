"""
Signing identities for eth-encrypt.

Provides:
- LocalKeySigner: signs with a raw Ethereum private key
- RpcSigner: asks a wallet behind a JSON-RPC endpoint to personal_sign

Both produce standard 65-byte recoverable signatures, so encrypting with
one and decrypting with the other works as long as the account matches.
"""

import logging
from typing import Any, Optional

import httpx
from eth_account import Account
from eth_account.messages import encode_defunct

from ethcrypt.errors import InvalidInput, SignerDeclined, SignerError

logger = logging.getLogger(__name__)


class LocalKeySigner:
    """Signs messages with a private key held in memory."""

    def __init__(self, private_key: str):
        """
        Initialize the signer.

        Args:
            private_key: Hex secp256k1 private key, 0x prefix optional
        """
        if not private_key:
            raise InvalidInput(f'Private key missing, non-empty string expected, got "{private_key}"')

        if private_key.startswith(("0x", "0X")):
            private_key = private_key[2:]

        try:
            self._account = Account.from_key(bytes.fromhex(private_key))
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Invalid private key: {e}") from e

        self.address: str = self._account.address

    async def request_signature(self, message: str) -> str:
        """Sign a message the way personal_sign does (EIP-191)."""
        try:
            signed = self._account.sign_message(encode_defunct(text=message))
        except (TypeError, ValueError) as e:
            raise SignerError(f"Local signing failed: {e}") from e
        return "0x" + bytes(signed.signature).hex()


class RpcSigner:
    """Requests signatures from a wallet over Ethereum JSON-RPC."""

    USER_REJECTED_CODE = 4001
    DECLINE_MARKERS = ("denied", "rejected", "declined")

    def __init__(
        self,
        rpc_url: str,
        address: Optional[str] = None,
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the RPC signer.

        Args:
            rpc_url: JSON-RPC endpoint of a node or wallet holding the account
            address: Account to sign with; the first eth_accounts entry if omitted
            timeout: Seconds to wait for each call (signing waits for a human)
            client: Optional pre-configured HTTP client
        """
        self.rpc_url = rpc_url
        self.address: str = address or ""
        self.timeout = timeout
        self._client = client
        self._request_id = 0

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RpcSigner":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _call(self, method: str, params: list[Any]) -> Any:
        """
        Make a JSON-RPC call and return its result.

        Raises:
            SignerDeclined: if the wallet reports the user refused
            SignerError: for transport, HTTP and RPC failures
        """
        client = await self._get_client()
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        try:
            response = await client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise SignerError(f"{method} timed out") from e
        except httpx.InvalidURL as e:
            raise SignerError(f"Invalid RPC URL: {e}") from e
        except httpx.HTTPStatusError as e:
            raise SignerError(f"{method} failed: HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise SignerError(f"Network error: {e}") from e
        except ValueError as e:
            raise SignerError(f"{method} returned invalid JSON") from e

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = (error.get("message") or "") if isinstance(error, dict) else str(error)
            logger.warning(f"RPC {method} error {code}: {message}")
            if code == self.USER_REJECTED_CODE or any(m in message.lower() for m in self.DECLINE_MARKERS):
                raise SignerDeclined(message or "Signature request declined")
            raise SignerError(f"{method} failed: {message}")

        if not isinstance(data, dict) or "result" not in data:
            raise SignerError(f"{method} returned no result")
        return data["result"]

    async def resolve_address(self) -> str:
        """Return the signing address, asking the node for it if unset."""
        if not self.address:
            accounts = await self._call("eth_accounts", [])
            if not accounts:
                raise SignerError("RPC endpoint exposes no accounts")
            self.address = accounts[0]
            logger.info(f"Using RPC account {self.address}")
        return self.address

    async def request_signature(self, message: str) -> str:
        """Ask the wallet to personal_sign a message."""
        address = await self.resolve_address()
        message_hex = "0x" + message.encode("utf-8").hex()

        signature = await self._call("personal_sign", [message_hex, address])
        if not isinstance(signature, str) or not signature:
            raise SignerError("personal_sign returned no signature")
        return signature
