"""
The signer capability the core depends on.

How a signature is produced (local key, wallet RPC, hardware device) is up
to the implementation; the core only needs request_signature().
"""

import logging
from typing import Protocol, runtime_checkable

from .errors import SignerError

logger = logging.getLogger(__name__)

# Text the signer is asked to sign, followed by the note hex
SIGNATURE_MESSAGE_PREFIX = "ETH Encrypt - sign to encrypt or decrypt: "


@runtime_checkable
class Signer(Protocol):
    """Asynchronous signing identity."""

    address: str

    async def request_signature(self, message: str) -> str:
        """
        Sign a text message.

        Args:
            message: The message to sign

        Returns:
            Hex signature, optionally 0x-prefixed

        Raises:
            SignerDeclined: if the identity holder refuses
            SignerError: on any other failure
        """
        ...


def build_signature_message(note: str) -> str:
    """Message presented to the signer for a note."""
    return f"{SIGNATURE_MESSAGE_PREFIX}{note}"


async def sign_note(note: str, signer: Signer) -> str:
    """Ask the signer to sign a note, returning the signed note."""
    message = build_signature_message(note)
    logger.info(f"Requesting signature from {getattr(signer, 'address', 'unknown signer')}")

    signature = await signer.request_signature(message)
    if not signature:
        raise SignerError("Signer returned an empty signature")
    return signature
