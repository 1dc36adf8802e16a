"""
Key derivation from signer output.

The signature over the note is the password: its first 32 bytes become the
AES-256 key. Anything after that (the rest of s, the recovery byte) is
ignored.
"""

import binascii

from .cipher import DEFAULT_SUITE, CipherSuite
from .errors import MalformedKeyMaterial


class SignatureKeyDeriver:
    """Derives symmetric keys from hex signatures."""

    HEX_PREFIXES = ("0x", "0X")

    @classmethod
    def derive_key(cls, signature: str, suite: CipherSuite = DEFAULT_SUITE) -> bytes:
        """
        Turn a signature into a fixed-size key.

        Args:
            signature: Hex signature, optionally 0x-prefixed
            suite: Cipher parameters providing the key size

        Returns:
            Exactly suite.key_size bytes

        Raises:
            MalformedKeyMaterial: if fewer than key_size * 2 hex characters
                follow the prefix, or they are not valid hex
        """
        if not isinstance(signature, str):
            raise MalformedKeyMaterial(f"Signature must be a hex string, got {type(signature).__name__}")

        sanitized = signature
        if sanitized.startswith(cls.HEX_PREFIXES):
            sanitized = sanitized[2:]

        wanted = suite.key_size * 2
        key_hex = sanitized[:wanted]
        if len(key_hex) < wanted:
            raise MalformedKeyMaterial(
                f"Signature provides {len(key_hex)} hex characters, {wanted} required"
            )

        try:
            return binascii.unhexlify(key_hex)
        except (binascii.Error, ValueError) as e:
            raise MalformedKeyMaterial("Signature is not valid hex") from e


derive_key = SignatureKeyDeriver.derive_key
