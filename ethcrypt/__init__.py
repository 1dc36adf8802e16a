"""
Cryptographic core for eth-encrypt.

Handles:
- Note generation (random 16-byte IV, signed to obtain the key)
- Key derivation from signatures
- AES-256-CTR streaming encryption
- File framing (note || ciphertext) and note extraction
"""

from .cipher import CipherSuite, CipherStream, DEFAULT_SUITE, create_cipher, create_decipher
from .errors import (
    EthEncryptError,
    InvalidInput,
    MalformedKeyMaterial,
    SignerDeclined,
    SignerError,
    StreamIOError,
)
from .file_cipher import decrypt_bytes, decrypt_file, encrypt_bytes, encrypt_file
from .key_derivation import SignatureKeyDeriver, derive_key
from .note import generate_note, note_from_buffer, note_from_path
from .operation import FileOperation, OperationState, decrypt_with_signer, encrypt_with_signer
from .signing import Signer, build_signature_message, sign_note

__all__ = [
    "CipherSuite",
    "CipherStream",
    "DEFAULT_SUITE",
    "create_cipher",
    "create_decipher",
    "EthEncryptError",
    "InvalidInput",
    "MalformedKeyMaterial",
    "SignerDeclined",
    "SignerError",
    "StreamIOError",
    "encrypt_bytes",
    "decrypt_bytes",
    "encrypt_file",
    "decrypt_file",
    "SignatureKeyDeriver",
    "derive_key",
    "generate_note",
    "note_from_buffer",
    "note_from_path",
    "FileOperation",
    "OperationState",
    "encrypt_with_signer",
    "decrypt_with_signer",
    "Signer",
    "build_signature_message",
    "sign_note",
]
