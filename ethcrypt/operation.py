"""
Signer-driven encrypt and decrypt operations.

Each call owns one FileOperation that walks

    NOTE_PENDING -> AWAITING_SIGNATURE -> KEY_DERIVED -> STREAMING -> COMPLETE

and drops to FAILED from any step. The signature is awaited before any
cipher exists; the blocking file work then runs in the default executor.
Cancelling the awaiting task does not stop that thread: it keeps writing
until the stream ends or fails, and partial output is removed only then.
"""

import os
import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from .cipher import DEFAULT_SUITE, CipherSuite
from .errors import InvalidInput
from .file_cipher import DEFAULT_CHUNK_SIZE, decrypt_file, encrypt_file
from .key_derivation import derive_key
from .note import generate_note, note_from_path, note_to_iv
from .signing import Signer, sign_note

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class OperationState(Enum):
    NOTE_PENDING = "note_pending"
    AWAITING_SIGNATURE = "awaiting_signature"
    KEY_DERIVED = "key_derived"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


_TRANSITIONS = {
    OperationState.NOTE_PENDING: {OperationState.AWAITING_SIGNATURE},
    OperationState.AWAITING_SIGNATURE: {OperationState.KEY_DERIVED},
    OperationState.KEY_DERIVED: {OperationState.STREAMING},
    OperationState.STREAMING: {OperationState.COMPLETE},
}


class FileOperation:
    """State and result of one encrypt or decrypt run."""

    def __init__(self, action: str, input_path: Path, output_path: Path, suite: CipherSuite = DEFAULT_SUITE):
        self.action = action
        self.input_path = input_path
        self.output_path = output_path
        self.suite = suite
        self.state = OperationState.NOTE_PENDING
        self.note: Optional[str] = None
        self.signed_note: Optional[str] = None
        self.bytes_written = 0
        self.error: Optional[BaseException] = None

    @property
    def is_finished(self) -> bool:
        return self.state in (OperationState.COMPLETE, OperationState.FAILED)

    def advance(self, new_state: OperationState) -> None:
        """Move to the next state, refusing anything out of order."""
        if new_state is OperationState.FAILED:
            allowed = not self.is_finished
        else:
            allowed = new_state in _TRANSITIONS.get(self.state, set())
        if not allowed:
            raise RuntimeError(f"Cannot move {self.action} from {self.state.name} to {new_state.name}")

        logger.debug(f"{self.action} {self.input_path}: {self.state.name} -> {new_state.name}")
        self.state = new_state

    def fail(self, error: BaseException) -> None:
        self.error = error
        self.advance(OperationState.FAILED)

    @property
    def key(self) -> bytes:
        """Key derived from the signed note; only available once signed."""
        if self.signed_note is None:
            raise RuntimeError("No signature yet")
        return derive_key(self.signed_note, self.suite)


SignedCallback = Callable[[FileOperation], None]


async def _run(
    operation: FileOperation,
    signer: Signer,
    stream: Callable[[], int],
    on_signed: Optional[SignedCallback],
) -> FileOperation:
    try:
        operation.advance(OperationState.AWAITING_SIGNATURE)
        operation.signed_note = await sign_note(operation.note, signer)

        # Surfaces MalformedKeyMaterial before any output exists
        derive_key(operation.signed_note, operation.suite)
        operation.advance(OperationState.KEY_DERIVED)
        if on_signed:
            on_signed(operation)

        operation.advance(OperationState.STREAMING)
        loop = asyncio.get_event_loop()
        operation.bytes_written = await loop.run_in_executor(None, stream)

        operation.advance(OperationState.COMPLETE)
    except Exception as e:
        operation.fail(e)
        logger.warning(f"{operation.action} {operation.input_path} failed: {e}")
        raise
    return operation


async def encrypt_with_signer(
    input_path: PathLike,
    output_path: PathLike,
    signer: Signer,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    note: Optional[str] = None,
    suite: CipherSuite = DEFAULT_SUITE,
    on_signed: Optional[SignedCallback] = None,
) -> FileOperation:
    """
    Encrypt a file, obtaining the key from a signer.

    Args:
        input_path: Plaintext file
        output_path: Destination; resolve a free path before writing
        signer: Signing identity
        chunk_size: Read size for streaming
        note: Pre-generated note; a fresh one is generated when omitted
        suite: Cipher parameters
        on_signed: Called with the operation once the signature arrives,
            before any output is written; may change output_path

    Returns:
        The completed FileOperation
    """
    operation = FileOperation("encrypt", Path(input_path), Path(output_path), suite)
    try:
        if not operation.input_path.is_file():
            raise InvalidInput(f"File does not exist: {operation.input_path}")
        # Decryption signs the header bytes as lowercase hex
        operation.note = note_to_iv(note, suite).hex() if note else generate_note(suite)
    except Exception as e:
        operation.fail(e)
        raise

    def stream() -> int:
        return encrypt_file(
            operation.input_path,
            operation.output_path,
            operation.note,
            operation.signed_note,
            chunk_size,
            suite,
        )

    return await _run(operation, signer, stream, on_signed)


async def decrypt_with_signer(
    input_path: PathLike,
    output_path: PathLike,
    signer: Signer,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    suite: CipherSuite = DEFAULT_SUITE,
    on_signed: Optional[SignedCallback] = None,
) -> FileOperation:
    """
    Decrypt a file, obtaining the key from a signer.

    The note is read from the file header and signed again; the same
    identity produces the same signature and therefore the same key.
    """
    operation = FileOperation("decrypt", Path(input_path), Path(output_path), suite)
    try:
        operation.note = note_from_path(operation.input_path, suite)
    except Exception as e:
        operation.fail(e)
        raise

    def stream() -> int:
        return decrypt_file(
            operation.input_path,
            operation.output_path,
            operation.signed_note,
            chunk_size,
            suite,
        )

    return await _run(operation, signer, stream, on_signed)
